"""Stress test scenarios for the shipment pipeline.

ShipmentFloodUser creates shipments as fast as possible to saturate the
job executor (or the inline fallback when none is configured) and the
real-time bus. SpikeUser simulates sudden traffic bursts.
"""

from locust import HttpUser, between, constant_pacing, task

from loadtests.data_generators import shipment_data, user_data, vehicle_data


class ShipmentFloodUser(HttpUser):
    """Stress test: maximum shipment throughput.

    Every task creates new aggregates to avoid contention on the
    per-vehicle locks, except the simulation tick which touches them all.
    """

    wait_time = constant_pacing(0.1)  # ~10 requests/sec per user

    def on_start(self):
        resp = self.client.post("/users", json=user_data("CUSTOMER"), name="[STRESS] POST /users")
        self.customer_id = resp.json()["user_id"] if resp.status_code == 201 else None

    @task(6)
    def create_shipment(self):
        if not self.customer_id:
            return
        self.client.post(
            "/shipments",
            json=shipment_data(self.customer_id),
            name="[STRESS] POST /shipments",
        )

    @task(2)
    def provision_vehicle(self):
        self.client.post("/vehicles", json=vehicle_data(), name="[STRESS] POST /vehicles")

    @task(1)
    def tick(self):
        self.client.post("/simulation", name="[STRESS] POST /simulation")


class SpikeUser(HttpUser):
    """Burst of long-haul shipment requests with short pauses."""

    wait_time = between(0.05, 0.2)

    def on_start(self):
        resp = self.client.post("/users", json=user_data("CUSTOMER"), name="[SPIKE] POST /users")
        self.customer_id = resp.json()["user_id"] if resp.status_code == 201 else None

    @task
    def create_long_haul(self):
        if not self.customer_id:
            return
        self.client.post(
            "/shipments",
            json=shipment_data(self.customer_id, long_haul=True),
            name="[SPIKE] POST /shipments",
        )
