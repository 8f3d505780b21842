"""Fleet load test scenarios.

An operator provisions vehicles and repeatedly advances the simulation,
which is the only path by which shipments reach DELIVERED.
"""

from locust import SequentialTaskSet, task

from loadtests.data_generators import vehicle_data
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import FleetState


class FleetOperatorJourney(SequentialTaskSet):
    """Provision -> Tick x3 -> Status."""

    def on_start(self):
        self.state = FleetState()

    @task
    def provision(self):
        with self.client.post(
            "/vehicles",
            json=vehicle_data(),
            catch_response=True,
            name="POST /vehicles",
        ) as resp:
            if resp.status_code == 201:
                self.state.vehicle_ids.append(resp.json()["id"])
            else:
                resp.failure(f"Provision failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task(3)
    def tick(self):
        with self.client.post("/simulation", catch_response=True, name="POST /simulation") as resp:
            if resp.status_code == 200:
                self.state.ticks += 1
                failures = resp.json()["failures"]
                if failures:
                    resp.failure(f"Tick reported {len(failures)} vehicle failures")
            else:
                resp.failure(f"Tick failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def status(self):
        with self.client.get("/simulation", catch_response=True, name="GET /simulation") as resp:
            if resp.status_code != 200:
                resp.failure(f"Simulation status failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()
