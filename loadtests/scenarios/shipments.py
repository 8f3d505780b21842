"""Shipment load test scenarios.

Stateful SequentialTaskSet journeys covering the full delivery lifecycle,
cancellation, and payments with partial refunds. Each journey registers
its own customer so no state is shared between simulated users.
"""

from locust import SequentialTaskSet, task

from loadtests.data_generators import (
    cancellation_reason,
    note_data,
    payment_data,
    shipment_data,
    signature_data,
    user_data,
)
from loadtests.helpers.response import extract_error_detail
from loadtests.helpers.state import ShipmentState


class _ShipmentJourney(SequentialTaskSet):
    """Registers a customer and creates one shipment before the journey proper."""

    long_haul: bool | None = None

    def on_start(self):
        self.state = ShipmentState()
        with self.client.post(
            "/users",
            json=user_data("CUSTOMER"),
            catch_response=True,
            name="POST /users",
        ) as resp:
            if resp.status_code == 201:
                self.state.customer_id = resp.json()["user_id"]
            else:
                resp.failure(f"Register customer failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    def create_shipment(self):
        with self.client.post(
            "/shipments",
            json=shipment_data(self.state.customer_id, long_haul=self.long_haul),
            catch_response=True,
            name="POST /shipments",
        ) as resp:
            if resp.status_code in (201, 202):
                body = resp.json()
                self.state.shipment_id = body["shipment"]["id"]
                self.state.current_status = body["shipment"]["status"]
                self.state.job_id = body.get("job_id")
            else:
                resp.failure(f"Create shipment failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()


class ShipmentDeliveryJourney(_ShipmentJourney):
    """Create -> (poll job) -> Dispatch -> Note -> Track.

    Delivery itself happens when the simulation advances the carrier, so the
    journey ends once the shipment is on the road.
    """

    @task
    def create(self):
        self.create_shipment()

    @task
    def await_assignment(self):
        if not self.state.job_id:
            return
        with self.client.get(
            f"/jobs/{self.state.job_id}",
            catch_response=True,
            name="GET /jobs/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Job status failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def dispatch(self):
        with self.client.get(
            f"/shipments/{self.state.shipment_id}",
            catch_response=True,
            name="GET /shipments/{id}",
        ) as resp:
            if resp.status_code != 200:
                resp.failure(f"Get shipment failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()
                return
            self.state.current_status = resp.json()["status"]

        if self.state.current_status != "ASSIGNED":
            # Still queued or left pending for a ship; nothing to dispatch.
            self.interrupt()
            return

        with self.client.put(
            f"/shipments/{self.state.shipment_id}/dispatch",
            catch_response=True,
            name="PUT /shipments/{id}/dispatch",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "IN_TRANSIT"
            else:
                resp.failure(f"Dispatch failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def add_note(self):
        with self.client.post(
            f"/shipments/{self.state.shipment_id}/notes",
            json=note_data(),
            catch_response=True,
            name="POST /shipments/{id}/notes",
        ) as resp:
            if resp.status_code != 201:
                resp.failure(f"Add note failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()


class ShipmentCancellationJourney(_ShipmentJourney):
    """Create -> Cancel -> Cancel again (expected rejection)."""

    @task
    def create(self):
        self.create_shipment()

    @task
    def cancel(self):
        with self.client.put(
            f"/shipments/{self.state.shipment_id}/cancel",
            json=cancellation_reason(),
            catch_response=True,
            name="PUT /shipments/{id}/cancel",
        ) as resp:
            if resp.status_code == 200:
                self.state.current_status = "CANCELLED"
            else:
                resp.failure(f"Cancel failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def cancel_again(self):
        with self.client.put(
            f"/shipments/{self.state.shipment_id}/cancel",
            json=cancellation_reason(),
            catch_response=True,
            name="PUT /shipments/{id}/cancel (terminal)",
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Expected 400 for terminal cancel, got {resp.status_code}")

    @task
    def done(self):
        self.interrupt()


class ShipmentPaymentJourney(_ShipmentJourney):
    """Create -> Pay -> Partial refund -> Sign.

    The signature is expected to be rejected unless the shipment has
    already been delivered.
    """

    @task
    def create(self):
        self.create_shipment()

    @task
    def pay(self):
        with self.client.post(
            f"/shipments/{self.state.shipment_id}/payments",
            json=payment_data(),
            catch_response=True,
            name="POST /shipments/{id}/payments",
        ) as resp:
            if resp.status_code == 201:
                self.state.transaction_ids.append(resp.json()["transaction_id"])
            else:
                resp.failure(f"Payment failed: {resp.status_code}: {extract_error_detail(resp)}")
                self.interrupt()

    @task
    def partial_refund(self):
        with self.client.post(
            f"/shipments/{self.state.shipment_id}/refunds",
            json={"transaction_id": self.state.transaction_ids[0], "amount": 5.0},
            catch_response=True,
            name="POST /shipments/{id}/refunds",
        ) as resp:
            if resp.status_code == 201:
                self.state.transaction_ids.append(resp.json()["transaction_id"])
            else:
                resp.failure(f"Refund failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def sign(self):
        with self.client.put(
            f"/shipments/{self.state.shipment_id}/signature",
            json=signature_data(),
            catch_response=True,
            name="PUT /shipments/{id}/signature",
        ) as resp:
            if resp.status_code in (200, 400):
                resp.success()
            else:
                resp.failure(f"Signature failed: {resp.status_code}: {extract_error_detail(resp)}")

    @task
    def done(self):
        self.interrupt()
