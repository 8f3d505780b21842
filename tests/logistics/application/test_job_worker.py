"""Application tests for job dispatch and the shipment job worker."""

import json

import pytest
from logistics.jobs.dispatch import JobDispatcher
from logistics.jobs.executor.fake_adapter import FakeJobExecutor
from logistics.jobs.job import PROCESS_SHIPMENT, JobStatus
from logistics.jobs.store.memory import InMemoryJobStore
from logistics.shared.errors import JobHandoffError
from logistics.shipment.creation import RegisterPendingShipment
from logistics.shipment.shipment import Shipment, ShipmentStatus
from protean import current_domain
from protean.exceptions import ObjectNotFoundError, ValidationError

ORIGIN = {"lat": 40.7128, "lng": -74.0060}
DESTINATION = {"lat": 42.3601, "lng": -71.0589}


def _pending(customer_id, urgency="high"):
    return current_domain.process(
        RegisterPendingShipment(
            customer_id=customer_id,
            weight=6.0,
            origin=json.dumps(ORIGIN),
            destination=json.dumps(DESTINATION),
            urgency=urgency,
        ),
        asynchronous=False,
    )


def _body(shipment_id, customer_id, job_id=None, **overrides):
    data = {
        "shipment_id": shipment_id,
        "customer_id": customer_id,
        "weight": 6.0,
        "origin": ORIGIN,
        "destination": DESTINATION,
        "urgency": "high",
    }
    data.update(overrides)
    return {"job_id": job_id, "type": PROCESS_SHIPMENT, "data": data}


class TestJobDispatcher:
    def _dispatcher(self, **executor_config):
        executor = FakeJobExecutor(available=True)
        executor.configure(**executor_config)
        return JobDispatcher(InMemoryJobStore(), executor, retry_attempts=1, retry_delay=0), executor

    def test_enqueue_records_queued_job(self):
        dispatcher, executor = self._dispatcher()
        job_id = dispatcher.enqueue(PROCESS_SHIPMENT, {"shipment_id": "shp-1"})
        record = dispatcher.status(job_id)
        assert record.status == JobStatus.QUEUED
        assert record.payload == {"shipment_id": "shp-1"}
        assert executor.submitted[0]["body"] == {
            "job_id": job_id,
            "type": PROCESS_SHIPMENT,
            "data": {"shipment_id": "shp-1"},
        }

    def test_rejected_handoff_marks_job_failed(self):
        dispatcher, executor = self._dispatcher(should_accept=False, failure_reason="Relay down")
        with pytest.raises(JobHandoffError):
            dispatcher.enqueue(PROCESS_SHIPMENT, {"shipment_id": "shp-1"})
        (record,) = dispatcher.store._records.values()
        assert record.status == JobStatus.FAILED
        assert record.error == "Relay down"

    def test_status_transitions(self):
        dispatcher, _ = self._dispatcher()
        job_id = dispatcher.enqueue(PROCESS_SHIPMENT, {})
        assert dispatcher.mark_processing(job_id).status == JobStatus.PROCESSING
        done = dispatcher.mark_completed(job_id, {"id": "shp-1"})
        assert done.status == JobStatus.COMPLETED
        assert done.result == {"id": "shp-1"}

    def test_unknown_job(self):
        dispatcher, _ = self._dispatcher()
        assert dispatcher.status("job_missing") is None


class TestShipmentJobWorker:
    def test_finalizes_pending_shipment(self, runtime, customer_id):
        shipment_id = _pending(customer_id)
        result = runtime.worker.process(_body(shipment_id, customer_id))
        assert result["id"] == shipment_id
        assert result["status"] == ShipmentStatus.ASSIGNED.value
        assert result["recommended_vehicle_type"] == "DRONE"
        assert result["cost"] > 0

    def test_tracks_job_status(self, runtime, customer_id):
        shipment_id = _pending(customer_id)
        job_id = runtime.dispatcher.enqueue(PROCESS_SHIPMENT, _body(shipment_id, customer_id)["data"])
        runtime.worker.process(_body(shipment_id, customer_id, job_id=job_id))
        record = runtime.dispatcher.status(job_id)
        assert record.status == JobStatus.COMPLETED
        assert record.result["tracking_id"].startswith("TRK-")

    def test_broadcasts_result(self, runtime, customer_id, captured):
        shipment_id = _pending(customer_id)
        captured.clear()
        runtime.worker.process(_body(shipment_id, customer_id))
        assert [e.type.value for e in captured] == ["shipment_update", "stats_update"]

    def test_redelivery_is_idempotent(self, runtime, customer_id):
        shipment_id = _pending(customer_id)
        first = runtime.worker.process(_body(shipment_id, customer_id))
        second = runtime.worker.process(_body(shipment_id, customer_id))
        assert first["assigned_vehicle_id"] == second["assigned_vehicle_id"]

    def test_invalid_payload_fails_job(self, runtime, customer_id):
        shipment_id = _pending(customer_id)
        job_id = runtime.dispatcher.enqueue(PROCESS_SHIPMENT, {})
        with pytest.raises(ValidationError):
            runtime.worker.process(_body(shipment_id, customer_id, job_id=job_id, weight=-3))
        record = runtime.dispatcher.status(job_id)
        assert record.status == JobStatus.FAILED
        assert record.error == "Invalid job payload"

    def test_customer_must_own_shipment(self, runtime, customer_id):
        shipment_id = _pending(customer_id)
        with pytest.raises(ValidationError):
            runtime.worker.process(_body(shipment_id, "someone-else"))
        shipment = current_domain.repository_for(Shipment).get(shipment_id)
        assert shipment.status == ShipmentStatus.PENDING.value

    def test_unknown_shipment_fails_job(self, runtime, customer_id):
        job_id = runtime.dispatcher.enqueue(PROCESS_SHIPMENT, {})
        with pytest.raises(ObjectNotFoundError):
            runtime.worker.process(_body("no-such-shipment", customer_id, job_id=job_id))
        assert runtime.dispatcher.status(job_id).status == JobStatus.FAILED
