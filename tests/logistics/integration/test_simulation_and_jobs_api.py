"""Integration tests for the simulation and job endpoints."""

import asyncio
import inspect

import pytest
from fastapi.routing import APIRoute
from logistics.api import routes
from logistics.jobs.executor.fake_adapter import FakeJobExecutor

ORIGIN = {"lat": 40.0, "lng": -74.0}
NEARBY = {"lat": 40.0, "lng": -74.001}
SIGNED = {"Upstash-Signature": "test-signature"}


def _dispatched(client, customer_id, destination=NEARBY):
    shipment = client.post(
        "/shipments",
        json={"customer_id": customer_id, "weight": 20, "origin": ORIGIN, "destination": destination},
    ).json()["shipment"]
    client.put(f"/shipments/{shipment['id']}/dispatch")
    return shipment["id"]


class TestSimulationAPI:
    def test_tick_delivers_nearby_shipment(self, client, api_customer):
        shipment_id = _dispatched(client, api_customer)
        response = client.post("/simulation")
        assert response.status_code == 200
        body = response.json()
        assert body["vehicles_updated"] == 1
        assert body["updates"][0]["action"] == "DELIVERED"
        assert client.get(f"/shipments/{shipment_id}").json()["status"] == "DELIVERED"

    def test_signature_after_delivery(self, client, api_customer):
        shipment_id = _dispatched(client, api_customer)
        client.post("/simulation")
        response = client.put(f"/shipments/{shipment_id}/signature", json={"signature": "R. Receiver"})
        assert response.status_code == 200
        assert response.json() == {"status": "signed"}
        assert client.get(f"/shipments/{shipment_id}").json()["signature"] == "R. Receiver"

    def test_status_lists_vehicles_in_transit(self, client, api_customer):
        _dispatched(client, api_customer, destination={"lat": 45.0, "lng": -74.0})
        body = client.get("/simulation").json()
        assert body["active_deliveries"] == 1
        assert body["vehicles"][0]["destination"] == {"lat": 45.0, "lng": -74.0}

    def test_tick_with_nothing_in_transit(self, client):
        assert client.post("/simulation").json() == {"vehicles_updated": 0, "updates": [], "failures": []}


class TestJobAPI:
    @pytest.fixture(autouse=True)
    def _jobs_available(self, executor):
        executor.configure(available=True)

    def test_worker_callback_completes_job(self, client, api_customer, executor):
        job_id = client.post(
            "/shipments",
            json={"customer_id": api_customer, "weight": 3, "origin": ORIGIN, "destination": {"lat": 41.0, "lng": -73.0}, "urgency": "critical"},
        ).json()["job_id"]
        body = executor.submitted[0]["body"]

        response = client.post("/jobs/process-shipment", json=body, headers=SIGNED)
        assert response.status_code == 200
        assert response.json()["success"] is True
        assert response.json()["result"]["status"] == "ASSIGNED"

        status = client.get(f"/jobs/{job_id}").json()
        assert status["status"] == "completed"
        assert status["result"]["recommended_vehicle_type"] == "DRONE"

    def test_malformed_callback_returns_400(self, client):
        response = client.post(
            "/jobs/process-shipment", json={"type": "process-shipment", "data": {"weight": 1}}, headers=SIGNED
        )
        assert response.status_code == 400

    def _queued(self, client, customer_id, executor):
        job_id = client.post(
            "/shipments",
            json={"customer_id": customer_id, "weight": 3, "origin": ORIGIN, "destination": NEARBY},
        ).json()["job_id"]
        return job_id, executor.submitted[0]["body"]

    def test_unsigned_callback_is_rejected(self, client, api_customer, executor):
        job_id, body = self._queued(client, api_customer, executor)
        response = client.post("/jobs/process-shipment", json=body)
        assert response.status_code == 401
        assert client.get(f"/jobs/{job_id}").json()["status"] == "queued"
        assert client.get(f"/shipments/{body['data']['shipment_id']}").json()["status"] == "PENDING"

    def test_forged_callback_is_rejected(self, client, api_customer, executor):
        job_id, body = self._queued(client, api_customer, executor)
        response = client.post("/jobs/process-shipment", json=body, headers={"Upstash-Signature": "forged"})
        assert response.status_code == 401
        assert client.get(f"/jobs/{job_id}").json()["status"] == "queued"

    def test_rotated_signature_is_configurable(self, client, api_customer, executor):
        _, body = self._queued(client, api_customer, executor)
        client.post("/jobs/executor/configure", json={"callback_signature": "rotated"})
        assert client.post("/jobs/process-shipment", json=body, headers=SIGNED).status_code == 401
        response = client.post("/jobs/process-shipment", json=body, headers={"Upstash-Signature": "rotated"})
        assert response.status_code == 200

    def test_unknown_job_returns_404(self, client):
        assert client.get("/jobs/job_0_missing").status_code == 404

    def test_queued_job_status(self, client, api_customer):
        job_id = client.post(
            "/shipments",
            json={"customer_id": api_customer, "weight": 3, "origin": ORIGIN, "destination": NEARBY},
        ).json()["job_id"]
        assert client.get(f"/jobs/{job_id}").json()["status"] == "queued"


class TestExecutorConfigAPI:
    def test_configure_fake_executor(self, client, executor):
        response = client.post("/jobs/executor/configure", json={"available": True, "should_accept": False})
        assert response.status_code == 200
        body = response.json()
        assert body["executor"] == "FakeJobExecutor"
        assert body["should_accept"] is False
        assert executor.is_available() is True

    def test_configure_blocked_in_production(self, client, monkeypatch):
        monkeypatch.setenv("PROTEAN_ENV", "production")
        response = client.post("/jobs/executor/configure", json={"available": True})
        assert response.status_code == 403

    def test_rejected_handoff_still_creates_shipment(self, client, api_customer):
        client.post("/jobs/executor/configure", json={"available": True, "should_accept": False})
        response = client.post(
            "/shipments",
            json={"customer_id": api_customer, "weight": 3, "origin": ORIGIN, "destination": NEARBY},
        )
        assert response.status_code == 201
        assert response.json()["shipment"]["status"] == "ASSIGNED"


class ThreadRecordingExecutor(FakeJobExecutor):
    """Remembers whether each submit ran on a thread with a running event loop."""

    def __init__(self):
        super().__init__(available=True)
        self.on_event_loop = []

    def submit(self, job_id, job_type, body):
        try:
            asyncio.get_running_loop()
            self.on_event_loop.append(True)
        except RuntimeError:
            self.on_event_loop.append(False)
        super().submit(job_id, job_type, body)


class TestBlockingWorkLeavesTheEventLoop:
    @pytest.fixture()
    def executor(self):
        return ThreadRecordingExecutor()

    def test_only_the_stream_handler_is_a_coroutine(self):
        routers = (
            routes.user_router,
            routes.shipment_router,
            routes.vehicle_router,
            routes.simulation_router,
            routes.realtime_router,
            routes.job_router,
            routes.operator_router,
            routes.admin_router,
        )
        coroutines = {
            route.path
            for router in routers
            for route in router.routes
            if isinstance(route, APIRoute) and inspect.iscoroutinefunction(route.endpoint)
        }
        assert coroutines == {"/realtime"}

    def test_job_handoff_runs_in_threadpool(self, client, api_customer, executor):
        response = client.post(
            "/shipments",
            json={"customer_id": api_customer, "weight": 3, "origin": ORIGIN, "destination": NEARBY},
        )
        assert response.status_code == 202
        assert executor.on_event_loop == [False]
