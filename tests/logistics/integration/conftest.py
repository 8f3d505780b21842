import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient
from logistics.api import (
    admin_router,
    job_router,
    operator_router,
    register_error_handlers,
    shipment_router,
    simulation_router,
    user_router,
    vehicle_router,
)


@pytest.fixture()
def app(runtime):
    from logistics.domain import logistics

    app = FastAPI()

    @app.middleware("http")
    async def domain_context_middleware(request: Request, call_next):
        with logistics.domain_context():
            return await call_next(request)

    app.include_router(user_router)
    app.include_router(shipment_router)
    app.include_router(vehicle_router)
    app.include_router(simulation_router)
    app.include_router(job_router)
    app.include_router(operator_router)
    app.include_router(admin_router)
    register_error_handlers(app)
    app.state.runtime = runtime
    return app


@pytest.fixture()
def client(app):
    return TestClient(app)


@pytest.fixture()
def api_customer(client):
    response = client.post(
        "/users",
        json={"name": "Ada Lovelace", "email": "ada@example.com", "role": "CUSTOMER"},
    )
    assert response.status_code == 201
    return response.json()["user_id"]
