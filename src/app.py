"""Fleetline FastAPI application.

Web server for the logistics domain. Commands are processed synchronously
inside each request; long-running shipment fitting is handed to the job
executor when one is configured.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from logistics.domain import logistics
from logistics.runtime import LogisticsRuntime
from logistics.utils.logging import bind_request_context, configure_logging

# Initialized at import so every uvicorn worker shares one registry.
# PROTEAN_ENV selects the overlay from domain.toml.
logistics.init()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    with logistics.domain_context():
        app.state.runtime = LogisticsRuntime.from_env()
    try:
        yield
    finally:
        app.state.runtime.close()


# ---------------------------------------------------------------------------
# FastAPI app
# ---------------------------------------------------------------------------
app = FastAPI(
    title="Fleetline API",
    description="Logistics platform: shipments, fleet simulation and live tracking",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def domain_context_middleware(request: Request, call_next):
    """Push the logistics domain context and tag log lines with the request."""
    bind_request_context(
        request_id=request.headers.get("x-request-id") or uuid.uuid4().hex[:12],
        method=request.method,
        path=request.url.path,
    )
    with logistics.domain_context():
        response = await call_next(request)
    return response


# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------
from logistics.api import (  # noqa: E402
    admin_router,
    job_router,
    operator_router,
    realtime_router,
    register_error_handlers,
    shipment_router,
    simulation_router,
    user_router,
    vehicle_router,
)

app.include_router(user_router)
app.include_router(shipment_router)
app.include_router(vehicle_router)
app.include_router(simulation_router)
app.include_router(realtime_router)
app.include_router(job_router)
app.include_router(operator_router)
app.include_router(admin_router)
register_error_handlers(app)


# ---------------------------------------------------------------------------
# Health / root
# ---------------------------------------------------------------------------
@app.get("/health")
async def health(request: Request):
    runtime = request.app.state.runtime
    return JSONResponse(
        content={
            "status": "ok",
            "domain": logistics.name,
            "async_jobs": runtime.dispatcher.is_available(),
            "subscribers": len(runtime.bus),
        }
    )
