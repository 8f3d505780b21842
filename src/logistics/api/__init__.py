"""Logistics HTTP API package."""

from logistics.api.routes import (
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

__all__ = [
    "admin_router",
    "job_router",
    "operator_router",
    "realtime_router",
    "register_error_handlers",
    "shipment_router",
    "simulation_router",
    "user_router",
    "vehicle_router",
]
