"""Pydantic API schemas for the logistics service.

These are the external API contracts, separate from domain commands. Value
checks (positive weight, coordinate ranges, known urgency) stay in the domain
so that every rejection comes back the same way.
"""

from typing import Any

from pydantic import BaseModel


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class LocationPayload(BaseModel):
    lat: float | None = None
    lng: float | None = None
    address: str | None = None
    city: str | None = None
    country: str | None = None


class RegisterUserRequest(BaseModel):
    name: str
    email: str
    role: str
    phone: str | None = None
    license_number: str | None = None


class CreateShipmentRequest(BaseModel):
    customer_id: str
    weight: float
    origin: LocationPayload
    destination: LocationPayload
    urgency: str = "standard"
    shipment_type: str = "STANDARD"
    insurance_value: float | None = None


class AssignVehicleRequest(BaseModel):
    vehicle_id: str


class CancelShipmentRequest(BaseModel):
    reason: str | None = None


class PaymentRequest(BaseModel):
    amount: float
    method: str = "card"


class RefundRequest(BaseModel):
    transaction_id: str
    amount: float | None = None


class SignatureRequest(BaseModel):
    signature: str


class NoteRequest(BaseModel):
    note: str


class InsuranceRequest(BaseModel):
    insurance_value: float


class ProvisionVehicleRequest(BaseModel):
    vehicle_type: str
    position: LocationPayload | None = None
    license_id: str | None = None


class ConfigureExecutorRequest(BaseModel):
    available: bool | None = None
    should_accept: bool | None = None
    failure_reason: str | None = None
    callback_signature: str | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class UserIdResponse(BaseModel):
    user_id: str


class ShipmentCreatedResponse(BaseModel):
    shipment: dict[str, Any]
    job_id: str | None = None


class TransactionResponse(BaseModel):
    transaction_id: str


class NoteResponse(BaseModel):
    note: str


class StatusResponse(BaseModel):
    status: str = "ok"


class TickResponse(BaseModel):
    vehicles_updated: int
    updates: list[dict[str, Any]]
    failures: list[dict[str, Any]]


class SimulationStatusResponse(BaseModel):
    active_deliveries: int
    vehicles: list[dict[str, Any]]


class JobStatusResponse(BaseModel):
    job_id: str
    type: str
    status: str
    result: Any | None = None
    error: str | None = None
    created_at: int
    updated_at: int


class ExecutorConfigResponse(BaseModel):
    executor: str
    available: bool
    should_accept: bool
    failure_reason: str


class FleetStatsResponse(BaseModel):
    total_shipments: int
    active_drones: int
    active_trucks: int
    active_ships: int
    revenue: float
    recent_shipments: list[dict[str, Any]]
