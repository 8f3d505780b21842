"""FastAPI routes for the logistics service.

Each route translates between Pydantic schemas (external contract) and the
shipment service or Protean commands (internal domain concepts). The runtime
context lives on ``app.state.runtime``.

Handlers that reach the service are plain ``def``: job hand-off, store retries
and the simulation block, so FastAPI runs them in its threadpool and the
event loop stays free for live streams.
"""

import json
import os

from fastapi import APIRouter, Depends, FastAPI, Header, HTTPException, Request
from fastapi.responses import JSONResponse, StreamingResponse
from protean.exceptions import ObjectNotFoundError
from protean.integrations.fastapi import register_exception_handlers
from protean.utils.globals import current_domain

from logistics.api.schemas import (
    AssignVehicleRequest,
    CancelShipmentRequest,
    ConfigureExecutorRequest,
    CreateShipmentRequest,
    ExecutorConfigResponse,
    FleetStatsResponse,
    InsuranceRequest,
    JobStatusResponse,
    NoteRequest,
    NoteResponse,
    PaymentRequest,
    ProvisionVehicleRequest,
    RefundRequest,
    RegisterUserRequest,
    ShipmentCreatedResponse,
    SignatureRequest,
    SimulationStatusResponse,
    StatusResponse,
    TickResponse,
    TransactionResponse,
    UserIdResponse,
)
from logistics.jobs.executor.fake_adapter import FakeJobExecutor
from logistics.runtime import LogisticsRuntime
from logistics.shared.errors import JobHandoffError, NotPermittedError
from logistics.shipment.service import ShipmentService
from logistics.user.registration import RegisterUser

user_router = APIRouter(prefix="/users", tags=["users"])
shipment_router = APIRouter(prefix="/shipments", tags=["shipments"])
vehicle_router = APIRouter(prefix="/vehicles", tags=["vehicles"])
simulation_router = APIRouter(prefix="/simulation", tags=["simulation"])
realtime_router = APIRouter(prefix="/realtime", tags=["realtime"])
job_router = APIRouter(prefix="/jobs", tags=["jobs"])
operator_router = APIRouter(prefix="/operators", tags=["operators"])
admin_router = APIRouter(prefix="/admin", tags=["admin"])


def get_runtime(request: Request) -> LogisticsRuntime:
    return request.app.state.runtime


def get_service(runtime: LogisticsRuntime = Depends(get_runtime)) -> ShipmentService:
    return ShipmentService(runtime)


def register_error_handlers(app: FastAPI) -> None:
    """Domain validation → 400, role not permitted → 403, not found → 404, job hand-off failure → 503."""
    register_exception_handlers(app)

    @app.exception_handler(NotPermittedError)
    async def not_permitted(request: Request, exc: NotPermittedError):
        return JSONResponse(status_code=403, content={"error": exc.messages})

    @app.exception_handler(JobHandoffError)
    async def job_handoff_failed(request: Request, exc: JobHandoffError):
        return JSONResponse(status_code=503, content={"error": str(exc) or "Job hand-off failed"})


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------
@user_router.post("", status_code=201, response_model=UserIdResponse)
def register_user(body: RegisterUserRequest) -> UserIdResponse:
    """Register a customer, driver, captain or administrator."""
    command = RegisterUser(
        name=body.name,
        email=body.email,
        role=body.role,
        phone=body.phone,
        license_number=body.license_number,
    )
    user_id = current_domain.process(command, asynchronous=False)
    return UserIdResponse(user_id=user_id)


# ---------------------------------------------------------------------------
# Shipments
# ---------------------------------------------------------------------------
@shipment_router.post("", status_code=201, response_model=ShipmentCreatedResponse)
def create_shipment(body: CreateShipmentRequest, service: ShipmentService = Depends(get_service)):
    """Create a shipment: 201 when completed inline, 202 when queued."""
    outcome = service.create_shipment(
        customer_id=body.customer_id,
        weight=body.weight,
        origin=body.origin.model_dump(exclude_none=True),
        destination=body.destination.model_dump(exclude_none=True),
        urgency=body.urgency,
        shipment_type=body.shipment_type,
        insurance_value=body.insurance_value,
    )
    response = ShipmentCreatedResponse(shipment=outcome.shipment, job_id=outcome.job_id)
    if outcome.queued:
        return JSONResponse(status_code=202, content=response.model_dump())
    return response


@shipment_router.get("/{shipment_id}")
def get_shipment(shipment_id: str, service: ShipmentService = Depends(get_service)) -> dict:
    return service.get_shipment(shipment_id)


@shipment_router.put("/{shipment_id}/assign")
def assign_vehicle(shipment_id: str, body: AssignVehicleRequest, service: ShipmentService = Depends(get_service)) -> dict:
    """Assign a PENDING shipment to an existing vehicle (e.g. a ship)."""
    return service.assign(shipment_id, body.vehicle_id)


@shipment_router.put("/{shipment_id}/dispatch")
def dispatch_shipment(shipment_id: str, service: ShipmentService = Depends(get_service)) -> dict:
    return service.dispatch(shipment_id)


@shipment_router.put("/{shipment_id}/cancel")
def cancel_shipment(
    shipment_id: str,
    body: CancelShipmentRequest | None = None,
    service: ShipmentService = Depends(get_service),
) -> dict:
    return service.cancel(shipment_id, body.reason if body else None)


@shipment_router.put("/{shipment_id}/insurance", response_model=StatusResponse)
def add_insurance(shipment_id: str, body: InsuranceRequest, service: ShipmentService = Depends(get_service)):
    service.add_insurance(shipment_id, body.insurance_value)
    return StatusResponse(status="insured")


@shipment_router.post("/{shipment_id}/notes", status_code=201, response_model=NoteResponse)
def add_note(shipment_id: str, body: NoteRequest, service: ShipmentService = Depends(get_service)):
    return NoteResponse(note=service.add_note(shipment_id, body.note))


@shipment_router.post("/{shipment_id}/payments", status_code=201, response_model=TransactionResponse)
def process_payment(shipment_id: str, body: PaymentRequest, service: ShipmentService = Depends(get_service)):
    transaction_id = service.pay(shipment_id, body.amount, body.method)
    return TransactionResponse(transaction_id=transaction_id)


@shipment_router.post("/{shipment_id}/refunds", status_code=201, response_model=TransactionResponse)
def issue_refund(shipment_id: str, body: RefundRequest, service: ShipmentService = Depends(get_service)):
    transaction_id = service.refund(shipment_id, body.transaction_id, body.amount)
    return TransactionResponse(transaction_id=transaction_id)


@shipment_router.put("/{shipment_id}/signature", response_model=StatusResponse)
def record_signature(shipment_id: str, body: SignatureRequest, service: ShipmentService = Depends(get_service)):
    service.record_signature(shipment_id, body.signature)
    return StatusResponse(status="signed")


# ---------------------------------------------------------------------------
# Vehicles
# ---------------------------------------------------------------------------
@vehicle_router.post("", status_code=201)
def provision_vehicle(body: ProvisionVehicleRequest, service: ShipmentService = Depends(get_service)) -> dict:
    """Add a vehicle to the fleet; the only way ships enter service."""
    return service.provision_vehicle(
        vehicle_type=body.vehicle_type,
        position=body.position.model_dump(exclude_none=True) if body.position else None,
        license_id=body.license_id,
    )


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------
@simulation_router.post("", response_model=TickResponse)
def run_simulation_tick(runtime: LogisticsRuntime = Depends(get_runtime)) -> TickResponse:
    """Advance every vehicle in transit by one step."""
    return TickResponse(**runtime.simulator.tick().as_dict())


@simulation_router.get("", response_model=SimulationStatusResponse)
def simulation_status(runtime: LogisticsRuntime = Depends(get_runtime)) -> SimulationStatusResponse:
    return SimulationStatusResponse(**runtime.simulator.status())


# ---------------------------------------------------------------------------
# Real-time stream
# ---------------------------------------------------------------------------
@realtime_router.get("")
async def stream_events(channel: str = "all", runtime: LogisticsRuntime = Depends(get_runtime)):
    """Server-sent events: a ``connected`` frame, then live updates and pings."""
    connection = runtime.connect(channel)
    return StreamingResponse(
        connection.frames(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive", "X-Accel-Buffering": "no"},
    )


# ---------------------------------------------------------------------------
# Jobs
# ---------------------------------------------------------------------------
async def raw_body(request: Request) -> bytes:
    return await request.body()


@job_router.post("/process-shipment")
def process_shipment_job(
    body: bytes = Depends(raw_body),
    upstash_signature: str = Header(default=""),
    runtime: LogisticsRuntime = Depends(get_runtime),
) -> dict:
    """Worker callback invoked by the job executor; the relay must have signed it."""
    if not runtime.dispatcher.executor.verify_callback_signature(body, upstash_signature):
        raise HTTPException(status_code=401, detail="Invalid callback signature")
    return {"success": True, "result": runtime.worker.process(json.loads(body))}


@job_router.get("/{job_id}", response_model=JobStatusResponse)
def job_status(job_id: str, runtime: LogisticsRuntime = Depends(get_runtime)) -> JobStatusResponse:
    record = runtime.dispatcher.status(job_id)
    if record is None:
        raise ObjectNotFoundError(f"Job {job_id} not found")
    return JobStatusResponse(
        job_id=record.job_id,
        type=record.type,
        status=record.status.value,
        result=record.result,
        error=record.error,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


@job_router.post("/executor/configure", response_model=ExecutorConfigResponse)
def configure_executor(
    body: ConfigureExecutorRequest, runtime: LogisticsRuntime = Depends(get_runtime)
) -> ExecutorConfigResponse:
    """Configure the FakeJobExecutor behavior (non-production only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Executor configuration not available in production")

    executor = runtime.dispatcher.executor
    if not isinstance(executor, FakeJobExecutor):
        raise HTTPException(status_code=400, detail="Executor configuration only available for FakeJobExecutor")

    executor.configure(
        available=body.available,
        should_accept=body.should_accept,
        failure_reason=body.failure_reason,
        callback_signature=body.callback_signature,
    )
    return ExecutorConfigResponse(
        executor=type(executor).__name__,
        available=executor.available,
        should_accept=executor.should_accept,
        failure_reason=executor.failure_reason,
    )


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------
@operator_router.get("/{operator_id}/jobs")
def operator_jobs(operator_id: str, service: ShipmentService = Depends(get_service)) -> dict:
    """The operator's current delivery and the assigned shipments they could take."""
    return service.job_board(operator_id)


@operator_router.post("/{operator_id}/jobs/{shipment_id}/accept")
def accept_job(operator_id: str, shipment_id: str, service: ShipmentService = Depends(get_service)) -> dict:
    """Take an assigned shipment and depart with it."""
    return service.accept_job(operator_id, shipment_id)


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------
@admin_router.get("/stats", response_model=FleetStatsResponse)
def fleet_stats(admin_id: str, service: ShipmentService = Depends(get_service)) -> FleetStatsResponse:
    """Shipment totals, active fleet, revenue and the newest shipments."""
    return FleetStatsResponse(**service.admin_stats(admin_id))
