"""Job records and the payload contract between dispatcher and worker."""

import secrets
import time
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field

JOB_TTL_SECONDS = 24 * 60 * 60

PROCESS_SHIPMENT = "process-shipment"


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


def now_ms() -> int:
    return int(time.time() * 1000)


def generate_job_id() -> str:
    return f"job_{now_ms()}_{secrets.token_hex(5)[:9]}"


class JobRecord(BaseModel):
    job_id: str
    type: str
    status: JobStatus = JobStatus.QUEUED
    payload: dict[str, Any] = Field(default_factory=dict)
    result: Any | None = None
    error: str | None = None
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)


# ---------------------------------------------------------------------------
# process-shipment payload
# ---------------------------------------------------------------------------
class JobLocation(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    address: str | None = None
    city: str | None = None
    country: str | None = None


class ShipmentJobData(BaseModel):
    shipment_id: str
    customer_id: str
    weight: float = Field(gt=0)
    origin: JobLocation
    destination: JobLocation
    urgency: Literal["low", "standard", "high", "critical"] = "standard"


class ShipmentJobPayload(BaseModel):
    """Body delivered to the worker callback for ``process-shipment`` jobs."""

    job_id: str | None = None
    type: Literal["process-shipment"] = PROCESS_SHIPMENT
    data: ShipmentJobData
