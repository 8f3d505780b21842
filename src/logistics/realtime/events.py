"""Real-time notification envelope pushed to live subscribers."""

import time
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class RealtimeEventType(str, Enum):
    SHIPMENT_UPDATE = "shipment_update"
    VEHICLE_UPDATE = "vehicle_update"
    NEW_SHIPMENT = "new_shipment"
    ASSIGNMENT_UPDATE = "assignment_update"
    STATS_UPDATE = "stats_update"
    PING = "ping"
    CONNECTED = "connected"


def _now_ms() -> int:
    return int(time.time() * 1000)


class RealtimeEvent(BaseModel):
    type: RealtimeEventType
    data: dict[str, Any] = Field(default_factory=dict)
    timestamp: int = Field(default_factory=_now_ms)  # epoch milliseconds

    def to_frame(self) -> str:
        """Render as one server-sent-events frame."""
        return f"data: {self.model_dump_json()}\n\n"


def make_event(event_type: RealtimeEventType | str, data: dict | None = None) -> RealtimeEvent:
    return RealtimeEvent(type=RealtimeEventType(event_type), data=data or {})
