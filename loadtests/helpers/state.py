"""Per-user state tracking for Locust load test scenarios.

Each Locust user instance maintains its own state — no cross-user sharing.
State tracks entity IDs returned by creation endpoints so follow-up
operations can reference them.
"""

from dataclasses import dataclass, field


@dataclass
class ShipmentState:
    """Tracks state for a single simulated shipment lifecycle."""

    customer_id: str | None = None
    shipment_id: str | None = None
    job_id: str | None = None
    current_status: str = "PENDING"
    transaction_ids: list[str] = field(default_factory=list)


@dataclass
class FleetState:
    """Tracks vehicles provisioned by a fleet operator."""

    vehicle_ids: list[str] = field(default_factory=list)
    ticks: int = 0
