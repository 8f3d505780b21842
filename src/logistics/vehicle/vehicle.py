"""Vehicle aggregate (CQRS) — a carrier in the fleet.

Vehicle variants (Drone, Truck, Ship) are a tag plus a parameter table rather
than subclasses: capacity, fuel tank, simulation speed and pricing strategy all
come from ``VEHICLE_PROFILES``.

State Machine:
    IDLE → ASSIGNED → IN_TRANSIT → IDLE
    ASSIGNED → IDLE (released on cancellation)
    IDLE ⇄ MAINTENANCE

``current_shipment_id`` is set exactly while the vehicle is ASSIGNED or IN_TRANSIT.
"""

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import DateTime, Float, Identifier, String, ValueObject

from logistics.domain import logistics
from logistics.pricing.strategy import PricingStrategy
from logistics.shared.errors import InvalidTransitionError, NegativeValueError
from logistics.shared.location import Location
from logistics.vehicle.events import (
    VehicleArrived,
    VehicleBound,
    VehicleDeparted,
    VehicleMaintenanceStarted,
    VehicleMoved,
    VehicleProvisioned,
    VehicleRefueled,
    VehicleReleased,
    VehicleReturnedToService,
)

FUEL_FLOOR_PCT = 10.0
MOVE_FUEL_COST_PCT = 0.5
ARRIVAL_FUEL_COST_PCT = 5.0
DEFAULT_SPEED_DEG_PER_TICK = 0.2


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class VehicleType(Enum):
    DRONE = "DRONE"
    TRUCK = "TRUCK"
    SHIP = "SHIP"


class VehicleStatus(Enum):
    IDLE = "IDLE"
    ASSIGNED = "ASSIGNED"
    IN_TRANSIT = "IN_TRANSIT"
    MAINTENANCE = "MAINTENANCE"


@dataclass(frozen=True)
class VehicleProfile:
    capacity_kg: float
    max_fuel: float
    speed_deg_per_tick: float
    pricing: PricingStrategy
    license_prefix: str


VEHICLE_PROFILES = {
    VehicleType.DRONE: VehicleProfile(
        capacity_kg=50.0,
        max_fuel=100.0,
        speed_deg_per_tick=0.5,
        pricing=PricingStrategy.AIR,
        license_prefix="DRN",
    ),
    VehicleType.TRUCK: VehicleProfile(
        capacity_kg=5000.0,
        max_fuel=500.0,
        speed_deg_per_tick=0.3,
        pricing=PricingStrategy.GROUND,
        license_prefix="TRK-V",
    ),
    VehicleType.SHIP: VehicleProfile(
        capacity_kg=50000.0,
        max_fuel=10000.0,
        speed_deg_per_tick=0.2,
        pricing=PricingStrategy.SEA,
        license_prefix="SHP",
    ),
}

_VALID_TRANSITIONS = {
    VehicleStatus.IDLE: {VehicleStatus.ASSIGNED, VehicleStatus.MAINTENANCE},
    VehicleStatus.ASSIGNED: {VehicleStatus.IN_TRANSIT, VehicleStatus.IDLE},
    VehicleStatus.IN_TRANSIT: {VehicleStatus.IDLE},
    VehicleStatus.MAINTENANCE: {VehicleStatus.IDLE},
}


def profile_for(vehicle_type) -> VehicleProfile:
    return VEHICLE_PROFILES[VehicleType(vehicle_type)]


def generate_license_id(vehicle_type) -> str:
    prefix = profile_for(vehicle_type).license_prefix
    return f"{prefix}-{secrets.token_hex(3).upper()}"


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@logistics.aggregate
class Vehicle:
    license_id = String(required=True, max_length=50)
    vehicle_type = String(required=True, choices=VehicleType)
    capacity_kg = Float(required=True, min_value=0.0)
    max_fuel = Float(required=True, min_value=0.0)
    current_fuel_pct = Float(default=100.0, min_value=0.0, max_value=100.0)
    speed_deg_per_tick = Float(default=DEFAULT_SPEED_DEG_PER_TICK)
    status = String(choices=VehicleStatus, default=VehicleStatus.IDLE.value)
    position = ValueObject(Location)
    current_shipment_id = Identifier()
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def provision(cls, vehicle_type, position: Location | None = None, license_id: str | None = None):
        """Create a new vehicle sized to its variant's defaults."""
        vehicle_type = VehicleType(vehicle_type)
        profile = profile_for(vehicle_type)
        now = datetime.now(UTC)
        vehicle = cls(
            license_id=license_id or generate_license_id(vehicle_type),
            vehicle_type=vehicle_type.value,
            capacity_kg=profile.capacity_kg,
            max_fuel=profile.max_fuel,
            current_fuel_pct=100.0,
            speed_deg_per_tick=profile.speed_deg_per_tick,
            status=VehicleStatus.IDLE.value,
            position=position.clone() if position else None,
            created_at=now,
            updated_at=now,
        )
        vehicle.raise_(
            VehicleProvisioned(
                vehicle_id=str(vehicle.id),
                license_id=vehicle.license_id,
                vehicle_type=vehicle.vehicle_type,
                capacity_kg=vehicle.capacity_kg,
                provisioned_at=now,
            )
        )
        return vehicle

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def profile(self) -> VehicleProfile:
        return profile_for(self.vehicle_type)

    @property
    def pricing_strategy(self) -> PricingStrategy:
        return self.profile.pricing

    def can_carry(self, weight: float) -> bool:
        return weight <= self.capacity_kg

    def current_location(self) -> Location | None:
        return self.position.clone() if self.position else None

    # -------------------------------------------------------------------
    # State transition helper
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: VehicleStatus) -> None:
        current = VehicleStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(
                {"status": [f"Vehicle cannot transition from {current.value} to {target_status.value}"]}
            )

    # -------------------------------------------------------------------
    # Assignment lifecycle
    # -------------------------------------------------------------------
    def bind(self, shipment_id: str) -> None:
        """Bind this idle vehicle to a shipment."""
        self._assert_can_transition(VehicleStatus.ASSIGNED)
        now = datetime.now(UTC)
        self.status = VehicleStatus.ASSIGNED.value
        self.current_shipment_id = shipment_id
        self.updated_at = now
        self.raise_(
            VehicleBound(
                vehicle_id=str(self.id),
                shipment_id=str(shipment_id),
                bound_at=now,
            )
        )

    def depart(self, start: Location | None = None) -> None:
        """Leave with the bound shipment; an unplaced vehicle starts at ``start``."""
        self._assert_can_transition(VehicleStatus.IN_TRANSIT)
        now = datetime.now(UTC)
        self.status = VehicleStatus.IN_TRANSIT.value
        if self.position is None and start is not None:
            self.position = start.clone()
        self.updated_at = now
        self.raise_(
            VehicleDeparted(
                vehicle_id=str(self.id),
                shipment_id=str(self.current_shipment_id),
                departed_at=now,
            )
        )

    def move_to(self, lat: float, lng: float, fuel_cost: float = MOVE_FUEL_COST_PCT) -> None:
        """Record an intermediate simulated position."""
        if VehicleStatus(self.status) != VehicleStatus.IN_TRANSIT:
            raise InvalidTransitionError({"status": ["Only vehicles in transit can move"]})

        now = datetime.now(UTC)
        self.position = Location(lat=lat, lng=lng)
        self.current_fuel_pct = _burn(self.current_fuel_pct, fuel_cost)
        self.updated_at = now
        self.raise_(
            VehicleMoved(
                vehicle_id=str(self.id),
                lat=lat,
                lng=lng,
                fuel_pct=self.current_fuel_pct,
                moved_at=now,
            )
        )

    def arrive(self, destination: Location, fuel_cost: float = ARRIVAL_FUEL_COST_PCT) -> None:
        """Snap to the destination, burn arrival fuel and become idle."""
        if VehicleStatus(self.status) != VehicleStatus.IN_TRANSIT:
            raise InvalidTransitionError({"status": ["Only vehicles in transit can arrive"]})

        now = datetime.now(UTC)
        shipment_id = self.current_shipment_id
        self.position = destination.clone()
        self.current_fuel_pct = _burn(self.current_fuel_pct, fuel_cost)
        self.status = VehicleStatus.IDLE.value
        self.current_shipment_id = None
        self.updated_at = now
        self.raise_(
            VehicleArrived(
                vehicle_id=str(self.id),
                shipment_id=str(shipment_id),
                lat=destination.lat,
                lng=destination.lng,
                arrived_at=now,
            )
        )

    def release(self) -> None:
        """Drop the bound shipment without delivering it (cancellation)."""
        current = VehicleStatus(self.status)
        if current not in (VehicleStatus.ASSIGNED, VehicleStatus.IN_TRANSIT):
            raise InvalidTransitionError({"status": [f"Cannot release a vehicle in {current.value} state"]})

        now = datetime.now(UTC)
        shipment_id = self.current_shipment_id
        self.status = VehicleStatus.IDLE.value
        self.current_shipment_id = None
        self.updated_at = now
        self.raise_(
            VehicleReleased(
                vehicle_id=str(self.id),
                shipment_id=str(shipment_id),
                released_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------
    def start_maintenance(self) -> None:
        self._assert_can_transition(VehicleStatus.MAINTENANCE)
        now = datetime.now(UTC)
        self.status = VehicleStatus.MAINTENANCE.value
        self.updated_at = now
        self.raise_(VehicleMaintenanceStarted(vehicle_id=str(self.id), started_at=now))

    def return_to_service(self) -> None:
        if VehicleStatus(self.status) != VehicleStatus.MAINTENANCE:
            raise InvalidTransitionError({"status": ["Vehicle is not in maintenance"]})
        now = datetime.now(UTC)
        self.status = VehicleStatus.IDLE.value
        self.updated_at = now
        self.raise_(VehicleReturnedToService(vehicle_id=str(self.id), returned_at=now))

    def refuel(self, amount_pct: float) -> None:
        if amount_pct is None or amount_pct < 0:
            raise NegativeValueError({"amount": ["Fuel amount cannot be negative"]})
        if VehicleStatus(self.status) == VehicleStatus.IN_TRANSIT:
            raise ValidationError({"status": ["Cannot refuel a vehicle in transit"]})

        now = datetime.now(UTC)
        before = self.current_fuel_pct or 0.0
        self.current_fuel_pct = min(before + amount_pct, 100.0)
        self.updated_at = now
        self.raise_(
            VehicleRefueled(
                vehicle_id=str(self.id),
                added_pct=self.current_fuel_pct - before,
                fuel_pct=self.current_fuel_pct,
                refueled_at=now,
            )
        )

    def to_summary(self) -> dict:
        return {
            "id": str(self.id),
            "license_id": self.license_id,
            "type": self.vehicle_type,
            "status": self.status,
            "capacity_kg": self.capacity_kg,
            "current_fuel_pct": self.current_fuel_pct,
            "position": self.position.as_dict() if self.position else None,
            "current_shipment_id": str(self.current_shipment_id) if self.current_shipment_id else None,
        }


def _burn(fuel_pct: float | None, amount: float) -> float:
    return max((fuel_pct or 0.0) - amount, FUEL_FLOOR_PCT)
