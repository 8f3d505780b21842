"""Shipment factory — picks a vehicle variant, provisions it and prices the shipment.

Variant rule:
    weight <= 50 kg AND urgency in {high, critical} AND distance <= 1000 km → Drone
    weight <= 5000 kg → Truck
    anything heavier → left PENDING with a SHIP recommendation

Ships are never provisioned here; they join a shipment through vehicle
provisioning followed by ``AssignShipmentToVehicle``. Weights beyond a
ship's capacity are rejected before anything is stored.

The factory only builds and mutates aggregates. Persisting them is the job of
the calling command handler.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog

from logistics.pricing.strategy import PricingStrategy, ShipmentType
from logistics.shared.errors import CapacityExceededError
from logistics.shared.location import Location
from logistics.shipment.shipment import Shipment, Urgency
from logistics.vehicle.vehicle import Vehicle, VehicleType, profile_for

logger = structlog.get_logger(__name__)

DRONE_MAX_WEIGHT_KG = 50.0
DRONE_MAX_RANGE_KM = 1000.0
DRONE_URGENCIES = {Urgency.HIGH, Urgency.CRITICAL}

BASE_DELIVERY_DAYS = {
    Urgency.CRITICAL: 1,
    Urgency.HIGH: 2,
    Urgency.STANDARD: 5,
    Urgency.LOW: 14,
}


@dataclass(frozen=True)
class FactoryResult:
    shipment: Shipment
    vehicle: Vehicle | None
    strategy: PricingStrategy
    estimated_days: int


def select_vehicle_type(weight: float, urgency, km: float) -> VehicleType:
    if weight <= DRONE_MAX_WEIGHT_KG and Urgency(urgency) in DRONE_URGENCIES and km <= DRONE_MAX_RANGE_KM:
        return VehicleType.DRONE
    return VehicleType.TRUCK


def needs_ship(weight: float) -> bool:
    return weight > profile_for(VehicleType.TRUCK).capacity_kg


def ensure_carriable(weight: float) -> None:
    """Reject weights no vehicle in the fleet can carry."""
    limit = profile_for(VehicleType.SHIP).capacity_kg
    if weight is not None and weight > limit:
        raise CapacityExceededError({"weight": [f"Shipment weight {weight}kg exceeds the largest capacity of {limit}kg"]})


def estimate_delivery_days(km: float, urgency) -> int:
    """Base days for the urgency plus one day per full 1000 km."""
    return BASE_DELIVERY_DAYS[Urgency(urgency)] + int(km // 1000)


def _await_ship(shipment: Shipment, urgency: Urgency, km: float) -> FactoryResult:
    strategy = profile_for(VehicleType.SHIP).pricing
    shipment.await_vehicle(VehicleType.SHIP.value)
    shipment.calculate_cost(strategy)

    days = estimate_delivery_days(km, urgency)
    shipment.set_estimated_delivery(datetime.now(UTC) + timedelta(days=days))

    logger.info(
        "Shipment awaiting ship",
        shipment_id=str(shipment.id),
        weight=shipment.weight,
        cost=round(shipment.cost, 2),
        estimated_days=days,
    )
    return FactoryResult(shipment=shipment, vehicle=None, strategy=strategy, estimated_days=days)


def fit_pending(shipment: Shipment, urgency=None) -> FactoryResult:
    """Provision, bind and price a vehicle for an existing PENDING shipment.

    Shared by the synchronous creation path and the job worker so both end
    with the same shipment: ASSIGNED to a new drone or truck, or still
    PENDING with a SHIP recommendation when it is too heavy for a truck.
    """
    urgency = Urgency(urgency or shipment.urgency)
    km = shipment.distance_km
    if needs_ship(shipment.weight):
        return _await_ship(shipment, urgency, km)

    vehicle_type = select_vehicle_type(shipment.weight, urgency, km)
    strategy = profile_for(vehicle_type).pricing

    vehicle = Vehicle.provision(vehicle_type, position=shipment.origin)
    shipment.assign_vehicle(vehicle)
    vehicle.bind(str(shipment.id))
    shipment.calculate_cost(strategy)

    days = estimate_delivery_days(km, urgency)
    shipment.set_estimated_delivery(datetime.now(UTC) + timedelta(days=days))

    logger.info(
        "Shipment fitted with vehicle",
        shipment_id=str(shipment.id),
        vehicle_id=str(vehicle.id),
        vehicle_type=vehicle_type.value,
        strategy=strategy.value,
        cost=round(shipment.cost, 2),
        estimated_days=days,
    )
    return FactoryResult(shipment=shipment, vehicle=vehicle, strategy=strategy, estimated_days=days)


def create(
    customer_id: str,
    weight: float,
    origin: Location,
    destination: Location,
    urgency: str = Urgency.STANDARD.value,
    shipment_type: str = ShipmentType.STANDARD.value,
    insurance_value: float | None = None,
    tracking_id: str | None = None,
) -> FactoryResult:
    """Build a new shipment and, unless it waits for a ship, the vehicle that will carry it.

    All validation happens before anything else is built, so a rejected
    request leaves no vehicle behind.
    """
    ensure_carriable(weight)
    shipment = Shipment.create(
        customer_id=customer_id,
        weight=weight,
        origin=origin,
        destination=destination,
        shipment_type=shipment_type,
        urgency=urgency,
        tracking_id=tracking_id,
    )
    if insurance_value:
        shipment.add_insurance(insurance_value)
    return fit_pending(shipment, urgency)

