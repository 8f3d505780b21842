"""Fleet statistics — counts and revenue for the admin dashboard.

Counts are issued as COUNT queries and revenue reads only the ``cost``
column, so none of these load shipments with their tracking, note and
ledger children.
"""

from protean.utils.globals import current_domain

from logistics.shipment.shipment import Shipment
from logistics.vehicle.vehicle import Vehicle, VehicleStatus, VehicleType

RECENT_SHIPMENTS = 10


def shipment_count() -> int:
    return current_domain.repository_for(Shipment)._dao.query.count()


def active_vehicle_count(vehicle_type) -> int:
    """Vehicles of ``vehicle_type`` that are not in maintenance."""
    query = current_domain.repository_for(Vehicle)._dao.query
    return (
        query.filter(vehicle_type=VehicleType(vehicle_type).value)
        .exclude(status=VehicleStatus.MAINTENANCE.value)
        .count()
    )


def revenue() -> float:
    records = current_domain.repository_for(Shipment)._dao.query.only("cost").limit(None).all(with_total=False)
    return round(sum(r.cost or 0.0 for r in records), 2)


def recent_shipments(limit: int = RECENT_SHIPMENTS) -> list[dict]:
    query = current_domain.repository_for(Shipment)._dao.query
    return [s.to_summary() for s in query.order_by("-created_at").limit(limit).all()]


def fleet_stats() -> dict:
    return {
        "total_shipments": shipment_count(),
        "active_drones": active_vehicle_count(VehicleType.DRONE),
        "active_trucks": active_vehicle_count(VehicleType.TRUCK),
        "active_ships": active_vehicle_count(VehicleType.SHIP),
        "revenue": revenue(),
        "recent_shipments": recent_shipments(),
    }
