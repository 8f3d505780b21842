"""Fleet simulation — advances every vehicle in transit by one tick.

Triggered externally (the simulation endpoint, a scheduler or a test). Each
vehicle is advanced by its own ``AdvanceVehicle`` command, in its own unit of
work and under its own locks, so one vehicle failing never blocks the rest.

Per tick, for a vehicle with planar distance ``d`` (degrees) to its
shipment's destination:

    d < 0.5   → snap to destination, vehicle IDLE, shipment DELIVERED, fuel -5
    otherwise → move ``speed / d`` of the way, fuel -0.5

Fuel never drops below 10%.
"""

from dataclasses import dataclass, field

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.realtime.bus import EventBus
from logistics.shared.geo import planar_distance, step_toward
from logistics.shared.location import Location
from logistics.shared.locks import EntityLocks
from logistics.shared.retry import with_retry
from logistics.shipment.shipment import Shipment
from logistics.vehicle.vehicle import DEFAULT_SPEED_DEG_PER_TICK, Vehicle, VehicleStatus

logger = structlog.get_logger(__name__)

ARRIVAL_THRESHOLD_DEG = 0.5


class SimulationAction:
    MOVED = "MOVED"
    DELIVERED = "DELIVERED"


@logistics.command(part_of="Vehicle")
class AdvanceVehicle:
    """Move one in-transit vehicle a single simulation step."""

    vehicle_id = Identifier(required=True)


@logistics.command_handler(part_of=Vehicle)
class FleetSimulationHandler:
    @handle(AdvanceVehicle)
    def advance_vehicle(self, command):
        vehicle_repo = current_domain.repository_for(Vehicle)
        shipment_repo = current_domain.repository_for(Shipment)

        vehicle = vehicle_repo.get(command.vehicle_id)
        if VehicleStatus(vehicle.status) != VehicleStatus.IN_TRANSIT or not vehicle.current_shipment_id:
            return None
        shipment = shipment_repo.get(vehicle.current_shipment_id)

        destination = shipment.destination
        position = vehicle.position or shipment.origin
        distance = planar_distance(position, destination)

        if distance < ARRIVAL_THRESHOLD_DEG:
            vehicle.arrive(destination)
            shipment.mark_delivered()
            action = SimulationAction.DELIVERED
        else:
            speed = vehicle.speed_deg_per_tick or DEFAULT_SPEED_DEG_PER_TICK
            lat, lng = step_toward(position, destination, speed)
            vehicle.move_to(lat, lng)
            shipment.record_position(Location(lat=lat, lng=lng))
            action = SimulationAction.MOVED

        vehicle_repo.add(vehicle)
        shipment_repo.add(shipment)
        return {
            "vehicle_id": str(vehicle.id),
            "license_id": vehicle.license_id,
            "vehicle_type": vehicle.vehicle_type,
            "vehicle_status": vehicle.status,
            "shipment_id": str(shipment.id),
            "tracking_id": shipment.tracking_id,
            "shipment_status": shipment.status,
            "action": action,
            "position": vehicle.position.as_dict(),
            "fuel_pct": vehicle.current_fuel_pct,
        }


@dataclass
class TickReport:
    vehicles_updated: int = 0
    updates: list[dict] = field(default_factory=list)
    failures: list[dict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "vehicles_updated": self.vehicles_updated,
            "updates": self.updates,
            "failures": self.failures,
        }


class FleetSimulator:
    def __init__(
        self,
        locks: EntityLocks,
        bus: EventBus,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self.locks = locks
        self.bus = bus
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay

    def _vehicles_in_transit(self) -> list:
        repo = current_domain.repository_for(Vehicle)
        return repo._dao.query.filter(status=VehicleStatus.IN_TRANSIT.value).limit(None).all().items

    def tick(self) -> TickReport:
        report = TickReport()
        vehicles = [v for v in self._vehicles_in_transit() if v.current_shipment_id]
        logger.info("Simulation tick started", vehicles_in_transit=len(vehicles))

        for vehicle in vehicles:
            vehicle_id = str(vehicle.id)
            try:
                update = self._advance(vehicle_id, str(vehicle.current_shipment_id))
            except Exception as exc:
                logger.error("Failed to advance vehicle", vehicle_id=vehicle_id, error=str(exc))
                report.failures.append({"vehicle_id": vehicle_id, "error": str(exc)})
                continue
            if update is None:
                continue
            report.updates.append(_public_update(update))
            self._publish(update)

        report.vehicles_updated = len(report.updates)
        logger.info(
            "Simulation tick complete",
            vehicles_updated=report.vehicles_updated,
            failures=len(report.failures),
        )
        return report

    def _advance(self, vehicle_id: str, shipment_id: str) -> dict | None:
        with self.locks.hold(self.locks.vehicle(vehicle_id), self.locks.shipment(shipment_id)):
            return with_retry(
                current_domain.process,
                AdvanceVehicle(vehicle_id=vehicle_id),
                asynchronous=False,
                attempts=self.retry_attempts,
                delay=self.retry_delay,
            )

    def _publish(self, update: dict) -> None:
        self.bus.vehicle_update(
            {
                "id": update["vehicle_id"],
                "license_id": update["license_id"],
                "type": update["vehicle_type"],
                "status": update["vehicle_status"],
                "position": update["position"],
                "current_fuel_pct": update["fuel_pct"],
            }
        )
        if update["action"] == SimulationAction.DELIVERED:
            self.bus.shipment_update(
                {
                    "id": update["shipment_id"],
                    "tracking_id": update["tracking_id"],
                    "status": update["shipment_status"],
                }
            )

    def status(self) -> dict:
        """Snapshot of the deliveries currently under way."""
        shipment_repo = current_domain.repository_for(Shipment)
        vehicles = self._vehicles_in_transit()
        snapshot = []
        for vehicle in vehicles:
            destination = None
            if vehicle.current_shipment_id:
                shipment = shipment_repo.get(vehicle.current_shipment_id)
                destination = shipment.destination.as_dict()
            snapshot.append(
                {
                    "id": str(vehicle.id),
                    "license_id": vehicle.license_id,
                    "type": vehicle.vehicle_type,
                    "position": vehicle.position.as_dict() if vehicle.position else None,
                    "current_fuel_pct": vehicle.current_fuel_pct,
                    "destination": destination,
                }
            )
        return {"active_deliveries": len(snapshot), "vehicles": snapshot}


def _public_update(update: dict) -> dict:
    result = {
        "vehicle_id": update["vehicle_id"],
        "action": update["action"],
        "fuel_pct": update["fuel_pct"],
    }
    if update["action"] == SimulationAction.DELIVERED:
        result["shipment_id"] = update["shipment_id"]
    else:
        result["position"] = update["position"]
    return result
