"""Shipment creation — commands and handlers.

Two entry points share one outcome:

* ``CreateShipment`` builds, fits and persists everything in one unit of work.
* ``RegisterPendingShipment`` stores a PENDING shipment for the job worker,
  which later completes it with ``FinalizePendingShipment``.
"""

import json

import structlog
from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shared.location import Location
from logistics.shipment import factory
from logistics.shipment.shipment import Shipment, ShipmentStatus
from logistics.user.registration import resolve_customer
from logistics.vehicle.vehicle import Vehicle

logger = structlog.get_logger(__name__)


@logistics.command(part_of="Shipment")
class CreateShipment:
    """Create a shipment and provision the vehicle that will carry it."""

    customer_id = Identifier(required=True)
    weight = Float(required=True)
    origin = Text(required=True)  # JSON Location
    destination = Text(required=True)  # JSON Location
    urgency = String(max_length=20, default="standard")
    shipment_type = String(max_length=20, default="STANDARD")
    insurance_value = Float()
    tracking_id = String(max_length=50)


@logistics.command(part_of="Shipment")
class RegisterPendingShipment:
    """Store a PENDING shipment whose vehicle is fitted asynchronously."""

    customer_id = Identifier(required=True)
    weight = Float(required=True)
    origin = Text(required=True)  # JSON Location
    destination = Text(required=True)  # JSON Location
    urgency = String(max_length=20, default="standard")
    shipment_type = String(max_length=20, default="STANDARD")
    insurance_value = Float()
    tracking_id = String(max_length=50)


@logistics.command(part_of="Shipment")
class FinalizePendingShipment:
    """Fit a vehicle to a PENDING shipment (job worker path)."""

    shipment_id = Identifier(required=True)
    urgency = String(max_length=20)


def _location(raw) -> Location:
    data = json.loads(raw) if isinstance(raw, str) else raw
    return Location.from_dict(data)


@logistics.command_handler(part_of=Shipment)
class ShipmentCreationHandler:
    @handle(CreateShipment)
    def create_shipment(self, command):
        resolve_customer(command.customer_id)
        result = factory.create(
            customer_id=command.customer_id,
            weight=command.weight,
            origin=_location(command.origin),
            destination=_location(command.destination),
            urgency=command.urgency or "standard",
            shipment_type=command.shipment_type or "STANDARD",
            insurance_value=command.insurance_value,
            tracking_id=command.tracking_id,
        )
        if result.vehicle is not None:
            current_domain.repository_for(Vehicle).add(result.vehicle)
        current_domain.repository_for(Shipment).add(result.shipment)
        return str(result.shipment.id)

    @handle(RegisterPendingShipment)
    def register_pending_shipment(self, command):
        resolve_customer(command.customer_id)
        factory.ensure_carriable(command.weight)
        shipment = Shipment.create(
            customer_id=command.customer_id,
            weight=command.weight,
            origin=_location(command.origin),
            destination=_location(command.destination),
            shipment_type=command.shipment_type or "STANDARD",
            urgency=command.urgency or "standard",
            tracking_id=command.tracking_id,
        )
        if command.insurance_value:
            shipment.add_insurance(command.insurance_value)
        current_domain.repository_for(Shipment).add(shipment)
        return str(shipment.id)

    @handle(FinalizePendingShipment)
    def finalize_pending_shipment(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get(command.shipment_id)
        if ShipmentStatus(shipment.status) != ShipmentStatus.PENDING or shipment.recommended_vehicle_type:
            # Redelivered job: the shipment was already fitted, cancelled or left for a ship.
            logger.info(
                "Pending shipment already finalised",
                shipment_id=str(shipment.id),
                status=shipment.status,
            )
            return str(shipment.id)

        result = factory.fit_pending(shipment, command.urgency or shipment.urgency)
        if result.vehicle is not None:
            current_domain.repository_for(Vehicle).add(result.vehicle)
        repo.add(result.shipment)
        return str(result.shipment.id)
