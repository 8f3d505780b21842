"""Shipment dispatch — the assigned vehicle leaves with the shipment."""

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shipment.shipment import Shipment
from logistics.vehicle.vehicle import Vehicle


@logistics.command(part_of="Shipment")
class DispatchShipment:
    """Move an ASSIGNED shipment and its vehicle into transit."""

    shipment_id = Identifier(required=True)


@logistics.command_handler(part_of=Shipment)
class DispatchHandler:
    @handle(DispatchShipment)
    def dispatch_shipment(self, command):
        shipment_repo = current_domain.repository_for(Shipment)
        vehicle_repo = current_domain.repository_for(Vehicle)
        shipment = shipment_repo.get(command.shipment_id)
        if not shipment.assigned_vehicle_id:
            raise ValidationError({"assigned_vehicle_id": ["Shipment has no vehicle to dispatch with"]})
        vehicle = vehicle_repo.get(shipment.assigned_vehicle_id)

        shipment.dispatch(vehicle)
        vehicle.depart(start=shipment.origin)

        vehicle_repo.add(vehicle)
        shipment_repo.add(shipment)
