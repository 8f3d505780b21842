"""Shipment cancellation — command and handler.

Cancelling a shipment that already has a vehicle releases that vehicle.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shipment.shipment import Shipment
from logistics.vehicle.vehicle import Vehicle, VehicleStatus


@logistics.command(part_of="Shipment")
class CancelShipment:
    shipment_id = Identifier(required=True)
    reason = String(max_length=500)


@logistics.command_handler(part_of=Shipment)
class CancellationHandler:
    @handle(CancelShipment)
    def cancel_shipment(self, command):
        shipment_repo = current_domain.repository_for(Shipment)
        shipment = shipment_repo.get(command.shipment_id)
        shipment.cancel(command.reason)

        if shipment.assigned_vehicle_id:
            vehicle_repo = current_domain.repository_for(Vehicle)
            vehicle = vehicle_repo.get(shipment.assigned_vehicle_id)
            if (
                VehicleStatus(vehicle.status) in (VehicleStatus.ASSIGNED, VehicleStatus.IN_TRANSIT)
                and str(vehicle.current_shipment_id) == str(shipment.id)
            ):
                vehicle.release()
                vehicle_repo.add(vehicle)

        shipment_repo.add(shipment)
