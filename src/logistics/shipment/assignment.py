"""Shipment assignment — bind a PENDING shipment to an existing vehicle.

Used for vehicles provisioned outside the factory, such as ships.
"""

from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shipment.shipment import Shipment
from logistics.vehicle.vehicle import Vehicle


@logistics.command(part_of="Shipment")
class AssignShipmentToVehicle:
    shipment_id = Identifier(required=True)
    vehicle_id = Identifier(required=True)


@logistics.command_handler(part_of=Shipment)
class AssignmentHandler:
    @handle(AssignShipmentToVehicle)
    def assign_shipment_to_vehicle(self, command):
        shipment_repo = current_domain.repository_for(Shipment)
        vehicle_repo = current_domain.repository_for(Vehicle)
        shipment = shipment_repo.get(command.shipment_id)
        vehicle = vehicle_repo.get(command.vehicle_id)

        # Shipment checks capacity and status before the vehicle is touched
        shipment.assign_vehicle(vehicle)
        vehicle.bind(str(shipment.id))
        shipment.calculate_cost(vehicle.pricing_strategy)

        vehicle_repo.add(vehicle)
        shipment_repo.add(shipment)
