"""Vehicle upkeep — maintenance windows and refuelling."""

from protean import handle
from protean.fields import Float, Identifier
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.vehicle.vehicle import Vehicle


@logistics.command(part_of="Vehicle")
class StartMaintenance:
    vehicle_id = Identifier(required=True)


@logistics.command(part_of="Vehicle")
class ReturnVehicleToService:
    vehicle_id = Identifier(required=True)


@logistics.command(part_of="Vehicle")
class RefuelVehicle:
    vehicle_id = Identifier(required=True)
    amount_pct = Float(required=True)


@logistics.command_handler(part_of=Vehicle)
class MaintenanceHandler:
    @handle(StartMaintenance)
    def start_maintenance(self, command):
        repo = current_domain.repository_for(Vehicle)
        vehicle = repo.get(command.vehicle_id)
        vehicle.start_maintenance()
        repo.add(vehicle)

    @handle(ReturnVehicleToService)
    def return_to_service(self, command):
        repo = current_domain.repository_for(Vehicle)
        vehicle = repo.get(command.vehicle_id)
        vehicle.return_to_service()
        repo.add(vehicle)

    @handle(RefuelVehicle)
    def refuel(self, command):
        repo = current_domain.repository_for(Vehicle)
        vehicle = repo.get(command.vehicle_id)
        vehicle.refuel(command.amount_pct)
        repo.add(vehicle)
        return vehicle.current_fuel_pct
