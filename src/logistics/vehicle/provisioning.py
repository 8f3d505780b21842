"""Vehicle provisioning — command and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shared.location import Location
from logistics.vehicle.vehicle import Vehicle, VehicleType


@logistics.command(part_of="Vehicle")
class ProvisionVehicle:
    """Add a vehicle of the given variant to the fleet."""

    vehicle_type = String(required=True, max_length=20)
    position = Text()  # JSON Location
    license_id = String(max_length=50)


@logistics.command_handler(part_of=Vehicle)
class ProvisionVehicleHandler:
    @handle(ProvisionVehicle)
    def provision_vehicle(self, command):
        vehicle_type = (command.vehicle_type or "").upper()
        if vehicle_type not in {t.value for t in VehicleType}:
            raise ValidationError({"vehicle_type": [f"Unknown vehicle type: {command.vehicle_type!r}"]})

        position = None
        if command.position:
            raw = json.loads(command.position) if isinstance(command.position, str) else command.position
            position = Location.from_dict(raw)

        vehicle = Vehicle.provision(vehicle_type, position=position, license_id=command.license_id)
        current_domain.repository_for(Vehicle).add(vehicle)
        return str(vehicle.id)
