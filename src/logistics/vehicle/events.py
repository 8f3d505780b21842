"""Vehicle domain events — facts about fleet state changes."""

from protean.fields import DateTime, Float, Identifier, String

from logistics.domain import logistics


@logistics.event(part_of="Vehicle")
class VehicleProvisioned:
    """A new vehicle joined the fleet."""

    __version__ = 1

    vehicle_id = Identifier(required=True)
    license_id = String(required=True)
    vehicle_type = String(required=True)
    capacity_kg = Float(required=True)
    provisioned_at = DateTime(required=True)


@logistics.event(part_of="Vehicle")
class VehicleBound:
    """A vehicle was bound to a shipment."""

    __version__ = 1

    vehicle_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    bound_at = DateTime(required=True)


@logistics.event(part_of="Vehicle")
class VehicleDeparted:
    """A bound vehicle left with its shipment."""

    __version__ = 1

    vehicle_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    departed_at = DateTime(required=True)


@logistics.event(part_of="Vehicle")
class VehicleMoved:
    """The simulation advanced a vehicle toward its destination."""

    __version__ = 1

    vehicle_id = Identifier(required=True)
    lat = Float(required=True)
    lng = Float(required=True)
    fuel_pct = Float(required=True)
    moved_at = DateTime(required=True)


@logistics.event(part_of="Vehicle")
class VehicleArrived:
    """A vehicle reached its shipment's destination and became idle."""

    __version__ = 1

    vehicle_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    lat = Float(required=True)
    lng = Float(required=True)
    arrived_at = DateTime(required=True)


@logistics.event(part_of="Vehicle")
class VehicleReleased:
    """A vehicle was released from its shipment without delivering it."""

    __version__ = 1

    vehicle_id = Identifier(required=True)
    shipment_id = Identifier(required=True)
    released_at = DateTime(required=True)


@logistics.event(part_of="Vehicle")
class VehicleMaintenanceStarted:
    __version__ = 1

    vehicle_id = Identifier(required=True)
    started_at = DateTime(required=True)


@logistics.event(part_of="Vehicle")
class VehicleReturnedToService:
    __version__ = 1

    vehicle_id = Identifier(required=True)
    returned_at = DateTime(required=True)


@logistics.event(part_of="Vehicle")
class VehicleRefueled:
    __version__ = 1

    vehicle_id = Identifier(required=True)
    added_pct = Float(required=True)
    fuel_pct = Float(required=True)
    refueled_at = DateTime(required=True)
