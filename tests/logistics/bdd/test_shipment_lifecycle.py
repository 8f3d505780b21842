"""BDD tests for the shipment lifecycle."""

from logistics.shipment.shipment import Shipment
from logistics.vehicle.vehicle import Vehicle, VehicleType
from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, when

scenarios("features/shipment_lifecycle.feature")


def _attempt(action, error):
    try:
        action()
    except ValidationError as exc:
        error["exc"] = exc


@when("a truck is assigned to the shipment", target_fixture="shipment")
def assign_truck(shipment: Shipment, error):
    _attempt(lambda: shipment.assign_vehicle(Vehicle.provision(VehicleType.TRUCK)), error)
    return shipment


@when("a drone is assigned to the shipment", target_fixture="shipment")
def assign_drone(shipment: Shipment, error):
    _attempt(lambda: shipment.assign_vehicle(Vehicle.provision(VehicleType.DRONE)), error)
    return shipment


@when("the shipment is dispatched", target_fixture="shipment")
def dispatch(shipment: Shipment):
    shipment.dispatch()
    return shipment


@when("the shipment is delivered", target_fixture="shipment")
def deliver(shipment: Shipment):
    shipment.mark_delivered()
    return shipment


@when(
    parsers.cfparse('the shipment is cancelled with reason "{reason}"'),
    target_fixture="shipment",
)
def cancel(shipment: Shipment, reason, error):
    _attempt(lambda: shipment.cancel(reason), error)
    return shipment
