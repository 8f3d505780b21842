"""Shared BDD fixtures and step definitions for the Logistics domain."""

import pytest
from logistics.shared.location import Location
from logistics.shipment.events import (
    PaymentProcessed,
    RefundIssued,
    ShipmentCancelled,
    ShipmentCreated,
    ShipmentDelivered,
    ShipmentStatusChanged,
    VehicleAssigned,
)
from logistics.shipment.shipment import Shipment
from logistics.vehicle.vehicle import Vehicle, VehicleType
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

_SHIPMENT_EVENT_CLASSES = {
    "ShipmentCreated": ShipmentCreated,
    "ShipmentStatusChanged": ShipmentStatusChanged,
    "VehicleAssigned": VehicleAssigned,
    "ShipmentDelivered": ShipmentDelivered,
    "ShipmentCancelled": ShipmentCancelled,
    "PaymentProcessed": PaymentProcessed,
    "RefundIssued": RefundIssued,
}

_ORIGIN = Location(lat=40.7128, lng=-74.0060, city="New York")
_DESTINATION = Location(lat=42.3601, lng=-71.0589, city="Boston")


def _pending(weight=25.0):
    return Shipment.create(
        customer_id="cust-bdd",
        weight=weight,
        origin=_ORIGIN,
        destination=_DESTINATION,
    )


def _assign(shipment, vehicle_type=VehicleType.TRUCK):
    vehicle = Vehicle.provision(vehicle_type, position=_ORIGIN)
    shipment.assign_vehicle(vehicle)
    vehicle.bind(str(shipment.id))
    return vehicle


@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given(parsers.cfparse("a pending shipment weighing {weight:g} kg"), target_fixture="shipment")
def pending_shipment(weight):
    shipment = _pending(weight)
    shipment._events.clear()
    return shipment


@given("an assigned shipment", target_fixture="shipment")
def assigned_shipment():
    shipment = _pending()
    _assign(shipment)
    shipment._events.clear()
    return shipment


@given("a delivered shipment", target_fixture="shipment")
def delivered_shipment():
    shipment = _pending()
    vehicle = _assign(shipment)
    shipment.dispatch(vehicle)
    shipment.mark_delivered()
    shipment._events.clear()
    return shipment


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the shipment status is "{status}"'))
def shipment_status_is(shipment, status):
    assert shipment.status == status


@then("the shipment action fails with a validation error")
def shipment_action_fails(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse("a {event_type} event is raised"))
def shipment_event_raised(shipment, event_type):
    event_cls = _SHIPMENT_EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in shipment._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in shipment._events]}"


@then(parsers.cfparse("the shipment has {count:d} tracking entries"))
def shipment_has_n_tracking_entries(shipment, count):
    assert len(shipment.history) == count
