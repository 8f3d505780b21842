"""Application tests for the fleet simulation tick."""

import json
from unittest.mock import patch

import pytest
from logistics.fleet.simulation import AdvanceVehicle, SimulationAction
from logistics.shared.errors import TransientStoreError
from logistics.shared.location import Location
from logistics.shipment.assignment import AssignShipmentToVehicle
from logistics.shipment.creation import RegisterPendingShipment
from logistics.shipment.dispatch import DispatchShipment
from logistics.shipment.shipment import Shipment, ShipmentStatus
from logistics.vehicle.provisioning import ProvisionVehicle
from logistics.vehicle.vehicle import Vehicle, VehicleStatus
from protean import current_domain


def _in_transit(customer_id, origin, destination, vehicle_type="TRUCK", weight=10.0):
    """Create a shipment carried by a freshly provisioned vehicle and dispatch it."""
    shipment_id = current_domain.process(
        RegisterPendingShipment(
            customer_id=customer_id,
            weight=weight,
            origin=json.dumps(origin),
            destination=json.dumps(destination),
        ),
        asynchronous=False,
    )
    vehicle_id = current_domain.process(
        ProvisionVehicle(vehicle_type=vehicle_type, position=json.dumps(origin)),
        asynchronous=False,
    )
    current_domain.process(AssignShipmentToVehicle(shipment_id=shipment_id, vehicle_id=vehicle_id), asynchronous=False)
    current_domain.process(DispatchShipment(shipment_id=shipment_id), asynchronous=False)
    return shipment_id, vehicle_id


def _shipment(shipment_id):
    return current_domain.repository_for(Shipment).get(shipment_id)


def _vehicle(vehicle_id):
    return current_domain.repository_for(Vehicle).get(vehicle_id)


class TestArrival:
    def test_vehicle_next_to_destination_delivers_in_one_tick(self, runtime, customer_id):
        shipment_id, vehicle_id = _in_transit(
            customer_id,
            origin={"lat": 40.0, "lng": -74.0},
            destination={"lat": 40.0, "lng": -74.001},
        )
        report = runtime.simulator.tick()

        assert report.vehicles_updated == 1
        assert report.updates[0]["action"] == SimulationAction.DELIVERED
        assert report.updates[0]["shipment_id"] == shipment_id

        shipment = _shipment(shipment_id)
        vehicle = _vehicle(vehicle_id)
        assert shipment.status == ShipmentStatus.DELIVERED.value
        assert vehicle.status == VehicleStatus.IDLE.value
        assert vehicle.current_shipment_id is None
        assert vehicle.position == Location(lat=40.0, lng=-74.001)
        assert vehicle.current_fuel_pct == pytest.approx(95.0)

    def test_delivery_is_broadcast(self, runtime, customer_id, captured):
        _in_transit(customer_id, {"lat": 10.0, "lng": 10.0}, {"lat": 10.2, "lng": 10.0})
        captured.clear()
        runtime.simulator.tick()
        types = [e.type.value for e in captured]
        assert types == ["vehicle_update", "shipment_update"]
        assert captured[1].data["status"] == ShipmentStatus.DELIVERED.value


class TestMovement:
    def test_far_vehicle_moves_by_its_speed(self, runtime, customer_id):
        _, vehicle_id = _in_transit(customer_id, {"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 10.0})
        report = runtime.simulator.tick()

        update = report.updates[0]
        assert update["action"] == SimulationAction.MOVED
        assert update["position"]["lng"] == pytest.approx(0.3)
        vehicle = _vehicle(vehicle_id)
        assert vehicle.position.lng == pytest.approx(0.3)
        assert vehicle.current_fuel_pct == pytest.approx(99.5)

    def test_shipment_tracks_last_point(self, runtime, customer_id):
        shipment_id, _ = _in_transit(customer_id, {"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 10.0})
        runtime.simulator.tick()
        shipment = _shipment(shipment_id)
        assert shipment.status == ShipmentStatus.IN_TRANSIT.value
        assert shipment.current_location().lng == pytest.approx(0.3)

    def test_drone_is_faster_than_ship(self, runtime, customer_id):
        _in_transit(customer_id, {"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 10.0}, vehicle_type="DRONE", weight=1.0)
        _in_transit(customer_id, {"lat": 5.0, "lng": 0.0}, {"lat": 5.0, "lng": 10.0}, vehicle_type="SHIP", weight=1.0)
        report = runtime.simulator.tick()
        steps = sorted(u["position"]["lng"] for u in report.updates)
        assert steps == [pytest.approx(0.2), pytest.approx(0.5)]

    def test_repeated_ticks_reach_destination(self, runtime, customer_id):
        shipment_id, _ = _in_transit(customer_id, {"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 1.2})
        for _ in range(10):
            runtime.simulator.tick()
        assert _shipment(shipment_id).status == ShipmentStatus.DELIVERED.value

    def test_history_only_records_transitions(self, runtime, customer_id):
        shipment_id, _ = _in_transit(customer_id, {"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 5.0})
        for _ in range(3):
            runtime.simulator.tick()
        statuses = [e.status for e in _shipment(shipment_id).history]
        assert statuses == ["PENDING", "ASSIGNED", "IN_TRANSIT"]


class TestTickScope:
    def test_idle_and_assigned_vehicles_are_ignored(self, runtime, customer_id):
        current_domain.process(ProvisionVehicle(vehicle_type="TRUCK"), asynchronous=False)
        report = runtime.simulator.tick()
        assert report.vehicles_updated == 0
        assert report.updates == []

    def test_tick_covers_more_vehicles_than_one_page(self, runtime, customer_id):
        far = {"lat": 10.0, "lng": 10.0}
        for _ in range(105):
            _in_transit(customer_id, origin={"lat": 40.0, "lng": -74.0}, destination=far)
        assert runtime.simulator.tick().vehicles_updated == 105

    def test_advance_vehicle_not_in_transit_returns_none(self):
        vehicle_id = current_domain.process(ProvisionVehicle(vehicle_type="TRUCK"), asynchronous=False)
        assert current_domain.process(AdvanceVehicle(vehicle_id=vehicle_id), asynchronous=False) is None

    def test_one_failure_does_not_stop_the_tick(self, runtime, customer_id):
        _, good_id = _in_transit(customer_id, {"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 10.0})
        _, bad_id = _in_transit(customer_id, {"lat": 5.0, "lng": 0.0}, {"lat": 5.0, "lng": 10.0})

        original = Vehicle.move_to

        def failing_move(vehicle, lat, lng, fuel_cost=0.5):
            if str(vehicle.id) == bad_id:
                raise RuntimeError("GPS fault")
            return original(vehicle, lat, lng, fuel_cost)

        with patch.object(Vehicle, "move_to", failing_move):
            report = runtime.simulator.tick()

        assert [u["vehicle_id"] for u in report.updates] == [good_id]
        assert report.failures == [{"vehicle_id": bad_id, "error": "GPS fault"}]
        assert _vehicle(bad_id).position.lng == pytest.approx(0.0)

    def test_transient_failure_is_retried(self, runtime, customer_id):
        _in_transit(customer_id, {"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 10.0})
        original = Vehicle.move_to
        calls = {"n": 0}

        def flaky_move(vehicle, lat, lng, fuel_cost=0.5):
            calls["n"] += 1
            if calls["n"] == 1:
                raise TransientStoreError("connection reset")
            return original(vehicle, lat, lng, fuel_cost)

        with patch.object(Vehicle, "move_to", flaky_move):
            report = runtime.simulator.tick()

        assert report.vehicles_updated == 1
        assert report.failures == []


class TestStatus:
    def test_lists_active_deliveries(self, runtime, customer_id):
        _, vehicle_id = _in_transit(customer_id, {"lat": 0.0, "lng": 0.0}, {"lat": 0.0, "lng": 10.0})
        status = runtime.simulator.status()
        assert status["active_deliveries"] == 1
        assert status["vehicles"][0]["id"] == vehicle_id
        assert status["vehicles"][0]["destination"] == {"lat": 0.0, "lng": 10.0}

    def test_empty_fleet(self, runtime):
        assert runtime.simulator.status() == {"active_deliveries": 0, "vehicles": []}
