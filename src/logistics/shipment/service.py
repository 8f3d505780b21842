"""Shipment application service.

Wraps command processing with what the domain layer does not own: per-entity
locking around each unit of work, bounded retries for transient store
failures, the choice between asynchronous and synchronous creation, and
real-time broadcasts once changes are committed.
"""

import json
from dataclasses import dataclass

import structlog
from protean.utils.globals import current_domain

from logistics.fleet.stats import fleet_stats, shipment_count
from logistics.jobs.job import PROCESS_SHIPMENT
from logistics.runtime import LogisticsRuntime
from logistics.shared.errors import DispatchUnavailableError, JobHandoffError
from logistics.shared.location import Location
from logistics.shared.retry import with_retry
from logistics.shipment.acceptance import AcceptDeliveryJob, available_jobs, current_assignment
from logistics.shipment.assignment import AssignShipmentToVehicle
from logistics.shipment.cancellation import CancelShipment
from logistics.shipment.creation import CreateShipment, FinalizePendingShipment, RegisterPendingShipment
from logistics.shipment.dispatch import DispatchShipment
from logistics.shipment.management import AddInsurance, AddShipmentNote, RecordSignature
from logistics.shipment.payment import IssueRefund, ProcessPayment
from logistics.shipment.shipment import Shipment
from logistics.user.registration import resolve_admin, resolve_operator
from logistics.vehicle.provisioning import ProvisionVehicle
from logistics.vehicle.vehicle import Vehicle

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CreationOutcome:
    shipment: dict
    job_id: str | None = None

    @property
    def queued(self) -> bool:
        return self.job_id is not None


class ShipmentService:
    def __init__(self, runtime: LogisticsRuntime) -> None:
        self.runtime = runtime
        self.locks = runtime.locks
        self.bus = runtime.bus
        self.dispatcher = runtime.dispatcher

    def _process(self, command):
        settings = self.runtime.settings
        return with_retry(
            current_domain.process,
            command,
            asynchronous=False,
            attempts=settings.retry_attempts,
            delay=settings.retry_delay_seconds,
        )

    def _shipment(self, shipment_id: str) -> Shipment:
        return current_domain.repository_for(Shipment).get(shipment_id)

    def _vehicle(self, vehicle_id: str) -> Vehicle:
        return current_domain.repository_for(Vehicle).get(vehicle_id)

    # -------------------------------------------------------------------
    # Creation
    # -------------------------------------------------------------------
    def create_shipment(
        self,
        customer_id: str,
        weight: float,
        origin: dict,
        destination: dict,
        urgency: str = "standard",
        shipment_type: str = "STANDARD",
        insurance_value: float | None = None,
    ) -> CreationOutcome:
        """Create a shipment asynchronously when jobs can be dispatched, else inline."""
        request = {
            "customer_id": customer_id,
            "weight": weight,
            "origin": json.dumps(Location.from_dict(origin).as_dict()),
            "destination": json.dumps(Location.from_dict(destination).as_dict()),
            "urgency": urgency,
            "shipment_type": shipment_type,
            "insurance_value": insurance_value,
        }
        try:
            return self._create_async(request)
        except DispatchUnavailableError:
            return self._create_sync(request)

    def _create_sync(self, request: dict) -> CreationOutcome:
        shipment_id = self._process(CreateShipment(**request))
        summary = self._shipment(shipment_id).to_summary()
        logger.info(
            "Shipment created",
            shipment_id=shipment_id,
            tracking_id=summary["tracking_id"],
            vehicle_id=summary["assigned_vehicle_id"],
        )
        self.bus.new_shipment(summary)
        if summary["assigned_vehicle_id"]:
            self.bus.assignment_update(
                {"shipment_id": shipment_id, "vehicle_id": summary["assigned_vehicle_id"], "status": summary["status"]}
            )
        self.bus.stats_update({"total_shipments": shipment_count()})
        return CreationOutcome(shipment=summary)

    def _create_async(self, request: dict) -> CreationOutcome:
        if not self.dispatcher.is_available():
            raise DispatchUnavailableError("Asynchronous job dispatch is not configured")

        shipment_id = self._process(RegisterPendingShipment(**request))
        shipment = self._shipment(shipment_id)
        data = {
            "shipment_id": shipment_id,
            "customer_id": str(shipment.customer_id),
            "weight": shipment.weight,
            "origin": shipment.origin.as_dict(),
            "destination": shipment.destination.as_dict(),
            "urgency": shipment.urgency,
        }
        try:
            job_id = self.dispatcher.enqueue(PROCESS_SHIPMENT, data)
        except JobHandoffError as exc:
            # The PENDING shipment stays; finish it inline through the same contract
            logger.warning("Job hand-off failed, finalising inline", shipment_id=shipment_id, error=str(exc))
            with self.locks.hold(self.locks.shipment(shipment_id)):
                self._process(FinalizePendingShipment(shipment_id=shipment_id, urgency=shipment.urgency))
            summary = self._shipment(shipment_id).to_summary()
            self.bus.new_shipment(summary)
            self.bus.stats_update({"total_shipments": shipment_count()})
            return CreationOutcome(shipment=summary)

        pending = {"id": shipment_id, "tracking_id": shipment.tracking_id, "status": shipment.status}
        logger.info("Shipment queued", shipment_id=shipment_id, job_id=job_id)
        self.bus.new_shipment(pending)
        self.bus.stats_update({"total_shipments": shipment_count()})
        return CreationOutcome(shipment=pending, job_id=job_id)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_shipment(self, shipment_id: str) -> dict:
        shipment = self._shipment(shipment_id)
        summary = shipment.to_summary()
        vehicle = self._vehicle(shipment.assigned_vehicle_id) if shipment.assigned_vehicle_id else None
        summary["current_location"] = shipment.current_location(vehicle).as_dict()
        return summary

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def assign(self, shipment_id: str, vehicle_id: str) -> dict:
        with self.locks.hold(self.locks.shipment(shipment_id), self.locks.vehicle(vehicle_id)):
            self._process(AssignShipmentToVehicle(shipment_id=shipment_id, vehicle_id=vehicle_id))
        summary = self._shipment(shipment_id).to_summary()
        self.bus.assignment_update({"shipment_id": shipment_id, "vehicle_id": vehicle_id, "status": summary["status"]})
        return summary

    def dispatch(self, shipment_id: str) -> dict:
        vehicle_id = self._shipment(shipment_id).assigned_vehicle_id
        with self.locks.hold(self.locks.shipment(shipment_id), self.locks.vehicle(vehicle_id)):
            self._process(DispatchShipment(shipment_id=shipment_id))
        summary = self._shipment(shipment_id).to_summary()
        self.bus.shipment_update({"id": shipment_id, "tracking_id": summary["tracking_id"], "status": summary["status"]})
        self.bus.vehicle_update(self._vehicle(vehicle_id).to_summary())
        return summary

    def cancel(self, shipment_id: str, reason: str | None = None) -> dict:
        vehicle_id = self._shipment(shipment_id).assigned_vehicle_id
        with self.locks.hold(self.locks.shipment(shipment_id), self.locks.vehicle(vehicle_id)):
            self._process(CancelShipment(shipment_id=shipment_id, reason=reason))
        summary = self._shipment(shipment_id).to_summary()
        self.bus.shipment_update({"id": shipment_id, "tracking_id": summary["tracking_id"], "status": summary["status"]})
        if vehicle_id:
            self.bus.vehicle_update(self._vehicle(vehicle_id).to_summary())
        return summary

    # -------------------------------------------------------------------
    # Operators
    # -------------------------------------------------------------------
    def job_board(self, operator_id: str) -> dict:
        operator = resolve_operator(operator_id)
        current = current_assignment(operator.id)
        return {
            "current_assignment": current.to_summary() if current else None,
            "available_jobs": [s.to_summary() for s in available_jobs(operator)],
        }

    def accept_job(self, operator_id: str, shipment_id: str) -> dict:
        vehicle_id = self._shipment(shipment_id).assigned_vehicle_id
        keys = (self.locks.operator(operator_id), self.locks.shipment(shipment_id), self.locks.vehicle(vehicle_id))
        with self.locks.hold(*keys):
            self._process(AcceptDeliveryJob(operator_id=operator_id, shipment_id=shipment_id))
        summary = self._shipment(shipment_id).to_summary()
        self.bus.shipment_update({"id": shipment_id, "tracking_id": summary["tracking_id"], "status": summary["status"]})
        self.bus.assignment_update(
            {"shipment_id": shipment_id, "vehicle_id": vehicle_id, "operator_id": operator_id, "status": summary["status"]}
        )
        self.bus.vehicle_update(self._vehicle(vehicle_id).to_summary())
        return summary

    def admin_stats(self, admin_id: str) -> dict:
        resolve_admin(admin_id)
        return fleet_stats()

    # -------------------------------------------------------------------
    # Adjustments and payments
    # -------------------------------------------------------------------
    def add_insurance(self, shipment_id: str, insurance_value: float) -> None:
        with self.locks.hold(self.locks.shipment(shipment_id)):
            self._process(AddInsurance(shipment_id=shipment_id, insurance_value=insurance_value))

    def add_note(self, shipment_id: str, note: str) -> str:
        with self.locks.hold(self.locks.shipment(shipment_id)):
            return self._process(AddShipmentNote(shipment_id=shipment_id, note=note))

    def record_signature(self, shipment_id: str, signature: str) -> None:
        with self.locks.hold(self.locks.shipment(shipment_id)):
            self._process(RecordSignature(shipment_id=shipment_id, signature=signature))

    def pay(self, shipment_id: str, amount: float, method: str = "card") -> str:
        with self.locks.hold(self.locks.shipment(shipment_id)):
            return self._process(ProcessPayment(shipment_id=shipment_id, amount=amount, method=method))

    def refund(self, shipment_id: str, transaction_id: str, amount: float | None = None) -> str:
        with self.locks.hold(self.locks.shipment(shipment_id)):
            return self._process(IssueRefund(shipment_id=shipment_id, transaction_id=transaction_id, amount=amount))

    # -------------------------------------------------------------------
    # Fleet
    # -------------------------------------------------------------------
    def provision_vehicle(self, vehicle_type: str, position: dict | None = None, license_id: str | None = None) -> dict:
        command = ProvisionVehicle(
            vehicle_type=vehicle_type,
            position=json.dumps(Location.from_dict(position).as_dict()) if position else None,
            license_id=license_id,
        )
        vehicle_id = self._process(command)
        summary = self._vehicle(vehicle_id).to_summary()
        self.bus.vehicle_update(summary)
        return summary
