"""Operator job board: drivers and captains pick up assigned shipments.

An operator sees ASSIGNED shipments nobody has taken whose vehicle type
their role can operate (ships for captains, drones and trucks for drivers).
Accepting one records the operator on the shipment and dispatches it. An
operator holds at most one active delivery at a time.
"""

import structlog
from protean import handle
from protean.fields import Identifier
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shared.errors import NotPermittedError, OperatorUnavailableError
from logistics.shipment.shipment import Shipment, ShipmentStatus
from logistics.user.registration import resolve_operator
from logistics.vehicle.vehicle import Vehicle

logger = structlog.get_logger(__name__)

AVAILABLE_JOBS_LIMIT = 10
_ACTIVE_STATUSES = {ShipmentStatus.ASSIGNED.value, ShipmentStatus.IN_TRANSIT.value}


@logistics.command(part_of="Shipment")
class AcceptDeliveryJob:
    """An operator takes an assigned shipment and departs with it."""

    operator_id = Identifier(required=True)
    shipment_id = Identifier(required=True)


def current_assignment(operator_id: str) -> Shipment | None:
    """The operator's delivery that is assigned or in transit, if any."""
    query = current_domain.repository_for(Shipment)._dao.query
    taken = query.filter(operator_id=str(operator_id)).limit(None).all()
    return next((s for s in taken if s.status in _ACTIVE_STATUSES), None)


def available_jobs(operator, limit: int = AVAILABLE_JOBS_LIMIT) -> list[Shipment]:
    """Newest untaken ASSIGNED shipments the operator's role can carry."""
    query = current_domain.repository_for(Shipment)._dao.query
    assigned = query.filter(status=ShipmentStatus.ASSIGNED.value).order_by("-created_at").limit(None).all()
    jobs = [s for s in assigned if not s.operator_id and operator.can_operate(s.recommended_vehicle_type)]
    return jobs[:limit]


@logistics.command_handler(part_of=Shipment)
class AcceptanceHandler:
    @handle(AcceptDeliveryJob)
    def accept_delivery_job(self, command):
        operator = resolve_operator(command.operator_id)
        shipment_repo = current_domain.repository_for(Shipment)
        vehicle_repo = current_domain.repository_for(Vehicle)
        shipment = shipment_repo.get(command.shipment_id)

        if not operator.can_operate(shipment.recommended_vehicle_type):
            raise NotPermittedError(
                {"role": [f"A {operator.role.lower()} cannot operate a {shipment.recommended_vehicle_type}"]}
            )
        active = current_assignment(operator.id)
        if active is not None:
            raise OperatorUnavailableError({"operator": [f"Operator already has active delivery {active.tracking_id}"]})

        shipment.accept_by(str(operator.id))
        vehicle = vehicle_repo.get(shipment.assigned_vehicle_id)
        shipment.dispatch(vehicle)
        vehicle.depart(start=shipment.origin)

        vehicle_repo.add(vehicle)
        shipment_repo.add(shipment)
        logger.info(
            "Delivery job accepted",
            shipment_id=str(shipment.id),
            operator_id=str(operator.id),
            vehicle_id=str(vehicle.id),
        )
        return str(shipment.id)
