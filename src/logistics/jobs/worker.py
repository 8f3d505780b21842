"""Shipment job worker — completes PENDING shipments handed off asynchronously.

Runs when the executor calls back (``POST /jobs/process-shipment``) or when a
fake executor is drained in tests. It finishes the shipment through
``FinalizePendingShipment``, so the result matches the synchronous path.
"""

import pydantic
import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from logistics.fleet.stats import shipment_count
from logistics.jobs.dispatch import JobDispatcher
from logistics.jobs.job import ShipmentJobPayload
from logistics.realtime.bus import EventBus
from logistics.shared.locks import EntityLocks
from logistics.shared.retry import with_retry
from logistics.shipment.creation import FinalizePendingShipment
from logistics.shipment.shipment import Shipment

logger = structlog.get_logger(__name__)


class ShipmentJobWorker:
    def __init__(
        self,
        dispatcher: JobDispatcher,
        locks: EntityLocks,
        bus: EventBus,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
    ) -> None:
        self.dispatcher = dispatcher
        self.locks = locks
        self.bus = bus
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay

    def _validate(self, body) -> ShipmentJobPayload:
        try:
            return ShipmentJobPayload.model_validate(body)
        except pydantic.ValidationError as exc:
            job_id = body.get("job_id") if isinstance(body, dict) else None
            if job_id:
                self.dispatcher.mark_failed(job_id, "Invalid job payload")
            raise ValidationError({"payload": [err["msg"] for err in exc.errors()]}) from exc

    def process(self, body: dict) -> dict:
        payload = self._validate(body)
        job_id = payload.job_id
        shipment_id = payload.data.shipment_id
        logger.info("Processing shipment job", job_id=job_id, shipment_id=shipment_id)

        if job_id:
            self.dispatcher.mark_processing(job_id)
        try:
            result = self._finalize(payload)
        except Exception as exc:
            if job_id:
                self.dispatcher.mark_failed(job_id, str(exc) or exc.__class__.__name__)
            logger.error("Shipment job failed", job_id=job_id, shipment_id=shipment_id, error=str(exc))
            raise

        self.bus.shipment_update(result)
        self.bus.stats_update({"total_shipments": shipment_count()})
        if job_id:
            self.dispatcher.mark_completed(job_id, result)
        logger.info("Shipment job completed", job_id=job_id, shipment_id=shipment_id)
        return result

    def _finalize(self, payload: ShipmentJobPayload) -> dict:
        data = payload.data
        repo = current_domain.repository_for(Shipment)
        with self.locks.hold(self.locks.shipment(data.shipment_id)):
            shipment = repo.get(data.shipment_id)
            if str(shipment.customer_id) != data.customer_id:
                raise ValidationError({"customer_id": ["Job customer does not own this shipment"]})
            with_retry(
                current_domain.process,
                FinalizePendingShipment(shipment_id=data.shipment_id, urgency=data.urgency),
                asynchronous=False,
                attempts=self.retry_attempts,
                delay=self.retry_delay,
            )
            shipment = repo.get(data.shipment_id)

        return {
            "id": str(shipment.id),
            "tracking_id": shipment.tracking_id,
            "status": shipment.status,
            "weight": shipment.weight,
            "cost": round(shipment.cost or 0.0, 2),
            "recommended_vehicle_type": shipment.recommended_vehicle_type,
            "assigned_vehicle_id": str(shipment.assigned_vehicle_id) if shipment.assigned_vehicle_id else None,
            "origin": shipment.origin.as_dict(),
            "destination": shipment.destination.as_dict(),
        }
