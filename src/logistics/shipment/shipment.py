"""Shipment aggregate (CQRS) — the core of the logistics domain.

A Shipment owns its lifecycle, an append-only tracking history, a payment
ledger and a reference to the vehicle carrying it.

State Machine:
    PENDING → ASSIGNED → IN_TRANSIT → DELIVERED
    {PENDING, ASSIGNED, IN_TRANSIT} → CANCELLED

Every successful transition appends exactly one tracking-history entry. The
history is seeded with a PENDING entry at creation and never shrinks.
"""

import json
import secrets
from datetime import UTC, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
    ValueObject,
)

from logistics.domain import logistics
from logistics.pricing.strategy import PricingStrategy, ShipmentType, calculate_cost, strategy_name
from logistics.shared.errors import (
    AlreadyInTransitError,
    CapacityExceededError,
    EmptyNoteError,
    InvalidTransitionError,
    NegativeValueError,
    NonPositiveAmountError,
    NotYetDeliveredError,
    OperatorUnavailableError,
    PaymentNotFoundError,
    ProcessingStartedError,
    RefundExceedsOriginalError,
    TimeInPastError,
)
from logistics.shared.geo import distance_km
from logistics.shared.location import Location
from logistics.shipment.events import (
    CostCalculated,
    EstimatedDeliverySet,
    InsuranceAdded,
    NoteAdded,
    OperatorAccepted,
    PaymentProcessed,
    RefundIssued,
    ShipmentCancelled,
    ShipmentCreated,
    ShipmentDelivered,
    ShipmentStatusChanged,
    ShipmentTypeChanged,
    SignatureRecorded,
    VehicleAssigned,
    VehicleTypeRecommended,
)

# Tolerance for float comparisons on ledger balances
_BALANCE_EPSILON = 1e-9


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class ShipmentStatus(Enum):
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    CANCELLED = "CANCELLED"


class Urgency(Enum):
    LOW = "low"
    STANDARD = "standard"
    HIGH = "high"
    CRITICAL = "critical"


class LedgerEntryStatus(Enum):
    COMPLETED = "COMPLETED"
    REFUNDED = "REFUNDED"


_VALID_TRANSITIONS = {
    ShipmentStatus.PENDING: {ShipmentStatus.ASSIGNED, ShipmentStatus.CANCELLED},
    ShipmentStatus.ASSIGNED: {ShipmentStatus.IN_TRANSIT, ShipmentStatus.CANCELLED},
    ShipmentStatus.IN_TRANSIT: {ShipmentStatus.DELIVERED, ShipmentStatus.CANCELLED},
    ShipmentStatus.DELIVERED: set(),  # terminal
    ShipmentStatus.CANCELLED: set(),  # terminal
}


def generate_tracking_id() -> str:
    return f"TRK-{secrets.randbelow(10**9):09d}"


def _coerce(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError as exc:
        raise ValidationError({field: [f"Unknown {field}: {value!r}"]}) from exc


def _transaction_id(prefix: str) -> str:
    millis = int(datetime.now(UTC).timestamp() * 1000)
    return f"{prefix}-{millis}-{secrets.token_hex(4).upper()}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@logistics.entity(part_of="Shipment")
class TrackingEntry:
    """One audited status transition with a location snapshot."""

    sequence = Integer(required=True, min_value=0)
    timestamp = DateTime(required=True)
    status = String(required=True, max_length=50, choices=ShipmentStatus)
    location = ValueObject(Location)
    description = String(max_length=500)


@logistics.entity(part_of="Shipment")
class ShipmentNote:
    sequence = Integer(required=True, min_value=0)
    text = Text(required=True)
    recorded_at = DateTime(required=True)


@logistics.entity(part_of="Shipment")
class LedgerEntry:
    """A payment (positive) or refund (negative) against the shipment."""

    sequence = Integer(required=True, min_value=0)
    transaction_id = String(required=True, max_length=100)
    amount = Float(required=True)
    method = String(max_length=50)
    status = String(required=True, max_length=50, choices=LedgerEntryStatus)
    original_transaction_id = String(max_length=100)
    recorded_at = DateTime(required=True)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@logistics.aggregate
class Shipment:
    tracking_id = String(required=True, max_length=50)
    customer_id = Identifier(required=True)
    weight = Float(required=True)
    origin = ValueObject(Location, required=True)
    destination = ValueObject(Location, required=True)
    status = String(choices=ShipmentStatus, default=ShipmentStatus.PENDING.value)
    shipment_type = String(choices=ShipmentType, default=ShipmentType.STANDARD.value)
    urgency = String(choices=Urgency, default=Urgency.STANDARD.value)
    cost = Float(default=0.0, min_value=0.0)
    is_insured = Boolean(default=False)
    insurance_value = Float(default=0.0, min_value=0.0)
    recommended_vehicle_type = String(max_length=20)
    assigned_vehicle_id = Identifier()
    operator_id = Identifier()
    last_known_location = ValueObject(Location)
    estimated_delivery_time = DateTime()
    actual_delivery_time = DateTime()
    signature = String(max_length=255)
    tracking_history = HasMany(TrackingEntry)
    shipment_notes = HasMany(ShipmentNote)
    payment_ledger = HasMany(LedgerEntry)
    created_at = DateTime()
    updated_at = DateTime()

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_id: str,
        weight: float,
        origin: Location,
        destination: Location,
        shipment_type: str = ShipmentType.STANDARD.value,
        urgency: str = Urgency.STANDARD.value,
        tracking_id: str | None = None,
    ):
        """Create a PENDING shipment with its first tracking entry."""
        if weight is None or weight <= 0:
            raise ValidationError({"weight": ["Weight must be greater than zero"]})
        if origin is None or destination is None:
            raise ValidationError({"location": ["Origin and destination are required"]})
        if (origin.lat, origin.lng) == (destination.lat, destination.lng):
            raise ValidationError({"destination": ["Destination must differ from origin"]})

        now = datetime.now(UTC)
        shipment = cls(
            tracking_id=tracking_id or generate_tracking_id(),
            customer_id=customer_id,
            weight=weight,
            origin=origin.clone(),
            destination=destination.clone(),
            status=ShipmentStatus.PENDING.value,
            shipment_type=_coerce(ShipmentType, shipment_type, "shipment_type").value,
            urgency=_coerce(Urgency, urgency, "urgency").value,
            created_at=now,
            updated_at=now,
        )
        shipment._append_history(ShipmentStatus.PENDING, "Shipment created", shipment.origin, now)
        shipment.raise_(
            ShipmentCreated(
                shipment_id=str(shipment.id),
                tracking_id=shipment.tracking_id,
                customer_id=str(customer_id),
                weight=weight,
                origin=json.dumps(origin.as_dict()),
                destination=json.dumps(destination.as_dict()),
                shipment_type=shipment.shipment_type,
                urgency=shipment.urgency,
                created_at=now,
            )
        )
        return shipment

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    @property
    def distance_km(self) -> float:
        return distance_km(self.origin, self.destination)

    @property
    def history(self) -> list:
        """Tracking entries in chronological order."""
        return sorted(self.tracking_history or [], key=lambda e: e.sequence)

    @property
    def notes(self) -> tuple:
        return tuple(n.text for n in sorted(self.shipment_notes or [], key=lambda n: n.sequence))

    @property
    def ledger(self) -> list:
        return sorted(self.payment_ledger or [], key=lambda e: e.sequence)

    @property
    def is_terminal(self) -> bool:
        return not _VALID_TRANSITIONS[ShipmentStatus(self.status)]

    def current_location(self, vehicle=None) -> Location:
        """Best known position of the parcel.

        Origin while PENDING, destination once DELIVERED. In between, the
        carrying vehicle's live position when one is supplied, then the last
        interpolated point, then the origin.
        """
        status = ShipmentStatus(self.status)
        if status == ShipmentStatus.PENDING:
            return self.origin.clone()
        if status == ShipmentStatus.DELIVERED:
            return self.destination.clone()
        if vehicle is not None and vehicle.position is not None:
            return vehicle.position.clone()
        if self.last_known_location is not None:
            return self.last_known_location.clone()
        return self.origin.clone()

    def total_paid(self) -> float:
        return sum(e.amount for e in self.ledger if e.status == LedgerEntryStatus.COMPLETED.value)

    def balance(self) -> float:
        """Net amount held: payments minus refunds."""
        return sum(e.amount for e in self.ledger)

    def remaining_refundable(self, transaction_id: str) -> float:
        original = self._payment(transaction_id)
        refunded = sum(
            e.amount
            for e in self.ledger
            if e.status == LedgerEntryStatus.REFUNDED.value and e.original_transaction_id == transaction_id
        )
        return original.amount + refunded

    # -------------------------------------------------------------------
    # State transitions
    # -------------------------------------------------------------------
    def _assert_can_transition(self, target_status: ShipmentStatus) -> None:
        current = ShipmentStatus(self.status)
        if target_status not in _VALID_TRANSITIONS.get(current, set()):
            raise InvalidTransitionError(
                {"status": [f"Invalid status transition from {current.value} to {target_status.value}"]}
            )

    def _append_history(self, status: ShipmentStatus, description: str, location: Location, at: datetime) -> None:
        self.add_tracking_history(
            TrackingEntry(
                sequence=len(self.tracking_history or []),
                timestamp=at,
                status=status.value,
                location=location.clone() if location else None,
                description=description,
            )
        )

    def update_status(self, next_status, description: str | None = None, vehicle=None) -> None:
        """Move to a direct successor state and audit the move."""
        target = ShipmentStatus(next_status)
        self._assert_can_transition(target)

        now = datetime.now(UTC)
        previous = ShipmentStatus(self.status)
        self.status = target.value
        if target == ShipmentStatus.DELIVERED:
            self.actual_delivery_time = now
            self.last_known_location = self.destination.clone()
        self.updated_at = now
        self._append_history(
            target,
            description or f"Status changed to {target.value}",
            self.current_location(vehicle),
            now,
        )
        self.raise_(
            ShipmentStatusChanged(
                shipment_id=str(self.id),
                tracking_id=self.tracking_id,
                from_status=previous.value,
                to_status=target.value,
                changed_at=now,
            )
        )
        if target == ShipmentStatus.DELIVERED:
            self.raise_(
                ShipmentDelivered(
                    shipment_id=str(self.id),
                    vehicle_id=str(self.assigned_vehicle_id) if self.assigned_vehicle_id else None,
                    delivered_at=now,
                )
            )

    def assign_vehicle(self, vehicle) -> None:
        """Hand the shipment to a vehicle with enough capacity."""
        if vehicle.capacity_kg < self.weight:
            raise CapacityExceededError(
                {
                    "vehicle": [
                        f"Vehicle {vehicle.license_id} capacity {vehicle.capacity_kg}kg "
                        f"insufficient for shipment {self.tracking_id} ({self.weight}kg)"
                    ]
                }
            )
        if self.assigned_vehicle_id:
            raise InvalidTransitionError({"assigned_vehicle_id": ["Shipment already has a vehicle assigned"]})
        self._assert_can_transition(ShipmentStatus.ASSIGNED)

        self.assigned_vehicle_id = str(vehicle.id)
        self.recommended_vehicle_type = vehicle.vehicle_type
        self.update_status(
            ShipmentStatus.ASSIGNED,
            description=f"Assigned to vehicle {vehicle.license_id}",
        )
        self.raise_(
            VehicleAssigned(
                shipment_id=str(self.id),
                vehicle_id=str(vehicle.id),
                vehicle_type=vehicle.vehicle_type,
                assigned_at=self.updated_at,
            )
        )

    def await_vehicle(self, vehicle_type: str) -> None:
        """Leave the shipment PENDING until a vehicle of ``vehicle_type`` is assigned."""
        if ShipmentStatus(self.status) != ShipmentStatus.PENDING:
            raise InvalidTransitionError({"status": ["Only pending shipments can wait for a vehicle"]})

        now = datetime.now(UTC)
        self.recommended_vehicle_type = vehicle_type
        self.updated_at = now
        self.raise_(
            VehicleTypeRecommended(shipment_id=str(self.id), vehicle_type=vehicle_type, recommended_at=now)
        )

    def accept_by(self, operator_id: str) -> None:
        """Record the driver or captain who takes an ASSIGNED shipment."""
        if ShipmentStatus(self.status) != ShipmentStatus.ASSIGNED:
            raise InvalidTransitionError({"status": ["Only assigned shipments can be accepted"]})
        if self.operator_id:
            raise OperatorUnavailableError({"shipment": ["Shipment was already accepted by another operator"]})

        now = datetime.now(UTC)
        self.operator_id = operator_id
        self.updated_at = now
        self.raise_(
            OperatorAccepted(
                shipment_id=str(self.id),
                operator_id=str(operator_id),
                vehicle_id=str(self.assigned_vehicle_id),
                accepted_at=now,
            )
        )

    def dispatch(self, vehicle=None) -> None:
        self.update_status(ShipmentStatus.IN_TRANSIT, description="Departed with carrier", vehicle=vehicle)

    def mark_delivered(self) -> None:
        self.update_status(ShipmentStatus.DELIVERED, description="Delivered to destination")

    def cancel(self, reason: str | None = None) -> None:
        previous = self.status
        self.update_status(
            ShipmentStatus.CANCELLED,
            description=f"Cancelled: {reason}" if reason else "Shipment cancelled",
        )
        self.raise_(
            ShipmentCancelled(
                shipment_id=str(self.id),
                previous_status=previous,
                reason=reason,
                cancelled_at=self.updated_at,
            )
        )

    def record_position(self, location: Location) -> None:
        """Remember the latest interpolated point while in transit."""
        if ShipmentStatus(self.status) != ShipmentStatus.IN_TRANSIT:
            raise InvalidTransitionError({"status": ["Position updates only apply to shipments in transit"]})
        self.last_known_location = location.clone()
        self.updated_at = datetime.now(UTC)

    # -------------------------------------------------------------------
    # Pre-processing adjustments
    # -------------------------------------------------------------------
    def add_insurance(self, value: float) -> None:
        if value is None or value < 0:
            raise NegativeValueError({"insurance_value": ["Insurance value cannot be negative"]})
        if ShipmentStatus(self.status) != ShipmentStatus.PENDING:
            raise AlreadyInTransitError({"status": ["Insurance can only be added before pickup"]})

        now = datetime.now(UTC)
        self.insurance_value = value
        self.is_insured = True
        self.updated_at = now
        self.raise_(InsuranceAdded(shipment_id=str(self.id), insurance_value=value, added_at=now))

    def set_type(self, shipment_type) -> None:
        if ShipmentStatus(self.status) != ShipmentStatus.PENDING:
            raise ProcessingStartedError({"shipment_type": ["Cannot change type after processing has started"]})

        now = datetime.now(UTC)
        self.shipment_type = _coerce(ShipmentType, shipment_type, "shipment_type").value
        self.updated_at = now
        self.raise_(ShipmentTypeChanged(shipment_id=str(self.id), shipment_type=self.shipment_type, changed_at=now))

    def set_estimated_delivery(self, when: datetime) -> None:
        if when.tzinfo is None:
            when = when.replace(tzinfo=UTC)
        now = datetime.now(UTC)
        if when <= now:
            raise TimeInPastError({"estimated_delivery_time": ["Estimated delivery time cannot be in the past"]})

        self.estimated_delivery_time = when
        self.updated_at = now
        self.raise_(EstimatedDeliverySet(shipment_id=str(self.id), estimated_delivery_time=when, set_at=now))

    def add_note(self, text: str) -> str:
        if text is None or not text.strip():
            raise EmptyNoteError({"note": ["Note cannot be empty"]})

        now = datetime.now(UTC)
        stamped = f"[{now.isoformat()}] {text}"
        self.add_shipment_notes(
            ShipmentNote(
                sequence=len(self.shipment_notes or []),
                text=stamped,
                recorded_at=now,
            )
        )
        self.updated_at = now
        self.raise_(NoteAdded(shipment_id=str(self.id), note=stamped, added_at=now))
        return stamped

    def calculate_cost(self, strategy: PricingStrategy) -> float:
        """Price the shipment with the given strategy and store the result."""
        strategy = PricingStrategy(strategy)
        now = datetime.now(UTC)
        self.cost = calculate_cost(
            strategy,
            weight=self.weight,
            distance_km=self.distance_km,
            shipment_type=ShipmentType(self.shipment_type),
            insurance_value=self.insurance_value or 0.0,
            is_insured=bool(self.is_insured),
        )
        self.updated_at = now
        self.raise_(
            CostCalculated(
                shipment_id=str(self.id),
                strategy=strategy_name(strategy),
                cost=self.cost,
                calculated_at=now,
            )
        )
        return self.cost

    # -------------------------------------------------------------------
    # Payments
    # -------------------------------------------------------------------
    def _payment(self, transaction_id: str):
        payment = next(
            (
                e
                for e in (self.payment_ledger or [])
                if e.transaction_id == transaction_id and e.status == LedgerEntryStatus.COMPLETED.value
            ),
            None,
        )
        if payment is None:
            raise PaymentNotFoundError(f"Payment {transaction_id} not found")
        return payment

    def process_payment(self, amount: float, method: str = "card") -> str:
        """Record a payment and return its ``TXN-`` transaction id."""
        if amount is None or amount <= 0:
            raise NonPositiveAmountError({"amount": ["Payment amount must be positive"]})

        now = datetime.now(UTC)
        transaction_id = _transaction_id("TXN")
        self.add_payment_ledger(
            LedgerEntry(
                sequence=len(self.payment_ledger or []),
                transaction_id=transaction_id,
                amount=amount,
                method=method,
                status=LedgerEntryStatus.COMPLETED.value,
                recorded_at=now,
            )
        )
        self.updated_at = now
        self.raise_(
            PaymentProcessed(
                shipment_id=str(self.id),
                transaction_id=transaction_id,
                amount=amount,
                method=method,
                processed_at=now,
            )
        )
        return transaction_id

    def refund(self, transaction_id: str, amount: float | None = None) -> str:
        """Refund part or all of a payment; defaults to everything left on it."""
        original = self._payment(transaction_id)
        remaining = self.remaining_refundable(transaction_id)
        if amount is None:
            amount = remaining
        if amount <= 0:
            raise NonPositiveAmountError({"amount": ["Refund amount must be positive"]})
        if amount > remaining + _BALANCE_EPSILON:
            raise RefundExceedsOriginalError(
                {"amount": [f"Refund {amount} exceeds remaining balance {remaining} of {transaction_id}"]}
            )

        now = datetime.now(UTC)
        refund_id = _transaction_id("REF")
        self.add_payment_ledger(
            LedgerEntry(
                sequence=len(self.payment_ledger or []),
                transaction_id=refund_id,
                amount=-amount,
                method=original.method,
                status=LedgerEntryStatus.REFUNDED.value,
                original_transaction_id=transaction_id,
                recorded_at=now,
            )
        )
        self.updated_at = now
        self.raise_(
            RefundIssued(
                shipment_id=str(self.id),
                transaction_id=refund_id,
                original_transaction_id=transaction_id,
                amount=amount,
                refunded_at=now,
            )
        )
        return refund_id

    # -------------------------------------------------------------------
    # Delivery
    # -------------------------------------------------------------------
    def record_signature(self, name: str) -> None:
        if ShipmentStatus(self.status) != ShipmentStatus.DELIVERED:
            raise NotYetDeliveredError({"signature": ["Signature can only be recorded upon delivery"]})
        if name is None or not name.strip():
            raise ValidationError({"signature": ["Signature cannot be blank"]})

        now = datetime.now(UTC)
        self.signature = name.strip()
        self.updated_at = now
        self.raise_(SignatureRecorded(shipment_id=str(self.id), signature=self.signature, recorded_at=now))

    def to_summary(self) -> dict:
        return {
            "id": str(self.id),
            "tracking_id": self.tracking_id,
            "customer_id": str(self.customer_id),
            "status": self.status,
            "weight": self.weight,
            "origin": self.origin.as_dict(),
            "destination": self.destination.as_dict(),
            "shipment_type": self.shipment_type,
            "urgency": self.urgency,
            "cost": round(self.cost or 0.0, 2),
            "is_insured": bool(self.is_insured),
            "insurance_value": self.insurance_value or 0.0,
            "assigned_vehicle_id": str(self.assigned_vehicle_id) if self.assigned_vehicle_id else None,
            "operator_id": str(self.operator_id) if self.operator_id else None,
            "recommended_vehicle_type": self.recommended_vehicle_type,
            "estimated_delivery_time": _iso(self.estimated_delivery_time),
            "actual_delivery_time": _iso(self.actual_delivery_time),
            "signature": self.signature,
            "notes": list(self.notes),
            "tracking_history": [
                {
                    "timestamp": _iso(e.timestamp),
                    "status": e.status,
                    "location": e.location.as_dict() if e.location else None,
                    "description": e.description,
                }
                for e in self.history
            ],
            "payment_ledger": [
                {
                    "transaction_id": e.transaction_id,
                    "amount": e.amount,
                    "status": e.status,
                    "method": e.method,
                    "original_transaction_id": e.original_transaction_id,
                }
                for e in self.ledger
            ],
        }


def _iso(value):
    return value.isoformat() if value else None
