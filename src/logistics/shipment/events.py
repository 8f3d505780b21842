"""Shipment domain events — facts about shipment lifecycle changes."""

from protean.fields import DateTime, Float, Identifier, String, Text

from logistics.domain import logistics


@logistics.event(part_of="Shipment")
class ShipmentCreated:
    """A shipment was requested and is waiting for a vehicle."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_id = String(required=True)
    customer_id = Identifier(required=True)
    weight = Float(required=True)
    origin = Text(required=True)  # JSON
    destination = Text(required=True)  # JSON
    shipment_type = String(required=True)
    urgency = String()
    created_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class VehicleAssigned:
    """A vehicle with enough capacity took the shipment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    vehicle_id = Identifier(required=True)
    vehicle_type = String(required=True)
    assigned_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class ShipmentStatusChanged:
    """Raised once per successful lifecycle transition."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    tracking_id = String(required=True)
    from_status = String(required=True)
    to_status = String(required=True)
    changed_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class ShipmentDelivered:
    __version__ = 1

    shipment_id = Identifier(required=True)
    vehicle_id = Identifier()
    delivered_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class ShipmentCancelled:
    __version__ = 1

    shipment_id = Identifier(required=True)
    previous_status = String(required=True)
    reason = String()
    cancelled_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class InsuranceAdded:
    __version__ = 1

    shipment_id = Identifier(required=True)
    insurance_value = Float(required=True)
    added_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class ShipmentTypeChanged:
    __version__ = 1

    shipment_id = Identifier(required=True)
    shipment_type = String(required=True)
    changed_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class CostCalculated:
    """The shipment was priced with a pricing strategy."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    strategy = String(required=True)
    cost = Float(required=True)
    calculated_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class EstimatedDeliverySet:
    __version__ = 1

    shipment_id = Identifier(required=True)
    estimated_delivery_time = DateTime(required=True)
    set_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class PaymentProcessed:
    """A payment was appended to the shipment's ledger."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    transaction_id = String(required=True)
    amount = Float(required=True)
    method = String(required=True)
    processed_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class RefundIssued:
    """Part or all of an earlier payment was returned."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    transaction_id = String(required=True)
    original_transaction_id = String(required=True)
    amount = Float(required=True)
    refunded_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class SignatureRecorded:
    __version__ = 1

    shipment_id = Identifier(required=True)
    signature = String(required=True)
    recorded_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class NoteAdded:
    __version__ = 1

    shipment_id = Identifier(required=True)
    note = Text(required=True)
    added_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class VehicleTypeRecommended:
    """A PENDING shipment waits for a vehicle of this type to be assigned."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    vehicle_type = String(required=True)
    recommended_at = DateTime(required=True)


@logistics.event(part_of="Shipment")
class OperatorAccepted:
    """A driver or captain took an assigned shipment."""

    __version__ = 1

    shipment_id = Identifier(required=True)
    operator_id = Identifier(required=True)
    vehicle_id = Identifier(required=True)
    accepted_at = DateTime(required=True)
