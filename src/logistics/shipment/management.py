"""Shipment adjustments — insurance, type, notes, delivery estimate, signature."""

from protean import handle
from protean.fields import DateTime, Float, Identifier, String, Text
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shipment.shipment import Shipment


@logistics.command(part_of="Shipment")
class AddInsurance:
    shipment_id = Identifier(required=True)
    insurance_value = Float(required=True)


@logistics.command(part_of="Shipment")
class ChangeShipmentType:
    shipment_id = Identifier(required=True)
    shipment_type = String(required=True, max_length=20)


@logistics.command(part_of="Shipment")
class AddShipmentNote:
    shipment_id = Identifier(required=True)
    note = Text(required=True)


@logistics.command(part_of="Shipment")
class SetEstimatedDelivery:
    shipment_id = Identifier(required=True)
    estimated_delivery_time = DateTime(required=True)


@logistics.command(part_of="Shipment")
class RecordSignature:
    """Capture the recipient's signature on a delivered shipment."""

    shipment_id = Identifier(required=True)
    signature = String(required=True, max_length=255)


@logistics.command_handler(part_of=Shipment)
class ShipmentManagementHandler:
    @handle(AddInsurance)
    def add_insurance(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get(command.shipment_id)
        shipment.add_insurance(command.insurance_value)
        repo.add(shipment)

    @handle(ChangeShipmentType)
    def change_shipment_type(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get(command.shipment_id)
        shipment.set_type(command.shipment_type)
        repo.add(shipment)

    @handle(AddShipmentNote)
    def add_note(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get(command.shipment_id)
        stamped = shipment.add_note(command.note)
        repo.add(shipment)
        return stamped

    @handle(SetEstimatedDelivery)
    def set_estimated_delivery(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get(command.shipment_id)
        shipment.set_estimated_delivery(command.estimated_delivery_time)
        repo.add(shipment)

    @handle(RecordSignature)
    def record_signature(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get(command.shipment_id)
        shipment.record_signature(command.signature)
        repo.add(shipment)
