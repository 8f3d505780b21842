"""Shipment payments — payment and refund commands.

Both handlers return the ledger transaction id they created.
"""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from logistics.domain import logistics
from logistics.shipment.shipment import Shipment


@logistics.command(part_of="Shipment")
class ProcessPayment:
    shipment_id = Identifier(required=True)
    amount = Float(required=True)
    method = String(max_length=50, default="card")


@logistics.command(part_of="Shipment")
class IssueRefund:
    """Refund a payment; without an amount, everything left on it."""

    shipment_id = Identifier(required=True)
    transaction_id = String(required=True, max_length=100)
    amount = Float()


@logistics.command_handler(part_of=Shipment)
class PaymentHandler:
    @handle(ProcessPayment)
    def process_payment(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get(command.shipment_id)
        transaction_id = shipment.process_payment(command.amount, command.method or "card")
        repo.add(shipment)
        return transaction_id

    @handle(IssueRefund)
    def issue_refund(self, command):
        repo = current_domain.repository_for(Shipment)
        shipment = repo.get(command.shipment_id)
        refund_id = shipment.refund(command.transaction_id, command.amount)
        repo.add(shipment)
        return refund_id
