"""Tests for the shipment payment ledger — payments, refunds and balances."""

import pytest
from logistics.shared.errors import (
    NonPositiveAmountError,
    PaymentNotFoundError,
    RefundExceedsOriginalError,
)
from logistics.shared.location import Location
from logistics.shipment.events import PaymentProcessed, RefundIssued
from logistics.shipment.shipment import LedgerEntryStatus, Shipment


def _make_shipment():
    return Shipment.create(
        customer_id="cust-001",
        weight=12.0,
        origin=Location(lat=10.0, lng=10.0),
        destination=Location(lat=12.0, lng=12.0),
    )


class TestPayments:
    def test_payment_returns_transaction_id(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(100.0)
        assert txn.startswith("TXN-")

    def test_payment_appends_completed_entry(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(100.0, method="wire")
        entry = shipment.ledger[-1]
        assert entry.transaction_id == txn
        assert entry.amount == 100.0
        assert entry.method == "wire"
        assert entry.status == LedgerEntryStatus.COMPLETED.value

    def test_default_method_is_card(self):
        shipment = _make_shipment()
        shipment.process_payment(10.0)
        assert shipment.ledger[-1].method == "card"

    @pytest.mark.parametrize("amount", [0, -1.0, None])
    def test_rejects_non_positive_amount(self, amount):
        shipment = _make_shipment()
        with pytest.raises(NonPositiveAmountError):
            shipment.process_payment(amount)
        assert shipment.ledger == []

    def test_transaction_ids_are_unique(self):
        shipment = _make_shipment()
        ids = {shipment.process_payment(1.0) for _ in range(5)}
        assert len(ids) == 5

    def test_raises_event(self):
        shipment = _make_shipment()
        shipment.process_payment(25.0)
        assert isinstance(shipment._events[-1], PaymentProcessed)


class TestRefunds:
    def test_full_refund_by_default(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(100.0)
        ref = shipment.refund(txn)
        assert ref.startswith("REF-")
        entry = shipment.ledger[-1]
        assert entry.amount == -100.0
        assert entry.status == LedgerEntryStatus.REFUNDED.value
        assert entry.original_transaction_id == txn
        assert shipment.balance() == pytest.approx(0.0)

    def test_partial_refunds_accumulate(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(100.0)
        shipment.refund(txn, 30.0)
        shipment.refund(txn, 50.0)
        assert shipment.remaining_refundable(txn) == pytest.approx(20.0)
        assert shipment.balance() == pytest.approx(20.0)

    def test_refund_beyond_remaining_is_rejected(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(100.0)
        shipment.refund(txn, 80.0)
        with pytest.raises(RefundExceedsOriginalError):
            shipment.refund(txn, 30.0)
        assert len(shipment.ledger) == 2

    def test_refund_of_exact_remainder(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(0.3)
        shipment.refund(txn, 0.1)
        shipment.refund(txn, 0.2)
        assert shipment.balance() == pytest.approx(0.0)

    def test_default_refund_after_partial_takes_the_rest(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(100.0)
        shipment.refund(txn, 40.0)
        shipment.refund(txn)
        assert shipment.ledger[-1].amount == pytest.approx(-60.0)

    def test_nothing_left_to_refund(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(100.0)
        shipment.refund(txn)
        with pytest.raises(NonPositiveAmountError):
            shipment.refund(txn)

    def test_rejects_non_positive_refund(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(100.0)
        with pytest.raises(NonPositiveAmountError):
            shipment.refund(txn, 0)

    def test_unknown_transaction(self):
        shipment = _make_shipment()
        with pytest.raises(PaymentNotFoundError):
            shipment.refund("TXN-missing", 10.0)

    def test_cannot_refund_a_refund(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(100.0)
        ref = shipment.refund(txn, 10.0)
        with pytest.raises(PaymentNotFoundError):
            shipment.refund(ref, 5.0)

    def test_refunds_are_per_payment(self):
        shipment = _make_shipment()
        first = shipment.process_payment(50.0)
        second = shipment.process_payment(70.0)
        shipment.refund(first)
        assert shipment.remaining_refundable(second) == pytest.approx(70.0)
        assert shipment.total_paid() == pytest.approx(120.0)
        assert shipment.balance() == pytest.approx(70.0)

    def test_raises_event(self):
        shipment = _make_shipment()
        txn = shipment.process_payment(100.0)
        shipment.refund(txn, 10.0)
        event = shipment._events[-1]
        assert isinstance(event, RefundIssued)
        assert event.original_transaction_id == txn
        assert event.amount == 10.0


class TestLedgerOrdering:
    def test_entries_keep_insertion_order(self):
        shipment = _make_shipment()
        first = shipment.process_payment(10.0)
        second = shipment.process_payment(20.0)
        refund = shipment.refund(first)
        assert [e.transaction_id for e in shipment.ledger] == [first, second, refund]
