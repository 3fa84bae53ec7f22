"""
Tests for the Fee Journal.

Covers:
- Idempotent fee recording
- Received payments
- Filtering and monthly statements
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from fulfillment_kernel.exceptions import InvalidAmountError
from fulfillment_modules.billing.journal import build_statement
from fulfillment_modules.billing.models import TransactionType


class TestRecord:
    """Tests for FeeJournal.record."""

    def test_records_rounded_amount(self, journal, deterministic_clock):
        txn = journal.record("m1", "dispatch_fee", "17.005", entity_id="ord-9", producer="orders")

        assert txn.id == "txn-1"
        assert txn.amount == Decimal("17.01")
        assert txn.transaction_type is TransactionType.DISPATCH_FEE
        assert txn.idempotency_key == "orders:dispatch_fee:ord-9"
        assert txn.occurred_at == deterministic_clock.now()
        assert txn.period == "2024-01"

    def test_same_key_returns_original(self, journal, captured_logs):
        first = journal.record("m1", TransactionType.INBOUND_FEE, 10, "inb-1", "inbound")
        second = journal.record("m1", TransactionType.INBOUND_FEE, 99, "inb-1", "inbound")

        assert second is first
        assert len(journal.transactions()) == 1
        assert any(r["message"] == "fee_transaction_duplicate" for r in captured_logs())

    def test_different_type_is_a_different_key(self, journal):
        journal.record("m1", "inbound_fee", 10, "req-1", "inbound")
        journal.record("m1", "outbound_fee", 0, "req-1", "inbound")

        assert len(journal.transactions()) == 2

    def test_negative_amount_rejected(self, journal):
        with pytest.raises(InvalidAmountError):
            journal.record("m1", "dispatch_fee", -1, "ord-1", "orders")
        assert journal.transactions() == []

    def test_non_numeric_amount_rejected(self, journal):
        with pytest.raises(InvalidAmountError):
            journal.record("m1", "dispatch_fee", "ten", "ord-1", "orders")

    def test_lookup_by_key(self, journal):
        txn = journal.record("m1", "dispatch_fee", 7, "ord-1", "orders")
        assert journal.get_by_key("orders:dispatch_fee:ord-1") is txn


class TestReceivedPayment:
    """Tests for FeeJournal.record_received_payment."""

    def test_payment_recorded(self, journal):
        txn = journal.record_received_payment("m1", "500", notes="NEFT", monthly_terms="2024-01")

        assert txn.transaction_type is TransactionType.RECEIVED_PAYMENT
        assert txn.amount == Decimal("500.00")
        assert txn.notes == "NEFT"
        assert txn.monthly_terms == "2024-01"

    def test_each_unreferenced_payment_is_new(self, journal):
        journal.record_received_payment("m1", 10)
        journal.record_received_payment("m1", 10)
        assert len(journal.transactions(transaction_type="received_payment")) == 2

    def test_reference_makes_payment_idempotent(self, journal):
        first = journal.record_received_payment("m1", 10, reference="UTR123")
        again = journal.record_received_payment("m1", 10, reference="UTR123")

        assert again is first

    @pytest.mark.parametrize("amount", [0, -5, "0.00"])
    def test_non_positive_rejected(self, journal, amount):
        with pytest.raises(InvalidAmountError):
            journal.record_received_payment("m1", amount)


class TestStatement:
    """Tests for statements and filters."""

    def test_pending_is_charges_minus_received(self, journal):
        journal.record("m1", "dispatch_fee", 17, "ord-1", "orders")
        journal.record("m1", "inbound_fee", 15, "inb-1", "inbound")
        journal.record_received_payment("m1", 20)
        journal.record("m2", "dispatch_fee", 99, "ord-2", "orders")

        statement = journal.statement("m1")

        assert statement.total_charges == Decimal("32.00")
        assert statement.total_received == Decimal("20.00")
        assert statement.pending == Decimal("12.00")
        assert statement.transaction_count == 3
        assert dict(statement.charges_by_type) == {
            TransactionType.DISPATCH_FEE: Decimal("17.00"),
            TransactionType.INBOUND_FEE: Decimal("15.00"),
        }

    def test_statement_for_one_month(self, journal, deterministic_clock):
        journal.record("m1", "dispatch_fee", 17, "ord-1", "orders")
        deterministic_clock.set_time(datetime(2024, 2, 3, tzinfo=timezone.utc))
        journal.record("m1", "dispatch_fee", 8, "ord-2", "orders")

        february = journal.statement("m1", period="2024-02")

        assert february.total_charges == Decimal("8.00")
        assert february.period == "2024-02"
        assert [t.amount for t in journal.transactions(period="2024-01")] == [Decimal("17.00")]

    def test_empty_statement(self):
        statement = build_statement("m9", [])

        assert statement.pending == Decimal("0")
        assert statement.charges_by_type == ()
