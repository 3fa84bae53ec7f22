"""
Fee Journal (``fulfillment_modules.billing.journal``).

Responsibility
--------------
Append-only record of every fee the lifecycles charge and every payment
the warehouse receives, with per-merchant statements.

Invariants
----------
- Append-only.  Transactions are never edited or removed.
- Idempotent recording.  A transaction is keyed by
  ``producer:transaction_type:entity_id``; a retried transition that
  records the same key gets the original transaction back.
- Charges are non-negative; received payments are strictly positive.

Failure Modes
-------------
- ``InvalidAmountError`` for a negative charge or a non-positive payment.
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from fulfillment_kernel.domain.clock import Clock, SystemClock
from fulfillment_kernel.domain.values import NumberLike, ZERO, round_money, to_decimal
from fulfillment_kernel.exceptions import InvalidAmountError
from fulfillment_kernel.logging_config import get_logger
from fulfillment_kernel.utils.idempotency import generate_idempotency_key
from fulfillment_kernel.utils.ids import IdFactory, generate_entity_id
from fulfillment_modules.billing.models import (
    FeeTransaction,
    MerchantStatement,
    TransactionType,
)

logger = get_logger("modules.billing.journal")

PAYMENTS_PRODUCER = "billing"


def _amount(value: NumberLike) -> Decimal:
    try:
        return to_decimal(value, "amount")
    except ValueError:
        raise InvalidAmountError(value, "not a number") from None


class FeeJournal:
    """In-memory, append-only fee journal."""

    def __init__(
        self,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._new_id = id_factory or generate_entity_id
        self._transactions: list[FeeTransaction] = []
        self._by_key: dict[str, FeeTransaction] = {}

    def record(
        self,
        merchant_id: str,
        transaction_type: TransactionType | str,
        amount: NumberLike,
        entity_id: str,
        producer: str,
        quantity: int | None = None,
        order_id: str | None = None,
        request_id: str | None = None,
        notes: str = "",
        monthly_terms: str | None = None,
    ) -> FeeTransaction:
        """
        Append a transaction, or return the existing one for the same key.

        Raises:
            InvalidAmountError: if ``amount`` is negative or not numeric.
        """
        txn_type = TransactionType(transaction_type)
        key = generate_idempotency_key(producer, txn_type.value, entity_id)
        existing = self._by_key.get(key)
        if existing is not None:
            logger.info(
                "fee_transaction_duplicate",
                extra={"idempotency_key": key, "transaction_id": existing.id},
            )
            return existing

        value = _amount(amount)
        if value < 0:
            raise InvalidAmountError(amount, "must be non-negative")

        txn = FeeTransaction(
            id=self._new_id("txn"),
            merchant_id=merchant_id,
            transaction_type=txn_type,
            amount=round_money(value),
            occurred_at=self._clock.now(),
            idempotency_key=key,
            quantity=quantity,
            order_id=order_id,
            request_id=request_id,
            notes=notes,
            monthly_terms=monthly_terms,
        )
        self._transactions.append(txn)
        self._by_key[key] = txn
        logger.info(
            "fee_transaction_recorded",
            extra={
                "transaction_id": txn.id,
                "merchant_id": merchant_id,
                "transaction_type": txn_type.value,
                "amount": txn.amount,
                "idempotency_key": key,
            },
        )
        return txn

    def record_received_payment(
        self,
        merchant_id: str,
        amount: NumberLike,
        notes: str = "",
        monthly_terms: str | None = None,
        reference: str | None = None,
    ) -> FeeTransaction:
        """
        Record money received from a merchant.

        ``reference`` (e.g. a bank reference) makes the call idempotent;
        without it every call appends a new payment.

        Raises:
            InvalidAmountError: if ``amount`` is not strictly positive.
        """
        value = _amount(amount)
        if value <= 0:
            logger.warning(
                "received_payment_rejected",
                extra={"merchant_id": merchant_id, "amount": str(amount)},
            )
            raise InvalidAmountError(amount)
        return self.record(
            merchant_id=merchant_id,
            transaction_type=TransactionType.RECEIVED_PAYMENT,
            amount=value,
            entity_id=reference or self._new_id("pay"),
            producer=PAYMENTS_PRODUCER,
            notes=notes,
            monthly_terms=monthly_terms,
        )

    def get_by_key(self, idempotency_key: str) -> FeeTransaction | None:
        return self._by_key.get(idempotency_key)

    def transactions(
        self,
        merchant_id: str | None = None,
        transaction_type: TransactionType | str | None = None,
        period: str | None = None,
    ) -> list[FeeTransaction]:
        """Transactions in recording order, optionally filtered."""
        wanted = TransactionType(transaction_type) if transaction_type is not None else None
        return [
            t for t in self._transactions
            if (merchant_id is None or t.merchant_id == merchant_id)
            and (wanted is None or t.transaction_type is wanted)
            and (period is None or t.period == period)
        ]

    def statement(self, merchant_id: str, period: str | None = None) -> MerchantStatement:
        """
        Net position of ``merchant_id``: pending = charges - received.

        ``period`` (``YYYY-MM``) restricts the statement to one month.
        """
        return build_statement(merchant_id, self.transactions(merchant_id, period=period), period)


def build_statement(
    merchant_id: str,
    transactions: Iterable[FeeTransaction],
    period: str | None = None,
) -> MerchantStatement:
    charges = received = ZERO
    count = 0
    by_type: dict[TransactionType, Decimal] = {}
    for t in transactions:
        count += 1
        if t.transaction_type.is_charge:
            charges += t.amount
            by_type[t.transaction_type] = by_type.get(t.transaction_type, ZERO) + t.amount
        else:
            received += t.amount
    return MerchantStatement(
        merchant_id=merchant_id,
        total_charges=round_money(charges),
        total_received=round_money(received),
        transaction_count=count,
        period=period,
        charges_by_type=tuple(
            (tt, round_money(by_type[tt])) for tt in TransactionType if tt in by_type
        ),
    )
