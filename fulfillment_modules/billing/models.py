"""
Billing Domain Models (``fulfillment_modules.billing.models``).

Fee transactions charged to merchants by the warehouse, payments received
from them, and the per-merchant statement that nets the two.  All amounts
are ``Decimal`` rounded to 2 places.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum

from fulfillment_kernel.domain.values import ZERO


class TransactionType(str, Enum):
    """Kinds of journal entries."""
    DISPATCH_FEE = "dispatch_fee"
    INBOUND_FEE = "inbound_fee"
    OUTBOUND_FEE = "outbound_fee"
    RECEIVED_PAYMENT = "received_payment"

    @property
    def is_charge(self) -> bool:
        return self is not TransactionType.RECEIVED_PAYMENT


@dataclass(frozen=True)
class FeeTransaction:
    """
    One journal entry.

    ``idempotency_key`` (``producer:type:entity_id``) is unique per journal;
    recording the same key again returns this transaction unchanged.
    """
    id: str
    merchant_id: str
    transaction_type: TransactionType
    amount: Decimal
    occurred_at: datetime
    idempotency_key: str
    quantity: int | None = None
    order_id: str | None = None
    request_id: str | None = None
    notes: str = ""
    monthly_terms: str | None = None

    @property
    def period(self) -> str:
        """Billing month, ``YYYY-MM``."""
        return self.occurred_at.strftime("%Y-%m")


@dataclass(frozen=True)
class MerchantStatement:
    """Charges, receipts and the outstanding balance of one merchant."""
    merchant_id: str
    total_charges: Decimal = ZERO
    total_received: Decimal = ZERO
    transaction_count: int = 0
    period: str | None = None
    charges_by_type: tuple[tuple[TransactionType, Decimal], ...] = ()

    @property
    def pending(self) -> Decimal:
        return self.total_charges - self.total_received
