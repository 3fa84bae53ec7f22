"""
Inventory Pure Functions (``fulfillment_modules.inventory.helpers``).

Responsibility
--------------
Stateless rules used by the ledger: quantity validation, threshold
classification, and the sign of an operator adjustment.

Failure Modes
-------------
- ``validate_quantity`` raises ``InvalidQuantityError`` for bools,
  non-integers and (unless allowed) negatives.
- ``signed_adjustment`` raises ``InvalidFieldValueError`` for an unknown
  reason.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from fulfillment_kernel.exceptions import InvalidFieldValueError, InvalidQuantityError
from fulfillment_modules.inventory.models import (
    DECREMENT_REASONS,
    INCREMENT_REASONS,
    AdjustmentReason,
    StockStatus,
)


def validate_quantity(value: Any, field: str = "quantity", allow_negative: bool = False) -> int:
    """
    Return ``value`` as an ``int`` or raise ``InvalidQuantityError``.

    Integral ``Decimal`` values are accepted; ``bool`` and floats are not.
    """
    if isinstance(value, bool):
        raise InvalidQuantityError(value, field)
    if isinstance(value, Decimal):
        if not value.is_finite() or value != value.to_integral_value():
            raise InvalidQuantityError(value, field)
        value = int(value)
    if not isinstance(value, int):
        raise InvalidQuantityError(value, field)
    if value < 0 and not allow_negative:
        raise InvalidQuantityError(value, field)
    return value


def is_low_stock(quantity: int, min_stock_level: int) -> bool:
    """Low when a minimum is set and stock is at or below it."""
    return min_stock_level > 0 and quantity <= min_stock_level


def classify_stock_level(quantity: int, min_stock_level: int, max_stock_level: int) -> StockStatus:
    if is_low_stock(quantity, min_stock_level):
        return StockStatus.LOW
    if max_stock_level > 0 and quantity > max_stock_level:
        return StockStatus.OVER
    return StockStatus.OK


def parse_reason(reason: AdjustmentReason | str) -> AdjustmentReason:
    if isinstance(reason, AdjustmentReason):
        return reason
    try:
        return AdjustmentReason(str(reason).strip().lower())
    except ValueError:
        raise InvalidFieldValueError("reason", reason, "unknown adjustment reason") from None


def signed_adjustment(reason: AdjustmentReason | str, quantity_change: int) -> int:
    """
    Signed quantity change for an operator adjustment.

    Decrement reasons (damage, loss, sale, outbound) always subtract and
    increment reasons always add, whatever sign was entered; a plain
    ``adjustment`` keeps the entered sign.
    """
    parsed = parse_reason(reason)
    if parsed in DECREMENT_REASONS:
        return -abs(quantity_change)
    if parsed in INCREMENT_REASONS:
        return abs(quantity_change)
    return quantity_change
