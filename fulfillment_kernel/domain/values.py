"""
Numeric value helpers for currency and weight.

Responsibility:
    Normalise host-supplied numbers into ``Decimal`` and apply the two
    rounding conventions of the kernel: currency to 2 decimal places,
    weights to 3 decimal places (both ROUND_HALF_UP).

Architecture position:
    Kernel > Domain -- pure functions, zero I/O.

Invariants enforced:
    - Arithmetic is Decimal-only.  Floats are accepted at the boundary but
      converted through ``str()`` so ``1.2`` becomes ``Decimal("1.2")``
      rather than its binary approximation.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

MONEY_PLACES = Decimal("0.01")
WEIGHT_PLACES = Decimal("0.001")

ZERO = Decimal("0")

NumberLike = Decimal | int | float | str


def to_decimal(value: NumberLike | None, field: str = "value") -> Decimal:
    """
    Convert a number-like value to ``Decimal``; ``None`` becomes zero.

    Raises:
        ValueError: if the value is a bool, NaN/infinite, or unparseable.
    """
    if value is None:
        return ZERO
    if isinstance(value, bool):
        raise ValueError(f"{field} must be numeric, got bool")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        try:
            result = Decimal(value)
        except (InvalidOperation, TypeError) as exc:
            raise ValueError(f"{field} is not a number: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"{field} must be finite, got {value!r}")
    return result


def optional_decimal(value: NumberLike | None, field: str = "value") -> Decimal | None:
    """Like ``to_decimal`` but keeps ``None`` as the unset sentinel."""
    if value is None:
        return None
    return to_decimal(value, field)


def round_money(value: Decimal) -> Decimal:
    """Round a currency amount to 2 decimal places."""
    return value.quantize(MONEY_PLACES, rounding=ROUND_HALF_UP)


def round_weight(value: Decimal) -> Decimal:
    """Round a weight in kilograms to 3 decimal places."""
    return value.quantize(WEIGHT_PLACES, rounding=ROUND_HALF_UP)
