"""
Weight Calculator.

Pure functions with deterministic behavior. No I/O.

Couriers bill on whichever is larger: the parcel's actual mass or its
volumetric weight (the space it occupies, derived from box dimensions).
This engine computes both and reconciles them into the billable weight
used by every fee calculation.

Usage:
    from fulfillment_engines.weight import (
        billable_weight_kg,
        product_weights,
        volumetric_weight_kg,
    )

    vol = volumetric_weight_kg(30, 20, 10)       # Decimal("1.2")
    billable_weight_kg(Decimal("0.8"), vol)      # Decimal("1.2")
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Protocol

from fulfillment_engines.tracer import traced_engine
from fulfillment_kernel.domain.values import NumberLike, ZERO, round_weight, to_decimal
from fulfillment_kernel.logging_config import get_logger

logger = get_logger("engines.weight")


VOLUMETRIC_DIVISOR = Decimal("5000")


class WeighableProduct(Protocol):
    """Structural type for anything carrying product physical attributes."""

    weight_kg: Decimal
    length_cm: Decimal
    breadth_cm: Decimal
    height_cm: Decimal


class ItemLike(Protocol):
    """Structural type for an order / request line."""

    product_id: str
    quantity: int
    weight_kg: Decimal | None


ProductLookup = Callable[[str], Any]


@dataclass(frozen=True)
class WeightBreakdown:
    """Actual, volumetric and billable weight of one unit of a product."""

    actual_kg: Decimal
    volumetric_kg: Decimal

    @property
    def billable_kg(self) -> Decimal:
        return billable_weight_kg(self.actual_kg, self.volumetric_kg)


@traced_engine("volumetric_weight", "1.0", ("length_cm", "breadth_cm", "height_cm"))
def volumetric_weight_kg(
    length_cm: NumberLike | None,
    breadth_cm: NumberLike | None,
    height_cm: NumberLike | None,
    divisor: Decimal = VOLUMETRIC_DIVISOR,
) -> Decimal:
    """
    Volumetric weight in kg: ``(l * b * h) / divisor``.

    A missing or zero dimension means the box size is unknown, not that the
    box has no volume, so the result is 0 and actual weight decides.
    """
    dims = [
        to_decimal(length_cm, "length_cm"),
        to_decimal(breadth_cm, "breadth_cm"),
        to_decimal(height_cm, "height_cm"),
    ]
    if any(d <= 0 for d in dims):
        return ZERO
    return dims[0] * dims[1] * dims[2] / divisor


def billable_weight_kg(
    actual_weight_kg: NumberLike | None,
    volumetric_weight_kg: NumberLike | None,
) -> Decimal:
    """Billable weight: ``max(actual, volumetric)``; never below actual mass."""
    actual = to_decimal(actual_weight_kg, "actual_weight_kg")
    volumetric = to_decimal(volumetric_weight_kg, "volumetric_weight_kg")
    return max(actual, volumetric)


def product_weights(
    product: WeighableProduct,
    divisor: Decimal = VOLUMETRIC_DIVISOR,
) -> WeightBreakdown:
    """Weight breakdown for one unit of ``product``."""
    return WeightBreakdown(
        actual_kg=to_decimal(product.weight_kg, "weight_kg"),
        volumetric_kg=volumetric_weight_kg(
            product.length_cm,
            product.breadth_cm,
            product.height_cm,
            divisor=divisor,
        ),
    )


def item_weight_kg(
    item: ItemLike,
    lookup: ProductLookup,
    divisor: Decimal = VOLUMETRIC_DIVISOR,
) -> Decimal:
    """
    Per-unit billable weight of a line.

    The line's own ``weight_kg`` override wins; otherwise the product's
    billable weight.  An unknown product weighs 0.
    """
    override = getattr(item, "weight_kg", None)
    if override is not None:
        return to_decimal(override, "weight_kg")
    product = lookup(item.product_id)
    if product is None:
        logger.debug(
            "item_weight_unknown_product",
            extra={"product_id": item.product_id},
        )
        return ZERO
    return product_weights(product, divisor).billable_kg


def total_weight_kg(
    items: Iterable[ItemLike],
    lookup: ProductLookup,
    packed_weight_kg: NumberLike | None = None,
    divisor: Decimal = VOLUMETRIC_DIVISOR,
) -> Decimal:
    """
    Total billable weight of a set of lines.

    An operator-entered ``packed_weight_kg`` overrides the computed sum.
    The result is unrounded; use ``round_weight`` for reporting.
    """
    if packed_weight_kg is not None:
        return to_decimal(packed_weight_kg, "packed_weight_kg")
    return sum(
        (item_weight_kg(item, lookup, divisor) * item.quantity for item in items),
        ZERO,
    )


__all__ = [
    "VOLUMETRIC_DIVISOR",
    "ItemLike",
    "ProductLookup",
    "WeighableProduct",
    "WeightBreakdown",
    "billable_weight_kg",
    "item_weight_kg",
    "product_weights",
    "round_weight",
    "total_weight_kg",
    "volumetric_weight_kg",
]
