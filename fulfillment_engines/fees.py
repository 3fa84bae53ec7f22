"""
Packing, Dispatch and Inbound Fee Engine.

Pure functions with deterministic behavior. No I/O.

This engine prices warehouse work from product physical attributes.  Every
fee is computed on billable weight (see ``fulfillment_engines.weight``) and
charged in whole 0.5 kg steps, rounded up.

Fee families:
- Dispatch fee: tiered by packing type -- a base fee covers the first
  0.5 kg, each further (started) 0.5 kg adds a tier increment.
- Inbound fee: flat rate per (started) 0.5 kg of stock received.
- Per-item components: packing (explicit override or dispatch fee),
  transportation, warehousing (rate per kg).
- Order packing fee: per-item components times quantity plus order-level
  extras (box fee, box cutting, tracking).

Usage:
    from fulfillment_engines.fees import dispatch_fee, inbound_fee

    dispatch_fee(Decimal("1.2"), Decimal("1.2"), "normal")   # Decimal("11.00")
    inbound_fee(Decimal("0.6"), Decimal("0.6"))              # Decimal("10.00")

All tier values come from a ``FeeSchedule``; ``DEFAULT_FEE_SCHEDULE``
carries the standard price list and matches
``fulfillment_config/sets/default.yaml``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_CEILING
from enum import Enum
from typing import Protocol

from fulfillment_engines.tracer import traced_engine
from fulfillment_engines.weight import (
    ItemLike,
    ProductLookup,
    VOLUMETRIC_DIVISOR,
    WeighableProduct,
    billable_weight_kg,
    volumetric_weight_kg,
)
from fulfillment_kernel.domain.values import (
    NumberLike,
    ZERO,
    optional_decimal,
    round_money,
    to_decimal,
)
from fulfillment_kernel.logging_config import get_logger

logger = get_logger("engines.fees")


# ============================================================================
# Price list
# ============================================================================


class PackingType(str, Enum):
    """Pricing tiers for dispatch packing."""

    NORMAL = "normal"
    FRAGILE = "fragile"
    ECO_FRAGILE = "eco_fragile"


@dataclass(frozen=True)
class PackingTier:
    """Dispatch price for one packing type."""

    base_fee: Decimal
    increment_fee: Decimal

    def __post_init__(self) -> None:
        if self.base_fee < 0:
            raise ValueError("base_fee must be non-negative")
        if self.increment_fee < 0:
            raise ValueError("increment_fee must be non-negative")


# Labels used by the merchant dashboard's product form.
LEGACY_PACKING_ALIASES: Mapping[str, PackingType] = {
    "normal packing": PackingType.NORMAL,
    "fragile packing": PackingType.FRAGILE,
    "eco friendly fragile packing": PackingType.ECO_FRAGILE,
    "eco-fragile": PackingType.ECO_FRAGILE,
}


@dataclass(frozen=True)
class FeeSchedule:
    """
    Complete price list for the fee engine.

    Attributes:
        packing_tiers: Dispatch tier per packing type.
        default_packing_type: Tier used for unrecognized packing types.
        base_weight_kg: Weight covered by a tier's base fee.
        weight_step_kg: Size of each chargeable weight step.
        inbound_rate_per_step: Inbound fee per started weight step.
        tracking_fee: Flat per-order tracking charge.
        box_cutting_fee: Charge when the operator cut a custom box.
        order_unit_price: Legacy flat price per ordered unit.
        volumetric_divisor: cm^3 per volumetric kilogram.
    """

    packing_tiers: Mapping[PackingType, PackingTier]
    default_packing_type: PackingType = PackingType.NORMAL
    base_weight_kg: Decimal = Decimal("0.5")
    weight_step_kg: Decimal = Decimal("0.5")
    inbound_rate_per_step: Decimal = Decimal("5")
    tracking_fee: Decimal = Decimal("3")
    box_cutting_fee: Decimal = Decimal("2")
    order_unit_price: Decimal = Decimal("7")
    volumetric_divisor: Decimal = VOLUMETRIC_DIVISOR
    packing_aliases: Mapping[str, PackingType] = field(
        default_factory=lambda: dict(LEGACY_PACKING_ALIASES)
    )
    schedule_id: str = "default"
    version: int = 1
    currency: str = "INR"

    def __post_init__(self) -> None:
        if self.default_packing_type not in self.packing_tiers:
            raise ValueError(
                f"default_packing_type {self.default_packing_type.value} has no tier"
            )
        if self.weight_step_kg <= 0:
            raise ValueError("weight_step_kg must be positive")
        if self.base_weight_kg < 0:
            raise ValueError("base_weight_kg must be non-negative")
        if self.volumetric_divisor <= 0:
            raise ValueError("volumetric_divisor must be positive")
        for attr in ("inbound_rate_per_step", "tracking_fee", "box_cutting_fee", "order_unit_price"):
            if getattr(self, attr) < 0:
                raise ValueError(f"{attr} must be non-negative")

    def tier_for(self, packing_type: PackingType) -> PackingTier:
        return self.packing_tiers.get(
            packing_type, self.packing_tiers[self.default_packing_type]
        )


DEFAULT_FEE_SCHEDULE = FeeSchedule(
    packing_tiers={
        PackingType.NORMAL: PackingTier(Decimal("7"), Decimal("2")),
        PackingType.FRAGILE: PackingTier(Decimal("11"), Decimal("4")),
        PackingType.ECO_FRAGILE: PackingTier(Decimal("12"), Decimal("5")),
    },
)


def resolve_packing_type(
    value: PackingType | str | None,
    schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
) -> PackingType:
    """
    Map a raw packing type to a tier.

    Accepts enum members, canonical values ("fragile"), and the legacy
    dashboard labels ("fragile packing").  Anything unrecognized falls
    back to the schedule's default tier.
    """
    if isinstance(value, PackingType):
        return value
    if value is None or not str(value).strip():
        return schedule.default_packing_type
    key = str(value).strip().lower()
    try:
        return PackingType(key)
    except ValueError:
        pass
    alias = schedule.packing_aliases.get(key)
    if alias is not None:
        return alias
    logger.warning(
        "packing_type_unrecognized",
        extra={
            "packing_type": str(value),
            "fallback": schedule.default_packing_type.value,
        },
    )
    return schedule.default_packing_type


def _steps(weight: Decimal, step: Decimal) -> Decimal:
    """Number of started ``step``-sized units in ``weight`` (ceiling)."""
    if weight <= 0:
        return ZERO
    return (weight / step).to_integral_value(rounding=ROUND_CEILING)


# ============================================================================
# Fee functions
# ============================================================================


@traced_engine(
    "dispatch_fee",
    "1.0",
    ("actual_weight_kg", "volumetric_weight_kg", "packing_type"),
)
def dispatch_fee(
    actual_weight_kg: NumberLike | None,
    volumetric_weight_kg: NumberLike | None,
    packing_type: PackingType | str | None = None,
    schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
) -> Decimal:
    """
    Packing & dispatch fee for one unit.

    Formula:
        weight = max(actual, volumetric)
        weight <= 0.5          -> base
        otherwise              -> base + ceil((weight - 0.5) / 0.5) * increment
    """
    weight = billable_weight_kg(actual_weight_kg, volumetric_weight_kg)
    tier = schedule.tier_for(resolve_packing_type(packing_type, schedule))
    if weight <= schedule.base_weight_kg:
        return round_money(tier.base_fee)
    extra_steps = _steps(weight - schedule.base_weight_kg, schedule.weight_step_kg)
    return round_money(tier.base_fee + extra_steps * tier.increment_fee)


@traced_engine("inbound_fee", "1.0", ("actual_weight_kg", "volumetric_weight_kg"))
def inbound_fee(
    actual_weight_kg: NumberLike | None,
    volumetric_weight_kg: NumberLike | None,
    schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
) -> Decimal:
    """Inbound fee: ``ceil(max(actual, volumetric) / 0.5) * 5``."""
    weight = billable_weight_kg(actual_weight_kg, volumetric_weight_kg)
    return round_money(_steps(weight, schedule.weight_step_kg) * schedule.inbound_rate_per_step)


# ============================================================================
# Per-item breakdown
# ============================================================================


class FeeProduct(WeighableProduct, Protocol):
    """Structural type for a product as seen by the fee engine."""

    packing_type: str
    item_packing_fee: Decimal | None
    transportation_fee: Decimal | None
    warehousing_rate_per_kg: Decimal | None


@dataclass(frozen=True)
class FeeComponents:
    """
    Per-unit fee split of a product, unrounded.

    The three-way split is preserved as-is for line totals and for
    aggregate settlement summaries.  Rounding to money happens once, on
    the line and order totals, so sub-cent rates do not drift with
    quantity.
    """

    packing: Decimal = ZERO
    transportation: Decimal = ZERO
    warehousing: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.packing + self.transportation + self.warehousing


def per_item_fee_components(
    product: FeeProduct,
    schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
) -> FeeComponents:
    """
    Fee components for one unit of ``product``.

    - packing: explicit ``item_packing_fee`` when set, else the dispatch
      fee for the product's weight, dimensions and packing type.
    - transportation: ``transportation_fee`` (default 0).
    - warehousing: ``warehousing_rate_per_kg * weight_kg`` (defaults 0).
    """
    weight = to_decimal(product.weight_kg, "weight_kg")
    override = optional_decimal(product.item_packing_fee, "item_packing_fee")
    if override is not None:
        packing = max(override, ZERO)
    else:
        packing = dispatch_fee(
            weight,
            volumetric_weight_kg(
                product.length_cm,
                product.breadth_cm,
                product.height_cm,
                divisor=schedule.volumetric_divisor,
            ),
            product.packing_type,
            schedule=schedule,
        )
    transportation = max(to_decimal(product.transportation_fee, "transportation_fee"), ZERO)
    rate = max(to_decimal(product.warehousing_rate_per_kg, "warehousing_rate_per_kg"), ZERO)
    return FeeComponents(
        packing=packing,
        transportation=transportation,
        warehousing=rate * weight,
    )


# ============================================================================
# Order-level fees
# ============================================================================


class FeeOrder(Protocol):
    """Structural type for an order as seen by the fee engine."""

    items: Sequence[ItemLike]
    box_fee: Decimal
    box_cutting: bool


@dataclass(frozen=True)
class OrderFeeLine:
    """Fee line for one order item."""

    product_id: str
    quantity: int
    components: FeeComponents
    product_found: bool = True

    @property
    def amount(self) -> Decimal:
        """Unrounded ``components.total * quantity``."""
        return self.components.total * self.quantity

    @property
    def line_total(self) -> Decimal:
        return round_money(self.amount)


@dataclass(frozen=True)
class OrderFeeBreakdown:
    """
    Full packing-fee breakdown of an order.

    ``total`` equals the sum of unrounded line amounts plus box fee, box
    cutting charge and tracking fee, rounded once.  Missing products contribute zero lines.
    """

    lines: tuple[OrderFeeLine, ...]
    box_fee: Decimal
    box_cutting_fee: Decimal
    tracking_fee: Decimal

    @property
    def items_total(self) -> Decimal:
        return round_money(sum((line.amount for line in self.lines), ZERO))

    @property
    def item_packing_total(self) -> Decimal:
        return round_money(sum((line.components.packing * line.quantity for line in self.lines), ZERO))

    @property
    def transportation_total(self) -> Decimal:
        return round_money(sum((line.components.transportation * line.quantity for line in self.lines), ZERO))

    @property
    def warehousing_total(self) -> Decimal:
        return round_money(sum((line.components.warehousing * line.quantity for line in self.lines), ZERO))

    @property
    def total(self) -> Decimal:
        items = sum((line.amount for line in self.lines), ZERO)
        return round_money(items + self.box_fee + self.box_cutting_fee + self.tracking_fee)

    @property
    def missing_product_ids(self) -> tuple[str, ...]:
        return tuple(line.product_id for line in self.lines if not line.product_found)


@traced_engine("order_fee_breakdown", "1.0")
def order_fee_breakdown(
    order: FeeOrder,
    lookup: ProductLookup,
    schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
) -> OrderFeeBreakdown:
    """Line-by-line packing fee of ``order``; never raises for unknown products."""
    lines: list[OrderFeeLine] = []
    for item in order.items:
        product = lookup(item.product_id)
        if product is None:
            lines.append(
                OrderFeeLine(item.product_id, item.quantity, FeeComponents(), product_found=False)
            )
            continue
        lines.append(
            OrderFeeLine(item.product_id, item.quantity, per_item_fee_components(product, schedule))
        )

    missing = [line.product_id for line in lines if not line.product_found]
    if missing:
        logger.warning(
            "order_fee_missing_products",
            extra={"product_ids": missing},
        )

    box_fee = max(to_decimal(getattr(order, "box_fee", None), "box_fee"), ZERO)
    return OrderFeeBreakdown(
        lines=tuple(lines),
        box_fee=round_money(box_fee),
        box_cutting_fee=round_money(
            schedule.box_cutting_fee if getattr(order, "box_cutting", False) else ZERO
        ),
        tracking_fee=round_money(schedule.tracking_fee),
    )


def order_packing_fee(
    order: FeeOrder,
    lookup: ProductLookup,
    schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
) -> Decimal:
    """
    Order packing fee:
    ``sum((packing + transportation + warehousing) * qty) + box_fee
    + (box_cutting ? 2 : 0) + tracking_fee``.
    """
    return order_fee_breakdown(order, lookup, schedule).total


def order_price(
    items: Iterable[ItemLike],
    schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
) -> Decimal:
    """Legacy flat order price: total units times the unit price."""
    units = sum(item.quantity for item in items)
    return round_money(units * schedule.order_unit_price)


# ============================================================================
# Aggregate summaries
# ============================================================================


@dataclass(frozen=True)
class OrderFeeSummary:
    """Component totals across many orders (e.g. one settlement month)."""

    order_count: int = 0
    item_packing: Decimal = ZERO
    transportation: Decimal = ZERO
    warehousing: Decimal = ZERO
    box_fee: Decimal = ZERO
    box_cutting: Decimal = ZERO
    tracking: Decimal = ZERO
    total: Decimal = ZERO


def summarize_order_fees(breakdowns: Iterable[OrderFeeBreakdown]) -> OrderFeeSummary:
    """
    Sum component totals over ``breakdowns``.

    Components are summed unrounded and rounded once; ``total`` is the sum
    of the per-order totals actually charged.
    """
    count = 0
    item_packing = transportation = warehousing = ZERO
    box_fee = box_cutting = tracking = total = ZERO
    for b in breakdowns:
        count += 1
        for line in b.lines:
            item_packing += line.components.packing * line.quantity
            transportation += line.components.transportation * line.quantity
            warehousing += line.components.warehousing * line.quantity
        box_fee += b.box_fee
        box_cutting += b.box_cutting_fee
        tracking += b.tracking_fee
        total += b.total
    return OrderFeeSummary(
        order_count=count,
        item_packing=round_money(item_packing),
        transportation=round_money(transportation),
        warehousing=round_money(warehousing),
        box_fee=round_money(box_fee),
        box_cutting=round_money(box_cutting),
        tracking=round_money(tracking),
        total=round_money(total),
    )
