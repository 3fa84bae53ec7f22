"""
Module: fulfillment_engines
Responsibility:
    Package entrypoint that re-exports all public symbols from the pure
    calculation engine sub-modules.  This is the canonical import surface
    for higher layers (fulfillment_modules, fulfillment_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import fulfillment_kernel (domain values, logging).
    MUST NOT import fulfillment_modules, fulfillment_services or
    fulfillment_config.

Invariants enforced:
    - Purity: engines never read the clock or touch I/O.
    - Decimal-only arithmetic for currency and weight.
    - Totality: a product missing from the lookup contributes zero; fee
      and weight engines never raise mid-sum.

Usage:
    from fulfillment_engines import dispatch_fee, volumetric_weight_kg
    from fulfillment_engines.fees import FeeSchedule, DEFAULT_FEE_SCHEDULE
"""

from fulfillment_engines.fees import (
    DEFAULT_FEE_SCHEDULE,
    FeeComponents,
    FeeSchedule,
    OrderFeeBreakdown,
    OrderFeeLine,
    OrderFeeSummary,
    PackingTier,
    PackingType,
    dispatch_fee,
    inbound_fee,
    order_fee_breakdown,
    order_packing_fee,
    order_price,
    per_item_fee_components,
    resolve_packing_type,
    summarize_order_fees,
)
from fulfillment_engines.tracer import compute_input_fingerprint, traced_engine
from fulfillment_engines.weight import (
    VOLUMETRIC_DIVISOR,
    WeightBreakdown,
    billable_weight_kg,
    item_weight_kg,
    product_weights,
    total_weight_kg,
    volumetric_weight_kg,
)

__all__ = [
    "DEFAULT_FEE_SCHEDULE",
    "FeeComponents",
    "FeeSchedule",
    "OrderFeeBreakdown",
    "OrderFeeLine",
    "OrderFeeSummary",
    "PackingTier",
    "PackingType",
    "dispatch_fee",
    "inbound_fee",
    "order_fee_breakdown",
    "order_packing_fee",
    "order_price",
    "per_item_fee_components",
    "resolve_packing_type",
    "summarize_order_fees",
    "compute_input_fingerprint",
    "traced_engine",
    "VOLUMETRIC_DIVISOR",
    "WeightBreakdown",
    "billable_weight_kg",
    "item_weight_kg",
    "product_weights",
    "total_weight_kg",
    "volumetric_weight_kg",
]
