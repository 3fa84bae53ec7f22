"""
Config -> Engine Bridges.

Converts a validated ``FeeScheduleDef`` into the engine-level
``FeeSchedule``.  This lives in fulfillment_config (the producer) because
the engines must NEVER import fulfillment_config.

Usage:
    from fulfillment_config.bridges import to_fee_schedule

    schedule = to_fee_schedule(load_fee_schedule(path))
"""

from __future__ import annotations

from fulfillment_config.schema import FeeScheduleDef
from fulfillment_engines.fees import FeeSchedule, PackingTier, PackingType


def to_fee_schedule(definition: FeeScheduleDef) -> FeeSchedule:
    """Build a runtime ``FeeSchedule``; expects a definition that passed validation."""
    tiers = {
        PackingType(tier.packing_type): PackingTier(tier.base_fee, tier.increment_fee)
        for tier in definition.tiers
    }
    aliases = {label: PackingType(target) for label, target in definition.aliases}
    return FeeSchedule(
        packing_tiers=tiers,
        default_packing_type=PackingType(definition.default_packing_type),
        base_weight_kg=definition.base_weight_kg,
        weight_step_kg=definition.weight_step_kg,
        inbound_rate_per_step=definition.inbound_rate_per_step,
        tracking_fee=definition.tracking_fee,
        box_cutting_fee=definition.box_cutting_fee,
        order_unit_price=definition.order_unit_price,
        volumetric_divisor=definition.volumetric_divisor,
        packing_aliases=aliases,
        schedule_id=definition.schedule_id,
        version=definition.version,
        currency=definition.currency,
    )
