"""
Fee schedule configuration schema.

Defines the human-authored, reviewable source artifact for the warehouse
price list.  YAML files are parsed into these types by the loader,
validated by the validator, and bridged into the engine-level
``FeeSchedule`` by ``bridges.to_fee_schedule``.

Key distinction:
  FeeScheduleDef = source artifact (human-authored, versioned, raw strings)
  FeeSchedule    = runtime artifact (typed enums, validated Decimals)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class PackingTierDef:
    """Dispatch tier for one packing type, as written in YAML."""

    packing_type: str
    base_fee: Decimal
    increment_fee: Decimal


@dataclass(frozen=True)
class FeeScheduleDef:
    """A complete price list as authored in YAML.

    Packing types are kept as raw strings here so that the validator can
    report unknown names instead of failing inside the parser.
    """

    schedule_id: str
    version: int
    currency: str
    tiers: tuple[PackingTierDef, ...]
    default_packing_type: str
    aliases: tuple[tuple[str, str], ...] = ()
    volumetric_divisor: Decimal = Decimal("5000")
    base_weight_kg: Decimal = Decimal("0.5")
    weight_step_kg: Decimal = Decimal("0.5")
    inbound_rate_per_step: Decimal = Decimal("5")
    order_unit_price: Decimal = Decimal("7")
    tracking_fee: Decimal = Decimal("3")
    box_cutting_fee: Decimal = Decimal("2")
    checksum: str = ""
