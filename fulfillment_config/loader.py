"""
Configuration Loader (``fulfillment_config.loader``).

Responsibility
--------------
Loads fee schedule YAML files and parses them into typed
``fulfillment_config.schema`` dataclass instances.  This is start-up
tooling -- the single public entry point for runtime config is
``fulfillment_config.get_active_schedule()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Numeric values are parsed to ``Decimal``; YAML floats go through
  ``str()`` so ``0.5`` stays exactly ``Decimal("0.5")``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Non-numeric amounts  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from fulfillment_config.schema import FeeScheduleDef, PackingTierDef
from fulfillment_kernel.domain.values import to_decimal


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _decimal(section: dict[str, Any], key: str, default: Decimal) -> Decimal:
    if key not in section or section[key] is None:
        return default
    return to_decimal(section[key], key)


def parse_tiers(data: dict[str, Any]) -> tuple[PackingTierDef, ...]:
    """Parse the ``packing.tiers`` mapping, preserving YAML order."""
    tiers = []
    for name, tier in (data or {}).items():
        tiers.append(
            PackingTierDef(
                packing_type=str(name),
                base_fee=to_decimal(tier["base_fee"], f"{name}.base_fee"),
                increment_fee=to_decimal(tier["increment_fee"], f"{name}.increment_fee"),
            )
        )
    return tuple(tiers)


def parse_fee_schedule(data: dict[str, Any]) -> FeeScheduleDef:
    """
    Parse a fee schedule dict (as loaded from YAML).

    Raises:
        KeyError: if ``schedule_id`` or ``packing.tiers`` is missing.
        ValueError: if an amount is not numeric.
    """
    weights = data.get("weights") or {}
    packing = data.get("packing") or {}
    inbound = data.get("inbound") or {}
    orders = data.get("orders") or {}

    aliases = tuple(
        (str(label).strip().lower(), str(target))
        for label, target in (packing.get("aliases") or {}).items()
    )

    return FeeScheduleDef(
        schedule_id=str(data["schedule_id"]),
        version=int(data.get("version", 1)),
        currency=str(data.get("currency", "INR")),
        tiers=parse_tiers(packing["tiers"]),
        default_packing_type=str(packing.get("default_type", "normal")),
        aliases=aliases,
        volumetric_divisor=_decimal(weights, "volumetric_divisor", Decimal("5000")),
        base_weight_kg=_decimal(weights, "base_weight_kg", Decimal("0.5")),
        weight_step_kg=_decimal(weights, "weight_step_kg", Decimal("0.5")),
        inbound_rate_per_step=_decimal(inbound, "rate_per_step", Decimal("5")),
        order_unit_price=_decimal(orders, "unit_price", Decimal("7")),
        tracking_fee=_decimal(orders, "tracking_fee", Decimal("3")),
        box_cutting_fee=_decimal(orders, "box_cutting_fee", Decimal("2")),
        checksum=compute_checksum(data),
    )


def load_fee_schedule(path: Path) -> FeeScheduleDef:
    """Load and parse a fee schedule YAML file."""
    return parse_fee_schedule(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
