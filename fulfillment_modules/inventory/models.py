"""
Inventory Domain Models (``fulfillment_modules.inventory.models``).

Responsibility
--------------
Frozen value objects for warehouse stock: per-(product, merchant) records,
the append-only movement log, deltas handed back to the host for
persistence, low-stock alerts, and the typed ``LedgerResult``.

Architecture
------------
Layer: **Modules** -- pure domain data structures.  All dataclasses are
``frozen=True``; the ledger swaps whole records rather than mutating them.
These models carry NO persistence identity and NO I/O.

Invariants
----------
- ``InventoryRecord.quantity`` and both thresholds are non-negative ints.
- A threshold of 0 means "no threshold".

Failure Modes
-------------
- Constructing an ``InventoryRecord`` with a negative or non-integer
  quantity raises ``ValueError`` immediately.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from fulfillment_kernel.exceptions import FulfillmentKernelError

DEFAULT_LOCATION = "Default Warehouse"


class MovementType(Enum):
    """Ledger movement categories."""
    RECEIPT = "receipt"
    ISSUE = "issue"
    ADJUSTMENT = "adjustment"


class AdjustmentReason(Enum):
    """Why an operator corrected stock; the reason fixes the sign."""
    ADJUSTMENT = "adjustment"
    DAMAGE = "damage"
    LOSS = "loss"
    SALE = "sale"
    OUTBOUND = "outbound"
    PURCHASE = "purchase"
    RETURN = "return"
    CORRECTION = "correction"
    FOUND = "found"
    INBOUND = "inbound"


DECREMENT_REASONS: frozenset[AdjustmentReason] = frozenset({
    AdjustmentReason.DAMAGE,
    AdjustmentReason.LOSS,
    AdjustmentReason.SALE,
    AdjustmentReason.OUTBOUND,
})

INCREMENT_REASONS: frozenset[AdjustmentReason] = frozenset({
    AdjustmentReason.PURCHASE,
    AdjustmentReason.RETURN,
    AdjustmentReason.CORRECTION,
    AdjustmentReason.FOUND,
    AdjustmentReason.INBOUND,
})


class StockStatus(Enum):
    """Stock level relative to the record's thresholds."""
    LOW = "low"
    OVER = "over"
    OK = "ok"


def _non_negative_int(value: Any, field: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{field} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{field} must be non-negative, got {value}")


@dataclass(frozen=True)
class InventoryRecord:
    """
    Stock of one product held for one merchant.

    Contract: keyed by ``(product_id, merchant_id)``; replaced, never
    mutated, by ``InventoryLedger``.
    """
    product_id: str
    merchant_id: str
    quantity: int = 0
    min_stock_level: int = 0
    max_stock_level: int = 0
    location: str = DEFAULT_LOCATION
    updated_at: datetime | None = None

    def __post_init__(self):
        _non_negative_int(self.quantity, "quantity")
        _non_negative_int(self.min_stock_level, "min_stock_level")
        _non_negative_int(self.max_stock_level, "max_stock_level")

    @property
    def key(self) -> tuple[str, str]:
        return (self.product_id, self.merchant_id)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> InventoryRecord:
        """Build a record from a host mapping with camelCase keys."""
        def pick(*keys: str, default: Any = None) -> Any:
            for key in keys:
                value = record.get(key)
                if value is not None and value != "":
                    return value
            return default

        return cls(
            product_id=str(pick("productId", "product_id")),
            merchant_id=str(pick("merchantId", "merchant_id")),
            quantity=int(pick("quantity", default=0)),
            min_stock_level=int(pick("minStockLevel", "min_stock_level", default=0)),
            max_stock_level=int(pick("maxStockLevel", "max_stock_level", default=0)),
            location=str(pick("location", default=DEFAULT_LOCATION)),
        )


@dataclass(frozen=True)
class StockMovement:
    """An append-only ledger entry for one committed mutation."""
    product_id: str
    merchant_id: str
    movement_type: MovementType
    quantity_change: int
    resulting_quantity: int
    occurred_at: datetime
    reason: str = ""
    reference: str | None = None
    notes: str = ""


@dataclass(frozen=True)
class InventoryDelta:
    """A committed quantity change, for the host to persist."""
    product_id: str
    merchant_id: str
    quantity_change: int
    new_quantity: int


@dataclass(frozen=True)
class LowStockAlert:
    """Raised when a decrement leaves stock at or below the minimum level."""
    product_id: str
    merchant_id: str
    quantity: int
    min_stock_level: int


@dataclass(frozen=True)
class StockLevelLine:
    """One row of ``InventoryLedger.stock_report()``."""
    product_id: str
    merchant_id: str
    quantity: int
    min_stock_level: int
    max_stock_level: int
    location: str
    status: StockStatus


@dataclass(frozen=True)
class LedgerResult:
    """
    Typed outcome of a ledger operation.

    ``success=False`` carries the errors and guarantees nothing was
    committed.  Multi-line failures list one error per failing product.
    """
    success: bool
    operation: str
    deltas: tuple[InventoryDelta, ...] = ()
    low_stock: tuple[LowStockAlert, ...] = ()
    errors: tuple[FulfillmentKernelError, ...] = ()
    record: InventoryRecord | None = None

    @property
    def error(self) -> FulfillmentKernelError | None:
        return self.errors[0] if self.errors else None

    @property
    def error_codes(self) -> tuple[str, ...]:
        return tuple(e.code for e in self.errors)

    @property
    def failing_product_ids(self) -> tuple[str, ...]:
        return tuple(
            e.product_id for e in self.errors if hasattr(e, "product_id")
        )
