"""
Inventory Module (``fulfillment_modules.inventory``).

Responsibility
--------------
Warehouse stock per (product, merchant): the ``InventoryLedger`` is the
single writer of quantities and hands every committed change back as an
``InventoryDelta`` for the host to persist.

Architecture
------------
Layer: **Modules**.  Imports from ``fulfillment_kernel`` only; the order
and inbound lifecycles call into the ledger, never the reverse.
"""

from fulfillment_modules.inventory.helpers import (
    classify_stock_level,
    is_low_stock,
    signed_adjustment,
    validate_quantity,
)
from fulfillment_modules.inventory.ledger import InventoryLedger
from fulfillment_modules.inventory.models import (
    DEFAULT_LOCATION,
    AdjustmentReason,
    InventoryDelta,
    InventoryRecord,
    LedgerResult,
    LowStockAlert,
    MovementType,
    StockLevelLine,
    StockMovement,
    StockStatus,
)

__all__ = [
    "DEFAULT_LOCATION",
    "AdjustmentReason",
    "InventoryDelta",
    "InventoryLedger",
    "InventoryRecord",
    "LedgerResult",
    "LowStockAlert",
    "MovementType",
    "StockLevelLine",
    "StockMovement",
    "StockStatus",
    "classify_stock_level",
    "is_low_stock",
    "signed_adjustment",
    "validate_quantity",
]
