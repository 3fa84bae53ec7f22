"""
Fulfillment Modules.

Stateful coordinators over the fulfillment kernel and engines.
Each module contains:
- Domain models (the nouns)
- Workflows (state machines), where the module has a lifecycle
- A coordinator that couples transitions to their side effects

Modules:
- Catalog: products and the in-memory catalog
- Inventory: per-merchant stock ledger
- Billing: fee journal and merchant statements
- Orders: order lifecycle, dispatch, returns
- Inbound: inbound / outbound stock requests

Fee and weight arithmetic lives in fulfillment_engines.
"""

from fulfillment_modules import (
    catalog,
    inventory,
    billing,
    orders,
    inbound,
)

__all__ = [
    "catalog",
    "inventory",
    "billing",
    "orders",
    "inbound",
]
