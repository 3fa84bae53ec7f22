"""
Kernel Invariants Contract.

These invariants are structural law. No fee schedule or host setting may
override them.

This module exists solely to declare these invariants explicitly. The
enforcement is distributed across InventoryLedger, OrderLifecycle,
InboundLifecycle and WorkflowExecutor; rejections are logged with the
invariant they protect.
"""

from enum import Enum, unique


@unique
class KernelInvariant(str, Enum):
    """Non-configurable invariants enforced by the kernel."""

    NON_NEGATIVE_STOCK = "non_negative_stock"
    """No ledger operation may leave a quantity below zero. Enforced by
    InventoryLedger before any commit."""

    ALL_OR_NOTHING = "all_or_nothing"
    """Multi-item inventory operations (dispatch, outbound completion)
    either apply every line or none. Enforced by reserve_many."""

    MONOTONIC_STATUS = "monotonic_status"
    """Entity statuses move only along their workflow table. Enforced by
    WorkflowExecutor."""

    IDEMPOTENT_COMPLETION = "idempotent_completion"
    """Completing an inbound/outbound request applies its inventory side
    effect exactly once. Enforced by InboundLifecycle via status."""

    ITEMS_FROZEN_AFTER_DISPATCH = "items_frozen_after_dispatch"
    """Order lines cannot change from dispatch onward. Enforced by
    OrderLifecycle.update_items."""


ALL_KERNEL_INVARIANTS: frozenset[KernelInvariant] = frozenset(KernelInvariant)
