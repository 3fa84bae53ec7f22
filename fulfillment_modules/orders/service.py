"""
Order Lifecycle (``fulfillment_modules.orders.service``).

Responsibility
--------------
Moves orders through ``ORDER_WORKFLOW`` and couples each transition to its
side effect: dispatch reserves stock all-or-nothing and records the
dispatch fee; an RTO return restores stock.  Fee and weight arithmetic is
delegated to ``fulfillment_engines``; quantity changes to the
``InventoryLedger``; transition legality to the ``WorkflowExecutor``.

Architecture
------------
Layer: **Modules** -- stateful, in-memory coordinator.  Holds the orders it
created; the host persists the returned entities and deltas.

Invariants
----------
- MONOTONIC_STATUS -- status changes only along ``ORDER_WORKFLOW``.
- ALL_OR_NOTHING -- a dispatch that cannot reserve every line changes
  neither stock nor status and names every failing product.
- ITEMS_FROZEN_AFTER_DISPATCH -- ``update_items`` is rejected once stock
  has left the warehouse.

Failure Modes
-------------
Public operations return ``TransitionResult(success=False, errors=...)``
instead of raising for business errors.  Read helpers (``fee_breakdown``,
``weight_kg``) raise ``OrderNotFoundError``.

Usage::

    lifecycle = OrderLifecycle(catalog, ledger, journal)
    created = lifecycle.create("m1", [OrderItem("p1", 2)])
    lifecycle.mark_packed(created.entity_id, box_fee=Decimal("4"))
    result = lifecycle.dispatch(created.entity_id)
    result.inventory_deltas, result.fee_transaction
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from dataclasses import replace
from decimal import Decimal
from typing import Any

from fulfillment_engines.fees import (
    DEFAULT_FEE_SCHEDULE,
    FeeSchedule,
    OrderFeeBreakdown,
    order_fee_breakdown,
    order_price,
)
from fulfillment_engines.weight import ProductLookup, total_weight_kg
from fulfillment_kernel.domain.clock import Clock, SystemClock
from fulfillment_kernel.domain.values import (
    NumberLike,
    ZERO,
    optional_decimal,
    round_money,
    to_decimal,
)
from fulfillment_kernel.domain.workflow import Transition, TransitionResult
from fulfillment_kernel.exceptions import (
    DuplicateEntityError,
    FulfillmentKernelError,
    InsufficientStockError,
    InvalidFieldValueError,
    InvalidStateTransitionError,
    ItemsImmutableError,
    OrderNotFoundError,
)
from fulfillment_kernel.invariants import KernelInvariant
from fulfillment_kernel.logging_config import LogContext, get_logger
from fulfillment_kernel.utils.ids import IdFactory, generate_entity_id
from fulfillment_modules.billing.journal import FeeJournal
from fulfillment_modules.billing.models import TransactionType
from fulfillment_modules.inventory.ledger import InventoryLedger
from fulfillment_modules.orders.models import (
    Order,
    OrderStatus,
    ReturnType,
    coerce_items,
)
from fulfillment_modules.orders.workflows import EDITABLE_STATES, ORDER_WORKFLOW
from fulfillment_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.orders.service")

FEE_PRODUCER = "orders"


def _money_field(value: NumberLike | None, field: str) -> Decimal:
    try:
        amount = to_decimal(value, field)
    except ValueError:
        raise InvalidFieldValueError(field, value, "not a number") from None
    if amount < 0:
        raise InvalidFieldValueError(field, value, "must be non-negative")
    return round_money(amount)


def _weight_field(value: NumberLike | None, field: str) -> Decimal | None:
    try:
        weight = optional_decimal(value, field)
    except ValueError:
        raise InvalidFieldValueError(field, value, "not a number") from None
    if weight is not None and weight < 0:
        raise InvalidFieldValueError(field, value, "must be non-negative")
    return weight


_TRUE_FLAGS = frozenset({"true", "yes", "1"})
_FALSE_FLAGS = frozenset({"false", "no", "0", ""})


def _flag_field(value: bool | str | int | None, field: str) -> bool:
    """Strict boolean: bools, 0/1 and "true"/"false"-style strings only."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE_FLAGS:
            return True
        if text in _FALSE_FLAGS:
            return False
    raise InvalidFieldValueError(field, value, "not a boolean")


class OrderLifecycle:
    """
    Coordinates order transitions and their side effects.

    Contract
    --------
    Every operation returns a ``TransitionResult``.  A failed result
    guarantees that the order, the ledger and the journal are unchanged.

    Non-goals
    ---------
    - Persistence and refetching; the host stores ``result.entity``.
    - Retries.  A failed dispatch stays ``packed`` until called again.
    """

    def __init__(
        self,
        catalog: ProductLookup,
        ledger: InventoryLedger,
        journal: FeeJournal,
        executor: WorkflowExecutor | None = None,
        schedule: FeeSchedule = DEFAULT_FEE_SCHEDULE,
        clock: Clock | None = None,
        id_factory: IdFactory | None = None,
    ) -> None:
        self._lookup = catalog
        self._ledger = ledger
        self._journal = journal
        self._clock = clock or SystemClock()
        self._executor = executor or WorkflowExecutor(clock=self._clock)
        self._schedule = schedule
        self._new_id = id_factory or generate_entity_id
        self._orders: dict[str, Order] = {}
        self._actions: dict[str, Callable[..., TransitionResult]] = {
            "mark_packed": self.mark_packed,
            "dispatch": self.dispatch,
            "mark_delivered": self.mark_delivered,
            "cancel": self.cancel,
        }

    # =========================================================================
    # Queries
    # =========================================================================

    def get(self, order_id: str) -> Order | None:
        return self._orders.get(order_id)

    def orders(
        self,
        merchant_id: str | None = None,
        status: OrderStatus | str | None = None,
    ) -> list[Order]:
        wanted = OrderStatus(status) if status is not None else None
        return [
            o for o in self._orders.values()
            if (merchant_id is None or o.merchant_id == merchant_id)
            and (wanted is None or o.status is wanted)
        ]

    def allowed_actions(self, order_id: str) -> tuple[str, ...]:
        order = self._require(order_id)
        return self._executor.allowed_actions(ORDER_WORKFLOW, order.status.value)

    def fee_breakdown(self, order_id: str) -> OrderFeeBreakdown:
        """Packing-fee breakdown at current catalog values."""
        return order_fee_breakdown(self._require(order_id), self._lookup, self._schedule)

    def weight_kg(self, order_id: str) -> Decimal:
        """Packed weight if entered, else the billable weight of the lines."""
        order = self._require(order_id)
        return total_weight_kg(
            order.items,
            self._lookup,
            packed_weight_kg=order.packed_weight_kg,
            divisor=self._schedule.volumetric_divisor,
        )

    # =========================================================================
    # Creation
    # =========================================================================

    def create(
        self,
        merchant_id: str,
        items: Iterable[Any],
        tracking_code: str | None = None,
        order_id: str | None = None,
    ) -> TransitionResult:
        """New ``pending`` order priced at ``sum(quantity) * unit_price``."""
        try:
            lines = coerce_items(items, "order")
            new_id = order_id or self._new_id("ord")
            if new_id in self._orders:
                raise DuplicateEntityError("order", new_id)
        except FulfillmentKernelError as exc:
            return self._reject("create", order_id, None, exc)

        order = Order(
            id=new_id,
            merchant_id=merchant_id,
            items=lines,
            status=OrderStatus.PENDING,
            price=order_price(lines, self._schedule),
            created_at=self._clock.now(),
            tracking_code=tracking_code,
        )
        self._orders[order.id] = order
        logger.info(
            "order_created",
            extra={
                "order_id": order.id,
                "merchant_id": merchant_id,
                "units": order.total_units,
                "price": order.price,
            },
        )
        return TransitionResult(
            success=True,
            action="create",
            entity_id=order.id,
            new_state=order.status.value,
            entity=order,
        )

    def create_return(
        self,
        merchant_id: str,
        items: Iterable[Any],
        return_type: ReturnType | str,
        order_id: str | None = None,
        tracking_code: str | None = None,
    ) -> TransitionResult:
        """
        New order created directly in ``return``.

        ``RTO`` restores every line to stock (creating records as needed);
        ``Damaged`` restores nothing.
        """
        try:
            lines = coerce_items(items, "return")
            kind = ReturnType.parse(return_type)
            new_id = order_id or self._new_id("ret")
            if new_id in self._orders:
                raise DuplicateEntityError("order", new_id)
        except FulfillmentKernelError as exc:
            return self._reject("create_return", order_id, None, exc)

        deltas: tuple = ()
        if kind is ReturnType.RTO:
            restored = self._ledger.restore_many(merchant_id, lines, reference=new_id)
            if not restored.success:
                return self._reject_many("create_return", new_id, None, restored.errors)
            deltas = restored.deltas

        order = Order(
            id=new_id,
            merchant_id=merchant_id,
            items=lines,
            status=OrderStatus.RETURN,
            price=order_price(lines, self._schedule),
            created_at=self._clock.now(),
            tracking_code=tracking_code,
            return_type=kind,
        )
        self._orders[order.id] = order
        logger.info(
            "order_return_created",
            extra={
                "order_id": order.id,
                "merchant_id": merchant_id,
                "return_type": kind.value,
                "restocked_lines": len(deltas),
            },
        )
        return TransitionResult(
            success=True,
            action="create_return",
            entity_id=order.id,
            new_state=order.status.value,
            entity=order,
            inventory_deltas=deltas,
        )

    # =========================================================================
    # Transitions
    # =========================================================================

    def transition(self, order_id: str, action: str, **params: Any) -> TransitionResult:
        """Single entry point: run ``action`` with its keyword parameters."""
        handler = self._actions.get(action)
        if handler is not None:
            try:
                inspect.signature(handler).bind(order_id, **params)
            except TypeError:
                error = InvalidFieldValueError(
                    "params", sorted(params), f"unexpected parameter for '{action}'"
                )
                return self._reject(action, order_id, self._orders.get(order_id), error)
            return handler(order_id, **params)
        order = self._orders.get(order_id)
        if order is None:
            return self._reject(action, order_id, None, OrderNotFoundError(order_id))
        try:
            self._resolve(order, action)
        except InvalidStateTransitionError as exc:
            return self._reject(action, order_id, order, exc)
        raise AssertionError(f"Action '{action}' has no handler")  # pragma: no cover

    def mark_packed(
        self,
        order_id: str,
        packed_weight_kg: NumberLike | None = None,
        box_fee: NumberLike | None = None,
        box_cutting: bool | str | None = False,
        tracking_code: str | None = None,
    ) -> TransitionResult:
        """``pending -> packed``; records the packing details."""
        order = self._orders.get(order_id)
        try:
            order = self._require(order_id)
            transition = self._resolve(order, "mark_packed")
            weight = _weight_field(packed_weight_kg, "packed_weight_kg")
            fee = _money_field(box_fee, "box_fee")
            cutting = _flag_field(box_cutting, "box_cutting")
        except FulfillmentKernelError as exc:
            return self._reject("mark_packed", order_id, order, exc)

        updated = replace(
            order,
            status=OrderStatus(transition.to_state),
            packed_at=self._clock.now(),
            packed_weight_kg=weight,
            box_fee=fee,
            box_cutting=cutting,
            tracking_code=tracking_code or order.tracking_code,
        )
        return self._commit("mark_packed", order, updated)

    def dispatch(self, order_id: str) -> TransitionResult:
        """
        ``packed -> dispatched``.

        Reserves every line all-or-nothing, then records the order packing
        fee as a ``dispatch_fee`` transaction.
        """
        order = self._orders.get(order_id)
        try:
            order = self._require(order_id)
            transition = self._resolve(order, "dispatch")
        except FulfillmentKernelError as exc:
            return self._reject("dispatch", order_id, order, exc)

        with LogContext.bind(order_id=order.id, merchant_id=order.merchant_id):
            # Priced before any stock moves; a failing lookup leaves stock intact.
            breakdown = order_fee_breakdown(order, self._lookup, self._schedule)
            reserved = self._ledger.reserve_many(
                order.merchant_id, order.items, reference=order.id
            )
            if not reserved.success:
                return self._reject_many("dispatch", order.id, order, reserved.errors)

            fee_txn = None
            if transition.records_fee and breakdown.total > ZERO:
                fee_txn = self._journal.record(
                    merchant_id=order.merchant_id,
                    transaction_type=TransactionType.DISPATCH_FEE,
                    amount=breakdown.total,
                    entity_id=order.id,
                    producer=FEE_PRODUCER,
                    quantity=order.total_units,
                    order_id=order.id,
                )

            updated = replace(
                order,
                status=OrderStatus(transition.to_state),
                dispatched_at=self._clock.now(),
                packing_fee=breakdown.total,
            )
            return self._commit(
                "dispatch",
                order,
                updated,
                inventory_deltas=reserved.deltas,
                low_stock=reserved.low_stock,
                fee_transaction=fee_txn,
            )

    def mark_delivered(self, order_id: str) -> TransitionResult:
        """``dispatched -> delivered``."""
        return self._simple("mark_delivered", order_id, "delivered_at")

    def cancel(self, order_id: str) -> TransitionResult:
        """``pending | packed -> cancelled``; no stock was reserved yet."""
        return self._simple("cancel", order_id, "cancelled_at")

    def update_items(self, order_id: str, items: Iterable[Any]) -> TransitionResult:
        """Replace the lines of a ``pending`` or ``packed`` order and reprice it."""
        order = self._orders.get(order_id)
        try:
            order = self._require(order_id)
            if order.status.value not in EDITABLE_STATES:
                raise ItemsImmutableError(order.id, order.status.value)
            lines = coerce_items(items, "order")
        except FulfillmentKernelError as exc:
            return self._reject("update_items", order_id, order, exc)

        updated = replace(order, items=lines, price=order_price(lines, self._schedule))
        self._orders[order.id] = updated
        logger.info(
            "order_items_updated",
            extra={"order_id": order.id, "units": updated.total_units, "price": updated.price},
        )
        return TransitionResult(
            success=True,
            action="update_items",
            entity_id=order.id,
            from_state=order.status.value,
            new_state=order.status.value,
            entity=updated,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _require(self, order_id: str) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def _resolve(self, order: Order, action: str) -> Transition:
        return self._executor.resolve(
            ORDER_WORKFLOW, "order", order.id, order.status.value, action
        )

    def _simple(self, action: str, order_id: str, stamp_field: str) -> TransitionResult:
        order = self._orders.get(order_id)
        try:
            order = self._require(order_id)
            transition = self._resolve(order, action)
        except FulfillmentKernelError as exc:
            return self._reject(action, order_id, order, exc)
        updated = replace(
            order,
            status=OrderStatus(transition.to_state),
            **{stamp_field: self._clock.now()},
        )
        return self._commit(action, order, updated)

    def _commit(
        self,
        action: str,
        before: Order,
        after: Order,
        **side_outputs: Any,
    ) -> TransitionResult:
        self._orders[after.id] = after
        logger.info(
            "order_transition_applied",
            extra={
                "order_id": after.id,
                "action": action,
                "from_state": before.status.value,
                "to_state": after.status.value,
            },
        )
        return TransitionResult(
            success=True,
            action=action,
            entity_id=after.id,
            from_state=before.status.value,
            new_state=after.status.value,
            entity=after,
            **side_outputs,
        )

    def _reject(
        self,
        action: str,
        order_id: str | None,
        order: Order | None,
        error: FulfillmentKernelError,
    ) -> TransitionResult:
        return self._reject_many(action, order_id, order, (error,))

    def _reject_many(
        self,
        action: str,
        order_id: str | None,
        order: Order | None,
        errors: tuple[FulfillmentKernelError, ...],
    ) -> TransitionResult:
        invariant = _invariant_for(errors[0])
        logger.warning(
            "order_transition_rejected",
            extra={
                "order_id": order_id,
                "action": action,
                "from_state": order.status.value if order is not None else None,
                "error_codes": [e.code for e in errors],
                "invariant": invariant.value if invariant is not None else None,
            },
        )
        return TransitionResult(
            success=False,
            action=action,
            entity_id=order_id,
            from_state=order.status.value if order is not None else None,
            new_state=order.status.value if order is not None else None,
            entity=order,
            errors=tuple(errors),
            reason="; ".join(str(e) for e in errors),
        )


def _invariant_for(error: FulfillmentKernelError) -> KernelInvariant | None:
    if isinstance(error, InvalidStateTransitionError):
        return KernelInvariant.MONOTONIC_STATUS
    if isinstance(error, ItemsImmutableError):
        return KernelInvariant.ITEMS_FROZEN_AFTER_DISPATCH
    if isinstance(error, InsufficientStockError):
        return KernelInvariant.ALL_OR_NOTHING
    return None
