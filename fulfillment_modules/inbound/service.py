"""
Inbound Lifecycle (``fulfillment_modules.inbound.service``).

Responsibility
--------------
Creates inbound/outbound requests with their weight and fee, and moves
them through ``INBOUND_WORKFLOW``.  Completion applies the stock change:
inbound restores every line, outbound reserves every line all-or-nothing.

Invariants
----------
- IDEMPOTENT_COMPLETION -- completing an already-completed request is a
  successful no-op (``already_applied=True``): no stock change, no fee.
- ALL_OR_NOTHING -- an outbound completion that cannot reserve every line
  leaves stock and status unchanged.

Failure Modes
-------------
Business errors are returned as ``TransitionResult(success=False, ...)``.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

from fulfillment_engines.fees import DEFAULT_FEE_SCHEDULE, FeeSchedule, inbound_fee
from fulfillment_engines.weight import ProductLookup, round_weight, total_weight_kg
from fulfillment_kernel.domain.clock import Clock, SystemClock
from fulfillment_kernel.domain.values import ZERO
from fulfillment_kernel.domain.workflow import TransitionResult
from fulfillment_kernel.exceptions import (
    DuplicateEntityError,
    FulfillmentKernelError,
    InboundRequestNotFoundError,
    InsufficientStockError,
    InvalidFieldValueError,
    InvalidStateTransitionError,
)
from fulfillment_kernel.invariants import KernelInvariant
from fulfillment_kernel.logging_config import LogContext, get_logger
from fulfillment_kernel.utils.ids import IdFactory, generate_entity_id
from fulfillment_modules.billing.journal import FeeJournal
from fulfillment_modules.billing.models import TransactionType
from fulfillment_modules.inbound.models import (
    InboundRequest,
    InboundStatus,
    RequestType,
)
from fulfillment_modules.inbound.workflows import INBOUND_WORKFLOW
from fulfillment_modules.inventory.ledger import InventoryLedger
from fulfillment_modules.orders.models import coerce_items
from fulfillment_services.workflow_executor import WorkflowExecutor

logger = get_logger("modules.inbound.service")

FEE_PRODUCER = "inbound"

_FEE_TYPES = {
    RequestType.INBOUND: TransactionType.INBOUND_FEE,
    RequestType.OUTBOUND: TransactionType.OUTBOUND_FEE,
}

_STAMPS = {
    "initiate_pickup": "pickup_initiated_at",
    "mark_picked_up": "picked_up_at",
    "cancel": "cancelled_at",
}


class InboundLifecycle:
    """Coordinates inbound/outbound request transitions."""

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
        self._requests: dict[str, InboundRequest] = {}
        self._actions: dict[str, Callable[..., TransitionResult]] = {
            "initiate_pickup": self.initiate_pickup,
            "mark_picked_up": self.mark_picked_up,
            "complete": self.complete,
            "cancel": self.cancel,
        }

    def get(self, request_id: str) -> InboundRequest | None:
        return self._requests.get(request_id)

    def requests(
        self,
        merchant_id: str | None = None,
        request_type: RequestType | str | None = None,
    ) -> list[InboundRequest]:
        wanted = RequestType.parse(request_type) if request_type is not None else None
        return [
            r for r in self._requests.values()
            if (merchant_id is None or r.merchant_id == merchant_id)
            and (wanted is None or r.request_type is wanted)
        ]

    def create(
        self,
        merchant_id: str,
        items: Iterable[Any],
        request_type: RequestType | str = RequestType.INBOUND,
        request_id: str | None = None,
    ) -> TransitionResult:
        """
        New ``pending`` request.

        ``total_weight_kg = sum(max(actual, volumetric) * quantity)``;
        ``fee = inbound_fee(total)`` for inbound, 0 for outbound.
        """
        try:
            kind = RequestType.parse(request_type)
            lines = coerce_items(items, f"{kind.value} request")
            new_id = request_id or self._new_id("inb")
            if new_id in self._requests:
                raise DuplicateEntityError("inbound_request", new_id)
        except FulfillmentKernelError as exc:
            return self._reject("create", request_id, None, (exc,))

        weight = total_weight_kg(
            lines, self._lookup, divisor=self._schedule.volumetric_divisor
        )
        fee = ZERO
        if kind is RequestType.INBOUND:
            fee = inbound_fee(weight, weight, schedule=self._schedule)

        request = InboundRequest(
            id=new_id,
            merchant_id=merchant_id,
            request_type=kind,
            items=lines,
            status=InboundStatus.PENDING,
            total_weight_kg=round_weight(weight),
            fee=fee,
            created_at=self._clock.now(),
        )
        self._requests[request.id] = request
        logger.info(
            "inbound_request_created",
            extra={
                "request_id": request.id,
                "merchant_id": merchant_id,
                "request_type": kind.value,
                "total_weight_kg": request.total_weight_kg,
                "fee": fee,
            },
        )
        return TransitionResult(
            success=True,
            action="create",
            entity_id=request.id,
            new_state=request.status.value,
            entity=request,
        )

    def transition(self, request_id: str, action: str, **params: Any) -> TransitionResult:
        """Single entry point: run ``action`` with its keyword parameters."""
        handler = self._actions.get(action)
        if handler is not None:
            try:
                inspect.signature(handler).bind(request_id, **params)
            except TypeError:
                error = InvalidFieldValueError(
                    "params", sorted(params), f"unexpected parameter for '{action}'"
                )
                return self._reject(action, request_id, self._requests.get(request_id), (error,))
            return handler(request_id, **params)
        request = self._requests.get(request_id)
        if request is None:
            return self._reject(action, request_id, None, (InboundRequestNotFoundError(request_id),))
        try:
            self._resolve(request, action)
        except InvalidStateTransitionError as exc:
            return self._reject(action, request_id, request, (exc,))
        raise AssertionError(f"Action '{action}' has no handler")  # pragma: no cover

    def initiate_pickup(self, request_id: str) -> TransitionResult:
        return self._simple("initiate_pickup", request_id)

    def mark_picked_up(self, request_id: str) -> TransitionResult:
        return self._simple("mark_picked_up", request_id)

    def cancel(self, request_id: str) -> TransitionResult:
        return self._simple("cancel", request_id)

    def complete(self, request_id: str) -> TransitionResult:
        """
        Mark the request completed and apply its stock change once.

        Inbound restores each line (creating records as needed); outbound
        reserves every line or none.
        """
        request = self._requests.get(request_id)
        if request is None:
            return self._reject(
                "complete", request_id, None, (InboundRequestNotFoundError(request_id),)
            )

        if request.status is InboundStatus.COMPLETED:
            logger.info(
                "inbound_completion_already_applied",
                extra={
                    "request_id": request.id,
                    "invariant": KernelInvariant.IDEMPOTENT_COMPLETION.value,
                },
            )
            return TransitionResult(
                success=True,
                action="complete",
                entity_id=request.id,
                from_state=request.status.value,
                new_state=request.status.value,
                entity=request,
                already_applied=True,
                reason="request already completed",
            )

        try:
            transition = self._resolve(request, "complete")
        except InvalidStateTransitionError as exc:
            return self._reject("complete", request_id, request, (exc,))

        with LogContext.bind(request_id=request.id, merchant_id=request.merchant_id):
            if request.is_outbound:
                applied = self._ledger.reserve_many(
                    request.merchant_id, request.items, reference=request.id
                )
            else:
                applied = self._ledger.restore_many(
                    request.merchant_id, request.items, reference=request.id
                )
            if not applied.success:
                return self._reject("complete", request.id, request, applied.errors)

            fee_txn = None
            if transition.records_fee and request.fee > ZERO:
                fee_txn = self._journal.record(
                    merchant_id=request.merchant_id,
                    transaction_type=_FEE_TYPES[request.request_type],
                    amount=request.fee,
                    entity_id=request.id,
                    producer=FEE_PRODUCER,
                    quantity=request.total_units,
                    request_id=request.id,
                )

            updated = replace(
                request,
                status=InboundStatus(transition.to_state),
                completed_at=self._clock.now(),
                inventory_applied=True,
            )
            return self._commit(
                "complete",
                request,
                updated,
                inventory_deltas=applied.deltas,
                low_stock=applied.low_stock,
                fee_transaction=fee_txn,
            )

    # =========================================================================
    # Internals
    # =========================================================================

    def _resolve(self, request: InboundRequest, action: str):
        return self._executor.resolve(
            INBOUND_WORKFLOW, "inbound_request", request.id, request.status.value, action
        )

    def _simple(self, action: str, request_id: str) -> TransitionResult:
        request = self._requests.get(request_id)
        if request is None:
            return self._reject(action, request_id, None, (InboundRequestNotFoundError(request_id),))
        try:
            transition = self._resolve(request, action)
        except InvalidStateTransitionError as exc:
            return self._reject(action, request_id, request, (exc,))
        updated = replace(
            request,
            status=InboundStatus(transition.to_state),
            **{_STAMPS[action]: self._clock.now()},
        )
        return self._commit(action, request, updated)

    def _commit(
        self,
        action: str,
        before: InboundRequest,
        after: InboundRequest,
        **side_outputs: Any,
    ) -> TransitionResult:
        self._requests[after.id] = after
        logger.info(
            "inbound_transition_applied",
            extra={
                "request_id": after.id,
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
        request_id: str | None,
        request: InboundRequest | None,
        errors: tuple[FulfillmentKernelError, ...],
    ) -> TransitionResult:
        if isinstance(errors[0], InvalidStateTransitionError):
            invariant = KernelInvariant.MONOTONIC_STATUS.value
        elif isinstance(errors[0], InsufficientStockError):
            invariant = KernelInvariant.ALL_OR_NOTHING.value
        else:
            invariant = None
        logger.warning(
            "inbound_transition_rejected",
            extra={
                "request_id": request_id,
                "action": action,
                "error_codes": [e.code for e in errors],
                "invariant": invariant,
            },
        )
        state = request.status.value if request is not None else None
        return TransitionResult(
            success=False,
            action=action,
            entity_id=request_id,
            from_state=state,
            new_state=state,
            entity=request,
            errors=tuple(errors),
            reason="; ".join(str(e) for e in errors),
        )
