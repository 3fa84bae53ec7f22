"""
fulfillment_services.workflow_executor -- Workflow transition resolution.

Responsibility:
    Resolves an action against an entity's workflow table and emits one
    structured trace record per attempt.  Lifecycle coordinators never
    compare status strings themselves; they ask the executor.

Architecture position:
    Services layer.  Imports only from fulfillment_kernel, so the
    lifecycles in fulfillment_modules can depend on it.

Invariants enforced:
    MONOTONIC_STATUS -- a status can only move along a transition that the
                        workflow declares.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

from fulfillment_kernel.domain.clock import Clock, SystemClock
from fulfillment_kernel.domain.workflow import Transition, Workflow
from fulfillment_kernel.exceptions import InvalidStateTransitionError
from fulfillment_kernel.invariants import KernelInvariant
from fulfillment_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.workflow_executor")

# Trace message and outcome codes for structured logging and traceability
TRACE_TYPE_WORKFLOW_TRANSITION = "WORKFLOW_TRANSITION"
OUTCOME_SUCCESS = "success"
OUTCOME_NO_TRANSITION = "no_transition"
OUTCOME_UNKNOWN_ACTION = "unknown_action"

OutcomeSink = Callable[[dict], None]


class WorkflowExecutor:
    """Resolves workflow transitions and traces every attempt.

    When an ``outcome_sink`` is configured (or passed per call) it receives
    a copy of every trace record, e.g. for a host-side audit timeline.
    """

    def __init__(
        self,
        clock: Clock | None = None,
        outcome_sink: OutcomeSink | None = None,
    ) -> None:
        self._clock = clock or SystemClock()
        self._outcome_sink = outcome_sink

    def resolve(
        self,
        workflow: Workflow,
        entity_type: str,
        entity_id: str,
        current_state: str,
        action: str,
        outcome_sink: OutcomeSink | None = None,
    ) -> Transition:
        """Return the transition for ``action`` out of ``current_state``.

        Raises:
            InvalidStateTransitionError: if the workflow declares no such
                transition.
        """
        t0 = time.monotonic()
        transition = workflow.find_transition(current_state, action)

        if transition is None:
            known = action in workflow.actions
            reason = (
                f"No transition from '{current_state}' via action '{action}' "
                f"in workflow '{workflow.name}'"
                if known
                else f"Unknown action '{action}' in workflow '{workflow.name}'"
            )
            self._emit(
                workflow=workflow,
                action=action,
                entity_type=entity_type,
                entity_id=entity_id,
                from_state=current_state,
                outcome=OUTCOME_NO_TRANSITION if known else OUTCOME_UNKNOWN_ACTION,
                reason=reason,
                duration_ms=(time.monotonic() - t0) * 1000,
                outcome_sink=outcome_sink,
            )
            raise InvalidStateTransitionError(
                entity_id,
                current_state,
                to_status=_target_of(workflow, action),
                action=action,
            )

        self._emit(
            workflow=workflow,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            from_state=current_state,
            to_state=transition.to_state,
            outcome=OUTCOME_SUCCESS,
            reason="transition allowed",
            duration_ms=(time.monotonic() - t0) * 1000,
            applies_inventory=transition.applies_inventory,
            records_fee=transition.records_fee,
            outcome_sink=outcome_sink,
        )
        return transition

    def allowed_actions(self, workflow: Workflow, current_state: str) -> tuple[str, ...]:
        return workflow.allowed_actions(current_state)

    def _emit(
        self,
        workflow: Workflow,
        action: str,
        entity_type: str,
        entity_id: str,
        from_state: str,
        outcome: str,
        reason: str,
        duration_ms: float,
        to_state: str | None = None,
        applies_inventory: bool = False,
        records_fee: bool = False,
        outcome_sink: OutcomeSink | None = None,
    ) -> None:
        """Emit a structured workflow transition record."""
        record: dict[str, Any] = {
            "trace_type": TRACE_TYPE_WORKFLOW_TRANSITION,
            "ts": self._clock.now().isoformat(),
            "workflow": workflow.name,
            "action": action,
            "entity_type": entity_type,
            "entity_id": entity_id,
            "from_state": from_state,
            "outcome": outcome,
            "reason": reason,
            "duration_ms": round(duration_ms, 3),
            "applies_inventory": applies_inventory,
            "records_fee": records_fee,
        }
        if to_state is not None:
            record["to_state"] = to_state
        if outcome != OUTCOME_SUCCESS:
            record["invariant"] = KernelInvariant.MONOTONIC_STATUS.value
        record.update(LogContext.get_all())

        if outcome == OUTCOME_SUCCESS:
            logger.info("workflow_transition", extra=record)
        else:
            logger.warning("workflow_transition", extra=record)

        record["message"] = "workflow_transition"
        for sink in (self._outcome_sink, outcome_sink):
            if sink is not None:
                sink(dict(record))


def _target_of(workflow: Workflow, action: str) -> str | None:
    for t in workflow.transitions:
        if t.action == action:
            return t.to_state
    return None
