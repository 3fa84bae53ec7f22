"""
Tests for WorkflowExecutor.

Covers:
- Successful resolution and its trace record
- Rejected transitions (known and unknown actions)
- Outcome sinks and LogContext propagation
"""

import pytest

from fulfillment_kernel.exceptions import InvalidStateTransitionError
from fulfillment_kernel.logging_config import LogContext
from fulfillment_modules.orders.workflows import ORDER_WORKFLOW
from fulfillment_services import (
    OUTCOME_NO_TRANSITION,
    OUTCOME_SUCCESS,
    OUTCOME_UNKNOWN_ACTION,
    TRACE_TYPE_WORKFLOW_TRANSITION,
)


class TestResolve:
    """Tests for WorkflowExecutor.resolve."""

    def test_returns_transition(self, executor):
        transition = executor.resolve(ORDER_WORKFLOW, "order", "ord-1", "packed", "dispatch")

        assert transition.to_state == "dispatched"
        assert transition.applies_inventory

    def test_success_record(self, executor, trace_records, deterministic_clock):
        executor.resolve(ORDER_WORKFLOW, "order", "ord-1", "pending", "mark_packed")

        record = trace_records[-1]
        assert record["trace_type"] == TRACE_TYPE_WORKFLOW_TRANSITION
        assert record["outcome"] == OUTCOME_SUCCESS
        assert record["from_state"] == "pending"
        assert record["to_state"] == "packed"
        assert record["ts"] == deterministic_clock.now().isoformat()
        assert record["message"] == "workflow_transition"
        assert "invariant" not in record

    def test_disallowed_transition(self, executor, trace_records):
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            executor.resolve(ORDER_WORKFLOW, "order", "ord-1", "dispatched", "dispatch")

        assert exc_info.value.from_status == "dispatched"
        assert exc_info.value.to_status == "dispatched"
        assert trace_records[-1]["outcome"] == OUTCOME_NO_TRANSITION
        assert trace_records[-1]["invariant"] == "monotonic_status"

    def test_unknown_action(self, executor, trace_records):
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            executor.resolve(ORDER_WORKFLOW, "order", "ord-1", "pending", "teleport")

        assert exc_info.value.to_status is None
        assert trace_records[-1]["outcome"] == OUTCOME_UNKNOWN_ACTION

    def test_rejection_logged_as_warning(self, executor, captured_logs):
        with pytest.raises(InvalidStateTransitionError):
            executor.resolve(ORDER_WORKFLOW, "order", "ord-1", "delivered", "cancel")

        logs = [r for r in captured_logs() if r["message"] == "workflow_transition"]
        assert logs[-1]["level"] == "WARNING"
        assert logs[-1]["entity_id"] == "ord-1"


class TestOutcomeSinks:
    """Tests for outcome sink delivery."""

    def test_per_call_sink_receives_copy(self, executor, trace_records):
        extra = []
        executor.resolve(
            ORDER_WORKFLOW, "order", "ord-1", "pending", "cancel", outcome_sink=extra.append
        )

        assert extra == trace_records
        assert extra[0] is not trace_records[0]

    def test_log_context_is_included(self, executor, trace_records):
        with LogContext.bind(merchant_id="m1"):
            executor.resolve(ORDER_WORKFLOW, "order", "ord-1", "pending", "cancel")

        assert trace_records[-1]["merchant_id"] == "m1"

    def test_allowed_actions(self, executor):
        assert executor.allowed_actions(ORDER_WORKFLOW, "packed") == ("dispatch", "cancel")
