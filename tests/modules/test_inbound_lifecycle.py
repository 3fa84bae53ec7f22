"""
Tests for the Inbound Lifecycle.

Covers:
- Request creation with billable weight and inbound fee
- Pickup transitions and cancellation
- Completion applying stock exactly once
- Outbound all-or-nothing completion
"""

from decimal import Decimal

import pytest

from fulfillment_kernel.exceptions import InboundRequestNotFoundError
from fulfillment_modules.billing.models import TransactionType
from fulfillment_modules.inbound.models import InboundStatus, RequestType


@pytest.fixture
def inbound(app_state):
    return app_state.inbound


class TestCreate:
    """Tests for request creation."""

    def test_inbound_weight_and_fee(self, inbound, deterministic_clock):
        # 3 x 0.4 kg = 1.2 kg -> 3 half-kilo steps at 5
        result = inbound.create("m1", [("p1", 3)])

        request = result.entity
        assert result.success
        assert request.id == "inb-1"
        assert request.status is InboundStatus.PENDING
        assert request.request_type is RequestType.INBOUND
        assert request.total_weight_kg == Decimal("1.200")
        assert request.fee == Decimal("15.00")
        assert request.created_at == deterministic_clock.now()

    def test_volumetric_weight_counts(self, inbound):
        # 2 x max(0.8, 1.2) = 2.4 kg -> 5 steps
        request = inbound.create("m1", [("p3", 2)]).entity

        assert request.total_weight_kg == Decimal("2.400")
        assert request.fee == Decimal("25.00")

    def test_outbound_is_free(self, inbound):
        request = inbound.create("m1", [("p2", 1)], request_type="OUTBOUND").entity

        assert request.request_type is RequestType.OUTBOUND
        assert request.fee == Decimal("0")

    def test_unknown_product_weighs_nothing(self, inbound):
        request = inbound.create("m1", [("ghost", 4)]).entity

        assert request.total_weight_kg == Decimal("0.000")
        assert request.fee == Decimal("0.00")

    def test_invalid_request_type(self, inbound):
        result = inbound.create("m1", [("p1", 1)], request_type="sideways")
        assert result.error_codes == ("INVALID_FIELD_VALUE",)

    def test_empty_items(self, inbound):
        assert inbound.create("m1", []).error_codes == ("EMPTY_ITEMS",)

    def test_filter_requests(self, inbound):
        first = inbound.create("m1", [("p1", 1)]).entity_id
        second = inbound.create("m1", [("p1", 1)], request_type="outbound").entity_id

        assert [r.id for r in inbound.requests(request_type="inbound")] == [first]
        assert [r.id for r in inbound.requests(merchant_id="m1")] == [first, second]


class TestPickup:
    """Tests for pickup transitions and cancellation."""

    def test_pickup_path(self, inbound, deterministic_clock):
        request_id = inbound.create("m1", [("p1", 1)]).entity_id

        initiated = inbound.initiate_pickup(request_id)
        deterministic_clock.advance(60)
        picked = inbound.mark_picked_up(request_id)

        assert initiated.new_state == "initiated_pickup"
        assert picked.entity.status is InboundStatus.PICKED_UP
        assert picked.entity.picked_up_at > picked.entity.pickup_initiated_at

    def test_picked_up_requires_initiation(self, inbound):
        request_id = inbound.create("m1", [("p1", 1)]).entity_id
        assert inbound.mark_picked_up(request_id).error_codes == ("INVALID_STATE_TRANSITION",)

    def test_cancel_pending(self, app_state, inbound):
        request_id = inbound.create("m1", [("p1", 1)]).entity_id

        result = inbound.cancel(request_id)

        assert result.entity.status is InboundStatus.CANCELLED
        assert result.entity.cancelled_at is not None
        assert app_state.ledger.quantity("p1", "m1") == 5

    def test_cannot_cancel_after_pickup(self, inbound):
        request_id = inbound.create("m1", [("p1", 1)]).entity_id
        inbound.initiate_pickup(request_id)
        inbound.mark_picked_up(request_id)

        assert not inbound.cancel(request_id).success

    def test_transition_entry_point(self, inbound):
        request_id = inbound.create("m1", [("p1", 1)]).entity_id

        assert inbound.transition(request_id, "initiate_pickup").success
        assert inbound.transition(request_id, "fly").error_codes == ("INVALID_STATE_TRANSITION",)

    def test_transition_rejects_unexpected_param(self, app_state, inbound):
        request_id = inbound.create("m1", [("p1", 2)]).entity_id

        result = inbound.transition(request_id, "complete", weight=1)

        assert result.error_codes == ("INVALID_FIELD_VALUE",)
        assert result.error.field == "params"
        assert inbound.get(request_id).status is InboundStatus.PENDING
        assert app_state.ledger.quantity("p1", "m1") == 5

    def test_unknown_request(self, inbound):
        result = inbound.complete("inb-404")
        assert isinstance(result.error, InboundRequestNotFoundError)


class TestComplete:
    """Tests for completion side effects."""

    @pytest.mark.parametrize("path", [(), ("initiate_pickup",), ("initiate_pickup", "mark_picked_up")])
    def test_inbound_restores_from_any_open_state(self, app_state, inbound, path):
        request_id = inbound.create("m1", [("p1", 2), ("p9", 4)]).entity_id
        for action in path:
            inbound.transition(request_id, action)

        result = inbound.complete(request_id)

        assert result.success
        assert result.entity.status is InboundStatus.COMPLETED
        assert result.entity.inventory_applied
        assert app_state.ledger.quantity("p1", "m1") == 7
        assert app_state.ledger.quantity("p9", "m1") == 4

    def test_inbound_fee_recorded(self, app_state, inbound):
        request_id = inbound.create("m1", [("p1", 3)]).entity_id

        result = inbound.complete(request_id)

        txn = result.fee_transaction
        assert txn.transaction_type is TransactionType.INBOUND_FEE
        assert txn.amount == Decimal("15.00")
        assert txn.request_id == request_id
        assert app_state.statement("m1").pending == Decimal("15.00")

    def test_second_completion_is_a_no_op(self, app_state, inbound, captured_logs):
        request_id = inbound.create("m1", [("p1", 2)]).entity_id
        inbound.complete(request_id)

        again = inbound.complete(request_id)

        assert again.success
        assert again.already_applied
        assert again.inventory_deltas == ()
        assert app_state.ledger.quantity("p1", "m1") == 7
        assert len(app_state.journal.transactions()) == 1
        assert any(
            r["message"] == "inbound_completion_already_applied" for r in captured_logs()
        )

    def test_outbound_reserves(self, app_state, inbound):
        request_id = inbound.create("m1", [("p1", 4)], request_type="outbound").entity_id

        result = inbound.complete(request_id)

        assert result.success
        assert app_state.ledger.quantity("p1", "m1") == 1
        assert result.fee_transaction is None

    def test_outbound_all_or_nothing(self, app_state, inbound):
        request_id = inbound.create(
            "m1", [("p1", 1), ("p2", 3)], request_type="outbound"
        ).entity_id

        result = inbound.complete(request_id)

        assert not result.success
        assert result.error_codes == ("INSUFFICIENT_STOCK",)
        assert inbound.get(request_id).status is InboundStatus.PENDING
        assert app_state.ledger.quantity("p1", "m1") == 5

    def test_cancelled_cannot_complete(self, app_state, inbound):
        request_id = inbound.create("m1", [("p1", 1)]).entity_id
        inbound.cancel(request_id)

        assert inbound.complete(request_id).error_codes == ("INVALID_STATE_TRANSITION",)
        assert app_state.ledger.quantity("p1", "m1") == 5
