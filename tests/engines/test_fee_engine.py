"""
Tests for the Fee Calculator.

Covers:
- Dispatch fee tiers and weight steps
- Inbound fee
- Packing type resolution and legacy labels
- Per-item components and order packing fee
- Order price and settlement summaries
"""

from dataclasses import dataclass
from decimal import Decimal

import pytest

from fulfillment_engines.fees import (
    DEFAULT_FEE_SCHEDULE,
    FeeComponents,
    FeeSchedule,
    PackingTier,
    PackingType,
    dispatch_fee,
    inbound_fee,
    order_fee_breakdown,
    order_packing_fee,
    order_price,
    per_item_fee_components,
    resolve_packing_type,
    summarize_order_fees,
)
from fulfillment_engines.tracer import compute_input_fingerprint
from fulfillment_modules.catalog.models import Product
from fulfillment_modules.orders.models import OrderItem


@dataclass
class _Order:
    items: list
    box_fee: Decimal = Decimal("0")
    box_cutting: bool = False


class TestDispatchFee:
    """Tests for dispatch_fee tiers."""

    @pytest.mark.parametrize(
        "packing_type,expected",
        [("normal", Decimal("7")), ("fragile", Decimal("11")), ("eco_fragile", Decimal("12"))],
    )
    def test_base_fee_up_to_half_kilo(self, packing_type, expected):
        assert dispatch_fee(Decimal("0.5"), Decimal("0.5"), packing_type) == expected
        assert dispatch_fee(Decimal("0.1"), Decimal("0"), packing_type) == expected

    def test_normal_1_2_kg(self):
        """1.2 kg = base + 2 extra steps."""
        assert dispatch_fee(Decimal("1.2"), Decimal("1.2"), "normal") == Decimal("11.00")

    def test_normal_1_8_kg(self):
        assert dispatch_fee(Decimal("1.8"), Decimal("0"), "normal") == Decimal("13.00")

    def test_fragile_uses_volumetric(self):
        assert dispatch_fee(Decimal("0.8"), Decimal("1.2"), "fragile") == Decimal("19.00")

    def test_eco_fragile_increment(self):
        assert dispatch_fee(Decimal("1.0"), Decimal("0"), "eco_fragile") == Decimal("17.00")

    def test_just_over_a_step_charges_a_full_step(self):
        assert dispatch_fee(Decimal("0.501"), Decimal("0"), "normal") == Decimal("9.00")

    def test_zero_weight_pays_base(self):
        assert dispatch_fee(None, None, "normal") == Decimal("7.00")

    def test_unrecognized_type_falls_back_to_normal(self, captured_logs):
        assert dispatch_fee(Decimal("1.2"), Decimal("0"), "bubble wrap") == Decimal("11.00")
        assert any(r["message"] == "packing_type_unrecognized" for r in captured_logs())

    def test_engine_trace_emitted(self, captured_logs):
        dispatch_fee(Decimal("1"), Decimal("1"), "normal")
        traces = [r for r in captured_logs() if r["message"] == "FULFILLMENT_ENGINE_TRACE"]
        assert traces
        assert traces[-1]["engine_name"] == "dispatch_fee"
        assert traces[-1]["fee_schedule"] == "default@1"
        assert traces[-1]["result"] == "9.00"

    def test_fingerprint_ignores_decimal_scale(self):
        first = compute_input_fingerprint(("w",), {"w": Decimal("1.0")})
        second = compute_input_fingerprint(("w",), {"w": Decimal("1.00")})

        assert first == second
        assert first != compute_input_fingerprint(("w",), {"w": Decimal("1.5")})


class TestPackingTypeResolution:
    """Tests for resolve_packing_type."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("normal packing", PackingType.NORMAL),
            ("Fragile Packing", PackingType.FRAGILE),
            ("eco friendly fragile packing", PackingType.ECO_FRAGILE),
            ("eco_fragile", PackingType.ECO_FRAGILE),
            (PackingType.FRAGILE, PackingType.FRAGILE),
            (None, PackingType.NORMAL),
            ("", PackingType.NORMAL),
        ],
    )
    def test_resolution(self, raw, expected):
        assert resolve_packing_type(raw) is expected


class TestInboundFee:
    """Tests for inbound_fee."""

    def test_point_six_kilo(self):
        assert inbound_fee(Decimal("0.6"), Decimal("0.6")) == Decimal("10.00")

    def test_exact_step(self):
        assert inbound_fee(Decimal("1.0"), Decimal("0")) == Decimal("10.00")

    def test_zero_weight_is_free(self):
        assert inbound_fee(Decimal("0"), Decimal("0")) == Decimal("0.00")

    def test_volumetric_counts(self):
        assert inbound_fee(Decimal("0.2"), Decimal("1.2")) == Decimal("15.00")


class TestFeeSchedule:
    """Tests for FeeSchedule validation."""

    def test_default_packing_type_needs_tier(self):
        with pytest.raises(ValueError):
            FeeSchedule(
                packing_tiers={PackingType.FRAGILE: PackingTier(Decimal("1"), Decimal("1"))},
            )

    def test_negative_tier_rejected(self):
        with pytest.raises(ValueError):
            PackingTier(Decimal("-1"), Decimal("1"))

    def test_custom_schedule_drives_fee(self):
        schedule = FeeSchedule(
            packing_tiers={PackingType.NORMAL: PackingTier(Decimal("10"), Decimal("1"))},
        )
        assert dispatch_fee(Decimal("1.2"), Decimal("0"), "fragile", schedule) == Decimal("12.00")


class TestPerItemComponents:
    """Tests for per_item_fee_components."""

    def test_computed_packing(self, catalog):
        components = per_item_fee_components(catalog.require("p2"))
        assert components == FeeComponents(Decimal("13.00"), Decimal("0.00"), Decimal("0.00"))

    def test_explicit_overrides(self, catalog):
        components = per_item_fee_components(catalog.require("p4"))

        assert components.packing == Decimal("5.00")
        assert components.transportation == Decimal("2.00")
        assert components.warehousing == Decimal("3.00")
        assert components.total == Decimal("10.00")

    def test_zero_override_is_respected(self):
        """An explicit 0 packing fee is an override, not unset."""
        product = Product("z", "m1", weight_kg=Decimal("3"), item_packing_fee=Decimal("0"))
        assert per_item_fee_components(product).packing == Decimal("0.00")


class TestOrderPackingFee:
    """Tests for order_packing_fee and order_fee_breakdown."""

    def test_items_plus_tracking(self, catalog):
        order = _Order(items=[OrderItem("p1", 2)])
        # 7 * 2 + tracking 3
        assert order_packing_fee(order, catalog) == Decimal("17.00")

    def test_box_fee_and_cutting(self, catalog):
        order = _Order(items=[OrderItem("p4", 3)], box_fee=Decimal("4"), box_cutting=True)
        # 10 * 3 + 4 + 2 + 3
        assert order_packing_fee(order, catalog) == Decimal("39.00")

    def test_breakdown_components(self, catalog):
        order = _Order(items=[OrderItem("p4", 2), OrderItem("p2", 1)])
        breakdown = order_fee_breakdown(order, catalog)

        assert breakdown.item_packing_total == Decimal("23.00")
        assert breakdown.transportation_total == Decimal("4.00")
        assert breakdown.warehousing_total == Decimal("6.00")
        assert breakdown.tracking_fee == Decimal("3.00")
        assert breakdown.total == Decimal("36.00")

    def test_missing_product_contributes_zero(self, catalog, captured_logs):
        order = _Order(items=[OrderItem("ghost", 5), OrderItem("p1", 1)])
        breakdown = order_fee_breakdown(order, catalog)

        assert breakdown.missing_product_ids == ("ghost",)
        assert breakdown.total == Decimal("10.00")
        assert any(r["message"] == "order_fee_missing_products" for r in captured_logs())

    def test_negative_box_fee_is_clamped(self, catalog):
        order = _Order(items=[OrderItem("p1", 1)], box_fee=Decimal("-5"))
        assert order_packing_fee(order, catalog) == Decimal("10.00")

    @pytest.mark.parametrize(
        "fees,quantity,expected",
        [
            # 0.125 kg * 1/kg warehousing, 8 units: 1.000 + tracking 3
            ({"weight_kg": Decimal("0.125"), "warehousing_rate_per_kg": Decimal("1")}, 8, Decimal("4.00")),
            # 0.333 transport, 3 units: 0.999 + tracking 3
            ({"transportation_fee": Decimal("0.333")}, 3, Decimal("4.00")),
        ],
    )
    def test_sub_cent_components_round_once(self, fees, quantity, expected):
        product = Product("s", "m1", item_packing_fee=Decimal("0"), **fees)
        order = _Order(items=[OrderItem("s", quantity)])

        breakdown = order_fee_breakdown(order, {"s": product}.get)

        assert breakdown.lines[0].components.total < Decimal("0.34")
        assert breakdown.total == expected
        assert order_packing_fee(order, {"s": product}.get) == expected


class TestOrderPriceAndSummary:
    """Tests for order_price and summarize_order_fees."""

    def test_order_price_is_units_times_seven(self):
        items = [OrderItem("p1", 2), OrderItem("p2", 3)]
        assert order_price(items) == Decimal("35.00")

    def test_summary_sums_components(self, catalog):
        first = order_fee_breakdown(_Order(items=[OrderItem("p4", 1)], box_cutting=True), catalog)
        second = order_fee_breakdown(_Order(items=[OrderItem("p1", 1)], box_fee=Decimal("4")), catalog)

        summary = summarize_order_fees([first, second])

        assert summary.order_count == 2
        assert summary.item_packing == Decimal("12.00")
        assert summary.box_fee == Decimal("4.00")
        assert summary.box_cutting == Decimal("2.00")
        assert summary.tracking == Decimal("6.00")
        assert summary.total == first.total + second.total

    def test_summary_rounds_components_once(self):
        product = Product("s", "m1", item_packing_fee=Decimal("0"), transportation_fee=Decimal("0.004"))
        breakdowns = [
            order_fee_breakdown(_Order(items=[OrderItem("s", 1)]), {"s": product}.get)
            for _ in range(3)
        ]

        summary = summarize_order_fees(breakdowns)

        assert [b.transportation_total for b in breakdowns] == [Decimal("0.00")] * 3
        assert summary.transportation == Decimal("0.01")
        assert summary.total == Decimal("9.00")

    def test_empty_summary(self):
        summary = summarize_order_fees([])
        assert summary.order_count == 0
        assert summary.total == Decimal("0")

    def test_default_schedule_values(self):
        assert DEFAULT_FEE_SCHEDULE.tracking_fee == Decimal("3")
        assert DEFAULT_FEE_SCHEDULE.order_unit_price == Decimal("7")
