"""
Tests for structured logging (fulfillment_kernel/logging_config.py).

Covers:
- JSON record shape and serialisation of domain values
- Kernel exception fields on error records
- LogContext set / bind / isolation
- configure_logging idempotence and the engine tracer's logger
"""

import json
import logging
import threading
from datetime import datetime, timezone
from decimal import Decimal
from io import StringIO

import pytest

from fulfillment_kernel.exceptions import InsufficientStockError
from fulfillment_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from fulfillment_modules.inventory.models import InventoryDelta
from fulfillment_modules.orders.models import OrderStatus


@pytest.fixture(autouse=True)
def _isolated_logging():
    """Start each test unconfigured; hand the suite its DEBUG setup back after."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def json_logs():
    """
    Configure logging into a buffer and return a reader of parsed records.

    ``json_logs(level)`` configures at ``level`` (INFO by default).
    """
    stream = StringIO()

    def _configure(level: int = logging.INFO):
        configure_logging(stream=stream, level=level)
        return lambda: [json.loads(line) for line in stream.getvalue().splitlines() if line]

    return _configure


class TestRecordShape:
    """One JSON object per record."""

    def test_core_fields(self, json_logs):
        read = json_logs()
        get_logger("modules.orders.service").info("order_created")

        (record,) = read()
        assert record["level"] == "INFO"
        assert record["message"] == "order_created"
        assert record["logger"] == "fulfillment_kernel.modules.orders.service"
        assert datetime.fromisoformat(record["ts"]).tzinfo is not None

    def test_extras_merged_at_top_level(self, json_logs):
        read = json_logs()
        get_logger("t").info("order_transition_applied", extra={"units": 3, "to_state": "dispatched"})

        record = read()[0]
        assert record["units"] == 3
        assert record["to_state"] == "dispatched"

    def test_domain_values(self, json_logs):
        read = json_logs()
        get_logger("t").info(
            "values",
            extra={
                "fee": Decimal("17.00"),
                "weight": Decimal("1.200"),
                "status": OrderStatus.PACKED,
                "at": datetime(2024, 1, 1, tzinfo=timezone.utc),
                "failing": ("p1", "p2"),
                "delta": InventoryDelta("p1", "m1", -2, 3),
            },
        )

        record = read()[0]
        assert record["fee"] == "17.00"
        assert record["weight"] == "1.200"
        assert record["status"] == "packed"
        assert record["at"] == "2024-01-01T00:00:00+00:00"
        assert record["failing"] == ["p1", "p2"]
        assert record["delta"]["new_quantity"] == 3

    def test_level_threshold(self, json_logs):
        read = json_logs()
        logger = get_logger("t")
        logger.debug("hidden")
        logger.warning("inventory_operation_rejected")

        assert [r["message"] for r in read()] == ["inventory_operation_rejected"]

    def test_formatter_usable_standalone(self):
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        logger = logging.getLogger("host.app")
        logger.addHandler(handler)
        try:
            logger.warning("host_event")
        finally:
            logger.removeHandler(handler)

        assert json.loads(stream.getvalue())["logger"] == "host.app"


class TestExceptionFields:
    """Kernel errors contribute their code and attributes."""

    def test_insufficient_stock(self, json_logs):
        read = json_logs()
        try:
            raise InsufficientStockError("p1", "m1", 6, 5)
        except InsufficientStockError:
            get_logger("t").exception("reserve_failed")

        record = read()[0]
        assert record["exc_type"] == "InsufficientStockError"
        assert record["exc_code"] == "INSUFFICIENT_STOCK"
        assert record["exc_product_id"] == "p1"
        assert record["exc_requested"] == 6
        assert record["exc_available"] == 5
        assert "Traceback" in record["traceback"]

    def test_plain_exception_has_no_code(self, json_logs):
        read = json_logs()
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            get_logger("t").exception("unexpected")

        record = read()[0]
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record


class TestLogContext:
    """Context ids ride along on every record."""

    def test_context_in_records(self, json_logs):
        read = json_logs()
        LogContext.set(order_id="ord-1", merchant_id="m1")
        get_logger("t").info("order_created")

        record = read()[0]
        assert record["order_id"] == "ord-1"
        assert record["merchant_id"] == "m1"

    def test_absent_when_unset(self, json_logs):
        read = json_logs()
        get_logger("t").info("bare")

        assert "order_id" not in read()[0]

    def test_extra_does_not_override_context(self, json_logs):
        read = json_logs()
        with LogContext.bind(order_id="ord-1"):
            get_logger("t").info("x", extra={"order_id": "other"})

        assert read()[0]["order_id"] == "ord-1"

    def test_set_merges_and_clear_empties(self):
        LogContext.set(order_id="x")
        LogContext.set(request_id="y", merchant_id=None)
        assert LogContext.get_all() == {"order_id": "x", "request_id": "y"}

        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous(self):
        LogContext.set(merchant_id="outer")
        with LogContext.bind(merchant_id="inner", order_id="ord-9"):
            assert LogContext.get_all() == {"merchant_id": "inner", "order_id": "ord-9"}
        assert LogContext.get_all() == {"merchant_id": "outer"}

    def test_bind_ignores_unknown_fields(self):
        with LogContext.bind(colour="red", order_id="o"):
            assert LogContext.get_all() == {"order_id": "o"}

    def test_threads_do_not_share_context(self):
        seen: dict[str, dict] = {}

        def worker(name: str) -> None:
            with LogContext.bind(request_id=name):
                seen[name] = LogContext.get_all()

        threads = [threading.Thread(target=worker, args=(n,)) for n in ("inb-1", "inb-2")]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert seen == {"inb-1": {"request_id": "inb-1"}, "inb-2": {"request_id": "inb-2"}}
        assert LogContext.get_all() == {}


class TestConfigureLogging:
    """Initialization."""

    def test_only_first_call_counts(self):
        first, second = StringIO(), StringIO()
        configure_logging(stream=first)
        configure_logging(stream=second)
        get_logger("t").info("once")

        # The test runner may hang its own capture handlers on the same logger.
        ours = [
            h
            for h in logging.getLogger("fulfillment_kernel").handlers
            if isinstance(h.formatter, StructuredFormatter)
        ]
        assert len(ours) == 1
        assert second.getvalue() == ""
        assert "once" in first.getvalue()

    def test_does_not_propagate_to_root(self, json_logs):
        json_logs()
        assert logging.getLogger("fulfillment_kernel").propagate is False

    def test_engine_traces_use_kernel_root(self, json_logs):
        from fulfillment_engines.fees import inbound_fee

        read = json_logs(logging.DEBUG)
        inbound_fee(Decimal("0.6"), Decimal("0.6"))

        record = read()[0]
        assert record["message"] == "FULFILLMENT_ENGINE_TRACE"
        assert record["logger"] == "fulfillment_kernel.engines.tracer"
        assert len(record["input_fingerprint"]) == 16
        assert record["result"] == "10.00"
