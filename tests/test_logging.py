"""
Tests for structured logging (retail_kernel/logging_config.py).

Covers:
- JSON line layout, money/quantity/enum encoding, kernel error fields
- LogContext binding and restoring
- Context carried by orchestrator operations down to stock movements
- configure_logging() initialization
"""

import json
import logging
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from retail_kernel.domain.values import DocumentKind, StockOperation
from retail_kernel.exceptions import InsufficientStockError
from retail_kernel.logging_config import (
    CONTEXT_FIELDS,
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)
from tests.conftest import line


@pytest.fixture
def kernel_stream():
    """Fresh logging setup writing JSON lines to a StringIO; suite config restored after."""
    reset_logging()
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    configure_logging(handler=handler)

    def _records() -> list[dict]:
        return [json.loads(row) for row in stream.getvalue().splitlines() if row]

    yield _records
    reset_logging()
    configure_logging(level=logging.DEBUG)


class TestJSONLines:

    def test_record_layout(self, kernel_stream):
        get_logger("services.inventory_ledger").info("stock_delta_applied")

        (record,) = kernel_stream()
        assert record["level"] == "INFO"
        assert record["message"] == "stock_delta_applied"
        assert record["logger"] == "retail_kernel.services.inventory_ledger"
        assert record["ts"].endswith("+00:00")

    def test_money_and_quantities_keep_their_digits(self, kernel_stream):
        variant_id = uuid4()
        get_logger("test").info(
            "stock_delta_applied",
            extra={
                "product_variant_id": variant_id,
                "new_quantity": Decimal("7.500"),
                "total": Decimal("104000.00"),
                "operation": StockOperation.SUBTRACT,
                "document_kind": DocumentKind.BILLING,
            },
        )

        (record,) = kernel_stream()
        assert record["product_variant_id"] == str(variant_id)
        assert record["new_quantity"] == "7.500"
        assert record["total"] == "104000.00"
        assert record["operation"] == StockOperation.SUBTRACT.value
        assert record["document_kind"] == "billing"

    def test_kernel_error_details(self, kernel_stream):
        try:
            raise InsufficientStockError("variant-1", "stock-1", "1", "2")
        except InsufficientStockError:
            get_logger("test").warning("stock_delta_rejected", exc_info=True)

        (record,) = kernel_stream()
        assert record["exc_type"] == "InsufficientStockError"
        assert record["exc_code"] == "INSUFFICIENT_STOCK"
        assert record["exc_kind"] == "conflict"
        assert record["exc_available"] == "1"
        assert record["exc_requested"] == "2"
        assert "traceback" in record

    def test_plain_error_has_no_kernel_fields(self, kernel_stream):
        try:
            raise ValueError("boom")
        except ValueError:
            get_logger("test").error("billing_create_failed", exc_info=True)

        (record,) = kernel_stream()
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record

    def test_debug_filtered_at_info(self, kernel_stream):
        logger = get_logger("test")
        logger.debug("line_items_replaced")
        logger.info("document_created")

        assert [r["message"] for r in kernel_stream()] == ["document_created"]


class TestLogContext:

    def test_bound_fields_written(self, kernel_stream):
        with LogContext.bind(request_id="req-1", shop_slug="tienda-centro"):
            get_logger("test").info("billing_create_started")
        get_logger("test").info("after")

        inside, after = kernel_stream()
        assert inside["request_id"] == "req-1"
        assert inside["shop_slug"] == "tienda-centro"
        assert "request_id" not in after

    def test_nested_bind_restores_outer_value(self):
        with LogContext.bind(serial_number="FAC-2024-000001"):
            with LogContext.bind(serial_number="FAC-2024-000002", document_id="d-2"):
                assert LogContext.get_all()["serial_number"] == "FAC-2024-000002"
            assert LogContext.get_all() == {"serial_number": "FAC-2024-000001"}
        assert LogContext.get_all() == {}

    def test_none_values_not_bound(self):
        with LogContext.bind(actor_id=None, shop_slug="store-miami"):
            assert LogContext.get_all() == {"shop_slug": "store-miami"}

    def test_values_stored_as_strings(self):
        actor_id = uuid4()
        LogContext.set(actor_id=actor_id)
        assert LogContext.get_all() == {"actor_id": str(actor_id)}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="Unknown log context field"):
            LogContext.set(customer="Ana")

    def test_clear(self):
        LogContext.set(**{name: "x" for name in CONTEXT_FIELDS})
        assert len(LogContext.get_all()) == len(CONTEXT_FIELDS)
        LogContext.clear()
        assert LogContext.get_all() == {}


class TestOperationContext:
    """Orchestrator operations bind their identity into every record they cause."""

    def test_stock_movement_carries_serial(self, orchestrator, make_input, seed, captured_logs):
        orchestrator.create_billing(make_input([line(seed.hammer_id, 2, 25000)]))

        logs = captured_logs()
        movement = next(r for r in logs if r["message"] == "stock_delta_applied")
        started = next(r for r in logs if r["message"] == "billing_create_started")
        assert movement["serial_number"] == "FAC-2024-000001"
        assert movement["shop_slug"] == seed.shop_slug
        assert movement["correlation_id"] == started["correlation_id"]

    def test_cancel_restock_carries_serial(self, orchestrator, make_input, seed, captured_logs):
        created = orchestrator.create_billing(make_input([line(seed.hammer_id, 1, 25000)]))
        orchestrator.cancel_billing(created.id)

        restocks = [
            r for r in captured_logs()
            if r["message"] == "stock_delta_applied" and r["operation"] == StockOperation.ADD.value
        ]
        assert [r["serial_number"] for r in restocks] == ["FAC-2024-000001"]
        assert restocks[0]["document_id"] == str(created.id)

    def test_context_released_after_operation(self, orchestrator, make_input, seed, test_actor_id):
        orchestrator.create_billing(make_input([line(seed.hammer_id, 1, 25000)]), actor_id=test_actor_id)
        assert LogContext.get_all() == {}


class TestConfigureLogging:

    def test_second_call_keeps_first_handler(self, kernel_stream):
        second = logging.StreamHandler(StringIO())
        configure_logging(handler=second)

        handlers = logging.getLogger("retail_kernel").handlers
        structured = [h for h in handlers if isinstance(h.formatter, StructuredFormatter)]
        assert len(structured) == 1
        assert second not in handlers

    def test_level_name_case_insensitive(self):
        reset_logging()
        try:
            configure_logging(level="warning", stream=StringIO())
            assert logging.getLogger("retail_kernel").level == logging.WARNING
        finally:
            reset_logging()
            configure_logging(level=logging.DEBUG)

    def test_get_logger_namespaced(self):
        assert get_logger("api.app").name == "retail_kernel.api.app"
