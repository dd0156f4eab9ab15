"""Tests for the structured logging system (erp_kernel/logging_config.py)."""

import json
import logging
from io import StringIO
from uuid import uuid4

import pytest

from erp_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_log(stream: StringIO) -> dict:
    """Parse the first JSON log line from a stream."""
    line = stream.getvalue().strip().split("\n")[0]
    return json.loads(line)


def _parse_all_logs(stream: StringIO) -> list[dict]:
    """Parse all JSON log lines from a stream."""
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


# ---------------------------------------------------------------------------
# StructuredFormatter tests
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("hello")

        record = _parse_log(stream)
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "erp_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("sale_recorded", extra={"line_count": 2, "invoice_number": "INV-000001"})

        record = _parse_log(stream)
        assert record["line_count"] == 2
        assert record["invoice_number"] == "INV-000001"

    def test_context_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        LogContext.set(correlation_id="abc-123", product_id="prod-456")
        logger.info("test_msg")

        record = _parse_log(stream)
        assert record["correlation_id"] == "abc-123"
        assert record["product_id"] == "prod-456"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        try:
            raise ValueError("boom")
        except ValueError:
            logger.error("failed", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "traceback" in record

    def test_erp_exception_code_extracted(self):
        """ERP kernel exceptions carry .code and structured attributes."""
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        from erp_kernel.exceptions import NegativeStockError

        try:
            raise NegativeStockError("batch-1", 3, 5)
        except NegativeStockError:
            logger.error("stock_error", exc_info=True)

        record = _parse_log(stream)
        assert record["exc_code"] == "NEGATIVE_STOCK"
        assert record["exc_type"] == "NegativeStockError"
        assert record["exc_batch_id"] == "batch-1"
        assert record["exc_available"] == 3
        assert record["exc_requested"] == 5

    def test_no_context_fields_when_empty(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("bare_message")

        record = _parse_log(stream)
        assert "correlation_id" not in record
        assert "product_id" not in record

    def test_uuid_and_decimal_serialized(self):
        from decimal import Decimal

        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        uid = uuid4()
        logger.info("with_uuid", extra={"batch_id": uid, "cogs_total": Decimal("85.00")})

        record = _parse_log(stream)
        assert record["batch_id"] == str(uid)
        assert record["cogs_total"] == "85.00"

    def test_valid_json_every_line(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")
        logger.info("first")
        logger.warning("second", extra={"k": "v"})
        logger.debug("third")

        logs = _parse_all_logs(stream)
        # default level is INFO, so the debug line is dropped
        assert len(logs) == 2
        for record in logs:
            assert "ts" in record
            assert "level" in record
            assert "logger" in record
            assert "message" in record


# ---------------------------------------------------------------------------
# LogContext tests
# ---------------------------------------------------------------------------


class TestLogContext:
    """Tests for context propagation."""

    def test_set_and_get(self):
        LogContext.set(correlation_id="x", invoice_id="y")
        ctx = LogContext.get_all()
        assert ctx == {"correlation_id": "x", "invoice_id": "y"}

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_context_manager(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_restores_none(self):
        """bind() restores to None if there was no previous value."""
        assert "product_id" not in LogContext.get_all()
        with LogContext.bind(product_id="temp"):
            assert LogContext.get_all()["product_id"] == "temp"
        assert "product_id" not in LogContext.get_all()

    def test_additive_set(self):
        LogContext.set(correlation_id="a")
        LogContext.set(invoice_id="b")
        ctx = LogContext.get_all()
        assert ctx["correlation_id"] == "a"
        assert ctx["invoice_id"] == "b"

    def test_all_fields(self):
        LogContext.set(
            correlation_id="c",
            request_id="r",
            actor_id="a",
            invoice_id="i",
            product_id="p",
        )
        ctx = LogContext.get_all()
        assert len(ctx) == 5
        assert ctx["request_id"] == "r"
        assert ctx["product_id"] == "p"


# ---------------------------------------------------------------------------
# configure_logging tests
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    """Tests for initialization."""

    def test_idempotent(self):
        h1, _ = _make_handler()
        configure_logging(handler=h1)
        h2, _ = _make_handler()
        configure_logging(handler=h2)  # second call is no-op
        root = logging.getLogger("erp_kernel")
        assert len(root.handlers) == 1

    def test_get_logger_returns_child(self):
        logger = get_logger("services.invoicing")
        assert logger.name == "erp_kernel.services.invoicing"

    def test_logger_hierarchy(self):
        """Child loggers inherit the erp_kernel root config."""
        handler, stream = _make_handler()
        configure_logging(handler=handler, level=logging.DEBUG)
        child = get_logger("deep.nested.module")
        child.debug("hierarchy_test")

        record = _parse_log(stream)
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "erp_kernel.deep.nested.module"

    def test_level_name_from_settings(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler, level="debug")
        get_logger("config").debug("debug_visible")

        assert _parse_log(stream)["message"] == "debug_visible"


class TestLogContextFields:

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="Unknown log context field"):
            LogContext.set(batch_id="b-1")

    def test_nested_bind(self):
        with LogContext.bind(invoice_id="INV-000001"):
            with LogContext.bind(product_id="p-1"):
                assert LogContext.get_all() == {"invoice_id": "INV-000001", "product_id": "p-1"}
            assert LogContext.get_all() == {"invoice_id": "INV-000001"}
        assert LogContext.get_all() == {}
