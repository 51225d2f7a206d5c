"""Tests for the structured logging system (invest_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from invest_kernel.domain.values import LiquidityCycle, WithdrawalKind
from invest_kernel.exceptions import BelowMinimumError, NotYetEligibleError
from invest_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
)


class JsonLines:
    """StringIO-backed handler whose output is read back as JSON objects."""

    def __init__(self):
        self.stream = StringIO()
        self.handler = logging.StreamHandler(self.stream)
        self.handler.setFormatter(StructuredFormatter())

    def records(self) -> list[dict]:
        return [json.loads(line) for line in self.stream.getvalue().splitlines() if line]

    def first(self) -> dict:
        return self.records()[0]


@pytest.fixture
def json_logs() -> JsonLines:
    sink = JsonLines()
    configure_logging(handler=sink.handler)
    return sink


@pytest.fixture
def log():
    return get_logger("test")


# ---------------------------------------------------------------------------
# StructuredFormatter
# ---------------------------------------------------------------------------


class TestStructuredFormatter:
    def test_basic_fields(self, json_logs, log):
        log.info("hello")

        record = json_logs.first()
        assert record["level"] == "INFO"
        assert record["message"] == "hello"
        assert record["logger"] == "invest_kernel.test"
        assert "ts" in record

    def test_extra_fields_included(self, json_logs, log):
        log.info("resolved", extra={"months": 12, "kind": "total"})

        record = json_logs.first()
        assert record["months"] == 12
        assert record["kind"] == "total"

    def test_domain_values_serialized(self, json_logs, log):
        uid = uuid4()
        log.info("with_values", extra={
            "request_id": uid,
            "amount": Decimal("10.50"),
            "cycle": LiquidityCycle.SEMIANNUAL,
            "as_of": date(2025, 3, 1),
        })

        record = json_logs.first()
        assert record["request_id"] == str(uid)
        assert record["amount"] == "10.50"
        assert record["cycle"] == "semiannual"
        assert record["as_of"] == "2025-03-01"

    def test_context_fields_included(self, json_logs, log):
        LogContext.set(correlation_id="abc-123", investment_id="inv-456")
        log.info("test_msg")

        record = json_logs.first()
        assert record["correlation_id"] == "abc-123"
        assert record["investment_id"] == "inv-456"

    def test_no_context_fields_when_empty(self, json_logs, log):
        log.info("bare_message")

        record = json_logs.first()
        assert "correlation_id" not in record
        assert "investment_id" not in record

    def test_plain_exception(self, json_logs, log):
        try:
            raise ValueError("boom")
        except ValueError:
            log.error("failed", exc_info=True)

        record = json_logs.first()
        assert record["exc_type"] == "ValueError"
        assert record["exc_message"] == "boom"
        assert "exc_code" not in record
        assert "traceback" in record

    def test_coded_exception_attributes(self, json_logs, log):
        try:
            raise BelowMinimumError(Decimal("500"), Decimal("1000"))
        except BelowMinimumError:
            log.error("withdrawal_error", exc_info=True)

        record = json_logs.first()
        assert record["exc_code"] == "BELOW_MINIMUM"
        assert record["exc_type"] == "BelowMinimumError"
        assert record["exc_requested"] == "500"
        assert record["exc_minimum"] == "1000"

    def test_exception_date_attribute(self, json_logs, log):
        try:
            raise NotYetEligibleError(WithdrawalKind.MONTHLY_RETURN, date(2025, 2, 14))
        except NotYetEligibleError:
            log.error("withdrawal_error", exc_info=True)

        record = json_logs.first()
        assert record["exc_code"] == "NOT_YET_ELIGIBLE"
        assert record["exc_kind"] == "monthly_return"
        assert record["exc_eligible_on"] == "2025-02-14"

    def test_debug_filtered_at_default_level(self, json_logs, log):
        log.info("first")
        log.warning("second", extra={"k": "v"})
        log.debug("third")

        assert [r["message"] for r in json_logs.records()] == ["first", "second"]


# ---------------------------------------------------------------------------
# LogContext
# ---------------------------------------------------------------------------


class TestLogContext:
    def test_set_is_additive(self):
        LogContext.set(correlation_id="x")
        LogContext.set(investment_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "investment_id": "y"}

    def test_none_does_not_overwrite(self):
        LogContext.set(investment_id="keep")
        LogContext.set(investment_id=None, actor_id="ops")
        assert LogContext.get_all() == {"investment_id": "keep", "actor_id": "ops"}

    def test_clear(self):
        LogContext.set(correlation_id="x", trace_id="t")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_overrides_and_restores(self):
        LogContext.set(investment_id="outer")
        with LogContext.bind(investment_id="inner", actor_id="desk"):
            assert LogContext.get_all() == {"investment_id": "inner", "actor_id": "desk"}
        assert LogContext.get_all() == {"investment_id": "outer"}

    def test_bind_restores_empty(self):
        with LogContext.bind(investment_id="temp"):
            assert LogContext.get_all()["investment_id"] == "temp"
        assert LogContext.get_all() == {}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="Unknown log context field"):
            LogContext.bind(portfolio="p")

    def test_engine_logs_carry_bound_investment(self, json_logs):
        from invest_engines.projection import ReturnProjector

        with LogContext.bind(investment_id="inv-ctx"):
            ReturnProjector().project(
                Decimal("1000"), Decimal("0.02"), 6, LiquidityCycle.MONTHLY
            )

        records = json_logs.records()
        assert {r["message"] for r in records} >= {
            "projection_started", "projection_calculated", "INVEST_ENGINE_TRACE",
        }
        assert all(r["investment_id"] == "inv-ctx" for r in records)


# ---------------------------------------------------------------------------
# configure_logging
# ---------------------------------------------------------------------------


class TestConfigureLogging:
    def test_second_call_is_noop(self, json_logs):
        second = JsonLines()
        configure_logging(handler=second.handler)

        handlers = logging.getLogger("invest_kernel").handlers
        assert json_logs.handler in handlers
        assert second.handler not in handlers

    def test_get_logger_namespace(self):
        assert get_logger("services.investment_desk").name == (
            "invest_kernel.services.investment_desk"
        )

    def test_level_applies_to_children(self):
        sink = JsonLines()
        configure_logging(handler=sink.handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")

        record = sink.first()
        assert record["message"] == "hierarchy_test"
        assert record["logger"] == "invest_kernel.deep.nested.module"
