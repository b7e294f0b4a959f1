"""
Tests for structured payroll logging (payroll_kernel/logging_config.py).

Covers:
- Orchestrator events stamped with the correlation id and period number
- Decimal, enum and date values in engine and config payloads
- Error codes and structured fields of payroll exceptions
- One JSON handler, however often logging is configured
"""

import json
import logging
from datetime import date
from io import StringIO

import pytest

from payroll_kernel.domain.enums import PayFrequency
from payroll_kernel.domain.payroll import PayrollCalculationInput
from payroll_kernel.exceptions import InvalidTaxCodeError, PayrollValidationError
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)

MONTHLY = PayFrequency.MONTHLY


def _events(records, message):
    return [r for r in records if r["message"] == message]


def _monthly(period_number, gross=300000):
    return PayrollCalculationInput(
        gross_pay_in_pence=gross,
        tax_code="1257L",
        pay_frequency=MONTHLY,
        period_number=period_number,
    )


class TestPayrollEvents:
    """What a pay run writes to the log."""

    def test_payroll_calculated_record(self, orchestrator, captured_logs):
        LogContext.set(correlation_id="run-2025-07")
        orchestrator.calculate_payroll(_monthly(4))
        record = _events(captured_logs(), "payroll_calculated")[0]

        assert record["level"] == "INFO"
        assert record["logger"] == "payroll_kernel.services.payroll_orchestrator"
        assert record["correlation_id"] == "run-2025-07"
        assert record["period_number"] == "4"
        assert record["tax_code"] == "1257L"
        assert record["pay_frequency"] == "monthly"
        assert record["gross_pay"] == 300000
        assert record["income_tax"] == 39050

    def test_each_period_of_a_run_is_labelled(self, orchestrator, captured_logs):
        orchestrator.run_periods([_monthly(n) for n in (1, 2, 3)])
        records = _events(captured_logs(), "payroll_calculated")
        assert [r["period_number"] for r in records] == ["1", "2", "3"]

    def test_period_released_after_calculation(self, orchestrator, captured_logs):
        LogContext.set(correlation_id="run-2025-07")
        orchestrator.calculate_payroll(_monthly(9))
        assert LogContext.get_all() == {"correlation_id": "run-2025-07"}

    def test_records_outside_a_calculation_have_no_period(self, captured_logs):
        get_logger("services.batch").info("pay_run_started")
        record = captured_logs()[0]
        assert "period_number" not in record
        assert "correlation_id" not in record

    def test_negative_net_pay_is_a_warning(self, orchestrator, captured_logs):
        payroll_input = PayrollCalculationInput(
            gross_pay_in_pence=10000,
            tax_code="1257L",
            pay_frequency=MONTHLY,
            other_deductions=50000,
        )
        orchestrator.calculate_payroll(payroll_input)
        record = _events(captured_logs(), "negative_net_pay")[0]
        assert record["level"] == "WARNING"
        assert record["net_pay"] == -40000

    def test_every_line_is_a_json_object(self, orchestrator, captured_logs):
        orchestrator.calculate_payroll(_monthly(1))
        records = captured_logs()
        assert len(records) > 1
        for record in records:
            assert {"ts", "level", "logger", "message"} <= set(record)


class TestPayloadEncoding:
    """Rates keep their digits; enums and dates become plain JSON."""

    def test_student_loan_rate_is_a_string(self, student_loan, captured_logs):
        student_loan.calculate_student_loan_deduction(300000, MONTHLY, "plan1")
        record = _events(captured_logs(), "student_loan_calculated")[0]

        assert record["plan"] == "plan1"
        assert record["rate"] == "0.09"
        assert record["period_threshold"] == 208250
        assert record["deduction"] == 8258

    def test_paye_special_code_written_as_value(self, income_tax, captured_logs):
        income_tax.calculate_paye(200000, "SD0", MONTHLY)
        record = _events(captured_logs(), "paye_calculated")[0]

        assert record["special_code"] == "D0"
        assert record["region"] == "scotland"
        assert record["income_tax"] == 42000

    def test_standard_code_has_null_special_code(self, income_tax, captured_logs):
        income_tax.calculate_paye(300000, "1257L", MONTHLY)
        record = _events(captured_logs(), "paye_calculated")[0]
        assert record["special_code"] is None

    def test_config_trace_dates_iso(self):
        record = logging.makeLogRecord(
            {
                "name": "payroll_kernel.config",
                "levelname": "INFO",
                "msg": "PAYROLL_CONFIG_TRACE",
                "tax_year": "2025-26",
                "start_date": date(2025, 4, 6),
                "end_date": date(2026, 4, 5),
            }
        )
        line = json.loads(StructuredFormatter().format(record))
        assert line["start_date"] == "2025-04-06"
        assert line["end_date"] == "2026-04-05"


class TestExceptionFields:
    """Payroll errors are logged with their code and attributes."""

    def test_invalid_tax_code(self, parser, captured_logs):
        logger = get_logger("services.batch")
        try:
            parser.parse("XYZ")
        except InvalidTaxCodeError:
            logger.error("payslip_skipped", exc_info=True)

        record = _events(captured_logs(), "payslip_skipped")[0]
        assert record["exc_type"] == "InvalidTaxCodeError"
        assert record["exc_code"] == "INVALID_TAX_CODE"
        assert record["exc_raw_code"] == "XYZ"
        assert record["exc_reason"]
        assert "Traceback" in record["traceback"]

    def test_parser_warns_before_raising(self, parser, captured_logs):
        with pytest.raises(InvalidTaxCodeError):
            parser.parse("XYZ")
        record = _events(captured_logs(), "tax_code_rejected")[0]
        assert record["level"] == "WARNING"
        assert record["raw_code"] == "XYZ"

    def test_validation_errors_keyed_by_field(self, orchestrator, captured_logs):
        logger = get_logger("services.batch")
        try:
            orchestrator.calculate_from_mapping(
                {"gross_pay_in_pence": -5, "tax_code": "1257L", "pay_frequency": "daily"}
            )
        except PayrollValidationError:
            logger.error("payslip_skipped", exc_info=True)

        records = captured_logs()
        assert _events(records, "payroll_input_rejected")[0]["fields"] == [
            "gross_pay_in_pence",
            "pay_frequency",
        ]
        failure = _events(records, "payslip_skipped")[0]
        assert failure["exc_code"] == "PAYROLL_VALIDATION_FAILED"
        assert set(failure["exc_errors"]) == {"gross_pay_in_pence", "pay_frequency"}

    def test_other_exceptions_have_no_code(self, captured_logs):
        try:
            raise ZeroDivisionError("division by zero")
        except ZeroDivisionError:
            get_logger("services.batch").error("unexpected", exc_info=True)

        record = captured_logs()[0]
        assert record["exc_type"] == "ZeroDivisionError"
        assert "exc_code" not in record


class TestLogContext:
    def test_only_known_fields(self):
        with pytest.raises(TypeError, match="employee_id"):
            LogContext.set(employee_id="E100")
        with pytest.raises(TypeError):
            with LogContext.bind(pay_run_id="R1"):
                pass

    def test_bind_restores_outer_value(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner", period_number=2):
            assert LogContext.get_all() == {"correlation_id": "inner", "period_number": "2"}
        assert LogContext.get_all() == {"correlation_id": "outer"}

    def test_bind_restores_on_error(self):
        with pytest.raises(RuntimeError):
            with LogContext.bind(period_number=5):
                raise RuntimeError("calculation failed")
        assert LogContext.get_all() == {}

    def test_none_leaves_field_alone(self):
        LogContext.set(correlation_id="kept")
        LogContext.set(correlation_id=None, period_number=1)
        assert LogContext.get_all() == {"correlation_id": "kept", "period_number": "1"}


class TestConfigureLogging:
    @pytest.fixture(autouse=True)
    def _fresh_logging(self):
        reset_logging()
        yield
        reset_logging()

    def test_first_handler_wins(self):
        first = logging.StreamHandler(StringIO())
        second = logging.StreamHandler(StringIO())

        assert configure_logging(handler=first) is first
        assert configure_logging(handler=second, level=logging.DEBUG) is first
        root = logging.getLogger("payroll_kernel")
        assert root.handlers == [first]
        assert root.level == logging.INFO

    def test_default_level_drops_engine_debug(self, income_tax):
        stream = StringIO()
        configure_logging(stream=stream)
        income_tax.calculate_paye(300000, "1257L", MONTHLY)

        messages = [json.loads(line)["message"] for line in stream.getvalue().splitlines()]
        assert "PAYROLL_ENGINE_TRACE" in messages
        assert "paye_calculated" not in messages

    def test_reset_detaches_handler(self):
        handler = configure_logging(stream=StringIO())
        reset_logging()
        assert handler not in logging.getLogger("payroll_kernel").handlers

    def test_get_logger_namespace(self):
        assert get_logger("engines.income_tax").name == "payroll_kernel.engines.income_tax"
