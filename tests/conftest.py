"""
Pytest fixtures for the payroll test suite.

Provides:
- The bundled 2025-26 tax-year table
- Calculators and an orchestrator bound to that table
- Log capture through the structured JSON formatter
"""

import json
import logging
from io import StringIO

import pytest

from payroll_config import clear_cache, get_tax_year_config
from payroll_engines.income_tax import IncomeTaxCalculator
from payroll_engines.national_insurance import NationalInsuranceCalculator
from payroll_engines.pension import PensionContributionCalculator
from payroll_engines.student_loan import StudentLoanCalculator
from payroll_engines.tax_code import TaxCodeParser
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payroll_services.payroll_orchestrator import PayrollOrchestrator


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "property: hypothesis property-based tests"
    )


@pytest.fixture(autouse=True)
def _clear_log_context():
    """LogContext is process-wide; never let one test leak into the next."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture(scope="session")
def tax_year_config():
    clear_cache()
    return get_tax_year_config("2025-26")


@pytest.fixture
def parser(tax_year_config):
    return TaxCodeParser(tax_year_config)


@pytest.fixture
def income_tax(tax_year_config):
    return IncomeTaxCalculator(tax_year_config)


@pytest.fixture
def national_insurance(tax_year_config):
    return NationalInsuranceCalculator(tax_year_config)


@pytest.fixture
def pension(tax_year_config):
    return PensionContributionCalculator(tax_year_config)


@pytest.fixture
def student_loan(tax_year_config):
    return StudentLoanCalculator(tax_year_config)


@pytest.fixture
def orchestrator(tax_year_config):
    return PayrollOrchestrator(tax_year_config)


@pytest.fixture
def captured_logs():
    """
    Capture structured log records as parsed JSON dicts.

    Usage:
        def test_something(captured_logs, orchestrator):
            orchestrator.calculate_payroll(...)
            records = captured_logs()
            assert any(r["message"] == "payroll_calculated" for r in records)
    """
    reset_logging()
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    configure_logging(handler=handler, level=logging.DEBUG)

    def _get_records() -> list[dict]:
        return [
            json.loads(line)
            for line in stream.getvalue().splitlines()
            if line.strip()
        ]

    yield _get_records
    reset_logging()
