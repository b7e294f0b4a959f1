"""
payroll_services.validation -- Field-level checks on raw payroll input.

Responsibility:
    Inspect an untyped mapping (as received from an HTTP handler or a CSV
    row) and report every problem at once, keyed by field name, before
    any calculator runs.

Architecture position:
    Services -- sits in front of ``PayrollOrchestrator.calculate_from_mapping``.
    Tax codes are checked with the real parser so that anything accepted
    here will also be accepted by the income-tax engine.

Failure modes:
    - Never raises for bad input; problems are collected in
      ``ValidationResult.errors``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from payroll_config.schema import TaxYearConfig
from payroll_engines.tax_code import TaxCodeParser
from payroll_kernel.domain.enums import NICategory, PayFrequency, StudentLoanPlan
from payroll_kernel.exceptions import InvalidTaxCodeError

_NON_NEGATIVE_FIELDS = (
    "bonus",
    "commission",
    "other_deductions",
    "cumulative_taxable_income",
    "cumulative_tax_paid",
)
_BASIS_POINT_FIELDS = ("pension_contribution_rate", "employer_pension_rate")


@dataclass
class ValidationResult:
    errors: dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def add_error(self, name: str, message: str) -> None:
        self.errors.setdefault(name, message)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_payroll_inputs(
    raw: Mapping[str, Any],
    config: TaxYearConfig | None = None,
) -> ValidationResult:
    """Check a raw input mapping. Returns all field errors found."""
    result = ValidationResult()

    tax_code = raw.get("tax_code")
    if tax_code is None or (isinstance(tax_code, str) and not tax_code.strip()):
        result.add_error("tax_code", "Tax code is required")
    else:
        try:
            TaxCodeParser(config).parse(tax_code)
        except InvalidTaxCodeError as e:
            result.add_error("tax_code", f"Invalid tax code: {e.reason}")

    frequency: PayFrequency | None = None
    try:
        frequency = PayFrequency(raw.get("pay_frequency"))
    except ValueError:
        result.add_error(
            "pay_frequency",
            f"Pay frequency must be one of: {', '.join(f.value for f in PayFrequency)}",
        )

    gross = raw.get("gross_pay_in_pence")
    salary = raw.get("annual_salary_in_pence")
    if gross is None:
        if salary is None:
            result.add_error("gross_pay_in_pence", "Gross pay or annual salary is required")
        elif not _is_int(salary) or salary < 0:
            result.add_error("annual_salary_in_pence", "Annual salary must be a non-negative integer")
    elif not _is_int(gross) or gross < 0:
        result.add_error("gross_pay_in_pence", "Gross pay must be a non-negative integer")

    category = raw.get("ni_category")
    if category is not None:
        try:
            NICategory(category)
        except ValueError:
            result.add_error("ni_category", f"Unknown NI category {category!r}")

    plan = raw.get("student_loan_plan")
    if plan is not None:
        try:
            StudentLoanPlan(plan)
        except ValueError:
            result.add_error("student_loan_plan", f"Unknown student loan plan {plan!r}")

    period = raw.get("period_number", 1)
    if not _is_int(period) or period < 1:
        result.add_error("period_number", "Period number must be a positive integer")
    elif frequency is not None and period > frequency.periods_per_year:
        result.add_error(
            "period_number",
            f"Period number must be between 1 and {frequency.periods_per_year} "
            f"for {frequency.value} pay",
        )

    for name in _NON_NEGATIVE_FIELDS:
        value = raw.get(name, 0)
        if not _is_int(value) or value < 0:
            result.add_error(name, f"{name} must be a non-negative integer")

    for name in _BASIS_POINT_FIELDS:
        value = raw.get(name)
        if value is None:
            continue
        if not _is_int(value) or not 0 <= value <= 10000:
            result.add_error(name, f"{name} must be between 0 and 10000 basis points")

    return result
