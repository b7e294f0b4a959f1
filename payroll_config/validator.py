"""
Tax-Year Table Validator (``payroll_config.validator``).

Responsibility
--------------
Checks a parsed ``TaxYearConfig`` for completeness and consistency
before any calculator is allowed to use it.  Band-table ordering and
contiguity are already enforced by ``TaxBandTable`` construction; this
module checks everything that spans more than one table.

Invariants enforced
-------------------
* Band tables exist for rest-of-UK and Scotland.
* Rest-of-UK flat rates exist for BR, D0 and D1.
* Every ``NICategory`` and every ``StudentLoanPlan`` is covered.
* NI thresholds ascend (PT < UEL) and all rates lie in [0, 1].
* The tax year's start date precedes its end date.

Failure modes
-------------
* Errors (``ConfigValidationResult.errors``) -> the table MUST NOT be
  used.
* Warnings -> the table may be used but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from payroll_config.schema import TaxYearConfig
from payroll_kernel.domain.enums import (
    NICategory,
    SpecialTaxCode,
    StudentLoanPlan,
    TaxRegion,
)

_REQUIRED_FLAT_CODES = (SpecialTaxCode.BR, SpecialTaxCode.D0, SpecialTaxCode.D1)


@dataclass
class ConfigValidationResult:
    """
    Result of tax-year validation.

    ``is_valid`` is ``True`` only when ``errors`` is empty.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_tax_year_config(config: TaxYearConfig) -> ConfigValidationResult:
    """Validate a tax-year table. Never raises; inspect the result."""
    result = ConfigValidationResult()

    _validate_dates(config, result)
    _validate_income_tax(config, result)
    _validate_national_insurance(config, result)
    _validate_student_loans(config, result)
    _validate_pension(config, result)

    return result


def _rate_in_range(rate: Decimal) -> bool:
    return Decimal("0") <= rate <= Decimal("1")


def _validate_dates(config: TaxYearConfig, result: ConfigValidationResult) -> None:
    if config.start_date >= config.end_date:
        result.add_error(
            f"Tax year {config.tax_year}: start_date {config.start_date} "
            f"is not before end_date {config.end_date}"
        )


def _validate_income_tax(config: TaxYearConfig, result: ConfigValidationResult) -> None:
    income_tax = config.income_tax
    for region in (TaxRegion.REST_OF_UK, TaxRegion.SCOTLAND):
        if region not in income_tax.band_tables:
            result.add_error(f"Missing income tax bands for region '{region.value}'")
    if TaxRegion.WALES in income_tax.band_tables:
        result.add_warning("Welsh band table is ignored; Wales uses rest-of-UK bands")

    rest_of_uk_flat = income_tax.flat_rates.get(TaxRegion.REST_OF_UK, {})
    for code in _REQUIRED_FLAT_CODES:
        if code not in rest_of_uk_flat:
            result.add_error(f"Missing flat rate for tax code {code.value}")
    for region, rates in income_tax.flat_rates.items():
        for code, rate in rates.items():
            if not code.is_flat_rate:
                result.add_error(f"{code.value} cannot carry a flat rate ({region.value})")
            if not _rate_in_range(rate):
                result.add_error(f"Flat rate {code.value} ({region.value}) out of range")

    if income_tax.personal_allowance.amount < 0:
        result.add_error("Personal allowance cannot be negative")


def _validate_national_insurance(
    config: TaxYearConfig, result: ConfigValidationResult
) -> None:
    ni = config.national_insurance
    if ni.upper_earnings_limit <= ni.primary_threshold:
        result.add_error("NI upper earnings limit must exceed the primary threshold")
    if ni.secondary_threshold >= ni.upper_earnings_limit:
        result.add_warning("NI secondary threshold is at or above the upper earnings limit")
    for name in ("employee_main_rate", "employee_reduced_rate", "employer_rate"):
        if not _rate_in_range(getattr(ni, name)):
            result.add_error(f"NI {name} out of range")

    missing = [c.value for c in NICategory if c not in ni.categories]
    if missing:
        result.add_error(f"Missing NI category policies: {', '.join(missing)}")


def _validate_student_loans(config: TaxYearConfig, result: ConfigValidationResult) -> None:
    missing = [p.value for p in StudentLoanPlan if p not in config.student_loans]
    if missing:
        result.add_error(f"Missing student loan plans: {', '.join(missing)}")
    for plan, plan_config in config.student_loans.items():
        if plan_config.annual_threshold < 0:
            result.add_error(f"Student loan {plan.value} threshold cannot be negative")
        if not _rate_in_range(plan_config.rate):
            result.add_error(f"Student loan {plan.value} rate out of range")


def _validate_pension(config: TaxYearConfig, result: ConfigValidationResult) -> None:
    pension = config.pension
    if not 0 <= pension.employer_rate_bp <= 10000:
        result.add_error("Employer pension rate must be between 0 and 10000 basis points")
    if not _rate_in_range(pension.relief_at_source_rate):
        result.add_error("Relief-at-source rate out of range")
