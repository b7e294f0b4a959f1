"""
National Insurance Engine - Class 1 employee and employer contributions.

Pure functions with no I/O.  NI is non-cumulative: each period stands
alone against period thresholds (annual threshold / periods per year).

Employee (primary) contributions:
    - Nothing up to the primary threshold (PT).
    - Main rate between PT and the upper earnings limit (UEL).
    - Reduced rate above UEL.
    - Categories flagged ``employee_exempt`` (C, over state pension age)
      pay nothing.

Employer (secondary) contributions:
    - Employer rate above the secondary threshold (ST).
    - Categories flagged ``employer_relief_to_uel`` (H, M, Z) pay 0%
      between ST and UEL and the employer rate only above UEL.

Each band is rounded to pence before the bands are summed.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_config import get_tax_year_config
from payroll_config.schema import TaxYearConfig
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.amounts import apply_rate, periodize_amount
from payroll_kernel.domain.enums import NICategory, PayFrequency
from payroll_kernel.domain.payroll import BandLine
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.national_insurance")

_ZERO_RATE = Decimal("0")


@dataclass(frozen=True)
class NIThresholds:
    """Period-equivalent NI thresholds in pence."""

    primary_threshold: int
    upper_earnings_limit: int
    secondary_threshold: int


@dataclass(frozen=True)
class EmployeeNIResult:
    employee_ni: int
    category: NICategory
    bands: tuple[BandLine, ...] = ()


@dataclass(frozen=True)
class EmployerNIResult:
    employer_ni: int
    category: NICategory
    bands: tuple[BandLine, ...] = ()


def _band(name: str, earnings: int, rate: Decimal) -> BandLine:
    return BandLine(
        band=name,
        taxable_amount=earnings,
        rate=rate,
        amount=apply_rate(earnings, rate),
    )


class NationalInsuranceCalculator:
    """
    Calculate Class 1 National Insurance.

    Pure - no I/O.  Thresholds and rates come from the tax-year table.
    """

    def __init__(self, config: TaxYearConfig | None = None):
        self._config = config or get_tax_year_config()

    def period_thresholds(self, pay_frequency: PayFrequency | str) -> NIThresholds:
        """Annual thresholds converted to one pay period."""
        ni = self._config.national_insurance
        return NIThresholds(
            primary_threshold=periodize_amount(ni.primary_threshold, pay_frequency),
            upper_earnings_limit=periodize_amount(ni.upper_earnings_limit, pay_frequency),
            secondary_threshold=periodize_amount(ni.secondary_threshold, pay_frequency),
        )

    @traced_engine(
        "employee_ni",
        "1.0",
        fingerprint_fields=("gross_pay_in_pence", "pay_frequency", "ni_category"),
    )
    def calculate_employee_ni(
        self,
        gross_pay_in_pence: int,
        pay_frequency: PayFrequency | str,
        ni_category: NICategory | str = NICategory.A,
    ) -> EmployeeNIResult:
        """
        Employee NI for one period.

        Raises:
            ValueError: Unknown NI category or pay frequency.
        """
        category = NICategory(ni_category)
        ni = self._config.national_insurance
        policy = ni.policy(category)
        if policy.employee_exempt:
            return EmployeeNIResult(employee_ni=0, category=category)

        thresholds = self.period_thresholds(pay_frequency)
        pt = thresholds.primary_threshold
        uel = thresholds.upper_earnings_limit
        if gross_pay_in_pence <= pt:
            return EmployeeNIResult(employee_ni=0, category=category)

        bands = [_band("main_rate", min(gross_pay_in_pence, uel) - pt, ni.employee_main_rate)]
        if gross_pay_in_pence > uel:
            bands.append(
                _band("reduced_rate", gross_pay_in_pence - uel, ni.employee_reduced_rate)
            )

        total = sum(line.amount for line in bands)
        logger.debug(
            "employee_ni_calculated",
            extra={"ni_category": category.value, "employee_ni": total},
        )
        return EmployeeNIResult(employee_ni=total, category=category, bands=tuple(bands))

    @traced_engine(
        "employer_ni",
        "1.0",
        fingerprint_fields=("gross_pay_in_pence", "pay_frequency", "ni_category"),
    )
    def calculate_employer_ni(
        self,
        gross_pay_in_pence: int,
        pay_frequency: PayFrequency | str,
        ni_category: NICategory | str = NICategory.A,
    ) -> EmployerNIResult:
        """Employer NI for one period."""
        category = NICategory(ni_category)
        ni = self._config.national_insurance
        policy = ni.policy(category)
        thresholds = self.period_thresholds(pay_frequency)
        st = thresholds.secondary_threshold
        uel = thresholds.upper_earnings_limit
        if gross_pay_in_pence <= st:
            return EmployerNIResult(employer_ni=0, category=category)

        if policy.employer_relief_to_uel:
            relief_top = max(st, uel)
            bands = [_band("relief_to_uel", min(gross_pay_in_pence, relief_top) - st, _ZERO_RATE)]
            if gross_pay_in_pence > relief_top:
                bands.append(_band("employer_rate", gross_pay_in_pence - relief_top, ni.employer_rate))
        else:
            bands = [_band("employer_rate", gross_pay_in_pence - st, ni.employer_rate)]

        total = sum(line.amount for line in bands)
        logger.debug(
            "employer_ni_calculated",
            extra={"ni_category": category.value, "employer_ni": total},
        )
        return EmployerNIResult(employer_ni=total, category=category, bands=tuple(bands))
