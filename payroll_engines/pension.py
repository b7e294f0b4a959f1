"""
Pension Engine - workplace pension contributions for one period.

Rates are in basis points (500 = 5%).  Under relief at source the
scheme claims basic-rate relief from HMRC, so the employee's pocket
cost is the gross contribution less 25% of it.  Net pay is still
reduced by the full gross contribution.

Qualifying earnings default to the whole of gross pay.  When a lower
and upper limit are given, only earnings between them count.
"""

from __future__ import annotations

from dataclasses import dataclass

from payroll_config import get_tax_year_config
from payroll_config.schema import TaxYearConfig
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.amounts import BASIS_POINTS, apply_basis_points, apply_rate
from payroll_kernel.domain.payroll import PensionBreakdown
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.pension")


@dataclass(frozen=True)
class PensionResult:
    employee_contribution: int = 0
    employer_contribution: int = 0
    tax_relief: int = 0
    qualifying_earnings: int = 0

    @property
    def employee_net_deduction(self) -> int:
        return self.employee_contribution - self.tax_relief

    def to_breakdown(self) -> PensionBreakdown:
        return PensionBreakdown(
            qualifying_earnings=self.qualifying_earnings,
            employee_gross_contribution=self.employee_contribution,
            tax_relief=self.tax_relief,
            employee_net_deduction=self.employee_net_deduction,
            employer_contribution=self.employer_contribution,
        )


def qualifying_earnings(gross_pay_in_pence: int, lower: int = 0, upper: int = 0) -> int:
    """Earnings between ``lower`` and ``upper``; all of gross when no upper limit."""
    if upper <= 0:
        return max(0, gross_pay_in_pence - lower)
    return min(max(0, gross_pay_in_pence - lower), max(0, upper - lower))


class PensionContributionCalculator:
    """Calculate employee and employer pension contributions."""

    def __init__(self, config: TaxYearConfig | None = None):
        self._config = config or get_tax_year_config()

    @traced_engine(
        "pension",
        "1.0",
        fingerprint_fields=("gross_pay_in_pence", "pension_opt_in", "employee_rate_bp", "employer_rate_bp"),
    )
    def calculate_pension_contributions(
        self,
        gross_pay_in_pence: int,
        pension_opt_in: bool,
        employee_rate_bp: int,
        employer_rate_bp: int | None = None,
        relief_at_source: bool = True,
        qualifying_lower: int = 0,
        qualifying_upper: int = 0,
    ) -> PensionResult:
        """
        Contributions for one period.

        Returns all zeros when the employee has opted out.

        Raises:
            ValueError: If a rate is outside 0..10000 basis points.
        """
        if not pension_opt_in:
            return PensionResult()

        pension = self._config.pension
        employer_bp = pension.employer_rate_bp if employer_rate_bp is None else employer_rate_bp
        for name, bp in (("employee_rate_bp", employee_rate_bp), ("employer_rate_bp", employer_bp)):
            if not 0 <= bp <= BASIS_POINTS:
                raise ValueError(f"{name} must be between 0 and 10000, got {bp}")

        qualifying = qualifying_earnings(gross_pay_in_pence, qualifying_lower, qualifying_upper)
        employee = apply_basis_points(qualifying, employee_rate_bp)
        employer = apply_basis_points(qualifying, employer_bp)
        relief = apply_rate(employee, pension.relief_at_source_rate) if relief_at_source else 0

        logger.debug(
            "pension_calculated",
            extra={
                "qualifying_earnings": qualifying,
                "employee_contribution": employee,
                "employer_contribution": employer,
                "tax_relief": relief,
            },
        )
        return PensionResult(
            employee_contribution=employee,
            employer_contribution=employer,
            tax_relief=relief,
            qualifying_earnings=qualifying,
        )
