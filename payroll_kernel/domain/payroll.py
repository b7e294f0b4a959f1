"""
Payroll Calculation Records (``payroll_kernel.domain.payroll``).

Responsibility
--------------
Frozen dataclass value objects for one pay-period calculation: the
input, the reconciled result, its per-component breakdown, and the
cumulative-tax accumulator the caller threads between periods.

Invariants enforced
-------------------
* All records are ``frozen=True`` -- constructed and consumed within one
  calculation call, never mutated.
* All monetary fields are ``int`` pence.
* Enum-typed fields accept their raw string values and are coerced on
  construction.
* ``CumulativeTaxState`` is owned by the caller.  The core never holds
  it between calls; ``advance`` returns a new state.

Failure modes
-------------
* Negative cumulative totals -> ``ValueError``.
* Unknown enum values -> ``ValueError`` from the enum constructor.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Any

from payroll_kernel.domain.enums import NICategory, PayFrequency, StudentLoanPlan
from payroll_kernel.domain.tax_code import TaxCode


@dataclass(frozen=True)
class CumulativeTaxState:
    """Year-to-date taxable income and tax paid, both in pence."""

    taxable_income: int = 0
    tax_paid: int = 0

    def __post_init__(self) -> None:
        if self.taxable_income < 0:
            raise ValueError("cumulative taxable income cannot be negative")
        if self.tax_paid < 0:
            raise ValueError("cumulative tax paid cannot be negative")

    def advance(self, taxable_income: int, tax: int) -> CumulativeTaxState:
        """State after a period with the given taxable income and tax."""
        return CumulativeTaxState(
            taxable_income=self.taxable_income + taxable_income,
            tax_paid=self.tax_paid + tax,
        )


@dataclass(frozen=True)
class BandLine:
    """Earnings falling in one band and the amount charged on them."""

    band: str
    taxable_amount: int
    rate: Decimal
    amount: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "band": self.band,
            "taxable_amount": self.taxable_amount,
            "rate": str(self.rate),
            "amount": self.amount,
        }


@dataclass(frozen=True)
class PensionBreakdown:
    qualifying_earnings: int = 0
    employee_gross_contribution: int = 0
    tax_relief: int = 0
    employee_net_deduction: int = 0
    employer_contribution: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "qualifying_earnings": self.qualifying_earnings,
            "employee_gross_contribution": self.employee_gross_contribution,
            "tax_relief": self.tax_relief,
            "employee_net_deduction": self.employee_net_deduction,
            "employer_contribution": self.employer_contribution,
        }


@dataclass(frozen=True)
class PayrollBreakdown:
    """Per-component detail behind a ``PayrollCalculationResult``."""

    tax: tuple[BandLine, ...] = ()
    employee_ni: tuple[BandLine, ...] = ()
    employer_ni: tuple[BandLine, ...] = ()
    pension: PensionBreakdown = field(default_factory=PensionBreakdown)

    def to_dict(self) -> dict[str, Any]:
        return {
            "tax": [line.to_dict() for line in self.tax],
            "employee_ni": [line.to_dict() for line in self.employee_ni],
            "employer_ni": [line.to_dict() for line in self.employer_ni],
            "pension": self.pension.to_dict(),
        }


@dataclass(frozen=True)
class PayrollCalculationInput:
    """
    Everything needed to calculate one employee's pay period.

    ``gross_pay_in_pence`` may be ``None`` when ``annual_salary_in_pence``
    is given; the orchestrator then uses the periodized salary as base pay.
    ``employer_pension_rate`` of ``None`` means the tax-year default.
    """

    gross_pay_in_pence: int | None
    tax_code: str | TaxCode
    pay_frequency: PayFrequency
    period_number: int = 1
    ni_category: NICategory = NICategory.A
    cumulative_taxable_income: int = 0
    cumulative_tax_paid: int = 0
    bonus: int = 0
    commission: int = 0
    pension_opt_in: bool = False
    pension_contribution_rate: int = 0  # basis points
    employer_pension_rate: int | None = None  # basis points
    relief_at_source: bool = True
    student_loan_plan: StudentLoanPlan | None = None
    other_deductions: int = 0
    annual_salary_in_pence: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "pay_frequency", PayFrequency(self.pay_frequency))
        object.__setattr__(self, "ni_category", NICategory(self.ni_category))
        if self.student_loan_plan is not None:
            object.__setattr__(
                self, "student_loan_plan", StudentLoanPlan(self.student_loan_plan)
            )

    @property
    def cumulative(self) -> CumulativeTaxState:
        return CumulativeTaxState(
            taxable_income=self.cumulative_taxable_income,
            tax_paid=self.cumulative_tax_paid,
        )

    def with_cumulative(self, state: CumulativeTaxState) -> PayrollCalculationInput:
        """Copy of this input carrying a different cumulative state."""
        return replace(
            self,
            cumulative_taxable_income=state.taxable_income,
            cumulative_tax_paid=state.tax_paid,
        )


@dataclass(frozen=True)
class PayrollCalculationResult:
    """Reconciled result of one pay period, all amounts in pence."""

    gross_pay: int
    taxable_income: int
    income_tax: int
    employee_ni: int
    employer_ni: int
    pension_employee_contribution: int
    pension_employer_contribution: int
    pension_tax_relief: int
    student_loan_deduction: int
    other_deductions: int
    net_pay: int
    new_cumulative_taxable_income: int
    new_cumulative_tax_paid: int
    personal_allowance: int = 0
    breakdown: PayrollBreakdown = field(default_factory=PayrollBreakdown)

    @property
    def total_deductions(self) -> int:
        return self.gross_pay - self.net_pay

    @property
    def total_employer_cost(self) -> int:
        return self.gross_pay + self.employer_ni + self.pension_employer_contribution

    @property
    def new_cumulative(self) -> CumulativeTaxState:
        return CumulativeTaxState(
            taxable_income=self.new_cumulative_taxable_income,
            tax_paid=self.new_cumulative_tax_paid,
        )

    def to_dict(self) -> dict[str, Any]:
        """Plain mapping for persistence and reporting collaborators."""
        return {
            "gross_pay": self.gross_pay,
            "taxable_income": self.taxable_income,
            "income_tax": self.income_tax,
            "employee_ni": self.employee_ni,
            "employer_ni": self.employer_ni,
            "pension_employee_contribution": self.pension_employee_contribution,
            "pension_employer_contribution": self.pension_employer_contribution,
            "pension_tax_relief": self.pension_tax_relief,
            "student_loan_deduction": self.student_loan_deduction,
            "other_deductions": self.other_deductions,
            "net_pay": self.net_pay,
            "new_cumulative_taxable_income": self.new_cumulative_taxable_income,
            "new_cumulative_tax_paid": self.new_cumulative_tax_paid,
            "personal_allowance": self.personal_allowance,
            "breakdown": self.breakdown.to_dict(),
        }
