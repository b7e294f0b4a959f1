"""Student loan repayments deducted through payroll."""

from __future__ import annotations

from dataclasses import dataclass

from payroll_config import get_tax_year_config
from payroll_config.schema import TaxYearConfig
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.amounts import apply_rate, periodize_amount
from payroll_kernel.domain.enums import PayFrequency, StudentLoanPlan
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.student_loan")


@dataclass(frozen=True)
class StudentLoanResult:
    deduction: int = 0
    period_threshold: int = 0
    plan: StudentLoanPlan | None = None


class StudentLoanCalculator:
    """Per-period repayment: the plan rate on earnings above the period threshold."""

    def __init__(self, config: TaxYearConfig | None = None):
        self._config = config or get_tax_year_config()

    @traced_engine(
        "student_loan",
        "1.0",
        fingerprint_fields=("gross_pay_in_pence", "pay_frequency", "plan"),
    )
    def calculate_student_loan_deduction(
        self,
        gross_pay_in_pence: int,
        pay_frequency: PayFrequency | str,
        plan: StudentLoanPlan | str | None,
    ) -> StudentLoanResult:
        if plan is None:
            return StudentLoanResult()

        plan_config = self._config.student_loan(StudentLoanPlan(plan))
        threshold = periodize_amount(plan_config.annual_threshold, pay_frequency)
        deduction = apply_rate(max(0, gross_pay_in_pence - threshold), plan_config.rate)

        logger.debug(
            "student_loan_calculated",
            extra={
                "plan": plan_config.plan,
                "rate": plan_config.rate,
                "period_threshold": threshold,
                "deduction": deduction,
            },
        )
        return StudentLoanResult(
            deduction=deduction,
            period_threshold=threshold,
            plan=plan_config.plan,
        )
