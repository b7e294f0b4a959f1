"""
payroll_services.payroll_orchestrator -- One employee, one pay period, reconciled.

Responsibility:
    Compose the tax-code parser and the four calculators (income tax,
    National Insurance, pension, student loan) into a single
    ``PayrollCalculationResult`` whose figures reconcile to net pay.

Architecture position:
    Services -- stateless orchestration over engines + kernel.  Holds a
    tax-year table and the calculators built from it; nothing else.
    Persistence of results and of the cumulative state is the caller's
    concern.

Invariants enforced:
    - net_pay == gross - income_tax - employee_ni
      - pension_employee_contribution - student_loan_deduction
      - other_deductions, with no clamp at zero.
    - Employer NI and employer pension never reduce net pay.
    - new cumulative totals == cumulative totals in + this period's
      taxable income and tax.
    - ``run_periods`` only accepts strictly increasing period numbers.

Failure modes:
    - PayrollValidationError from calculate_from_mapping when any field
      fails validation; no partial result is produced.
    - PayrollValidationError when neither gross pay nor annual salary is
      given.
    - InvalidTaxCodeError when the tax code cannot be parsed.
    - PeriodOrderError from run_periods when periods are out of order.

Audit relevance:
    Each calculation runs inside a ``LogContext`` carrying the period
    number and logs ``payroll_calculated`` with the reconciled totals.
    Engine calls emit PAYROLL_ENGINE_TRACE records.

Usage:
    from payroll_services.payroll_orchestrator import PayrollOrchestrator

    orchestrator = PayrollOrchestrator()
    result = orchestrator.calculate_payroll(
        PayrollCalculationInput(
            gross_pay_in_pence=300000,
            tax_code="1257L",
            pay_frequency="monthly",
        )
    )
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from typing import Any

from payroll_config import get_tax_year_config
from payroll_config.schema import TaxYearConfig
from payroll_engines.income_tax import IncomeTaxCalculator
from payroll_engines.national_insurance import NationalInsuranceCalculator
from payroll_engines.pension import PensionContributionCalculator
from payroll_engines.student_loan import StudentLoanCalculator
from payroll_kernel.domain.amounts import periodize_amount
from payroll_kernel.domain.payroll import (
    PayrollBreakdown,
    PayrollCalculationInput,
    PayrollCalculationResult,
)
from payroll_kernel.exceptions import PayrollValidationError, PeriodOrderError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_services.validation import validate_payroll_inputs

logger = get_logger("services.payroll_orchestrator")

_INPUT_FIELDS = frozenset(f.name for f in dataclasses.fields(PayrollCalculationInput))


class PayrollOrchestrator:
    """Calculate a reconciled payroll result for one period."""

    def __init__(self, config: TaxYearConfig | None = None):
        self._config = config or get_tax_year_config()
        self._income_tax = IncomeTaxCalculator(self._config)
        self._national_insurance = NationalInsuranceCalculator(self._config)
        self._pension = PensionContributionCalculator(self._config)
        self._student_loan = StudentLoanCalculator(self._config)

    @property
    def config(self) -> TaxYearConfig:
        return self._config

    def calculate_payroll(self, payroll_input: PayrollCalculationInput) -> PayrollCalculationResult:
        """
        Calculate one pay period.

        Preconditions:
            - ``gross_pay_in_pence`` or ``annual_salary_in_pence`` is set.
        Postconditions:
            - The result reconciles: gross - deductions == net_pay.

        Raises:
            PayrollValidationError: If no base pay can be determined.
            InvalidTaxCodeError: If the tax code is malformed.
        """
        frequency = payroll_input.pay_frequency
        with LogContext.bind(period_number=str(payroll_input.period_number)):
            base_pay = self._base_pay(payroll_input)
            gross = base_pay + payroll_input.bonus + payroll_input.commission

            tax = self._income_tax.calculate_paye(
                gross_pay_in_pence=gross,
                tax_code=payroll_input.tax_code,
                pay_frequency=frequency,
                period_number=payroll_input.period_number,
                cumulative=payroll_input.cumulative,
            )
            employee_ni = self._national_insurance.calculate_employee_ni(
                gross, frequency, payroll_input.ni_category
            )
            employer_ni = self._national_insurance.calculate_employer_ni(
                gross, frequency, payroll_input.ni_category
            )
            pension = self._pension.calculate_pension_contributions(
                gross_pay_in_pence=gross,
                pension_opt_in=payroll_input.pension_opt_in,
                employee_rate_bp=payroll_input.pension_contribution_rate,
                employer_rate_bp=payroll_input.employer_pension_rate,
                relief_at_source=payroll_input.relief_at_source,
            )
            student_loan = self._student_loan.calculate_student_loan_deduction(
                gross, frequency, payroll_input.student_loan_plan
            )

            net_pay = (
                gross
                - tax.income_tax
                - employee_ni.employee_ni
                - pension.employee_contribution
                - student_loan.deduction
                - payroll_input.other_deductions
            )
            if net_pay < 0:
                logger.warning(
                    "negative_net_pay",
                    extra={"gross_pay": gross, "net_pay": net_pay},
                )

            result = PayrollCalculationResult(
                gross_pay=gross,
                taxable_income=tax.taxable_income,
                income_tax=tax.income_tax,
                employee_ni=employee_ni.employee_ni,
                employer_ni=employer_ni.employer_ni,
                pension_employee_contribution=pension.employee_contribution,
                pension_employer_contribution=pension.employer_contribution,
                pension_tax_relief=pension.tax_relief,
                student_loan_deduction=student_loan.deduction,
                other_deductions=payroll_input.other_deductions,
                net_pay=net_pay,
                new_cumulative_taxable_income=tax.new_cumulative_taxable_income,
                new_cumulative_tax_paid=tax.new_cumulative_tax_paid,
                personal_allowance=tax.personal_allowance,
                breakdown=PayrollBreakdown(
                    tax=tax.breakdown,
                    employee_ni=employee_ni.bands,
                    employer_ni=employer_ni.bands,
                    pension=pension.to_breakdown(),
                ),
            )

            logger.info(
                "payroll_calculated",
                extra={
                    "tax_year": self._config.tax_year,
                    "tax_code": tax.tax_code.raw_code,
                    "pay_frequency": frequency.value,
                    "gross_pay": result.gross_pay,
                    "income_tax": result.income_tax,
                    "employee_ni": result.employee_ni,
                    "net_pay": result.net_pay,
                },
            )
            return result

    def calculate_from_mapping(self, raw: Mapping[str, Any]) -> PayrollCalculationResult:
        """
        Validate a raw mapping, then calculate.

        Unknown keys are ignored.

        Raises:
            PayrollValidationError: With every field error found.
        """
        validation = validate_payroll_inputs(raw, self._config)
        if not validation.is_valid:
            logger.warning(
                "payroll_input_rejected",
                extra={"fields": sorted(validation.errors)},
            )
            raise PayrollValidationError(validation.errors)

        values = {key: value for key, value in raw.items() if key in _INPUT_FIELDS}
        values.setdefault("gross_pay_in_pence", None)
        return self.calculate_payroll(PayrollCalculationInput(**values))

    def run_periods(
        self, inputs: Iterable[PayrollCalculationInput]
    ) -> list[PayrollCalculationResult]:
        """
        Calculate consecutive periods for one employee.

        The cumulative totals of the first input seed the run; every later
        input receives the totals produced by the period before it.

        Raises:
            PeriodOrderError: If period numbers do not strictly increase.
        """
        results: list[PayrollCalculationResult] = []
        previous: PayrollCalculationInput | None = None
        for payroll_input in inputs:
            if previous is not None:
                if payroll_input.period_number <= previous.period_number:
                    raise PeriodOrderError(previous.period_number, payroll_input.period_number)
                payroll_input = payroll_input.with_cumulative(results[-1].new_cumulative)
            results.append(self.calculate_payroll(payroll_input))
            previous = payroll_input
        return results

    def _base_pay(self, payroll_input: PayrollCalculationInput) -> int:
        if payroll_input.gross_pay_in_pence is not None:
            return payroll_input.gross_pay_in_pence
        if payroll_input.annual_salary_in_pence is not None:
            return periodize_amount(
                payroll_input.annual_salary_in_pence, payroll_input.pay_frequency
            )
        raise PayrollValidationError(
            {"gross_pay_in_pence": "Gross pay or annual salary is required"}
        )


def calculate_payroll(
    payroll_input: PayrollCalculationInput,
    config: TaxYearConfig | None = None,
) -> PayrollCalculationResult:
    """Convenience wrapper: ``PayrollOrchestrator(config).calculate_payroll(input)``."""
    return PayrollOrchestrator(config).calculate_payroll(payroll_input)
