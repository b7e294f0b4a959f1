"""
Income Tax Engine - PAYE withholding for one pay period.

Pure functions with no I/O - the tax-year table is provided at
construction.

Modes:
    Cumulative (standard codes): tax on year-to-date taxable income
        through the band table pro-rated to the current period, less tax
        already paid.  Irregular pay in earlier periods is corrected
        automatically.
    Non-cumulative (W1/M1/X emergency codes): tax on this period alone
        through period-equivalent bands; prior totals are ignored.
    Special codes: BR/D0/D1 (and Scottish D2/D3) apply one flat rate to
        all pay, NT deducts nothing, 0T uses the bands with no allowance.

Usage:
    from payroll_engines.income_tax import IncomeTaxCalculator

    calculator = IncomeTaxCalculator(config)
    result = calculator.calculate_paye(
        gross_pay_in_pence=300000,
        tax_code="1257L",
        pay_frequency=PayFrequency.MONTHLY,
        period_number=1,
    )
    result.income_tax                     # pence
    result.new_cumulative                 # feed into period 2
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_FLOOR, Decimal

from payroll_config import get_tax_year_config
from payroll_config.schema import TaxBandTable, TaxYearConfig
from payroll_engines.tax_code import TaxCodeParser
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.amounts import (
    apply_rate,
    periodize_amount,
    prorate_amount,
    round_pence,
)
from payroll_kernel.domain.enums import PayFrequency, TaxRegion
from payroll_kernel.domain.payroll import BandLine, CumulativeTaxState
from payroll_kernel.domain.tax_code import (
    FlatRate,
    NoTax,
    StandardAllowance,
    TaxCode,
)
from payroll_kernel.logging_config import get_logger

logger = get_logger("engines.income_tax")


@dataclass(frozen=True)
class IncomeTaxResult:
    """
    PAYE calculated for one period.

    ``personal_allowance`` is the period allowance, negative for K codes.
    ``breakdown`` splits this period's taxable income over period-basis
    bands; in cumulative mode it is indicative, since ``income_tax`` also
    corrects for earlier periods.
    """

    income_tax: int
    taxable_income: int
    personal_allowance: int
    breakdown: tuple[BandLine, ...]
    new_cumulative: CumulativeTaxState
    tax_code: TaxCode
    is_cumulative: bool

    @property
    def new_cumulative_taxable_income(self) -> int:
        return self.new_cumulative.taxable_income

    @property
    def new_cumulative_tax_paid(self) -> int:
        return self.new_cumulative.tax_paid

    @property
    def region(self) -> TaxRegion:
        return self.tax_code.region


def tax_on_bands(taxable: int, table: TaxBandTable) -> Decimal:
    """Unrounded progressive tax on ``taxable`` through ``table``."""
    total = Decimal("0")
    for band in table.bands:
        portion = band.portion(taxable)
        if portion <= 0:
            break
        total += Decimal(portion) * band.rate
    return total


def band_lines(taxable: int, table: TaxBandTable) -> tuple[BandLine, ...]:
    """Per-band split of ``taxable``; zero-rate and empty bands are omitted."""
    lines: list[BandLine] = []
    for band in table.bands:
        portion = band.portion(taxable)
        if portion <= 0:
            break
        if band.rate == 0:
            continue
        lines.append(
            BandLine(
                band=band.name,
                taxable_amount=portion,
                rate=band.rate,
                amount=apply_rate(portion, band.rate),
            )
        )
    return tuple(lines)


class IncomeTaxCalculator:
    """
    Calculate PAYE income tax.

    Pure - no I/O, no database access, no state between calls.  The
    cumulative state is passed in and a new one is returned.
    """

    def __init__(self, config: TaxYearConfig | None = None):
        self._config = config or get_tax_year_config()
        self._parser = TaxCodeParser(self._config)

    @property
    def config(self) -> TaxYearConfig:
        return self._config

    @traced_engine(
        "income_tax",
        "1.0",
        fingerprint_fields=("gross_pay_in_pence", "tax_code", "pay_frequency", "period_number", "cumulative"),
    )
    def calculate_paye(
        self,
        gross_pay_in_pence: int,
        tax_code: str | TaxCode,
        pay_frequency: PayFrequency | str,
        period_number: int = 1,
        cumulative: CumulativeTaxState | None = None,
    ) -> IncomeTaxResult:
        """
        Calculate PAYE for one period.

        Args:
            gross_pay_in_pence: Gross pay for the period.
            tax_code: Raw tax code string or a parsed ``TaxCode``.
            pay_frequency: Weekly, biweekly or monthly.
            period_number: 1-based period within the tax year.
            cumulative: Year-to-date totals before this period.

        Returns:
            IncomeTaxResult with tax, taxable income and the new totals.

        Raises:
            InvalidTaxCodeError: If the tax code cannot be parsed.
            ValueError: If gross pay is negative or the period is out of range.
        """
        frequency = PayFrequency(pay_frequency)
        periods = frequency.periods_per_year
        cumulative = cumulative or CumulativeTaxState()
        if gross_pay_in_pence < 0:
            raise ValueError("Gross pay cannot be negative")
        if not 1 <= period_number <= periods:
            raise ValueError(
                f"period_number must be between 1 and {periods} for {frequency.value} pay"
            )

        code = self._parser.parse(tax_code)
        treatment = code.treatment

        if isinstance(treatment, NoTax):
            return self._finish(code, gross_pay_in_pence, 0, 0, (), cumulative)

        if isinstance(treatment, FlatRate):
            tax = apply_rate(gross_pay_in_pence, treatment.rate)
            line = BandLine(
                band=treatment.code.value,
                taxable_amount=gross_pay_in_pence,
                rate=treatment.rate,
                amount=tax,
            )
            return self._finish(code, gross_pay_in_pence, tax, 0, (line,), cumulative)

        annual_allowance = (
            treatment.allowance if isinstance(treatment, StandardAllowance) else 0
        )
        period_allowance = periodize_amount(abs(annual_allowance), frequency)
        if code.is_k_code:
            taxable = gross_pay_in_pence + period_allowance
            period_allowance = -period_allowance
        else:
            taxable = max(0, gross_pay_in_pence - period_allowance)

        table = self._config.income_tax.band_table(code.region)
        period_table = table.rescaled(lambda bound: periodize_amount(bound, frequency))

        if code.is_cumulative:
            ytd_taxable = cumulative.taxable_income + taxable
            ytd_table = table.rescaled(
                lambda bound: prorate_amount(bound, period_number, periods)
            )
            ytd_tax_due = round_pence(tax_on_bands(ytd_taxable, ytd_table))
            tax = max(0, ytd_tax_due - cumulative.tax_paid)
        else:
            tax = round_pence(tax_on_bands(taxable, period_table))

        return self._finish(
            code,
            taxable,
            tax,
            period_allowance,
            band_lines(taxable, period_table),
            cumulative,
        )

    def calculate_personal_allowance(
        self,
        annual_income_in_pence: int,
        base_allowance_in_pence: int | None = None,
    ) -> int:
        """
        Personal allowance after the high-income taper.

        The allowance falls by £1 for every £2 of income over the limit,
        counted in whole pounds, and never goes below zero.
        """
        config = self._config.income_tax.personal_allowance
        base = config.amount if base_allowance_in_pence is None else base_allowance_in_pence
        if annual_income_in_pence <= config.income_limit:
            return base
        excess_pounds = Decimal(annual_income_in_pence - config.income_limit) / 100
        reduction = int((excess_pounds * config.taper_rate).to_integral_value(ROUND_FLOOR)) * 100
        return max(0, base - reduction)

    def _finish(
        self,
        code: TaxCode,
        taxable: int,
        tax: int,
        period_allowance: int,
        breakdown: tuple[BandLine, ...],
        cumulative: CumulativeTaxState,
    ) -> IncomeTaxResult:
        result = IncomeTaxResult(
            income_tax=tax,
            taxable_income=taxable,
            personal_allowance=period_allowance,
            breakdown=breakdown,
            new_cumulative=cumulative.advance(taxable, tax),
            tax_code=code,
            is_cumulative=code.is_cumulative,
        )
        logger.debug(
            "paye_calculated",
            extra={
                "tax_code": code.raw_code,
                "special_code": code.special_code,
                "region": code.region.value,
                "is_cumulative": code.is_cumulative,
                "taxable_income": taxable,
                "income_tax": tax,
            },
        )
        return result


def calculate_paye(
    gross_pay_in_pence: int,
    tax_code: str,
    pay_frequency: PayFrequency | str,
    period_number: int = 1,
    cumulative_taxable_income: int = 0,
    cumulative_tax_paid: int = 0,
    config: TaxYearConfig | None = None,
) -> IncomeTaxResult:
    """
    Convenience function for a one-off PAYE calculation.

    Example:
        result = calculate_paye(200000, "BR", "monthly")
        result.income_tax  # 40000
    """
    return IncomeTaxCalculator(config).calculate_paye(
        gross_pay_in_pence=gross_pay_in_pence,
        tax_code=tax_code,
        pay_frequency=pay_frequency,
        period_number=period_number,
        cumulative=CumulativeTaxState(cumulative_taxable_income, cumulative_tax_paid),
    )
