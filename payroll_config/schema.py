"""
Tax-year table schema.

The canonical data model for one UK tax year's rates and thresholds.
YAML files under ``payroll_config/tax_years`` are parsed into these
types by the loader and checked by the validator.  Every type is frozen:
a ``TaxYearConfig`` is built once and passed by reference into each
calculator.

Amounts are annual pence (``int``); rates are ``Decimal`` fractions.
Band bounds are on *taxable* income, i.e. after the personal allowance.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from types import MappingProxyType

from payroll_kernel.domain.enums import (
    NICategory,
    SpecialTaxCode,
    StudentLoanPlan,
    TaxRegion,
)
from payroll_kernel.exceptions import TaxTableError

# ---------------------------------------------------------------------------
# Income tax
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxBand:
    """One progressive band. ``upper_bound`` of ``None`` is open-ended."""

    name: str
    lower_bound: int
    upper_bound: int | None
    rate: Decimal

    @property
    def is_open(self) -> bool:
        return self.upper_bound is None

    def portion(self, taxable: int) -> int:
        """Amount of ``taxable`` that falls inside this band."""
        if taxable <= self.lower_bound:
            return 0
        top = taxable if self.upper_bound is None else min(taxable, self.upper_bound)
        return top - self.lower_bound


@dataclass(frozen=True)
class TaxBandTable:
    """
    Ordered, contiguous, ascending bands for one region.

    Construction enforces the table invariants:
      - at least one band, the first starting at 0;
      - each band starts where the previous one ended;
      - every closed band has ``upper_bound > lower_bound``;
      - only the last band is open-ended;
      - rates lie in [0, 1].
    """

    region: TaxRegion
    bands: tuple[TaxBand, ...]

    def __post_init__(self) -> None:
        region = self.region.value
        if not self.bands:
            raise TaxTableError(region, "no bands defined")
        if self.bands[0].lower_bound != 0:
            raise TaxTableError(region, "first band must start at 0")
        previous_upper = 0
        for index, band in enumerate(self.bands):
            if band.lower_bound != previous_upper:
                raise TaxTableError(
                    region,
                    f"band '{band.name}' starts at {band.lower_bound}, "
                    f"expected {previous_upper}",
                )
            if not Decimal("0") <= band.rate <= Decimal("1"):
                raise TaxTableError(region, f"band '{band.name}' rate out of range")
            if band.upper_bound is None:
                if index != len(self.bands) - 1:
                    raise TaxTableError(
                        region, f"open band '{band.name}' must be the last band"
                    )
                continue
            if band.upper_bound <= band.lower_bound:
                raise TaxTableError(region, f"band '{band.name}' is not ascending")
            previous_upper = band.upper_bound
        if self.bands[-1].upper_bound is not None:
            raise TaxTableError(region, "last band must be open-ended")

    def rescaled(self, convert: Callable[[int], int]) -> TaxBandTable:
        """Table with every bound passed through ``convert``."""
        return TaxBandTable(
            region=self.region,
            bands=tuple(
                TaxBand(
                    name=band.name,
                    lower_bound=convert(band.lower_bound),
                    upper_bound=(
                        None if band.upper_bound is None else convert(band.upper_bound)
                    ),
                    rate=band.rate,
                )
                for band in self.bands
            ),
        )


@dataclass(frozen=True)
class PersonalAllowanceConfig:
    """Standard allowance and its high-income taper."""

    amount: int
    income_limit: int
    taper_rate: Decimal = Decimal("0.5")


@dataclass(frozen=True)
class IncomeTaxConfig:
    personal_allowance: PersonalAllowanceConfig
    band_tables: Mapping[TaxRegion, TaxBandTable]
    flat_rates: Mapping[TaxRegion, Mapping[SpecialTaxCode, Decimal]]

    def __post_init__(self) -> None:
        object.__setattr__(self, "band_tables", MappingProxyType(dict(self.band_tables)))
        object.__setattr__(
            self,
            "flat_rates",
            MappingProxyType(
                {region: MappingProxyType(dict(rates)) for region, rates in self.flat_rates.items()}
            ),
        )

    def band_table(self, region: TaxRegion) -> TaxBandTable:
        return self.band_tables[region.band_region]

    def flat_rate(self, region: TaxRegion, code: SpecialTaxCode) -> Decimal | None:
        return self.flat_rates.get(region.band_region, {}).get(code)


# ---------------------------------------------------------------------------
# National Insurance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class NICategoryPolicy:
    """How a category letter changes the standard Class 1 bands."""

    category: NICategory
    description: str = ""
    employee_exempt: bool = False
    employer_relief_to_uel: bool = False


@dataclass(frozen=True)
class NationalInsuranceConfig:
    """Class 1 thresholds (annual pence) and rates."""

    primary_threshold: int
    upper_earnings_limit: int
    secondary_threshold: int
    employee_main_rate: Decimal
    employee_reduced_rate: Decimal
    employer_rate: Decimal
    categories: Mapping[NICategory, NICategoryPolicy] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "categories", MappingProxyType(dict(self.categories)))

    def policy(self, category: NICategory | str) -> NICategoryPolicy:
        category = NICategory(category)
        return self.categories.get(category, NICategoryPolicy(category=category))


# ---------------------------------------------------------------------------
# Student loans and pensions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StudentLoanPlanConfig:
    plan: StudentLoanPlan
    name: str
    annual_threshold: int
    rate: Decimal


@dataclass(frozen=True)
class PensionConfig:
    """Workplace pension defaults."""

    employer_rate_bp: int = 300
    relief_at_source_rate: Decimal = Decimal("0.25")


# ---------------------------------------------------------------------------
# Tax year
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaxYearConfig:
    """All tables for one tax year. Substitute a new one per year."""

    tax_year: str
    start_date: date
    end_date: date
    income_tax: IncomeTaxConfig
    national_insurance: NationalInsuranceConfig
    student_loans: Mapping[StudentLoanPlan, StudentLoanPlanConfig]
    pension: PensionConfig = field(default_factory=PensionConfig)
    checksum: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "student_loans", MappingProxyType(dict(self.student_loans)))

    def student_loan(self, plan: StudentLoanPlan | str) -> StudentLoanPlanConfig:
        return self.student_loans[StudentLoanPlan(plan)]

    def covers(self, on_date: date) -> bool:
        return self.start_date <= on_date <= self.end_date
