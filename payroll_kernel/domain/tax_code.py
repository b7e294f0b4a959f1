"""
Tax code value objects.

A parsed tax code is a region, a basis (cumulative or week 1 / month 1),
and exactly one *treatment*:

    StandardAllowance(allowance)   numeric codes, K codes carry a negative allowance
    FlatRate(code, rate)           BR, D0, D1 (and Scottish D2, D3)
    NoTax()                        NT
    NoAllowance()                  0T

Invalid flag combinations (a special code with an allowance, a K code
that is also BR) cannot be constructed.  The boolean properties on
``TaxCode`` are derived views for callers that want the flat record.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from payroll_kernel.domain.enums import SpecialTaxCode, TaxRegion


@dataclass(frozen=True)
class StandardAllowance:
    """Numeric code. ``allowance`` is annual pence, negative for K codes."""

    allowance: int

    @property
    def is_k_code(self) -> bool:
        return self.allowance < 0


@dataclass(frozen=True)
class FlatRate:
    """Single rate applied to all pay (BR, D0, D1, D2, D3)."""

    code: SpecialTaxCode
    rate: Decimal

    def __post_init__(self) -> None:
        if not self.code.is_flat_rate:
            raise ValueError(f"{self.code.value} is not a flat-rate code")
        if not Decimal("0") <= self.rate <= Decimal("1"):
            raise ValueError("Flat rate must be between 0 and 1")


@dataclass(frozen=True)
class NoTax:
    """NT: no tax deducted."""

    code: SpecialTaxCode = SpecialTaxCode.NT


@dataclass(frozen=True)
class NoAllowance:
    """0T: normal bands, zero personal allowance."""

    code: SpecialTaxCode = SpecialTaxCode.ZERO_T


TaxTreatment = StandardAllowance | FlatRate | NoTax | NoAllowance


@dataclass(frozen=True)
class TaxCode:
    """An HMRC tax code after parsing."""

    raw_code: str
    treatment: TaxTreatment
    region: TaxRegion = TaxRegion.REST_OF_UK
    is_emergency: bool = False

    @property
    def special_code(self) -> str | None:
        if isinstance(self.treatment, StandardAllowance):
            return None
        return self.treatment.code.value

    @property
    def allowance(self) -> int:
        if isinstance(self.treatment, StandardAllowance):
            return self.treatment.allowance
        return 0

    @property
    def is_k_code(self) -> bool:
        return isinstance(self.treatment, StandardAllowance) and self.treatment.is_k_code

    @property
    def is_scottish(self) -> bool:
        return self.region is TaxRegion.SCOTLAND

    @property
    def is_welsh(self) -> bool:
        return self.region is TaxRegion.WALES

    @property
    def is_cumulative(self) -> bool:
        return not self.is_emergency

    def __str__(self) -> str:
        return self.raw_code
