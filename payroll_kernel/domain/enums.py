"""
Payroll enumerations.

Plain value enums shared by the config schema, the engines and the
orchestrator. Every enum is a ``str`` enum so raw request values
(``"monthly"``, ``"A"``, ``"plan1"``) coerce with ``Enum(value)``.
"""

from __future__ import annotations

from enum import Enum


class PayFrequency(str, Enum):
    """How often an employee is paid."""

    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"

    @property
    def periods_per_year(self) -> int:
        return _PERIODS_PER_YEAR[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_PERIODS_PER_YEAR = {
    PayFrequency.WEEKLY: 52,
    PayFrequency.BIWEEKLY: 26,
    PayFrequency.MONTHLY: 12,
}

_LABELS = {
    PayFrequency.WEEKLY: "Weekly",
    PayFrequency.BIWEEKLY: "Bi-weekly",
    PayFrequency.MONTHLY: "Monthly",
}


class NICategory(str, Enum):
    """National Insurance category letter."""

    A = "A"  # Standard
    B = "B"  # Married women / widows with reduced-rate certificate
    C = "C"  # Over state pension age
    H = "H"  # Apprentice under 25
    J = "J"  # Deferment
    M = "M"  # Under 21
    Z = "Z"  # Under 21 deferment


class StudentLoanPlan(str, Enum):
    """Student-loan repayment plan."""

    PLAN1 = "plan1"
    PLAN2 = "plan2"
    PLAN4 = "plan4"
    PLAN5 = "plan5"
    POSTGRAD = "postgrad"


class TaxRegion(str, Enum):
    """Income-tax region selected by the tax-code prefix."""

    REST_OF_UK = "rest_of_uk"
    SCOTLAND = "scotland"
    WALES = "wales"

    @property
    def band_region(self) -> "TaxRegion":
        """Region whose band table applies. Wales uses rest-of-UK rates."""
        if self is TaxRegion.WALES:
            return TaxRegion.REST_OF_UK
        return self


class SpecialTaxCode(str, Enum):
    """Tax codes that bypass the numeric allowance path."""

    BR = "BR"
    D0 = "D0"
    D1 = "D1"
    D2 = "D2"  # Scottish only
    D3 = "D3"  # Scottish only
    NT = "NT"
    ZERO_T = "0T"

    @property
    def is_flat_rate(self) -> bool:
        return self not in (SpecialTaxCode.NT, SpecialTaxCode.ZERO_T)
