"""
Pence arithmetic (``payroll_kernel.domain.amounts``).

Responsibility
--------------
All monetary values in the payroll core are integers in pence.  Rates are
``Decimal``.  This module owns the single rounding rule (round half up to
the nearest penny) and the annual <-> period conversions every engine
uses for thresholds.

Invariants enforced
-------------------
* Amounts are ``int``; rate products are computed in ``Decimal`` and
  rounded exactly once per value -- NEVER ``float``.
* ``periodize_amount(annualize_amount(x, f), f) == x`` for every int ``x``.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from payroll_kernel.domain.enums import PayFrequency

BASIS_POINTS = Decimal("10000")


def round_pence(value: Decimal | int) -> int:
    """Round a Decimal amount of pence half-up to a whole penny."""
    return int(Decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def apply_rate(amount: int, rate: Decimal) -> int:
    """``round(amount x rate)`` in pence."""
    return round_pence(Decimal(amount) * rate)


def apply_basis_points(amount: int, basis_points: int) -> int:
    """``round(amount x bp / 10000)`` in pence."""
    return round_pence(Decimal(amount) * Decimal(basis_points) / BASIS_POINTS)


def annualize_amount(period_amount: int, frequency: PayFrequency | str) -> int:
    """Convert a per-period amount to an annual amount."""
    return period_amount * PayFrequency(frequency).periods_per_year


def periodize_amount(annual_amount: int, frequency: PayFrequency | str) -> int:
    """Convert an annual amount to a per-period amount, rounded to pence."""
    periods = PayFrequency(frequency).periods_per_year
    return round_pence(Decimal(annual_amount) / Decimal(periods))


def prorate_amount(annual_amount: int, period_number: int, periods_per_year: int) -> int:
    """Year-to-date share of an annual amount after ``period_number`` periods."""
    return round_pence(
        Decimal(annual_amount) * Decimal(period_number) / Decimal(periods_per_year)
    )
