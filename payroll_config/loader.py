"""
Tax-Year Table Loader (``payroll_config.loader``).

Responsibility
--------------
Loads one tax-year YAML file and parses it into the frozen
``payroll_config.schema`` dataclasses.  Callers should go through
``payroll_config.get_tax_year_config()``, which validates and caches.

Invariants enforced
-------------------
* Rates are parsed from strings into ``Decimal`` -- NEVER ``float``.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the raw
  table for audit identity.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Band table invariants broken  -> ``TaxTableError``.
* Unknown region, NI category or plan key  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import (
    IncomeTaxConfig,
    NationalInsuranceConfig,
    NICategoryPolicy,
    PensionConfig,
    PersonalAllowanceConfig,
    StudentLoanPlanConfig,
    TaxBand,
    TaxBandTable,
    TaxYearConfig,
)
from payroll_kernel.domain.enums import (
    NICategory,
    SpecialTaxCode,
    StudentLoanPlan,
    TaxRegion,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return date.fromisoformat(value)
    raise ValueError(f"Cannot parse date from {value!r}")


def parse_rate(value: Any) -> Decimal:
    """Parse a rate into ``Decimal``. Floats go through ``str`` first."""
    try:
        return Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Cannot parse rate from {value!r}") from e


def parse_band_table(region: str, rows: list[dict[str, Any]]) -> TaxBandTable:
    """Parse one region's band rows. Invariants are checked by ``TaxBandTable``."""
    return TaxBandTable(
        region=TaxRegion(region),
        bands=tuple(
            TaxBand(
                name=row["name"],
                lower_bound=int(row["lower"]),
                upper_bound=None if row.get("upper") is None else int(row["upper"]),
                rate=parse_rate(row["rate"]),
            )
            for row in rows
        ),
    )


def parse_income_tax(data: dict[str, Any]) -> IncomeTaxConfig:
    allowance = data["personal_allowance"]
    return IncomeTaxConfig(
        personal_allowance=PersonalAllowanceConfig(
            amount=int(allowance["amount"]),
            income_limit=int(allowance["income_limit"]),
            taper_rate=parse_rate(allowance.get("taper_rate", "0.5")),
        ),
        band_tables={
            TaxRegion(region): parse_band_table(region, rows)
            for region, rows in data["bands"].items()
        },
        flat_rates={
            TaxRegion(region): {
                SpecialTaxCode(code): parse_rate(rate) for code, rate in rates.items()
            }
            for region, rates in data.get("flat_rates", {}).items()
        },
    )


def parse_national_insurance(data: dict[str, Any]) -> NationalInsuranceConfig:
    categories = {}
    for letter, policy in (data.get("categories") or {}).items():
        category = NICategory(letter)
        policy = policy or {}
        categories[category] = NICategoryPolicy(
            category=category,
            description=policy.get("description", ""),
            employee_exempt=bool(policy.get("employee_exempt", False)),
            employer_relief_to_uel=bool(policy.get("employer_relief_to_uel", False)),
        )
    return NationalInsuranceConfig(
        primary_threshold=int(data["primary_threshold"]),
        upper_earnings_limit=int(data["upper_earnings_limit"]),
        secondary_threshold=int(data["secondary_threshold"]),
        employee_main_rate=parse_rate(data["employee_main_rate"]),
        employee_reduced_rate=parse_rate(data["employee_reduced_rate"]),
        employer_rate=parse_rate(data["employer_rate"]),
        categories=categories,
    )


def parse_student_loans(data: dict[str, Any]) -> dict[StudentLoanPlan, StudentLoanPlanConfig]:
    plans = {}
    for key, plan_data in data.items():
        plan = StudentLoanPlan(key)
        plans[plan] = StudentLoanPlanConfig(
            plan=plan,
            name=plan_data.get("name", key),
            annual_threshold=int(plan_data["threshold"]),
            rate=parse_rate(plan_data["rate"]),
        )
    return plans


def parse_pension(data: dict[str, Any] | None) -> PensionConfig:
    if not data:
        return PensionConfig()
    return PensionConfig(
        employer_rate_bp=int(data.get("employer_rate_bp", 300)),
        relief_at_source_rate=parse_rate(data.get("relief_at_source_rate", "0.25")),
    )


def parse_tax_year_config(data: dict[str, Any]) -> TaxYearConfig:
    """
    Parse a full tax-year table from a dict.

    Postconditions:
        - Returns a frozen ``TaxYearConfig`` whose ``checksum`` is the
          checksum of ``data``.
    """
    return TaxYearConfig(
        tax_year=str(data["tax_year"]),
        start_date=parse_date(data["start_date"]),
        end_date=parse_date(data["end_date"]),
        income_tax=parse_income_tax(data["income_tax"]),
        national_insurance=parse_national_insurance(data["national_insurance"]),
        student_loans=parse_student_loans(data["student_loans"]),
        pension=parse_pension(data.get("pension")),
        checksum=compute_checksum(data),
    )


def load_tax_year_file(path: Path) -> TaxYearConfig:
    """Load and parse a tax-year YAML file (no validation)."""
    return parse_tax_year_config(load_yaml_file(path))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
