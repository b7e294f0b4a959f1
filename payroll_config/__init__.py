"""
payroll_config -- single public entrypoint for tax-year tables.

Responsibility:
    Provides the way to obtain a validated, immutable ``TaxYearConfig``
    at runtime through ``get_tax_year_config()``.  Calculators receive the
    returned object by reference; none of them read files.

Architecture position:
    Configuration -- YAML-driven, validated on load.  Sits above
    ``payroll_kernel`` and below ``payroll_engines`` / ``payroll_services``.
    The kernel MUST NEVER import from ``payroll_config``.

Invariants enforced:
    - A table is only returned after ``validate_tax_year_config`` passes.
    - Tables are loaded once per (tax_year, directory) and shared; they
      are frozen, so sharing across threads needs no locking.
    - Supporting another tax year means adding a YAML file, not adding a
      runtime parameter to the calculators.

Failure modes:
    - ``TaxYearNotFoundError`` -- no file for the requested tax year or date.
    - ``ValueError`` -- validation errors in the table.
    - ``TaxTableError`` -- a band table breaks its ordering invariants.
    - ``yaml.YAMLError`` -- malformed YAML.

Audit relevance:
    Every load emits a ``PAYROLL_CONFIG_TRACE`` log entry with the tax
    year and checksum, tying each calculation to the exact table used.
"""

from __future__ import annotations

import functools
from datetime import date
from pathlib import Path

from payroll_config.loader import load_tax_year_file, load_yaml_file
from payroll_config.schema import TaxYearConfig
from payroll_config.validator import ConfigValidationResult, validate_tax_year_config
from payroll_kernel.exceptions import TaxYearNotFoundError
from payroll_kernel.logging_config import get_logger

_logger = get_logger("config")

_DEFAULT_CONFIG_DIR = Path(__file__).parent / "tax_years"
_INDEX_FILE = "index.yaml"


def get_tax_year_config(
    tax_year: str | None = None,
    as_of_date: date | None = None,
    config_dir: Path | None = None,
) -> TaxYearConfig:
    """Return the validated table for a tax year.

    Resolution order:
        1. ``tax_year`` if given (e.g. ``"2025-26"``);
        2. the table whose date range covers ``as_of_date``;
        3. ``current_tax_year`` from ``index.yaml``.

    Raises:
        TaxYearNotFoundError: If no matching table file exists.
        ValueError: If the table fails validation.
    """
    directory = (config_dir or _DEFAULT_CONFIG_DIR).resolve()
    if tax_year is None:
        if as_of_date is not None:
            tax_year = _tax_year_for_date(directory, as_of_date)
        else:
            tax_year = current_tax_year(directory)
    return _load_validated(tax_year, directory)


def current_tax_year(config_dir: Path | None = None) -> str:
    """The default tax year named in ``index.yaml``, read once per directory."""
    return _read_index((config_dir or _DEFAULT_CONFIG_DIR).resolve())


def available_tax_years(config_dir: Path | None = None) -> list[str]:
    """All tax years with a table file, oldest first."""
    directory = config_dir or _DEFAULT_CONFIG_DIR
    return sorted(
        path.stem for path in directory.glob("*.yaml") if path.name != _INDEX_FILE
    )


def clear_cache() -> None:
    """Drop loaded tables and the cached index. FOR TESTING ONLY."""
    _load_validated.cache_clear()
    _read_index.cache_clear()


@functools.lru_cache(maxsize=None)
def _read_index(directory: Path) -> str:
    index = load_yaml_file(directory / _INDEX_FILE)
    return str(index["current_tax_year"])


@functools.lru_cache(maxsize=None)
def _load_validated(tax_year: str, directory: Path) -> TaxYearConfig:
    path = directory / f"{tax_year}.yaml"
    if not path.is_file():
        raise TaxYearNotFoundError(tax_year)

    config = load_tax_year_file(path)
    validation = validate_tax_year_config(config)
    if not validation.is_valid:
        raise ValueError(
            f"Tax year {tax_year} validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("tax_year_config_warning", extra={"tax_year": tax_year, "warning": warning})

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "tax_year": config.tax_year,
            "checksum": config.checksum,
            "start_date": config.start_date,
            "end_date": config.end_date,
        },
    )
    return config


def _tax_year_for_date(directory: Path, as_of_date: date) -> str:
    for tax_year in available_tax_years(directory):
        config = _load_validated(tax_year, directory)
        if config.covers(as_of_date):
            return tax_year
    raise TaxYearNotFoundError(as_of_date.isoformat())


__all__ = [
    "ConfigValidationResult",
    "TaxYearConfig",
    "available_tax_years",
    "clear_cache",
    "current_tax_year",
    "get_tax_year_config",
    "validate_tax_year_config",
]
