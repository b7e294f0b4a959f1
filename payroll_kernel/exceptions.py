"""
Typed Exception Hierarchy for the Payroll Kernel.

Callers catch by type and read the ``code`` class attribute and the
structured attributes, never the message text:

    try:
        result = orchestrator.calculate_from_mapping(payload)
    except PayrollValidationError as e:
        api_response(code=e.code, errors=e.errors)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- TaxCodeError
    |   +-- InvalidTaxCodeError
    |
    +-- PayrollInputError
    |   +-- PayrollValidationError
    |   +-- PeriodOrderError
    |
    +-- ConfigurationError
        +-- TaxTableError
        +-- TaxYearNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Tax code        | INVALID_TAX_CODE            | String matches no known tax-code shape
----------------|-----------------------------|-----------------------------------------
Input           | PAYROLL_VALIDATION_FAILED   | Field-level input validation failed
                | PERIOD_ORDER_VIOLATION      | Periods folded out of increasing order
----------------|-----------------------------|-----------------------------------------
Configuration   | TAX_TABLE_INVALID           | Band table not contiguous / ascending
                | TAX_YEAR_NOT_FOUND          | No table file for the requested year

Degenerate numeric cases (taxable income at or below zero, pay below a
threshold) are NOT errors: calculators return zero contributions.
"""


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Tax code exceptions


class TaxCodeError(PayrollKernelError):
    """Base exception for tax-code errors."""

    code: str = "TAX_CODE_ERROR"


class InvalidTaxCodeError(TaxCodeError):
    """Tax code string does not match any recognised shape."""

    code: str = "INVALID_TAX_CODE"

    def __init__(self, raw_code: str, reason: str):
        self.raw_code = raw_code
        self.reason = reason
        super().__init__(f"Invalid tax code {raw_code!r}: {reason}")


# Input exceptions


class PayrollInputError(PayrollKernelError):
    """Base exception for rejected calculation inputs."""

    code: str = "PAYROLL_INPUT_ERROR"


class PayrollValidationError(PayrollInputError):
    """
    One or more input fields failed validation.

    ``errors`` is keyed by field name. No calculation has run when this
    is raised, so there is never a partial result.
    """

    code: str = "PAYROLL_VALIDATION_FAILED"

    def __init__(self, errors: dict[str, str]):
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors))
        super().__init__(f"Payroll input validation failed: {fields}")


class PeriodOrderError(PayrollInputError):
    """Periods for one employee were not supplied in increasing order."""

    code: str = "PERIOD_ORDER_VIOLATION"

    def __init__(self, previous_period: int, current_period: int):
        self.previous_period = previous_period
        self.current_period = current_period
        super().__init__(
            f"Period {current_period} cannot follow period {previous_period}"
        )


# Configuration exceptions


class ConfigurationError(PayrollKernelError):
    """Base exception for tax-year configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class TaxTableError(ConfigurationError):
    """A tax band table breaks its ordering or contiguity invariants."""

    code: str = "TAX_TABLE_INVALID"

    def __init__(self, region: str, reason: str):
        self.region = region
        self.reason = reason
        super().__init__(f"Invalid band table for {region}: {reason}")


class TaxYearNotFoundError(ConfigurationError):
    """No configuration file exists for the requested tax year."""

    code: str = "TAX_YEAR_NOT_FOUND"

    def __init__(self, tax_year: str):
        self.tax_year = tax_year
        super().__init__(f"No tax-year table found for {tax_year}")
