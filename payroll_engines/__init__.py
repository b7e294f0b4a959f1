"""
Payroll Engines - Pure calculation functions.

Engines take values in, return values out.  They read the tax-year
table handed to them and never touch files or clocks after that.

Engines:
    - tax_code: Parse HMRC tax codes
    - income_tax: Cumulative and non-cumulative PAYE
    - national_insurance: Class 1 employee and employer NI
    - pension: Workplace pension contributions
    - student_loan: Student loan and postgraduate loan repayments
"""

from payroll_engines.income_tax import (
    IncomeTaxCalculator,
    IncomeTaxResult,
    calculate_paye,
)
from payroll_engines.national_insurance import (
    EmployeeNIResult,
    EmployerNIResult,
    NationalInsuranceCalculator,
    NIThresholds,
)
from payroll_engines.pension import (
    PensionContributionCalculator,
    PensionResult,
    qualifying_earnings,
)
from payroll_engines.student_loan import StudentLoanCalculator, StudentLoanResult
from payroll_engines.tax_code import TaxCodeParser, normalize_tax_code, parse_tax_code

__all__ = [
    "EmployeeNIResult",
    "EmployerNIResult",
    "IncomeTaxCalculator",
    "IncomeTaxResult",
    "NIThresholds",
    "NationalInsuranceCalculator",
    "PensionContributionCalculator",
    "PensionResult",
    "StudentLoanCalculator",
    "StudentLoanResult",
    "TaxCodeParser",
    "calculate_paye",
    "normalize_tax_code",
    "parse_tax_code",
    "qualifying_earnings",
]
