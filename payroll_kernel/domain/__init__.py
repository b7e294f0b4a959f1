"""Pure domain types for the payroll kernel. No I/O, no configuration access."""

from payroll_kernel.domain.amounts import (
    annualize_amount,
    apply_basis_points,
    apply_rate,
    periodize_amount,
    prorate_amount,
    round_pence,
)
from payroll_kernel.domain.enums import (
    NICategory,
    PayFrequency,
    SpecialTaxCode,
    StudentLoanPlan,
    TaxRegion,
)
from payroll_kernel.domain.payroll import (
    BandLine,
    CumulativeTaxState,
    PayrollBreakdown,
    PayrollCalculationInput,
    PayrollCalculationResult,
    PensionBreakdown,
)
from payroll_kernel.domain.tax_code import (
    FlatRate,
    NoAllowance,
    NoTax,
    StandardAllowance,
    TaxCode,
    TaxTreatment,
)

__all__ = [
    "BandLine",
    "CumulativeTaxState",
    "FlatRate",
    "NICategory",
    "NoAllowance",
    "NoTax",
    "PayFrequency",
    "PayrollBreakdown",
    "PayrollCalculationInput",
    "PayrollCalculationResult",
    "PensionBreakdown",
    "SpecialTaxCode",
    "StandardAllowance",
    "StudentLoanPlan",
    "TaxCode",
    "TaxRegion",
    "TaxTreatment",
    "annualize_amount",
    "apply_basis_points",
    "apply_rate",
    "periodize_amount",
    "prorate_amount",
    "round_pence",
]
