"""
Payroll services -- orchestration over the pure engines.

Re-exports the orchestrator, input validation and the amount helpers
callers need to prepare inputs.
"""

from payroll_kernel.domain.amounts import annualize_amount, periodize_amount, round_pence
from payroll_services.payroll_orchestrator import PayrollOrchestrator, calculate_payroll
from payroll_services.validation import ValidationResult, validate_payroll_inputs

__all__ = [
    "PayrollOrchestrator",
    "ValidationResult",
    "annualize_amount",
    "calculate_payroll",
    "periodize_amount",
    "round_pence",
    "validate_payroll_inputs",
]
