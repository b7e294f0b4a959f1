"""
Payroll Kernel

Core types for the UK payroll calculation engine:
- Integer-pence amounts with explicit round-half-up
- Tax codes as a tagged union of treatments
- Immutable calculation inputs and results
- Typed exceptions and structured logging
"""

__version__ = "0.1.0"
