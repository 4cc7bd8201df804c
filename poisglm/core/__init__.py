"""
Core infrastructure for poisglm.

This module provides shared abstractions, utilities, and numerical
infrastructure used by the domain-specific submodules (regression,
selection).

Key components:
    result: Generic Result[P] envelope
    exceptions: Exception hierarchy
    validation: Input validators
    compute: Timing, special functions, linear algebra primitives
"""

from poisglm.core.result import Result
from poisglm.core.exceptions import (
    PoisGLMError,
    ValidationError,
    DimensionError,
    DomainError,
    RankDeficiencyError,
    NumericalError,
    SingularMatrixError,
    NumericalOverflowError,
    ConvergenceError,
)

__all__ = [
    # Result
    "Result",
    # Exceptions
    "PoisGLMError",
    "ValidationError",
    "DimensionError",
    "DomainError",
    "RankDeficiencyError",
    "NumericalError",
    "SingularMatrixError",
    "NumericalOverflowError",
    "ConvergenceError",
]
