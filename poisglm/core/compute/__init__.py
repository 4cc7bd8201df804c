"""
Shared compute infrastructure for poisglm.

This module provides timing utilities, numerical constants, special
functions and linear algebra kernels shared by the domain backends.

IMPORTANT: This is NOT where domain-specific backends live. Those go in
{domain}/backends/. This module contains shared NUMERIC infrastructure.

Submodules:
    timing: Execution timing utilities
    tolerances: Numerical guard rails and comparison tiers
    special: Incomplete gamma function, chi-squared tail probability
    linalg: Linear algebra kernels (pivoted QR)
"""

from poisglm.core.compute.timing import Timer, timed

__all__ = [
    "Timer",
    "timed",
]
