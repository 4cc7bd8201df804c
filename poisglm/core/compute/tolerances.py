"""
Numerical constants and tolerance tiers.

Defines the guard rails for the numerical core:
- the largest linear predictor that can be safely exponentiated
- the stopping rules of the incomplete gamma series / continued fraction
- comparison tiers used by the test suite
"""

from dataclasses import dataclass


# exp(709.78) is the largest finite double; keep a margin so that
# downstream products (y * log(mu), sums of mu) stay finite.
EXP_OVERFLOW_BOUND = 700.0

# Incomplete gamma function: relative error target and iteration cap.
SPECIAL_FUNCTION_RTOL = 1e-12
SPECIAL_FUNCTION_MAX_ITER = 200

# Floating-point floor used by the modified Lentz algorithm.
LENTZ_TINY = 1e-300

# Slack for LRT statistics that are negative only by round-off: relative
# to |loglik_full|, but never more than the absolute cap, so that a
# genuinely negative statistic on a large sample is not reported as 0.
NEGATIVE_STATISTIC_TOL = 1e-8
NEGATIVE_STATISTIC_MAX_SLACK = 1e-6


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Closed-form quantities (special functions, log-likelihoods)
EXACT = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='exact',
    description='Closed-form or series results, double precision',
)

# Iterative estimates (IRLS coefficients compared across start values)
ITERATIVE = ToleranceTier(
    rtol=1e-6,
    atol=1e-8,
    name='iterative',
    description='Results of iterative fits stopped at default tolerance',
)

# Finite-difference derivatives
FINITE_DIFFERENCE = ToleranceTier(
    rtol=1e-4,
    atol=1e-4,
    name='finite_difference',
    description='Central finite-difference approximations',
)
