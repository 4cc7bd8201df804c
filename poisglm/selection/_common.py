"""
Shared parameter payload for model comparison results.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class LRTParams:
    """
    Likelihood ratio test payload.

    statistic = -2 * (loglik_reduced - loglik_full), compared against a
    chi-squared distribution with df = p_full - p_reduced.
    """
    statistic: float
    df: int
    p_value: float
    loglik_reduced: float
    loglik_full: float
    p_reduced: int
    p_full: int
