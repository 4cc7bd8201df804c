"""
Model comparison solution types.

LRTSolution wraps Result[LRTParams] and provides an analysis-of-deviance
style summary().
"""

from __future__ import annotations

from dataclasses import dataclass

from poisglm.core.result import Result
from poisglm.selection._common import LRTParams


@dataclass(frozen=True)
class LRTSolution:
    """
    Result of a likelihood ratio test between two nested models.

    Immutable; all fields are available as properties.
    """
    _result: Result[LRTParams]

    @property
    def statistic(self) -> float:
        """LR statistic -2 (ℓ_reduced - ℓ_full), >= 0."""
        return self._result.params.statistic

    @property
    def df(self) -> int:
        """Degrees of freedom, p_full - p_reduced."""
        return self._result.params.df

    @property
    def p_value(self) -> float:
        """Pr(χ²_df > statistic)."""
        return self._result.params.p_value

    @property
    def loglik_reduced(self) -> float:
        return self._result.params.loglik_reduced

    @property
    def loglik_full(self) -> float:
        return self._result.params.loglik_full

    @property
    def p_reduced(self) -> int:
        return self._result.params.p_reduced

    @property
    def p_full(self) -> int:
        return self._result.params.p_full

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        """Analysis of deviance table, one row per model."""
        lines = [
            "Likelihood ratio test",
            "=" * 60,
            f"{'Model':<8} {'#Par':>5} {'LogLik':>14} {'Df':>4} {'Chisq':>12} {'Pr(>Chisq)':>12}",
            "-" * 60,
            f"{'1':<8} {self.p_reduced:>5d} {self.loglik_reduced:14.4f}",
            f"{'2':<8} {self.p_full:>5d} {self.loglik_full:14.4f} "
            f"{self.df:>4d} {self.statistic:12.4f} {self.p_value:12.4g}",
            "-" * 60,
        ]
        for w in self.warnings:
            lines.append(f"Warning: {w}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"LRTSolution(statistic={self.statistic:.4f}, df={self.df}, "
            f"p_value={self.p_value:.4g})"
        )
