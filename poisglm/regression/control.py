"""
IRLS control settings.

The equivalent of R's glm.control(): stopping tolerances and the
iteration cap, passed explicitly into fit() rather than read from
global state.
"""

from __future__ import annotations

from dataclasses import dataclass

from poisglm.core.validation import check_positive_int, check_positive_scalar


@dataclass(frozen=True)
class GLMControl:
    """
    Convergence settings for IRLS.

    Attributes:
        tol: Stop when |loglik_new - loglik_old| < tol
        max_iter: Hard cap on IRLS iterations
        step_tol: Stop when max |b_new - b_old| < step_tol
    """
    tol: float = 1e-8
    max_iter: int = 25
    step_tol: float = 1e-10

    def __post_init__(self) -> None:
        # frozen: validated values are written back via object.__setattr__
        object.__setattr__(self, 'tol', check_positive_scalar(self.tol, 'tol'))
        object.__setattr__(self, 'max_iter', check_positive_int(self.max_iter, 'max_iter'))
        object.__setattr__(self, 'step_tol', check_positive_scalar(self.step_tol, 'step_tol'))
