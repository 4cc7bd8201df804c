"""
Poisson generalized linear models.

Public API:
    fit(X, y, ...) -> GLMSolution

The fit() function is the only entry point. It handles:
    - Input validation
    - Design construction
    - Backend selection
    - Result wrapping

Example:
    >>> from poisglm.regression import fit
    >>> result = fit(X, y)
    >>> print(result.coefficients)
    >>> print(result.summary())
"""

from poisglm.regression.design import Design
from poisglm.regression.control import GLMControl
from poisglm.regression.families import Family, Link, LogLink, Poisson, resolve_family
from poisglm.regression.solution import GLMSolution, GLMParams
from poisglm.regression.solvers import fit

__all__ = [
    "fit",
    "Design",
    "GLMControl",
    "GLMSolution",
    "GLMParams",
    "Family",
    "Link",
    "LogLink",
    "Poisson",
    "resolve_family",
]
