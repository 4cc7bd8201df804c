"""
Solver dispatch for regression.

This module provides the fit() function (public API) and backend selection.
"""

from typing import Literal, Sequence
from numpy.typing import ArrayLike

from poisglm.core.exceptions import DimensionError, ValidationError
from poisglm.core.validation import check_array, check_1d, check_finite
from poisglm.regression.control import GLMControl
from poisglm.regression.design import Design
from poisglm.regression.families import Family, resolve_family
from poisglm.regression.solution import GLMSolution
from poisglm.regression.backends.cpu_glm import CPUIRLSBackend


# Type alias for backend selection
BackendChoice = Literal['auto', 'cpu', 'cpu_irls']


def fit(
    X: ArrayLike | Design,
    y: ArrayLike | None = None,
    *,
    family: str | Family = 'poisson',
    tol: float = 1e-8,
    max_iter: int = 25,
    step_tol: float = 1e-10,
    control: GLMControl | None = None,
    start: ArrayLike | None = None,
    names: Sequence[str] | None = None,
    backend: BackendChoice = 'auto',
) -> GLMSolution:
    """
    Fit a Poisson log-link GLM by maximum likelihood.

    Maximizes Σ [y_i log μ_i - μ_i - log y_i!] with log μ = Xβ using
    iteratively reweighted least squares (Fisher scoring).

    Args:
        X: Design matrix (n x p), or a prebuilt Design (then y must be None).
           Include a column of ones for an intercept.
        y: Count response (n,).
        family: GLM family; only 'poisson' is provided.
        tol: Stop when the log-likelihood changes by less than tol.
        max_iter: Maximum IRLS iterations.
        step_tol: Stop when no coefficient moves by more than step_tol.
        control: GLMControl instance; overrides tol/max_iter/step_tol.
        start: Starting coefficients (p,). Default: R-style start from
               μ = y + 0.1.
        names: Coefficient names (ignored when X is a Design).
        backend: 'auto', 'cpu' or 'cpu_irls' (all the same IRLS backend).

    Returns:
        GLMSolution. If max_iter is reached, converged is False, the
        result carries a warning and a RuntimeWarning is emitted.

    Raises:
        ValidationError: If inputs are invalid
        DimensionError: If X and y have inconsistent dimensions
        DomainError: If y has negative or non-integer values
        RankDeficiencyError: If X does not have full column rank
        SingularMatrixError: If the weighted system becomes singular mid-fit
        NumericalOverflowError: If the linear predictor overflows exp()

    Example:
        >>> import numpy as np
        >>> from poisglm.regression import fit
        >>>
        >>> rng = np.random.default_rng(0)
        >>> x = rng.uniform(size=100)
        >>> X = np.column_stack([np.ones(100), x])
        >>> y = rng.poisson(np.exp(1 + 2 * x))
        >>>
        >>> result = fit(X, y)
        >>> print(result.summary())
    """
    # === Construct Design ===
    # This is the boundary - validate here, trust everywhere else
    if isinstance(X, Design):
        if y is not None:
            raise ValidationError("y must be None when X is a Design")
        design = X
    else:
        if y is None:
            raise ValidationError("y is required unless X is a Design")
        design = Design.from_arrays(X, y, names=names)

    family_impl = resolve_family(family)

    if control is None:
        control = GLMControl(tol=tol, max_iter=max_iter, step_tol=step_tol)

    start_arr = None
    if start is not None:
        start_arr = check_array(start, 'start')
        check_1d(start_arr, 'start')
        check_finite(start_arr, 'start')
        if start_arr.shape[0] != design.p:
            raise DimensionError(
                f"start: expected {design.p} coefficients, got {start_arr.shape[0]}"
            )

    # === Select Backend ===
    backend_impl = _get_backend(backend)

    # === Solve ===
    result = backend_impl.solve(design, family_impl, control=control, start=start_arr)

    # === Wrap and Return ===
    return GLMSolution(_result=result, _design=design, _family=family_impl)


def _get_backend(choice: BackendChoice) -> CPUIRLSBackend:
    """
    Select and instantiate the appropriate backend.

    Raises:
        ValueError: If unknown backend specified
    """
    if choice in ('auto', 'cpu', 'cpu_irls'):
        return CPUIRLSBackend()
    raise ValueError(f"Unknown backend: {choice!r}")
