"""
Regression Design.

Design holds the covariate matrix X and the count response y for a
Poisson regression, validated once at construction and immutable after.
Everything downstream (backends, solutions, model comparison) trusts it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence
import numpy as np
from numpy.typing import ArrayLike, NDArray

from poisglm.core.exceptions import DimensionError
from poisglm.core.validation import (
    check_array,
    check_finite,
    check_2d,
    check_1d,
    check_consistent_length,
    check_min_samples,
    check_nonnegative,
    check_integer_valued,
    check_column_rank,
)


@dataclass(frozen=True, eq=False)
class Design:
    """
    Regression design matrix specification.

    Holds X (n x p, intercept column included by the caller) and y (n,).
    Immutable after construction: both arrays are private read-only copies.

    Invariants:
        - X and y have the same number of rows
        - all values finite
        - y is non-negative and integer-valued
        - X has full column rank (hence n >= p)

    Construction:
        Design.from_arrays(X, y)
        Design.from_arrays(X, y, names=['(Intercept)', 'dose'])
    """
    _X: NDArray[np.floating[Any]]
    _y: NDArray[np.floating[Any]]
    _n: int
    _p: int
    _names: tuple[str, ...]

    @classmethod
    def from_arrays(
        cls,
        X: ArrayLike,
        y: ArrayLike,
        names: Sequence[str] | None = None,
    ) -> Design:
        """
        Build Design directly from arrays.

        Args:
            X: Covariate matrix (n x p). A 1-D array is treated as one column.
            y: Count response (n,). An (n, 1) column is flattened.
            names: Optional coefficient names, one per column of X.

        Raises:
            ValidationError: Non-numeric or non-finite input
            DimensionError: Wrong dimensionality, mismatched rows, or
                wrong number of names
            DomainError: Negative or non-integer counts in y
            RankDeficiencyError: Linearly dependent columns in X
        """
        X = check_array(X, 'X')
        y = check_array(y, 'y')
        return cls._build(X, y, names)

    @classmethod
    def _build(
        cls,
        X: NDArray,
        y: NDArray,
        names: Sequence[str] | None,
    ) -> Design:
        """Internal builder with validation."""
        # Ensure correct shapes
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if y.ndim == 2 and y.shape[1] == 1:
            y = y.ravel()

        check_2d(X, 'X')
        check_1d(y, 'y')
        check_consistent_length(X, y, names=('X', 'y'))
        check_min_samples(X, 1, 'X')
        check_finite(X, 'X')
        check_finite(y, 'y')
        check_nonnegative(y, 'y')
        check_integer_valued(y, 'y')

        n, p = X.shape
        if p == 0:
            raise DimensionError("X: has no columns, expected at least one")
        check_column_rank(X, 'X')

        if names is None:
            names = tuple(f"x{j}" for j in range(p))
        else:
            names = tuple(str(name) for name in names)
            if len(names) != p:
                raise DimensionError(
                    f"names: expected {p} names (one per column of X), got {len(names)}"
                )

        X = np.array(X, dtype=np.float64, copy=True)
        y = np.array(y, dtype=np.float64, copy=True)
        X.setflags(write=False)
        y.setflags(write=False)

        return cls(_X=X, _y=y, _n=n, _p=p, _names=names)

    # === Properties ===

    @property
    def X(self) -> NDArray[np.floating[Any]]:
        """Design matrix (n x p), read-only."""
        return self._X

    @property
    def y(self) -> NDArray[np.floating[Any]]:
        """Response vector (n,), read-only."""
        return self._y

    @property
    def n(self) -> int:
        """Number of observations."""
        return self._n

    @property
    def p(self) -> int:
        """Number of coefficients (columns of X)."""
        return self._p

    @property
    def names(self) -> tuple[str, ...]:
        """Coefficient names."""
        return self._names

    def row(self, i: int) -> tuple[float, NDArray[np.floating[Any]]]:
        """Observation i as (y_i, x_i)."""
        if not -self._n <= i < self._n:
            raise IndexError(f"row index {i} out of range for n={self._n}")
        return float(self._y[i]), self._X[i]

    def XtX(self) -> NDArray[np.floating[Any]]:
        """Compute X'X."""
        return self._X.T @ self._X

    def __repr__(self) -> str:
        return f"Design(n={self._n}, p={self._p}, names={list(self._names)})"
