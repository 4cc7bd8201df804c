"""
Input validation utilities for poisglm.

These validators follow the "fail fast, fail loud" principle. They raise
immediately with clear error messages rather than silently correcting
or making assumptions about user intent.

Design principles:
    - No silent type coercion (except np.asarray on array-likes)
    - No default handling of edge cases
    - Clear, actionable error messages with actual values
    - Each function validates ONE thing
    - Parameter names included in all error messages
"""

import numbers

import numpy as np
from numpy.typing import ArrayLike, NDArray
from typing import Any

from poisglm.core.exceptions import (
    ValidationError,
    DimensionError,
    DomainError,
    RankDeficiencyError,
)
from poisglm.core.compute.linalg.qr import pivoted_qr


def check_array(
    array: ArrayLike,
    name: str,
) -> NDArray[np.floating[Any]]:
    """
    Validate and convert input to numpy array.

    Accepts any array-like and converts to numpy array. Rejects inputs
    that result in object dtype (indicating mixed types or non-numeric data).

    Args:
        array: Input to validate
        name: Parameter name for error messages

    Returns:
        numpy.ndarray with float64 dtype

    Raises:
        ValidationError: If input cannot be converted to numeric array
    """
    try:
        result = np.asarray(array)
    except (ValueError, TypeError) as e:
        raise ValidationError(f"{name}: cannot convert to array: {e}") from e

    if result.dtype == object:
        raise ValidationError(
            f"{name}: converted to object dtype, indicating mixed types or non-numeric data"
        )

    # Reject non-numeric dtypes (strings, bytes, datetime, bool, etc.)
    if not np.issubdtype(result.dtype, np.number):
        raise ValidationError(
            f"{name}: non-numeric dtype {result.dtype}, expected numeric data"
        )

    if np.issubdtype(result.dtype, np.complexfloating):
        raise ValidationError(f"{name}: complex dtype {result.dtype} not supported")

    return result.astype(np.float64)


def check_finite(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify array contains no NaN or Inf values.

    Raises:
        ValidationError: If array contains non-finite values
    """
    if not np.all(np.isfinite(array)):
        n_nan = int(np.sum(np.isnan(array)))
        n_inf = int(np.sum(np.isinf(array)))
        raise ValidationError(
            f"{name}: contains non-finite values ({n_nan} NaN, {n_inf} Inf)"
        )


def check_ndim(array: NDArray[np.floating[Any]], ndim: int, name: str) -> None:
    """
    Verify array has exactly the specified number of dimensions.

    Raises:
        DimensionError: If array has wrong number of dimensions
    """
    if array.ndim != ndim:
        raise DimensionError(
            f"{name}: expected {ndim}D array, got {array.ndim}D with shape {array.shape}"
        )


def check_1d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 1-dimensional."""
    check_ndim(array, 1, name)


def check_2d(array: NDArray[np.floating[Any]], name: str) -> None:
    """Verify array is 2-dimensional."""
    check_ndim(array, 2, name)


def check_consistent_length(
    *arrays: NDArray[np.floating[Any]],
    names: tuple[str, ...]
) -> None:
    """
    Verify all arrays have the same length (first dimension).

    Args:
        *arrays: Arrays to check
        names: Parameter names for error messages (must match number of arrays)

    Raises:
        ValueError: If number of names doesn't match number of arrays
        DimensionError: If arrays have inconsistent lengths
    """
    if len(arrays) != len(names):
        raise ValueError(
            f"Number of arrays ({len(arrays)}) must match number of names ({len(names)})"
        )

    if len(arrays) < 2:
        return

    lengths = [arr.shape[0] for arr in arrays]
    if len(set(lengths)) > 1:
        details = ", ".join(f"{name}={length}" for name, length in zip(names, lengths))
        raise DimensionError(f"Inconsistent lengths: {details}")


def check_min_samples(array: NDArray[np.floating[Any]], min_samples: int, name: str) -> None:
    """
    Verify array has at least the minimum number of samples.

    Raises:
        ValidationError: If array has fewer than min_samples
    """
    n = array.shape[0]
    if n < min_samples:
        raise ValidationError(
            f"{name}: requires at least {min_samples} samples, got {n}"
        )


def check_nonnegative(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify all entries are >= 0.

    Raises:
        DomainError: If any entry is negative
    """
    negative = array < 0
    if np.any(negative):
        n_bad = int(np.sum(negative))
        raise DomainError(
            f"{name}: {n_bad} negative values (min={float(np.min(array))}), "
            f"counts must be >= 0",
            name=name,
            n_invalid=n_bad,
        )


def check_integer_valued(array: NDArray[np.floating[Any]], name: str) -> None:
    """
    Verify all entries are whole numbers.

    Raises:
        DomainError: If any entry has a fractional part
    """
    fractional = array != np.round(array)
    if np.any(fractional):
        n_bad = int(np.sum(fractional))
        first = float(array[np.argmax(fractional)])
        raise DomainError(
            f"{name}: {n_bad} non-integer values (first: {first}), "
            f"counts must be integer-valued",
            name=name,
            n_invalid=n_bad,
        )


def check_column_rank(X: NDArray[np.floating[Any]], name: str) -> int:
    """
    Verify matrix has full column rank.

    Rank is determined from a column-pivoted QR decomposition. A
    rank-deficient design matrix indicates perfect multicollinearity
    (or fewer rows than columns) and makes the IRLS normal equations
    unsolvable.

    Args:
        X: 2D array to check
        name: Parameter name for error messages

    Returns:
        The numerical rank (equal to the number of columns)

    Raises:
        RankDeficiencyError: If matrix is rank-deficient
    """
    n, p = X.shape
    rank = pivoted_qr(X).rank

    if rank < p:
        raise RankDeficiencyError(
            f"{name}: rank-deficient (rank={rank}, expected={p}, n={n}). "
            f"This indicates perfect multicollinearity.",
            rank=rank,
            expected_rank=p,
        )
    return rank


def check_positive_scalar(value: Any, name: str) -> float:
    """
    Verify a configuration scalar is a finite number > 0.

    Raises:
        ValidationError: If value is not a positive finite real number
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise ValidationError(
            f"{name}: expected a real number, got {type(value).__name__}"
        )
    if not np.isfinite(value) or value <= 0:
        raise ValidationError(f"{name}: must be a finite number > 0, got {value}")
    return float(value)


def check_positive_int(value: Any, name: str) -> int:
    """
    Verify a value is an integer >= 1.

    Floats with an integral value (e.g. 2.0) are rejected: callers pass
    counts, not measurements.

    Raises:
        ValidationError: If value is not an integer >= 1
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise ValidationError(
            f"{name}: expected an integer, got {type(value).__name__} ({value!r})"
        )
    if value < 1:
        raise ValidationError(f"{name}: must be >= 1, got {value}")
    return int(value)
