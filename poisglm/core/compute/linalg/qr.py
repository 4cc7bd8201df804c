"""
QR decomposition implementations.

Provides the QR kernels used for rank checks on design matrices and for
the weighted least squares solve inside each IRLS iteration. All
decompositions are column-pivoted (LAPACK geqp3 via SciPy), so the
numerical rank read off the R diagonal is reliable.
"""

from dataclasses import dataclass
from typing import Any
import numpy as np
from numpy.typing import NDArray
from scipy.linalg import qr as scipy_qr, solve_triangular

from poisglm.core.exceptions import SingularMatrixError


@dataclass(frozen=True)
class QRResult:
    """
    Result of a column-pivoted QR decomposition X[:, pivot] = Q R.

    Attributes:
        Q: Orthonormal matrix (n x k where k = min(n, p))
        R: Upper triangular matrix (k x p)
        pivot: Column permutation applied to X
        rank: Numerical rank determined from R diagonal
    """
    Q: NDArray[np.floating[Any]]
    R: NDArray[np.floating[Any]]
    pivot: NDArray[np.intp]
    rank: int


def pivoted_qr(X: NDArray[np.floating[Any]]) -> QRResult:
    """
    Economy QR decomposition with column pivoting.

    The rank tolerance matches LAPACK/NumPy convention:
        tol = max(n, p) * eps * |R[0, 0]|

    Args:
        X: Matrix to decompose (n x p)

    Returns:
        QRResult with Q, R, pivot and numerical rank
    """
    Q, R, pivot = scipy_qr(X, mode='economic', pivoting=True)

    diag_R = np.abs(np.diag(R))
    if len(diag_R) > 0 and diag_R[0] > 0:
        tol = max(X.shape) * np.finfo(np.float64).eps * diag_R[0]
        rank = int(np.sum(diag_R > tol))
    else:
        rank = 0

    return QRResult(Q=Q, R=R, pivot=pivot, rank=rank)


def qr_solve(
    X: NDArray[np.floating[Any]],
    y: NDArray[np.floating[Any]],
) -> tuple[NDArray[np.floating[Any]], QRResult]:
    """
    Solve least squares via pivoted QR decomposition.

    Solves: min_β ||y - Xβ||² via
        X P = QR
        β[P] = R⁻¹ Q'y

    Args:
        X: Design matrix (n x p), must have n >= p
        y: Response vector (n,)

    Returns:
        (β, qr_result). β is in the original column order.

    Raises:
        SingularMatrixError: If X is numerically rank-deficient
    """
    n, p = X.shape
    qr_result = pivoted_qr(X)

    if qr_result.rank < p:
        raise SingularMatrixError(
            f"Least squares matrix is rank-deficient: rank={qr_result.rank}, "
            f"expected={p}.",
            matrix_name='X',
            rank=qr_result.rank,
            expected_rank=p,
        )

    Qty = qr_result.Q.T @ y
    beta_pivoted = solve_triangular(qr_result.R[:p, :p], Qty[:p], lower=False)

    beta = np.empty(p, dtype=np.float64)
    beta[qr_result.pivot] = beta_pivoted
    return beta, qr_result


def unscaled_covariance(qr_result: QRResult) -> NDArray[np.floating[Any]]:
    """
    Compute (X'X)⁻¹ from a full-rank pivoted QR of X.

    (X'X)⁻¹ = P R⁻¹ R⁻ᵀ Pᵀ, returned in the original column order.
    """
    p = qr_result.R.shape[1]
    R_inv = solve_triangular(qr_result.R[:p, :p], np.eye(p), lower=False)
    cov_pivoted = R_inv @ R_inv.T

    cov = np.empty((p, p), dtype=np.float64)
    cov[np.ix_(qr_result.pivot, qr_result.pivot)] = cov_pivoted
    return cov
