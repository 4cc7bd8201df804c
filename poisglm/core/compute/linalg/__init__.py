"""
Linear algebra kernels for poisglm.

All functions follow these conventions:
    - NumPy/SciPy (LAPACK under the hood)
    - Each decomposition returns a structured result dataclass
    - Errors are raised immediately with clear messages
"""

from poisglm.core.compute.linalg.qr import (
    QRResult,
    pivoted_qr,
    qr_solve,
    unscaled_covariance,
)

__all__ = [
    "QRResult",
    "pivoted_qr",
    "qr_solve",
    "unscaled_covariance",
]
