"""
Exception hierarchy for poisglm.

All exceptions inherit from PoisGLMError to allow catching any
library-specific error. Domain-specific exceptions should inherit from
the appropriate base class here.

Design principles:
    - Exceptions carry diagnostic information as attributes
    - Error messages are actionable with actual vs expected values
    - Never catch and re-raise with less information
"""


class PoisGLMError(Exception):
    """Base exception for all poisglm errors."""
    pass


class ValidationError(PoisGLMError):
    """
    Input validation failed.

    Raised when user-provided inputs fail validation checks, or when a
    caller-side contract (e.g. model nesting order) is violated.
    """
    pass


class DimensionError(ValidationError):
    """
    Array dimensions are incorrect or inconsistent.

    Raised when array shapes don't match expected dimensions or
    when multiple arrays have inconsistent shapes.
    """
    pass


class DomainError(ValidationError):
    """
    Values lie outside the support of the response distribution.

    Raised when the Poisson response contains negative or non-integer
    values.

    Attributes:
        name: Name of the offending array
        n_invalid: Number of offending entries
    """

    def __init__(
        self,
        message: str,
        name: str | None = None,
        n_invalid: int | None = None,
    ):
        super().__init__(message)
        self.name = name
        self.n_invalid = n_invalid


class RankDeficiencyError(ValidationError):
    """
    Design matrix columns are linearly dependent.

    Attributes:
        rank: Numerical rank of the matrix
        expected_rank: Required rank (number of columns)
    """

    def __init__(
        self,
        message: str,
        rank: int | None = None,
        expected_rank: int | None = None,
    ):
        super().__init__(message)
        self.rank = rank
        self.expected_rank = expected_rank


class NumericalError(PoisGLMError):
    """
    Numerical computation failed.

    Base class for errors arising from numerical issues during computation.
    """
    pass


class SingularMatrixError(NumericalError):
    """
    Matrix is singular or nearly singular.

    Raised when a matrix operation requires invertibility but the matrix
    is singular or numerically rank-deficient, e.g. the weighted design
    inside an IRLS step after working weights collapse to zero.

    Attributes:
        matrix_name: Name/description of the problematic matrix
        rank: Numerical rank, if computed
        expected_rank: Expected rank (typically p)
        iteration: IRLS iteration at which the problem was detected
    """

    def __init__(
        self,
        message: str,
        matrix_name: str | None = None,
        rank: int | None = None,
        expected_rank: int | None = None,
        iteration: int | None = None,
    ):
        super().__init__(message)
        self.matrix_name = matrix_name
        self.rank = rank
        self.expected_rank = expected_rank
        self.iteration = iteration


class NumericalOverflowError(NumericalError):
    """
    Exponentiation would overflow double precision.

    Raised when the linear predictor exceeds the safe bound for exp().

    Attributes:
        max_value: Largest offending input
        bound: The safe bound that was exceeded
    """

    def __init__(
        self,
        message: str,
        max_value: float | None = None,
        bound: float | None = None,
    ):
        super().__init__(message)
        self.max_value = max_value
        self.bound = bound


class ConvergenceError(PoisGLMError):
    """
    Iterative algorithm failed to converge.

    Raised when a series expansion or continued fraction fails to meet
    its relative-error tolerance within the maximum number of iterations.
    IRLS does not raise this; it returns a result flagged as not converged.

    Attributes:
        iterations: Number of iterations completed
        final_change: Final relative change of the last term
        reason: Why convergence failed (e.g., 'max_iterations')
        threshold: The convergence threshold that was not met
    """

    def __init__(
        self,
        message: str,
        iterations: int,
        final_change: float | None = None,
        reason: str | None = None,
        threshold: float | None = None
    ):
        super().__init__(message)
        self.iterations = iterations
        self.final_change = final_change
        self.reason = reason
        self.threshold = threshold
