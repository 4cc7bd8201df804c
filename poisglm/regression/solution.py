"""
Regression solution types.

Contains the parameter payload and user-facing solution wrapper for a
fitted Poisson GLM.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal, TYPE_CHECKING
import numpy as np
from numpy.typing import ArrayLike, NDArray

from poisglm.core.result import Result
from poisglm.core.validation import check_array, check_2d, check_finite
from poisglm.core.exceptions import DimensionError
from poisglm.core.compute.special import chisq_upper_tail
from poisglm.regression.families import Family

if TYPE_CHECKING:
    from poisglm.regression.design import Design


@dataclass(frozen=True)
class GLMParams:
    """
    Parameter payload for a fitted GLM.

    This is the immutable data computed by backends.
    """
    coefficients: NDArray[np.floating[Any]]
    fitted_values: NDArray[np.floating[Any]]
    linear_predictor: NDArray[np.floating[Any]]
    cov_unscaled: NDArray[np.floating[Any]]
    deviance: float
    null_deviance: float
    rank: int
    df_residual: int
    df_null: int
    n_iter: int
    converged: bool
    family_name: str
    link_name: str


@dataclass(frozen=True, eq=False)
class GLMSolution:
    """
    User-facing GLM results (a fitted model).

    Wraps the backend Result and the Design the model was fit to. The
    Design is shared, not copied; two solutions fit to the same Design
    object refer to the same response vector.

    Log-likelihood, AIC and likelihood ratio tests live in
    poisglm.selection and are recomputed from the coefficients.
    """
    _result: Result[GLMParams]
    _design: 'Design'
    _family: Family

    # === Core fit ===

    @property
    def coefficients(self) -> NDArray[np.floating[Any]]:
        return self._result.params.coefficients

    @property
    def converged(self) -> bool:
        return self._result.params.converged

    @property
    def n_iter(self) -> int:
        return self._result.params.n_iter

    @property
    def design(self) -> 'Design':
        return self._design

    @property
    def family(self) -> Family:
        return self._family

    @property
    def names(self) -> tuple[str, ...]:
        return self._design.names

    @property
    def n(self) -> int:
        return self._design.n

    @property
    def p(self) -> int:
        """Number of fitted coefficients."""
        return self._design.p

    @property
    def fitted_values(self) -> NDArray[np.floating[Any]]:
        return self._result.params.fitted_values

    @property
    def linear_predictor(self) -> NDArray[np.floating[Any]]:
        return self._result.params.linear_predictor

    # === Goodness of fit ===

    @property
    def deviance(self) -> float:
        return self._result.params.deviance

    @property
    def null_deviance(self) -> float:
        return self._result.params.null_deviance

    @property
    def rank(self) -> int:
        return self._result.params.rank

    @property
    def df_residual(self) -> int:
        return self._result.params.df_residual

    @property
    def df_null(self) -> int:
        return self._result.params.df_null

    # === Residuals ===

    @property
    def residuals_response(self) -> NDArray[np.floating[Any]]:
        """y - μ."""
        return self._design.y - self.fitted_values

    @property
    def residuals_pearson(self) -> NDArray[np.floating[Any]]:
        """(y - μ) / sqrt(V(μ))."""
        mu = self.fitted_values
        return self.residuals_response / np.sqrt(self._family.variance(mu))

    @property
    def residuals_deviance(self) -> NDArray[np.floating[Any]]:
        """sign(y - μ) * sqrt(d_i)."""
        d = self._family.unit_deviance(self._design.y, self.fitted_values)
        return np.sign(self.residuals_response) * np.sqrt(np.maximum(d, 0.0))

    # === Inference ===

    @property
    def standard_errors(self) -> NDArray[np.floating[Any]]:
        """
        Standard errors of coefficients.

        SE(β) = sqrt(diag((X'WX)⁻¹)), with W the working weights of the
        final IRLS iteration. Poisson dispersion is fixed at 1.
        """
        return np.sqrt(np.diag(self._result.params.cov_unscaled))

    @property
    def z_statistics(self) -> NDArray[np.floating[Any]]:
        """Wald z-statistics β / SE(β)."""
        return self.coefficients / self.standard_errors

    @property
    def p_values(self) -> NDArray[np.floating[Any]]:
        """Two-sided Wald p-values, Pr(χ²₁ > z²)."""
        return np.array(
            [chisq_upper_tail(float(z) ** 2, 1) for z in self.z_statistics],
            dtype=np.float64,
        )

    def predict(
        self,
        X: ArrayLike | None = None,
        type: Literal['response', 'link'] = 'response',
    ) -> NDArray[np.floating[Any]]:
        """
        Predict from the fitted model.

        Args:
            X: New covariate matrix with p columns. None predicts for
               the training design.
            type: 'response' for μ, 'link' for η = Xβ

        Raises:
            DimensionError: If X does not have p columns
            NumericalOverflowError: If type='response' and η overflows exp()
        """
        if type not in ('response', 'link'):
            raise ValueError(f"Unknown prediction type: {type!r}")

        if X is None:
            X_arr = self._design.X
        else:
            X_arr = check_array(X, 'X')
            if X_arr.ndim == 1:
                X_arr = X_arr.reshape(1, -1)
            check_2d(X_arr, 'X')
            check_finite(X_arr, 'X')
            if X_arr.shape[1] != self.p:
                raise DimensionError(
                    f"X: expected {self.p} columns, got {X_arr.shape[1]}"
                )

        eta = X_arr @ self.coefficients
        if type == 'link':
            return eta
        return self._family.link.linkinv(eta)

    # === Metadata ===

    @property
    def info(self) -> dict[str, Any]:
        return self._result.info

    @property
    def timing(self) -> dict[str, float] | None:
        return self._result.timing

    @property
    def backend_name(self) -> str:
        return self._result.backend_name

    @property
    def warnings(self) -> tuple[str, ...]:
        return self._result.warnings

    def summary(self) -> str:
        """Generate R-style summary output."""
        params = self._result.params
        lines = [
            f"Generalized Linear Model ({params.family_name}, link={params.link_name})",
            "=" * 66,
            f"Observations: {self.n}",
            f"Coefficients: {self.p}",
            "",
            "Coefficients:",
            "-" * 66,
            f"{'':<14} {'Estimate':>12} {'Std. Error':>12} {'z value':>10} {'Pr(>|z|)':>12}",
            "-" * 66,
        ]

        for name, coef, se, z, pv in zip(
            self.names, self.coefficients, self.standard_errors,
            self.z_statistics, self.p_values,
        ):
            lines.append(
                f"{name[:14]:<14} {coef:12.6f} {se:12.6f} {z:10.3f} {pv:12.4g}"
            )

        lines.append("-" * 66)
        lines.append(
            f"Null deviance: {self.null_deviance:.4f} on {self.df_null} degrees of freedom"
        )
        lines.append(
            f"Residual deviance: {self.deviance:.4f} on {self.df_residual} degrees of freedom"
        )
        status = "converged" if self.converged else "NOT converged"
        lines.append(f"IRLS iterations: {self.n_iter} ({status})")
        lines.append(f"Backend: {self.backend_name}")
        if self.timing:
            lines.append(f"Time: {self.timing.get('total_seconds', 0):.4f}s")
        for w in self.warnings:
            lines.append(f"Warning: {w}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (
            f"GLMSolution(family={self._result.params.family_name!r}, "
            f"n={self.n}, p={self.p}, converged={self.converged}, "
            f"deviance={self.deviance:.4f})"
        )
