"""
CPU backend for Generalized Linear Models via IRLS.

Implements Iteratively Reweighted Least Squares (Fisher scoring). Each
IRLS iteration solves a weighted least squares problem via pivoted QR
on the transformed system √W·X, √W·z.

Algorithm:
    Initialize: η = X b₀ if a start vector is given, else
                μ = family.initialize(y), η = link(μ)
    For iteration 1..max_iter:
        w = family.working_weight(μ)
        z = family.working_response(y, μ, η)
        Solve WLS: min_b || √w·z - √w·X·b ||²  via QR
        η_new = X @ b
        μ_new = family.mean(η_new)
        ℓ_new = family.log_likelihood(y, μ_new)
        Check: |ℓ_new - ℓ_old| < tol  or  max|b_new - b_old| < step_tol

Zero or non-finite working weights are not floored: they make the
weighted system degenerate and raise SingularMatrixError.
"""

import warnings

import numpy as np
from numpy.typing import NDArray

from poisglm.core.result import Result
from poisglm.core.exceptions import SingularMatrixError
from poisglm.core.compute.timing import Timer
from poisglm.core.compute.linalg.qr import qr_solve, unscaled_covariance
from poisglm.regression.control import GLMControl
from poisglm.regression.design import Design
from poisglm.regression.families import Family
from poisglm.regression.solution import GLMParams


class CPUIRLSBackend:
    """CPU backend using IRLS with QR inner solve.

    Defaults follow R's glm.control(): tol=1e-8, max_iter=25. The
    stopping rule is on the absolute change in log-likelihood.
    """

    @property
    def name(self) -> str:
        return 'cpu_irls'

    def solve(
        self,
        design: Design,
        family: Family,
        control: GLMControl | None = None,
        start: NDArray | None = None,
    ) -> Result[GLMParams]:
        """Run IRLS to fit the GLM.

        Args:
            design: Design object with X and y
            family: GLM family specification
            control: Convergence settings (defaults to GLMControl())
            start: Optional starting coefficients (p,)

        Returns:
            Result[GLMParams] with coefficients, deviance, covariance, etc.

        Raises:
            SingularMatrixError: If the weighted system becomes singular
            NumericalOverflowError: If the linear predictor overflows exp()
        """
        if control is None:
            control = GLMControl()

        timer = Timer()
        timer.start()

        X, y = design.X, design.y
        n, p = design.n, design.p
        link = family.link

        warnings_list: list[str] = []

        # ------------------------------------------------------------------
        # Initialize μ and η
        # ------------------------------------------------------------------
        with timer.section('initialize'):
            if start is not None:
                coefficients = np.asarray(start, dtype=np.float64)
                eta = X @ coefficients
                mu = family.mean(eta)
            else:
                coefficients = np.zeros(p, dtype=np.float64)
                mu = family.initialize(y)
                eta = link.link(mu)
            _check_mean(mu, iteration=0)
            ll_old = family.log_likelihood(y, mu)

        # ------------------------------------------------------------------
        # IRLS loop
        # ------------------------------------------------------------------
        converged = False
        qr_result = None
        ll_new = ll_old
        iteration = 0

        with timer.section('irls'):
            for iteration in range(1, control.max_iter + 1):
                w = family.working_weight(mu)
                z = family.working_response(y, mu, eta)
                _check_weights(w, iteration)

                # WLS via QR: transform to √w·X and √w·z
                sqrt_w = np.sqrt(w)
                X_tilde = X * sqrt_w[:, np.newaxis]
                z_tilde = z * sqrt_w

                try:
                    coefficients_new, qr_result = qr_solve(X_tilde, z_tilde)
                except SingularMatrixError as e:
                    raise SingularMatrixError(
                        f"Weighted normal equations are singular at IRLS "
                        f"iteration {iteration}: rank={e.rank}, expected={p}",
                        matrix_name='sqrt(W) X',
                        rank=e.rank,
                        expected_rank=p,
                        iteration=iteration,
                    ) from e

                step = float(np.max(np.abs(coefficients_new - coefficients)))
                coefficients = coefficients_new

                eta = X @ coefficients
                mu = family.mean(eta)
                _check_mean(mu, iteration)
                ll_new = family.log_likelihood(y, mu)

                if abs(ll_new - ll_old) < control.tol or step < control.step_tol:
                    converged = True
                    break

                ll_old = ll_new

        if not converged:
            message = (
                f"IRLS did not converge in {control.max_iter} iterations "
                f"(loglik={ll_new:.6f}, last change={abs(ll_new - ll_old):.3g})"
            )
            warnings_list.append(message)
            warnings.warn(message, RuntimeWarning, stacklevel=3)

        # ------------------------------------------------------------------
        # Deviance and covariance
        # ------------------------------------------------------------------
        with timer.section('deviance'):
            dev = family.deviance(y, mu)
            null_deviance = self._null_deviance(y, family)

        with timer.section('covariance'):
            cov_unscaled = unscaled_covariance(qr_result)

        timer.stop()

        params = GLMParams(
            coefficients=coefficients,
            fitted_values=mu,
            linear_predictor=eta,
            cov_unscaled=cov_unscaled,
            deviance=dev,
            null_deviance=null_deviance,
            rank=qr_result.rank,
            df_residual=n - qr_result.rank,
            df_null=n,
            n_iter=iteration,
            converged=converged,
            family_name=family.name,
            link_name=link.name,
        )

        return Result(
            params=params,
            info={
                'method': 'irls_qr',
                'rank': qr_result.rank,
                'pivot': qr_result.pivot.tolist(),
                'R': qr_result.R,
                'loglik': ll_new,
                'tol': control.tol,
                'max_iter': control.max_iter,
            },
            timing=timer.result(),
            backend_name=self.name,
            warnings=tuple(warnings_list),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _null_deviance(y: NDArray, family: Family) -> float:
        """Null deviance with the R convention for designs that carry
        their own intercept column: mu_null = linkinv(0) for every
        observation (1.0 for the log link).
        """
        eta_null = np.zeros(len(y), dtype=np.float64)
        mu_null = family.link.linkinv(eta_null)
        return family.deviance(y, mu_null)


def _check_weights(w: NDArray, iteration: int) -> None:
    """Zero or non-finite weights drop rows out of the weighted system."""
    bad = ~np.isfinite(w) | (w <= 0)
    if np.any(bad):
        n_bad = int(np.sum(bad))
        raise SingularMatrixError(
            f"IRLS working weights collapsed at iteration {iteration}: "
            f"{n_bad} weights are zero or non-finite (fitted means underflow). "
            f"The linear predictor is diverging to -inf for some observations.",
            matrix_name='W',
            iteration=iteration,
        )


def _check_mean(mu: NDArray, iteration: int) -> None:
    if not np.all(np.isfinite(mu) & (mu > 0)):
        n_bad = int(np.sum(~(np.isfinite(mu) & (mu > 0))))
        raise SingularMatrixError(
            f"Fitted means left (0, inf) at IRLS iteration {iteration}: "
            f"{n_bad} values underflowed or are non-finite.",
            matrix_name='mu',
            iteration=iteration,
        )
