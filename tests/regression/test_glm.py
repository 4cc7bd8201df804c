"""
GLM fit tests.

Tests IRLS convergence and optimality, the solution interface, control
settings, and the numerical failure modes (singular weights, overflow).
"""

import warnings
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest
from scipy import optimize
from scipy import stats as sp_stats

from poisglm.core.exceptions import (
    DimensionError,
    NumericalOverflowError,
    RankDeficiencyError,
    SingularMatrixError,
    ValidationError,
)
from poisglm.core.compute.tolerances import FINITE_DIFFERENCE, ITERATIVE
from poisglm.regression import Design, GLMControl, GLMSolution, Poisson, fit


def _loglik(beta, X, y):
    mu = np.exp(X @ beta)
    return float(np.sum(sp_stats.poisson.logpmf(y, mu)))


def _numeric_gradient(beta, X, y, h=1e-6):
    grad = np.empty_like(beta)
    for j in range(len(beta)):
        e = np.zeros_like(beta)
        e[j] = h
        grad[j] = (_loglik(beta + e, X, y) - _loglik(beta - e, X, y)) / (2 * h)
    return grad


# =====================================================================
# Estimation
# =====================================================================

class TestGLMFit:
    """fit() recovers the Poisson MLE."""

    def test_returns_glmsolution(self, poisson_data):
        X, y = poisson_data
        assert isinstance(fit(X, y), GLMSolution)

    def test_converges(self, poisson_data):
        X, y = poisson_data
        result = fit(X, y)
        assert result.converged
        assert 1 <= result.n_iter <= 25
        assert result.warnings == ()

    def test_recovers_true_coefficients(self, poisson_data):
        X, y = poisson_data
        result = fit(X, y)
        np.testing.assert_allclose(result.coefficients, [1.0, 2.0], atol=0.5)

    def test_score_is_zero(self, poisson_data):
        """Converged MLE satisfies X'(y - μ) = 0."""
        X, y = poisson_data
        result = fit(X, y)
        score = X.T @ (y - result.fitted_values)
        assert np.max(np.abs(score)) < 1e-3

    def test_finite_difference_gradient_is_zero(self, poisson_data):
        X, y = poisson_data
        result = fit(X, y)
        grad = _numeric_gradient(result.coefficients, X, y)
        np.testing.assert_allclose(grad, 0.0, atol=1e-3)

    def test_local_maximum(self, poisson_data, rng):
        X, y = poisson_data
        result = fit(X, y)
        best = _loglik(result.coefficients, X, y)
        for _ in range(20):
            direction = rng.standard_normal(2)
            direction /= np.linalg.norm(direction)
            assert _loglik(result.coefficients + 0.05 * direction, X, y) < best

    def test_matches_generic_optimizer(self, poisson_data):
        X, y = poisson_data
        result = fit(X, y)

        def negloglik(beta):
            eta = X @ beta
            return float(np.sum(np.exp(eta) - y * eta))

        def gradient(beta):
            return X.T @ (np.exp(X @ beta) - y)

        reference = optimize.minimize(
            negloglik, np.zeros(2), jac=gradient, method='BFGS',
            options={'gtol': 1e-9},
        )
        np.testing.assert_allclose(result.coefficients, reference.x, atol=1e-4)

    def test_intercept_only_is_log_mean(self, poisson_data):
        _, y = poisson_data
        result = fit(np.ones((len(y), 1)), y)
        assert result.coefficients[0] == pytest.approx(np.log(np.mean(y)), rel=1e-7)

    def test_start_vector_gives_same_estimate(self, poisson_data):
        X, y = poisson_data
        default = fit(X, y)
        from_zero = fit(X, y, start=np.zeros(2))
        np.testing.assert_allclose(
            from_zero.coefficients, default.coefficients,
            rtol=ITERATIVE.rtol, atol=1e-5,
        )

    def test_deterministic(self, poisson_data):
        X, y = poisson_data
        a, b = fit(X, y), fit(X, y)
        np.testing.assert_array_equal(a.coefficients, b.coefficients)
        assert a.n_iter == b.n_iter

    def test_all_zero_counts_with_covariate(self, rng):
        """Mostly-zero data still fits when every mean stays positive."""
        n = 80
        x = rng.uniform(0.0, 1.0, n)
        X = np.column_stack([np.ones(n), x])
        y = rng.poisson(np.exp(-2.0 + 0.5 * x)).astype(float)
        result = fit(X, y)
        assert result.converged
        assert np.all(result.fitted_values > 0)

    def test_concurrent_fits_independent(self):
        """No shared state: threaded fits equal sequential fits."""
        datasets = []
        for seed in range(6):
            rng = np.random.default_rng(seed)
            x = rng.uniform(0.0, 1.0, 60)
            X = np.column_stack([np.ones(60), x])
            datasets.append((X, rng.poisson(np.exp(0.5 + x)).astype(float)))

        sequential = [fit(X, y).coefficients for X, y in datasets]
        with ThreadPoolExecutor(max_workers=3) as pool:
            threaded = list(pool.map(lambda d: fit(*d).coefficients, datasets))

        for a, b in zip(sequential, threaded):
            np.testing.assert_array_equal(a, b)


# =====================================================================
# Inputs and configuration
# =====================================================================

class TestFitInputs:

    def test_design_object_works(self, poisson_data):
        X, y = poisson_data
        design = Design.from_arrays(X, y)
        result = fit(design)
        assert result.design is design

    def test_design_with_y_rejected(self, poisson_data):
        X, y = poisson_data
        with pytest.raises(ValidationError):
            fit(Design.from_arrays(X, y), y)

    def test_missing_y_rejected(self, poisson_data):
        X, _ = poisson_data
        with pytest.raises(ValidationError):
            fit(X)

    def test_rank_deficient_never_fits(self, collinear_data):
        X, y = collinear_data
        with pytest.raises(RankDeficiencyError):
            fit(X, y)

    def test_start_wrong_length(self, poisson_data):
        X, y = poisson_data
        with pytest.raises(DimensionError):
            fit(X, y, start=[0.0, 0.0, 0.0])

    def test_names_propagate(self, poisson_data):
        X, y = poisson_data
        result = fit(X, y, names=['(Intercept)', 'x'])
        assert result.names == ('(Intercept)', 'x')

    def test_family_object_passthrough(self, poisson_data):
        X, y = poisson_data
        fam = Poisson()
        assert fit(X, y, family=fam).family is fam

    def test_unknown_family(self, poisson_data):
        X, y = poisson_data
        with pytest.raises(ValueError):
            fit(X, y, family='gamma')

    def test_unknown_backend(self, poisson_data):
        X, y = poisson_data
        with pytest.raises(ValueError, match="Unknown backend"):
            fit(X, y, backend='gpu')

    @pytest.mark.parametrize("kwargs", [
        {'tol': 0.0}, {'tol': -1e-8}, {'max_iter': 0}, {'max_iter': 2.5}, {'step_tol': np.nan},
    ])
    def test_invalid_control(self, poisson_data, kwargs):
        X, y = poisson_data
        with pytest.raises(ValidationError):
            fit(X, y, **kwargs)

    def test_control_defaults(self):
        control = GLMControl()
        assert control.tol == 1e-8
        assert control.max_iter == 25

    def test_control_object_used(self, poisson_data):
        X, y = poisson_data
        with pytest.warns(RuntimeWarning):
            result = fit(X, y, control=GLMControl(max_iter=1), max_iter=50)
        assert result.n_iter == 1
        assert result.info['max_iter'] == 1


# =====================================================================
# Non-convergence and numerical failures
# =====================================================================

class TestNumericalConditions:

    def test_iteration_cap_flags_result(self, poisson_data):
        X, y = poisson_data
        with pytest.warns(RuntimeWarning, match="did not converge"):
            result = fit(X, y, max_iter=1)
        assert not result.converged
        assert result.n_iter == 1
        assert any("did not converge" in w for w in result.warnings)
        assert np.all(np.isfinite(result.coefficients))

    def test_underflowing_means_are_singular(self, poisson_data):
        X, y = poisson_data
        with pytest.raises(SingularMatrixError) as exc_info:
            fit(X, y, start=[-800.0, 0.0])
        assert exc_info.value.iteration == 0

    def test_partial_underflow_is_singular(self):
        """One observation driven to μ = 0 zeroes its weight."""
        X = np.column_stack([np.ones(5), [0.0, 1.0, 2.0, 3.0, 1000.0]])
        y = np.array([1.0, 2.0, 1.0, 3.0, 0.0])
        with pytest.raises(SingularMatrixError):
            fit(X, y, start=[0.0, -1.0])

    def test_overflow_raises(self, poisson_data):
        X, y = poisson_data
        with pytest.raises(NumericalOverflowError):
            fit(X, y, start=[800.0, 0.0])

    def test_no_warning_when_converged(self, poisson_data):
        X, y = poisson_data
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            fit(X, y)


# =====================================================================
# GLMSolution interface
# =====================================================================

class TestGLMSolution:

    @pytest.fixture
    def result(self, poisson_data):
        X, y = poisson_data
        return fit(X, y, names=['(Intercept)', 'x'])

    def test_dimensions(self, result):
        assert result.n == 100
        assert result.p == 2
        assert result.rank == 2
        assert result.df_residual == 98

    def test_fitted_values_match_linear_predictor(self, result):
        np.testing.assert_allclose(
            result.fitted_values, np.exp(result.linear_predictor), rtol=1e-12
        )

    def test_linear_predictor(self, result):
        np.testing.assert_allclose(
            result.linear_predictor, result.design.X @ result.coefficients, rtol=1e-12
        )

    def test_deviance(self, result):
        assert result.deviance >= 0
        assert result.null_deviance >= result.deviance

    def test_deviance_residuals_square_to_deviance(self, result):
        assert np.sum(result.residuals_deviance ** 2) == pytest.approx(result.deviance, rel=1e-10)

    def test_response_residuals(self, result):
        np.testing.assert_allclose(
            result.residuals_response, result.design.y - result.fitted_values
        )

    def test_pearson_residuals(self, result):
        mu = result.fitted_values
        np.testing.assert_allclose(
            result.residuals_pearson, (result.design.y - mu) / np.sqrt(mu)
        )

    def test_standard_errors_match_fisher_information(self, result):
        X, mu = result.design.X, result.fitted_values
        expected = np.sqrt(np.diag(np.linalg.inv(X.T @ (X * mu[:, None]))))
        np.testing.assert_allclose(result.standard_errors, expected, rtol=FINITE_DIFFERENCE.rtol)

    def test_z_and_p_values(self, result):
        z = result.z_statistics
        np.testing.assert_allclose(z, result.coefficients / result.standard_errors)
        np.testing.assert_allclose(
            result.p_values, 2.0 * sp_stats.norm.sf(np.abs(z)), rtol=1e-8
        )
        assert result.p_values[1] < 1e-3

    def test_predict_defaults_to_fitted(self, result):
        np.testing.assert_allclose(result.predict(), result.fitted_values, rtol=1e-12)

    def test_predict_link(self, result):
        np.testing.assert_allclose(
            result.predict(type='link'), result.linear_predictor, rtol=1e-12
        )

    def test_predict_new_data(self, result):
        new = np.array([[1.0, 0.0], [1.0, 1.0]])
        expected = np.exp(new @ result.coefficients)
        np.testing.assert_allclose(result.predict(new), expected, rtol=1e-12)
        np.testing.assert_allclose(result.predict([1.0, 0.5]), np.exp([1.0, 0.5] @ result.coefficients))

    def test_predict_wrong_columns(self, result):
        with pytest.raises(DimensionError):
            result.predict(np.ones((3, 3)))

    def test_predict_unknown_type(self, result):
        with pytest.raises(ValueError):
            result.predict(type='terms')

    def test_timing(self, result):
        assert 'total_seconds' in result.timing
        assert 'irls' in result.timing

    def test_info(self, result):
        assert result.info['method'] == 'irls_qr'
        assert result.backend_name == 'cpu_irls'

    def test_summary(self, result):
        text = result.summary()
        assert "Generalized Linear Model (poisson, link=log)" in text
        assert "(Intercept)" in text
        assert "Residual deviance" in text
        assert "converged" in text

    def test_repr(self, result):
        assert repr(result).startswith("GLMSolution(family='poisson', n=100, p=2, converged=True")
