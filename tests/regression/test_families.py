"""
Family / link function tests.

Tests the Poisson log-link exponential-family machinery: inverse link and
overflow guard, log pmf, working weights and responses, deviance.
"""

import numpy as np
import pytest
from scipy import stats as sp_stats

from poisglm.core.exceptions import NumericalOverflowError, ValidationError
from poisglm.core.compute.tolerances import EXP_OVERFLOW_BOUND, EXACT
from poisglm.regression.families import Family, LogLink, Poisson, resolve_family


# =====================================================================
# Link
# =====================================================================

class TestLogLink:

    def test_roundtrip(self):
        link = LogLink()
        mu = np.linspace(0.01, 10, 50)
        np.testing.assert_allclose(link.linkinv(link.link(mu)), mu, rtol=1e-12)

    def test_mu_eta_matches_finite_difference(self):
        link = LogLink()
        eta = np.linspace(-5, 5, 50)
        h = 1e-7
        numeric = (link.linkinv(eta + h) - link.linkinv(eta - h)) / (2 * h)
        np.testing.assert_allclose(link.mu_eta(eta), numeric, rtol=1e-5)

    def test_overflow_raises(self):
        link = LogLink()
        with pytest.raises(NumericalOverflowError) as exc_info:
            link.linkinv(np.array([0.0, 701.0, 900.0]))
        assert exc_info.value.max_value == 900.0
        assert exc_info.value.bound == EXP_OVERFLOW_BOUND

    def test_at_bound_is_finite(self):
        assert np.isfinite(LogLink().linkinv(np.array([EXP_OVERFLOW_BOUND])))[0]

    def test_extreme_negative_eta_underflows_to_zero(self):
        mu = LogLink().linkinv(np.array([-800.0, -5.0]))
        assert mu[0] == 0.0
        assert mu[1] > 0.0

    def test_custom_bound(self):
        with pytest.raises(NumericalOverflowError):
            LogLink(bound=10.0).linkinv(np.array([11.0]))


# =====================================================================
# Poisson family
# =====================================================================

class TestPoissonMean:

    def test_mean_is_exp(self):
        eta = np.array([-2.0, 0.0, 1.5])
        np.testing.assert_allclose(Poisson().mean(eta), np.exp(eta), rtol=1e-15)

    def test_scalar_in_scalar_out(self):
        value = Poisson().mean(0.0)
        assert isinstance(value, float)
        assert value == 1.0

    def test_overflow(self):
        with pytest.raises(NumericalOverflowError):
            Poisson().mean(750.0)


class TestPoissonLogPmf:

    def test_matches_scipy(self):
        y = np.array([0, 1, 2, 5, 10, 37], dtype=float)
        mu = np.array([0.3, 1.0, 2.5, 4.0, 12.0, 30.0])
        expected = sp_stats.poisson.logpmf(y, mu)
        np.testing.assert_allclose(Poisson().log_pmf(y, mu), expected, rtol=EXACT.rtol)

    def test_zero_count(self):
        assert Poisson().log_pmf(0, 2.5) == pytest.approx(-2.5, rel=1e-15)

    def test_large_count_no_factorial_overflow(self):
        value = Poisson().log_pmf(5000, 4900.0)
        assert np.isfinite(value)
        assert value == pytest.approx(sp_stats.poisson.logpmf(5000, 4900.0), rel=EXACT.rtol)

    def test_tiny_mean_with_zero_count(self):
        assert Poisson().log_pmf(0, 1e-300) == pytest.approx(-1e-300, abs=1e-310)

    @pytest.mark.parametrize("y,mu", [(-1, 1.0), (2, 0.0), (2, -1.0), (1, np.nan)])
    def test_invalid_arguments(self, y, mu):
        with pytest.raises(ValidationError):
            Poisson().log_pmf(y, mu)

    def test_log_likelihood_is_sum(self):
        y = np.array([0.0, 3.0, 7.0])
        mu = np.array([0.5, 2.0, 6.0])
        fam = Poisson()
        assert fam.log_likelihood(y, mu) == pytest.approx(float(np.sum(fam.log_pmf(y, mu))))


class TestPoissonIRLSQuantities:

    def test_working_weight_is_mu(self):
        mu = np.array([0.2, 1.0, 9.0])
        np.testing.assert_array_equal(Poisson().working_weight(mu), mu)
        assert Poisson().working_weight(3.0) == 3.0

    def test_working_response(self):
        y = np.array([0.0, 4.0])
        mu = np.array([2.0, 3.0])
        eta = np.log(mu)
        expected = eta + (y - mu) / mu
        np.testing.assert_allclose(Poisson().working_response(y, mu, eta), expected)

    def test_working_response_scalar(self):
        value = Poisson().working_response(4, 2.0, np.log(2.0))
        assert isinstance(value, float)
        assert value == pytest.approx(np.log(2.0) + 1.0)

    def test_closed_forms_match_generic_exponential_family(self):
        """Poisson overrides agree with the base-class (dμ/dη)²/V(μ) forms."""
        fam = Poisson()
        mu = np.array([0.05, 1.0, 4.0, 30.0])
        eta = np.log(mu)
        y = np.array([0.0, 2.0, 3.0, 41.0])
        np.testing.assert_allclose(
            Family.working_weight(fam, mu), fam.working_weight(mu), rtol=1e-12
        )
        np.testing.assert_allclose(
            Family.working_response(fam, y, mu, eta),
            fam.working_response(y, mu, eta),
            rtol=1e-12,
        )

    def test_variance_is_mu(self):
        mu = np.array([1.0, 2.0, 5.0])
        np.testing.assert_allclose(Poisson().variance(mu), mu)

    def test_initialize(self):
        y = np.array([0.0, 1.0, 5.0])
        np.testing.assert_allclose(Poisson().initialize(y), y + 0.1)


class TestPoissonDeviance:

    def test_perfect_fit(self):
        y = np.array([1.0, 2.0, 5.0])
        assert Poisson().deviance(y, y.copy()) < 1e-14

    def test_zero_counts(self):
        """Unit deviance at y = 0 is 2μ."""
        y = np.array([0.0, 0.0])
        mu = np.array([0.5, 2.0])
        np.testing.assert_allclose(Poisson().unit_deviance(y, mu), 2.0 * mu)

    def test_nonnegative(self, rng):
        y = rng.poisson(3.0, 50).astype(float)
        mu = rng.uniform(0.5, 6.0, 50)
        assert np.all(Poisson().unit_deviance(y, mu) >= -1e-12)

    def test_deviance_is_likelihood_gap(self):
        """D = 2 (ℓ_saturated - ℓ_model) for strictly positive counts."""
        fam = Poisson()
        y = np.array([1.0, 4.0, 2.0, 9.0])
        mu = np.array([2.0, 3.0, 2.5, 7.0])
        expected = 2.0 * (fam.log_likelihood(y, y) - fam.log_likelihood(y, mu))
        assert fam.deviance(y, mu) == pytest.approx(expected, rel=1e-12)


# =====================================================================
# Resolver
# =====================================================================

class TestFamilyResolver:

    def test_resolve_string(self):
        assert isinstance(resolve_family('poisson'), Poisson)

    def test_resolve_case_insensitive(self):
        assert isinstance(resolve_family('Poisson'), Poisson)

    def test_resolve_passthrough(self):
        fam = Poisson()
        assert resolve_family(fam) is fam

    def test_resolve_unknown_raises(self):
        with pytest.raises(ValueError, match="Unknown family"):
            resolve_family('binomial')

    def test_resolve_wrong_type_raises(self):
        with pytest.raises(TypeError):
            resolve_family(42)

    def test_link_by_name(self):
        assert isinstance(Poisson(link='log').link, LogLink)

    def test_unknown_link(self):
        with pytest.raises(ValueError, match="Unknown link"):
            Poisson(link='identity')

    def test_repr(self):
        assert repr(Poisson()) == "Poisson(link='log')"
