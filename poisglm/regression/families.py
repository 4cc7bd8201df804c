"""
GLM family and link function specifications.

Each Family defines:
- A variance function V(μ) relating variance to the mean
- A default link function g(μ) mapping the mean to the linear predictor
- A log probability mass function for the log-likelihood and AIC
- A deviance function for assessing model fit
- The IRLS working weight and working response
- An initialization function for IRLS starting values

Each Link defines:
- g(μ) → η  (link)
- g⁻¹(η) → μ  (inverse link)
- dμ/dη  (derivative of inverse link, for IRLS weights)

The Family base class derives the generic exponential-family IRLS
quantities from the link and variance function, so the fitter never
needs to know which family it is running:

    w = (dμ/dη)² / V(μ)
    z = η + (y - μ) / (dμ/dη)

Concrete families override these with closed forms where they simplify.

References:
    McCullagh, P., & Nelder, J. A. (1989). Generalized Linear Models (2nd ed.)
    R Core Team. stats::family, stats::make.link
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any
import numpy as np
from numpy.typing import ArrayLike, NDArray
from scipy.special import gammaln

from poisglm.core.exceptions import NumericalOverflowError, ValidationError
from poisglm.core.compute.tolerances import EXP_OVERFLOW_BOUND


def _as_float_array(value: ArrayLike) -> NDArray[np.floating[Any]]:
    return np.asarray(value, dtype=np.float64)


def _match_input(result: NDArray, *inputs: ArrayLike) -> NDArray | float:
    """Return a Python float when every input was a scalar."""
    if all(np.ndim(v) == 0 for v in inputs):
        return float(result)
    return result


# =====================================================================
# Link functions
# =====================================================================

class Link(ABC):
    """Abstract link function g(μ) mapping mean to linear predictor."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def link(self, mu: NDArray) -> NDArray:
        """g(μ) → η."""
        ...

    @abstractmethod
    def linkinv(self, eta: NDArray) -> NDArray:
        """g⁻¹(η) → μ."""
        ...

    @abstractmethod
    def mu_eta(self, eta: NDArray) -> NDArray:
        """dμ/dη = (g⁻¹)'(η)."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class LogLink(Link):
    """Log link: g(μ) = log(μ). Default for Poisson family.

    The inverse link refuses to exponentiate η above EXP_OVERFLOW_BOUND
    rather than letting inf propagate into the likelihood.
    """

    def __init__(self, bound: float = EXP_OVERFLOW_BOUND):
        self._bound = bound

    @property
    def name(self) -> str:
        return 'log'

    @property
    def bound(self) -> float:
        return self._bound

    def link(self, mu: NDArray) -> NDArray:
        return np.log(mu)

    def linkinv(self, eta: NDArray) -> NDArray:
        eta = _as_float_array(eta)
        too_large = eta > self._bound
        if np.any(too_large):
            max_eta = float(np.max(eta[too_large]))
            raise NumericalOverflowError(
                f"Linear predictor too large for exp(): max eta={max_eta:.6g} "
                f"exceeds bound {self._bound} ({int(np.sum(too_large))} values)",
                max_value=max_eta,
                bound=self._bound,
            )
        return np.exp(eta)

    def mu_eta(self, eta: NDArray) -> NDArray:
        return self.linkinv(eta)


_LINK_CLASSES: dict[str, type[Link]] = {
    'log': LogLink,
}


def _resolve_link(link: str | Link | None, default: Link) -> Link:
    """Resolve a link argument to a Link instance."""
    if link is None:
        return default
    if isinstance(link, Link):
        return link
    if isinstance(link, str):
        cls = _LINK_CLASSES.get(link.lower())
        if cls is None:
            valid = ', '.join(sorted(_LINK_CLASSES.keys()))
            raise ValueError(f"Unknown link: {link!r}. Valid links: {valid}")
        return cls()
    raise TypeError(f"link must be str or Link, got {type(link).__name__}")


# =====================================================================
# Family base class
# =====================================================================

class Family(ABC):
    """
    GLM family specification.

    Defines the relationship between the mean and variance of the
    response distribution, along with a link function.
    """

    def __init__(self, link: str | Link | None = None):
        self._link = _resolve_link(link, self._default_link())

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def _default_link(self) -> Link:
        ...

    @property
    def link(self) -> Link:
        return self._link

    @abstractmethod
    def variance(self, mu: ArrayLike) -> NDArray | float:
        """Variance function V(μ)."""
        ...

    @abstractmethod
    def log_pmf(self, y: ArrayLike, mu: ArrayLike) -> NDArray | float:
        """Log probability of y under mean μ, elementwise."""
        ...

    @abstractmethod
    def unit_deviance(self, y: NDArray, mu: NDArray) -> NDArray:
        """Per-observation deviance contributions d(y_i, μ_i)."""
        ...

    def deviance(self, y: ArrayLike, mu: ArrayLike) -> float:
        """Compute total deviance: Σ d(y_i, μ_i).

        The deviance is twice the difference between the saturated
        log-likelihood and the model log-likelihood.
        """
        return float(np.sum(self.unit_deviance(_as_float_array(y), _as_float_array(mu))))

    @abstractmethod
    def initialize(self, y: NDArray) -> NDArray:
        """Initialize μ from y for IRLS starting values.

        Must return values in the valid range for the link function.
        """
        ...

    def mean(self, eta: ArrayLike) -> NDArray | float:
        """Mean response μ = g⁻¹(η)."""
        return _match_input(self._link.linkinv(_as_float_array(eta)), eta)

    def log_likelihood(self, y: ArrayLike, mu: ArrayLike) -> float:
        """Σ log p(y_i | μ_i)."""
        return float(np.sum(self.log_pmf(y, mu)))

    def working_weight(self, mu: ArrayLike) -> NDArray | float:
        """Fisher-information weight w = (dμ/dη)² / V(μ)."""
        mu_arr = _as_float_array(mu)
        mu_eta = self._link.mu_eta(self._link.link(mu_arr))
        return _match_input(mu_eta ** 2 / self.variance(mu_arr), mu)

    def working_response(
        self, y: ArrayLike, mu: ArrayLike, eta: ArrayLike
    ) -> NDArray | float:
        """Linearized pseudo-response z = η + (y - μ) / (dμ/dη)."""
        eta_arr = _as_float_array(eta)
        z = eta_arr + (_as_float_array(y) - _as_float_array(mu)) / self._link.mu_eta(eta_arr)
        return _match_input(z, y, mu, eta)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(link={self._link.name!r})"


# =====================================================================
# Concrete families
# =====================================================================

class Poisson(Family):
    """Poisson family. Default link: log.

    V(μ) = μ
    log p(y | μ) = y log μ - μ - log Γ(y + 1)
    Deviance = 2 * Σ [y_i log(y_i/μ_i) - (y_i - μ_i)]

    With the canonical log link dμ/dη = μ, so the IRLS quantities
    reduce to w = μ and z = η + (y - μ)/μ.
    """

    @property
    def name(self) -> str:
        return 'poisson'

    def _default_link(self) -> Link:
        return LogLink()

    def variance(self, mu: ArrayLike) -> NDArray | float:
        return _match_input(_as_float_array(mu).copy(), mu)

    def initialize(self, y: NDArray) -> NDArray:
        # R: mustart <- y + 0.1
        return _as_float_array(y) + 0.1

    def log_pmf(self, y: ArrayLike, mu: ArrayLike) -> NDArray | float:
        y_arr = _as_float_array(y)
        mu_arr = _as_float_array(mu)
        if np.any(y_arr < 0) or np.any(np.isnan(y_arr)):
            raise ValidationError(
                f"y: Poisson counts must be >= 0, got min={float(np.min(y_arr))}"
            )
        if not np.all(mu_arr > 0):
            raise ValidationError(
                f"mu: Poisson mean must be > 0, got min={float(np.min(mu_arr))}"
            )
        # y * log(mu) with y = 0 is 0 even when log(mu) is very negative
        lp = y_arr * np.log(mu_arr) - mu_arr - gammaln(y_arr + 1.0)
        return _match_input(lp, y, mu)

    def unit_deviance(self, y: NDArray, mu: NDArray) -> NDArray:
        # 2 * [y*log(y/mu) - (y - mu)] with 0*log(0) = 0. np.where evaluates
        # both branches, so suppress warnings from the unused one.
        with np.errstate(divide='ignore', invalid='ignore'):
            term = np.where(y > 0, y * np.log(y / mu), 0.0)
        return 2.0 * (term - (y - mu))

    def working_weight(self, mu: ArrayLike) -> NDArray | float:
        return _match_input(_as_float_array(mu).copy(), mu)

    def working_response(
        self, y: ArrayLike, mu: ArrayLike, eta: ArrayLike
    ) -> NDArray | float:
        y_arr = _as_float_array(y)
        mu_arr = _as_float_array(mu)
        z = _as_float_array(eta) + (y_arr - mu_arr) / mu_arr
        return _match_input(z, y, mu, eta)


# =====================================================================
# Family name → class mapping + resolver
# =====================================================================

_FAMILY_CLASSES: dict[str, type[Family]] = {
    'poisson': Poisson,
}


def resolve_family(family: str | Family) -> Family:
    """Resolve a family argument to a Family instance.

    Args:
        family: Either a string name ('poisson') or a Family instance
                (passed through).

    Returns:
        Family instance.

    Raises:
        ValueError: If string name is not recognized.
        TypeError: If argument is neither string nor Family.
    """
    if isinstance(family, Family):
        return family
    if isinstance(family, str):
        cls = _FAMILY_CLASSES.get(family.lower())
        if cls is None:
            valid = ', '.join(sorted(_FAMILY_CLASSES.keys()))
            raise ValueError(
                f"Unknown family: {family!r}. Valid families: {valid}"
            )
        return cls()
    raise TypeError(f"family must be str or Family, got {type(family).__name__}")
