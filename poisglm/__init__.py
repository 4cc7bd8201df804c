"""
poisglm: Poisson regression and likelihood-based model selection.

Maximum-likelihood fitting of Poisson log-link GLMs by IRLS, with AIC/BIC
and likelihood ratio tests for nested models.

Submodules:
    regression: Design matrices, families, IRLS fitting
    selection: Log-likelihood, information criteria, likelihood ratio tests
"""

__version__ = "0.1.0"

from poisglm import regression
from poisglm import selection

__all__ = [
    "__version__",
    "regression",
    "selection",
]
