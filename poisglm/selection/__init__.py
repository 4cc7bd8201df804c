"""
Model selection for fitted GLMs.

Public API:
    log_likelihood(model)     - maximized log-likelihood, recomputed
    aic(model)                - Akaike information criterion
    bic(model)                - Bayesian information criterion
    lr_test(reduced, full)    - likelihood ratio test for nested models
    anova(*models)            - sequential likelihood ratio tests
"""

from poisglm.selection.solvers import log_likelihood, aic, bic, lr_test, anova
from poisglm.selection._common import LRTParams
from poisglm.selection.solution import LRTSolution

__all__ = [
    "log_likelihood",
    "aic",
    "bic",
    "lr_test",
    "anova",
    "LRTParams",
    "LRTSolution",
]
