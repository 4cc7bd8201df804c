"""
Information criteria and likelihood ratio tests for fitted GLMs.

Everything here is recomputed from a model's coefficients and its Design;
nothing is read back from the fitter, so these functions can be checked
independently of IRLS.
"""

import numpy as np

from poisglm.core.exceptions import ValidationError
from poisglm.core.result import Result
from poisglm.core.compute.timing import timed
from poisglm.core.compute.special import chisq_upper_tail
from poisglm.core.compute.tolerances import (
    NEGATIVE_STATISTIC_MAX_SLACK,
    NEGATIVE_STATISTIC_TOL,
)
from poisglm.regression.solution import GLMSolution
from poisglm.selection._common import LRTParams
from poisglm.selection.solution import LRTSolution


def log_likelihood(model: GLMSolution) -> float:
    """
    Maximized log-likelihood Σ log p(y_i | μ_i) at the fitted coefficients.

    μ is recomputed as g⁻¹(Xβ) rather than taken from the fit.
    """
    _check_model(model, 'model')
    design = model.design
    mu = model.family.mean(design.X @ model.coefficients)
    return model.family.log_likelihood(design.y, mu)


def aic(model: GLMSolution) -> float:
    """Akaike information criterion, 2p - 2ℓ."""
    return 2.0 * model.p - 2.0 * log_likelihood(model)


def bic(model: GLMSolution) -> float:
    """Bayesian information criterion, p log(n) - 2ℓ."""
    return model.p * float(np.log(model.n)) - 2.0 * log_likelihood(model)


def lr_test(reduced: GLMSolution, full: GLMSolution) -> LRTSolution:
    """
    Likelihood ratio test of a reduced model against a full model.

    The caller guarantees nesting: the reduced model's columns span a
    subspace of the full model's columns. This function checks what it
    can without inferring nesting: both models were fit to the same
    response, and the reduced model has fewer coefficients.

    Args:
        reduced: Fitted model under H0
        full: Fitted model under H1

    Returns:
        LRTSolution with statistic = -2 (ℓ_reduced - ℓ_full),
        df = p_full - p_reduced and the chi-squared upper-tail p-value.
        A statistic that is negative by no more than the round-off slack
        (1e-8 * max(1, |ℓ_full|), at most 1e-6) is reported as 0.

    Raises:
        ValidationError: If the models use different responses, are
            misordered (reduced.p >= full.p), or the statistic is
            negative beyond round-off (not nested, or not converged).
    """
    _check_model(reduced, 'reduced')
    _check_model(full, 'full')

    if reduced.n != full.n:
        raise ValidationError(
            f"Models were fit to different numbers of observations: "
            f"reduced n={reduced.n}, full n={full.n}"
        )
    if reduced.design is not full.design and not np.array_equal(
        reduced.design.y, full.design.y
    ):
        raise ValidationError("Models were fit to different response vectors")
    if reduced.p >= full.p:
        raise ValidationError(
            f"reduced model must have fewer coefficients than full model: "
            f"reduced p={reduced.p}, full p={full.p}"
        )

    warnings_list: list[str] = []
    for label, model in (('reduced', reduced), ('full', full)):
        if not model.converged:
            warnings_list.append(
                f"{label} model did not converge ({model.n_iter} iterations); "
                f"the test statistic may be unreliable"
            )

    with timed() as timer:
        ll_reduced = log_likelihood(reduced)
        ll_full = log_likelihood(full)
        statistic = _lr_statistic(ll_reduced, ll_full)

        df = full.p - reduced.p
        p_value = chisq_upper_tail(statistic, df)

    params = LRTParams(
        statistic=statistic,
        df=df,
        p_value=p_value,
        loglik_reduced=ll_reduced,
        loglik_full=ll_full,
        p_reduced=reduced.p,
        p_full=full.p,
    )
    return LRTSolution(_result=Result(
        params=params,
        info={'method': 'lrt', 'distribution': 'chisq'},
        timing=timer.result(),
        backend_name='cpu',
        warnings=tuple(warnings_list),
    ))


def anova(*models: GLMSolution) -> tuple[LRTSolution, ...]:
    """
    Sequential likelihood ratio tests.

    Models must be given in order of increasing complexity, each nested
    in the next; test i compares models[i] against models[i + 1].

    Raises:
        ValidationError: If fewer than two models are given, or any
            consecutive pair fails lr_test()'s checks
    """
    if len(models) < 2:
        raise ValidationError(f"anova requires at least 2 models, got {len(models)}")
    return tuple(lr_test(models[i], models[i + 1]) for i in range(len(models) - 1))


def _lr_statistic(ll_reduced: float, ll_full: float) -> float:
    """
    -2 (ℓ_reduced - ℓ_full), with round-off below zero reported as 0.

    The round-off slack is NEGATIVE_STATISTIC_TOL * max(1, |ℓ_full|),
    capped at NEGATIVE_STATISTIC_MAX_SLACK so that it does not grow with
    the sample size. Anything more negative raises.

    Raises:
        ValidationError: If the statistic is below -slack
    """
    statistic = -2.0 * (ll_reduced - ll_full)
    slack = min(
        NEGATIVE_STATISTIC_TOL * max(1.0, abs(ll_full)),
        NEGATIVE_STATISTIC_MAX_SLACK,
    )
    if statistic < -slack:
        raise ValidationError(
            f"Negative likelihood ratio statistic {statistic:.6g} "
            f"(round-off slack {slack:.3g}): "
            f"loglik(reduced)={ll_reduced:.6f} > loglik(full)={ll_full:.6f}. "
            f"The models are not nested or a fit did not converge."
        )
    return max(statistic, 0.0)


def _check_model(model: object, name: str) -> None:
    if not isinstance(model, GLMSolution):
        raise ValidationError(
            f"{name}: expected a fitted GLMSolution, got {type(model).__name__}"
        )
