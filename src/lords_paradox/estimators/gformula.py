"""
g-formula Estimator.

Estimates the effect of the exposure on the outcome with the mediator
fixed at a given value, accounting for post-exposure confounders of the
mediator-outcome relationship.

Steps (all regressions linear, no exposure-mediator interaction):
1. Fit each post-exposure confounder on the exposure
2. Fit the outcome on exposure, mediator and confounders
3. For each exposure level, set every unit's exposure to that level,
   predict the confounders, fix the mediator, predict the outcome and
   average over units
4. Contrast the active and reference levels
"""

import logging
from typing import Dict

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf

from ..config import GFormulaSpec
from ..exceptions import EstimationError

logger = logging.getLogger(__name__)


def _counterfactual_mean(
    data: pd.DataFrame,
    spec: GFormulaSpec,
    level: str,
    confounder_fits: Dict[str, object],
    outcome_fit,
) -> float:
    """Mean predicted outcome with exposure set to ``level``."""
    counterfactual = data.copy()
    counterfactual[spec.exposure] = pd.Categorical(
        [level] * len(data),
        categories=data[spec.exposure].cat.categories,
    )
    for confounder in spec.post_exposure_confounders:
        counterfactual[confounder] = np.asarray(confounder_fits[confounder].predict(counterfactual))
    counterfactual[spec.mediator] = spec.mediator_value
    return float(np.mean(outcome_fit.predict(counterfactual)))


def estimate_controlled_direct_effect(data: pd.DataFrame, spec: GFormulaSpec) -> float:
    """
    g-formula estimate of the exposure effect with the mediator held fixed.

    Args:
        data: Reporting-unit table with a categorical exposure column
        spec: g-formula settings (mediator, fixing value, confounders, levels)

    Returns:
        E[Y(active, m)] - E[Y(reference, m)]

    Raises:
        EstimationError: If the outcome model is rank deficient
    """
    confounder_fits = {
        confounder: smf.ols(f"{confounder} ~ {spec.exposure}", data=data).fit()
        for confounder in spec.post_exposure_confounders
    }

    regressors = [spec.exposure, spec.mediator, *spec.post_exposure_confounders]
    outcome_fit = smf.ols(f"{spec.outcome} ~ {' + '.join(regressors)}", data=data).fit()
    if outcome_fit.model.rank < outcome_fit.model.exog.shape[1]:
        raise EstimationError("g-formula outcome model is rank deficient")

    active = _counterfactual_mean(data, spec, spec.active_level, confounder_fits, outcome_fit)
    reference = _counterfactual_mean(data, spec, spec.reference_level, confounder_fits, outcome_fit)
    return active - reference
