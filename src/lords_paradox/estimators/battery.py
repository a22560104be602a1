"""
Estimator Battery.

Fits the fixed set of competing models to one simulated dataset and
extracts the exposure coefficient from each:

    mod1: weight_change ~ sex                       (change score)
    mod2: follow_up_weight ~ sex + baseline_weight  (baseline adjusted)
    mod3: g-formula, baseline fixed, activity as post-exposure confounder
    mod4: weight_change ~ sex + baseline_weight     (adjusted change score)
    mod5: follow_up_weight ~ sex                    (follow-up only)

The exposure coefficient is the Male vs. Female contrast.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

import numpy as np
import pandas as pd
import statsmodels.formula.api as smf

from ..config import SCENARIO_CONFIGS, Scenario, ScenarioConfig
from ..dgp.sampler import SimulatedDataset
from ..exceptions import EstimationError
from .gformula import estimate_controlled_direct_effect

logger = logging.getLogger(__name__)


class EstimatorKind(str, Enum):
    """Estimation method of a model in the battery."""

    OLS = "ols"
    GFORMULA = "gformula"


@dataclass(frozen=True)
class ModelSpec:
    """A named estimator in the battery."""

    name: str
    kind: EstimatorKind
    description: str
    formula: Optional[str] = None

    def is_applicable(self, config: ScenarioConfig) -> bool:
        """g-formula needs a post-exposure confounder, so only some scenarios qualify."""
        if self.kind is EstimatorKind.GFORMULA:
            return config.gformula is not None
        return True


MODEL_SPECS: List[ModelSpec] = [
    ModelSpec(
        name="mod1",
        kind=EstimatorKind.OLS,
        description="Analysis of change-score",
        formula="weight_change ~ sex",
    ),
    ModelSpec(
        name="mod2",
        kind=EstimatorKind.OLS,
        description="Analysis of follow-up adjusted for baseline",
        formula="follow_up_weight ~ sex + baseline_weight",
    ),
    ModelSpec(
        name="mod3",
        kind=EstimatorKind.GFORMULA,
        description="g-computation with baseline fixed",
    ),
    ModelSpec(
        name="mod4",
        kind=EstimatorKind.OLS,
        description="Analysis of change-score adjusted for baseline",
        formula="weight_change ~ sex + baseline_weight",
    ),
    ModelSpec(
        name="mod5",
        kind=EstimatorKind.OLS,
        description="Analysis of follow-up without adjustment",
        formula="follow_up_weight ~ sex",
    ),
]


class EstimatorBattery:
    """
    Fits every applicable model to a dataset.

    Usage:
        battery = EstimatorBattery()
        estimates = battery.fit_all(dataset, Scenario.NO_MO_CONFOUNDING)
        # {"mod1": 0.12, "mod2": 4.9, "mod4": 4.9, "mod5": 10.1}

    A model that fails yields NaN for that entry only.
    """

    def __init__(
        self,
        specs: Optional[List[ModelSpec]] = None,
        scenario_configs: Optional[Dict[Scenario, ScenarioConfig]] = None,
    ):
        self.specs = specs if specs is not None else list(MODEL_SPECS)
        self.scenario_configs = scenario_configs or SCENARIO_CONFIGS

    def specs_for(self, scenario: Scenario) -> List[ModelSpec]:
        """Models applicable to a scenario, in battery order."""
        config = self.scenario_configs[Scenario(scenario)]
        return [spec for spec in self.specs if spec.is_applicable(config)]

    def model_names(self, scenario: Scenario) -> List[str]:
        return [spec.name for spec in self.specs_for(scenario)]

    def fit_all(self, dataset: SimulatedDataset, scenario: Scenario) -> Dict[str, float]:
        """
        Fit all applicable models.

        Args:
            dataset: One simulated dataset
            scenario: Scenario the dataset belongs to

        Returns:
            Mapping of model name to exposure effect (NaN where the fit failed)
        """
        estimates: Dict[str, float] = {}
        for spec in self.specs_for(scenario):
            try:
                estimates[spec.name] = self.fit_one(spec, dataset, scenario)
            except EstimationError as e:
                logger.warning(f"{Scenario(scenario).short_code}{spec.name} failed: {e.message}")
                estimates[spec.name] = float("nan")
        return estimates

    def fit_one(self, spec: ModelSpec, dataset: SimulatedDataset, scenario: Scenario) -> float:
        """
        Fit a single model.

        Raises:
            EstimationError: If the dataset has a single exposure level, the
                design is rank deficient, fitting fails or the estimate is
                not finite
        """
        config = self.scenario_configs[Scenario(scenario)]
        n_levels = dataset.data[config.exposure].nunique()
        if n_levels < 2:
            raise EstimationError(
                f"{spec.name} needs both exposure levels, found {n_levels}",
                model=spec.name,
                details={"n": dataset.n},
            )

        try:
            if spec.kind is EstimatorKind.GFORMULA:
                estimate = estimate_controlled_direct_effect(dataset.data, config.gformula)
            else:
                estimate = self._fit_ols(spec, dataset.data, config)
        except EstimationError:
            raise
        except Exception as e:
            raise EstimationError(
                f"Fitting {spec.name} failed: {e}",
                model=spec.name,
                original_error=e,
            ) from e

        if not np.isfinite(estimate):
            raise EstimationError(f"{spec.name} produced a non-finite estimate", model=spec.name)
        return float(estimate)

    def _fit_ols(self, spec: ModelSpec, data: pd.DataFrame, config: ScenarioConfig) -> float:
        """OLS fit; returns the coefficient of the exposure contrast term."""
        result = smf.ols(spec.formula, data=data).fit()
        if result.model.rank < result.model.exog.shape[1]:
            raise EstimationError(
                f"{spec.name} design matrix is rank deficient",
                model=spec.name,
                details={"rank": int(result.model.rank), "columns": result.model.exog.shape[1]},
            )
        terms = [name for name in result.params.index if name.startswith(f"{config.exposure}[")]
        if len(terms) != 1:
            raise EstimationError(
                f"Expected one exposure term in {spec.name}, found {terms}",
                model=spec.name,
                details={"params": list(result.params.index)},
            )
        return float(result.params[terms[0]])
