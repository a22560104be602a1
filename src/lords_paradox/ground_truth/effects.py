"""
Ground Truth Estimator Targets

Computes, from the calibrated covariance structure, the population value
each estimator in the battery converges to. Values are in reporting units
for the Male vs. Female contrast, so they are directly comparable with
simulated medians.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from ..config import Scenario, ScenarioConfig
from ..dgp.calibration import CalibrationResult
from ..dgp.sampler import DatasetSampler
from ..estimators.battery import MODEL_SPECS, EstimatorKind, ModelSpec


@dataclass
class GroundTruthEffect:
    """Population target of one estimator in one scenario."""

    scenario: Scenario
    model: str
    value: float
    description: str = ""

    @property
    def model_id(self) -> str:
        return f"{self.scenario.short_code}{self.model}"

    def get_error(self, estimate: float) -> float:
        """Absolute error between an estimate and the population value."""
        return abs(estimate - self.value)

    def to_dict(self) -> Dict:
        return {
            "scenario": self.scenario.value,
            "model": self.model_id,
            "value": self.value,
            "description": self.description,
        }


def extended_covariance(config: ScenarioConfig, calibration: CalibrationResult) -> Dict[str, Dict[str, float]]:
    """Covariances of all structural and derived columns (standardized units)."""
    columns = config.column_names
    variables = calibration.variables
    loadings = np.zeros((len(columns), len(variables)))
    for i, column in enumerate(columns):
        if column in config.derived:
            for source, weight in config.derived[column].items():
                loadings[i, variables.index(source)] = weight
        else:
            loadings[i, variables.index(column)] = 1.0
    cov = loadings @ calibration.covariance @ loadings.T
    return {a: {b: float(cov[i, j]) for j, b in enumerate(columns)} for i, a in enumerate(columns)}


def population_coefficients(
    cov: Dict[str, Dict[str, float]],
    outcome: str,
    regressors: List[str],
) -> np.ndarray:
    """Population OLS slopes of ``outcome`` on ``regressors`` (all mean zero)."""
    sxx = np.array([[cov[a][b] for b in regressors] for a in regressors])
    sxy = np.array([cov[a][outcome] for a in regressors])
    return np.linalg.solve(sxx, sxy)


def _parse_formula(formula: str):
    outcome, rhs = formula.split("~")
    return outcome.strip(), [term.strip() for term in rhs.split("+")]


def _contrast_scale(config: ScenarioConfig, outcome: str) -> float:
    """Converts a standardized slope into a reporting-unit Male vs. Female difference."""
    codes = sorted(config.exposure_labels)
    transform = config.reporting_units.get(outcome)
    outcome_scale = transform.scale if transform else 1.0
    return (codes[-1] - codes[0]) * outcome_scale


def compute_ground_truth(
    scenario: Scenario,
    sampler: Optional[DatasetSampler] = None,
    specs: Optional[List[ModelSpec]] = None,
) -> Dict[str, GroundTruthEffect]:
    """
    Population targets of every applicable estimator.

    Args:
        scenario: Scenario to evaluate
        sampler: Sampler providing the scenario declaration and calibration
        specs: Estimator specs. Uses MODEL_SPECS if not provided.

    Returns:
        Mapping of model name to GroundTruthEffect
    """
    scenario = Scenario(scenario)
    sampler = sampler or DatasetSampler()
    config = sampler.model(scenario).config
    cov = extended_covariance(config, sampler.calibration(scenario))
    exposure = config.exposure

    effects: Dict[str, GroundTruthEffect] = {}
    for spec in specs if specs is not None else MODEL_SPECS:
        if not spec.is_applicable(config):
            continue

        if spec.kind is EstimatorKind.GFORMULA:
            g = config.gformula
            regressors = [g.exposure, g.mediator, *g.post_exposure_confounders]
            beta = population_coefficients(cov, g.outcome, regressors)
            slope = beta[0]
            for k, confounder in enumerate(g.post_exposure_confounders):
                gamma = cov[confounder][exposure] / cov[exposure][exposure]
                slope += beta[2 + k] * gamma
            outcome = g.outcome
        else:
            outcome, regressors = _parse_formula(spec.formula)
            beta = population_coefficients(cov, outcome, regressors)
            slope = beta[regressors.index(exposure)]

        effects[spec.name] = GroundTruthEffect(
            scenario=scenario,
            model=spec.name,
            value=float(slope * _contrast_scale(config, outcome)),
            description=spec.description,
        )
    return effects
