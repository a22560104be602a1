"""
Lord's Paradox Simulation

Simulates two structural causal models of sex, baseline weight and
follow-up weight, and compares how a battery of estimators of the sex
effect behaves over repeated samples.

Components:
- config: scenario declarations and run settings
- dgp: structural model, noise calibration and dataset sampling
- estimators: OLS models and the g-formula controlled direct effect
- simulation: Monte-Carlo driver, estimate matrices and centile summaries
- ground_truth: population values of every estimator target
- exports / plotting: CSV outputs and the Lord plot
"""

from .config import SCENARIO_CONFIGS, Scenario, SimulationSettings, get_scenario_config
from .dgp import DatasetSampler, NoiseCalibrator, SimulatedDataset, StructuralModel
from .estimators import MODEL_SPECS, EstimatorBattery
from .exceptions import (
    AggregationError,
    ConfigurationError,
    EstimationError,
    LordsParadoxError,
    SamplingError,
)
from .ground_truth import GroundTruthEffect, compute_ground_truth
from .simulation import EstimateMatrix, ResultSummarizer, SimulationDriver

__version__ = "1.0.0"

__all__ = [
    "Scenario",
    "SimulationSettings",
    "SCENARIO_CONFIGS",
    "get_scenario_config",
    "StructuralModel",
    "NoiseCalibrator",
    "DatasetSampler",
    "SimulatedDataset",
    "EstimatorBattery",
    "MODEL_SPECS",
    "SimulationDriver",
    "EstimateMatrix",
    "ResultSummarizer",
    "GroundTruthEffect",
    "compute_ground_truth",
    "LordsParadoxError",
    "ConfigurationError",
    "SamplingError",
    "EstimationError",
    "AggregationError",
]
