"""
Lord's Paradox Data Generating Process

- StructuralModel: variables, parents and structural equations per scenario
- NoiseCalibrator: closed-form residual noise scales for unit variances
- DatasetSampler: draws one dataset in causal order and rescales it
"""

from .calibration import CalibrationResult, NoiseCalibrator
from .sampler import DatasetSampler, SimulatedDataset
from .structural_model import EQUATIONS, StructuralModel, Variable

__all__ = [
    "StructuralModel",
    "Variable",
    "EQUATIONS",
    "NoiseCalibrator",
    "CalibrationResult",
    "DatasetSampler",
    "SimulatedDataset",
]
