"""
Ground Truth Module

Population values of each estimator's target, derived analytically from
the scenario's path coefficients.
"""

from .effects import (
    GroundTruthEffect,
    compute_ground_truth,
    extended_covariance,
    population_coefficients,
)

__all__ = [
    "GroundTruthEffect",
    "compute_ground_truth",
    "extended_covariance",
    "population_coefficients",
]
