"""
Estimators of the exposure effect.

- EstimatorBattery: fits the fixed model set to one dataset
- estimate_controlled_direct_effect: g-formula with the mediator fixed
"""

from .battery import MODEL_SPECS, EstimatorBattery, EstimatorKind, ModelSpec
from .gformula import estimate_controlled_direct_effect

__all__ = [
    "EstimatorBattery",
    "EstimatorKind",
    "ModelSpec",
    "MODEL_SPECS",
    "estimate_controlled_direct_effect",
]
