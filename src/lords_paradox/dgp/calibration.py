"""
Noise Calibration.

Derives, in closed form, the residual noise scale every stochastic variable
needs so that all structural variables have unit variance.

Covariances are propagated through the DAG in generation order. Because
each noise term is independent of everything generated before it, for a
child j with parents P and path weights w:

    cov(X_j, X_i) = sum_p w_p * cov(X_p, X_i)      for i generated before j
    explained_j   = w' * cov(X_P, X_P) * w
                  = sum(w_p^2) + sum_{a<b} 2 * cov(X_a, X_b) * w_a * w_b
    residual_j    = 1 - explained_j
"""

import logging
from dataclasses import dataclass
from typing import Dict, List

import numpy as np
import pandas as pd

from ..config import VariableKind
from ..exceptions import ConfigurationError
from .structural_model import StructuralModel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalibrationResult:
    """Implied covariance structure and noise scales for one scenario."""

    variables: List[str]
    covariance: np.ndarray
    explained_variance: Dict[str, float]
    residual_variance: Dict[str, float]
    noise_scale: Dict[str, float]

    def covariance_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.covariance, index=self.variables, columns=self.variables)

    def cov(self, a: str, b: str) -> float:
        i = self.variables.index(a)
        j = self.variables.index(b)
        return float(self.covariance[i, j])


class NoiseCalibrator:
    """
    Computes residual noise scales for a StructuralModel.

    Usage:
        calibrator = NoiseCalibrator()
        result = calibrator.calibrate(model)
        result.noise_scale["follow_up_weight"]  # 0.75 in scenario1
    """

    def __init__(self, tolerance: float = 1e-9):
        """
        Initialize calibrator.

        Args:
            tolerance: Slack allowed when checking that explained variance
                does not exceed 1 (floating point round-off)
        """
        self.tolerance = tolerance

    def calibrate(self, model: StructuralModel) -> CalibrationResult:
        """
        Derive covariances and noise scales.

        Raises:
            ConfigurationError: If any residual variance is negative
        """
        variables = model.variables
        d = len(variables)
        cov = np.zeros((d, d))
        explained: Dict[str, float] = {}
        residual: Dict[str, float] = {}
        scale: Dict[str, float] = {}

        for var in variables:
            j = var.index
            if var.kind is VariableKind.BINARY_CONTRAST:
                # Fair coin on {-1, +1}: mean 0, variance 1
                cov[j, j] = 1.0
                explained[var.name] = 0.0
                residual[var.name] = 1.0
                scale[var.name] = 1.0
                continue

            parents = list(var.parent_indices)
            w = np.asarray(var.coefficients, dtype=float)

            # Covariance with everything generated so far
            cov[j, :j] = w @ cov[parents, :j]
            cov[:j, j] = cov[j, :j]

            explained_j = float(w @ cov[np.ix_(parents, parents)] @ w)
            residual_j = 1.0 - explained_j
            explained[var.name] = explained_j

            if var.kind is VariableKind.PASS_THROUGH:
                if abs(residual_j) > self.tolerance:
                    raise ConfigurationError(
                        f"Pass-through variable '{var.name}' has variance {explained_j:.4f}, "
                        f"expected 1",
                        variable=var.name,
                        residual_variance=residual_j,
                        details={"scenario": model.scenario.value},
                    )
                cov[j, j] = explained_j
                residual[var.name] = 0.0
                scale[var.name] = 0.0
                continue

            if residual_j < -self.tolerance:
                raise ConfigurationError(
                    f"Path coefficients into '{var.name}' explain {explained_j:.4f} of its "
                    f"variance; residual variance would be negative",
                    variable=var.name,
                    residual_variance=residual_j,
                    details={
                        "scenario": model.scenario.value,
                        "parents": model.parents(var.name),
                        "coefficients": list(var.coefficients),
                    },
                )

            residual_j = max(residual_j, 0.0)
            cov[j, j] = 1.0
            residual[var.name] = residual_j
            scale[var.name] = float(np.sqrt(residual_j))

        logger.debug(
            f"Calibrated {model.scenario.value}: "
            + ", ".join(f"{k}={v:.4f}" for k, v in scale.items())
        )

        return CalibrationResult(
            variables=model.generation_order(),
            covariance=cov,
            explained_variance=explained,
            residual_variance=residual,
            noise_scale=scale,
        )
