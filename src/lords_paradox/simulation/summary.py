"""
Result Summarizer.

Reduces each model column of an EstimateMatrix to its 2.5th, 50th and
97.5th centiles. Centiles use linear interpolation between order
statistics (numpy ``method="linear"``, R's default type 7).
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import numpy as np
import pandas as pd

from ..config import Scenario
from ..exceptions import AggregationError
from .matrix import EstimateMatrix

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = ["model", "lower", "median", "upper"]


@dataclass
class SummaryRow:
    """Simulation interval and median for one model."""

    model: str
    lower: Optional[float]
    median: Optional[float]
    upper: Optional[float]
    n_valid: int = 0
    error: Optional[AggregationError] = None

    @property
    def is_missing(self) -> bool:
        return self.error is not None

    def to_dict(self) -> Dict:
        """Convert to dictionary (missing centiles as NaN)."""
        return {
            "model": self.model,
            "lower": np.nan if self.lower is None else self.lower,
            "median": np.nan if self.median is None else self.median,
            "upper": np.nan if self.upper is None else self.upper,
        }


class ResultSummarizer:
    """
    Summarizes estimate matrices.

    Usage:
        summarizer = ResultSummarizer()
        rows = summarizer.summarize(matrices[Scenario.NO_MO_CONFOUNDING])
        table = summarizer.summarize_all(matrices)
    """

    CENTILES = (2.5, 50.0, 97.5)

    def __init__(self, decimals: int = 2, min_valid: int = 2, method: str = "linear"):
        """
        Initialize summarizer.

        Args:
            decimals: Rounding precision of reported centiles
            min_valid: Minimum non-missing values needed to summarize a model
            method: numpy percentile method
        """
        if min_valid < 1:
            raise ValueError(f"min_valid must be >= 1, got {min_valid}")
        self.decimals = decimals
        self.min_valid = min_valid
        self.method = method

    def summarize(self, matrix: EstimateMatrix) -> List[SummaryRow]:
        """
        Summarize every model column of one matrix.

        Columns with too few values produce AggregationError-flagged rows
        instead of raising.
        """
        rows = []
        for model_name in matrix.model_names:
            model_id = matrix.model_id(model_name)
            values = matrix.column(model_name)
            valid = values[~np.isnan(values)]

            if len(valid) < self.min_valid:
                error = AggregationError(
                    f"{model_id} has {len(valid)} valid estimates "
                    f"(need at least {self.min_valid})",
                    model=model_id,
                    n_valid=len(valid),
                    details={"n_replicates": len(values)},
                )
                logger.warning(error.message)
                rows.append(SummaryRow(model_id, None, None, None, n_valid=len(valid), error=error))
                continue

            lower, median, upper = np.percentile(valid, self.CENTILES, method=self.method)
            rows.append(
                SummaryRow(
                    model=model_id,
                    lower=self._round(lower),
                    median=self._round(median),
                    upper=self._round(upper),
                    n_valid=len(valid),
                )
            )
        return rows

    def summarize_all(self, matrices: Dict[Scenario, EstimateMatrix]) -> pd.DataFrame:
        """Summary table for several scenarios (columns: model, lower, median, upper)."""
        return self.to_frame(row for matrix in matrices.values() for row in self.summarize(matrix))

    @staticmethod
    def to_frame(rows: Iterable[SummaryRow]) -> pd.DataFrame:
        frame = pd.DataFrame([row.to_dict() for row in rows], columns=SUMMARY_COLUMNS)
        return frame.astype({"model": str, "lower": float, "median": float, "upper": float})

    def _round(self, value: float) -> float:
        return float(np.round(value, self.decimals))
