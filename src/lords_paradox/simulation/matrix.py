"""
Estimate Matrix.

Replicate-indexed store of one scenario's estimates. Append-only with one
slot per replicate index, so rows produced out of order (process pool)
cannot overwrite each other.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

import numpy as np
import pandas as pd

from ..config import Scenario


@dataclass
class EstimateMatrix:
    """
    Estimates of every model across replicates, for one scenario.

    Attributes:
        scenario: Scenario the estimates belong to
        model_names: Model columns, in battery order (known even when empty)
    """

    scenario: Scenario
    model_names: List[str]
    _rows: Dict[int, Dict[str, float]] = field(default_factory=dict, repr=False)

    def add_row(self, replicate: int, estimates: Mapping[str, float]) -> None:
        """
        Store one replicate's estimates in its slot.

        Models missing from ``estimates`` are recorded as NaN.

        Raises:
            ValueError: If the slot is already filled or a model is unknown
        """
        if replicate in self._rows:
            raise ValueError(f"Replicate {replicate} already recorded for {self.scenario.value}")
        unknown = set(estimates) - set(self.model_names)
        if unknown:
            raise ValueError(f"Unknown models for {self.scenario.value}: {sorted(unknown)}")
        self._rows[replicate] = {
            name: float(estimates.get(name, np.nan)) for name in self.model_names
        }

    def model_id(self, model_name: str) -> str:
        """Scenario-qualified model identifier, e.g. s1mod1."""
        return f"{self.scenario.short_code}{model_name}"

    def column(self, model_name: str) -> np.ndarray:
        """All values of one model, in replicate order (NaN for failures)."""
        if model_name not in self.model_names:
            raise KeyError(f"Unknown model '{model_name}' for {self.scenario.value}")
        return np.array([self._rows[i][model_name] for i in sorted(self._rows)], dtype=float)

    def to_frame(self) -> pd.DataFrame:
        """Replicate-by-model DataFrame (columns are model identifiers)."""
        index = sorted(self._rows)
        frame = pd.DataFrame(
            [[self._rows[i][name] for name in self.model_names] for i in index],
            index=pd.Index(index, name="replicate"),
            columns=[self.model_id(name) for name in self.model_names],
            dtype=float,
        )
        return frame

    @property
    def n_replicates(self) -> int:
        return len(self._rows)

    @property
    def n_missing(self) -> int:
        return int(sum(np.isnan(v) for row in self._rows.values() for v in row.values()))

    def __len__(self) -> int:
        return len(self._rows)
