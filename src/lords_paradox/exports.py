"""
Delimited-file export and import of datasets and summary tables.
"""

import logging
from pathlib import Path
from typing import Union

import pandas as pd

from .config import ScenarioConfig
from .dgp.sampler import SimulatedDataset
from .simulation.summary import SUMMARY_COLUMNS

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

MISSING_MARKER = "NA"


def write_dataset(dataset: SimulatedDataset, path: PathLike) -> Path:
    """
    Write a dataset's reporting-unit table as CSV.

    Header is the variable names (derived columns included); the exposure
    is written as its label.
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    dataset.data.to_csv(path, index=False)
    logger.info(f"Wrote {dataset.n:,} rows for {dataset.scenario.value} to {path}")
    return path


def read_dataset(path: PathLike, config: ScenarioConfig) -> pd.DataFrame:
    """Read a dataset CSV, restoring the exposure as an ordered two-level categorical."""
    data = pd.read_csv(path)
    labels = [config.exposure_labels[k] for k in sorted(config.exposure_labels)]
    data[config.exposure] = pd.Categorical(data[config.exposure], categories=labels)
    return data


def write_results(summary: pd.DataFrame, path: PathLike) -> Path:
    """Write a summary table as CSV, with missing centiles as NA."""
    missing = set(SUMMARY_COLUMNS) - set(summary.columns)
    if missing:
        raise ValueError(f"Summary table is missing columns: {sorted(missing)}")
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    summary[SUMMARY_COLUMNS].to_csv(path, index=False, na_rep=MISSING_MARKER)
    logger.info(f"Wrote {len(summary)} summary rows to {path}")
    return path


def read_results(path: PathLike) -> pd.DataFrame:
    """Read a summary CSV (NA cells become NaN)."""
    summary = pd.read_csv(path, na_values=[MISSING_MARKER], keep_default_na=False)
    return summary.astype({"model": str, "lower": float, "median": float, "upper": float})
