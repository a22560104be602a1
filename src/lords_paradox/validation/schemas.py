"""
Pandera Schema Definitions for Simulated Data.

Validates the reporting-unit dataset tables and the summary table:
structure, dtypes, missingness and value constraints.
"""

from typing import Optional, Tuple

import numpy as np
import pandas as pd
import pandera.pandas as pa
from pandera import Check, Column, DataFrameSchema

from ..config import ScenarioConfig


# =============================================================================
# DATASET SCHEMAS
# =============================================================================


def build_dataset_schema(config: ScenarioConfig, n: Optional[int] = None) -> DataFrameSchema:
    """
    Build the schema of a scenario's reporting-unit table.

    The column set must be exactly the scenario's variables plus its
    derived columns, with no missing values.

    Args:
        config: Scenario declaration
        n: Expected row count (not checked if None)

    Returns:
        DataFrameSchema for the scenario
    """
    labels = [config.exposure_labels[k] for k in sorted(config.exposure_labels)]

    columns = {}
    for name in config.column_names:
        if name == config.exposure:
            columns[name] = Column(
                checks=Check.isin(labels),
                nullable=False,
                description="Exposure contrast rendered as a two-level label",
            )
        else:
            columns[name] = Column(
                float,
                checks=Check(np.isfinite, error="values must be finite"),
                nullable=False,
            )

    checks = []
    if n is not None:
        checks.append(Check(lambda df: len(df) == n, error=f"row count must be {n}"))

    return DataFrameSchema(
        columns=columns,
        checks=checks,
        strict=True,
        ordered=True,
        name=f"{config.scenario.value}_dataset",
    )


def validate_dataset(
    df: pd.DataFrame,
    config: ScenarioConfig,
    n: Optional[int] = None,
    lazy: bool = True,
) -> Tuple[bool, Optional[pa.errors.SchemaErrors]]:
    """
    Validate a dataset table against its scenario schema.

    Args:
        df: Reporting-unit table
        config: Scenario declaration
        n: Expected row count
        lazy: If True, collect all errors; if False, fail fast

    Returns:
        Tuple of (is_valid, errors)
    """
    schema = build_dataset_schema(config, n)
    try:
        schema.validate(df, lazy=lazy)
        return True, None
    except pa.errors.SchemaErrors as e:
        return False, e


# =============================================================================
# SUMMARY SCHEMA
# =============================================================================


def _ordered_centiles(df: pd.DataFrame) -> pd.Series:
    complete = df[["lower", "median", "upper"]].notna().all(axis=1)
    ordered = (df["lower"] <= df["median"]) & (df["median"] <= df["upper"])
    return ~complete | ordered


SummarySchema = DataFrameSchema(
    columns={
        "model": Column(
            str,
            Check.str_matches(r"^s\d+mod\d+$"),
            unique=True,
            nullable=False,
            description="Model identifier (format: s<scenario>mod<model>)",
        ),
        "lower": Column(float, nullable=True, description="2.5th centile"),
        "median": Column(float, nullable=True, description="50th centile"),
        "upper": Column(float, nullable=True, description="97.5th centile"),
    },
    checks=[Check(_ordered_centiles, error="lower <= median <= upper")],
    strict=True,
    name="simulation_summary",
)


def validate_summary(
    df: pd.DataFrame,
    lazy: bool = True,
) -> Tuple[bool, Optional[pa.errors.SchemaErrors]]:
    """Validate a summary table (missing centiles allowed)."""
    try:
        SummarySchema.validate(df, lazy=lazy)
        return True, None
    except pa.errors.SchemaErrors as e:
        return False, e
