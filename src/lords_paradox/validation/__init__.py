"""
Schema validation for simulated datasets and summary tables.
"""

from .schemas import (
    SummarySchema,
    build_dataset_schema,
    validate_dataset,
    validate_summary,
)

__all__ = [
    "SummarySchema",
    "build_dataset_schema",
    "validate_dataset",
    "validate_summary",
]
