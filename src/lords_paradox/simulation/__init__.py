"""
Monte-Carlo simulation of the estimator battery.

- SimulationDriver: repeats sampling and fitting per replicate
- EstimateMatrix: replicate-by-model estimates for one scenario
- ResultSummarizer: centiles per model
"""

from .driver import DriverState, SimulationDriver
from .matrix import EstimateMatrix
from .summary import SUMMARY_COLUMNS, ResultSummarizer, SummaryRow

__all__ = [
    "SimulationDriver",
    "DriverState",
    "EstimateMatrix",
    "ResultSummarizer",
    "SummaryRow",
    "SUMMARY_COLUMNS",
]
