"""Monte-Carlo benchmark runs with known population targets.

Runs are session-scoped: each full simulation is computed once and shared
by every test that inspects it.
"""

from dataclasses import dataclass
from typing import Dict, List

import numpy as np
import pandas as pd
import pytest

from lords_paradox.config import Scenario
from lords_paradox.ground_truth import GroundTruthEffect, compute_ground_truth
from lords_paradox.simulation import EstimateMatrix, ResultSummarizer, SimulationDriver

# ============================================================================
# DATA STRUCTURES
# ============================================================================


@dataclass
class BenchmarkRun:
    """One simulation run with its population targets.

    Attributes:
        matrices: Estimate matrix per scenario
        summary: Summary table (model, lower, median, upper)
        truth: Population value per model id (e.g. s1mod5)
        tolerance: Acceptable distance of a median from its target, in kg
        n_per_replicate: Units per dataset
        n_replicates: Replicates run
        seed: Random seed
    """

    matrices: Dict[Scenario, EstimateMatrix]
    summary: pd.DataFrame
    truth: Dict[str, GroundTruthEffect]
    tolerance: float
    n_per_replicate: int
    n_replicates: int
    seed: int

    def median(self, model_id: str) -> float:
        return float(self.summary.set_index("model").loc[model_id, "median"])


def run_benchmark(
    scenarios: List[Scenario],
    n_per_replicate: int,
    n_replicates: int,
    seed: int = 1,
    tolerance: float = 0.5,
) -> BenchmarkRun:
    """Run the simulation and attach population targets."""
    driver = SimulationDriver()
    matrices = driver.run(scenarios, n_per_replicate, n_replicates, np.random.default_rng(seed))
    truth = {}
    for scenario in scenarios:
        for effect in compute_ground_truth(scenario, sampler=driver.sampler).values():
            truth[effect.model_id] = effect
    return BenchmarkRun(
        matrices=matrices,
        summary=ResultSummarizer().summarize_all(matrices),
        truth=truth,
        tolerance=tolerance,
        n_per_replicate=n_per_replicate,
        n_replicates=n_replicates,
        seed=seed,
    )


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture(scope="session")
def reference_run() -> BenchmarkRun:
    """Scenario1, 1000 units, 50 replicates, seed 1."""
    return run_benchmark([Scenario.NO_MO_CONFOUNDING], n_per_replicate=1000, n_replicates=50, tolerance=1.0)


@pytest.fixture(scope="session")
def large_run() -> BenchmarkRun:
    """Both scenarios, 10,000 units, 100 replicates."""
    return run_benchmark(list(Scenario), n_per_replicate=10_000, n_replicates=100, tolerance=0.5)
