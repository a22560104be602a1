"""
Simulation Driver
=================

Runs the Monte-Carlo study: for each replicate, sample one dataset per
active scenario, fit the estimator battery and store the estimates.

The driver moves through READY -> RUNNING -> DONE, or to FAILED when a
replicate raises. Either end state is final. By default all
replicates consume the single injected random stream in sequence. With
``use_process_pool`` each replicate gets its own generator spawned from
the injected one, so results are reproducible for a fixed seed
regardless of scheduling.
"""

import logging
import time
from concurrent.futures import ProcessPoolExecutor, as_completed
from enum import Enum
from typing import Dict, List, Optional, Sequence

import numpy as np
from tqdm import tqdm

from ..config import Scenario
from ..dgp.sampler import DatasetSampler
from ..estimators.battery import EstimatorBattery
from ..utils.logging_config import clear_simulation_context, set_simulation_context
from .matrix import EstimateMatrix

logger = logging.getLogger(__name__)


class DriverState(str, Enum):
    """Lifecycle of a simulation driver."""

    READY = "ready"
    RUNNING = "running"
    DONE = "done"
    FAILED = "failed"


def _run_replicate(
    sampler: DatasetSampler,
    battery: EstimatorBattery,
    scenarios: Sequence[Scenario],
    n_per_replicate: int,
    rng: np.random.Generator,
    replicate: int,
) -> Dict[Scenario, Dict[str, float]]:
    """Sample and fit one replicate for every active scenario.

    Defined at module level so it can be pickled for ProcessPoolExecutor.
    """
    rows = {}
    for scenario in scenarios:
        set_simulation_context(scenario=scenario.value, replicate=replicate)
        dataset = sampler.sample(scenario, n_per_replicate, rng)
        rows[scenario] = battery.fit_all(dataset, scenario)
    return rows


class SimulationDriver:
    """
    Repeats {sample -> fit} for a configured number of replicates.

    Example:
        >>> driver = SimulationDriver()
        >>> matrices = driver.run(
        ...     [Scenario.NO_MO_CONFOUNDING],
        ...     n_per_replicate=1000,
        ...     n_replicates=50,
        ...     rng=np.random.default_rng(1),
        ... )
        >>> matrices[Scenario.NO_MO_CONFOUNDING].to_frame().shape
        (50, 4)
    """

    def __init__(
        self,
        sampler: Optional[DatasetSampler] = None,
        battery: Optional[EstimatorBattery] = None,
        use_process_pool: bool = False,
        max_workers: Optional[int] = None,
        show_progress: bool = False,
    ):
        """
        Initialize simulation driver.

        Args:
            sampler: Dataset sampler. Uses defaults if not provided.
            battery: Estimator battery. Uses defaults if not provided.
            use_process_pool: Run replicates in worker processes
            max_workers: Maximum worker processes (default: CPU count)
            show_progress: Display a progress bar
        """
        self.sampler = sampler or DatasetSampler()
        self.battery = battery or EstimatorBattery(scenario_configs=self.sampler.scenario_configs)
        self.use_process_pool = use_process_pool
        self.max_workers = max_workers
        self.show_progress = show_progress
        self._state = DriverState.READY
        self._current_replicate = 0

    @property
    def state(self) -> DriverState:
        return self._state

    @property
    def current_replicate(self) -> int:
        """Number of replicates completed so far."""
        return self._current_replicate

    def run(
        self,
        scenarios: Sequence[Scenario],
        n_per_replicate: int,
        n_replicates: int,
        rng: np.random.Generator,
    ) -> Dict[Scenario, EstimateMatrix]:
        """
        Run the simulation.

        Args:
            scenarios: Active scenarios, sampled in this order within a replicate
            n_per_replicate: Units per simulated dataset
            n_replicates: Number of replicates (0 gives empty matrices)
            rng: Random number generator

        Returns:
            EstimateMatrix per scenario

        Raises:
            ConfigurationError: If a scenario's coefficients cannot be calibrated

        Any exception raised while replicates run leaves the driver FAILED.
        """
        if self._state is not DriverState.READY:
            raise RuntimeError(f"Driver can only run once (state={self._state.value})")
        if n_replicates < 0:
            raise ValueError(f"n_replicates must be >= 0, got {n_replicates}")

        scenarios: List[Scenario] = [Scenario(s) for s in scenarios]

        # Build and calibrate every model before any sampling
        for scenario in scenarios:
            self.sampler.model(scenario)

        matrices = {
            scenario: EstimateMatrix(scenario, self.battery.model_names(scenario))
            for scenario in scenarios
        }

        self._state = DriverState.RUNNING
        start_time = time.time()
        logger.info(
            f"Starting simulation: {n_replicates} replicates x {n_per_replicate} units "
            f"for {[s.value for s in scenarios]}"
        )

        try:
            with tqdm(total=n_replicates, disable=not self.show_progress, desc="Simulating") as bar:
                if self.use_process_pool and n_replicates > 1:
                    self._run_parallel(scenarios, n_per_replicate, n_replicates, rng, matrices, bar)
                else:
                    self._run_sequential(scenarios, n_per_replicate, n_replicates, rng, matrices, bar)
        except BaseException:
            self._state = DriverState.FAILED
            logger.error(f"Simulation failed after {self._current_replicate} replicates")
            raise
        finally:
            clear_simulation_context()

        self._state = DriverState.DONE
        elapsed = time.time() - start_time
        for scenario, matrix in matrices.items():
            logger.info(
                f"{scenario.value}: {matrix.n_replicates} replicates, "
                f"{matrix.n_missing} missing estimates"
            )
        logger.info(f"Simulation complete in {elapsed:.1f}s")
        return matrices

    def _run_sequential(self, scenarios, n_per_replicate, n_replicates, rng, matrices, bar) -> None:
        for replicate in range(n_replicates):
            rows = _run_replicate(
                self.sampler, self.battery, scenarios, n_per_replicate, rng, replicate
            )
            self._record(replicate, rows, matrices)
            bar.update(1)

    def _run_parallel(self, scenarios, n_per_replicate, n_replicates, rng, matrices, bar) -> None:
        """Run replicates in a process pool with spawned per-replicate generators."""
        child_rngs = rng.spawn(n_replicates)
        logger.info(
            f"Using ProcessPoolExecutor with {self.max_workers or 'auto'} workers "
            f"for {n_replicates} replicates"
        )
        with ProcessPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                executor.submit(
                    _run_replicate,
                    self.sampler,
                    self.battery,
                    scenarios,
                    n_per_replicate,
                    child_rngs[replicate],
                    replicate,
                ): replicate
                for replicate in range(n_replicates)
            }
            for future in as_completed(futures):
                replicate = futures[future]
                self._record(replicate, future.result(), matrices)
                bar.update(1)

    def _record(self, replicate: int, rows, matrices: Dict[Scenario, EstimateMatrix]) -> None:
        for scenario, estimates in rows.items():
            matrices[scenario].add_row(replicate, estimates)
        self._current_replicate += 1
        logger.debug(f"Replicate {replicate} recorded")
