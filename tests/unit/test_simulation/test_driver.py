"""Tests for SimulationDriver.

Tests cover:
- Lifecycle (READY -> RUNNING -> DONE or FAILED, single use)
- Matrix shapes and contents
- Zero replicates
- Determinism, sequential and with a process pool
"""

from dataclasses import replace

import numpy as np
import pandas as pd
import pytest

from lords_paradox.config import SCENARIO_CONFIGS, Scenario
from lords_paradox.dgp import DatasetSampler
from lords_paradox.exceptions import ConfigurationError
from lords_paradox.simulation import DriverState, SimulationDriver

S1 = Scenario.NO_MO_CONFOUNDING
S2 = Scenario.WITH_MO_CONFOUNDING


class TestDriverLifecycle:
    """Test driver states."""

    def test_starts_ready(self):
        driver = SimulationDriver()
        assert driver.state is DriverState.READY
        assert driver.current_replicate == 0

    def test_done_after_run(self, rng):
        driver = SimulationDriver()
        driver.run([S1], n_per_replicate=100, n_replicates=3, rng=rng)
        assert driver.state is DriverState.DONE
        assert driver.current_replicate == 3

    def test_second_run_rejected(self, rng):
        driver = SimulationDriver()
        driver.run([S1], n_per_replicate=100, n_replicates=1, rng=rng)
        with pytest.raises(RuntimeError):
            driver.run([S1], n_per_replicate=100, n_replicates=1, rng=rng)

    def test_negative_replicates_rejected(self, rng):
        with pytest.raises(ValueError):
            SimulationDriver().run([S1], n_per_replicate=100, n_replicates=-1, rng=rng)

    def test_calibration_failure_before_sampling(self, rng):
        """Test infeasible coefficients fail before any random draws."""
        config = SCENARIO_CONFIGS[S1]
        coefficients = dict(config.path_coefficients)
        coefficients[("sex", "baseline_weight")] = 1.2
        sampler = DatasetSampler(scenario_configs={S1: replace(config, path_coefficients=coefficients)})
        state_before = rng.bit_generator.state

        with pytest.raises(ConfigurationError):
            SimulationDriver(sampler=sampler).run([S1], n_per_replicate=100, n_replicates=2, rng=rng)

        assert rng.bit_generator.state == state_before

    def test_failed_replicate_leaves_failed_state(self, rng, monkeypatch):
        """Test an unexpected error in a replicate ends in FAILED, not RUNNING."""
        driver = SimulationDriver()

        def explode(dataset, scenario):
            raise RuntimeError("boom")

        monkeypatch.setattr(driver.battery, "fit_all", explode)

        with pytest.raises(RuntimeError, match="boom"):
            driver.run([S1], n_per_replicate=100, n_replicates=2, rng=rng)

        assert driver.state is DriverState.FAILED
        assert driver.current_replicate == 0
        with pytest.raises(RuntimeError, match="state=failed"):
            driver.run([S1], n_per_replicate=100, n_replicates=1, rng=rng)


class TestDriverResults:
    """Test matrices produced by a run."""

    def test_matrix_per_scenario(self, rng):
        matrices = SimulationDriver().run([S1, S2], n_per_replicate=200, n_replicates=4, rng=rng)
        assert set(matrices) == {S1, S2}
        assert matrices[S1].to_frame().shape == (4, 4)
        assert matrices[S2].to_frame().shape == (4, 5)

    def test_no_missing_estimates(self, rng):
        matrices = SimulationDriver().run([S2], n_per_replicate=200, n_replicates=3, rng=rng)
        assert matrices[S2].n_missing == 0

    def test_zero_replicates(self, rng):
        """Test zero replicates give empty matrices with all model columns."""
        matrices = SimulationDriver().run([S1], n_per_replicate=200, n_replicates=0, rng=rng)
        frame = matrices[S1].to_frame()
        assert frame.shape == (0, 4)
        assert list(frame.columns) == ["s1mod1", "s1mod2", "s1mod4", "s1mod5"]


class TestDriverDeterminism:
    """Test reproducibility for a fixed seed."""

    def test_same_seed_same_matrices(self):
        first = SimulationDriver().run([S1, S2], 150, 3, np.random.default_rng(11))
        second = SimulationDriver().run([S1, S2], 150, 3, np.random.default_rng(11))
        for scenario in (S1, S2):
            pd.testing.assert_frame_equal(first[scenario].to_frame(), second[scenario].to_frame())

    def test_different_seed_different_matrices(self):
        first = SimulationDriver().run([S1], 150, 3, np.random.default_rng(11))
        second = SimulationDriver().run([S1], 150, 3, np.random.default_rng(12))
        assert not first[S1].to_frame().equals(second[S1].to_frame())

    @pytest.mark.slow
    def test_process_pool_reproducible(self):
        """Test spawned per-replicate streams make pooled runs reproducible."""
        first = SimulationDriver(use_process_pool=True, max_workers=2).run(
            [S1], 150, 4, np.random.default_rng(5)
        )
        second = SimulationDriver(use_process_pool=True, max_workers=2).run(
            [S1], 150, 4, np.random.default_rng(5)
        )
        pd.testing.assert_frame_equal(first[S1].to_frame(), second[S1].to_frame())
        assert first[S1].n_replicates == 4
