"""Root conftest.py - shared fixtures for the simulation tests.

Every fixture that draws data takes its randomness from a fresh seeded
generator, so tests are independent of execution order.
"""

import numpy as np
import pytest

from lords_paradox.config import SCENARIO_CONFIGS, Scenario
from lords_paradox.dgp import DatasetSampler, NoiseCalibrator, StructuralModel
from lords_paradox.utils.logging_config import clear_simulation_context

SEED = 1


@pytest.fixture
def rng():
    """Seeded random generator."""
    return np.random.default_rng(SEED)


@pytest.fixture
def sampler():
    """Sampler over the reference scenario declarations."""
    return DatasetSampler()


@pytest.fixture
def scenario1_config():
    return SCENARIO_CONFIGS[Scenario.NO_MO_CONFOUNDING]


@pytest.fixture
def scenario2_config():
    return SCENARIO_CONFIGS[Scenario.WITH_MO_CONFOUNDING]


@pytest.fixture
def scenario1_model(scenario1_config):
    return StructuralModel(scenario1_config)


@pytest.fixture
def scenario2_model(scenario2_config):
    return StructuralModel(scenario2_config)


@pytest.fixture
def scenario1_calibration(scenario1_model):
    return NoiseCalibrator().calibrate(scenario1_model)


@pytest.fixture
def scenario2_calibration(scenario2_model):
    return NoiseCalibrator().calibrate(scenario2_model)


@pytest.fixture
def scenario1_dataset(sampler, rng):
    """Moderate scenario1 dataset (n=2000)."""
    return sampler.sample(Scenario.NO_MO_CONFOUNDING, 2000, rng)


@pytest.fixture
def scenario2_dataset(sampler, rng):
    """Moderate scenario2 dataset (n=2000)."""
    return sampler.sample(Scenario.WITH_MO_CONFOUNDING, 2000, rng)


@pytest.fixture(autouse=True)
def clear_context():
    """Reset the logging context around each test."""
    clear_simulation_context()
    yield
    clear_simulation_context()
