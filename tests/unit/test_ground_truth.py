"""Tests for population targets of the estimator battery."""

import pytest

from lords_paradox.config import Scenario
from lords_paradox.ground_truth import (
    GroundTruthEffect,
    compute_ground_truth,
    extended_covariance,
    population_coefficients,
)


class TestScenario1Truth:
    """Scenario1 targets in kg (Male vs. Female)."""

    @pytest.fixture
    def truth(self):
        return compute_ground_truth(Scenario.NO_MO_CONFOUNDING)

    def test_models_present(self, truth):
        assert list(truth) == ["mod1", "mod2", "mod4", "mod5"]

    def test_change_score_is_zero(self, truth):
        assert truth["mod1"].value == pytest.approx(0.0, abs=1e-10)

    def test_baseline_adjusted_is_five(self, truth):
        assert truth["mod2"].value == pytest.approx(5.0)
        assert truth["mod4"].value == pytest.approx(5.0)

    def test_unadjusted_follow_up_is_ten(self, truth):
        assert truth["mod5"].value == pytest.approx(10.0)


class TestScenario2Truth:
    """Scenario2 targets."""

    @pytest.fixture
    def truth(self):
        return compute_ground_truth(Scenario.WITH_MO_CONFOUNDING)

    def test_gformula_is_five(self, truth):
        assert truth["mod3"].value == pytest.approx(5.0)

    def test_total_effect_paths(self, truth):
        assert truth["mod5"].value == pytest.approx(10.0)
        assert truth["mod1"].value == pytest.approx(0.0, abs=1e-10)


class TestHelpers:
    """Test covariance and coefficient helpers."""

    def test_change_score_covariance(self, sampler, scenario1_config):
        cov = extended_covariance(scenario1_config, sampler.calibration(Scenario.NO_MO_CONFOUNDING))
        # var(Y1 - Y0) = 1 + 1 - 2 * 0.625
        assert cov["weight_change"]["weight_change"] == pytest.approx(0.75)
        assert cov["weight_change"]["sex"] == pytest.approx(0.0, abs=1e-12)

    def test_population_coefficients(self, sampler, scenario1_config):
        cov = extended_covariance(scenario1_config, sampler.calibration(Scenario.NO_MO_CONFOUNDING))
        beta = population_coefficients(cov, "follow_up_weight", ["sex", "baseline_weight"])
        assert beta[0] == pytest.approx(0.25)
        assert beta[1] == pytest.approx(0.5)

    def test_effect_model_id_and_error(self):
        effect = GroundTruthEffect(Scenario.WITH_MO_CONFOUNDING, "mod3", 5.0)
        assert effect.model_id == "s2mod3"
        assert effect.get_error(4.5) == pytest.approx(0.5)
        assert effect.to_dict()["scenario"] == "scenario2"
