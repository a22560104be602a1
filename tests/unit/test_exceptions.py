"""Tests for the exception hierarchy."""

import pytest

from lords_paradox.exceptions import (
    AggregationError,
    ConfigurationError,
    EstimationError,
    LordsParadoxError,
    SamplingError,
)


class TestExceptionHierarchy:
    """All errors share one base class."""

    @pytest.mark.parametrize(
        "error_cls", [ConfigurationError, SamplingError, EstimationError, AggregationError]
    )
    def test_subclass(self, error_cls):
        assert issubclass(error_cls, LordsParadoxError)

    def test_to_dict(self):
        error = LordsParadoxError("failed", details={"a": 1}, original_error=ValueError("x"))
        assert error.to_dict() == {
            "error_type": "LordsParadoxError",
            "message": "failed",
            "details": {"a": 1},
            "original_error": "x",
        }

    def test_configuration_error_details(self):
        error = ConfigurationError("bad", variable="baseline_weight", residual_variance=-0.44)
        assert error.details == {"variable": "baseline_weight", "residual_variance": -0.44}

    def test_estimation_error_model(self):
        assert EstimationError("bad", model="mod3").details["model"] == "mod3"

    def test_aggregation_error_counts(self):
        error = AggregationError("few", model="s1mod1", n_valid=0)
        assert error.n_valid == 0
        assert error.to_dict()["details"] == {"model": "s1mod1", "n_valid": 0}
