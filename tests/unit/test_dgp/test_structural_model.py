"""Tests for StructuralModel.

Tests cover:
- Parent lists and generation order of both scenarios
- Structural equations
- Rejection of malformed declarations (cycles, duplicates, missing parents)
"""

from dataclasses import replace

import numpy as np
import pytest

from lords_paradox.config import VariableKind, VariableSpec
from lords_paradox.dgp.structural_model import (
    EQUATIONS,
    StructuralModel,
    binary_contrast,
    linear_gaussian,
    pass_through,
)
from lords_paradox.exceptions import SamplingError


class TestScenarioSkeletons:
    """Test the reference scenario declarations."""

    def test_scenario1_generation_order(self, scenario1_model):
        """Test scenario1 variables come out in causal order."""
        assert scenario1_model.generation_order() == [
            "sex",
            "baseline_weight",
            "hall",
            "diet",
            "follow_up_weight",
        ]

    def test_scenario2_has_physical_activity(self, scenario2_model):
        """Test scenario2 declares the mediator-outcome confounder."""
        order = scenario2_model.generation_order()
        assert "physical_activity" in order
        assert order.index("physical_activity") < order.index("baseline_weight")

    def test_follow_up_parents_scenario1(self, scenario1_model):
        """Test follow-up weight parent list."""
        assert scenario1_model.parents("follow_up_weight") == ["sex", "baseline_weight", "diet"]

    def test_follow_up_parents_scenario2(self, scenario2_model):
        """Test follow-up weight parents include physical activity in scenario2."""
        assert scenario2_model.parents("follow_up_weight") == [
            "sex",
            "physical_activity",
            "baseline_weight",
            "diet",
        ]

    def test_parents_precede_children(self, scenario2_model):
        """Test every parent index is smaller than its child's index."""
        for var in scenario2_model.variables:
            assert all(p < var.index for p in var.parent_indices)

    def test_sex_is_exogenous(self, scenario1_model):
        """Test sex has no parents."""
        assert scenario1_model.variable("sex").is_exogenous
        assert scenario1_model.parents("sex") == []

    def test_pass_through_not_stochastic(self, scenario1_model):
        """Test hall and diet carry no noise."""
        assert not scenario1_model.variable("hall").is_stochastic
        assert not scenario1_model.variable("diet").is_stochastic
        assert scenario1_model.variable("baseline_weight").is_stochastic

    def test_equation_lookup(self, scenario1_model):
        """Test the equation registered for each kind is returned."""
        assert scenario1_model.equation("sex") is binary_contrast
        assert scenario1_model.equation("diet") is pass_through
        assert scenario1_model.equation("follow_up_weight") is linear_gaussian

    def test_unknown_variable_raises(self, scenario1_model):
        """Test asking for an undeclared variable raises KeyError."""
        with pytest.raises(KeyError):
            scenario1_model.parents("physical_activity")

    def test_to_networkx_carries_weights(self, scenario1_model):
        """Test DiGraph export keeps path coefficients."""
        graph = scenario1_model.to_networkx()
        assert graph.number_of_nodes() == 5
        assert graph["baseline_weight"]["follow_up_weight"]["weight"] == 0.5
        assert graph["sex"]["hall"]["weight"] == 1.0

    def test_len(self, scenario1_model, scenario2_model):
        assert len(scenario1_model) == 5
        assert len(scenario2_model) == 6


class TestEquations:
    """Test structural equations."""

    def test_binary_contrast_maps_to_plus_minus_one(self):
        """Test {0, 1} noise becomes {-1, +1}."""
        noise = np.array([0.0, 1.0, 1.0, 0.0])
        result = binary_contrast(np.empty((4, 0)), np.empty(0), noise)
        np.testing.assert_array_equal(result, [-1.0, 1.0, 1.0, -1.0])

    def test_pass_through_ignores_noise(self):
        """Test pass-through is a deterministic weighted copy."""
        parents = np.array([[1.0], [-1.0]])
        result = pass_through(parents, np.array([1.0]), np.array([5.0, 5.0]))
        np.testing.assert_array_equal(result, [1.0, -1.0])

    def test_linear_gaussian_adds_noise(self):
        """Test linear gaussian is weighted parents plus noise."""
        parents = np.array([[1.0, 2.0], [0.0, -1.0]])
        result = linear_gaussian(parents, np.array([0.5, 0.25]), np.array([0.1, -0.1]))
        np.testing.assert_allclose(result, [1.1, -0.35])

    def test_all_kinds_registered(self):
        assert set(EQUATIONS) == set(VariableKind)


class TestMalformedDeclarations:
    """Test StructuralModel rejects malformed declarations."""

    def test_cycle_rejected(self, scenario1_config):
        """Test a parent cycle raises SamplingError."""
        config = replace(
            scenario1_config,
            variables=[
                VariableSpec("sex", VariableKind.BINARY_CONTRAST),
                VariableSpec("a", VariableKind.LINEAR_GAUSSIAN, ("sex", "b")),
                VariableSpec("b", VariableKind.LINEAR_GAUSSIAN, ("a",)),
            ],
            path_coefficients={("sex", "a"): 0.1, ("b", "a"): 0.1, ("a", "b"): 0.1},
        )
        with pytest.raises(SamplingError, match="cycle"):
            StructuralModel(config)

    def test_duplicate_names_rejected(self, scenario1_config):
        """Test duplicate variable names raise SamplingError."""
        variables = list(scenario1_config.variables) + [scenario1_config.variables[1]]
        with pytest.raises(SamplingError, match="Duplicate"):
            StructuralModel(replace(scenario1_config, variables=variables))

    def test_undeclared_parent_rejected(self, scenario1_config):
        """Test a parent that is never declared raises SamplingError."""
        variables = [v for v in scenario1_config.variables if v.name != "hall"]
        with pytest.raises(SamplingError, match="undeclared"):
            StructuralModel(replace(scenario1_config, variables=variables))

    def test_parent_declared_late_rejected(self, scenario1_config):
        """Test a child listed before its parent raises SamplingError."""
        variables = list(scenario1_config.variables)
        variables[1], variables[4] = variables[4], variables[1]
        with pytest.raises(SamplingError, match="before its parents"):
            StructuralModel(replace(scenario1_config, variables=variables))

    def test_missing_coefficient_rejected(self, scenario1_config):
        """Test an edge without a path coefficient raises SamplingError."""
        coefficients = dict(scenario1_config.path_coefficients)
        del coefficients[("diet", "follow_up_weight")]
        with pytest.raises(SamplingError, match="No path coefficient"):
            StructuralModel(replace(scenario1_config, path_coefficients=coefficients))

    def test_unused_coefficient_rejected(self, scenario1_config):
        """Test a coefficient on an undeclared edge raises SamplingError."""
        coefficients = dict(scenario1_config.path_coefficients)
        coefficients[("hall", "baseline_weight")] = 0.1
        with pytest.raises(SamplingError, match="without a matching edge"):
            StructuralModel(replace(scenario1_config, path_coefficients=coefficients))

    def test_binary_with_parents_rejected(self, scenario1_config):
        """Test a binary contrast must be exogenous."""
        variables = list(scenario1_config.variables)
        variables[2] = VariableSpec("hall", VariableKind.BINARY_CONTRAST, ("sex",))
        with pytest.raises(SamplingError, match="exogenous"):
            StructuralModel(replace(scenario1_config, variables=variables))

    def test_error_details_include_scenario(self, scenario1_config):
        """Test SamplingError carries the scenario in its details."""
        coefficients = dict(scenario1_config.path_coefficients)
        del coefficients[("sex", "hall")]
        with pytest.raises(SamplingError) as exc_info:
            StructuralModel(replace(scenario1_config, path_coefficients=coefficients))
        assert exc_info.value.to_dict()["details"]["scenario"] == "scenario1"
