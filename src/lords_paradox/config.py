"""
Lord's Paradox Simulation Configuration

Centralized configuration for the two simulation scenarios:
- Variable declarations and causal ordering
- Reference path coefficients (standardized)
- Reporting-unit rescaling
- g-formula settings for the mediator-outcome confounding scenario
- Run settings (sample sizes, replicates, seed, outputs)
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# ENUMS
# =============================================================================


class Scenario(str, Enum):
    """Simulation scenarios (structural model variants)."""

    NO_MO_CONFOUNDING = "scenario1"
    WITH_MO_CONFOUNDING = "scenario2"

    @property
    def short_code(self) -> str:
        """Prefix used in model identifiers (s1, s2)."""
        return "s" + self.value[-1]

    @classmethod
    def parse(cls, value: str) -> "Scenario":
        """Resolve a scenario from its value or short code."""
        for scenario in cls:
            if value in (scenario.value, scenario.short_code, scenario.name.lower()):
                return scenario
        raise ValueError(f"Unknown scenario: {value}. Available: {SCENARIOS}")


class VariableKind(str, Enum):
    """How a variable is generated from its parents."""

    BINARY_CONTRAST = "binary_contrast"  # fair coin mapped to -1/+1
    PASS_THROUGH = "pass_through"  # weighted parents, no noise
    LINEAR_GAUSSIAN = "linear_gaussian"  # weighted parents + scaled N(0, 1)


SCENARIOS = [s.value for s in Scenario]


# =============================================================================
# STRUCTURAL DECLARATIONS
# =============================================================================


@dataclass(frozen=True)
class VariableSpec:
    """Declaration of one structural variable."""

    name: str
    kind: VariableKind
    parents: Tuple[str, ...] = ()
    description: str = ""


@dataclass(frozen=True)
class AffineTransform:
    """Reporting-unit rescaling: value * scale + offset."""

    scale: float = 1.0
    offset: float = 0.0

    def apply(self, values):
        return values * self.scale + self.offset


@dataclass(frozen=True)
class GFormulaSpec:
    """
    Settings for the g-formula estimator.

    The post-exposure confounders and the value at which the mediator is
    fixed are scenario-specific, so they live here rather than in the
    estimator.
    """

    exposure: str = "sex"
    outcome: str = "follow_up_weight"
    mediator: str = "baseline_weight"
    mediator_value: float = 80.0
    post_exposure_confounders: Tuple[str, ...] = ("physical_activity",)
    active_level: str = "Male"
    reference_level: str = "Female"


EXPOSURE = "sex"
BASELINE_OUTCOME = "baseline_weight"
FOLLOW_UP_OUTCOME = "follow_up_weight"
CHANGE_SCORE = "weight_change"

# Exposure coding: standardized contrast value -> reporting label
EXPOSURE_LABELS: Dict[int, str] = {-1: "Female", 1: "Male"}


@dataclass
class ScenarioConfig:
    """
    Full declaration of one scenario's data generating process.

    Variables are listed in generation order; every parent must appear
    before its child.
    """

    scenario: Scenario
    variables: List[VariableSpec]
    path_coefficients: Dict[Tuple[str, str], float]
    derived: Dict[str, Dict[str, float]] = field(default_factory=dict)
    reporting_units: Dict[str, AffineTransform] = field(default_factory=dict)
    exposure: str = EXPOSURE
    exposure_labels: Dict[int, str] = field(default_factory=lambda: dict(EXPOSURE_LABELS))
    gformula: Optional[GFormulaSpec] = None
    description: str = ""

    @property
    def variable_names(self) -> List[str]:
        return [v.name for v in self.variables]

    @property
    def column_names(self) -> List[str]:
        """Structural variables followed by derived columns."""
        return self.variable_names + list(self.derived)


_WEIGHT_UNITS = AffineTransform(scale=10.0, offset=80.0)
_CHANGE_UNITS = AffineTransform(scale=10.0, offset=0.0)


SCENARIO_CONFIGS: Dict[Scenario, ScenarioConfig] = {
    Scenario.NO_MO_CONFOUNDING: ScenarioConfig(
        scenario=Scenario.NO_MO_CONFOUNDING,
        variables=[
            VariableSpec("sex", VariableKind.BINARY_CONTRAST, description="Sex (X0)"),
            VariableSpec(
                "baseline_weight",
                VariableKind.LINEAR_GAUSSIAN,
                ("sex",),
                description="Baseline weight (Y0)",
            ),
            VariableSpec("hall", VariableKind.PASS_THROUGH, ("sex",), description="Hall (X0A)"),
            VariableSpec("diet", VariableKind.PASS_THROUGH, ("hall",), description="Diet (X0B)"),
            VariableSpec(
                "follow_up_weight",
                VariableKind.LINEAR_GAUSSIAN,
                ("sex", "baseline_weight", "diet"),
                description="Follow-up weight (Y1)",
            ),
        ],
        path_coefficients={
            ("sex", "baseline_weight"): 0.5,
            ("sex", "hall"): 1.0,
            ("hall", "diet"): 1.0,
            ("sex", "follow_up_weight"): 0.1,
            ("baseline_weight", "follow_up_weight"): 0.5,
            ("diet", "follow_up_weight"): 0.15,
        },
        derived={CHANGE_SCORE: {FOLLOW_UP_OUTCOME: 1.0, BASELINE_OUTCOME: -1.0}},
        reporting_units={
            BASELINE_OUTCOME: _WEIGHT_UNITS,
            FOLLOW_UP_OUTCOME: _WEIGHT_UNITS,
            CHANGE_SCORE: _CHANGE_UNITS,
        },
        description="Without mediator-outcome confounding",
    ),
    Scenario.WITH_MO_CONFOUNDING: ScenarioConfig(
        scenario=Scenario.WITH_MO_CONFOUNDING,
        variables=[
            VariableSpec("sex", VariableKind.BINARY_CONTRAST, description="Sex (X0)"),
            VariableSpec(
                "physical_activity",
                VariableKind.LINEAR_GAUSSIAN,
                ("sex",),
                description="Physical activity (M0)",
            ),
            VariableSpec(
                "baseline_weight",
                VariableKind.LINEAR_GAUSSIAN,
                ("sex", "physical_activity"),
                description="Baseline weight (Y0)",
            ),
            VariableSpec("hall", VariableKind.PASS_THROUGH, ("sex",), description="Hall (X0A)"),
            VariableSpec("diet", VariableKind.PASS_THROUGH, ("hall",), description="Diet (X0B)"),
            VariableSpec(
                "follow_up_weight",
                VariableKind.LINEAR_GAUSSIAN,
                ("sex", "physical_activity", "baseline_weight", "diet"),
                description="Follow-up weight (Y1)",
            ),
        ],
        path_coefficients={
            ("sex", "physical_activity"): 0.5,
            ("sex", "baseline_weight"): 0.7,
            ("physical_activity", "baseline_weight"): -0.4,
            ("sex", "hall"): 1.0,
            ("hall", "diet"): 1.0,
            ("sex", "follow_up_weight"): 0.2,
            ("physical_activity", "follow_up_weight"): -0.2,
            ("baseline_weight", "follow_up_weight"): 0.5,
            ("diet", "follow_up_weight"): 0.15,
        },
        derived={CHANGE_SCORE: {FOLLOW_UP_OUTCOME: 1.0, BASELINE_OUTCOME: -1.0}},
        reporting_units={
            BASELINE_OUTCOME: _WEIGHT_UNITS,
            FOLLOW_UP_OUTCOME: _WEIGHT_UNITS,
            "physical_activity": AffineTransform(scale=10.0, offset=30.0),
            CHANGE_SCORE: _CHANGE_UNITS,
        },
        gformula=GFormulaSpec(),
        description="With mediator-outcome confounding",
    ),
}


def get_scenario_config(scenario: Scenario) -> ScenarioConfig:
    """Get the declaration for a specific scenario."""
    return SCENARIO_CONFIGS[Scenario(scenario)]


# =============================================================================
# RUN SETTINGS
# =============================================================================


class SimulationSettings(BaseModel):
    """Configuration surface for a full simulation run."""

    scenarios: List[Scenario] = Field(default_factory=lambda: list(Scenario))
    n_per_replicate: int = Field(default=1000, ge=2)
    n_replicates: int = Field(default=100, ge=0)
    seed: int = 1

    # Illustrative dataset and plots
    plot_sample_size: int = Field(default=10000, ge=2)
    make_plots: bool = True

    # Outputs
    output_dir: Path = Path(".")
    results_filename: str = "lords_paradox_simulation_results.csv"

    # Summary
    decimals: int = Field(default=2, ge=0)
    min_valid: int = Field(default=2, ge=1)

    # Execution
    use_process_pool: bool = False
    max_workers: Optional[int] = Field(default=None, ge=1)
    show_progress: bool = False

    @field_validator("scenarios")
    @classmethod
    def validate_scenarios(cls, v: List[Scenario]) -> List[Scenario]:
        """Ensure at least one scenario and no duplicates."""
        if not v:
            raise ValueError("At least one scenario must be active.")
        if len(set(v)) != len(v):
            raise ValueError(f"Duplicate scenarios: {[s.value for s in v]}")
        return v

    def dataset_path(self, scenario: Scenario) -> Path:
        return self.output_dir / f"{scenario.value}.csv"

    def plot_path(self, scenario: Scenario) -> Path:
        return self.output_dir / f"Lord_plot_{scenario.value}.png"

    @property
    def results_path(self) -> Path:
        return self.output_dir / self.results_filename
