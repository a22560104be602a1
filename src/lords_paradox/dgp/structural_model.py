"""
Structural Model.

Declares the causal skeleton of one scenario as an ordered arena of
variables with index-based parent lists, plus the structural equation
used to generate each variable.

Every equation has the same signature:

    f(parent_values, coefficients, noise) -> values

where ``parent_values`` is (n, k), ``coefficients`` is (k,) and ``noise``
is (n,). The sampler is responsible for scaling the noise.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import networkx as nx
import numpy as np

from ..config import ScenarioConfig, VariableKind
from ..exceptions import SamplingError

logger = logging.getLogger(__name__)

Array = np.ndarray
EquationFn = Callable[[Array, Array, Array], Array]


# =============================================================================
# STRUCTURAL EQUATIONS
# =============================================================================


def binary_contrast(parent_values: Array, coefficients: Array, noise: Array) -> Array:
    """Map a fair-coin draw in {0, 1} to the zero-mean contrast {-1, +1}."""
    return 2.0 * noise - 1.0


def pass_through(parent_values: Array, coefficients: Array, noise: Array) -> Array:
    """Deterministic weighted copy of the parents."""
    return parent_values @ coefficients


def linear_gaussian(parent_values: Array, coefficients: Array, noise: Array) -> Array:
    """Weighted sum of standardized parents plus (pre-scaled) noise."""
    return parent_values @ coefficients + noise


EQUATIONS: Dict[VariableKind, EquationFn] = {
    VariableKind.BINARY_CONTRAST: binary_contrast,
    VariableKind.PASS_THROUGH: pass_through,
    VariableKind.LINEAR_GAUSSIAN: linear_gaussian,
}


# =============================================================================
# MODEL
# =============================================================================


@dataclass(frozen=True)
class Variable:
    """A structural variable with index-based parents."""

    index: int
    name: str
    kind: VariableKind
    parent_indices: Tuple[int, ...]
    coefficients: Tuple[float, ...]

    @property
    def is_exogenous(self) -> bool:
        return not self.parent_indices

    @property
    def is_stochastic(self) -> bool:
        return self.kind is not VariableKind.PASS_THROUGH


class StructuralModel:
    """
    Causal skeleton and structural equations for one scenario.

    Variables are stored in declaration order, which must already be a
    topological order. Construction fails with SamplingError on unknown
    parents, duplicate names, parents declared after their children, or
    cycles.

    Example:
        >>> model = StructuralModel(get_scenario_config(Scenario.NO_MO_CONFOUNDING))
        >>> model.parents("follow_up_weight")
        ['sex', 'baseline_weight', 'diet']
    """

    def __init__(self, config: ScenarioConfig):
        self.config = config
        self.scenario = config.scenario
        self._index: Dict[str, int] = {}
        self._variables: List[Variable] = []
        self._build()

    def _build(self) -> None:
        specs = self.config.variables
        names = [spec.name for spec in specs]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise SamplingError(
                f"Duplicate variable names: {duplicates}",
                details={"scenario": self.scenario.value},
            )

        declared = set(names)
        for spec in specs:
            missing = [p for p in spec.parents if p not in declared]
            if missing:
                raise SamplingError(
                    f"Variable '{spec.name}' has undeclared parents: {missing}",
                    details={"scenario": self.scenario.value, "variable": spec.name},
                )

        self._check_acyclic(specs)

        for position, spec in enumerate(specs):
            late = [p for p in spec.parents if p not in self._index]
            if late:
                raise SamplingError(
                    f"Variable '{spec.name}' is declared before its parents: {late}",
                    details={"scenario": self.scenario.value, "variable": spec.name},
                )
            if spec.kind is VariableKind.BINARY_CONTRAST and spec.parents:
                raise SamplingError(f"Binary contrast '{spec.name}' must be exogenous")
            if spec.kind is not VariableKind.BINARY_CONTRAST and not spec.parents:
                raise SamplingError(f"Variable '{spec.name}' of kind {spec.kind.value} needs parents")

            coefficients = []
            for parent in spec.parents:
                key = (parent, spec.name)
                if key not in self.config.path_coefficients:
                    raise SamplingError(
                        f"No path coefficient for edge {parent} -> {spec.name}",
                        details={"scenario": self.scenario.value},
                    )
                coefficients.append(float(self.config.path_coefficients[key]))

            self._index[spec.name] = position
            self._variables.append(
                Variable(
                    index=position,
                    name=spec.name,
                    kind=spec.kind,
                    parent_indices=tuple(self._index[p] for p in spec.parents),
                    coefficients=tuple(coefficients),
                )
            )

        unused = set(self.config.path_coefficients) - set(self.edges())
        if unused:
            raise SamplingError(
                f"Path coefficients without a matching edge: {sorted(unused)}",
                details={"scenario": self.scenario.value},
            )

        logger.debug(
            f"Built structural model for {self.scenario.value}: "
            f"{len(self._variables)} variables, {len(self.edges())} edges"
        )

    def _check_acyclic(self, specs) -> None:
        graph = nx.DiGraph()
        graph.add_nodes_from(spec.name for spec in specs)
        graph.add_edges_from((p, spec.name) for spec in specs for p in spec.parents)
        if not nx.is_directed_acyclic_graph(graph):
            cycle = nx.find_cycle(graph)
            raise SamplingError(
                f"Structural model contains a cycle: {cycle}",
                details={"scenario": self.scenario.value},
            )

    # -------------------------------------------------------------------------
    # Public contract
    # -------------------------------------------------------------------------

    def parents(self, variable: str) -> List[str]:
        """Ordered parent names of a variable."""
        node = self.variable(variable)
        return [self._variables[i].name for i in node.parent_indices]

    def equation(self, variable: str) -> EquationFn:
        """Structural equation used to generate a variable."""
        return EQUATIONS[self.variable(variable).kind]

    def generation_order(self) -> List[str]:
        """Variable names in topological (declaration) order."""
        return [v.name for v in self._variables]

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def variable(self, name: str) -> Variable:
        try:
            return self._variables[self._index[name]]
        except KeyError:
            raise KeyError(f"Unknown variable '{name}' in {self.scenario.value}") from None

    @property
    def variables(self) -> List[Variable]:
        return list(self._variables)

    def index_of(self, name: str) -> int:
        return self.variable(name).index

    def edges(self) -> List[Tuple[str, str]]:
        return [
            (self._variables[p].name, v.name) for v in self._variables for p in v.parent_indices
        ]

    def coefficient(self, source: str, target: str) -> float:
        return float(self.config.path_coefficients[(source, target)])

    def to_networkx(self) -> nx.DiGraph:
        """Export the skeleton as a DiGraph with path weights on the edges."""
        graph = nx.DiGraph()
        for v in self._variables:
            graph.add_node(v.name, kind=v.kind.value)
        for source, target in self.edges():
            graph.add_edge(source, target, weight=self.coefficient(source, target))
        return graph

    def __len__(self) -> int:
        return len(self._variables)

    def __repr__(self) -> str:
        return f"StructuralModel({self.scenario.value}, variables={self.generation_order()})"
