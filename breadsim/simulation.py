"""
End-to-end simulation of an editor snapshot.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional

from .analysis import AnalysisResult, ElectricalValue, component_electrical_values, perform_dc_analysis
from .components import ComponentKind, find_component
from .config import get_settings
from .graph import CircuitGraph, build_circuit_graph, find_connected_circuit, remove_disconnected_paths
from .power import PowerDistribution, find_power_distribution
from .validation import Severity, ValidationIssue, ValidationResult, validate_circuit

logger = logging.getLogger(__name__)

NO_CIRCUIT_MESSAGE = "No valid circuit detected"


@dataclass(frozen=True)
class SimulationReport:
    distribution: PowerDistribution
    graph: Optional[CircuitGraph] = None
    circuit: Optional[CircuitGraph] = None
    validation: ValidationResult = field(default_factory=ValidationResult)
    analysis: Optional[AnalysisResult] = None
    values: Dict[str, Dict[int, ElectricalValue]] = field(default_factory=dict)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.analysis is not None and self.analysis.success

    @property
    def voltages(self) -> Mapping[str, float]:
        return self.analysis.voltages if self.analysis is not None else {}


class CircuitSimulator:
    """
    Runs the full pipeline: power distribution, graph, validation, pruning,
    DC analysis and per-component values.
    """

    def __init__(self, settings=None):
        self.settings = settings or get_settings()

    def _missing_parts(self, components):
        missing = []
        if find_component(components, ComponentKind.POWER_SUPPLY) is None:
            missing.append("power supply")
        if find_component(components, ComponentKind.BREADBOARD) is None:
            missing.append("breadboard")
        return missing

    def run(self, components: Mapping, connections: Mapping,
            previous: Optional[SimulationReport] = None) -> SimulationReport:
        """
        Simulate one snapshot.

        Args:
            components: Map of component id -> Component
            connections: Map of connection id -> Connection
            previous: Earlier report whose analysis may warm start this run

        Returns:
            SimulationReport: ``analysis`` is None whenever the pipeline
            stopped before the DC analysis; ``error`` says why
        """
        distribution = find_power_distribution(components, connections, self.settings)

        missing = self._missing_parts(components)
        if missing and components:
            message = f"Missing {' and '.join(missing)}"
            issue = ValidationIssue(
                id="missing-" + "-".join(m.replace(" ", "-") for m in missing),
                severity=Severity.ERROR,
                message=message,
                suggested_fix=f"Add a {' and a '.join(missing)} to the workspace.",
            )
            logger.warning(message)
            return SimulationReport(distribution, validation=ValidationResult(issues=[issue]), error=message)

        if not distribution.powered_rails or not distribution.grounded_rails:
            logger.info(NO_CIRCUIT_MESSAGE)
            return SimulationReport(distribution, error=NO_CIRCUIT_MESSAGE)

        graph = build_circuit_graph(components, connections, distribution)
        validation = validate_circuit(graph, distribution.power_node, distribution.ground_node)
        if validation.has_errors:
            return SimulationReport(distribution, graph, validation=validation,
                                    error=validation.errors[0].message)

        circuit = remove_disconnected_paths(find_connected_circuit(graph, distribution.power_node), distribution)
        previous_analysis = previous.analysis if previous is not None else None
        analysis = perform_dc_analysis(circuit, components, previous_analysis, self.settings)
        values = component_electrical_values(circuit, analysis)
        return SimulationReport(distribution, graph, circuit, validation, analysis, values, analysis.error)
