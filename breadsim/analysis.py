"""
DC operating-point analysis.

Linear circuits are solved once. Circuits with LEDs or logic gates are
iterated: each pass re-linearises the nonlinear models at the previous
voltages and re-solves, until node voltages and model states settle.
"""

import hashlib
import logging
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from pydantic import BaseModel

from .config import get_settings
from .errors import BreadsimError
from .graph import CircuitGraph, GateInputElement, SupplyElement, SwitchElement, element_key
from .mna import POWER_CURRENT_KEY, solve_circuit
from .models import create_component_models

logger = logging.getLogger(__name__)


class AnalysisStatus(str, Enum):
    INITIAL = "initial"
    LINEAR_SOLVED = "linear-solved"
    ITERATING = "iterating"
    CONVERGED = "converged"
    FAILED = "failed"


@dataclass(frozen=True)
class AnalysisResult:
    success: bool
    status: AnalysisStatus
    voltages: Mapping[str, float] = field(default_factory=dict)
    model_states: Mapping[str, dict] = field(default_factory=dict)
    models: Mapping[str, object] = field(default_factory=dict)
    iterations: int = 0
    final_delta: float = 0.0
    topology_hash: str = ""
    error: Optional[str] = None

    @property
    def power_current(self) -> float:
        return self.voltages.get(POWER_CURRENT_KEY, 0.0)


def topology_hash(graph: CircuitGraph, components: Mapping) -> str:
    """
    Fingerprint of the circuit's shape.

    Covers node ids, edge signatures and the kinds of the components on the
    edges. Property values (switch positions, resistances) are not included.
    """
    digest = hashlib.sha256()
    for node_id in sorted(graph.nodes):
        digest.update(f"n:{node_id}\n".encode("utf-8"))
    signatures = sorted(
        f"{edge.source}|{edge.target}|{edge.kind.value}|{element_key(edge.element, edge.component_id or edge.connection_id)}"
        for edge in graph.edges.values()
    )
    for signature in signatures:
        digest.update(f"e:{signature}\n".encode("utf-8"))
    kinds = sorted(
        components[edge.component_id].kind.value
        for edge in graph.edges.values()
        if edge.component_id in components
    )
    for kind in kinds:
        digest.update(f"c:{kind}\n".encode("utf-8"))
    return digest.hexdigest()


def _max_delta(previous, current) -> float:
    deltas = [abs(value - previous.get(node_id, 0.0))
              for node_id, value in current.items() if node_id != POWER_CURRENT_KEY]
    return max(deltas, default=0.0)


class DCAnalyzer:
    """
    Iterative DC solver for one circuit graph.

    Args:
        graph: Pruned circuit graph to analyse
        components: Map of component id -> Component
        settings: Optional Settings
    """

    def __init__(self, graph: CircuitGraph, components: Mapping, settings=None):
        self.graph = graph
        self.components = components
        self.settings = settings or get_settings()
        self.status = AnalysisStatus.INITIAL

    def _set_status(self, status):
        logger.debug("DC analysis %s -> %s", self.status.value, status.value)
        self.status = status

    def _result(self, success, voltages, models, iterations, delta, digest, error=None):
        states = {model_id: model.state() for model_id, model in models.items() if not model.is_linear}
        return AnalysisResult(
            success=success,
            status=self.status,
            voltages=MappingProxyType(dict(voltages)),
            model_states=MappingProxyType(states),
            models=MappingProxyType(dict(models)),
            iterations=iterations,
            final_delta=delta,
            topology_hash=digest,
            error=error,
        )

    def analyse(self, previous: Optional[AnalysisResult] = None) -> AnalysisResult:
        """
        Run the analysis.

        Args:
            previous: Result of an earlier run; used as a warm start when it
                succeeded on a circuit with the same topology hash

        Returns:
            AnalysisResult: Never raises for numerical failures; those come
            back with ``success=False`` and ``error`` set
        """
        self.status = AnalysisStatus.INITIAL
        settings = self.settings
        models = create_component_models(self.graph, self.components, settings)
        digest = topology_hash(self.graph, self.components)
        nonlinear = [model_id for model_id, model in models.items() if not model.is_linear]
        voltages: Dict[str, float] = {}
        iteration = 0
        delta = float("inf")

        try:
            if not nonlinear:
                voltages = solve_circuit(self.graph, models, settings)
                self._set_status(AnalysisStatus.LINEAR_SOLVED)
                self._set_status(AnalysisStatus.CONVERGED)
                return self._result(True, voltages, models, 1, 0.0, digest)

            warm = previous is not None and previous.success and previous.topology_hash == digest
            if warm:
                logger.debug("Warm starting from previous result")
                voltages = dict(previous.voltages)
                for model_id in nonlinear:
                    state = previous.model_states.get(model_id)
                    if state is not None:
                        models[model_id] = models[model_id].restored(state, settings)
            else:
                voltages = solve_circuit(self.graph, models, settings)
                self._set_status(AnalysisStatus.LINEAR_SOLVED)

            self._set_status(AnalysisStatus.ITERATING)
            while iteration < settings.max_iterations:
                previous_voltages = voltages
                models_converged = True
                for model_id in nonlinear:
                    models[model_id], converged = models[model_id].updated(previous_voltages, settings)
                    models_converged = models_converged and converged

                voltages = solve_circuit(self.graph, models, settings)
                iteration += 1
                delta = _max_delta(previous_voltages, voltages)
                logger.debug("Iteration %d: max delta %.3e, models converged: %s", iteration, delta, models_converged)

                if delta < settings.convergence_threshold and models_converged:
                    self._set_status(AnalysisStatus.CONVERGED)
                    return self._result(True, voltages, models, iteration, delta, digest)
        except (BreadsimError, ArithmeticError) as e:
            logger.warning("DC analysis failed: %s", e)
            self._set_status(AnalysisStatus.FAILED)
            return self._result(False, voltages, models, iteration, delta, digest,
                                error=f"Analysis error: {e}")

        self._set_status(AnalysisStatus.FAILED)
        logger.warning("DC analysis did not converge after %d iterations", iteration)
        return self._result(False, voltages, models, iteration, delta, digest,
                            error=f"Failed to converge after {settings.max_iterations} iterations")


def perform_dc_analysis(graph: CircuitGraph, components: Mapping,
                        previous: Optional[AnalysisResult] = None, settings=None) -> AnalysisResult:
    return DCAnalyzer(graph, components, settings).analyse(previous)


class ElectricalValue(BaseModel):
    voltage: float
    current: float


def component_electrical_values(graph: CircuitGraph, result: AnalysisResult) -> Dict[str, Dict[int, ElectricalValue]]:
    """
    Per-component voltage and current from a successful analysis.

    Returns:
        dict: component id -> {sub-index -> ElectricalValue}. Switches are
        indexed by switch, IC gates by gate, everything else uses index 0.
        Empty when the analysis failed.
    """
    if not result.success:
        return {}

    voltages = result.voltages
    values: Dict[str, Dict[int, ElectricalValue]] = {}
    for edge in graph.component_edges():
        voltage = voltages.get(edge.source, 0.0) - voltages.get(edge.target, 0.0)
        model = result.models.get(edge.id)
        element = edge.element
        entry = values.setdefault(edge.component_id, {})

        if isinstance(element, SupplyElement):
            entry[0] = ElectricalValue(voltage=voltage, current=result.power_current)
        elif isinstance(element, GateInputElement):
            entry[element.gate_index] = ElectricalValue(voltage=voltage, current=0.0)
        elif model is None:
            logger.warning("No model for edge %s", edge.id)
        elif isinstance(element, SwitchElement):
            entry[element.switch_index] = ElectricalValue(voltage=voltage, current=model.current(voltages))
        else:
            entry[0] = ElectricalValue(voltage=voltage, current=model.current(voltages))
    return values
