"""
Electrical models for circuit graph edges and the MNA stamps they apply.

A model is the numeric behaviour of one edge (or one logic gate) during a
single analysis. Linear models are built once per analysis; nonlinear models
are replaced by a re-linearised copy on every iteration.
"""

import logging
import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Mapping, Optional, Tuple

from .components import GateType
from .config import get_settings
from .graph import (
    CircuitEdge,
    CircuitGraph,
    GateInputElement,
    LEDElement,
    ResistorElement,
    SupplyElement,
    SwitchElement,
    WireElement,
)
from .power import GROUND_NODE

logger = logging.getLogger(__name__)


class ModelType(str, Enum):
    WIRE = "wire"
    RESISTOR = "resistor"
    SWITCH = "dip-switch"
    LED = "led"
    VOLTAGE_SOURCE = "independent-voltage-source"
    LOGIC_GATE = "logic-gate"
    GATE_INPUT = "gate-input"


def _voltage_across(edge, voltages):
    return voltages.get(edge.source, 0.0) - voltages.get(edge.target, 0.0)


@dataclass(frozen=True)
class ConductanceModel:
    """Fixed conductance between the two ends of an edge (wire, resistor, switch)."""
    model_id: str
    model_type: ModelType
    edge: CircuitEdge
    conductance: float
    is_linear = True

    def current(self, voltages) -> float:
        return self.conductance * _voltage_across(self.edge, voltages)


@dataclass(frozen=True)
class VoltageSourceModel:
    """Ideal DC source holding ``edge.source`` at ``voltage`` above ``edge.target``."""
    model_id: str
    edge: CircuitEdge
    voltage: float
    model_type = ModelType.VOLTAGE_SOURCE
    is_linear = True

    @property
    def positive_node(self):
        return self.edge.source

    @property
    def negative_node(self):
        return self.edge.target


@dataclass(frozen=True)
class GateInputModel:
    """High-impedance logic input; carries no stamp."""
    model_id: str
    edge: CircuitEdge
    model_type = ModelType.GATE_INPUT
    is_linear = True

    def current(self, voltages) -> float:
        return 0.0


@dataclass(frozen=True)
class LEDModel:
    """
    Shockley diode linearised around ``last_voltage``.

    The companion circuit is a conductance ``G = dI/dV`` in parallel with a
    current source ``Ieq = I - G*V``, both evaluated at ``last_voltage``.
    """
    model_id: str
    edge: CircuitEdge
    saturation_current: float
    emission_voltage: float
    last_voltage: float
    conductance: float
    equivalent_current: float
    step_limit: float
    model_type = ModelType.LED
    is_linear = False

    @classmethod
    def linearised(cls, model_id, edge, voltage, settings):
        emission_voltage = settings.led_ideality * settings.thermal_voltage
        g, ieq = linearise_diode(voltage, settings.led_saturation_current, emission_voltage)
        return cls(
            model_id=model_id,
            edge=edge,
            saturation_current=settings.led_saturation_current,
            emission_voltage=emission_voltage,
            last_voltage=voltage,
            conductance=g,
            equivalent_current=ieq,
            step_limit=settings.led_step_limit * emission_voltage,
        )

    def updated(self, voltages, settings=None) -> Tuple["LEDModel", bool]:
        """
        Re-linearise at the solved voltage, limiting the step size.

        Returns:
            tuple: (new model, whether the old linearisation point was already
            within tolerance of the solved voltage)
        """
        settings = settings or get_settings()
        vd = _voltage_across(self.edge, voltages)
        converged = abs(self.last_voltage - vd) < settings.convergence_threshold
        step = max(-self.step_limit, min(self.step_limit, vd - self.last_voltage))
        voltage = self.last_voltage + step
        g, ieq = linearise_diode(voltage, self.saturation_current, self.emission_voltage)
        return replace(self, last_voltage=voltage, conductance=g, equivalent_current=ieq), converged

    def current(self, voltages) -> float:
        """Diode current at the solved voltage, from the exponential law."""
        vd = _voltage_across(self.edge, voltages)
        try:
            return self.saturation_current * (math.exp(vd / self.emission_voltage) - 1)
        except OverflowError:
            return self.conductance * vd + self.equivalent_current

    def state(self):
        return {"last_voltage": self.last_voltage}

    def restored(self, state, settings=None):
        """Copy re-linearised at a saved ``last_voltage``."""
        settings = settings or get_settings()
        return LEDModel.linearised(self.model_id, self.edge, state["last_voltage"], settings)


def linearise_diode(voltage, saturation_current, emission_voltage):
    """
    Newton companion parameters of a diode at ``voltage``.

    Raises:
        OverflowError: If the exponential leaves the float range
    """
    exp_term = math.exp(voltage / emission_voltage)
    current = saturation_current * (exp_term - 1)
    conductance = saturation_current / emission_voltage * exp_term
    return conductance, current - conductance * voltage


def evaluate_logic_gate(gate_type, input_voltages, last_output_voltage, settings=None) -> float:
    """
    Output voltage of a gate for the given input voltages.

    Inputs below the low threshold read as 0 and above the high threshold as
    1. Inputs in between take the state of the previous output.
    """
    settings = settings or get_settings()
    previous_high = last_output_voltage > settings.logic_output_high / 2

    def level(voltage):
        if voltage < settings.logic_low_threshold:
            return False
        if voltage > settings.logic_high_threshold:
            return True
        return previous_high

    states = [level(v) for v in input_voltages]
    gate_type = GateType(gate_type)
    if gate_type is GateType.AND:
        output = all(states)
    elif gate_type is GateType.OR:
        output = any(states)
    elif gate_type is GateType.NAND:
        output = not all(states)
    elif gate_type is GateType.NOR:
        output = not any(states)
    elif gate_type in (GateType.XOR, GateType.MYSTERY):
        output = sum(states) % 2 == 1
    elif gate_type is GateType.NOT:
        output = not states[0] if states else True
    else:
        raise TypeError(f"Unknown gate type {gate_type!r}")
    return settings.logic_output_high if output else settings.logic_output_low


@dataclass(frozen=True)
class LogicGateModel:
    """One gate of an IC, driving ``output_node`` to a logic level through an ideal source."""
    model_id: str
    component_id: str
    gate_index: int
    gate_type: GateType
    input_nodes: Tuple[str, ...]
    output_node: str
    last_output_voltage: float = 0.0
    last_input_voltages: Tuple[float, ...] = field(default=())
    model_type = ModelType.LOGIC_GATE
    is_linear = False

    @property
    def positive_node(self):
        return self.output_node

    @property
    def negative_node(self):
        return GROUND_NODE

    @property
    def voltage(self):
        return self.last_output_voltage

    def updated(self, voltages, settings=None) -> Tuple["LogicGateModel", bool]:
        inputs = tuple(voltages.get(node, 0.0) for node in self.input_nodes)
        output = evaluate_logic_gate(self.gate_type, inputs, self.last_output_voltage, settings)
        model = replace(self, last_output_voltage=output, last_input_voltages=inputs)
        return model, output == self.last_output_voltage

    def state(self):
        return {"last_output_voltage": self.last_output_voltage,
                "last_input_voltages": list(self.last_input_voltages)}

    def restored(self, state, settings=None):
        return replace(self, last_output_voltage=state["last_output_voltage"],
                       last_input_voltages=tuple(state.get("last_input_voltages", ())))


def gate_model_id(component_id, gate_index, output_node) -> str:
    return f"{component_id}-gate-{gate_index}-{output_node}"


def _edge_model(edge, components, settings):
    element = edge.element
    if isinstance(element, WireElement):
        return ConductanceModel(edge.id, ModelType.WIRE, edge, 1.0 / settings.wire_resistance)
    if isinstance(element, GateInputElement):
        return GateInputModel(edge.id, edge)

    component = components.get(edge.component_id)
    if component is None:
        logger.warning("Component %s not found; skipping edge %s", edge.component_id, edge.id)
        return None

    if isinstance(element, SupplyElement):
        return VoltageSourceModel(edge.id, edge, component.voltage)
    if isinstance(element, ResistorElement):
        return ConductanceModel(edge.id, ModelType.RESISTOR, edge, 1.0 / component.resistance)
    if isinstance(element, SwitchElement):
        closed = component.switch_states[element.switch_index]
        g = settings.switch_closed_conductance if closed else settings.switch_open_conductance
        return ConductanceModel(edge.id, ModelType.SWITCH, edge, g)
    if isinstance(element, LEDElement):
        return LEDModel.linearised(edge.id, edge, settings.led_initial_voltage, settings)
    raise TypeError(f"Unknown circuit element {element!r}")


def create_component_models(graph: CircuitGraph, components: Mapping, settings=None) -> Dict[str, object]:
    """
    Build one model per graph edge plus one model per IC gate.

    Gate input edges are grouped by (component, gate index, output node) into
    a single ``LogicGateModel``; the edges themselves get stamp-free
    ``GateInputModel`` entries.

    Args:
        graph: Circuit graph to model
        components: Map of component id -> Component
        settings: Optional Settings

    Returns:
        dict: Model id -> model, edge models first, then gate models
    """
    settings = settings or get_settings()
    models = {}
    gates = {}

    for edge in graph.edges.values():
        model = _edge_model(edge, components, settings)
        if model is None:
            continue
        models[model.model_id] = model

        element = edge.element
        if isinstance(element, GateInputElement):
            key = (edge.component_id, element.gate_index, edge.target)
            gates.setdefault(key, (element, []))[1].append((element.input_index, edge.source))

    for (component_id, gate_index, output_node), (element, inputs) in gates.items():
        model_id = gate_model_id(component_id, gate_index, output_node)
        models[model_id] = LogicGateModel(
            model_id=model_id,
            component_id=component_id,
            gate_index=gate_index,
            gate_type=element.gate_type,
            input_nodes=tuple(node for _, node in sorted(inputs)),
            output_node=output_node,
        )
    return models


def stamp_model(model, system) -> Optional[int]:
    """
    Add ``model``'s contribution to an MNA system.

    Stamps are additive. Source-like models allocate an auxiliary
    branch-current row unless their positive node is ground.

    Returns:
        int or None: The auxiliary row used, if any
    """
    if isinstance(model, ConductanceModel):
        system.add_conductance(model.edge.source, model.edge.target, model.conductance)
        return None
    if isinstance(model, LEDModel):
        system.add_conductance(model.edge.source, model.edge.target, model.conductance)
        system.add_current(model.edge.source, model.edge.target, model.equivalent_current)
        return None
    if isinstance(model, (VoltageSourceModel, LogicGateModel)):
        return system.add_voltage_source(model.positive_node, model.negative_node, model.voltage)
    if isinstance(model, GateInputModel):
        return None
    raise TypeError(f"Cannot stamp {model!r}")
