"""
breadsim: DC simulation engine for a virtual breadboard.

Place components on a breadboard, wire them up, and solve the circuit with
Modified Nodal Analysis. LEDs and 74LS-series logic gates are handled by an
iterative Newton-style driver.
"""

from .config import Settings, get_settings
from .errors import BreadsimError, InvalidConnectionError, SingularCircuitError
from .connectors import Connector, ConnectorRole
from .topology import Strip, StripKind, positive_strip_id, negative_strip_id, regular_strip_id
from .components import Component, ComponentKind, Breadboard, PowerSupply, Resistor, LED, DIPSwitch, IntegratedCircuit, GateType
from .connections import Connection, ConnectionKind, create_connection, validate_connection
from .power import PowerDistribution, find_power_distribution, POWER_NODE, GROUND_NODE
from .graph import CircuitGraph, CircuitNode, CircuitEdge, EdgeKind, NodeType, build_circuit_graph, find_connected_circuit, remove_disconnected_paths, find_wire_path, has_wire_only_path
from .validation import ValidationIssue, ValidationResult, Severity, validate_circuit
from .models import create_component_models, stamp_model
from .mna import MNASystem, solve_circuit, POWER_CURRENT_KEY
from .analysis import AnalysisResult, AnalysisStatus, DCAnalyzer, ElectricalValue, perform_dc_analysis, component_electrical_values, topology_hash
from .simulation import CircuitSimulator, SimulationReport
from .workbench import Workbench

__version__ = "0.1.0"

__all__ = [
    # Configuration and errors
    "Settings", "get_settings", "BreadsimError", "InvalidConnectionError", "SingularCircuitError",
    # Breadboard and components
    "Connector", "ConnectorRole", "Strip", "StripKind", "positive_strip_id", "negative_strip_id", "regular_strip_id",
    "Component", "ComponentKind", "Breadboard", "PowerSupply", "Resistor", "LED", "DIPSwitch", "IntegratedCircuit", "GateType",
    "Connection", "ConnectionKind", "create_connection", "validate_connection",
    # Circuit detection
    "PowerDistribution", "find_power_distribution", "POWER_NODE", "GROUND_NODE",
    "CircuitGraph", "CircuitNode", "CircuitEdge", "EdgeKind", "NodeType", "build_circuit_graph",
    "find_connected_circuit", "remove_disconnected_paths", "find_wire_path", "has_wire_only_path",
    "ValidationIssue", "ValidationResult", "Severity", "validate_circuit",
    # Analysis
    "create_component_models", "stamp_model", "MNASystem", "solve_circuit", "POWER_CURRENT_KEY",
    "AnalysisResult", "AnalysisStatus", "DCAnalyzer", "ElectricalValue", "perform_dc_analysis",
    "component_electrical_values", "topology_hash",
    # Simulation
    "CircuitSimulator", "SimulationReport", "Workbench",
]
