"""
Circuit graph construction and reachability.

The builder turns the editor snapshot (components, connections and the
resolved power distribution) into an undirected multigraph whose nodes are
electrical nets and whose edges are two-terminal elements. Each stage takes a
``CircuitGraph`` and returns a new one; nothing is mutated in place.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import networkx as nx

from .components import ComponentKind, GateType, find_component
from .power import GROUND_NODE, POWER_NODE, PowerDistribution
from .topology import StripKind

logger = logging.getLogger(__name__)


class NodeType(str, Enum):
    POWER = "power"
    GROUND = "ground"
    REGULAR = "regular"


@dataclass(frozen=True)
class CircuitNode:
    id: str
    type: NodeType = NodeType.REGULAR


class EdgeKind(str, Enum):
    WIRE = "wire"
    COMPONENT = "component"


# Element descriptors. The set is closed; code dispatching on them ends with
# a TypeError for anything unexpected.

@dataclass(frozen=True)
class WireElement:
    pass


@dataclass(frozen=True)
class SupplyElement:
    pass


@dataclass(frozen=True)
class ResistorElement:
    pass


@dataclass(frozen=True)
class LEDElement:
    pass


@dataclass(frozen=True)
class SwitchElement:
    switch_index: int


@dataclass(frozen=True)
class GateInputElement:
    ic_type: str
    gate_index: int
    gate_type: GateType
    input_index: int


Element = Union[WireElement, SupplyElement, ResistorElement, LEDElement, SwitchElement, GateInputElement]


def element_key(element, owner_id) -> str:
    """Stable key naming an element of ``owner_id`` (a component or connection id)."""
    if isinstance(element, WireElement):
        return f"wire-{owner_id}"
    if isinstance(element, SupplyElement):
        return f"supply-{owner_id}"
    if isinstance(element, ResistorElement):
        return f"resistor-{owner_id}"
    if isinstance(element, LEDElement):
        return f"led-{owner_id}"
    if isinstance(element, SwitchElement):
        return f"switch-{owner_id}-{element.switch_index}"
    if isinstance(element, GateInputElement):
        return f"gate-{owner_id}-{element.gate_index}-{element.input_index}"
    raise TypeError(f"Unknown circuit element {element!r}")


@dataclass(frozen=True)
class CircuitEdge:
    """A two-terminal element between two nodes. ``source == target`` is a self-loop."""
    id: str
    source: str
    target: str
    kind: EdgeKind
    element: Element
    component_id: Optional[str] = None
    connection_id: Optional[str] = None
    wire_id: Optional[str] = None

    @property
    def is_self_loop(self) -> bool:
        return self.source == self.target

    def other(self, node_id) -> str:
        return self.target if node_id == self.source else self.source


@dataclass(frozen=True)
class OmittedComponent:
    """A component (or one gate of an IC) left out of the graph because of partial wiring."""
    component_id: str
    kind: ComponentKind
    reason: str
    index: Optional[int] = None


@dataclass(frozen=True)
class CircuitGraph:
    nodes: Mapping[str, CircuitNode] = field(default_factory=lambda: MappingProxyType({}))
    edges: Mapping[str, CircuitEdge] = field(default_factory=lambda: MappingProxyType({}))
    omitted: Tuple[OmittedComponent, ...] = ()

    def has_node(self, node_id) -> bool:
        return node_id in self.nodes

    def component_edges(self) -> List[CircuitEdge]:
        return [edge for edge in self.edges.values() if edge.kind is EdgeKind.COMPONENT]

    def wire_edges(self) -> List[CircuitEdge]:
        return [edge for edge in self.edges.values() if edge.kind is EdgeKind.WIRE]

    def edges_for_component(self, component_id) -> List[CircuitEdge]:
        return [edge for edge in self.edges.values() if edge.component_id == component_id]

    def subgraph(self, node_ids: Iterable[str], edge_ids: Iterable[str]) -> "CircuitGraph":
        """Restrict to the given nodes and edges, keeping the omission record."""
        node_ids = set(node_ids)
        edge_ids = set(edge_ids)
        return CircuitGraph(
            nodes=MappingProxyType({k: v for k, v in self.nodes.items() if k in node_ids}),
            edges=MappingProxyType({k: v for k, v in self.edges.items()
                                    if k in edge_ids and v.source in node_ids and v.target in node_ids}),
            omitted=self.omitted,
        )

    def to_networkx(self) -> nx.MultiGraph:
        """Export as a ``networkx.MultiGraph`` keyed by edge id."""
        graph = nx.MultiGraph()
        for node in self.nodes.values():
            graph.add_node(node.id, type=node.type)
        for edge in self.edges.values():
            graph.add_edge(edge.source, edge.target, key=edge.id, edge=edge)
        return graph

    def __repr__(self):
        return f"CircuitGraph(nodes={len(self.nodes)}, edges={len(self.edges)}, omitted={len(self.omitted)})"


class CircuitGraphBuilder:
    """Mutable scratch space used by a single build stage."""

    def __init__(self, graph: Optional[CircuitGraph] = None):
        graph = graph or CircuitGraph()
        self.nodes: Dict[str, CircuitNode] = dict(graph.nodes)
        self.edges: Dict[str, CircuitEdge] = dict(graph.edges)
        self.omitted: List[OmittedComponent] = list(graph.omitted)

    def add_node(self, node_id, node_type=NodeType.REGULAR):
        if node_id not in self.nodes:
            self.nodes[node_id] = CircuitNode(node_id, node_type)
        return self.nodes[node_id]

    def add_edge(self, source, target, kind, element, component_id=None, connection_id=None, wire_id=None):
        owner = component_id if component_id is not None else connection_id
        edge_id = f"edge-{source}-{target}-{element_key(element, owner)}"
        edge = CircuitEdge(edge_id, source, target, kind, element, component_id, connection_id, wire_id)
        self.edges[edge_id] = edge
        return edge

    def omit(self, component, reason, index=None):
        logger.warning("Omitting %s%s: %s", component.id, "" if index is None else f" [{index}]", reason)
        self.omitted.append(OmittedComponent(component.id, component.kind, reason, index))

    def build(self) -> CircuitGraph:
        return CircuitGraph(
            nodes=MappingProxyType(dict(self.nodes)),
            edges=MappingProxyType(dict(self.edges)),
            omitted=tuple(self.omitted),
        )


def _strip_kind(strip_id, breadboard) -> Optional[StripKind]:
    if breadboard is None:
        return None
    strip = breadboard.strips.get(strip_id)
    return strip.kind if strip is not None else None


def resolve_connector_strips(components, connections, distribution) -> Dict[str, str]:
    """
    Map each non-breadboard connector to the node its connection lands on.

    Rail strips belonging to a polarity are replaced by the canonical
    ``unified-power`` / ``unified-ground`` label.
    """
    resolved = {}
    for connection in connections.values():
        for connector in (connection.source, connection.target):
            component = components.get(connector.component_id)
            if component is None or component.kind is ComponentKind.BREADBOARD:
                continue
            resolved[connector.id] = distribution.resolve(connection.strip_id)
    return resolved


def initialise_power_distribution(graph: CircuitGraph, components, distribution: PowerDistribution) -> CircuitGraph:
    """Add the canonical power and ground nodes and the supply edge between them."""
    builder = CircuitGraphBuilder(graph)
    builder.add_node(distribution.power_node, NodeType.POWER)
    builder.add_node(distribution.ground_node, NodeType.GROUND)
    supply_id = distribution.source_node or "power-supply"
    builder.add_edge(distribution.power_node, distribution.ground_node, EdgeKind.COMPONENT,
                     SupplyElement(), component_id=supply_id)
    return builder.build()


def initialise_active_regular_strips(graph: CircuitGraph, components, connections,
                                     distribution: PowerDistribution) -> CircuitGraph:
    """Add a regular node for every breadboard strip that something is plugged into."""
    builder = CircuitGraphBuilder(graph)
    breadboard = find_component(components, ComponentKind.BREADBOARD)
    for connection in connections.values():
        if _strip_kind(connection.strip_id, breadboard) is StripKind.BIDIRECTIONAL:
            builder.add_node(connection.strip_id)
        if connection.target_strip_id is not None:
            target = distribution.resolve(connection.target_strip_id)
            builder.add_node(target)
    return builder.build()


def add_wire_edges(graph: CircuitGraph, connections, distribution: PowerDistribution) -> CircuitGraph:
    """One wire edge per strip-to-strip wire whose both ends are already nodes."""
    builder = CircuitGraphBuilder(graph)
    seen = set()
    for connection in connections.values():
        if not connection.is_bridge or connection.id in seen:
            continue
        seen.add(connection.id)
        source = distribution.resolve(connection.strip_id)
        target = distribution.resolve(connection.target_strip_id)
        if source not in builder.nodes or target not in builder.nodes:
            logger.debug("Skipping wire %s: endpoint not in graph", connection.id)
            continue
        builder.add_edge(source, target, EdgeKind.WIRE, WireElement(),
                         connection_id=connection.id, wire_id=connection.wire_id)
    return builder.build()


def _add_two_terminal(builder, component, first, second, element, resolved):
    a = resolved.get(first.id)
    b = resolved.get(second.id)
    if a is None or b is None:
        return
    builder.add_node(a)
    builder.add_node(b)
    builder.add_edge(a, b, EdgeKind.COMPONENT, element, component_id=component.id)


def _add_dip_switch(builder, component, resolved):
    pairs = [component.terminals(i) for i in range(component.SWITCH_COUNT)]
    ends = [(resolved.get(left.id), resolved.get(right.id)) for left, right in pairs]
    placed = sum(1 for a, b in ends for node in (a, b) if node is not None)
    if placed < 2 * component.SWITCH_COUNT:
        if placed:
            builder.omit(component, f"{placed} of {2 * component.SWITCH_COUNT} terminals connected")
        return
    # commit only once every terminal is known
    for index, (a, b) in enumerate(ends):
        builder.add_node(a)
        builder.add_node(b)
        builder.add_edge(a, b, EdgeKind.COMPONENT, SwitchElement(index), component_id=component.id)


def _add_ic_gates(builder, component, resolved):
    gates = defaultdict(lambda: {"inputs": [], "output": None})
    for connector in component.get_connectors():
        if connector.gate_index is None:
            continue
        gate = gates[connector.gate_index]
        if connector.input_index is None:
            gate["output"] = connector
        else:
            gate["inputs"].append(connector)

    for gate_index in sorted(gates):
        gate = gates[gate_index]
        output = resolved.get(gate["output"].id) if gate["output"] is not None else None
        inputs = [(c, resolved.get(c.id)) for c in gate["inputs"]]
        connected_inputs = [(c, node) for c, node in inputs if node is not None]

        if output is None:
            if connected_inputs:
                builder.omit(component, "gate output not connected", gate_index)
            continue
        if len(connected_inputs) < len(inputs):
            builder.omit(component, f"{len(inputs) - len(connected_inputs)} gate input(s) not connected", gate_index)
        if not connected_inputs:
            continue

        builder.add_node(output)
        for connector, node in connected_inputs:
            builder.add_node(node)
            element = GateInputElement(component.ic_type, gate_index, component.gate_type, connector.input_index)
            builder.add_edge(node, output, EdgeKind.COMPONENT, element, component_id=component.id)


def add_component_edges(graph: CircuitGraph, components, connections,
                        distribution: PowerDistribution) -> CircuitGraph:
    """Add edges for every placed component other than the breadboard and the supply."""
    builder = CircuitGraphBuilder(graph)
    resolved = resolve_connector_strips(components, connections, distribution)

    for component in components.values():
        kind = component.kind
        if kind in (ComponentKind.BREADBOARD, ComponentKind.POWER_SUPPLY):
            continue
        if kind is ComponentKind.RESISTOR:
            _add_two_terminal(builder, component, component.left, component.right, ResistorElement(), resolved)
        elif kind is ComponentKind.LED:
            _add_two_terminal(builder, component, component.anode, component.cathode, LEDElement(), resolved)
        elif kind is ComponentKind.DIP_SWITCH:
            _add_dip_switch(builder, component, resolved)
        elif kind is ComponentKind.IC:
            _add_ic_gates(builder, component, resolved)
        else:
            logger.warning("No graph representation for component %s of kind %s", component.id, kind)
    return builder.build()


def build_circuit_graph(components: Mapping, connections: Mapping, distribution: PowerDistribution) -> CircuitGraph:
    """
    Build the circuit graph for an editor snapshot.

    Args:
        components: Map of component id -> Component
        connections: Map of connection id -> Connection
        distribution: Result of ``find_power_distribution``

    Returns:
        CircuitGraph: Immutable graph. Partially wired components are left
        out; switches and IC gates are listed in ``graph.omitted``.
    """
    graph = CircuitGraph()
    graph = initialise_power_distribution(graph, components, distribution)
    graph = initialise_active_regular_strips(graph, components, connections, distribution)
    graph = add_wire_edges(graph, connections, distribution)
    graph = add_component_edges(graph, components, connections, distribution)
    logger.debug("Built %r", graph)
    return graph


def find_connected_circuit(graph: CircuitGraph, power_node: str = POWER_NODE) -> CircuitGraph:
    """Keep only the nodes and edges reachable from the power node."""
    if power_node not in graph.nodes:
        return CircuitGraph(omitted=graph.omitted)
    reachable = nx.node_connected_component(graph.to_networkx(), power_node)
    edge_ids = [edge.id for edge in graph.edges.values() if edge.source in reachable]
    return graph.subgraph(reachable, edge_ids)


def remove_disconnected_paths(graph: CircuitGraph, distribution: Optional[PowerDistribution] = None) -> CircuitGraph:
    """
    Keep exactly the nodes and edges that lie on a simple power-to-ground path.

    A node or edge lies on such a path iff it shares a biconnected block with
    a virtual power-ground edge. Self-loops never lie on a simple path.
    """
    power = distribution.power_node if distribution is not None else POWER_NODE
    ground = distribution.ground_node if distribution is not None else GROUND_NODE
    if power not in graph.nodes or ground not in graph.nodes:
        return graph.subgraph([n for n in (power, ground) if n in graph.nodes], [])

    simple = nx.Graph()
    simple.add_nodes_from(graph.nodes)
    simple.add_edges_from((e.source, e.target) for e in graph.edges.values() if not e.is_self_loop)
    simple.add_edge(power, ground)

    keep = {power, ground}
    for block in nx.biconnected_components(simple):
        if power in block and ground in block:
            keep = set(block)
            break

    edge_ids = [e.id for e in graph.edges.values()
                if not e.is_self_loop and e.source in keep and e.target in keep]
    return graph.subgraph(keep, edge_ids)


def find_wire_path(graph: CircuitGraph, source: str, target: str,
                   exclude_edge_ids: Iterable[str] = (),
                   edge_kinds=frozenset({EdgeKind.WIRE})) -> Optional[List[CircuitEdge]]:
    """
    Depth-first search for a path from ``source`` to ``target``.

    Only edges whose kind is in ``edge_kinds`` and whose id is not in
    ``exclude_edge_ids`` are followed.

    Returns:
        list or None: The edges of the path found, in order from ``source``.
        Empty when ``source == target``; None when there is no path or either
        node is missing.
    """
    if source not in graph.nodes or target not in graph.nodes:
        return None
    if source == target:
        return []

    excluded = set(exclude_edge_ids)
    adjacency = defaultdict(list)
    for edge in graph.edges.values():
        if edge.kind not in edge_kinds or edge.id in excluded:
            continue
        adjacency[edge.source].append(edge)
        adjacency[edge.target].append(edge)

    parents: Dict[str, Optional[CircuitEdge]] = {source: None}
    stack = [source]
    while stack:
        node = stack.pop()
        for edge in adjacency[node]:
            neighbour = edge.other(node)
            if neighbour in parents:
                continue
            parents[neighbour] = edge
            if neighbour == target:
                path = []
                while parents[neighbour] is not None:
                    path.append(parents[neighbour])
                    neighbour = parents[neighbour].other(neighbour)
                return path[::-1]
            stack.append(neighbour)
    return None


def has_wire_only_path(graph: CircuitGraph, source: str, target: str,
                       exclude_edge_ids: Iterable[str] = (),
                       edge_kinds=frozenset({EdgeKind.WIRE})) -> bool:
    """True when ``find_wire_path`` finds any path."""
    return find_wire_path(graph, source, target, exclude_edge_ids, edge_kinds) is not None
