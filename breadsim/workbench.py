"""
Workbench: the editor's component and connection state.

Holds the placed components and the connections between their connectors,
enforces that each connector takes part in at most one connection, and runs
simulations on the current snapshot.
"""

import uuid
import warnings
from types import MappingProxyType
from typing import Dict, Optional

from .components import Component, ComponentKind
from .connections import Connection, create_connection
from .connectors import Connector
from .errors import InvalidConnectionError
from .simulation import CircuitSimulator, SimulationReport


class Workbench:
    """A breadboard workspace that can be wired up and simulated."""

    def __init__(self, name="Untitled Workbench", settings=None):
        self.name = name
        self._components: Dict[str, Component] = {}
        self._connections: Dict[str, Connection] = {}
        self._by_connector: Dict[str, str] = {}  # connector id -> connection id
        self.simulator = CircuitSimulator(settings)
        self.last_report: Optional[SimulationReport] = None

    @property
    def components(self):
        return MappingProxyType(self._components)

    @property
    def connections(self):
        return MappingProxyType(self._connections)

    def add_component(self, component):
        """Add a component to the workbench and return it."""
        if component.id in self._components:
            return component
        if component.kind is ComponentKind.POWER_SUPPLY and any(
                c.kind is ComponentKind.POWER_SUPPLY for c in self._components.values()):
            warnings.warn(
                "Workbench already has a power supply; only the first one is simulated",
                UserWarning,
                stacklevel=2,
            )
        self._components[component.id] = component
        return component

    def remove_component(self, component):
        """Remove a component and every connection touching it."""
        component_id = component if isinstance(component, str) else component.id
        if component_id not in self._components:
            return
        for connection in [c for c in self._connections.values() if c.touches(component_id)]:
            self.disconnect(connection)
        del self._components[component_id]

    def connection_for(self, connector) -> Optional[Connection]:
        """The connection a connector takes part in, if any."""
        connector_id = connector if isinstance(connector, str) else connector.id
        connection_id = self._by_connector.get(connector_id)
        return self._connections.get(connection_id) if connection_id is not None else None

    def _register(self, connector: Connector):
        if connector.component_id not in self._components:
            raise InvalidConnectionError(f"Component {connector.component_id!r} is not on the workbench")
        if self.connection_for(connector) is not None:
            raise InvalidConnectionError(f"Connector {connector.id!r} is already connected")

    def _add(self, source, target, wire_id=None):
        self._register(source)
        self._register(target)
        connection = create_connection(source, target, self._components, wire_id=wire_id)
        self._connections[connection.id] = connection
        for connector in (source, target):
            self._by_connector[connector.id] = connection.id
            connector.is_connected = True
        return connection

    def connect(self, connector, breadboard_pin) -> Connection:
        """
        Seat a component connector directly on a breadboard pin.

        Raises:
            InvalidConnectionError: If the roles are incompatible, neither end
            is a breadboard pin, both ends are breadboard pins (use
            ``wire``), or either connector is already in use
        """
        return self._add(connector, breadboard_pin)

    def wire(self, source, target, wire_id=None) -> Connection:
        """
        Draw a wire between two connectors.

        Args:
            source: Connector where the wire starts
            target: Connector where the wire ends
            wire_id: Optional id for the wire; generated if omitted

        Returns:
            Connection: The wire connection
        """
        return self._add(source, target, wire_id=wire_id or f"wire-{uuid.uuid4()}")

    def disconnect(self, connection):
        """Remove a connection (or the connection of a connector)."""
        if isinstance(connection, Connector):
            connection = self.connection_for(connection)
            if connection is None:
                return
        connection = self._connections.pop(connection.id if isinstance(connection, Connection) else connection, None)
        if connection is None:
            return
        for connector in (connection.source, connection.target):
            self._by_connector.pop(connector.id, None)
            connector.is_connected = False

    def simulate(self, warm_start=True) -> SimulationReport:
        """Simulate the current state, warm starting from the previous run."""
        previous = self.last_report if warm_start else None
        self.last_report = self.simulator.run(self._components, self._connections, previous)
        return self.last_report

    def __repr__(self):
        return f"Workbench({self.name}, components={len(self._components)}, connections={len(self._connections)})"
