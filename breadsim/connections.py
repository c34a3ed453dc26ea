"""
Validated pairings of two connectors.

A ``strip`` connection seats a component pin directly on a breadboard strip.
A ``wire`` connection is a user-drawn jumper; when both of its ends sit on the
breadboard it carries both strip ids and bridges the two strips.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from .components import Component, ComponentKind
from .connectors import Connector, roles_compatible
from .errors import InvalidConnectionError


class ConnectionKind(str, Enum):
    STRIP = "strip"
    WIRE = "wire"


@dataclass(frozen=True)
class Connection:
    id: str
    source: Connector
    target: Connector
    kind: ConnectionKind
    strip_id: str
    target_strip_id: Optional[str] = None
    wire_id: Optional[str] = None

    @property
    def is_wire(self) -> bool:
        return self.kind is ConnectionKind.WIRE

    @property
    def is_bridge(self) -> bool:
        """True for a wire whose both ends resolve to breadboard strips."""
        return self.is_wire and self.target_strip_id is not None

    @property
    def component_ids(self):
        return (self.source.component_id, self.target.component_id)

    def touches(self, component_id) -> bool:
        return component_id in self.component_ids

    def strip_ids(self):
        if self.target_strip_id is None:
            return (self.strip_id,)
        return (self.strip_id, self.target_strip_id)


def _is_breadboard(component):
    return component is not None and component.kind is ComponentKind.BREADBOARD


def validate_connection(first: Connector, second: Connector, components: Mapping[str, Component]) -> bool:
    """
    Check whether two connectors may be joined.

    The roles must be compatible and at least one side must belong to a
    breadboard.
    """
    if not roles_compatible(first.role, second.role):
        return False
    return _is_breadboard(components.get(first.component_id)) or _is_breadboard(components.get(second.component_id))


def create_connection(source, target, components, wire_id=None, connection_id=None) -> Connection:
    """
    Create a strip or wire connection between two connectors.

    Args:
        source: Connector where the connection originates
        target: Connector where the connection ends
        components: Map of component id -> Component
        wire_id: Id of the drawn wire; None for a direct strip connection
        connection_id: Optional explicit connection id

    Returns:
        Connection: The validated connection

    Raises:
        InvalidConnectionError: If the pairing is not allowed
    """
    if source is target:
        raise InvalidConnectionError("Cannot connect a connector to itself")
    if not validate_connection(source, target, components):
        raise InvalidConnectionError(
            f"Invalid connection between {source.role.value} connector {source.id!r} "
            f"and {target.role.value} connector {target.id!r}"
        )

    source_component = components[source.component_id]
    target_component = components[target.component_id]
    source_on_board = _is_breadboard(source_component)
    target_on_board = _is_breadboard(target_component)

    board, board_connector = (source_component, source) if source_on_board else (target_component, target)
    strip_id = board.strip_id_for(board_connector)
    if strip_id is None:
        raise InvalidConnectionError(f"Connector {board_connector.id!r} is not on a breadboard strip")

    connection_id = connection_id or f"connection-{uuid.uuid4()}"

    if wire_id is None:
        if source_on_board and target_on_board:
            raise InvalidConnectionError(
                f"Breadboard pins {source.id!r} and {target.id!r} can only be joined by a wire"
            )
        return Connection(connection_id, source, target, ConnectionKind.STRIP, strip_id)

    if source_on_board and target_on_board:
        target_strip_id = target_component.strip_id_for(target)
        if target_strip_id is None:
            raise InvalidConnectionError(f"Connector {target.id!r} is not on a breadboard strip")
        return Connection(connection_id, source, target, ConnectionKind.WIRE,
                          strip_id, target_strip_id=target_strip_id, wire_id=wire_id)

    return Connection(connection_id, source, target, ConnectionKind.WIRE, strip_id, wire_id=wire_id)
