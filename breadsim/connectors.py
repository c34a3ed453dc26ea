"""
Connector terminals and the rules for joining them.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

DEFAULT_HIT_AREA = 2.5


class ConnectorRole(str, Enum):
    INPUT = "input"
    OUTPUT = "output"
    BIDIRECTIONAL = "bidirectional"
    POSITIVE = "positive"
    NEGATIVE = "negative"
    CATHODE = "cathode"
    ANODE = "anode"


# Which roles each role may be joined to.
CONNECTION_RULES: Dict[ConnectorRole, frozenset] = {
    ConnectorRole.INPUT: frozenset({ConnectorRole.OUTPUT, ConnectorRole.BIDIRECTIONAL}),
    ConnectorRole.OUTPUT: frozenset({ConnectorRole.INPUT, ConnectorRole.BIDIRECTIONAL}),
    ConnectorRole.BIDIRECTIONAL: frozenset(ConnectorRole),
    ConnectorRole.POSITIVE: frozenset({ConnectorRole.POSITIVE, ConnectorRole.ANODE, ConnectorRole.BIDIRECTIONAL}),
    ConnectorRole.NEGATIVE: frozenset({ConnectorRole.NEGATIVE, ConnectorRole.CATHODE, ConnectorRole.BIDIRECTIONAL}),
    ConnectorRole.CATHODE: frozenset({ConnectorRole.NEGATIVE, ConnectorRole.BIDIRECTIONAL, ConnectorRole.ANODE}),
    ConnectorRole.ANODE: frozenset({ConnectorRole.POSITIVE, ConnectorRole.BIDIRECTIONAL, ConnectorRole.CATHODE}),
}


@dataclass(eq=False)
class Connector:
    """
    A terminal point on a component.

    ``is_connected`` is owned by the connection manager (``Workbench``); the
    analysis code only ever reads it.
    """
    id: str
    component_id: str
    role: ConnectorRole
    offset: Tuple[float, float] = (0.0, 0.0)
    hit_area: float = DEFAULT_HIT_AREA
    is_connected: bool = False
    metadata: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def create(cls, component_id, name, role, offset=(0.0, 0.0), hit_area=DEFAULT_HIT_AREA, **metadata):
        """Create a connector whose id is ``<component_id>:<name>``."""
        return cls(
            id=f"{component_id}:{name}",
            component_id=component_id,
            role=ConnectorRole(role),
            offset=offset,
            hit_area=hit_area,
            metadata={k: v for k, v in metadata.items() if v is not None},
        )

    @property
    def name(self) -> str:
        return self.id[len(self.component_id) + 1:]

    @property
    def gate_index(self) -> Optional[int]:
        return self.metadata.get("gate_index")

    @property
    def input_index(self) -> Optional[int]:
        return self.metadata.get("input_index")

    def __repr__(self):
        return f"Connector({self.id!r}, {self.role.value})"


def roles_compatible(first: ConnectorRole, second: ConnectorRole) -> bool:
    return second in CONNECTION_RULES[first]
