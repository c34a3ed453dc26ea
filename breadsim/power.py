"""
Power distribution resolver.

Works out which breadboard rails are bonded to the supply's positive and
negative leads. Only explicit user wires propagate a rail; the breadboard's
own strips never bond two rails together.
"""

import logging
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping

from .components import ComponentKind, find_component
from .config import get_settings
from .topology import StripKind

logger = logging.getLogger(__name__)

POWER_NODE = "unified-power"
GROUND_NODE = "unified-ground"


@dataclass(frozen=True)
class PowerDistribution:
    """Rails transitively bonded to each supply terminal."""
    source_node: str = ""
    power_node: str = POWER_NODE
    ground_node: str = GROUND_NODE
    powered_rails: FrozenSet[str] = field(default_factory=frozenset)
    grounded_rails: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def has_supply(self) -> bool:
        return bool(self.source_node)

    @property
    def is_complete(self) -> bool:
        """True when both polarities reach at least one rail."""
        return self.has_supply and bool(self.powered_rails) and bool(self.grounded_rails)

    def resolve(self, strip_id: str) -> str:
        """Substitute the canonical power/ground label for a rail member strip."""
        if strip_id in self.powered_rails:
            return self.power_node
        if strip_id in self.grounded_rails:
            return self.ground_node
        return strip_id


def _collect_rails(start_strip, kind, strips, connections, visited_connections, limit):
    """
    Depth-first walk over wire connections gathering rails of one polarity.

    ``visited_connections`` is shared across both polarities so a wire is
    never walked twice.
    """
    rails = []
    stack = [start_strip]
    while stack:
        strip_id = stack.pop()
        if strip_id in rails or len(rails) >= limit:
            continue
        rails.append(strip_id)

        next_strips = []
        for connection in connections.values():
            if connection.id in visited_connections or not connection.is_wire:
                continue
            if strip_id not in (connection.strip_id, connection.target_strip_id):
                continue
            visited_connections.add(connection.id)
            other = connection.target_strip_id if connection.strip_id == strip_id else connection.strip_id
            if other is None:
                continue
            next_strip = strips.get(other)
            if next_strip is not None and next_strip.kind is kind:
                next_strips.append(next_strip.id)
        # reversed so the first discovered wire is walked first
        stack.extend(reversed(next_strips))
    return rails


def find_power_distribution(components: Mapping, connections: Mapping, settings=None) -> PowerDistribution:
    """
    Resolve the rails powered and grounded by the supply.

    Args:
        components: Map of component id -> Component
        connections: Map of connection id -> Connection
        settings: Optional Settings; defaults to ``get_settings()``

    Returns:
        PowerDistribution: Empty rail sets when no supply or breadboard is
        present, or when the supply is not seated on any rail.
    """
    settings = settings or get_settings()
    supply = find_component(components, ComponentKind.POWER_SUPPLY)
    breadboard = find_component(components, ComponentKind.BREADBOARD)

    if supply is None or breadboard is None:
        return PowerDistribution()

    for kind in (ComponentKind.POWER_SUPPLY, ComponentKind.BREADBOARD):
        extra = [c for c in components.values() if c.kind is kind][1:]
        if extra:
            logger.warning("Ignoring %d additional %s component(s)", len(extra), kind.value)

    strips = breadboard.strips
    powered, grounded = [], []
    visited_connections = set()
    limit = settings.max_rails_per_polarity

    for connection in connections.values():
        if not connection.touches(supply.id):
            continue
        strip = strips.get(connection.strip_id)
        if strip is None or strip.kind is StripKind.BIDIRECTIONAL:
            continue
        rails = powered if strip.kind is StripKind.POSITIVE else grounded
        if strip.id in rails or len(rails) >= limit:
            continue
        found = _collect_rails(strip.id, strip.kind, strips, connections, visited_connections, limit - len(rails))
        rails.extend(s for s in found if s not in rails)

    logger.debug("Resolved %d powered and %d grounded rails", len(powered), len(grounded))
    return PowerDistribution(
        source_node=supply.id,
        powered_rails=frozenset(powered),
        grounded_rails=frozenset(grounded),
    )
