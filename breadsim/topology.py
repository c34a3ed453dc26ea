"""
Static description of a breadboard's pin layout.

A breadboard is built from seven vertical sections that alternate between a
power-rail section (a negative and a positive rail running the full board
height) and a regular section (per row, a left A-E strip and a right F-J
strip of five pins each). Every pin belongs to exactly one strip.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, List, Mapping, Tuple

from .connectors import Connector, ConnectorRole

PIN_SPACING = 5
BOARD_ROWS = 64
PINS_PER_STRIP = 5
SECTION_COUNT = 7
SECTION_SPACING = PIN_SPACING * 7
REGULAR_SECTION_WIDTH = (PINS_PER_STRIP + 1) * PIN_SPACING * 2
POWER_RAIL_WIDTH = PIN_SPACING * 2
BOARD_WIDTH = 3 * REGULAR_SECTION_WIDTH + 4 * POWER_RAIL_WIDTH + 4 * PIN_SPACING
BOARD_HEIGHT = BOARD_ROWS * PIN_SPACING

RAIL_SECTIONS = (0, 2, 4, 6)
REGULAR_SECTIONS = (1, 3, 5)


class StripKind(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    BIDIRECTIONAL = "bidirectional"

    @property
    def is_rail(self) -> bool:
        return self is not StripKind.BIDIRECTIONAL


@dataclass(frozen=True)
class Strip:
    """An electrically bonded group of breadboard pins."""
    id: str
    kind: StripKind
    connector_ids: Tuple[str, ...]


def positive_strip_id(section: int) -> str:
    return f"positive-strip-plus-{section}"


def negative_strip_id(section: int) -> str:
    return f"negative-strip-minus-{section}"


def regular_strip_id(section: int, row: int, side: str) -> str:
    """Strip id for a regular row; ``row`` counts from 1, ``side`` is ``left`` or ``right``."""
    if side not in ("left", "right"):
        raise ValueError(f"side must be 'left' or 'right', got {side!r}")
    return f"bidirectional-strip-{row}-{section}-{side}"


@dataclass(frozen=True)
class StripMapping:
    """Lookup tables relating pins and strips of one breadboard."""
    strips: Mapping[str, Strip]
    connector_to_strip: Mapping[str, str]
    positive_strip_ids: Tuple[str, ...] = field(default=())
    negative_strip_ids: Tuple[str, ...] = field(default=())


def build_breadboard_layout(component_id: str) -> Tuple[Dict[str, Connector], StripMapping]:
    """
    Generate every pin connector and strip of a breadboard.

    Args:
        component_id: Id of the owning breadboard component.

    Returns:
        tuple: (connectors keyed by id, StripMapping)
    """
    connectors: Dict[str, Connector] = {}
    strips: Dict[str, Strip] = {}
    connector_to_strip: Dict[str, str] = {}
    positive_ids: List[str] = []
    negative_ids: List[str] = []

    def add_strip(strip_id, kind, pin_positions):
        role = ConnectorRole(kind.value)
        ids = []
        for index, (x, y) in enumerate(pin_positions):
            connector = Connector.create(
                component_id,
                f"{strip_id}:{index}",
                role,
                offset=(x / BOARD_WIDTH, y / BOARD_HEIGHT),
                hit_area=PIN_SPACING,
            )
            connectors[connector.id] = connector
            connector_to_strip[connector.id] = strip_id
            ids.append(connector.id)
        strips[strip_id] = Strip(strip_id, kind, tuple(ids))

    current_x = 0
    for section in range(SECTION_COUNT):
        if section in RAIL_SECTIONS:
            rows = range(BOARD_ROWS)
            add_strip(negative_strip_id(section), StripKind.NEGATIVE,
                      [(current_x, row * PIN_SPACING) for row in rows])
            add_strip(positive_strip_id(section), StripKind.POSITIVE,
                      [(current_x + PIN_SPACING, row * PIN_SPACING) for row in rows])
            negative_ids.append(negative_strip_id(section))
            positive_ids.append(positive_strip_id(section))
            current_x += POWER_RAIL_WIDTH + PIN_SPACING
        else:
            for row in range(BOARD_ROWS):
                y = row * PIN_SPACING
                add_strip(regular_strip_id(section, row + 1, "left"), StripKind.BIDIRECTIONAL,
                          [(current_x + pin * PIN_SPACING, y) for pin in range(PINS_PER_STRIP)])
                add_strip(regular_strip_id(section, row + 1, "right"), StripKind.BIDIRECTIONAL,
                          [(current_x + SECTION_SPACING + pin * PIN_SPACING, y) for pin in range(PINS_PER_STRIP)])
            current_x += REGULAR_SECTION_WIDTH + PIN_SPACING

    mapping = StripMapping(
        strips=MappingProxyType(strips),
        connector_to_strip=MappingProxyType(connector_to_strip),
        positive_strip_ids=tuple(positive_ids),
        negative_strip_ids=tuple(negative_ids),
    )
    return connectors, mapping
