"""
Component classes for the breadboard catalog.

Every component owns a set of connectors keyed by connector id. The catalog
is closed: breadboard, power supply, resistor, LED, 8-gang DIP switch and the
fixed-gate 74LS-series logic ICs.
"""

import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Mapping, Optional

from .connectors import Connector, ConnectorRole
from .topology import build_breadboard_layout


class ComponentKind(str, Enum):
    BREADBOARD = "breadboard"
    POWER_SUPPLY = "power-supply"
    RESISTOR = "resistor"
    LED = "led"
    DIP_SWITCH = "dip-switch"
    IC = "ic"


def _new_component_id(prefix):
    return f"{prefix}-{uuid.uuid4()}"


class Component:
    """Base class for all placed components."""

    kind: ComponentKind = None
    id_prefix = "Component"

    def __init__(self, name=None, component_id=None):
        self.id = component_id or _new_component_id(self.id_prefix)
        self.name = name or self.id_prefix
        self.connectors: Dict[str, Connector] = {}

    def _add_connector(self, name, role, offset=(0.0, 0.0), **metadata):
        connector = Connector.create(self.id, name, role, offset=offset, **metadata)
        self.connectors[connector.id] = connector
        return connector

    def connector(self, name):
        """Look up a connector by its local name (the part after ``<id>:``)."""
        try:
            return self.connectors[f"{self.id}:{name}"]
        except KeyError:
            raise KeyError(f"{self!r} has no connector named {name!r}") from None

    def get_connectors(self) -> List[Connector]:
        """Connectors in creation order."""
        return list(self.connectors.values())

    @property
    def properties(self):
        """Editable properties, as shown in the properties panel."""
        return {"name": self.name}

    def __repr__(self):
        return f"{self.__class__.__name__}({self.name})"


class Breadboard(Component):
    """Solderless breadboard: four power-rail sections and three regular sections."""

    kind = ComponentKind.BREADBOARD
    id_prefix = "Breadboard"

    def __init__(self, name=None, component_id=None):
        super().__init__(name, component_id)
        self.connectors, self.strip_mapping = build_breadboard_layout(self.id)

    @property
    def strips(self):
        return self.strip_mapping.strips

    def strip_id_for(self, connector) -> Optional[str]:
        """Strip id of a breadboard connector, or None if it is not one of ours."""
        connector_id = connector if isinstance(connector, str) else connector.id
        return self.strip_mapping.connector_to_strip.get(connector_id)

    def pin(self, strip_id, index=0) -> Connector:
        """
        Get one pin of a strip.

        Args:
            strip_id: Strip identifier (see ``breadsim.topology``)
            index: Position of the pin within the strip

        Returns:
            Connector: The breadboard pin
        """
        try:
            strip = self.strip_mapping.strips[strip_id]
        except KeyError:
            raise KeyError(f"Unknown strip {strip_id!r}") from None
        return self.connectors[strip.connector_ids[index]]


class PowerSupply(Component):
    """Ideal DC bench supply with a positive and a negative lead."""

    kind = ComponentKind.POWER_SUPPLY
    id_prefix = "PowerSupply"
    MAX_VOLTAGE = 24.0

    def __init__(self, voltage=5.0, name=None, component_id=None):
        if not isinstance(voltage, (int, float)) or isinstance(voltage, bool):
            raise ValueError(f"voltage must be a number, got {voltage!r}")
        if not 0 <= voltage <= self.MAX_VOLTAGE:
            raise ValueError(f"voltage must be between 0 and {self.MAX_VOLTAGE} V, got {voltage}")
        super().__init__(name, component_id)
        self.voltage = float(voltage)
        self.negative = self._add_connector("negative", ConnectorRole.NEGATIVE, (5 / 12, 14 / 15))
        self.positive = self._add_connector("positive", ConnectorRole.POSITIVE, (7 / 12, 14 / 15))

    @property
    def properties(self):
        return {"name": self.name, "voltage": self.voltage}


RESISTANCE_UNITS = {
    "Ω": 1.0,
    "kΩ": 1e3,
    "MΩ": 1e6,
    "ohm": 1.0,
    "kohm": 1e3,
    "Mohm": 1e6,
}


class Resistor(Component):
    """Fixed resistor. ``value`` is an integer in the selected display unit."""

    kind = ComponentKind.RESISTOR
    id_prefix = "Resistor"

    def __init__(self, value=300, unit="Ω", name=None, component_id=None):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"Resistance value must be a number, got {value!r}")
        if not 1 <= value <= 1e6:
            raise ValueError(f"Resistance value must be between 1 and 1000000, got {value}")
        if value != int(value):
            raise ValueError(f"Resistance value must be an integer, got {value}")
        if unit not in RESISTANCE_UNITS:
            raise ValueError(f"Unknown resistance unit {unit!r}; expected one of {sorted(RESISTANCE_UNITS)}")
        super().__init__(name, component_id)
        self.value = int(value)
        self.unit = unit
        self.left = self._add_connector("left", ConnectorRole.BIDIRECTIONAL, (-1 / 6, 0.5))
        self.right = self._add_connector("right", ConnectorRole.BIDIRECTIONAL, (1 + 1 / 6, 0.5))

    @property
    def resistance(self) -> float:
        """Resistance in ohms."""
        return self.value * RESISTANCE_UNITS[self.unit]

    @property
    def properties(self):
        return {"name": self.name, "value": self.value, "unit": self.unit}


class LED(Component):
    """Light-emitting diode. Current flows from anode to cathode."""

    kind = ComponentKind.LED
    id_prefix = "LED"
    COLOURS = ("red", "green", "blue", "yellow")

    def __init__(self, colour="red", name=None, component_id=None):
        if colour not in self.COLOURS:
            raise ValueError(f"colour must be one of {self.COLOURS}, got {colour!r}")
        super().__init__(name, component_id)
        self.colour = colour
        self.anode = self._add_connector("anode", ConnectorRole.ANODE, (0.233333, 0.44444))
        self.cathode = self._add_connector("cathode", ConnectorRole.CATHODE, (-0.11111, 0.444444))

    @property
    def properties(self):
        return {"name": self.name, "colour": self.colour}


class DIPSwitch(Component):
    """
    8-gang DIP switch.

    Switch ``i`` joins connector ``terminal-<i>-left`` to ``terminal-<i>-right``
    when closed. All switches start open.
    """

    kind = ComponentKind.DIP_SWITCH
    id_prefix = "DIPSwitch"
    SWITCH_COUNT = 8

    def __init__(self, switch_states=None, name=None, component_id=None):
        if switch_states is None:
            switch_states = [False] * self.SWITCH_COUNT
        if len(switch_states) != self.SWITCH_COUNT:
            raise ValueError(f"switch_states must have {self.SWITCH_COUNT} entries, got {len(switch_states)}")
        super().__init__(name, component_id)
        self.switch_states = [bool(state) for state in switch_states]
        for i in range(self.SWITCH_COUNT):
            y = (i + 0.5) / self.SWITCH_COUNT
            self._add_connector(f"terminal-{i}-left", ConnectorRole.BIDIRECTIONAL, (0.125, y), switch_index=i)
            self._add_connector(f"terminal-{i}-right", ConnectorRole.BIDIRECTIONAL, (0.875, y), switch_index=i)

    def terminals(self, switch_index):
        """Return the (left, right) connectors of one switch."""
        return (self.connector(f"terminal-{switch_index}-left"),
                self.connector(f"terminal-{switch_index}-right"))

    def set_switch(self, switch_index, closed):
        if not 0 <= switch_index < self.SWITCH_COUNT:
            raise IndexError(f"switch index {switch_index} out of range")
        self.switch_states[switch_index] = bool(closed)

    def toggle(self, switch_index):
        self.set_switch(switch_index, not self.switch_states[switch_index])


class GateType(str, Enum):
    AND = "AND"
    OR = "OR"
    NAND = "NAND"
    NOR = "NOR"
    XOR = "XOR"
    NOT = "NOT"
    MYSTERY = "MYSTERY"


@dataclass(frozen=True)
class PinDefinition:
    role: ConnectorRole
    name: str
    gate_index: Optional[int] = None
    input_index: Optional[int] = None


@dataclass(frozen=True)
class ICDefinition:
    ic_type: str
    description: str
    gate_type: GateType
    gate_count: int
    inputs_per_gate: int
    pin_mappings: Mapping[int, PinDefinition]


def _pins(*specs):
    """Build a 1-based pin table from (role, name, gate, input) tuples."""
    return {number: PinDefinition(ConnectorRole(role), name, gate, inp)
            for number, (role, name, gate, inp) in enumerate(specs, start=1)}


QUAD_2_INPUT_PINS = _pins(
    ("input", "input 1A", 0, 0), ("input", "input 1B", 0, 1), ("output", "output 1", 0, None),
    ("input", "input 2A", 1, 0), ("input", "input 2B", 1, 1), ("output", "output 2", 1, None),
    ("negative", "ground", None, None),
    ("output", "output 3", 2, None), ("input", "input 3A", 2, 0), ("input", "input 3B", 2, 1),
    ("output", "output 4", 3, None), ("input", "input 4A", 3, 0), ("input", "input 4B", 3, 1),
    ("positive", "VCC", None, None),
)

HEX_INVERTER_PINS = _pins(
    ("input", "input 1", 0, 0), ("output", "output 1", 0, None),
    ("input", "input 2", 1, 0), ("output", "output 2", 1, None),
    ("input", "input 3", 2, 0), ("output", "output 3", 2, None),
    ("negative", "ground", None, None),
    ("output", "output 4", 3, None), ("input", "input 4", 3, 0),
    ("output", "output 5", 4, None), ("input", "input 5", 4, 0),
    ("output", "output 6", 5, None), ("input", "input 6", 5, 0),
    ("positive", "VCC", None, None),
)

QUAD_NOR_PINS = _pins(
    ("output", "output 1", 0, None), ("input", "input 1A", 0, 0), ("input", "input 1B", 0, 1),
    ("output", "output 2", 1, None), ("input", "input 2A", 1, 0), ("input", "input 2B", 1, 1),
    ("negative", "ground", None, None),
    ("input", "input 3A", 2, 0), ("input", "input 3B", 2, 1), ("output", "output 3", 2, None),
    ("input", "input 4A", 3, 0), ("input", "input 4B", 3, 1), ("output", "output 4", 3, None),
    ("positive", "VCC", None, None),
)

TRIPLE_3_INPUT_PINS = _pins(
    ("input", "input 1A", 0, 0), ("input", "input 1B", 0, 1), ("input", "input 1C", 0, 2),
    ("output", "output 1", 0, None),
    ("input", "input 2A", 1, 0), ("input", "input 2B", 1, 1),
    ("negative", "ground", None, None),
    ("input", "input 2C", 1, 2), ("output", "output 2", 1, None),
    ("input", "input 3A", 2, 0), ("input", "input 3B", 2, 1), ("input", "input 3C", 2, 2),
    ("output", "output 3", 2, None),
    ("positive", "VCC", None, None),
)

IC_DEFINITIONS: Dict[str, ICDefinition] = {
    "74LS00": ICDefinition("74LS00", "Quad 2-Input NAND Gate", GateType.NAND, 4, 2, QUAD_2_INPUT_PINS),
    "74LS02": ICDefinition("74LS02", "Quad 2-Input NOR Gate", GateType.NOR, 4, 2, QUAD_NOR_PINS),
    "74LS04": ICDefinition("74LS04", "Hex Inverter", GateType.NOT, 6, 1, HEX_INVERTER_PINS),
    "74LS08": ICDefinition("74LS08", "Quad 2-Input AND Gate", GateType.AND, 4, 2, QUAD_2_INPUT_PINS),
    "74LS32": ICDefinition("74LS32", "Quad 2-Input OR Gate", GateType.OR, 4, 2, QUAD_2_INPUT_PINS),
    "74LS86": ICDefinition("74LS86", "Quad 2-Input XOR Gate", GateType.XOR, 4, 2, QUAD_2_INPUT_PINS),
    "MYSTERY": ICDefinition("MYSTERY", "Mystery IC", GateType.MYSTERY, 3, 3, TRIPLE_3_INPUT_PINS),
}


def get_ic_definition(ic_type) -> ICDefinition:
    try:
        return IC_DEFINITIONS[ic_type]
    except KeyError:
        raise ValueError(f"Unknown IC type {ic_type!r}; expected one of {sorted(IC_DEFINITIONS)}") from None


class IntegratedCircuit(Component):
    """
    14-pin DIP logic IC from the fixed catalog.

    Pins 1-7 run down the left edge and 8-14 back up the right edge, matching
    the physical package. Pin connectors are named after their datasheet
    function (``input 1A``, ``output 1``, ``VCC``...).
    """

    kind = ComponentKind.IC
    id_prefix = "IC"

    def __init__(self, ic_type, name=None, component_id=None):
        self.definition = get_ic_definition(ic_type)
        super().__init__(name or ic_type, component_id or _new_component_id(f"IC-{ic_type}"))
        self.ic_type = ic_type

        pin_count = len(self.definition.pin_mappings)
        half = pin_count / 2
        for pin_number in range(1, pin_count + 1):
            pin = self.definition.pin_mappings[pin_number]
            left_side = pin_number <= half
            if left_side:
                y = (pin_number - 1) / half + 1 / pin_count
            else:
                y = (pin_count - pin_number) / half + 1 / pin_count
            self._add_connector(
                pin.name,
                pin.role,
                (0.0 if left_side else 1.0, y),
                pin_number=pin_number,
                gate_index=pin.gate_index,
                input_index=pin.input_index,
            )

    @property
    def gate_type(self) -> GateType:
        return self.definition.gate_type

    def pin(self, pin_number) -> Connector:
        """Connector for a 1-based package pin number."""
        return self.connector(self.definition.pin_mappings[pin_number].name)

    @property
    def properties(self):
        return {"name": self.name, "ic_type": self.ic_type}


def find_component(components, kind):
    """First component of ``kind`` in a component map, or None."""
    for component in components.values():
        if component.kind is kind:
            return component
    return None
