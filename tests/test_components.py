#!/usr/bin/env python3
"""
Tests for the component catalog: connectors, roles, resistor/LED/supply
validation, DIP switches and IC definitions.
"""

import unittest
import os
import sys

# Add the parent directory to the path to import breadsim
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from breadsim import (
    ComponentKind, ConnectorRole, DIPSwitch, GateType, IntegratedCircuit, LED, PowerSupply, Resistor,
)
from breadsim.components import IC_DEFINITIONS, get_ic_definition
from breadsim.connectors import DEFAULT_HIT_AREA, Connector, roles_compatible


class TestConnector(unittest.TestCase):
    """Test Connector creation and role rules."""

    def test_create(self):
        """Test Connector creation and metadata."""
        connector = Connector.create("R1", "left", "bidirectional", gate_index=None, switch_index=2)
        self.assertEqual(connector.id, "R1:left")
        self.assertEqual(connector.name, "left")
        self.assertEqual(connector.role, ConnectorRole.BIDIRECTIONAL)
        self.assertFalse(connector.is_connected)
        self.assertEqual(connector.metadata, {"switch_index": 2})
        self.assertIsNone(connector.gate_index)
        self.assertEqual(connector.hit_area, DEFAULT_HIT_AREA)

    def test_role_table(self):
        """Test the role compatibility table."""
        self.assertTrue(roles_compatible(ConnectorRole.INPUT, ConnectorRole.OUTPUT))
        self.assertTrue(roles_compatible(ConnectorRole.INPUT, ConnectorRole.BIDIRECTIONAL))
        self.assertFalse(roles_compatible(ConnectorRole.INPUT, ConnectorRole.INPUT))
        self.assertFalse(roles_compatible(ConnectorRole.INPUT, ConnectorRole.POSITIVE))
        self.assertTrue(roles_compatible(ConnectorRole.POSITIVE, ConnectorRole.ANODE))
        self.assertFalse(roles_compatible(ConnectorRole.POSITIVE, ConnectorRole.NEGATIVE))
        self.assertTrue(roles_compatible(ConnectorRole.NEGATIVE, ConnectorRole.CATHODE))
        self.assertTrue(roles_compatible(ConnectorRole.CATHODE, ConnectorRole.ANODE))
        self.assertFalse(roles_compatible(ConnectorRole.ANODE, ConnectorRole.NEGATIVE))
        for role in ConnectorRole:
            self.assertTrue(roles_compatible(ConnectorRole.BIDIRECTIONAL, role))


class TestPowerSupply(unittest.TestCase):

    def test_defaults(self):
        """Test PowerSupply defaults."""
        supply = PowerSupply()
        self.assertEqual(supply.voltage, 5.0)
        self.assertEqual(supply.kind, ComponentKind.POWER_SUPPLY)
        self.assertEqual(supply.positive.role, ConnectorRole.POSITIVE)
        self.assertEqual(supply.negative.role, ConnectorRole.NEGATIVE)
        self.assertTrue(supply.id.startswith("PowerSupply-"))

    def test_voltage_range(self):
        """Test PowerSupply voltage validation."""
        PowerSupply(0)
        PowerSupply(24)
        for bad in (-1, 24.5, "5", None):
            with self.assertRaises(ValueError):
                PowerSupply(bad)


class TestResistor(unittest.TestCase):

    def test_units(self):
        """Test resistance unit multipliers."""
        self.assertEqual(Resistor(300).resistance, 300)
        self.assertEqual(Resistor(1, "kΩ").resistance, 1000)
        self.assertEqual(Resistor(2, "MΩ").resistance, 2e6)
        self.assertEqual(Resistor(47, "kohm").resistance, 47e3)

    def test_value_validation(self):
        """Test Resistor value validation."""
        for bad in (0, 1.5, 2e6, float("inf"), float("nan"), True, "300"):
            with self.assertRaises(ValueError, msg=repr(bad)):
                Resistor(bad)
        with self.assertRaises(ValueError):
            Resistor(10, "mΩ")

    def test_properties(self):
        """Test the editable properties of a resistor."""
        resistor = Resistor(10, "kΩ", name="R1")
        self.assertEqual(resistor.properties, {"name": "R1", "value": 10, "unit": "kΩ"})
        self.assertEqual([c.name for c in resistor.get_connectors()], ["left", "right"])


class TestLED(unittest.TestCase):

    def test_terminals(self):
        """Test LED anode and cathode connectors."""
        led = LED("green")
        self.assertEqual(led.anode.role, ConnectorRole.ANODE)
        self.assertEqual(led.cathode.role, ConnectorRole.CATHODE)
        self.assertEqual(led.properties["colour"], "green")

    def test_bad_colour(self):
        """Test that an unknown LED colour is rejected."""
        with self.assertRaises(ValueError):
            LED("ultraviolet")


class TestDIPSwitch(unittest.TestCase):

    def test_connectors(self):
        """Test that a DIP switch has two terminals per switch."""
        switch = DIPSwitch()
        self.assertEqual(len(switch.get_connectors()), 16)
        left, right = switch.terminals(3)
        self.assertEqual(left.metadata["switch_index"], 3)
        self.assertEqual(right.name, "terminal-3-right")
        self.assertEqual(switch.switch_states, [False] * 8)

    def test_toggle(self):
        """Test setting and toggling switches."""
        switch = DIPSwitch()
        switch.toggle(2)
        self.assertTrue(switch.switch_states[2])
        switch.set_switch(2, False)
        self.assertFalse(switch.switch_states[2])
        with self.assertRaises(IndexError):
            switch.set_switch(8, True)

    def test_state_length(self):
        """Test that the switch state list must have eight entries."""
        with self.assertRaises(ValueError):
            DIPSwitch([True] * 7)


class TestIntegratedCircuit(unittest.TestCase):

    def test_catalog(self):
        """Test the IC catalog contents."""
        self.assertEqual(set(IC_DEFINITIONS), {"74LS00", "74LS02", "74LS04", "74LS08", "74LS32", "74LS86", "MYSTERY"})
        for definition in IC_DEFINITIONS.values():
            self.assertEqual(len(definition.pin_mappings), 14)
            gates = {p.gate_index for p in definition.pin_mappings.values() if p.gate_index is not None}
            self.assertEqual(len(gates), definition.gate_count)

    def test_unknown_type(self):
        """Test that an unknown IC type is rejected."""
        with self.assertRaises(ValueError):
            get_ic_definition("74LS999")
        with self.assertRaises(ValueError):
            IntegratedCircuit("74LS999")

    def test_nand_pins(self):
        """Test the 74LS00 pinout."""
        ic = IntegratedCircuit("74LS00")
        self.assertEqual(ic.gate_type, GateType.NAND)
        self.assertEqual(len(ic.get_connectors()), 14)
        pin1 = ic.pin(1)
        self.assertEqual(pin1.role, ConnectorRole.INPUT)
        self.assertEqual((pin1.gate_index, pin1.input_index), (0, 0))
        pin3 = ic.pin(3)
        self.assertEqual(pin3.role, ConnectorRole.OUTPUT)
        self.assertEqual(pin3.gate_index, 0)
        self.assertIsNone(pin3.input_index)
        self.assertEqual(ic.pin(7).role, ConnectorRole.NEGATIVE)
        self.assertEqual(ic.pin(14).role, ConnectorRole.POSITIVE)
        self.assertIsNone(ic.pin(14).gate_index)

    def test_hex_inverter_gates(self):
        """Test the 74LS04 gate layout."""
        ic = IntegratedCircuit("74LS04")
        outputs = [c for c in ic.get_connectors() if c.role is ConnectorRole.OUTPUT]
        self.assertEqual(sorted(c.gate_index for c in outputs), list(range(6)))

    def test_mystery_has_three_inputs_per_gate(self):
        """Test the three-input MYSTERY gates."""
        ic = IntegratedCircuit("MYSTERY")
        inputs = [c for c in ic.get_connectors() if c.role is ConnectorRole.INPUT and c.gate_index == 1]
        self.assertEqual(sorted(c.input_index for c in inputs), [0, 1, 2])


if __name__ == '__main__':
    unittest.main()
