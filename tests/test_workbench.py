#!/usr/bin/env python3
"""
Tests for connections and the Workbench that manages them.
"""

import unittest
import os
import sys
import warnings

# Add the parent directory to the path to import breadsim
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from breadsim import (
    Breadboard, ConnectionKind, InvalidConnectionError, LED, PowerSupply, Resistor, Workbench,
    create_connection, validate_connection,
)
from .circuit_helpers import GROUND, POWER, free_pin, powered_bench, row


class TestCreateConnection(unittest.TestCase):
    """Test validation and classification of connections."""

    def setUp(self):
        self.board = Breadboard(component_id="bb")
        self.resistor = Resistor(100, component_id="R1")
        self.led = LED(component_id="D1")
        self.components = {c.id: c for c in (self.board, self.resistor, self.led)}

    def test_strip_connection(self):
        """Test a component pin seated on a strip."""
        pin = self.board.pin(row(1))
        connection = create_connection(self.resistor.left, pin, self.components)
        self.assertEqual(connection.kind, ConnectionKind.STRIP)
        self.assertEqual(connection.strip_id, row(1))
        self.assertIsNone(connection.target_strip_id)
        self.assertFalse(connection.is_bridge)

    def test_board_to_board_wire_bridges_strips(self):
        """Test a wire between two breadboard pins."""
        connection = create_connection(self.board.pin(row(1)), self.board.pin(POWER), self.components, wire_id="w1")
        self.assertEqual(connection.kind, ConnectionKind.WIRE)
        self.assertEqual(connection.strip_id, row(1))
        self.assertEqual(connection.target_strip_id, POWER)
        self.assertTrue(connection.is_bridge)
        self.assertEqual(connection.strip_ids(), (row(1), POWER))

    def test_component_to_board_wire(self):
        """Test a wire from a component to the breadboard."""
        connection = create_connection(self.resistor.right, self.board.pin(row(2)), self.components, wire_id="w2")
        self.assertTrue(connection.is_wire)
        self.assertFalse(connection.is_bridge)
        self.assertEqual(connection.strip_id, row(2))

    def test_board_pins_need_a_wire(self):
        """Test that two breadboard pins cannot be joined without a wire."""
        with self.assertRaises(InvalidConnectionError):
            create_connection(self.board.pin(row(1), 4), self.board.pin(GROUND, 5), self.components)

    def test_requires_breadboard(self):
        """Test that one end must be on the breadboard."""
        self.assertFalse(validate_connection(self.resistor.left, self.led.anode, self.components))
        with self.assertRaises(InvalidConnectionError):
            create_connection(self.resistor.left, self.led.anode, self.components)

    def test_role_mismatch(self):
        """Test connector role compatibility."""
        # anode may not sit on a negative rail
        with self.assertRaises(InvalidConnectionError):
            create_connection(self.led.anode, self.board.pin(GROUND), self.components)
        self.assertTrue(validate_connection(self.led.cathode, self.board.pin(GROUND), self.components))

    def test_invalid_connection_is_value_error(self):
        """Test that InvalidConnectionError is a ValueError."""
        with self.assertRaises(ValueError):
            create_connection(self.resistor.left, self.resistor.left, self.components)


class TestWorkbench(unittest.TestCase):
    """Test the connection bookkeeping of the Workbench."""

    def setUp(self):
        self.bench, self.board, self.supply = powered_bench()

    def test_connect_marks_connectors(self):
        """Test that connect marks both connectors."""
        resistor = self.bench.add_component(Resistor(100))
        pin = free_pin(self.bench, self.board, row(1))
        connection = self.bench.connect(resistor.left, pin)
        self.assertTrue(resistor.left.is_connected)
        self.assertTrue(pin.is_connected)
        self.assertIs(self.bench.connection_for(resistor.left), connection)
        self.assertIs(self.bench.connection_for(pin.id), connection)

    def test_one_connection_per_connector(self):
        """Test that a connector takes part in one connection."""
        resistor = self.bench.add_component(Resistor(100))
        self.bench.connect(resistor.left, free_pin(self.bench, self.board, row(1)))
        with self.assertRaises(InvalidConnectionError):
            self.bench.connect(resistor.left, free_pin(self.bench, self.board, row(2)))

    def test_component_must_be_on_bench(self):
        """Test that components must be added first."""
        resistor = Resistor(100)
        with self.assertRaises(InvalidConnectionError):
            self.bench.connect(resistor.left, free_pin(self.bench, self.board, row(1)))

    def test_disconnect(self):
        """Test removing a connection."""
        resistor = self.bench.add_component(Resistor(100))
        pin = free_pin(self.bench, self.board, row(1))
        connection = self.bench.connect(resistor.left, pin)
        self.bench.disconnect(resistor.left)
        self.assertNotIn(connection.id, self.bench.connections)
        self.assertFalse(resistor.left.is_connected)
        self.assertFalse(pin.is_connected)
        self.assertIsNone(self.bench.connection_for(pin))

    def test_remove_component_drops_connections(self):
        """Test that removing a component drops its connections."""
        resistor = self.bench.add_component(Resistor(100))
        self.bench.connect(resistor.left, free_pin(self.bench, self.board, row(1)))
        self.bench.connect(resistor.right, free_pin(self.bench, self.board, row(2)))
        self.bench.remove_component(resistor)
        self.assertNotIn(resistor.id, self.bench.components)
        self.assertFalse(any(c.touches(resistor.id) for c in self.bench.connections.values()))

    def test_connect_rejects_board_to_board(self):
        """Test that connect refuses two breadboard pins and leaves them free."""
        first = free_pin(self.bench, self.board, row(1))
        second = free_pin(self.bench, self.board, GROUND)
        with self.assertRaises(InvalidConnectionError):
            self.bench.connect(first, second)
        self.assertFalse(first.is_connected)
        self.assertFalse(second.is_connected)
        self.assertIsNone(self.bench.connection_for(first))
        connection = self.bench.wire(first, second)
        self.assertTrue(connection.is_bridge)
        self.assertEqual(connection.target_strip_id, GROUND)

    def test_wire_generates_wire_id(self):
        """Test generated wire ids."""
        connection = self.bench.wire(free_pin(self.bench, self.board, row(1)),
                                     free_pin(self.bench, self.board, row(2)))
        self.assertTrue(connection.wire_id.startswith("wire-"))

    def test_second_supply_warns(self):
        """Test the warning for a second power supply."""
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            self.bench.add_component(PowerSupply())
        self.assertEqual(len(caught), 1)
        self.assertIn("power supply", str(caught[0].message))

    def test_snapshot_is_read_only(self):
        """Test that the component snapshot is read-only."""
        with self.assertRaises(TypeError):
            self.bench.components["x"] = Resistor(1)

    def test_empty_workbench_simulates(self):
        """Test simulating an empty workbench."""
        report = Workbench().simulate()
        self.assertIsNone(report.analysis)
        self.assertEqual(report.error, "No valid circuit detected")


if __name__ == '__main__':
    unittest.main()
