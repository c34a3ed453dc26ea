#!/usr/bin/env python3
"""
Tests for the breadboard layout: strips, pins and strip ids.
"""

import unittest
import os
import sys

# Add the parent directory to the path to import breadsim
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from breadsim import Breadboard, StripKind
from breadsim.topology import (
    BOARD_ROWS, PIN_SPACING, PINS_PER_STRIP, build_breadboard_layout,
    negative_strip_id, positive_strip_id, regular_strip_id,
)


class TestBreadboardLayout(unittest.TestCase):
    """Test the generated strip layout."""

    def setUp(self):
        self.connectors, self.mapping = build_breadboard_layout("board")

    def test_totals(self):
        """Seven sections produce 392 strips and 2432 pins."""
        self.assertEqual(len(self.mapping.strips), 392)
        self.assertEqual(len(self.connectors), 2432)

    def test_every_pin_in_exactly_one_strip(self):
        """Test that every pin belongs to exactly one strip."""
        seen = {}
        for strip in self.mapping.strips.values():
            for connector_id in strip.connector_ids:
                self.assertNotIn(connector_id, seen, f"{connector_id} in two strips")
                seen[connector_id] = strip.id
        self.assertEqual(set(seen), set(self.connectors))
        self.assertEqual(seen, dict(self.mapping.connector_to_strip))

    def test_rail_sections(self):
        """Test the power rail sections."""
        for section in (0, 2, 4, 6):
            positive = self.mapping.strips[positive_strip_id(section)]
            negative = self.mapping.strips[negative_strip_id(section)]
            self.assertEqual(positive.kind, StripKind.POSITIVE)
            self.assertEqual(negative.kind, StripKind.NEGATIVE)
            self.assertEqual(len(positive.connector_ids), BOARD_ROWS)
            self.assertEqual(len(negative.connector_ids), BOARD_ROWS)
        self.assertEqual(len(self.mapping.positive_strip_ids), 4)
        self.assertEqual(len(self.mapping.negative_strip_ids), 4)

    def test_regular_sections(self):
        """Test the regular sections."""
        for section in (1, 3, 5):
            for side in ("left", "right"):
                strip = self.mapping.strips[regular_strip_id(section, 1, side)]
                self.assertEqual(strip.kind, StripKind.BIDIRECTIONAL)
                self.assertEqual(len(strip.connector_ids), PINS_PER_STRIP)
        self.assertIn(regular_strip_id(5, 64, "right"), self.mapping.strips)
        self.assertNotIn(regular_strip_id(5, 65, "right"), self.mapping.strips)

    def test_strip_id_format(self):
        """Test strip id formats."""
        self.assertEqual(positive_strip_id(2), "positive-strip-plus-2")
        self.assertEqual(negative_strip_id(4), "negative-strip-minus-4")
        self.assertEqual(regular_strip_id(3, 12, "left"), "bidirectional-strip-12-3-left")
        with self.assertRaises(ValueError):
            regular_strip_id(3, 12, "middle")

    def test_pin_roles_follow_strip_kind(self):
        """Test that pin roles match their strip kind."""
        for strip in self.mapping.strips.values():
            role = self.connectors[strip.connector_ids[0]].role
            self.assertEqual(role.value, strip.kind.value)

    def test_strip_kind_is_rail(self):
        """Test StripKind.is_rail."""
        self.assertTrue(StripKind.POSITIVE.is_rail)
        self.assertTrue(StripKind.NEGATIVE.is_rail)
        self.assertFalse(StripKind.BIDIRECTIONAL.is_rail)


class TestBreadboardComponent(unittest.TestCase):
    """Test the Breadboard component wrapper."""

    def test_pin_lookup(self):
        """Test pin lookup on a breadboard."""
        board = Breadboard(component_id="bb")
        pin = board.pin(positive_strip_id(0), 3)
        self.assertEqual(pin.component_id, "bb")
        self.assertEqual(board.strip_id_for(pin), positive_strip_id(0))
        self.assertEqual(board.strip_id_for(pin.id), positive_strip_id(0))
        self.assertEqual(pin.hit_area, PIN_SPACING)

    def test_unknown_strip(self):
        """Test lookup of an unknown strip."""
        board = Breadboard()
        with self.assertRaises(KeyError):
            board.pin("no-such-strip")
        self.assertIsNone(board.strip_id_for("elsewhere:pin"))


if __name__ == '__main__':
    unittest.main()
