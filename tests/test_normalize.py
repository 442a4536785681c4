from __future__ import annotations

import unittest
from decimal import Decimal

from roster_node.merge.normalize import (
    is_placeholder,
    normalize_number,
    normalize_text,
    normalize_value,
)


class TestNormalizeNumber(unittest.TestCase):
    def test_strips_thousands_separators(self):
        self.assertEqual(normalize_number("1,234,567"), 1234567)
        self.assertEqual(normalize_number(" 12 345 "), 12345)

    def test_keeps_leading_minus(self):
        self.assertEqual(normalize_number("-1,000"), -1000)

    def test_unreadable_values_are_none(self):
        self.assertIsNone(normalize_number("???"))
        self.assertIsNone(normalize_number("12???"))
        self.assertIsNone(normalize_number("n/a"))
        self.assertIsNone(normalize_number(""))
        self.assertIsNone(normalize_number(None))

    def test_numbers_pass_through(self):
        self.assertEqual(normalize_number(42), 42)
        self.assertEqual(normalize_number(12.9), 12)
        self.assertEqual(normalize_number(Decimal("99")), 99)
        self.assertEqual(normalize_number(0), 0)

    def test_rejects_bool_and_non_finite(self):
        self.assertIsNone(normalize_number(True))
        self.assertIsNone(normalize_number(float("nan")))
        self.assertIsNone(normalize_number(float("inf")))


class TestNormalizeText(unittest.TestCase):
    def test_trims(self):
        self.assertEqual(normalize_text("  Bob "), "Bob")

    def test_placeholders_are_none(self):
        for value in ("???", "Unknown", "   ", "", None):
            self.assertIsNone(normalize_text(value), value)
        self.assertTrue(is_placeholder("UNKNOWN"))
        self.assertFalse(is_placeholder("Sweet Revenge"))

    def test_value_dispatches_on_field_kind(self):
        self.assertEqual(normalize_value("tiv", "5,000"), 5000)
        self.assertEqual(normalize_value("rank", 12), "12")
        self.assertIsNone(normalize_value("alliance", "???"))


if __name__ == "__main__":
    unittest.main()
