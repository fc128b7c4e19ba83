"""
Tests for field parsing helpers.
"""
from __future__ import annotations

from decimal import Decimal

from django.test import SimpleTestCase

from storefront.services.catalog import Unauthorized, ValidationError
from storefront.services.catalog.validation import clean_text, parse_bool, parse_price, parse_tags, require_actor


class ValidationTests(SimpleTestCase):
    def test_parse_tags(self):
        self.assertEqual(parse_tags(" a, b, ,a "), ["a", "b"])
        self.assertEqual(parse_tags(["x", " y ", "", "x"]), ["x", "y"])
        self.assertEqual(parse_tags(None), [])
        self.assertEqual(parse_tags(""), [])

    def test_parse_price(self):
        self.assertEqual(parse_price("12.345"), Decimal("12.35"))
        self.assertEqual(parse_price(7000), Decimal("7000.00"))
        self.assertIsNone(parse_price(None))
        self.assertIsNone(parse_price("  "))
        for value in ("0", "0.004", "0.001", "-1", "abc", "NaN", "Infinity", True, "100000000000"):
            with self.subTest(value=value):
                with self.assertRaises(ValidationError):
                    parse_price(value)

    def test_clean_text(self):
        self.assertEqual(clean_text("  ab "), "ab")
        self.assertEqual(clean_text(None), "")
        self.assertEqual(clean_text(" ab ", 2, "unit"), "ab")
        with self.assertRaises(ValidationError) as ctx:
            clean_text("abc", 2, "unit")
        self.assertEqual(ctx.exception.details, {"field": "unit"})

    def test_parse_bool(self):
        self.assertTrue(parse_bool("yes"))
        self.assertTrue(parse_bool(True))
        self.assertFalse(parse_bool("off"))
        self.assertFalse(parse_bool(0))
        self.assertIsNone(parse_bool(None))
        self.assertIsNone(parse_bool(""))
        with self.assertRaises(ValidationError):
            parse_bool("maybe", "featured")

    def test_require_actor(self):
        require_actor("admin-1")
        for actor in (None, "", "   "):
            with self.subTest(actor=actor):
                with self.assertRaises(Unauthorized):
                    require_actor(actor)
