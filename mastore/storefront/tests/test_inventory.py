"""
Tests for stock rows.
"""
from __future__ import annotations

from django.test import override_settings

from storefront.models import Inventory, Product
from storefront.services.catalog import (
    NotFound,
    Unauthorized,
    ValidationError,
    create_product,
    ensure_inventory,
    get_inventory,
    low_stock,
    update_inventory,
)

from .base import ADMIN, CatalogServiceTestCase, product_fields


class InventoryServiceTests(CatalogServiceTestCase):
    def setUp(self):
        create_product(ADMIN, product_fields(id="p-1"))
        create_product(ADMIN, product_fields(id="p-2"))

    def test_product_creation_creates_main_stock_row(self):
        inventory = get_inventory("p-1")

        self.assertEqual(inventory.location, "main")
        self.assertEqual(inventory.quantity, 0)
        self.assertEqual(inventory.reserved_quantity, 0)
        self.assertEqual(inventory.reorder_level, 10)
        self.assertIsNone(inventory.max_stock_level)
        self.assertTrue(inventory.needs_reorder)

    def test_ensure_inventory_keeps_existing_counts(self):
        update_inventory(ADMIN, "p-1", quantity=25)

        ensure_inventory(Product.objects.get(pk="p-1"))

        self.assertEqual(Inventory.objects.filter(product_id="p-1").count(), 1)
        self.assertEqual(get_inventory("p-1").quantity, 25)

    def test_ensure_inventory_for_another_location(self):
        inventory = ensure_inventory(Product.objects.get(pk="p-1"), location="warehouse")

        self.assertEqual(inventory.location, "warehouse")
        self.assertEqual(Inventory.objects.filter(product_id="p-1").count(), 2)

    def test_update_inventory(self):
        inventory = update_inventory(ADMIN, "p-1", quantity="40", reserved_quantity=5, max_stock_level=500)

        self.assertEqual(inventory.quantity, 40)
        self.assertEqual(inventory.available_quantity, 35)
        stored = get_inventory("p-1")
        self.assertEqual(stored.max_stock_level, 500)
        self.assertEqual(stored.reorder_level, 10)

    def test_negative_quantity_is_rejected(self):
        with self.assertRaises(ValidationError):
            update_inventory(ADMIN, "p-1", quantity=-1)
        self.assertEqual(get_inventory("p-1").quantity, 0)

    def test_unknown_field_is_rejected(self):
        with self.assertRaises(ValidationError):
            update_inventory(ADMIN, "p-1", price=10)

    def test_update_requires_actor(self):
        with self.assertRaises(Unauthorized):
            update_inventory(None, "p-1", quantity=1)

    def test_missing_row_is_not_found(self):
        with self.assertRaises(NotFound):
            get_inventory("p-1", location="warehouse")
        with self.assertRaises(NotFound):
            update_inventory(ADMIN, "nope", quantity=1)

    def test_low_stock(self):
        update_inventory(ADMIN, "p-1", quantity=3)
        update_inventory(ADMIN, "p-2", quantity=100)

        self.assertEqual([row.product_id for row in low_stock()], ["p-1"])
        self.assertEqual([row.product_id for row in low_stock(threshold=1000)], ["p-1", "p-2"])

    @override_settings(INVENTORY_LOW_STOCK_THRESHOLD=2)
    def test_low_stock_default_threshold_from_settings(self):
        update_inventory(ADMIN, "p-1", quantity=3)
        update_inventory(ADMIN, "p-2", quantity=1)

        self.assertEqual([row.product_id for row in low_stock()], ["p-2"])
