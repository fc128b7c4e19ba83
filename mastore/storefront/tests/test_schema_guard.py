"""
Tests for the products.image guard and degraded writes without the column.
"""
from __future__ import annotations

from unittest import mock

from django.db import DatabaseError, OperationalError, connection
from django.test import TestCase, TransactionTestCase

from storefront.models import PLACEHOLDER_IMAGE, Category, Inventory, Product, ProductImage
from storefront.services.catalog import (
    InternalError,
    SchemaMismatch,
    backfill_missing_images,
    check_schema,
    create_product,
    ensure_image_column,
    image_column_available,
    verify_and_repair,
)
from storefront.services.catalog.schema_guard import (
    mark_image_column_missing,
    missing_column_in_error,
    reset_schema_cache,
    translate_database_error,
)

from .base import ADMIN, CatalogServiceTestCase, product_fields


class EnsureImageColumnTests(CatalogServiceTestCase):
    def tearDown(self):
        reset_schema_cache()

    def test_ensure_is_idempotent(self):
        first = ensure_image_column()
        second = ensure_image_column()

        self.assertFalse(first.added)
        self.assertFalse(second.added)
        self.assertTrue(image_column_available())

    def test_ensure_refreshes_stale_probe(self):
        mark_image_column_missing()
        self.assertFalse(image_column_available())

        ensure_image_column()

        self.assertTrue(image_column_available())

    def test_check_schema_reports_ok(self):
        status = check_schema()

        self.assertTrue(status["ok"])
        self.assertTrue(status["image_column"])
        self.assertEqual(status["missing_tables"], [])
        self.assertIsNone(status["error"])

    def test_backfill_sets_placeholder_on_empty_images(self):
        create_product(ADMIN, product_fields(id="p-1"), ["url-a"])
        create_product(ADMIN, product_fields(id="p-2"), [])
        Product.objects.filter(pk="p-2").update(image="")

        self.assertEqual(backfill_missing_images(), 1)
        self.assertEqual(Product.objects.get(pk="p-2").image, PLACEHOLDER_IMAGE)
        self.assertEqual(Product.objects.get(pk="p-1").image, "url-a")
        self.assertEqual(backfill_missing_images(), 0)

    def test_backfill_refuses_without_column(self):
        mark_image_column_missing()

        with self.assertRaises(SchemaMismatch):
            backfill_missing_images()

    def test_verify_refuses_without_column(self):
        with mock.patch(
            "storefront.services.catalog.consistency.image_column_available",
            return_value=False,
        ):
            with self.assertRaises(SchemaMismatch):
                verify_and_repair()


class DatabaseErrorMappingTests(TestCase):
    def test_missing_column_messages(self):
        messages = {
            "no such column: products.image": "image",
            "table products has no column named image": "image",
            'column "image" of relation "products" does not exist': "image",
            "column products.image does not exist": "image",
            "(1054, \"Unknown column 'image' in 'field list'\")": "image",
            "(1054, \"Unknown column 'products.image' in 'field list'\")": "image",
        }
        for message, column in messages.items():
            with self.subTest(message=message):
                self.assertEqual(missing_column_in_error(DatabaseError(message)), column)

    def test_other_errors_have_no_column(self):
        self.assertIsNone(missing_column_in_error(DatabaseError("deadlock detected")))

    def test_translate_missing_column(self):
        error = translate_database_error(OperationalError("no such column: products.image"), "Create product")

        self.assertIsInstance(error, SchemaMismatch)
        self.assertEqual(error.column, "image")
        self.assertFalse(error.actionable)

    def test_translate_other_error(self):
        error = translate_database_error(OperationalError("database is locked"), "Create product")

        self.assertIsInstance(error, InternalError)
        self.assertIn("database is locked", error.message)


class MissingImageColumnTests(TransactionTestCase):
    """
    Writes against a products table that lacks the image column.
    """

    def setUp(self):
        Category.objects.create(id="rice", name="Rice")
        reset_schema_cache()
        # prime the probe before the column disappears
        self.assertTrue(image_column_available())
        with connection.schema_editor() as editor:
            editor.remove_field(Product, Product._meta.get_field("image"))

    def tearDown(self):
        reset_schema_cache()
        ensure_image_column()
        reset_schema_cache()

    def assert_degraded_product(self, product_id, main_image):
        product = Product.objects.defer("image").get(pk=product_id)
        self.assertEqual(product.name, "Rice")
        primary = ProductImage.objects.get(product_id=product_id, is_primary=True)
        self.assertEqual(primary.image_url, main_image)
        self.assertTrue(Inventory.objects.filter(product_id=product_id).exists())

    def test_stale_probe_retries_without_column(self):
        with self.assertLogs("storefront.services.catalog.schema_guard", level="WARNING"):
            result = create_product(ADMIN, product_fields(id="p-1"), ["url-a", "url-b"])

        self.assertEqual(result.image, "url-a")
        self.assertFalse(image_column_available())
        self.assert_degraded_product("p-1", "url-a")

    def test_fresh_probe_skips_column(self):
        self.assertFalse(image_column_available(refresh=True))

        create_product(ADMIN, product_fields(id="p-1"), ["url-a"])

        self.assert_degraded_product("p-1", "url-a")

    def test_guard_restores_column_and_verifier_syncs(self):
        create_product(ADMIN, product_fields(id="p-1"), ["url-a"])

        result = ensure_image_column()
        self.assertTrue(result.added)
        self.assertTrue(image_column_available())
        self.assertEqual(Product.objects.get(pk="p-1").image, PLACEHOLDER_IMAGE)

        report = verify_and_repair()

        self.assertEqual(report.repaired, 1)
        self.assertEqual(Product.objects.get(pk="p-1").image, "url-a")

        second = ensure_image_column()
        self.assertFalse(second.added)
