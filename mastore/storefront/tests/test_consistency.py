"""
Tests for the product image audit.
"""
from __future__ import annotations

from unittest import mock

from django.db import DatabaseError

from storefront.models import PLACEHOLDER_IMAGE, Product, ProductImage
from storefront.services.catalog import (
    attach_image,
    create_product,
    remove_image,
    set_primary_image,
    update_product,
    verify_and_repair,
)
from storefront.services.catalog import consistency

from .base import ADMIN, CatalogServiceTestCase, product_fields


class VerifyAndRepairTests(CatalogServiceTestCase):
    def setUp(self):
        create_product(ADMIN, product_fields(id="p-1"), ["url-a", "url-b"])
        create_product(ADMIN, product_fields(id="p-2"), [])
        create_product(ADMIN, product_fields(id="p-3"), ["url-x"])

    def test_no_repairs_after_service_operations(self):
        attach_image(ADMIN, "p-2", "url-c")
        image = attach_image(ADMIN, "p-2", "url-d")
        set_primary_image(ADMIN, image.pk)
        update_product(ADMIN, "p-1", {"image": "url-e", "price": "99"})
        remove_image(ADMIN, ProductImage.objects.get(product_id="p-3").pk)

        report = verify_and_repair()

        self.assertEqual(report.scanned, 3)
        self.assertEqual(report.repaired, 0)
        self.assertEqual(report.placeholders, 1)
        self.assertEqual(report.failed, [])

    def test_stale_image_is_repaired(self):
        Product.objects.filter(pk="p-1").update(image="stale.jpg")
        Product.objects.filter(pk="p-2").update(image="")

        report = verify_and_repair()

        self.assertEqual(report.repaired, 2)
        self.assertEqual(Product.objects.get(pk="p-1").image, "url-a")
        self.assertEqual(Product.objects.get(pk="p-2").image, PLACEHOLDER_IMAGE)

    def test_missing_primary_flag_is_restored(self):
        ProductImage.objects.filter(product_id="p-1").update(is_primary=False)

        report = verify_and_repair()

        self.assertEqual(report.repaired, 1)
        self.assertTrue(ProductImage.objects.get(product_id="p-1", image_url="url-a").is_primary)
        self.assertEqual(Product.objects.get(pk="p-1").image, "url-a")

    def test_dry_run_writes_nothing(self):
        Product.objects.filter(pk="p-1").update(image="stale.jpg")

        report = verify_and_repair(dry_run=True)

        self.assertEqual(report.repaired, 1)
        self.assertEqual(Product.objects.get(pk="p-1").image, "stale.jpg")

    def test_failing_product_is_skipped(self):
        Product.objects.filter(pk__in=["p-1", "p-3"]).update(image="stale.jpg")
        original = consistency._repair_product

        def flaky(product_id, using, dry_run):
            if product_id == "p-1":
                raise DatabaseError("lock wait timeout exceeded")
            return original(product_id, using, dry_run)

        with mock.patch.object(consistency, "_repair_product", side_effect=flaky):
            with self.assertLogs("storefront.services.catalog.consistency", level="ERROR"):
                report = verify_and_repair()

        self.assertEqual(report.failed, ["p-1"])
        self.assertEqual(report.scanned, 3)
        self.assertEqual(report.repaired, 1)
        self.assertEqual(Product.objects.get(pk="p-1").image, "stale.jpg")
        self.assertEqual(Product.objects.get(pk="p-3").image, "url-x")

    def test_report_as_dict(self):
        report = verify_and_repair()

        self.assertEqual(
            report.as_dict(),
            {"scanned": 3, "repaired": 0, "placeholders": 1, "failed": []},
        )
