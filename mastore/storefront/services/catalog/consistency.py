"""
Audit and repair of the denormalized `Product.image` column.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from django.db import DEFAULT_DB_ALIAS, DatabaseError, transaction

from storefront.models import PLACEHOLDER_IMAGE, Product, ProductImage

from . import image_sync
from .errors import CatalogError, NotFound, SchemaMismatch
from .schema_guard import IMAGE_COLUMN, image_column_available

logger = logging.getLogger(__name__)


@dataclass
class VerificationReport:
    """
    Attributes:
        scanned: Products inspected.
        repaired: Products whose image or primary flag had to be fixed.
        placeholders: Products left (or set) on the placeholder image.
        failed: Ids of products that could not be repaired.
    """

    scanned: int = 0
    repaired: int = 0
    placeholders: int = 0
    failed: List[str] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "scanned": self.scanned,
            "repaired": self.repaired,
            "placeholders": self.placeholders,
            "failed": list(self.failed),
        }


def _repair_product(product_id: str, using: str, dry_run: bool) -> tuple:
    """
    Returns (changed, expected_url) for one product. Runs under the row lock.
    """
    product = (
        Product.objects.using(using)
        .select_for_update()
        .only("pk", IMAGE_COLUMN)
        .filter(pk=product_id)
        .first()
    )
    if product is None:
        raise NotFound("Product not found", product_id=product_id)

    images = ProductImage.objects.using(using).filter(product_id=product_id)
    primaries = list(images.filter(is_primary=True).order_by("display_order", "created_at", "id"))
    changed = False

    if len(primaries) > 1:
        # MySQL has no partial unique index to stop this
        changed = True
        if not dry_run:
            image_sync.demote_other_images(product_id, keep_id=primaries[0].pk, using=using)

    expected = image_sync.resolve_primary_image(product_id, using)
    if expected is not None and not expected.is_primary:
        changed = True
        if not dry_run:
            images.filter(pk=expected.pk).update(is_primary=True)

    expected_url = expected.image_url if expected is not None else PLACEHOLDER_IMAGE
    if product.image != expected_url:
        changed = True
        if not dry_run:
            Product.objects.using(using).filter(pk=product_id).update(image=expected_url)

    if changed:
        action = "would repair" if dry_run else "repaired"
        logger.info(f"Product {product_id}: {action} image {product.image!r} -> {expected_url!r}")
    return changed, expected_url


def verify_and_repair(*, using: str = DEFAULT_DB_ALIAS, dry_run: bool = False) -> VerificationReport:
    """
    Recompute every product's main image from its gallery and fix mismatches.

    Each product is repaired in its own transaction; a failure is logged and
    recorded in `failed` without stopping the scan. With `dry_run` nothing is
    written and `repaired` counts the products that would change.
    """
    if not image_column_available(using, refresh=True):
        raise SchemaMismatch(
            "products.image is missing; run ensure_image_column first",
            table=Product._meta.db_table,
            column=IMAGE_COLUMN,
        )

    report = VerificationReport()
    product_ids = list(Product.objects.using(using).order_by("pk").values_list("pk", flat=True))

    for product_id in product_ids:
        try:
            with transaction.atomic(using=using):
                changed, expected_url = _repair_product(product_id, using, dry_run)
        except NotFound:
            # deleted while we were scanning
            continue
        except (DatabaseError, CatalogError) as exc:
            logger.error(f"Could not verify image for product {product_id}: {exc}", exc_info=True)
            report.failed.append(product_id)
            report.scanned += 1
            continue

        report.scanned += 1
        if changed:
            report.repaired += 1
        if expected_url == PLACEHOLDER_IMAGE:
            report.placeholders += 1

    logger.info(
        f"Image verification finished: scanned={report.scanned} repaired={report.repaired} "
        f"placeholders={report.placeholders} failed={len(report.failed)}"
    )
    return report
