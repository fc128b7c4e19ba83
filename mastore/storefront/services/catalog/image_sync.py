"""
Keeps `Product.image` in step with the product's primary `ProductImage`.

Every function here expects to run inside the caller's transaction with the
owning product row already locked via `lock_product`, so two writers can
never interleave a promote/demote sequence for the same product.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import DEFAULT_DB_ALIAS
from django.utils import timezone

from storefront.models import PLACEHOLDER_IMAGE, Product, ProductImage

from .errors import NotFound
from .schema_guard import image_column_available

logger = logging.getLogger(__name__)


def lock_product(product_id: str, using: str = DEFAULT_DB_ALIAS) -> Product:
    """Take the row lock for `product_id`. Only the primary key is loaded."""
    product = (
        Product.objects.using(using)
        .select_for_update()
        .only("pk")
        .filter(pk=product_id)
        .first()
    )
    if product is None:
        raise NotFound("Product not found", product_id=product_id)
    return product


def _ordered_images(product_id: str, using: str):
    return ProductImage.objects.using(using).filter(product_id=product_id).order_by(
        "display_order", "created_at", "id"
    )


def _set_product_image(product_id: str, image_url: str, using: str) -> None:
    updates = {"updated_at": timezone.now()}
    if image_column_available(using):
        updates["image"] = image_url
    else:
        logger.warning("products.image is missing; skipping image sync for %s", product_id)
    Product.objects.using(using).filter(pk=product_id).update(**updates)


def demote_other_images(product_id: str, keep_id: Optional[int] = None, using: str = DEFAULT_DB_ALIAS) -> int:
    qs = ProductImage.objects.using(using).filter(product_id=product_id, is_primary=True)
    if keep_id is not None:
        qs = qs.exclude(pk=keep_id)
    return qs.update(is_primary=False)


def on_image_saved(image: ProductImage, using: str = DEFAULT_DB_ALIAS) -> None:
    """
    Propagate a freshly written image row.

    A primary image demotes its siblings and becomes `Product.image`.
    Non-primary writes leave the product untouched.
    """
    if not image.is_primary:
        return
    demote_other_images(image.product_id, keep_id=image.pk, using=using)
    _set_product_image(image.product_id, image.image_url, using)


def on_image_deleted(image: ProductImage, using: str = DEFAULT_DB_ALIAS) -> Optional[ProductImage]:
    """
    Repair the product after `image` has been deleted.

    If the deleted row was primary, the earliest remaining image is promoted;
    with nothing left the product falls back to the placeholder. Returns the
    promoted image, if any.
    """
    if not image.is_primary:
        return None

    replacement = _ordered_images(image.product_id, using).first()
    if replacement is None:
        _set_product_image(image.product_id, PLACEHOLDER_IMAGE, using)
        return None

    ProductImage.objects.using(using).filter(pk=replacement.pk).update(is_primary=True)
    replacement.is_primary = True
    _set_product_image(image.product_id, replacement.image_url, using)
    return replacement


def resolve_primary_image(product_id: str, using: str = DEFAULT_DB_ALIAS) -> Optional[ProductImage]:
    """The primary image, or the earliest one when none is flagged."""
    images = _ordered_images(product_id, using)
    return images.filter(is_primary=True).first() or images.first()


def expected_primary_image(product_id: str, using: str = DEFAULT_DB_ALIAS) -> str:
    image = resolve_primary_image(product_id, using)
    return image.image_url if image is not None else PLACEHOLDER_IMAGE
