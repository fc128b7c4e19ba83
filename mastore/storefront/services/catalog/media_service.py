"""
Image-set mutations for a single product.

Each operation locks the owning product row, writes the `ProductImage`
change and lets `image_sync` propagate it, all in one transaction.
"""
from __future__ import annotations

import logging
from typing import Optional

from django.db import DEFAULT_DB_ALIAS
from django.db.models import Max

from storefront.models import PLACEHOLDER_IMAGE, ProductImage

from . import events, image_sync
from .errors import NotFound, ValidationError
from .schema_guard import run_guarded
from .validation import clean_text, require_actor

logger = logging.getLogger(__name__)


def _get_image(image_id: int, using: str) -> ProductImage:
    image = ProductImage.objects.using(using).filter(pk=image_id).first()
    if image is None:
        raise NotFound("Product image not found", image_id=image_id)
    return image


def _product_has_primary(product_id: str, using: str) -> bool:
    return ProductImage.objects.using(using).filter(product_id=product_id, is_primary=True).exists()


def attach_image(
    actor_id,
    product_id: str,
    image_url: str,
    *,
    alt_text: Optional[str] = None,
    is_primary: bool = False,
    display_order: Optional[int] = None,
    using: str = DEFAULT_DB_ALIAS,
) -> ProductImage:
    """
    Add `image_url` to the product's gallery.

    The first image of a product always becomes primary. Attaching a URL the
    product already has updates that row instead of inserting a duplicate.
    """
    require_actor(actor_id)
    url = clean_text(image_url, ProductImage._meta.get_field("image_url").max_length, "image_url")
    if not url:
        raise ValidationError("Image URL is required", field="image_url")
    if url == PLACEHOLDER_IMAGE:
        raise ValidationError("The placeholder image cannot be attached", field="image_url")
    alt = clean_text(alt_text, ProductImage._meta.get_field("alt_text").max_length, "alt_text")
    if display_order is not None and display_order < 0:
        raise ValidationError("Display order cannot be negative", field="display_order")

    def _attach() -> ProductImage:
        image_sync.lock_product(product_id, using)

        make_primary = is_primary or not _product_has_primary(product_id, using)
        image = ProductImage.objects.using(using).filter(product_id=product_id, image_url=url).first()
        if image is None:
            order = display_order
            if order is None:
                current = ProductImage.objects.using(using).filter(product_id=product_id).aggregate(
                    top=Max("display_order")
                )["top"]
                order = 0 if current is None else current + 1
            image = ProductImage(product_id=product_id, image_url=url, display_order=order)
        elif display_order is not None:
            image.display_order = display_order

        if alt_text is not None:
            image.alt_text = alt or None
        if make_primary:
            # siblings first, the partial unique index allows one primary per product
            image_sync.demote_other_images(product_id, keep_id=image.pk, using=using)
            image.is_primary = True
        image.save(using=using)
        image_sync.on_image_saved(image, using=using)
        events.emit(
            events.product_updated, sender=ProductImage, using=using,
            product_id=product_id, actor_id=actor_id, fields=["images"],
        )
        return image

    image = run_guarded("Attach image", _attach, using)
    logger.info(f"Image {image.pk} attached to {product_id} by {actor_id} (primary={image.is_primary})")
    return image


def set_primary_image(actor_id, image_id: int, *, using: str = DEFAULT_DB_ALIAS) -> ProductImage:
    require_actor(actor_id)

    def _promote() -> ProductImage:
        product_id = _get_image(image_id, using).product_id
        image_sync.lock_product(product_id, using)
        # re-read under the lock
        image = _get_image(image_id, using)
        image_sync.demote_other_images(product_id, keep_id=image.pk, using=using)
        if not image.is_primary:
            image.is_primary = True
            image.save(using=using, update_fields=["is_primary"])
        image_sync.on_image_saved(image, using=using)
        events.emit(
            events.product_updated, sender=ProductImage, using=using,
            product_id=product_id, actor_id=actor_id, fields=["image"],
        )
        return image

    image = run_guarded("Set primary image", _promote, using)
    logger.info(f"Image {image.pk} is now primary for {image.product_id}")
    return image


def remove_image(actor_id, image_id: int, *, using: str = DEFAULT_DB_ALIAS) -> Optional[ProductImage]:
    """
    Delete an image. Returns the image promoted in its place, if any.
    """
    require_actor(actor_id)

    def _remove() -> Optional[ProductImage]:
        product_id = _get_image(image_id, using).product_id
        image_sync.lock_product(product_id, using)
        image = _get_image(image_id, using)
        image.delete(using=using)
        replacement = image_sync.on_image_deleted(image, using=using)
        events.emit(
            events.product_updated, sender=ProductImage, using=using,
            product_id=product_id, actor_id=actor_id, fields=["images"],
        )
        return replacement

    replacement = run_guarded("Remove image", _remove, using)
    logger.info(f"Image {image_id} removed by {actor_id}")
    return replacement
