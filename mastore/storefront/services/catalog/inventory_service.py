"""
Stock records per product and location.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS, transaction
from django.utils import timezone

from storefront.models import Inventory, Product

from .errors import NotFound, ValidationError
from .validation import require_actor

logger = logging.getLogger(__name__)

INVENTORY_FIELDS = ("quantity", "reserved_quantity", "reorder_level", "max_stock_level")


def _location(location: Optional[str]) -> str:
    return (location or "").strip() or settings.INVENTORY_DEFAULT_LOCATION


def ensure_inventory(product: Product, *, location: Optional[str] = None, using: str = DEFAULT_DB_ALIAS) -> Inventory:
    """
    Create the (product, location) stock row unless it already exists.

    The insert is conflict-tolerant, so an existing row keeps its counts.
    """
    location = _location(location)
    Inventory.objects.using(using).bulk_create(
        [
            Inventory(
                product_id=product.pk,
                location=location,
                quantity=0,
                reorder_level=settings.INVENTORY_DEFAULT_REORDER_LEVEL,
            )
        ],
        ignore_conflicts=True,
    )
    return Inventory.objects.using(using).get(product_id=product.pk, location=location)


def get_inventory(product_id: str, location: Optional[str] = None, using: str = DEFAULT_DB_ALIAS) -> Inventory:
    try:
        return Inventory.objects.using(using).get(product_id=product_id, location=_location(location))
    except Inventory.DoesNotExist:
        raise NotFound("Inventory record not found", product_id=product_id)


def _parse_count(field: str, value) -> Optional[int]:
    if value is None:
        if field == "max_stock_level":
            return None
        raise ValidationError(f"{field} is required", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a whole number", field=field)
    try:
        count = int(str(value).strip())
    except ValueError:
        raise ValidationError(f"{field} must be a whole number", field=field)
    if count < 0:
        raise ValidationError(f"{field} cannot be negative", field=field)
    return count


def update_inventory(
    actor_id,
    product_id: str,
    *,
    location: Optional[str] = None,
    using: str = DEFAULT_DB_ALIAS,
    **changes,
) -> Inventory:
    """
    Partially update a stock row. Only keys in `INVENTORY_FIELDS` are accepted.
    """
    require_actor(actor_id)
    unknown = set(changes) - set(INVENTORY_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown inventory fields: {', '.join(sorted(unknown))}")

    values = {field: _parse_count(field, value) for field, value in changes.items()}

    with transaction.atomic(using=using):
        try:
            inventory = (
                Inventory.objects.using(using)
                .select_for_update()
                .get(product_id=product_id, location=_location(location))
            )
        except Inventory.DoesNotExist:
            raise NotFound("Inventory record not found", product_id=product_id)

        for field, value in values.items():
            setattr(inventory, field, value)
        inventory.last_updated = timezone.now()
        inventory.save(using=using, update_fields=[*values, "last_updated"])

    logger.info(f"Inventory for {product_id}@{inventory.location} updated by {actor_id}: {values}")
    return inventory


def low_stock(threshold: Optional[int] = None, using: str = DEFAULT_DB_ALIAS) -> List[Inventory]:
    """Rows whose quantity is below `threshold`, lowest stock first."""
    if threshold is None:
        threshold = settings.INVENTORY_LOW_STOCK_THRESHOLD
    return list(
        Inventory.objects.using(using)
        .select_related("product")
        .defer("product__image")
        .filter(quantity__lt=threshold)
        .order_by("quantity", "product_id")
    )
