"""
Receivers for catalog lifecycle events and the post-migrate schema guard.
"""
import logging

from django.conf import settings
from django.db.models.signals import post_migrate
from django.dispatch import receiver

from .services.catalog import events
from .services.catalog.schema_guard import backfill_missing_images, ensure_image_column

logger = logging.getLogger(__name__)


@receiver(events.product_created)
def log_product_created(sender, product_id, name, actor_id, **kwargs):
    logger.info(f"Product {name} (ID: {product_id}) created by {actor_id}")


@receiver(events.product_updated)
def log_product_updated(sender, product_id, actor_id, fields=None, **kwargs):
    logger.info(f"Product {product_id} updated by {actor_id}: {', '.join(fields or [])}")


@receiver(events.product_deleted)
def log_product_deleted(sender, product_id, actor_id, **kwargs):
    logger.info(f"Product {product_id} deleted by {actor_id}")


@receiver(post_migrate)
def guard_product_image_column(sender, using, **kwargs):
    """
    Re-run the image column guard after every `migrate`.

    Databases created before the column existed get it added here, and
    products with an empty image are pointed at the placeholder.
    """
    if getattr(sender, 'name', None) != 'storefront':
        return
    if not getattr(settings, 'CATALOG_SCHEMA_GUARD_ON_MIGRATE', True):
        return

    result = ensure_image_column(using=using)
    if result.added:
        logger.warning("products.image was missing and has been added")
    updated = backfill_missing_images(using=using)
    if updated:
        logger.info(f"Backfilled placeholder image for {updated} products after migrate")
