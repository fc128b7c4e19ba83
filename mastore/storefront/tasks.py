import logging
from io import StringIO

from celery import shared_task
from django.core.management import call_command

logger = logging.getLogger(__name__)


@shared_task
def verify_product_images_task(dry_run=False):
    """
    Celery task for the scheduled product image audit.
    """
    try:
        logger.info("Starting product image verification task...")

        output = StringIO()
        call_command('verify_product_images', dry_run=dry_run, stdout=output)

        logger.info(f"Product image verification finished: {output.getvalue().strip()}")
        return output.getvalue()

    except Exception as e:
        logger.error(f"Error verifying product images: {e}", exc_info=True)
        raise
