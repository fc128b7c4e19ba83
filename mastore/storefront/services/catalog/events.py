"""
Product lifecycle notifications.

Events are sent only after the surrounding transaction commits, so a
listener never sees a product that was rolled back.
"""
from __future__ import annotations

import logging

from django.db import DEFAULT_DB_ALIAS, transaction
from django.dispatch import Signal

logger = logging.getLogger(__name__)

# kwargs: product_id, name, actor_id
product_created = Signal()
# kwargs: product_id, actor_id, fields
product_updated = Signal()
# kwargs: product_id, actor_id
product_deleted = Signal()


def emit(signal: Signal, sender, using: str = DEFAULT_DB_ALIAS, **payload) -> None:
    def _send():
        for receiver, result in signal.send_robust(sender=sender, **payload):
            if isinstance(result, Exception):
                logger.error(
                    f"Receiver {receiver!r} failed for {payload.get('product_id')}: {result}",
                    exc_info=result,
                )

    transaction.on_commit(_send, using=using)
