# FILE: payments/signals.py
from __future__ import annotations

import logging

from django.dispatch import receiver

from orders.signals import order_paid

from .prefetch import checkout_key, registry

logger = logging.getLogger(__name__)


@receiver(order_paid)
def drop_prefetched_link(sender, order, **kwargs):
    """A paid order no longer needs its warmed payment link."""
    registry.discard(checkout_key(order.user_id, order.restaurant_id))
    logger.debug("Discarded UPI prefetcher for order %s", order.pk)
