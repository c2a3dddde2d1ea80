import logging

from django.dispatch import receiver

from .signals import order_status_changed

logger = logging.getLogger(__name__)


@receiver(order_status_changed)
def log_status_change(sender, order, old, new, by_user=None, **kwargs):
    logger.info(
        "Order %s: %s -> %s%s",
        order.pk, old, new,
        f" by user {by_user.pk}" if getattr(by_user, "pk", None) else "",
    )
