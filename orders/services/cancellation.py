from __future__ import annotations

import logging
from typing import Optional

from orders.exceptions import OrderNotCancellable
from orders.models import Order
from payments.prefetch import checkout_key, registry
from payments.services import PaymentServiceClient, get_payment_client

logger = logging.getLogger(__name__)


def cancel_order(order: Order, client: Optional[PaymentServiceClient] = None, by_user=None) -> Optional[Order]:
    """
    Cancel an order the customer no longer wants.

    A COD order that is still ``placed`` and unpaid is deleted outright and
    ``None`` is returned. A UPI order waiting for payment is cancelled with the
    payment service first, then kept locally as ``cancelled``. Everything else
    raises :class:`OrderNotCancellable`.
    """
    if order.is_cod_cancellable:
        order_id = order.pk
        order.delete()
        logger.info("Deleted unpaid COD order %s", order_id)
        return None

    if order.is_upi_pending:
        client = client or get_payment_client()
        # PaymentServiceError propagates; the order stays pending if the service refuses
        client.cancel(order.reference_id or str(order.pk))
        order.transition_to(Order.STATUS_CANCELLED, by_user=by_user)
        registry.discard(checkout_key(order.user_id, order.restaurant_id))
        logger.info("Cancelled pending UPI order %s", order.pk)
        return order

    raise OrderNotCancellable()
