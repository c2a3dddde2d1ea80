# FILE: payments/upi.py
"""
UPI payment for an order that is waiting in ``pending_payment``.

One pass: get a payment link (prefetched if possible), optionally hand it to a
launcher (the device browser), give the service a moment to settle, then poll
the status once. A ``paid`` answer confirms the order; anything else leaves it
pending so the user can retry from the order screen.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from django.conf import settings

from orders.models import Order
from orders.signals import order_paid

from .deeplinks import build_callback_url, parse_callback_url
from .services import PaymentServiceClient, PaymentServiceError

logger = logging.getLogger(__name__)

OUTCOME_PAID = "paid"
OUTCOME_STILL_PENDING = "still_pending"
OUTCOME_AWAITING_RETURN = "awaiting_return"

# launcher(payment_url, callback_url) -> the URL the browser returned to, or None
Launcher = Callable[[str, str], Optional[str]]


@dataclass
class UPIOutcome:
    order: Order
    state: str
    payment_url: str = ""
    callback_url: str = ""
    raw_status: str = ""
    error: str = ""

    @property
    def is_paid(self) -> bool:
        return self.state == OUTCOME_PAID


def settle_delay(returned_via_callback: bool) -> float:
    via_callback, manual = getattr(settings, "UPI_RETURN_SETTLE_SECONDS", (0.6, 1.2))
    return float(via_callback if returned_via_callback else manual)


def confirm_paid(order: Order, raw_status: str = "") -> Order:
    if order.payment_status != Order.PAYMENT_PAID:
        order.mark_paid(raw_status=raw_status)
        logger.info("Order %s paid via UPI", order.pk)
        order_paid.send(sender=Order, order=order)
    return order


def poll_payment(order: Order, client: PaymentServiceClient) -> UPIOutcome:
    """Ask the payment service once and apply the answer to the order."""
    reference_id = order.reference_id or str(order.pk)
    try:
        status = client.fetch_status(reference_id)
    except PaymentServiceError as e:
        if e.already_paid:
            return UPIOutcome(order=confirm_paid(order, "already_paid"), state=OUTCOME_PAID, raw_status="already_paid")
        logger.warning("Status check failed for order %s: %s", order.pk, e)
        return UPIOutcome(order=order, state=OUTCOME_STILL_PENDING, error=str(e))

    if status.is_paid:
        return UPIOutcome(order=confirm_paid(order, status.raw_status), state=OUTCOME_PAID, raw_status=status.raw_status)

    order.payment_raw_status = status.raw_status or status.status
    order.save(update_fields=["payment_raw_status", "updated_at"])
    logger.info("Order %s still pending (%s)", order.pk, order.payment_raw_status)
    return UPIOutcome(order=order, state=OUTCOME_STILL_PENDING, raw_status=order.payment_raw_status)


def _payment_url(order: Order, client: PaymentServiceClient, callback_url: str, name=None, prefetcher=None) -> str:
    reference_id = order.reference_id or str(order.pk)
    link = None
    if prefetcher is not None:
        future = prefetcher.ensure(reference_id, order.total, name=name, callback_url=callback_url)
        try:
            link = future.result(timeout=float(getattr(settings, "PAYMENT_SERVICE_TIMEOUT", 20)))
        except Exception as e:  # prefetch is best effort; fall back to a direct request
            logger.info("Prefetched link unusable for %s: %s", reference_id, e)
            prefetcher.reset()
            link = None
        if link is not None and not link.short_url:
            link = None

    if link is None:
        link = client.create_link(reference_id, order.total, name=name, callback_url=callback_url)
    order.payment_link_id = link.id
    order.payment_link_url = link.short_url
    order.save(update_fields=["payment_link_id", "payment_link_url", "updated_at"])
    return link.short_url


def pay_pending_upi(
    order: Order,
    client: PaymentServiceClient,
    launcher: Optional[Launcher] = None,
    customer_name: Optional[str] = None,
    prefetcher=None,
) -> UPIOutcome:
    """
    Start (or restart) payment of a pending UPI order.

    Without a launcher the payment URL and callback are returned for the caller
    to open; it comes back through :func:`poll_payment` once the browser returns.
    Link-creation failures raise :class:`PaymentServiceError`, except
    ``already_paid`` which confirms the order.
    """
    reference_id = order.reference_id or str(order.pk)
    callback_url = build_callback_url(reference_id)

    try:
        url = _payment_url(order, client, callback_url, name=customer_name, prefetcher=prefetcher)
    except PaymentServiceError as e:
        if e.already_paid:
            return UPIOutcome(order=confirm_paid(order, "already_paid"), state=OUTCOME_PAID, raw_status="already_paid")
        raise

    if launcher is None:
        return UPIOutcome(order=order, state=OUTCOME_AWAITING_RETURN, payment_url=url, callback_url=callback_url)

    returned_to = launcher(url, callback_url)
    via_callback = parse_callback_url(returned_to or "") == reference_id
    time.sleep(settle_delay(via_callback))

    outcome = poll_payment(order, client)
    outcome.payment_url = url
    outcome.callback_url = callback_url
    return outcome
