from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from django.db import DatabaseError

from core.services import get_platform_config
from coupons.services import CouponValidationError, apply_coupon, find_coupon, revalidate_coupon
from menu.models import Restaurant
from orders.exceptions import (
    AddressRequired,
    ItemsUnavailable,
    NoAvailableItems,
    OrderNotPayable,
    OrderPlacementError,
    PaymentMethodRequired,
    RestaurantClosed,
)
from orders.models import Order
from payments.deeplinks import build_callback_url
from payments.services import PaymentServiceError, get_payment_client
from payments.upi import OUTCOME_AWAITING_RETURN, OUTCOME_PAID, poll_payment, pay_pending_upi

from .availability import AvailabilityReport, check_availability
from .totals import Totals, compute_totals

logger = logging.getLogger(__name__)

STATE_IDLE = "idle"
STATE_AVAILABILITY_CHECK = "availability_check"
STATE_BLOCKED = "blocked"
STATE_READY = "ready"
STATE_CONFIRMING = "confirming"
STATE_PLACING = "placing"
STATE_PLACED = "placed"
STATE_PENDING_PAYMENT = "pending_payment"
STATE_POLLING = "polling"
STATE_PAID = "paid"
STATE_STILL_PENDING = "still_pending"

BLOCKED_RESTAURANT_CLOSED = "restaurant_closed"
BLOCKED_NO_AVAILABLE_ITEMS = "no_available_items"
BLOCKED_ITEMS_UNAVAILABLE = "items_unavailable"

SUPPORTED_METHODS = (Order.METHOD_COD, Order.METHOD_UPI)


@dataclass
class PlacementResult:
    order: Order
    state: str
    totals: Optional[Totals] = None
    payment_url: str = ""
    callback_url: str = ""
    message: str = ""

    @property
    def is_paid(self) -> bool:
        return self.order.payment_status == Order.PAYMENT_PAID


def blocked_reason(report: AvailabilityReport) -> Optional[str]:
    if not report.is_restaurant_open:
        return BLOCKED_RESTAURANT_CLOSED
    if not report.has_any_available:
        return BLOCKED_NO_AVAILABLE_ITEMS
    if report.unavailable_lines:
        return BLOCKED_ITEMS_UNAVAILABLE
    return None


def raise_for_report(report: AvailabilityReport) -> None:
    reason = blocked_reason(report)
    if reason == BLOCKED_RESTAURANT_CLOSED:
        raise RestaurantClosed()
    if reason == BLOCKED_NO_AVAILABLE_ITEMS:
        raise NoAvailableItems()
    if reason == BLOCKED_ITEMS_UNAVAILABLE:
        raise ItemsUnavailable(report.unavailable_lines)


def items_snapshot(lines) -> List[Dict[str, Any]]:
    return [
        {"id": l.item.id, "name": l.item.name, "price": str(l.item.price), "qty": l.qty}
        for l in lines
    ]


def address_snapshot(address) -> Dict[str, Any]:
    if not address:
        raise AddressRequired()
    if hasattr(address, "snapshot"):
        return address.snapshot()
    return dict(address)


def find_pending_upi_order(user, restaurant_id) -> Optional[Order]:
    """Newest UPI order of this user at this restaurant still waiting for payment."""
    return (
        Order.objects.filter(
            user=user,
            restaurant_id=restaurant_id,
            payment_method=Order.METHOD_UPI,
            status=Order.STATUS_PENDING_PAYMENT,
        )
        .order_by("-created_at")
        .first()
    )


def _customer_name(order: Order) -> Optional[str]:
    return (order.address or {}).get("fullName") or None


def resume_upi_payment(order: Order, client=None, cart=None) -> PlacementResult:
    """The browser came back (deep link or manual close): poll once and apply the answer."""
    if order.payment_status == Order.PAYMENT_PAID:
        return PlacementResult(order=order, state=STATE_PAID)
    if not order.is_upi_pending:
        raise OrderNotPayable()

    outcome = poll_payment(order, client or get_payment_client())
    if outcome.is_paid and cart is not None:
        cart.clear_restaurant(order.restaurant_id)
    return PlacementResult(
        order=outcome.order,
        state=STATE_PAID if outcome.is_paid else STATE_STILL_PENDING,
        message=outcome.error,
    )


def retry_upi_payment(order: Order, client=None, launcher=None, cart=None) -> PlacementResult:
    """Request a fresh payment link for a pending order (the order screen's Pay with UPI)."""
    if not order.is_upi_pending:
        raise OrderNotPayable()
    try:
        outcome = pay_pending_upi(order, client or get_payment_client(), launcher=launcher, customer_name=_customer_name(order))
    except PaymentServiceError as e:
        logger.exception("UPI retry failed for order %s", order.pk)
        raise OrderPlacementError(str(e)) from e
    return _upi_result(outcome, cart)


def _upi_result(outcome, cart, totals: Optional[Totals] = None) -> PlacementResult:
    if outcome.state == OUTCOME_PAID:
        if cart is not None:
            cart.clear_restaurant(outcome.order.restaurant_id)
        state = STATE_PAID
    elif outcome.state == OUTCOME_AWAITING_RETURN:
        state = STATE_PENDING_PAYMENT
    else:
        state = STATE_STILL_PENDING
    return PlacementResult(
        order=outcome.order,
        state=state,
        totals=totals,
        payment_url=outcome.payment_url,
        callback_url=outcome.callback_url,
        message=outcome.error,
    )


class CheckoutSession:
    """
    Checkout of one restaurant's cart lines.

    idle -> availability_check -> blocked | ready -> confirming -> placing ->
    placed (COD) | pending_payment -> polling -> paid | still_pending (UPI)

    Platform fees are read once per session. The cart is only cleared after a
    COD order is written or a UPI payment is confirmed.
    """

    def __init__(self, user, restaurant_id, cart, coupon_code=None, client=None, prefetcher=None, config=None):
        self.user = user
        self.restaurant_id = str(restaurant_id)
        self.cart = cart
        self.client = client
        self.prefetcher = prefetcher
        self.config = config or get_platform_config()

        self.state = STATE_IDLE
        self.blocked_reason: Optional[str] = None
        self.report: Optional[AvailabilityReport] = None
        self.pending_order: Optional[Order] = None
        self.coupon = None
        self.coupon_message = ""
        if coupon_code:
            self._restore_coupon(coupon_code)

    # -- helpers -----------------------------------------------------------

    def _restore_coupon(self, code: str) -> None:
        try:
            self.coupon = find_coupon(self.restaurant_id, code)
        except CouponValidationError:
            self.coupon = None

    def _client(self):
        if self.client is None:
            self.client = get_payment_client()
        return self.client

    @property
    def lines(self):
        return self.cart.lines_for_restaurant(self.restaurant_id)

    @property
    def coupon_code(self) -> Optional[str]:
        return self.coupon.code if self.coupon is not None else None

    @property
    def restaurant_name(self) -> str:
        lines = self.lines
        if lines and lines[0].restaurant_name:
            return lines[0].restaurant_name
        name = Restaurant.objects.filter(pk=self.restaurant_id).values_list("name", flat=True).first()
        return name or ""

    @property
    def availability(self) -> Optional[Dict[str, bool]]:
        return self.report.availability if self.report is not None else None

    def _placeable_lines(self):
        if self.report is None:
            return self.lines
        return self.report.available_lines

    # -- availability ------------------------------------------------------

    def refresh(self) -> AvailabilityReport:
        self.state = STATE_AVAILABILITY_CHECK
        self.report = check_availability(self.restaurant_id, self.lines, previous=self.availability)
        self.blocked_reason = blocked_reason(self.report)
        self.state = STATE_BLOCKED if self.blocked_reason else STATE_READY
        return self.report

    def remove_unavailable_items(self) -> AvailabilityReport:
        """User agreed to drop the lines that can't be ordered right now."""
        report = self.report or self.refresh()
        for line in report.unavailable_lines:
            self.cart.remove_item(self.restaurant_id, line.item.id)
        return self.refresh()

    def remove_all_items(self) -> AvailabilityReport:
        self.cart.clear_restaurant(self.restaurant_id)
        return self.refresh()

    # -- pricing & coupons -------------------------------------------------

    def _base_totals(self) -> Totals:
        return compute_totals(self.lines, self.config, None, self.availability)

    def totals(self, now=None) -> Totals:
        """Current totals; a coupon that stopped qualifying is dropped here."""
        if self.coupon is not None:
            still_valid = revalidate_coupon(self.coupon, self._base_totals().sub_total, now=now)
            if still_valid is None:
                self.coupon_message = f"Coupon {self.coupon.code} was removed because it no longer applies."
                self.coupon = None
        return compute_totals(self.lines, self.config, self.coupon, self.availability)

    def apply_coupon(self, code: str, now=None):
        self.coupon = apply_coupon(self.restaurant_id, code, self._base_totals().sub_total, now=now)
        self.coupon_message = ""
        return self.coupon

    def clear_coupon(self) -> None:
        self.coupon = None
        self.coupon_message = ""

    # -- confirmation ------------------------------------------------------

    def _check_inputs(self, method, address) -> Dict[str, Any]:
        if method not in SUPPORTED_METHODS:
            raise PaymentMethodRequired()
        return address_snapshot(address)

    def begin_confirmation(self, method, address, now=None) -> Totals:
        """Enter the countdown. For UPI the pending order and its link are warmed up."""
        snapshot = self._check_inputs(method, address)
        raise_for_report(self.refresh())
        totals = self.totals(now=now)
        self.state = STATE_CONFIRMING

        if method == Order.METHOD_UPI and self.prefetcher is not None:
            try:
                order = self._prepare_pending_order(snapshot, totals)
                self.prefetcher.ensure(
                    order.reference_id,
                    order.total,
                    name=snapshot.get("fullName"),
                    callback_url=build_callback_url(order.reference_id),
                )
            except DatabaseError:
                logger.warning("UPI prefetch skipped for restaurant %s", self.restaurant_id, exc_info=True)
        return totals

    def cancel_confirmation(self) -> None:
        if self.state == STATE_CONFIRMING:
            self.state = STATE_READY

    # -- placement ---------------------------------------------------------

    def _order_fields(self, snapshot: Dict[str, Any], totals: Totals) -> Dict[str, Any]:
        return {
            "restaurant_name": self.restaurant_name,
            "items": items_snapshot(self._placeable_lines()),
            "address": snapshot,
            "sub_total": totals.sub_total,
            "platform_fee": totals.platform_fee,
            "delivery_fee": totals.delivery_fee,
            "gst": totals.gst,
            "discount": totals.discount,
            "total": totals.total,
            "coupon_code": self.coupon_code or "",
        }

    def _create_order(self, method: str, status: str, snapshot, totals: Totals) -> Order:
        order = Order(
            user=self.user,
            restaurant_id=self.restaurant_id,
            payment_method=method,
            payment_status=Order.PAYMENT_PENDING,
            status=status,
            **self._order_fields(snapshot, totals),
        )
        order.reference_id = str(order.pk)
        order.save()
        logger.info("Created %s order %s for restaurant %s (total %s)", method, order.pk, self.restaurant_id, order.total)
        return order

    def _prepare_pending_order(self, snapshot, totals: Totals) -> Order:
        """Reuse the newest pending UPI order for this restaurant, or create one."""
        order = self.pending_order
        if order is not None and order.status != Order.STATUS_PENDING_PAYMENT:
            order = None
        if order is None:
            order = find_pending_upi_order(self.user, self.restaurant_id)

        if order is None:
            order = self._create_order(Order.METHOD_UPI, Order.STATUS_PENDING_PAYMENT, snapshot, totals)
        else:
            for name, value in self._order_fields(snapshot, totals).items():
                setattr(order, name, value)
            if not order.reference_id:
                order.reference_id = str(order.pk)
            order.save()
            logger.info("Reusing pending UPI order %s (total %s)", order.pk, order.total)

        self.pending_order = order
        return order

    def place_order(self, method, address, launcher=None, now=None) -> PlacementResult:
        snapshot = self._check_inputs(method, address)

        # always re-read availability right before writing anything
        raise_for_report(self.refresh())
        totals = self.totals(now=now)
        self.state = STATE_PLACING

        try:
            if method == Order.METHOD_COD:
                order = self._create_order(Order.METHOD_COD, Order.STATUS_PLACED, snapshot, totals)
                self.cart.clear_restaurant(self.restaurant_id)
                self.coupon = None
                self.state = STATE_PLACED
                return PlacementResult(order=order, state=STATE_PLACED, totals=totals)

            order = self._prepare_pending_order(snapshot, totals)
            self.state = STATE_PENDING_PAYMENT
            if launcher is not None:
                self.state = STATE_POLLING
            outcome = pay_pending_upi(
                order,
                self._client(),
                launcher=launcher,
                customer_name=snapshot.get("fullName"),
                prefetcher=self.prefetcher,
            )
        except (DatabaseError, PaymentServiceError) as e:
            logger.exception("Placing %s order failed for restaurant %s", method, self.restaurant_id)
            self.state = STATE_READY
            raise OrderPlacementError(str(e) or None) from e

        result = _upi_result(outcome, self.cart, totals)
        if result.state == STATE_PAID:
            self.coupon = None
        self.state = result.state
        return result

    def resume_upi_payment(self, order: Optional[Order] = None) -> PlacementResult:
        order = order or self.pending_order
        if order is None:
            raise OrderNotPayable()
        self.state = STATE_POLLING
        result = resume_upi_payment(order, self._client(), cart=self.cart)
        self.state = result.state
        return result

    def retry_upi_payment(self, order: Optional[Order] = None, launcher=None) -> PlacementResult:
        order = order or self.pending_order
        if order is None:
            raise OrderNotPayable()
        result = retry_upi_payment(order, self._client(), launcher=launcher, cart=self.cart)
        self.state = result.state
        return result
