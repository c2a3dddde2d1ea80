from __future__ import annotations

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone


class Order(models.Model):
    """
    A placed (COD) or payment-pending (UPI) order.

    Items and the delivery address are stored as snapshots so later menu or
    address edits never rewrite what the customer ordered.
    """

    # Lifecycle
    STATUS_PLACED = "placed"
    STATUS_PENDING_PAYMENT = "pending_payment"
    STATUS_ACCEPTED = "accepted"
    STATUS_PREPARING = "preparing"
    STATUS_ON_THE_WAY = "on_the_way"
    STATUS_DELIVERED = "delivered"
    STATUS_CANCELLED = "cancelled"

    STATUS_CHOICES = [
        (STATUS_PLACED, "Placed"),
        (STATUS_PENDING_PAYMENT, "Pending payment"),
        (STATUS_ACCEPTED, "Accepted"),
        (STATUS_PREPARING, "Preparing"),
        (STATUS_ON_THE_WAY, "On the way"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    TERMINAL_STATUSES = (STATUS_DELIVERED, STATUS_CANCELLED)

    VALID_STATUS_TRANSITIONS = {
        STATUS_PENDING_PAYMENT: [STATUS_PLACED, STATUS_CANCELLED],
        STATUS_PLACED: [STATUS_ACCEPTED, STATUS_CANCELLED],
        STATUS_ACCEPTED: [STATUS_PREPARING, STATUS_CANCELLED],
        STATUS_PREPARING: [STATUS_ON_THE_WAY, STATUS_CANCELLED],
        STATUS_ON_THE_WAY: [STATUS_DELIVERED],
        STATUS_DELIVERED: [],
        STATUS_CANCELLED: [],
    }

    # Payment
    METHOD_COD = "COD"
    METHOD_UPI = "UPI"
    METHOD_CARD = "CARD"

    PAYMENT_METHOD_CHOICES = [
        (METHOD_COD, "Cash on delivery"),
        (METHOD_UPI, "UPI"),
        (METHOD_CARD, "Card"),
    ]

    PAYMENT_PENDING = "pending"
    PAYMENT_PAID = "paid"
    PAYMENT_FAILED = "failed"

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_PAID, "Paid"),
        (PAYMENT_FAILED, "Failed"),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="orders",
    )
    restaurant = models.ForeignKey(
        "menu.Restaurant",
        on_delete=models.PROTECT,
        related_name="orders",
    )
    restaurant_name = models.CharField(max_length=150)

    items = models.JSONField(default=list, help_text="[{id, name, price, qty}] at time of ordering")
    address = models.JSONField(default=dict, help_text="Delivery address snapshot")

    sub_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    platform_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    delivery_fee = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    gst = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    coupon_code = models.CharField(max_length=64, blank=True, default="")

    payment_method = models.CharField(max_length=8, choices=PAYMENT_METHOD_CHOICES, default=METHOD_COD)
    payment_status = models.CharField(max_length=16, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    status = models.CharField(max_length=24, choices=STATUS_CHOICES, default=STATUS_PLACED)

    # Payment-link bookkeeping (UPI)
    reference_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    payment_link_id = models.CharField(max_length=64, blank=True, default="")
    payment_link_url = models.URLField(max_length=500, blank=True, default="")
    payment_raw_status = models.CharField(max_length=32, blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["user", "restaurant", "payment_method", "status"], name="order_pending_lookup_idx"),
            models.Index(fields=["user", "payment_status", "created_at"], name="order_history_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(total__gte=0),
                name="order_total_non_negative",
            ),
        ]

    def __str__(self) -> str:
        return f"Order {self.pk} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in self.TERMINAL_STATUSES

    @property
    def is_cod_cancellable(self) -> bool:
        return (
            self.payment_method == self.METHOD_COD
            and self.status == self.STATUS_PLACED
            and self.payment_status == self.PAYMENT_PENDING
        )

    @property
    def is_upi_pending(self) -> bool:
        return self.payment_method == self.METHOD_UPI and self.status == self.STATUS_PENDING_PAYMENT

    @property
    def is_cancellable(self) -> bool:
        return self.is_cod_cancellable or self.is_upi_pending

    def transition_to(self, new_status: str, by_user=None):
        """Validated status change; emits ``order_status_changed``."""
        from .signals import order_status_changed  # to avoid circulars

        old = self.status
        new = (new_status or "").strip().lower()
        allowed = self.VALID_STATUS_TRANSITIONS.get(old, [])
        if new not in allowed:
            raise ValidationError(f"Invalid transition from {old} to {new}")

        self.status = new
        self.save(update_fields=["status", "updated_at"])
        order_status_changed.send(sender=Order, order=self, old=old, new=new, by_user=by_user)

    def mark_paid(self, raw_status: str = "") -> None:
        """Payment confirmed for a pending UPI order."""
        self.payment_status = self.PAYMENT_PAID
        if raw_status:
            self.payment_raw_status = raw_status
        self.save(update_fields=["payment_status", "payment_raw_status", "updated_at"])
        if self.status == self.STATUS_PENDING_PAYMENT:
            self.transition_to(self.STATUS_PLACED)
