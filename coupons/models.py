from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone


class Coupon(models.Model):
    """Restaurant-scoped promo code."""

    TYPE_FIXED = "fixed"
    TYPE_PERCENTAGE = "percentage"
    TYPE_FREESHIP = "freeship"

    TYPE_CHOICES = [
        (TYPE_FIXED, "Fixed Amount"),
        (TYPE_PERCENTAGE, "Percentage"),
        (TYPE_FREESHIP, "Free Delivery"),
    ]

    restaurant = models.ForeignKey(
        "menu.Restaurant",
        on_delete=models.CASCADE,
        related_name="coupons",
    )
    code = models.CharField(
        max_length=64,
        help_text="Code customers type in (case-insensitive)",
    )
    title = models.CharField(
        max_length=128,
        blank=True,
        help_text="Public headline shown in the promo strip",
    )
    type = models.CharField(
        max_length=20,
        choices=TYPE_CHOICES,
        default=TYPE_FIXED,
    )
    value = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Amount off (fixed) or percent off (percentage); ignored for free delivery",
    )
    min_subtotal = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Minimum sub-total required to use this coupon",
    )
    active_until = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When this coupon expires (empty means no expiry)",
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(default=timezone.now, editable=False)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["restaurant", "code"], name="uniq_coupon_code_per_restaurant"),
        ]

    def clean(self):
        super().clean()
        self.code = (self.code or "").strip().upper()
        if self.type == self.TYPE_PERCENTAGE and not (Decimal("0") < self.value <= Decimal("100")):
            raise ValidationError({"value": "Percentage must be between 0 and 100."})

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        if self.type == self.TYPE_PERCENTAGE:
            return f"{self.code} (-{self.value}%)"
        if self.type == self.TYPE_FREESHIP:
            return f"{self.code} (Free delivery)"
        return f"{self.code} (-{self.value})"

    def is_expired(self, now=None) -> bool:
        now = now or timezone.now()
        return self.active_until is not None and self.active_until <= now
