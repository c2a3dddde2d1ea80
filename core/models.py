from __future__ import annotations

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class PlatformConfig(models.Model):
    """
    Platform-wide fee configuration. A single row (pk=1) is read by every
    checkout; clients never write it.
    """

    SINGLETON_PK = 1

    platform_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("5.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Flat fee added to every order",
    )
    delivery_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("29.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Delivery fee charged below the free-delivery threshold",
    )
    free_delivery_threshold = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("399.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Sub-total at or above which delivery is free",
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "platform config"
        verbose_name_plural = "platform config"

    def save(self, *args, **kwargs):
        self.pk = self.SINGLETON_PK
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return f"Platform fee {self.platform_fee}, delivery {self.delivery_fee} (free from {self.free_delivery_threshold})"
