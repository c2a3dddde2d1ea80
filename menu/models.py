from __future__ import annotations

import uuid
from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models


class Restaurant(models.Model):
    """A restaurant customers order from. ``open`` left unset is treated as open."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=150)
    open = models.BooleanField(
        null=True,
        blank=True,
        default=True,
        help_text="Whether the restaurant is accepting orders (unset counts as open)",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self) -> str:
        return self.name

    @property
    def is_open(self) -> bool:
        return self.open is not False


class MenuItem(models.Model):
    """A dish on a restaurant's menu. ``available`` left unset is treated as available."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    restaurant = models.ForeignKey(
        Restaurant,
        on_delete=models.CASCADE,
        related_name="menu_items",
    )
    name = models.CharField(max_length=150)
    price = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    photo_id = models.CharField(max_length=64, blank=True, default="")
    available = models.BooleanField(
        null=True,
        blank=True,
        default=True,
        help_text="Whether the item can be ordered right now (unset counts as available)",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["restaurant_id", "name"]
        indexes = [
            models.Index(fields=["restaurant", "available"], name="menu_item_rest_avail_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.restaurant_id})"

    @property
    def is_available(self) -> bool:
        return self.available is not False
