from __future__ import annotations

import uuid

from django.conf import settings
from django.db import models


class Address(models.Model):
    """
    A user's delivery address. Exactly one address per user carries
    ``is_default`` whenever the user has any; ``accounts.services.AddressBook``
    maintains that.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="addresses",
    )
    full_name = models.CharField(max_length=120)
    phone = models.CharField(max_length=10, help_text="10-digit mobile number")
    line1 = models.CharField(max_length=255)
    landmark = models.CharField(max_length=255, blank=True, default="")
    pincode = models.CharField(max_length=12)
    city = models.CharField(max_length=80)
    state = models.CharField(max_length=80)
    country = models.CharField(max_length=80)
    is_default = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]
        verbose_name_plural = "addresses"
        indexes = [
            models.Index(fields=["user", "is_default"], name="address_user_default_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.full_name}, {self.line1}, {self.city}"

    def snapshot(self) -> dict:
        """Plain-dict copy stored on orders so later edits don't rewrite history."""
        return {
            "fullName": self.full_name,
            "phone": self.phone,
            "line1": self.line1,
            "landmark": self.landmark or "",
            "pincode": self.pincode,
            "city": self.city,
            "state": self.state,
            "country": self.country,
            "isDefault": bool(self.is_default),
        }
