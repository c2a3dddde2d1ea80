from __future__ import annotations

from django.contrib import admin

from .models import Coupon


@admin.register(Coupon)
class CouponAdmin(admin.ModelAdmin):
    list_display = ("code", "restaurant", "type", "value", "min_subtotal", "is_active", "active_until", "created_at")
    list_filter = ("is_active", "type", "active_until")
    search_fields = ("code", "title", "restaurant__name")
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        (None, {"fields": ("restaurant", "code", "title", "is_active")}),
        ("Discount", {"fields": ("type", "value", "min_subtotal")}),
        ("Validity", {"fields": ("active_until",)}),
        ("Meta", {"fields": ("created_at", "updated_at")}),
    )
