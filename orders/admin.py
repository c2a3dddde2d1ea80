from __future__ import annotations

from django.contrib import admin

from .models import Order


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = (
        "id", "restaurant_name", "user", "payment_method", "payment_status",
        "status", "total", "created_at",
    )
    list_filter = ("status", "payment_method", "payment_status", "created_at")
    search_fields = ("id", "reference_id", "restaurant_name", "user__username", "user__email")
    date_hierarchy = "created_at"
    raw_id_fields = ("user", "restaurant")
    readonly_fields = (
        "reference_id", "items", "address",
        "sub_total", "platform_fee", "delivery_fee", "gst", "discount", "total", "coupon_code",
        "payment_link_id", "payment_link_url", "payment_raw_status",
        "created_at", "updated_at",
    )
    fieldsets = (
        (None, {"fields": ("user", "restaurant", "restaurant_name", "status")}),
        ("Payment", {"fields": ("payment_method", "payment_status", "reference_id",
                                "payment_link_id", "payment_link_url", "payment_raw_status")}),
        ("Totals", {"fields": ("sub_total", "platform_fee", "delivery_fee", "gst", "discount", "total", "coupon_code")}),
        ("Snapshots", {"fields": ("items", "address")}),
        ("Timestamps", {"fields": ("created_at", "updated_at")}),
    )
    actions = ["advance_status"]

    @admin.action(description="Advance selected orders to their next status")
    def advance_status(self, request, queryset):
        moved = 0
        for order in queryset:
            nxt = [s for s in Order.VALID_STATUS_TRANSITIONS.get(order.status, []) if s != Order.STATUS_CANCELLED]
            if nxt and order.status != Order.STATUS_PENDING_PAYMENT:
                order.transition_to(nxt[0], by_user=request.user)
                moved += 1
        self.message_user(request, f"Advanced {moved} order(s).")
