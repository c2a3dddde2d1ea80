from django.contrib import admin

from .models import Address


@admin.register(Address)
class AddressAdmin(admin.ModelAdmin):
    list_display = ("full_name", "user", "city", "pincode", "is_default", "created_at")
    list_filter = ("is_default", "state", "country")
    search_fields = ("full_name", "phone", "line1", "city", "user__username")
    readonly_fields = ("created_at", "updated_at")
