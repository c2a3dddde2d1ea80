from django.contrib import admin

from .models import MenuItem, Restaurant


class MenuItemInline(admin.TabularInline):
    model = MenuItem
    extra = 0
    fields = ("name", "price", "available", "photo_id")


@admin.register(Restaurant)
class RestaurantAdmin(admin.ModelAdmin):
    list_display = ("name", "open", "created_at")
    list_filter = ("open",)
    search_fields = ("name",)
    inlines = [MenuItemInline]
    actions = ["mark_open", "mark_closed"]

    @admin.action(description="Mark selected restaurants open")
    def mark_open(self, request, queryset):
        queryset.update(open=True)

    @admin.action(description="Mark selected restaurants closed")
    def mark_closed(self, request, queryset):
        queryset.update(open=False)


@admin.register(MenuItem)
class MenuItemAdmin(admin.ModelAdmin):
    list_display = ("name", "restaurant", "price", "available")
    list_filter = ("available", "restaurant")
    search_fields = ("name", "restaurant__name")
    list_editable = ("available",)
