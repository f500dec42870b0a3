from django.contrib import admin

from .models import InventoryGroup, InventoryItem


class InventoryItemInline(admin.TabularInline):
    model = InventoryItem
    extra = 0
    fields = ("code", "name", "unit", "stock", "min_stock", "is_active")


@admin.register(InventoryGroup)
class InventoryGroupAdmin(admin.ModelAdmin):
    list_display = ("code", "name")
    search_fields = ("code", "name")
    inlines = [InventoryItemInline]


@admin.register(InventoryItem)
class InventoryItemAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "group", "unit", "stock", "min_stock", "is_active")
    list_filter = ("group", "is_active")
    search_fields = ("code", "name")
    list_select_related = ("group",)
