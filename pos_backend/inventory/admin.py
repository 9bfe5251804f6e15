# inventory/admin.py
"""
=====================================================
PATH: inventory/admin.py
=====================================================

Admin rules:
- Stock is shown in recorded base units AND display units.
- quantity_in_stock is editable here for back-office corrections only;
  day-to-day intake goes through the add-stock / bulk-import endpoints.
"""

from __future__ import annotations

from django.contrib import admin

from inventory.models import Product
from inventory.services.units import format_quantity


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = (
        "sku",
        "name",
        "category",
        "product_type",
        "base_unit",
        "quantity_per_unit",
        "display_stock_label",
        "stock_status",
        "selling_price",
        "is_active",
    )
    list_filter = ("is_active", "product_type", "category", "created_at")
    search_fields = ("sku", "name", "category")
    ordering = ("name",)
    readonly_fields = ("created_at", "updated_at")

    @admin.display(description="Stock")
    def display_stock_label(self, obj):
        display = obj.display_stock
        return f"{format_quantity(display.quantity)} {display.unit}"
