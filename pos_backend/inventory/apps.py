# inventory/apps.py

"""
INVENTORY APP CONFIG

Catalog of sellable products plus the unit conversion, valuation
and bulk import services that work on it.
"""

from django.apps import AppConfig


class InventoryConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "inventory"
    verbose_name = "Inventory"
