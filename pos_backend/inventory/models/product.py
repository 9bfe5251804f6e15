# inventory/models/product.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from inventory.choices import (
    BaseUnit,
    ProductType,
    UNITS_BY_PRODUCT_TYPE,
)


class Product(models.Model):
    """
    Represents a sellable product in the catalog.

    STOCK MODEL (IMPORTANT):
    - quantity_in_stock is recorded in the physical small unit
      (pieces, grams or millilitres), even when base_unit is kg / L.
    - quantity_per_unit is the size of one sellable (display) unit, in base_unit.
    - low_stock_level is expressed in DISPLAY units.

    Mutation rules:
    - Stock is decremented ONLY by ledger settlement.
    - Stock is incremented by import / stock intake / adjustments (catalog service).
    """

    ProductType = ProductType
    BaseUnit = BaseUnit

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)
    category = models.CharField(max_length=120, blank=True, default="")

    product_type = models.CharField(
        max_length=16,
        choices=ProductType.choices,
        default=ProductType.COUNT,
    )

    base_unit = models.CharField(
        max_length=8,
        choices=BaseUnit.choices,
        default=BaseUnit.PIECE,
    )

    quantity_per_unit = models.DecimalField(
        max_digits=12,
        decimal_places=3,
        default=Decimal("1"),
        help_text="Size of one sellable unit, expressed in base_unit (e.g. 250 for a 250g pack).",
    )

    quantity_in_stock = models.DecimalField(
        max_digits=14,
        decimal_places=3,
        default=Decimal("0"),
        help_text="Recorded in the small physical unit (pc / g / mL).",
    )

    cost_price = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    selling_price = models.DecimalField(max_digits=12, decimal_places=2)

    low_stock_level = models.PositiveIntegerField(
        default=10,
        help_text="Threshold in display units.",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["category"], name="inventory_product_cat_idx"),
            models.Index(fields=["is_active", "name"], name="inventory_product_active_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.sku})"

    def clean(self):
        if self.selling_price is None or Decimal(self.selling_price) < 0:
            raise ValidationError({"selling_price": "Selling price cannot be negative"})

        if self.cost_price is None or Decimal(self.cost_price) < 0:
            raise ValidationError({"cost_price": "Cost price cannot be negative"})

        if self.quantity_per_unit is None or Decimal(self.quantity_per_unit) <= 0:
            raise ValidationError({"quantity_per_unit": "quantity_per_unit must be greater than zero"})

        if self.quantity_in_stock is None or Decimal(self.quantity_in_stock) < 0:
            raise ValidationError({"quantity_in_stock": "Stock cannot be negative"})

        allowed = UNITS_BY_PRODUCT_TYPE.get(self.product_type, ())
        if self.base_unit not in allowed:
            raise ValidationError(
                {"base_unit": f"Unit '{self.base_unit}' is not valid for {self.product_type} products"}
            )

    @property
    def display_stock(self):
        from inventory.services.units import to_display

        return to_display(
            self.quantity_in_stock,
            self.product_type,
            self.quantity_per_unit,
            self.base_unit,
        )

    @property
    def stock_status(self) -> str:
        from inventory.services.valuation import classify

        return classify(self)
