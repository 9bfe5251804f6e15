# inventory/choices.py

"""
INVENTORY CHOICES

Tagged variants shared by the Product model and the pure unit/valuation services.

Kept outside inventory.models so the conversion functions can be imported
without touching the app registry.
"""

from django.db import models


class ProductType(models.TextChoices):
    COUNT = "count", "Count"
    WEIGHT = "weight", "Weight"
    VOLUME = "volume", "Volume"


class BaseUnit(models.TextChoices):
    PIECE = "pc", "Piece"
    GRAM = "g", "Gram"
    KILOGRAM = "kg", "Kilogram"
    MILLILITER = "mL", "Milliliter"
    LITER = "L", "Liter"


class SoldBy(models.TextChoices):
    PER_PIECE = "per_piece", "Per piece"
    BY_WEIGHT = "by_weight", "By weight"
    BY_VOLUME = "by_volume", "By volume"


SOLD_BY_PRODUCT_TYPE = {
    SoldBy.PER_PIECE: ProductType.COUNT,
    SoldBy.BY_WEIGHT: ProductType.WEIGHT,
    SoldBy.BY_VOLUME: ProductType.VOLUME,
}

# Units a product type may be recorded in.
UNITS_BY_PRODUCT_TYPE = {
    ProductType.COUNT: (BaseUnit.PIECE,),
    ProductType.WEIGHT: (BaseUnit.GRAM, BaseUnit.KILOGRAM),
    ProductType.VOLUME: (BaseUnit.MILLILITER, BaseUnit.LITER),
}

DEFAULT_UNIT_BY_PRODUCT_TYPE = {
    ProductType.COUNT: BaseUnit.PIECE,
    ProductType.WEIGHT: BaseUnit.GRAM,
    ProductType.VOLUME: BaseUnit.MILLILITER,
}


class StockStatus(models.TextChoices):
    IN_STOCK = "in_stock", "In Stock"
    LOW_STOCK = "low_stock", "Low Stock"
    OUT_OF_STOCK = "out_of_stock", "Out of Stock"


class QuantityScale(models.TextChoices):
    """Scale a caller's quantity is expressed in (never inferred from magnitude)."""

    DISPLAY = "display", "Display units"
    BASE = "base", "Recorded base units"
