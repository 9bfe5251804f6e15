"""
======================================================
PATH: inventory/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Product (unit-aware catalog)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                (
                    "id",
                    models.UUIDField(
                        primary_key=True,
                        default=uuid.uuid4,
                        editable=False,
                        serialize=False,
                    ),
                ),
                ("sku", models.CharField(max_length=128, unique=True, db_index=True)),
                ("name", models.CharField(max_length=255, db_index=True)),
                ("category", models.CharField(max_length=120, blank=True, default="")),
                (
                    "product_type",
                    models.CharField(
                        max_length=16,
                        choices=[("count", "Count"), ("weight", "Weight"), ("volume", "Volume")],
                        default="count",
                    ),
                ),
                (
                    "base_unit",
                    models.CharField(
                        max_length=8,
                        choices=[
                            ("pc", "Piece"),
                            ("g", "Gram"),
                            ("kg", "Kilogram"),
                            ("mL", "Milliliter"),
                            ("L", "Liter"),
                        ],
                        default="pc",
                    ),
                ),
                (
                    "quantity_per_unit",
                    models.DecimalField(
                        max_digits=12,
                        decimal_places=3,
                        default=Decimal("1"),
                        help_text="Size of one sellable unit, expressed in base_unit (e.g. 250 for a 250g pack).",
                    ),
                ),
                (
                    "quantity_in_stock",
                    models.DecimalField(
                        max_digits=14,
                        decimal_places=3,
                        default=Decimal("0"),
                        help_text="Recorded in the small physical unit (pc / g / mL).",
                    ),
                ),
                ("cost_price", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                ("selling_price", models.DecimalField(max_digits=12, decimal_places=2)),
                (
                    "low_stock_level",
                    models.PositiveIntegerField(default=10, help_text="Threshold in display units."),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["category"], name="inventory_product_cat_idx"),
                    models.Index(fields=["is_active", "name"], name="inventory_product_active_idx"),
                ],
            },
        ),
    ]
