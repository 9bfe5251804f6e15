"""
======================================================
PATH: sales/migrations/0001_initial.py
======================================================
MIGRATION: CREATE Transaction, TransactionItem, Discount (ledger)
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
from django.db import migrations, models

import sales.models.transaction


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("inventory", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Discount",
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
                ("name", models.CharField(max_length=120, unique=True)),
                (
                    "kind",
                    models.CharField(
                        max_length=16,
                        choices=[("percentage", "Percentage"), ("fixed", "Fixed amount")],
                        default="percentage",
                    ),
                ),
                ("value", models.DecimalField(max_digits=12, decimal_places=2)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"ordering": ["name"]},
        ),
        migrations.CreateModel(
            name="Transaction",
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
                (
                    "transaction_number",
                    models.CharField(
                        max_length=64,
                        unique=True,
                        default=sales.models.transaction.generate_transaction_number,
                        editable=False,
                    ),
                ),
                (
                    "payment_type",
                    models.CharField(
                        max_length=32,
                        choices=[
                            ("cash", "Cash"),
                            ("gcash", "GCash"),
                            ("card", "Card"),
                            ("bank_transfer", "Bank transfer"),
                        ],
                        default="cash",
                    ),
                ),
                ("subtotal_amount", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                ("discount_percentage", models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)),
                ("discount_amount", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                ("total_amount", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                ("money_received", models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)),
                ("money_change", models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)),
                (
                    "reference",
                    models.CharField(
                        max_length=128,
                        blank=True,
                        default="",
                        help_text="Provisional number the POS showed before settlement",
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["created_at"], name="sales_txn_created_idx"),
                    models.Index(fields=["payment_type"], name="sales_txn_payment_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="TransactionItem",
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
                ("quantity", models.DecimalField(max_digits=12, decimal_places=3)),
                ("base_quantity", models.DecimalField(max_digits=14, decimal_places=3)),
                ("unit_price", models.DecimalField(max_digits=12, decimal_places=2)),
                ("line_total", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="transaction_items",
                        to="inventory.product",
                    ),
                ),
                (
                    "transaction",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.transaction",
                    ),
                ),
            ],
            options={"ordering": ["transaction", "id"]},
        ),
    ]
