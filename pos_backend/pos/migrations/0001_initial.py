"""
======================================================
PATH: pos/migrations/0001_initial.py
======================================================
MIGRATION: CREATE PendingSettlement (redirect payment survival)
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
            name="PendingSettlement",
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
                ("reference", models.CharField(max_length=128, unique=True)),
                (
                    "items",
                    models.JSONField(default=list, help_text="[{product_id, quantity}] in display units"),
                ),
                ("total", models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))),
                ("payment_type", models.CharField(max_length=32, default="gcash")),
                (
                    "discount",
                    models.JSONField(null=True, blank=True, help_text="{kind, value} or null"),
                ),
                ("checkout_url", models.URLField(max_length=1024, blank=True, default="")),
                (
                    "idempotency_key",
                    models.CharField(max_length=64, null=True, blank=True, unique=True),
                ),
                ("claimed_at", models.DateTimeField(null=True, blank=True)),
                ("last_error", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
            ],
            options={"ordering": ["-created_at"]},
        ),
    ]
