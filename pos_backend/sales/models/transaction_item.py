# sales/models/transaction_item.py

"""
TRANSACTION ITEM (IMMUTABLE SNAPSHOT)

- quantity is in DISPLAY units (what the cashier rang up)
- base_quantity is what was decremented from Product.quantity_in_stock
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.db import models

from inventory.models import Product

from .transaction import Transaction


class TransactionItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    transaction = models.ForeignKey(
        Transaction,
        on_delete=models.CASCADE,
        related_name="items",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="transaction_items",
    )

    quantity = models.DecimalField(max_digits=12, decimal_places=3)
    base_quantity = models.DecimalField(max_digits=14, decimal_places=3)

    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    class Meta:
        ordering = ["transaction", "id"]

    def __str__(self):
        return f"{self.product_id} x {self.quantity}"
