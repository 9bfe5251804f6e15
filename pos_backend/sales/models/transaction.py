# sales/models/transaction.py

import uuid
from decimal import Decimal

from django.db import models
from django.utils import timezone


def generate_transaction_number() -> str:
    return f"TXN-{timezone.now():%Y%m%d%H%M%S}-{uuid.uuid4().hex[:6].upper()}"


class Transaction(models.Model):
    """
    Authoritative ledger record of one settled cart.

    GUARANTEES:
    - transaction_number is server-assigned (the POS provisional number is
      kept in `reference` for traceability only)
    - Totals are computed server-side by the Discount Engine
    - Created ONLY by sales.services.settlement (never edited afterwards)
    """

    class PaymentType(models.TextChoices):
        CASH = "cash", "Cash"
        GCASH = "gcash", "GCash"
        CARD = "card", "Card"
        BANK_TRANSFER = "bank_transfer", "Bank transfer"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    transaction_number = models.CharField(
        max_length=64,
        unique=True,
        default=generate_transaction_number,
        editable=False,
    )

    payment_type = models.CharField(
        max_length=32,
        choices=PaymentType.choices,
        default=PaymentType.CASH,
    )

    subtotal_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    discount_percentage = models.DecimalField(max_digits=5, decimal_places=2, null=True, blank=True)
    discount_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))

    money_received = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    money_change = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)

    reference = models.CharField(
        max_length=128,
        blank=True,
        default="",
        help_text="Provisional number the POS showed before settlement",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["created_at"], name="sales_txn_created_idx"),
            models.Index(fields=["payment_type"], name="sales_txn_payment_idx"),
        ]

    def __str__(self):
        return self.transaction_number
