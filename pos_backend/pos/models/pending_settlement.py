"""
PATH: pos/models/pending_settlement.py

PENDING SETTLEMENT (REDIRECT PAYMENTS)

Purpose:
- Durable record written BEFORE the cashier is sent to the payment provider.
- Survives the full round trip (and process restarts) until the provider
  redirects back with success / cancel.

Rules:
- Keyed by `reference` (the POS provisional transaction number).
- idempotency_key is NULL until the first success callback claims it.
  Claiming is a conditional UPDATE; only the claimer submits settlement.
- Deleted on successful settlement or cancel (cashier or provider).
- A reference is written once; a claimed or failed record is never reset.
"""

import uuid
from decimal import Decimal

from django.db import models


class PendingSettlement(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    reference = models.CharField(max_length=128, unique=True)

    items = models.JSONField(default=list, help_text="[{product_id, quantity}] in display units")
    total = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    payment_type = models.CharField(max_length=32, default="gcash")
    discount = models.JSONField(null=True, blank=True, help_text="{kind, value} or null")

    checkout_url = models.URLField(max_length=1024, blank=True, default="")
    provider_session_id = models.CharField(max_length=128, blank=True, default="")

    idempotency_key = models.CharField(max_length=64, null=True, blank=True, unique=True)
    claimed_at = models.DateTimeField(null=True, blank=True)
    last_error = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return self.reference

    @property
    def is_claimed(self) -> bool:
        return bool(self.idempotency_key)
