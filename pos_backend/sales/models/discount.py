# sales/models/discount.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from pos.services.discounts import DiscountKind


class Discount(models.Model):
    """
    Named, reusable discount a cashier can pick at the till.

    Applying a preset yields a pos.services.discounts.Discount value.
    """

    Kind = DiscountKind

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    name = models.CharField(max_length=120, unique=True)
    kind = models.CharField(max_length=16, choices=DiscountKind.choices, default=DiscountKind.PERCENTAGE)
    value = models.DecimalField(max_digits=12, decimal_places=2)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return self.name

    def clean(self):
        value = Decimal(self.value) if self.value is not None else None
        if value is None or value <= 0:
            raise ValidationError({"value": "Discount value must be greater than 0"})
        if self.kind == DiscountKind.PERCENTAGE and value > 100:
            raise ValidationError({"value": "Percentage discount cannot exceed 100"})
