# pos/services/discounts.py

"""
======================================================
PATH: pos/services/discounts.py
======================================================
DISCOUNT ENGINE

Purpose:
- Compute a cart total from its subtotal and at most ONE active discount.

Rules:
- Percentage value must be in (0, 100].
- Fixed value must be > 0.
- Totals are floored at 0.00 (a fixed discount larger than the subtotal
  never produces a negative total).
- Money is quantized to 2dp, ROUND_HALF_UP.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import models

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


class DiscountKind(models.TextChoices):
    PERCENTAGE = "percentage", "Percentage"
    FIXED = "fixed", "Fixed amount"


def _money(v) -> Decimal:
    if v is None or v == "":
        return ZERO
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _value(raw) -> Decimal:
    if raw is None or raw == "" or isinstance(raw, bool):
        raise ValidationError("Discount value is required")
    try:
        value = Decimal(str(raw))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValidationError("Discount value must be a number") from exc
    if not value.is_finite():
        raise ValidationError("Discount value must be a number")
    return value


@dataclass(frozen=True)
class Discount:
    kind: str
    value: Decimal

    def __post_init__(self):
        kind = DiscountKind(self.kind) if self.kind in DiscountKind.values else None
        if kind is None:
            raise ValidationError(f"Unknown discount kind: {self.kind!r}")

        value = _value(self.value)
        if kind == DiscountKind.PERCENTAGE and not (ZERO < value <= HUNDRED):
            raise ValidationError("Percentage discount must be greater than 0 and at most 100")
        if kind == DiscountKind.FIXED and value <= ZERO:
            raise ValidationError("Fixed discount must be greater than 0")

        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "value", value)

    @classmethod
    def percentage(cls, value) -> "Discount":
        return cls(DiscountKind.PERCENTAGE, value)

    @classmethod
    def fixed(cls, value) -> "Discount":
        return cls(DiscountKind.FIXED, value)

    @classmethod
    def from_preset(cls, preset) -> "Discount":
        """Build from a stored sales.Discount preset (kind + value)."""
        if not getattr(preset, "is_active", True):
            raise ValidationError(f"Discount '{preset.name}' is not active")
        return cls(preset.kind, preset.value)

    def to_dict(self) -> dict:
        return {"kind": str(self.kind), "value": str(self.value)}

    @classmethod
    def from_dict(cls, data) -> "Discount | None":
        if not data:
            return None
        return cls(data.get("kind"), data.get("value"))


def compute_total(subtotal, discount: Discount | None) -> Decimal:
    amount = _money(subtotal)

    if discount is None:
        return amount

    if discount.kind == DiscountKind.PERCENTAGE:
        total = amount * (1 - discount.value / HUNDRED)
    else:
        total = amount - discount.value

    return max(ZERO, _money(total))


def discount_fields(discount: Discount | None) -> dict:
    """Settlement wire fields: discount_percentage OR discount_amount (never both)."""
    if discount is None:
        return {}
    if discount.kind == DiscountKind.PERCENTAGE:
        return {"discount_percentage": discount.value}
    return {"discount_amount": discount.value}
