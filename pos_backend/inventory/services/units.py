# inventory/services/units.py

"""
======================================================
PATH: inventory/services/units.py
======================================================
UNIT CONVERSION (PURE FUNCTIONS)

Purpose:
- Map stored stock quantities to a display quantity + label and back.
- Single place that knows how pieces / grams / millilitres relate to sellable units.

Rules:
- Stock is recorded in the small physical unit (pc, g, mL).
- kg / L products still record stock in g / mL, so conversion divides by 1000 first.
- to_display() never raises on a bad quantity_per_unit (<= 0 is treated as 1).
- to_base() requires the caller to say which scale its input is in (QuantityScale).
  Scale is NEVER inferred from the magnitude of the number.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import NamedTuple

from django.core.exceptions import ValidationError

from inventory.choices import BaseUnit, ProductType, QuantityScale

ONE = Decimal("1")

# large unit -> (unit stock is physically recorded in, factor)
LARGE_UNIT_FACTORS = {
    BaseUnit.KILOGRAM: (BaseUnit.GRAM, Decimal("1000")),
    BaseUnit.LITER: (BaseUnit.MILLILITER, Decimal("1000")),
}

COUNT_LABEL = "piece"


class DisplayQuantity(NamedTuple):
    quantity: Decimal
    unit: str


def _dec(value, default=Decimal("0")) -> Decimal:
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        return default
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return default


def _require_decimal(value, *, field_name="quantity") -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        raise ValidationError(f"{field_name} is required")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValidationError(f"{field_name} must be a valid number") from exc


def normalize_product_type(value) -> ProductType:
    raw = str(value or "").strip().lower()
    try:
        return ProductType(raw)
    except ValueError:
        raise ValidationError(f"Unknown product type: {value!r}")


def _per_unit(quantity_per_unit) -> Decimal:
    per_unit = _dec(quantity_per_unit, default=ONE)
    if per_unit <= 0:
        return ONE
    return per_unit


def _large_unit_factor(base_unit) -> Decimal:
    recorded = LARGE_UNIT_FACTORS.get(str(base_unit or ""))
    return recorded[1] if recorded else ONE


def recorded_unit(base_unit) -> str:
    """Unit stock is physically recorded in for this base_unit."""
    recorded = LARGE_UNIT_FACTORS.get(str(base_unit or ""))
    if recorded:
        return str(recorded[0])
    return str(base_unit or "")


def format_quantity(value, places: int = 3) -> str:
    """Render a quantity without trailing zeros (250.000 -> "250", 0.250 -> "0.25")."""
    d = _dec(value).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    if d == d.to_integral_value():
        return str(d.quantize(ONE))
    return format(d.normalize(), "f")


def units_in_stock(quantity_in_stock, product_type, quantity_per_unit, base_unit) -> Decimal:
    """
    Display-unit ratio WITHOUT the "< 1" presentation fallback.
    Stock checks, classification and valuation all use this.
    """
    qty = _dec(quantity_in_stock)
    if normalize_product_type(product_type) == ProductType.COUNT:
        return qty
    return qty / _large_unit_factor(base_unit) / _per_unit(quantity_per_unit)


def to_display(quantity_in_stock, product_type, quantity_per_unit, base_unit) -> DisplayQuantity:
    qty = _dec(quantity_in_stock)

    if normalize_product_type(product_type) == ProductType.COUNT:
        return DisplayQuantity(qty, COUNT_LABEL)

    units = units_in_stock(qty, product_type, quantity_per_unit, base_unit)

    # "0.25 bottle" reads badly: show the raw recorded amount instead.
    if units < ONE:
        return DisplayQuantity(qty, recorded_unit(base_unit))

    label = f"{format_quantity(_per_unit(quantity_per_unit))}{base_unit}"
    return DisplayQuantity(units, label)


def to_base(
    quantity,
    product_type,
    quantity_per_unit,
    base_unit,
    *,
    scale=QuantityScale.DISPLAY,
) -> Decimal:
    """
    Inverse of to_display().

    scale=DISPLAY: quantity is in sellable units (e.g. 2 x 250g packs -> 500).
    scale=BASE:    quantity is already in the recorded unit (returned as-is).
    """
    qty = _require_decimal(quantity)

    if normalize_product_type(product_type) == ProductType.COUNT:
        return qty

    if QuantityScale(scale) == QuantityScale.BASE:
        return qty

    return qty * _per_unit(quantity_per_unit) * _large_unit_factor(base_unit)


def to_display_units(
    quantity,
    product_type,
    quantity_per_unit,
    base_unit,
    *,
    scale=QuantityScale.DISPLAY,
) -> Decimal:
    """Express a caller quantity of the given scale in display units."""
    qty = _require_decimal(quantity)
    if QuantityScale(scale) == QuantityScale.DISPLAY:
        return qty
    return units_in_stock(qty, product_type, quantity_per_unit, base_unit)
