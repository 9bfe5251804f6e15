# inventory/services/valuation.py

"""
======================================================
PATH: inventory/services/valuation.py
======================================================
INVENTORY VALUATION + LOW-STOCK CLASSIFIER

Purpose:
- Classify each product as in stock / low stock / out of stock.
- Value stock at COST (cost_price x display units), never at selling price.

Rules:
- Classification compares DISPLAY units against low_stock_level (display units).
- Implausibly large values are FLAGGED and logged, never raised:
  they usually mean a unit-conversion misconfiguration upstream.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings

from inventory.choices import StockStatus
from inventory.services.units import to_display, units_in_stock

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
DEFAULT_VALUE_WARNING_THRESHOLD = Decimal("1000000000")


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _warning_threshold() -> Decimal:
    raw = getattr(settings, "INVENTORY_VALUE_WARNING_THRESHOLD", None)
    if raw in (None, ""):
        return DEFAULT_VALUE_WARNING_THRESHOLD
    return Decimal(str(raw))


def classify_quantity(display_quantity, low_stock_level) -> StockStatus:
    qty = Decimal(str(display_quantity or 0))
    threshold = Decimal(str(low_stock_level or 0))

    if qty <= 0:
        return StockStatus.OUT_OF_STOCK
    if qty < threshold:
        return StockStatus.LOW_STOCK
    return StockStatus.IN_STOCK


def _units(product) -> Decimal:
    return units_in_stock(
        product.quantity_in_stock,
        product.product_type,
        product.quantity_per_unit,
        product.base_unit,
    )


def classify(product) -> StockStatus:
    return classify_quantity(_units(product), product.low_stock_level)


def low_stock_products(products) -> list:
    """Products that need restocking (low or out), lowest stock first."""
    flagged = [p for p in products if classify(p) != StockStatus.IN_STOCK]
    return sorted(flagged, key=_units)


@dataclass
class ValuationLine:
    product_id: str
    sku: str
    name: str
    display_quantity: Decimal
    display_unit: str
    units: Decimal
    cost_price: Decimal
    value: Decimal
    status: StockStatus
    flagged: bool = False


@dataclass
class InventoryValuation:
    lines: list[ValuationLine] = field(default_factory=list)
    total_value: Decimal = Decimal("0.00")
    counts: dict = field(default_factory=dict)
    flagged_total: bool = False

    @property
    def flagged_lines(self) -> list[ValuationLine]:
        return [line for line in self.lines if line.flagged]


def value_inventory(products) -> InventoryValuation:
    threshold = _warning_threshold()
    result = InventoryValuation(counts={status.value: 0 for status in StockStatus})

    total = Decimal("0.00")
    for product in products:
        units = _units(product)
        display = to_display(
            product.quantity_in_stock,
            product.product_type,
            product.quantity_per_unit,
            product.base_unit,
        )
        value = _money(_money(product.cost_price) * units)
        status = classify_quantity(units, product.low_stock_level)

        line = ValuationLine(
            product_id=str(product.id),
            sku=product.sku,
            name=product.name,
            display_quantity=display.quantity,
            display_unit=display.unit,
            units=units,
            cost_price=_money(product.cost_price),
            value=value,
            status=status,
            flagged=value > threshold,
        )
        if line.flagged:
            logger.warning(
                "Implausible inventory value; check unit configuration",
                extra={"sku": product.sku, "value": str(value)},
            )

        result.lines.append(line)
        result.counts[status.value] += 1
        total += value

    result.total_value = _money(total)
    result.flagged_total = result.total_value > threshold
    if result.flagged_total:
        logger.warning(
            "Implausible total inventory value",
            extra={"value": str(result.total_value)},
        )

    return result
