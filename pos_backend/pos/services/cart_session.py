# pos/services/cart_session.py

"""
======================================================
PATH: pos/services/cart_session.py
======================================================
CART ENGINE

Purpose:
- Hold the ordered, unique line items of ONE POS session.
- Resolve SKUs through the catalog gateway, merge duplicates, edit/remove
  lines, compute subtotal/total.

Rules:
- Quantities are DISPLAY units (what the cashier rings up).
- Stock checks are optimistic against the snapshot taken at lookup;
  the ledger re-checks under row locks at settlement.
- Every mutation validates first and mutates last: a rejected add/merge/edit
  leaves the cart exactly as it was.
- Quantity edits say which scale they are in (QuantityScale).
  Scale is never inferred from the number's magnitude.

State:
    empty -> populated -> checking_out -> settled | cancelled
    (any -> empty on reset / clear)
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import models

from inventory.choices import ProductType, QuantityScale
from inventory.services.catalog import ProductSnapshot
from inventory.services.units import format_quantity, to_display_units
from pos.services.discounts import Discount, compute_total

TWOPLACES = Decimal("0.01")
THREEPLACES = Decimal("0.001")

MIN_COUNT_QUANTITY = Decimal("1")
MIN_MEASURED_QUANTITY = Decimal("0.01")


class CartState(models.TextChoices):
    EMPTY = "empty", "Empty"
    POPULATED = "populated", "Populated"
    CHECKING_OUT = "checking_out", "Checking out"
    SETTLED = "settled", "Settled"
    CANCELLED = "cancelled", "Cancelled"


class CartError(Exception):
    """Base exception for cart mutations the cashier can fix."""


class OutOfStockError(CartError):
    pass


class InsufficientStockError(CartError):
    def __init__(self, available, requested):
        self.available = Decimal(str(available))
        self.requested = Decimal(str(requested))
        super().__init__(
            f"Available: {format_quantity(self.available)}, "
            f"requested: {format_quantity(self.requested)}"
        )


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _quantity(value) -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        raise CartError("Quantity is required")
    try:
        qty = Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise CartError("Quantity must be a number")
    if not qty.is_finite():
        raise CartError("Quantity must be a number")
    return qty


@dataclass(frozen=True)
class CartLine:
    product_id: str
    sku: str
    name: str
    product_type: str
    base_unit: str
    quantity_per_unit: Decimal
    unit_price: Decimal
    quantity: Decimal
    available: Decimal

    @property
    def is_count(self) -> bool:
        return self.product_type == ProductType.COUNT

    @property
    def min_quantity(self) -> Decimal:
        return MIN_COUNT_QUANTITY if self.is_count else MIN_MEASURED_QUANTITY

    @property
    def line_total(self) -> Decimal:
        return _money(self.unit_price * self.quantity)

    @classmethod
    def from_snapshot(cls, snapshot: ProductSnapshot, quantity: Decimal) -> "CartLine":
        return cls(
            product_id=snapshot.product_id,
            sku=snapshot.sku,
            name=snapshot.name,
            product_type=str(snapshot.product_type),
            base_unit=snapshot.base_unit,
            quantity_per_unit=snapshot.quantity_per_unit,
            unit_price=_money(snapshot.selling_price),
            quantity=quantity,
            available=snapshot.available_units,
        )

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "sku": self.sku,
            "name": self.name,
            "product_type": self.product_type,
            "base_unit": self.base_unit,
            "quantity_per_unit": str(self.quantity_per_unit),
            "unit_price": str(self.unit_price),
            "quantity": str(self.quantity),
            "available": str(self.available),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CartLine":
        return cls(
            product_id=str(data["product_id"]),
            sku=str(data["sku"]),
            name=str(data.get("name") or data["sku"]),
            product_type=str(data.get("product_type") or ProductType.COUNT),
            base_unit=str(data.get("base_unit") or ""),
            quantity_per_unit=Decimal(str(data.get("quantity_per_unit") or "1")),
            unit_price=Decimal(str(data["unit_price"])),
            quantity=Decimal(str(data["quantity"])),
            available=Decimal(str(data.get("available") or "0")),
        )


class CartSession:
    """
    One POS session's cart.

    `catalog` is anything with lookup_by_sku(sku) -> ProductSnapshot
    (inventory.services.catalog.CatalogService in production).
    """

    def __init__(self, catalog=None, *, lines=None, discount: Discount | None = None, state=CartState.EMPTY):
        if catalog is None:
            from inventory.services.catalog import CatalogService

            catalog = CatalogService()

        self.catalog = catalog
        self._lines: dict[str, CartLine] = {}
        for line in lines or []:
            self._lines[line.product_id] = line
        self.discount = discount
        self.state = CartState(state)

    # -----------------------------
    # Read side
    # -----------------------------
    @property
    def lines(self) -> list[CartLine]:
        return list(self._lines.values())

    @property
    def is_empty(self) -> bool:
        return not self._lines

    def subtotal(self) -> Decimal:
        return _money(sum((line.line_total for line in self._lines.values()), Decimal("0.00")))

    def total(self) -> Decimal:
        return compute_total(self.subtotal(), self.discount)

    def settlement_items(self) -> list[dict]:
        if self.is_empty:
            raise CartError("Cart is empty")
        return [{"product_id": line.product_id, "quantity": line.quantity} for line in self._lines.values()]

    # -----------------------------
    # Mutations
    # -----------------------------
    def _ensure_editable(self):
        if self.state == CartState.CHECKING_OUT:
            raise CartError("Cart is locked while checkout is in progress")
        if self.state in (CartState.SETTLED, CartState.CANCELLED):
            self.reset()

    def _line_at(self, index) -> CartLine:
        try:
            position = int(index)
        except (TypeError, ValueError):
            raise CartError(f"Invalid line index: {index}")
        lines = self.lines
        if position < 0 or position >= len(lines):
            raise CartError(f"No cart line at position {position}")
        return lines[position]

    def _refresh_state(self):
        self.state = CartState.POPULATED if self._lines else CartState.EMPTY

    def add_by_sku(self, sku: str, quantity=1) -> CartLine:
        qty = _quantity(quantity)
        if qty <= 0:
            raise CartError("Quantity must be greater than zero")

        self._ensure_editable()

        snapshot = self.catalog.lookup_by_sku(sku)
        available = snapshot.available_units

        if available <= 0:
            raise OutOfStockError(f"{snapshot.name} is out of stock")

        if snapshot.product_type == ProductType.COUNT and qty != qty.to_integral_value():
            raise CartError(f"{snapshot.name} is sold per piece; quantity must be a whole number")

        existing = self._lines.get(snapshot.product_id)
        merged = (existing.quantity if existing else Decimal("0")) + qty

        if merged > available:
            raise InsufficientStockError(available, merged)

        line = CartLine.from_snapshot(snapshot, merged)
        self._lines[line.product_id] = line
        self._refresh_state()
        return line

    def edit_quantity(self, line_index, quantity, *, scale=QuantityScale.DISPLAY) -> CartLine:
        self._ensure_editable()
        line = self._line_at(line_index)

        try:
            display_qty = to_display_units(
                _quantity(quantity),
                line.product_type,
                line.quantity_per_unit,
                line.base_unit,
                scale=scale,
            )
        except ValidationError as exc:
            raise CartError("; ".join(exc.messages))

        display_qty = display_qty.quantize(THREEPLACES, rounding=ROUND_HALF_UP)
        if line.is_count and display_qty != display_qty.to_integral_value():
            raise CartError(f"{line.name} is sold per piece; quantity must be a whole number")

        display_qty = max(display_qty, line.min_quantity)
        if display_qty > line.available:
            raise InsufficientStockError(line.available, display_qty)

        updated = replace(line, quantity=display_qty)
        self._lines[line.product_id] = updated
        return updated

    def remove(self, line_index) -> CartLine:
        self._ensure_editable()
        line = self._line_at(line_index)
        del self._lines[line.product_id]
        self._refresh_state()
        return line

    def set_discount(self, discount: Discount | None):
        if discount is not None and not isinstance(discount, Discount):
            raise CartError("Invalid discount")
        self._ensure_editable()
        self.discount = discount

    def clear(self):
        self._lines.clear()
        self.discount = None
        self.state = CartState.EMPTY

    def reset(self):
        self.clear()

    def cancel(self):
        self._lines.clear()
        self.discount = None
        self.state = CartState.CANCELLED

    # -----------------------------
    # Checkout hooks
    # -----------------------------
    def begin_checkout(self):
        if self.is_empty:
            raise CartError("Cart is empty")
        if self.state != CartState.CHECKING_OUT:
            self.state = CartState.CHECKING_OUT

    def abort_checkout(self):
        """Settlement failed or was abandoned: cart stays intact and editable."""
        self._refresh_state()

    def mark_settled(self):
        self._lines.clear()
        self.discount = None
        self.state = CartState.SETTLED

    # -----------------------------
    # Session persistence
    # -----------------------------
    def to_dict(self) -> dict:
        return {
            "state": str(self.state),
            "lines": [line.to_dict() for line in self._lines.values()],
            "discount": self.discount.to_dict() if self.discount else None,
        }

    @classmethod
    def from_dict(cls, data: dict | None, catalog=None) -> "CartSession":
        data = data or {}
        return cls(
            catalog,
            lines=[CartLine.from_dict(d) for d in data.get("lines") or []],
            discount=Discount.from_dict(data.get("discount")),
            state=data.get("state") or CartState.EMPTY,
        )
