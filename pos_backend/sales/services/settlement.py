# sales/services/settlement.py

"""
======================================================
PATH: sales/services/settlement.py
======================================================
LEDGER SETTLEMENT (AUTHORITATIVE)

Purpose:
- Convert a finalized cart payload into a permanent Transaction record.
- The ONLY place Product stock is decremented.

Hard rules:
- One DB transaction: stock decrement + Transaction + items commit together.
- Products are row-locked (select_for_update) before stock is re-checked;
  the cart's stock check is optimistic and may be stale.
- A stale snapshot is an advisory failure (SettlementError), never retried here.
- Money is computed server-side through the Discount Engine.
- Cash requires money_received >= total.
"""

from __future__ import annotations

import logging
import uuid
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F

from inventory.choices import ProductType
from inventory.models import Product
from inventory.services.units import format_quantity, to_base, units_in_stock
from pos.services.discounts import Discount, DiscountKind, compute_total
from sales.models import Transaction, TransactionItem

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")
THREEPLACES = Decimal("0.001")


class SettlementError(Exception):
    """Server-side rejection at checkout (stock changed, validation failure)."""


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _quantity(value) -> Decimal:
    if value is None or value == "" or isinstance(value, bool):
        raise SettlementError("quantity is required")
    try:
        qty = Decimal(str(value)).quantize(THREEPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        raise SettlementError("quantity must be a number")
    if qty <= 0:
        raise SettlementError("quantity must be greater than zero")
    return qty


def _normalize_payment_type(payment_type) -> str:
    value = (payment_type or Transaction.PaymentType.CASH).strip().lower()
    if value not in Transaction.PaymentType.values:
        raise SettlementError(f"Unsupported payment_type: {payment_type}")
    return value


def _merge_items(items) -> dict:
    """Collapse repeated product ids (display quantities add up)."""
    if not items:
        raise SettlementError("Cannot settle an empty cart")

    merged: dict[str, Decimal] = {}
    for item in items:
        product_id = str((item or {}).get("product_id") or "").strip()
        if not product_id:
            raise SettlementError("Each item requires product_id")
        try:
            product_id = str(uuid.UUID(product_id))
        except ValueError:
            raise SettlementError(f"Product not found: {product_id}")
        merged[product_id] = merged.get(product_id, Decimal("0")) + _quantity(item.get("quantity"))
    return merged


def _resolve_discount(discount_percentage, discount_amount) -> Discount | None:
    if discount_percentage not in (None, "") and discount_amount not in (None, ""):
        raise SettlementError("Send discount_percentage OR discount_amount, not both")
    try:
        if discount_percentage not in (None, ""):
            return Discount.percentage(discount_percentage)
        if discount_amount not in (None, ""):
            return Discount.fixed(discount_amount)
    except ValidationError as exc:
        raise SettlementError("; ".join(exc.messages))
    return None


@transaction.atomic
def settle_transaction(
    *,
    items,
    payment_type="cash",
    money_received=None,
    discount_percentage=None,
    discount_amount=None,
    reference: str = "",
) -> Transaction:
    payment_type = _normalize_payment_type(payment_type)
    merged = _merge_items(items)
    discount = _resolve_discount(discount_percentage, discount_amount)

    products = {
        str(p.id): p
        for p in Product.objects.select_for_update().filter(id__in=list(merged.keys()), is_active=True)
    }

    lines = []
    subtotal = Decimal("0.00")

    for product_id, qty in merged.items():
        product = products.get(product_id)
        if product is None:
            raise SettlementError(f"Product not found: {product_id}")

        if product.product_type == ProductType.COUNT and qty != qty.to_integral_value():
            raise SettlementError(f"{product.name}: quantity must be a whole number")

        available = units_in_stock(
            product.quantity_in_stock,
            product.product_type,
            product.quantity_per_unit,
            product.base_unit,
        )
        if qty > available:
            raise SettlementError(
                f"Insufficient stock for {product.name}. "
                f"Available: {format_quantity(available)}, Requested: {format_quantity(qty)}"
            )

        base_qty = to_base(
            qty,
            product.product_type,
            product.quantity_per_unit,
            product.base_unit,
        ).quantize(THREEPLACES, rounding=ROUND_HALF_UP)
        base_qty = min(base_qty, Decimal(product.quantity_in_stock))

        unit_price = _money(product.selling_price)
        line_total = _money(unit_price * qty)
        subtotal += line_total

        lines.append((product, qty, base_qty, unit_price, line_total))

    subtotal = _money(subtotal)
    total = compute_total(subtotal, discount)

    received = None
    change = None
    if money_received not in (None, ""):
        received = _money(money_received)
        change = _money(received - total)

    if payment_type == Transaction.PaymentType.CASH:
        if received is None:
            raise SettlementError("money_received is required for cash payments")
        if received < total:
            raise SettlementError(
                f"Insufficient payment. Total: {total}, Received: {received}"
            )

    txn = Transaction.objects.create(
        payment_type=payment_type,
        subtotal_amount=subtotal,
        discount_percentage=discount.value if discount and discount.kind == DiscountKind.PERCENTAGE else None,
        discount_amount=_money(subtotal - total),
        total_amount=total,
        money_received=received,
        money_change=change,
        reference=(reference or "").strip()[:128],
    )

    for product, qty, base_qty, unit_price, line_total in lines:
        TransactionItem.objects.create(
            transaction=txn,
            product=product,
            quantity=qty,
            base_quantity=base_qty,
            unit_price=unit_price,
            line_total=line_total,
        )
        Product.objects.filter(id=product.id).update(
            quantity_in_stock=F("quantity_in_stock") - base_qty,
        )

    logger.info(
        "Transaction settled",
        extra={
            "transaction_number": txn.transaction_number,
            "payment_type": payment_type,
            "total": str(total),
            "reference": txn.reference,
        },
    )
    return txn


class LedgerService:
    """
    Request/response seam the POS talks to.

    submit(payload) -> {"transaction_number", "transaction_id", "total"}
    Raises SettlementError on rejection.
    """

    def submit(self, payload: dict) -> dict:
        payload = payload or {}
        try:
            txn = settle_transaction(
                items=payload.get("items"),
                payment_type=payload.get("payment_type") or "cash",
                money_received=payload.get("money_received"),
                discount_percentage=payload.get("discount_percentage"),
                discount_amount=payload.get("discount_amount"),
                reference=payload.get("reference") or "",
            )
        except SettlementError as exc:
            logger.warning(
                "Settlement rejected",
                extra={"reference": payload.get("reference"), "error": str(exc)},
            )
            raise

        return {
            "transaction_number": txn.transaction_number,
            "transaction_id": str(txn.id),
            "total": txn.total_amount,
        }

    def lookup(self, reference: str) -> dict | None:
        """Transaction already settled under a POS reference, if any."""
        reference = (reference or "").strip()
        if not reference:
            return None
        txn = Transaction.objects.filter(reference=reference).order_by("-created_at").first()
        if txn is None:
            return None
        return {
            "transaction_number": txn.transaction_number,
            "transaction_id": str(txn.id),
            "total": txn.total_amount,
            "payment_type": txn.payment_type,
        }
