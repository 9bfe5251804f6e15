# inventory/services/catalog.py

"""
======================================================
PATH: inventory/services/catalog.py
======================================================
CATALOG GATEWAY

Purpose:
- Request/response boundary the POS engines talk to:
    lookup-by-SKU, bulk-create, stock intake, stock adjustment, snapshot.
- Normalize catalog payloads into ProductSnapshot BEFORE any engine logic runs
  (no duck-typed product dicts past this point).

Rules:
- Stock quantities are stored in the recorded small unit (see services.units).
- Bulk create has NO cross-row rollback: each row runs in its own savepoint,
  rows created before a later failure stay created.
- SKU collisions surface as DuplicateKeyError (never a raw IntegrityError).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction

from inventory.choices import (
    DEFAULT_UNIT_BY_PRODUCT_TYPE,
    ProductType,
    QuantityScale,
    UNITS_BY_PRODUCT_TYPE,
)
from inventory.models import Product
from inventory.services.exceptions import DuplicateKeyError, NotFoundError
from inventory.services.units import (
    format_quantity,
    normalize_product_type,
    to_base,
    units_in_stock,
)

logger = logging.getLogger(__name__)

CREATE_FIELDS = (
    "sku",
    "name",
    "category",
    "product_type",
    "base_unit",
    "quantity_per_unit",
    "quantity_in_stock",
    "cost_price",
    "selling_price",
    "low_stock_level",
)


def _to_decimal(value, *, field_name="value", default=None) -> Decimal:
    if value is None or value == "" or value == "null":
        if default is not None:
            return default
        raise ValidationError(f"{field_name} is required")
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a valid decimal")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise ValidationError(f"{field_name} must be a valid decimal") from exc


def _first(payload: dict, *keys, default=None):
    for key in keys:
        if key in payload and payload[key] not in (None, ""):
            return payload[key]
    return default


def _normalize_unit(product_type: ProductType, raw_unit) -> str:
    unit = str(raw_unit or "").strip()
    if not unit:
        return str(DEFAULT_UNIT_BY_PRODUCT_TYPE[product_type])

    for allowed in UNITS_BY_PRODUCT_TYPE[product_type]:
        if unit.lower() == str(allowed).lower():
            return str(allowed)

    raise ValidationError(f"Unit '{unit}' is not valid for {product_type} products")


@dataclass(frozen=True)
class ProductSnapshot:
    """
    Point-in-time view of one catalog product.

    stock_quantity is in recorded base units; available_units is the same
    stock expressed in display (sellable) units.
    """

    product_id: str
    sku: str
    name: str
    category: str
    product_type: ProductType
    base_unit: str
    quantity_per_unit: Decimal
    stock_quantity: Decimal
    cost_price: Decimal
    selling_price: Decimal
    low_stock_level: Decimal

    @property
    def available_units(self) -> Decimal:
        return units_in_stock(
            self.stock_quantity,
            self.product_type,
            self.quantity_per_unit,
            self.base_unit,
        )

    @classmethod
    def from_payload(cls, payload: dict) -> "ProductSnapshot":
        if not isinstance(payload, dict):
            raise ValidationError("Catalog payload must be an object")

        product_id = _first(payload, "product_id", "id")
        sku = str(_first(payload, "sku", default="") or "").strip()
        if not product_id or not sku:
            raise ValidationError("Catalog payload requires product_id and sku")

        product_type = normalize_product_type(_first(payload, "product_type", default=ProductType.COUNT))

        per_unit = _to_decimal(
            _first(payload, "quantity_per_unit"),
            field_name="quantity_per_unit",
            default=Decimal("1"),
        )
        if per_unit <= 0 or product_type == ProductType.COUNT:
            per_unit = Decimal("1")

        return cls(
            product_id=str(product_id),
            sku=sku,
            name=str(_first(payload, "name", "product_name", default=sku)),
            category=str(_first(payload, "category", default="") or ""),
            product_type=product_type,
            base_unit=_normalize_unit(product_type, _first(payload, "base_unit")),
            quantity_per_unit=per_unit,
            stock_quantity=_to_decimal(
                _first(payload, "stock_quantity", "quantity_in_stock"),
                field_name="stock_quantity",
                default=Decimal("0"),
            ),
            cost_price=_to_decimal(
                _first(payload, "cost_price"), field_name="cost_price", default=Decimal("0.00")
            ),
            selling_price=_to_decimal(
                _first(payload, "selling_price", "price"), field_name="selling_price"
            ),
            low_stock_level=_to_decimal(
                _first(payload, "low_stock_level"), field_name="low_stock_level", default=Decimal("0")
            ),
        )

    @classmethod
    def from_product(cls, product: Product) -> "ProductSnapshot":
        return cls.from_payload(product_payload(product))


def product_payload(product: Product) -> dict:
    """Wire shape of lookup-by-SKU."""
    return {
        "product_id": str(product.id),
        "sku": product.sku,
        "name": product.name,
        "category": product.category,
        "product_type": product.product_type,
        "base_unit": product.base_unit,
        "quantity_per_unit": product.quantity_per_unit,
        "stock_quantity": product.quantity_in_stock,
        "cost_price": product.cost_price,
        "selling_price": product.selling_price,
        "low_stock_level": product.low_stock_level,
    }


class CatalogService:
    """
    Django-ORM backed catalog.

    Engines receive an instance of this (or a test double with the same
    methods) instead of querying models directly.
    """

    def lookup_by_sku(self, sku: str) -> ProductSnapshot:
        key = (sku or "").strip()
        product = Product.objects.filter(sku__iexact=key, is_active=True).first() if key else None
        if product is None:
            raise NotFoundError(f"Product not found for SKU '{key}'")
        return ProductSnapshot.from_product(product)

    def get(self, product_id) -> Product:
        try:
            return Product.objects.get(id=product_id, is_active=True)
        except (Product.DoesNotExist, ValidationError, ValueError):
            raise NotFoundError(f"Product not found: {product_id}")

    def snapshot(self) -> list[Product]:
        return list(Product.objects.filter(is_active=True).order_by("name"))

    def create_product(self, payload: dict) -> Product:
        fields = {k: payload[k] for k in CREATE_FIELDS if k in payload}
        sku = str(fields.get("sku") or "").strip().upper()
        if not sku:
            raise ValidationError("sku is required")
        fields["sku"] = sku

        if Product.objects.filter(sku__iexact=sku).exists():
            raise DuplicateKeyError(f"SKU '{sku}' already exists")

        product = Product(**fields)
        product.full_clean(validate_unique=False)

        try:
            with transaction.atomic():
                product.save()
        except IntegrityError as exc:
            raise DuplicateKeyError(f"SKU '{sku}' already exists") from exc

        return product

    def bulk_create(self, payloads: list[dict]) -> dict:
        """
        Create many products; each row succeeds or fails on its own.

        Returns {"success": [{index, product_id, sku}], "errors": [{index, error}]}
        where index is the position in `payloads`.
        """
        success, errors = [], []

        for index, payload in enumerate(payloads or []):
            try:
                product = self.create_product(payload)
            except DuplicateKeyError as exc:
                errors.append({"index": index, "error": str(exc)})
                continue
            except ValidationError as exc:
                errors.append({"index": index, "error": "; ".join(exc.messages)})
                continue

            success.append({"index": index, "product_id": str(product.id), "sku": product.sku})

        logger.info(
            "Catalog bulk create finished",
            extra={"created": len(success), "failed": len(errors)},
        )
        return {"success": success, "errors": errors}

    @transaction.atomic
    def add_stock_by_sku(self, *, sku: str, quantity, scale=QuantityScale.DISPLAY) -> Product:
        key = (sku or "").strip()
        product = Product.objects.select_for_update().filter(sku__iexact=key).first() if key else None
        if product is None:
            raise NotFoundError(f"Product not found for SKU '{key}'")

        qty = _to_decimal(quantity, field_name="quantity")
        if qty <= 0:
            raise ValidationError("quantity must be greater than zero")

        base_qty = to_base(
            qty,
            product.product_type,
            product.quantity_per_unit,
            product.base_unit,
            scale=scale,
        )
        product.quantity_in_stock = Decimal(product.quantity_in_stock) + base_qty
        product.save(update_fields=["quantity_in_stock", "updated_at"])

        logger.info(
            "Stock added",
            extra={"sku": product.sku, "base_quantity": format_quantity(base_qty)},
        )
        return product

    @transaction.atomic
    def adjust_stock(self, *, product_id, delta, scale=QuantityScale.BASE) -> Product:
        try:
            product = Product.objects.select_for_update().get(id=product_id)
        except (Product.DoesNotExist, ValidationError, ValueError):
            raise NotFoundError(f"Product not found: {product_id}")

        amount = _to_decimal(delta, field_name="delta")
        if amount == 0:
            raise ValidationError("delta cannot be 0")

        sign = Decimal("-1") if amount < 0 else Decimal("1")
        base_delta = sign * to_base(
            abs(amount),
            product.product_type,
            product.quantity_per_unit,
            product.base_unit,
            scale=scale,
        )

        current = Decimal(product.quantity_in_stock)
        new_quantity = current + base_delta
        if new_quantity < 0:
            raise ValidationError(
                "Stock adjustment would result in negative stock. "
                f"Remaining={format_quantity(current)}, delta={format_quantity(base_delta)}"
            )

        product.quantity_in_stock = new_quantity
        product.save(update_fields=["quantity_in_stock", "updated_at"])
        return product
