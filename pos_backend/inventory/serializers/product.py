# inventory/serializers/product.py

"""
PRODUCT SERIALIZER

Purpose:
- Canonical Product serializer for staff inventory screens.
- Display quantity / unit and stock status are derived server-side from the
  unit conversion + classifier services (no frontend-side stock math).
"""

from decimal import Decimal

from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework import serializers

from inventory.choices import QuantityScale
from inventory.models import Product
from inventory.services.units import format_quantity


class ProductSerializer(serializers.ModelSerializer):
    """
    GUARANTEES:
    - quantity_in_stock is in recorded base units (pc / g / mL)
    - display_quantity / display_unit follow the unit conversion rules
    - stock_status compares display units with low_stock_level
    """

    display_quantity = serializers.SerializerMethodField(read_only=True)
    display_unit = serializers.SerializerMethodField(read_only=True)
    stock_status = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "category",
            "product_type",
            "base_unit",
            "quantity_per_unit",
            "quantity_in_stock",
            "display_quantity",
            "display_unit",
            "cost_price",
            "selling_price",
            "low_stock_level",
            "stock_status",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "display_quantity",
            "display_unit",
            "stock_status",
            "created_at",
            "updated_at",
        ]

    def validate_sku(self, value):
        value = (value or "").strip().upper()
        if not value:
            raise serializers.ValidationError("SKU is required")
        return value

    def validate(self, attrs):
        instance = Product(**{**self._current_values(), **attrs})
        try:
            instance.clean()
        except DjangoValidationError as exc:
            raise serializers.ValidationError(exc.message_dict if hasattr(exc, "message_dict") else exc.messages)
        return attrs

    def _current_values(self) -> dict:
        if self.instance is None:
            return {}
        return {
            f: getattr(self.instance, f)
            for f in (
                "product_type",
                "base_unit",
                "quantity_per_unit",
                "quantity_in_stock",
                "cost_price",
                "selling_price",
            )
        }

    def get_display_quantity(self, obj) -> str:
        return format_quantity(obj.display_stock.quantity)

    def get_display_unit(self, obj) -> str:
        return obj.display_stock.unit

    def get_stock_status(self, obj) -> str:
        return str(obj.stock_status)


class StockQuantityInputSerializer(serializers.Serializer):
    sku = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3, min_value=Decimal("0.001"))
    scale = serializers.ChoiceField(choices=QuantityScale.choices, default=QuantityScale.DISPLAY)


class StockAdjustmentInputSerializer(serializers.Serializer):
    delta = serializers.DecimalField(max_digits=14, decimal_places=3)
    scale = serializers.ChoiceField(choices=QuantityScale.choices, default=QuantityScale.BASE)


class BulkImportInputSerializer(serializers.Serializer):
    """
    Either a multipart `file` (.csv / .xlsx) or a JSON `rows` table
    (first row is the header).
    """

    file = serializers.FileField(required=False)
    rows = serializers.ListField(
        child=serializers.ListField(child=serializers.CharField(allow_blank=True)),
        required=False,
    )

    def validate(self, attrs):
        if not attrs.get("file") and not attrs.get("rows"):
            raise serializers.ValidationError("Provide a file or rows to import.")
        return attrs


class ValuationLineSerializer(serializers.Serializer):
    product_id = serializers.CharField()
    sku = serializers.CharField()
    name = serializers.CharField()
    display_quantity = serializers.SerializerMethodField()
    display_unit = serializers.CharField()
    cost_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    value = serializers.DecimalField(max_digits=20, decimal_places=2)
    status = serializers.CharField()
    flagged = serializers.BooleanField()

    def get_display_quantity(self, obj) -> str:
        return format_quantity(obj.display_quantity)
