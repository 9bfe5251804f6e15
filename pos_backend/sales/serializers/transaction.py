# sales/serializers/transaction.py

from rest_framework import serializers

from sales.models import Discount, Transaction, TransactionItem


class TransactionItemSerializer(serializers.ModelSerializer):
    """
    Transaction line (read-only).
    Designed for receipts + history screens.
    """

    product_name = serializers.CharField(source="product.name", read_only=True)
    sku = serializers.CharField(source="product.sku", read_only=True)

    class Meta:
        model = TransactionItem
        fields = [
            "id",
            "product",
            "product_name",
            "sku",
            "quantity",
            "base_quantity",
            "unit_price",
            "line_total",
        ]
        read_only_fields = fields


class TransactionSerializer(serializers.ModelSerializer):
    items = TransactionItemSerializer(many=True, read_only=True)

    class Meta:
        model = Transaction
        fields = [
            "id",
            "transaction_number",
            "payment_type",
            "subtotal_amount",
            "discount_percentage",
            "discount_amount",
            "total_amount",
            "money_received",
            "money_change",
            "reference",
            "created_at",
            "items",
        ]
        read_only_fields = fields


class SettlementItemInputSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3)


class SettlementInputSerializer(serializers.Serializer):
    """
    Settlement submission (wire shape the POS sends).

    Exactly one of discount_percentage / discount_amount may be set.
    """

    items = SettlementItemInputSerializer(many=True, allow_empty=False)
    payment_type = serializers.ChoiceField(
        choices=Transaction.PaymentType.choices,
        default=Transaction.PaymentType.CASH,
    )
    money_received = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )
    discount_percentage = serializers.DecimalField(
        max_digits=5, decimal_places=2, required=False, allow_null=True
    )
    discount_amount = serializers.DecimalField(
        max_digits=12, decimal_places=2, required=False, allow_null=True
    )
    reference = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        if attrs.get("discount_percentage") is not None and attrs.get("discount_amount") is not None:
            raise serializers.ValidationError("Send discount_percentage OR discount_amount, not both.")
        return attrs


class SettlementResultSerializer(serializers.Serializer):
    transaction_number = serializers.CharField()
    transaction_id = serializers.CharField()
    total = serializers.DecimalField(max_digits=12, decimal_places=2)


class DiscountPresetSerializer(serializers.ModelSerializer):
    class Meta:
        model = Discount
        fields = ["id", "name", "kind", "value", "is_active", "created_at"]
        read_only_fields = ["id", "created_at"]

    def validate(self, attrs):
        kind = attrs.get("kind", getattr(self.instance, "kind", Discount.Kind.PERCENTAGE))
        value = attrs.get("value", getattr(self.instance, "value", None))
        if value is None or value <= 0:
            raise serializers.ValidationError({"value": "Discount value must be greater than 0"})
        if kind == Discount.Kind.PERCENTAGE and value > 100:
            raise serializers.ValidationError({"value": "Percentage discount cannot exceed 100"})
        return attrs
