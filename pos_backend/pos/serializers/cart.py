# pos/serializers/cart.py

"""
CART SERIALIZERS

Purpose:
- Return the session cart in a frontend-friendly shape.
- Validate cashier input (add / edit / discount / payment) at the boundary.

Totals are always server-derived from the CartSession; never trusted from
the client.
"""

from decimal import Decimal

from rest_framework import serializers

from inventory.choices import QuantityScale
from pos.services.checkout import DIRECT_PAYMENT_TYPES, REDIRECT_PAYMENT_TYPES
from pos.services.discounts import DiscountKind


class CartLineSerializer(serializers.Serializer):
    index = serializers.IntegerField(read_only=True)
    product_id = serializers.CharField(read_only=True)
    sku = serializers.CharField(read_only=True)
    name = serializers.CharField(read_only=True)
    product_type = serializers.CharField(read_only=True)
    base_unit = serializers.CharField(read_only=True)
    quantity = serializers.DecimalField(max_digits=12, decimal_places=3, read_only=True)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    available = serializers.DecimalField(max_digits=14, decimal_places=3, read_only=True)


class CartDiscountSerializer(serializers.Serializer):
    kind = serializers.CharField(read_only=True)
    value = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)


class CartSerializer(serializers.Serializer):
    """
    Session cart.

    Guarantees:
    - lines are in insertion order; `index` is what update/remove take
    - subtotal and total are computed server-side
    """

    state = serializers.CharField(read_only=True)
    provisional_number = serializers.CharField(read_only=True)
    checkout_state = serializers.CharField(read_only=True)
    lines = CartLineSerializer(many=True, read_only=True)
    item_count = serializers.IntegerField(read_only=True)
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    discount = CartDiscountSerializer(read_only=True, allow_null=True)
    total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    @staticmethod
    def build(cart, checkout=None) -> dict:
        lines = []
        for index, line in enumerate(cart.lines):
            lines.append(
                {
                    "index": index,
                    "product_id": line.product_id,
                    "sku": line.sku,
                    "name": line.name,
                    "product_type": line.product_type,
                    "base_unit": line.base_unit,
                    "quantity": line.quantity,
                    "unit_price": line.unit_price,
                    "line_total": line.line_total,
                    "available": line.available,
                }
            )
        return {
            "state": str(cart.state),
            "provisional_number": checkout.provisional_number if checkout else "",
            "checkout_state": str(checkout.state) if checkout else "",
            "lines": lines,
            "item_count": len(lines),
            "subtotal": cart.subtotal(),
            "discount": cart.discount.to_dict() if cart.discount else None,
            "total": cart.total(),
        }


# =====================================================
# INPUT SERIALIZERS
# =====================================================

class AddCartItemInputSerializer(serializers.Serializer):
    sku = serializers.CharField(max_length=64)
    quantity = serializers.DecimalField(
        max_digits=12,
        decimal_places=3,
        min_value=Decimal("0.001"),
        required=False,
        default=Decimal("1"),
    )


class UpdateCartItemInputSerializer(serializers.Serializer):
    quantity = serializers.DecimalField(max_digits=14, decimal_places=3)
    scale = serializers.ChoiceField(
        choices=QuantityScale.choices,
        required=False,
        default=QuantityScale.DISPLAY,
    )


class CartDiscountInputSerializer(serializers.Serializer):
    """
    Either a stored preset (discount_id) or an ad-hoc kind + value.
    Sending neither clears the discount.
    """

    discount_id = serializers.UUIDField(required=False, allow_null=True)
    kind = serializers.ChoiceField(choices=DiscountKind.choices, required=False, allow_null=True)
    value = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)

    def validate(self, attrs):
        preset = attrs.get("discount_id")
        kind = attrs.get("kind")
        value = attrs.get("value")

        if preset and (kind or value is not None):
            raise serializers.ValidationError("Send discount_id OR kind/value, not both")
        if bool(kind) != (value is not None):
            raise serializers.ValidationError("kind and value must be sent together")
        return attrs


class CashCheckoutInputSerializer(serializers.Serializer):
    money_received = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0"))


class DirectCheckoutInputSerializer(serializers.Serializer):
    payment_type = serializers.ChoiceField(choices=list(DIRECT_PAYMENT_TYPES))


class RedirectPaymentInputSerializer(serializers.Serializer):
    payment_type = serializers.ChoiceField(
        choices=list(REDIRECT_PAYMENT_TYPES),
        required=False,
        default=REDIRECT_PAYMENT_TYPES[0],
    )
    description = serializers.CharField(max_length=255, required=False, allow_blank=True, default="")
    success_url = serializers.URLField(required=False, allow_blank=True, default="")
    cancel_url = serializers.URLField(required=False, allow_blank=True, default="")


class RedirectReturnInputSerializer(serializers.Serializer):
    reference = serializers.CharField(max_length=64)
    status = serializers.ChoiceField(choices=["success", "cancel"])


class CheckoutResultSerializer(serializers.Serializer):
    transaction_number = serializers.CharField(read_only=True)
    transaction_id = serializers.CharField(read_only=True)
    total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    payment_type = serializers.CharField(read_only=True)
    change = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True, allow_null=True)
