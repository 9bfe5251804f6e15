from .cart import (
    AddCartItemInputSerializer,
    CartDiscountInputSerializer,
    CartSerializer,
    CashCheckoutInputSerializer,
    CheckoutResultSerializer,
    DirectCheckoutInputSerializer,
    RedirectPaymentInputSerializer,
    RedirectReturnInputSerializer,
    UpdateCartItemInputSerializer,
)

__all__ = [
    "AddCartItemInputSerializer",
    "CartDiscountInputSerializer",
    "CartSerializer",
    "CashCheckoutInputSerializer",
    "CheckoutResultSerializer",
    "DirectCheckoutInputSerializer",
    "RedirectPaymentInputSerializer",
    "RedirectReturnInputSerializer",
    "UpdateCartItemInputSerializer",
]
