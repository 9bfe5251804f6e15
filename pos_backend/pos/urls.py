"""
PATH: pos/urls.py

POS URLS

Purpose:
- POS health check
- Session cart lifecycle and line operations
- Cash / direct checkout
- Redirect payment start and provider return
"""

from django.urls import path

from pos.views.api import (
    ActiveCartView,
    AddCartItemView,
    CartDiscountView,
    CashCheckoutView,
    ClearCartView,
    DirectCheckoutView,
    POSHealthCheckView,
    RedirectPaymentView,
    RedirectReturnView,
    RemoveCartItemView,
    UpdateCartItemView,
)

app_name = "pos"

urlpatterns = [
    path("health/", POSHealthCheckView.as_view(), name="health"),

    path("cart/", ActiveCartView.as_view(), name="active-cart"),
    path("cart/clear/", ClearCartView.as_view(), name="clear-cart"),
    path("cart/discount/", CartDiscountView.as_view(), name="cart-discount"),

    path("cart/items/add/", AddCartItemView.as_view(), name="add-cart-item"),
    path("cart/items/<int:index>/update/", UpdateCartItemView.as_view(), name="update-cart-item"),
    path("cart/items/<int:index>/remove/", RemoveCartItemView.as_view(), name="remove-cart-item"),

    path("checkout/cash/", CashCheckoutView.as_view(), name="checkout-cash"),
    path("checkout/direct/", DirectCheckoutView.as_view(), name="checkout-direct"),

    path("payments/redirect/", RedirectPaymentView.as_view(), name="payment-redirect"),
    path("payments/return/", RedirectReturnView.as_view(), name="payment-return"),
]
