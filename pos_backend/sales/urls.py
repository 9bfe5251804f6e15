# sales/urls.py

"""
SALES (LEDGER) URLS

Rules:
- Explicit non-PK routes (like "checkout") are registered BEFORE router URLs.

Provides:
    POST /api/sales/checkout/
    GET  /api/sales/transactions/
    CRUD /api/sales/discounts/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from sales.views import CheckoutView, DiscountViewSet, TransactionViewSet

router = DefaultRouter()

router.register(r"transactions", TransactionViewSet, basename="transactions")
router.register(r"discounts", DiscountViewSet, basename="discounts")

urlpatterns = [
    path("checkout/", CheckoutView.as_view(), name="sales-checkout"),
    path("", include(router.urls)),
]
