# inventory/urls.py

"""
INVENTORY URLS

Purpose:
- Register catalog routes under /api/inventory/
- Includes viewset actions like:
    /inventory/products/sku/<sku>/
    /inventory/products/bulk-import/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from inventory.views import ProductViewSet

router = DefaultRouter()

router.register(r"products", ProductViewSet, basename="products")

urlpatterns = [
    path("", include(router.urls)),
]
