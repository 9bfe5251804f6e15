# backend/urls.py
"""
PROJECT URLS

All API routes live under /api/:
- /api/inventory/  catalog, stock intake, import, valuation
- /api/sales/      ledger settlement, transaction history, discount presets
- /api/pos/        session cart, checkout, redirect payments

/api/health/ checks the two stores the till depends on: the database
(catalog + ledger) and the cache (session carts).

The admin path is configurable (ADMIN_PATH) to keep it off scanners' lists.
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.core.cache import cache
from django.db import connections
from django.db.utils import OperationalError
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.utils import extend_schema
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView
from rest_framework.decorators import api_view
from rest_framework.response import Response

MODULES = {
    "inventory": "/api/inventory/",
    "sales": "/api/sales/",
    "pos": "/api/pos/",
}


@extend_schema(responses={200: dict})
@api_view(["GET"])
def api_root(request):
    return Response(
        {
            "message": "Retail POS API is running",
            "docs": {"swagger": "/api/docs/", "schema": "/api/schema/"},
            "modules": MODULES,
        }
    )


def _check_db() -> str:
    with connections["default"].cursor() as cursor:
        cursor.execute("SELECT 1;")
        cursor.fetchone()
    return "ok"


def _check_cache() -> str:
    cache.set("health:ping", "pong", 5)
    return "ok" if cache.get("health:ping") == "pong" else "down"


@extend_schema(responses={200: dict, 503: dict})
@api_view(["GET"])
def health_check(request):
    body = {"status": "ok"}

    try:
        body["db"] = _check_db()
    except OperationalError as e:
        body.update(status="degraded", db="down", error=str(e))

    body["cache"] = _check_cache()
    if body["cache"] != "ok":
        body["status"] = "degraded"

    return Response(body, status=200 if body["status"] == "ok" else 503)


ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/")
if not ADMIN_PATH.endswith("/"):
    ADMIN_PATH = f"{ADMIN_PATH}/"


api_urlpatterns = [
    path("", api_root, name="api-root"),
    path("health/", health_check, name="health-check"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    path("docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("inventory/", include("inventory.urls")),
    path("sales/", include("sales.urls")),
    path("pos/", include("pos.urls")),
]

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
    path("", RedirectView.as_view(url="/api/docs/", permanent=False), name="root"),
    path("api/", include(api_urlpatterns)),
]
