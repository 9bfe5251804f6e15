# backend/settings/prod.py
"""
PATH: backend/settings/prod.py

PRODUCTION SETTINGS

Fail closed on:
- missing SECRET_KEY / ALLOWED_HOSTS
- SQLite DATABASE_URL (Postgres only)
- process-local cache (session carts must be shared by every worker)
- missing PayMongo secret key (redirect payments would fail at the till)
- localhost / plain-http CORS or CSRF origins

Redirect returns are verified with PayMongo unless PAYMONGO_VERIFY_RETURN=false.
"""

from __future__ import annotations

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import BASE_DIR, MIDDLEWARE, PAYMENTS, env

DEBUG = False


def _require(value, message):
    if not value:
        raise ImproperlyConfigured(message)
    return value


# ----------------------------
# Secrets / hosts
# ----------------------------
SECRET_KEY = _require(
    (env("SECRET_KEY", default="") or "").strip().replace("dev-insecure-change-me", ""),
    "SECRET_KEY must be set to a strong value in production.",
)
ALLOWED_HOSTS = _require(env.list("ALLOWED_HOSTS", default=[]), "ALLOWED_HOSTS must be set in production.")

_require(
    PAYMENTS["PAYMONGO"]["SECRET_KEY"],
    "PAYMONGO_SECRET_KEY must be set in production.",
)
PAYMENTS["PAYMONGO"]["VERIFY_RETURN"] = env.bool("PAYMONGO_VERIFY_RETURN", default=True)

# ----------------------------
# Database (Postgres only)
# ----------------------------
_database_url = _require(
    (env("DATABASE_URL", default="") or "").strip(),
    "DATABASE_URL must be set in production (Postgres).",
)
if _database_url.startswith("sqlite"):
    raise ImproperlyConfigured("Refusing to start in production with SQLite DATABASE_URL.")

DATABASES = {"default": env.db("DATABASE_URL")}
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)

# ----------------------------
# Cache (session carts)
# ----------------------------
_cache_url = (env("CACHE_URL", default="") or "").strip()
if not _cache_url or _cache_url.startswith("locmem"):
    raise ImproperlyConfigured(
        "CACHE_URL must point at a shared cache (e.g. redis://) in production; "
        "POS carts live in cache-backed sessions."
    )
CACHES = {"default": env.cache("CACHE_URL")}

# ----------------------------
# Static files (WhiteNoise)
# ----------------------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))
MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ----------------------------
# TLS behind a proxy
# ----------------------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)
SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True)
SECURE_HSTS_PRELOAD = env.bool("SECURE_HSTS_PRELOAD", default=False)

# ----------------------------
# Cookies / headers
# ----------------------------
SESSION_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = True
SESSION_COOKIE_SAMESITE = "Lax"
CSRF_COOKIE_SECURE = True
CSRF_COOKIE_HTTPONLY = True
CSRF_COOKIE_SAMESITE = "Lax"

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
X_FRAME_OPTIONS = "DENY"
SECURE_CROSS_ORIGIN_OPENER_POLICY = "same-origin"

# ----------------------------
# CORS / CSRF (explicit, https only)
# ----------------------------
CORS_ALLOWED_ORIGINS = _require(
    env.list("CORS_ALLOWED_ORIGINS", default=[]),
    "CORS_ALLOWED_ORIGINS must be set in production.",
)
CSRF_TRUSTED_ORIGINS = _require(
    env.list("CSRF_TRUSTED_ORIGINS", default=[]),
    "CSRF_TRUSTED_ORIGINS must be set in production.",
)

for _name, _origins in (("CORS_ALLOWED_ORIGINS", CORS_ALLOWED_ORIGINS), ("CSRF_TRUSTED_ORIGINS", CSRF_TRUSTED_ORIGINS)):
    if any("localhost" in o or "127.0.0.1" in o for o in _origins):
        raise ImproperlyConfigured(f"Remove localhost from {_name} in production.")
    if any(o.startswith("http://") for o in _origins):
        raise ImproperlyConfigured(f"{_name} must be https:// in production.")

# The till keeps its cart in a cookie-bound session.
CORS_ALLOW_CREDENTIALS = True
