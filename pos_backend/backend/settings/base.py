"""
PATH: backend/settings/base.py

BASE SETTINGS (shared by dev + prod + test)

- Every knob comes from the environment (django-environ), .env supported
- The till is a trusted terminal: no API authentication layer
- The POS cart lives in a cache-backed session; only pending redirect
  settlements are durable (database)
- Console logging per app (LOG_LEVEL), Sentry when SENTRY_DSN is set
"""

from __future__ import annotations

from pathlib import Path

import environ
from corsheaders.defaults import default_headers, default_methods

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# -----------------------------------------
# ENV
# -----------------------------------------
env = environ.Env(
    DEBUG=(bool, True),
    SECRET_KEY=(str, ""),
    TIME_ZONE=(str, "Asia/Manila"),
    ALLOWED_HOSTS=(list, ["localhost", "127.0.0.1"]),
    CORS_ALLOWED_ORIGINS=(list, ["http://localhost:5173"]),
    CSRF_TRUSTED_ORIGINS=(list, ["http://localhost:5173"]),
    DATABASE_URL=(str, f"sqlite:///{BASE_DIR / 'db.sqlite3'}"),
    CACHE_URL=(str, "locmemcache://"),
    SESSION_HOURS=(int, 12),
    ADMIN_PATH=(str, "admin/"),
    LOG_LEVEL=(str, "INFO"),
    THROTTLE_ANON_RATE=(str, "600/min"),
    # till identity (provisional transaction numbers)
    BUSINESS_ID=(str, "1"),
    # valuation sanity warning (currency units)
    INVENTORY_VALUE_WARNING_THRESHOLD=(str, "1000000000"),
    # redirect payments (PayMongo checkout sessions)
    PAYMONGO_SECRET_KEY=(str, ""),
    PAYMONGO_PUBLIC_KEY=(str, ""),
    PAYMONGO_PAYMENT_METHODS=(list, ["gcash"]),
    PAYMONGO_VERIFY_RETURN=(bool, False),
    SENTRY_DSN=(str, ""),
    SENTRY_ENVIRONMENT=(str, "development"),
    SENTRY_TRACES_SAMPLE_RATE=(float, 0.0),
)

for _candidate in (BASE_DIR / ".env", BASE_DIR.parent / ".env"):
    if _candidate.exists():
        env.read_env(str(_candidate))
        break

SECRET_KEY = (env("SECRET_KEY") or "dev-insecure-change-me").strip()
DEBUG = env.bool("DEBUG")
ALLOWED_HOSTS = env.list("ALLOWED_HOSTS")
ADMIN_PATH = env("ADMIN_PATH")

LANGUAGE_CODE = "en-us"
TIME_ZONE = (env("TIME_ZONE") or "UTC").strip()
USE_I18N = True
USE_TZ = True

# -----------------------------------------
# APPS / MIDDLEWARE
# -----------------------------------------
INSTALLED_APPS = [
    "corsheaders",
    "django.contrib.admin",
    "django.contrib.auth",
    "django.contrib.contenttypes",
    "django.contrib.sessions",
    "django.contrib.messages",
    "django.contrib.staticfiles",
    "rest_framework",
    "drf_spectacular",
    "django_filters",
    "inventory.apps.InventoryConfig",
    "sales.apps.SalesConfig",
    "pos.apps.PosConfig",
]

MIDDLEWARE = [
    "corsheaders.middleware.CorsMiddleware",
    "django.middleware.security.SecurityMiddleware",
    "django.contrib.sessions.middleware.SessionMiddleware",
    "django.middleware.common.CommonMiddleware",
    "django.middleware.csrf.CsrfViewMiddleware",
    "django.contrib.auth.middleware.AuthenticationMiddleware",
    "django.contrib.messages.middleware.MessageMiddleware",
    "django.middleware.clickjacking.XFrameOptionsMiddleware",
]

ROOT_URLCONF = "backend.urls"
WSGI_APPLICATION = "backend.wsgi.application"

# Django admin only (PendingSettlement inspection, catalog edits).
TEMPLATES = [
    {
        "BACKEND": "django.template.backends.django.DjangoTemplates",
        "DIRS": [],
        "APP_DIRS": True,
        "OPTIONS": {
            "context_processors": [
                "django.template.context_processors.request",
                "django.contrib.auth.context_processors.auth",
                "django.contrib.messages.context_processors.messages",
            ],
        },
    }
]

# -----------------------------------------
# API
# -----------------------------------------
REST_FRAMEWORK = {
    "DEFAULT_AUTHENTICATION_CLASSES": (),
    "DEFAULT_PERMISSION_CLASSES": ("rest_framework.permissions.AllowAny",),
    "DEFAULT_FILTER_BACKENDS": ("django_filters.rest_framework.DjangoFilterBackend",),
    "DEFAULT_PAGINATION_CLASS": "rest_framework.pagination.PageNumberPagination",
    "PAGE_SIZE": 20,
    "DEFAULT_SCHEMA_CLASS": "drf_spectacular.openapi.AutoSchema",
    "DEFAULT_THROTTLE_CLASSES": ("rest_framework.throttling.AnonRateThrottle",),
    "DEFAULT_THROTTLE_RATES": {"anon": env("THROTTLE_ANON_RATE")},
}

SPECTACULAR_SETTINGS = {
    "TITLE": "Retail POS API",
    "DESCRIPTION": "Catalog and unit conversion, session cart and checkout, sales ledger",
    "VERSION": "1.0.0",
    "SERVE_INCLUDE_SCHEMA": False,
}

CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS")
CORS_ALLOW_CREDENTIALS = True
CORS_ALLOW_METHODS = list(default_methods)
CORS_ALLOW_HEADERS = list(default_headers)
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS")

# -----------------------------------------
# STORAGE: ledger/catalog in the database, carts in the cache
# -----------------------------------------
DATABASES = {"default": env.db("DATABASE_URL")}
DEFAULT_AUTO_FIELD = "django.db.models.BigAutoField"

CACHES = {"default": env.cache("CACHE_URL")}
SESSION_ENGINE = "django.contrib.sessions.backends.cache"
SESSION_COOKIE_AGE = 60 * 60 * env.int("SESSION_HOURS")

STATIC_URL = "static/"

# -----------------------------------------
# POS
# -----------------------------------------
BUSINESS_ID = (env("BUSINESS_ID") or "1").strip()
INVENTORY_VALUE_WARNING_THRESHOLD = env("INVENTORY_VALUE_WARNING_THRESHOLD")

PAYMENTS = {
    "PAYMONGO": {
        "PUBLIC_KEY": (env("PAYMONGO_PUBLIC_KEY") or "").strip(),
        "SECRET_KEY": (env("PAYMONGO_SECRET_KEY") or "").strip(),
        "PAYMENT_METHODS": env.list("PAYMONGO_PAYMENT_METHODS"),
        # re-check the checkout session with PayMongo before settling a return
        "VERIFY_RETURN": env.bool("PAYMONGO_VERIFY_RETURN"),
    }
}

# -----------------------------------------
# LOGGING
# -----------------------------------------
LOG_LEVEL = (env("LOG_LEVEL") or "INFO").strip().upper()

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {"format": "%(asctime)s %(levelname)s %(name)s: %(message)s"},
    },
    "handlers": {
        "console": {"class": "logging.StreamHandler", "formatter": "verbose"},
    },
    "root": {"handlers": ["console"], "level": "WARNING"},
    "loggers": {
        app: {"handlers": ["console"], "level": LOG_LEVEL, "propagate": False}
        for app in ("inventory", "sales", "pos")
    },
}

# -----------------------------------------
# SENTRY (optional extra: pip install .[sentry])
# -----------------------------------------
SENTRY_DSN = (env("SENTRY_DSN") or "").strip()

if SENTRY_DSN:
    import sentry_sdk
    from sentry_sdk.integrations.django import DjangoIntegration

    sentry_sdk.init(
        dsn=SENTRY_DSN,
        environment=(env("SENTRY_ENVIRONMENT") or "development").strip(),
        integrations=[DjangoIntegration()],
        traces_sample_rate=env.float("SENTRY_TRACES_SAMPLE_RATE"),
        send_default_pii=False,
    )
