# backend/settings/test.py
"""
PATH: backend/settings/test.py

TEST SETTINGS (pytest-django)

- In-memory SQLite
- Local-memory cache (session cart)
- No throttling, no external payment credentials
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import REST_FRAMEWORK

DEBUG = False
SECRET_KEY = "test-only-secret-key"
ALLOWED_HOSTS = ["testserver", "localhost", "127.0.0.1"]

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "pos-tests",
    }
}

REST_FRAMEWORK = {
    **REST_FRAMEWORK,
    "DEFAULT_THROTTLE_CLASSES": (),
}

PAYMENTS = {
    "PAYMONGO": {
        "PUBLIC_KEY": "",
        "SECRET_KEY": "sk_test_placeholder",
        "PAYMENT_METHODS": ["gcash"],
        "VERIFY_RETURN": False,
    }
}

BUSINESS_ID = "1"
INVENTORY_VALUE_WARNING_THRESHOLD = "1000000000"

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "handlers": {"null": {"class": "logging.NullHandler"}},
    "root": {"handlers": ["null"], "level": "WARNING"},
}
