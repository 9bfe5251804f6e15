# backend/settings/dev.py
"""
PATH: backend/settings/dev.py

LOCAL DEVELOPMENT SETTINGS

- DEBUG on, SQLite + local-memory cache unless overridden in .env
- POS / sales loggers at DEBUG so cart and settlement steps are visible
- Redirect payments need PAYMONGO_SECRET_KEY (test key) in .env
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING

DEBUG = True

for _app in ("pos", "sales"):
    LOGGING["loggers"][_app]["level"] = "DEBUG"
