# backend/errors.py

"""
API ERROR NORMALIZATION

Every domain error leaves the API in one envelope:
    {"error": {"code": "...", "message": "...", ...extra}}
so the UI can render it next to the control that triggered it.
"""

from __future__ import annotations

from rest_framework.response import Response


def error_response(*, code: str, message: str, http_status: int, **extra):
    body = {"code": code, "message": message}
    body.update(extra)
    return Response({"error": body}, status=http_status)
