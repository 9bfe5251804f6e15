# pos/services/paymongo.py
from __future__ import annotations

import base64
import json
import logging
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

from django.conf import settings

logger = logging.getLogger(__name__)

PAYMONGO_BASE = "https://api.paymongo.com/v1"
DEFAULT_PAYMENT_METHODS = ("gcash",)
DEFAULT_CURRENCY = "PHP"


class PaymentProviderError(Exception):
    """Redirect payment provider rejected or could not be reached."""

    def __init__(self, message, *, details=None):
        self.details = details
        super().__init__(message)


def _paymongo_cfg() -> dict:
    payments = getattr(settings, "PAYMENTS", {}) or {}
    cfg = payments.get("PAYMONGO") if isinstance(payments, dict) else None
    return cfg if isinstance(cfg, dict) else {}


def _get_secret_key() -> str:
    sk = (_paymongo_cfg().get("SECRET_KEY") or "").strip()
    if not sk:
        raise PaymentProviderError(
            "PAYMONGO SECRET_KEY is not configured. "
            "Expected settings.PAYMENTS['PAYMONGO']['SECRET_KEY'] (env PAYMONGO_SECRET_KEY)."
        )
    return sk


def _payment_methods() -> list[str]:
    methods = _paymongo_cfg().get("PAYMENT_METHODS") or DEFAULT_PAYMENT_METHODS
    return [str(m).strip() for m in methods if str(m).strip()]


def _auth_header(secret_key: str) -> str:
    token = base64.b64encode(f"{secret_key}:".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _to_centavos(amount) -> int:
    try:
        pesos = Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError) as exc:
        raise PaymentProviderError("amount must be a valid Decimal") from exc
    centavos = (pesos * Decimal("100")).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    if centavos <= 0:
        raise PaymentProviderError("amount must be greater than zero")
    return int(centavos)


def _safe_preview(text: str, limit: int = 800) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + " ...(truncated)"


def _first_error_detail(body: dict) -> str:
    errors = body.get("errors") if isinstance(body, dict) else None
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        return str(errors[0].get("detail") or "")
    return ""


def _request_json(method: str, url: str, *, body: dict | None = None, timeout: int = 25) -> dict[str, Any]:
    data = None
    if body is not None:
        data = json.dumps(body, ensure_ascii=False).encode("utf-8")

    req = Request(
        url,
        data=data,
        headers={
            "Authorization": _auth_header(_get_secret_key()),
            "Content-Type": "application/json",
            "Accept": "application/json",
        },
        method=method,
    )

    try:
        with urlopen(req, timeout=timeout) as resp:
            raw = resp.read().decode("utf-8", errors="replace")
    except HTTPError as e:
        raw = e.read().decode("utf-8", errors="replace") if e.fp else ""
        try:
            parsed = json.loads(raw)
        except ValueError:
            raise PaymentProviderError(f"PayMongo HTTPError: {e.code} {_safe_preview(raw)}") from e
        detail = _first_error_detail(parsed) or "PayMongo request failed"
        raise PaymentProviderError(f"PayMongo HTTPError: {e.code} {detail}", details=parsed) from e
    except URLError as e:
        raise PaymentProviderError(f"PayMongo URLError: {e}") from e

    try:
        parsed = json.loads(raw)
    except ValueError as e:
        raise PaymentProviderError(f"PayMongo returned non-JSON: {_safe_preview(raw)}") from e

    if not isinstance(parsed, dict):
        raise PaymentProviderError("PayMongo returned an unexpected payload", details=parsed)
    return parsed


def create_checkout_session(
    *,
    amount,
    description: str,
    reference_number: str,
    success_url: str,
    cancel_url: str,
    payment_method_types: list[str] | None = None,
) -> dict:
    payload = {
        "data": {
            "type": "checkout_session",
            "attributes": {
                "line_items": [
                    {
                        "amount": _to_centavos(amount),
                        "currency": DEFAULT_CURRENCY,
                        "name": description or "Payment",
                        "quantity": 1,
                    }
                ],
                "payment_method_types": payment_method_types or _payment_methods(),
                "reference_number": str(reference_number).strip(),
                "success_url": success_url,
                "cancel_url": cancel_url,
            },
        }
    }

    parsed = _request_json("POST", f"{PAYMONGO_BASE}/checkout_sessions", body=payload)

    data = parsed.get("data") or {}
    checkout_url = (data.get("attributes") or {}).get("checkout_url")
    if not checkout_url:
        raise PaymentProviderError("PayMongo response has no checkout_url", details=parsed)

    return {"checkout_url": checkout_url, "session_id": data.get("id") or ""}


def _from_centavos(value) -> Decimal | None:
    try:
        return (Decimal(int(value)) / Decimal("100")).quantize(Decimal("0.01"))
    except (InvalidOperation, ValueError, TypeError):
        return None


def retrieve_checkout_session(*, session_id: str) -> dict:
    """
    Provider-side state of one checkout session.

    paid:   at least one payment with status "paid"
    amount: sum of the paid payments, in pesos (None when nothing was paid)
    """
    sid = str(session_id or "").strip()
    if not sid:
        raise PaymentProviderError("checkout session id is required")

    parsed = _request_json("GET", f"{PAYMONGO_BASE}/checkout_sessions/{sid}")
    attributes = (parsed.get("data") or {}).get("attributes") or {}

    paid = []
    for payment in attributes.get("payments") or []:
        p_attrs = (payment or {}).get("attributes") or {}
        if str(p_attrs.get("status") or "").lower() == "paid":
            paid.append(_from_centavos(p_attrs.get("amount")))

    amount = sum((a for a in paid if a is not None), Decimal("0.00")) if paid else None
    return {
        "session_id": sid,
        "paid": bool(paid),
        "amount": amount,
        "reference": attributes.get("reference_number") or "",
        "raw": parsed,
    }


class PayMongoGateway:
    """
    Redirect payment initiation and return verification.

    create_checkout(...)          -> {"checkoutUrl": "...", "sessionId": "..."}
    verify_checkout(session_id)   -> {"paid": bool, "amount": Decimal | None}
    """

    def create_checkout(
        self,
        *,
        amount,
        description: str,
        reference_number: str,
        success_url: str,
        cancel_url: str,
    ) -> dict:
        session = create_checkout_session(
            amount=amount,
            description=description,
            reference_number=reference_number,
            success_url=success_url,
            cancel_url=cancel_url,
        )
        logger.info(
            "PayMongo checkout created",
            extra={"reference": reference_number, "session_id": session["session_id"]},
        )
        return {"checkoutUrl": session["checkout_url"], "sessionId": session["session_id"]}

    def verify_checkout(self, session_id: str) -> dict:
        session = retrieve_checkout_session(session_id=session_id)
        logger.info(
            "PayMongo checkout verified",
            extra={"session_id": session_id, "paid": session["paid"], "amount": str(session["amount"])},
        )
        return {"paid": session["paid"], "amount": session["amount"]}
