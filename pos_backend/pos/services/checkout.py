# pos/services/checkout.py

"""
======================================================
PATH: pos/services/checkout.py
======================================================
CHECKOUT / SETTLEMENT PROTOCOL

Purpose:
- Turn a finalized cart into ONE ledger submission.
- Three paths: cash (immediate), direct (card / bank transfer, immediate),
  redirect (e-wallet via the payment provider, settled on return).

Rules:
- Cash: money_received < total is rejected BEFORE anything is submitted.
- Redirect: the pending record is written BEFORE the provider is called.
  If the provider fails, the record is discarded.
- One reference per redirect attempt: cancel, failure and settlement all
  rotate the provisional number, so a reference is never written twice.
- Cashier cancel while a redirect is pending discards the record only if no
  callback has claimed it; a claimed sale cannot be cancelled.
- With PAYMENTS["PAYMONGO"]["VERIFY_RETURN"], a success return is checked
  against the provider (paid + amount) BEFORE the guard is claimed.
- finalize_redirect() claims the idempotency guard first; only the claimer
  submits. A second callback for the same reference is a logged no-op.
- Settlement failures are surfaced once, never retried. The cart stays intact.

State:
    idle -> payment_selected -> cash_confirm | redirect_pending | direct_settle
         -> settled -> idle (cart reset, fresh provisional number)
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from django.conf import settings
from django.db import models
from django.utils import timezone

from pos.services.cart_session import CartError, CartSession
from pos.services.discounts import Discount, discount_fields
from pos.services.paymongo import PaymentProviderError
from pos.services.pending_store import DuplicateReferenceError
from sales.services.settlement import SettlementError

logger = logging.getLogger(__name__)

TWOPLACES = Decimal("0.01")

CASH = "cash"
REDIRECT_PAYMENT_TYPES = ("gcash",)
DIRECT_PAYMENT_TYPES = ("card", "bank_transfer")
PAYMENT_TYPES = (CASH,) + REDIRECT_PAYMENT_TYPES + DIRECT_PAYMENT_TYPES


class CheckoutState(models.TextChoices):
    IDLE = "idle", "Idle"
    PAYMENT_SELECTED = "payment_selected", "Payment selected"
    CASH_CONFIRM = "cash_confirm", "Cash confirm"
    REDIRECT_PENDING = "redirect_pending", "Redirect pending"
    DIRECT_SETTLE = "direct_settle", "Direct settle"
    SETTLED = "settled", "Settled"


class RedirectOutcome(models.TextChoices):
    SETTLED = "settled", "Settled"
    ALREADY_PROCESSED = "already_processed", "Already processed"
    CANCELLED = "cancelled", "Cancelled"
    FAILED = "failed", "Failed"
    NOT_PAID = "not_paid", "Payment not confirmed"
    UNKNOWN = "unknown", "Unknown reference"


class CheckoutError(Exception):
    """Checkout step attempted out of order or with bad input."""


class PaymentValidationError(CheckoutError):
    pass


@dataclass(frozen=True)
class SettlementResult:
    transaction_number: str
    transaction_id: str
    total: Decimal
    payment_type: str = CASH
    change: Decimal | None = None

    def to_dict(self) -> dict:
        return {
            "transaction_number": self.transaction_number,
            "transaction_id": self.transaction_id,
            "total": str(self.total),
            "payment_type": self.payment_type,
            "change": str(self.change) if self.change is not None else None,
        }


@dataclass(frozen=True)
class RedirectResult:
    outcome: RedirectOutcome
    reference: str
    settlement: SettlementResult | None = None
    error: str = ""


def _money(v) -> Decimal:
    if v is None or v == "":
        return Decimal("0.00")
    return Decimal(str(v)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _settlement_from(response: dict, *, payment_type: str = "", total=None) -> SettlementResult:
    return SettlementResult(
        transaction_number=str(response["transaction_number"]),
        transaction_id=str(response["transaction_id"]),
        total=_money(response.get("total", total)),
        payment_type=str(response.get("payment_type") or payment_type),
    )


def generate_provisional_number(business_id=None, *, now=None) -> str:
    """Display-only receipt number; the ledger assigns the real one."""
    business_id = business_id if business_id not in (None, "") else getattr(settings, "BUSINESS_ID", "1")
    now = now or timezone.localtime()
    return f"T-{business_id}-{now:%Y%m%d%H%M%S}-{random.randint(1000, 9999)}"


def _default_ledger():
    from sales.services.settlement import LedgerService

    return LedgerService()


def _default_payments():
    from pos.services.paymongo import PayMongoGateway

    return PayMongoGateway()


def _default_pending_store():
    from pos.services.pending_store import PendingSettlementStore

    return PendingSettlementStore()


class CheckoutSession:
    """
    Drives one cart through payment and settlement.

    ledger:        submit(payload) -> {"transaction_number", "transaction_id", "total"}
    payments:      create_checkout(...) -> {"checkoutUrl", "sessionId"}
    pending_store: put / get / claim / discard_unclaimed / delete (see pending_store.py)
    """

    def __init__(
        self,
        cart: CartSession,
        *,
        ledger=None,
        payments=None,
        pending_store=None,
        business_id=None,
        provisional_number: str | None = None,
        state=CheckoutState.IDLE,
        payment_type: str | None = None,
    ):
        self.cart = cart
        self.ledger = ledger or _default_ledger()
        self.payments = payments or _default_payments()
        self.pending_store = pending_store or _default_pending_store()
        self.business_id = business_id
        self.provisional_number = provisional_number or generate_provisional_number(business_id)
        self.state = CheckoutState(state)
        self.payment_type = payment_type
        self.last_result: SettlementResult | None = None

    # -----------------------------
    # Payment selection
    # -----------------------------
    def select_payment(self, payment_type: str) -> str:
        value = str(payment_type or "").strip().lower()
        if value not in PAYMENT_TYPES:
            raise CheckoutError(f"Unsupported payment_type: {payment_type}")
        if self.cart.is_empty:
            raise CheckoutError("Cart is empty")
        if self.state == CheckoutState.REDIRECT_PENDING:
            raise CheckoutError("A redirect payment is already pending for this cart")

        self.payment_type = value
        self.state = CheckoutState.PAYMENT_SELECTED
        return value

    # -----------------------------
    # Immediate paths
    # -----------------------------
    def settle_cash(self, money_received) -> SettlementResult:
        if self.payment_type != CASH or self.state != CheckoutState.PAYMENT_SELECTED:
            self.select_payment(CASH)

        try:
            received = _money(money_received)
        except (InvalidOperation, ValueError, TypeError):
            raise PaymentValidationError("money_received must be a number")

        total = self.cart.total()
        if received < total:
            raise PaymentValidationError(f"Insufficient payment. Total: {total}, Received: {received}")

        self.state = CheckoutState.CASH_CONFIRM
        result = self._submit(CASH, money_received=received)
        return result

    def settle_direct(self, payment_type: str | None = None) -> SettlementResult:
        payment_type = payment_type or self.payment_type
        if payment_type not in DIRECT_PAYMENT_TYPES:
            raise CheckoutError(f"{payment_type} is not a direct payment type")

        if self.payment_type != payment_type or self.state != CheckoutState.PAYMENT_SELECTED:
            self.select_payment(payment_type)

        self.state = CheckoutState.DIRECT_SETTLE
        return self._submit(payment_type)

    def _payload(self, payment_type: str, **extra) -> dict:
        return {
            "items": self.cart.settlement_items(),
            "payment_type": payment_type,
            "reference": self.provisional_number,
            **discount_fields(self.cart.discount),
            **extra,
        }

    def _submit(self, payment_type: str, **extra) -> SettlementResult:
        try:
            self.cart.begin_checkout()
            payload = self._payload(payment_type, **extra)
        except CartError as exc:
            self._back_to_idle()
            raise CheckoutError(str(exc)) from exc

        total = self.cart.total()

        try:
            response = self.ledger.submit(payload)
        except SettlementError:
            self._back_to_idle()
            raise

        received = extra.get("money_received")
        result = SettlementResult(
            transaction_number=str(response["transaction_number"]),
            transaction_id=str(response["transaction_id"]),
            total=_money(response.get("total", total)),
            payment_type=payment_type,
            change=_money(received - _money(response.get("total", total))) if received is not None else None,
        )
        self._complete(result)
        return result

    def _back_to_idle(self):
        self.cart.abort_checkout()
        self.state = CheckoutState.IDLE
        self.payment_type = None

    def cancel(self):
        """
        Cashier abandons the sale: cart emptied, fresh provisional number.

        While a redirect payment is pending the pending record is discarded
        first; if a provider callback has already claimed it the sale is
        being settled and CheckoutError is raised with nothing changed.
        """
        if self.state == CheckoutState.REDIRECT_PENDING:
            self._discard_pending()

        self.cart.cancel()
        self._rotate_reference()

    def _discard_pending(self):
        reference = self.provisional_number
        if self.pending_store.discard_unclaimed(reference):
            logger.info("Redirect payment cancelled by cashier", extra={"reference": reference})
            return

        if self.pending_store.get(reference) is not None:
            raise CheckoutError(f"Payment for {reference} is already being settled; the sale cannot be cancelled")

        settled = self.ledger.lookup(reference)
        if settled:
            self._complete(_settlement_from(settled, payment_type=self.payment_type or ""))
            raise CheckoutError(f"Sale {reference} was already paid as {settled['transaction_number']}")

    def _rotate_reference(self):
        self.provisional_number = generate_provisional_number(self.business_id)
        self.state = CheckoutState.IDLE
        self.payment_type = None

    def _complete(self, result: SettlementResult):
        self.state = CheckoutState.SETTLED
        self.last_result = result
        self.cart.mark_settled()
        self.provisional_number = generate_provisional_number(self.business_id)
        self.payment_type = None
        self.state = CheckoutState.IDLE

    # -----------------------------
    # Redirect path
    # -----------------------------
    def begin_redirect(
        self,
        *,
        success_url: str,
        cancel_url: str,
        description: str = "POS payment",
        payment_type: str | None = None,
    ) -> str:
        payment_type = payment_type or self.payment_type or REDIRECT_PAYMENT_TYPES[0]
        if payment_type not in REDIRECT_PAYMENT_TYPES:
            raise CheckoutError(f"{payment_type} is not a redirect payment type")

        if self.payment_type != payment_type or self.state != CheckoutState.PAYMENT_SELECTED:
            self.select_payment(payment_type)

        try:
            self.cart.begin_checkout()
            items = self.cart.settlement_items()
        except CartError as exc:
            self._back_to_idle()
            raise CheckoutError(str(exc)) from exc

        reference = self.provisional_number
        total = self.cart.total()

        try:
            self.pending_store.put(
                reference=reference,
                items=items,
                total=total,
                payment_type=payment_type,
                discount=self.cart.discount.to_dict() if self.cart.discount else None,
            )
        except DuplicateReferenceError as exc:
            self._back_to_idle()
            self.provisional_number = generate_provisional_number(self.business_id)
            raise CheckoutError(str(exc)) from exc
        logger.info(
            "Redirect settlement pending",
            extra={"reference": reference, "total": str(total), "payment_type": payment_type},
        )

        try:
            response = self.payments.create_checkout(
                amount=total,
                description=description,
                reference_number=reference,
                success_url=success_url,
                cancel_url=cancel_url,
            )
            checkout_url = (response or {}).get("checkoutUrl")
            if not checkout_url:
                raise PaymentProviderError("Payment provider returned no checkout URL", details=response)
        except PaymentProviderError as exc:
            self.pending_store.delete(reference)
            self._back_to_idle()
            logger.error(
                "Redirect payment initiation failed",
                extra={"reference": reference, "error": str(exc)},
            )
            raise

        self.pending_store.attach_checkout_url(reference, checkout_url, session_id=response.get("sessionId") or "")

        self.state = CheckoutState.REDIRECT_PENDING
        return checkout_url

    def redirect_finished(self, result: RedirectResult):
        """
        Apply a finalize_redirect() outcome to this (restored) session.

        not_paid leaves the redirect pending. Every other outcome ends this
        reference: the cart is settled, or unlocked under a new number.
        """
        if result.reference != self.provisional_number:
            return
        if result.outcome == RedirectOutcome.NOT_PAID:
            return
        if result.outcome in (RedirectOutcome.SETTLED, RedirectOutcome.ALREADY_PROCESSED):
            if result.settlement is not None:
                self._complete(result.settlement)
            else:
                self.cart.mark_settled()
                self._rotate_reference()
        else:
            self.cart.abort_checkout()
            self._rotate_reference()

    # -----------------------------
    # Session persistence
    # -----------------------------
    def to_dict(self) -> dict:
        return {
            "state": str(self.state),
            "payment_type": self.payment_type,
            "provisional_number": self.provisional_number,
        }

    @classmethod
    def from_dict(cls, data: dict | None, cart: CartSession, **gateways) -> "CheckoutSession":
        data = data or {}
        return cls(
            cart,
            provisional_number=data.get("provisional_number"),
            state=data.get("state") or CheckoutState.IDLE,
            payment_type=data.get("payment_type"),
            **gateways,
        )


def _verify_returns(verify) -> bool:
    if verify is not None:
        return bool(verify)
    payments = getattr(settings, "PAYMENTS", {}) or {}
    return bool((payments.get("PAYMONGO") or {}).get("VERIFY_RETURN"))


def _unconfirmed_reason(record, payments) -> str:
    """Empty when the provider reports the checkout paid in full."""
    if not record.provider_session_id:
        return "No provider checkout session recorded for this reference"

    verified = payments.verify_checkout(record.provider_session_id)
    if not verified.get("paid"):
        return "Payment provider has not confirmed this payment"

    paid = verified.get("amount")
    if paid is None or _money(paid) != _money(record.total):
        return f"Paid amount mismatch. Expected: {_money(record.total)}, Paid: {paid}"
    return ""


def finalize_redirect(
    *,
    reference: str,
    status: str,
    ledger=None,
    pending_store=None,
    payments=None,
    verify: bool | None = None,
) -> RedirectResult:
    """
    Handle the provider's return (success or cancel) for one reference.

    Safe to call any number of times: only the caller that claims the
    idempotency guard submits settlement. verify (default: the
    VERIFY_RETURN setting) asks the provider before claiming; an
    unconfirmed payment is reported as not_paid and the record is kept.
    """
    ledger = ledger or _default_ledger()
    pending_store = pending_store or _default_pending_store()

    reference = str(reference or "").strip()
    status = str(status or "").strip().lower()

    if status in ("cancel", "cancelled", "canceled"):
        status = "cancel"
    elif status not in ("success", "paid"):
        raise CheckoutError(f"Unknown redirect status: {status or '(empty)'}")

    record = pending_store.get(reference) if reference else None
    if record is None:
        # Record is deleted on success; a late duplicate finds the transaction instead.
        settled = ledger.lookup(reference) if reference else None
        if settled:
            logger.info("Redirect already processed; ignoring duplicate callback", extra={"reference": reference})
            return RedirectResult(
                outcome=RedirectOutcome.ALREADY_PROCESSED,
                reference=reference,
                settlement=_settlement_from(settled),
            )
        logger.warning("Redirect return for unknown reference", extra={"reference": reference, "status": status})
        return RedirectResult(outcome=RedirectOutcome.UNKNOWN, reference=reference)

    if status == "cancel":
        if not pending_store.discard_unclaimed(reference):
            return RedirectResult(outcome=RedirectOutcome.ALREADY_PROCESSED, reference=reference)
        logger.info("Redirect payment cancelled", extra={"reference": reference})
        return RedirectResult(outcome=RedirectOutcome.CANCELLED, reference=reference)

    if record.is_claimed:
        logger.info("Redirect already processed; ignoring duplicate callback", extra={"reference": reference})
        return RedirectResult(outcome=RedirectOutcome.ALREADY_PROCESSED, reference=reference)

    if _verify_returns(verify):
        reason = _unconfirmed_reason(record, payments or _default_payments())
        if reason:
            logger.warning("Redirect return not confirmed by provider", extra={"reference": reference, "error": reason})
            return RedirectResult(outcome=RedirectOutcome.NOT_PAID, reference=reference, error=reason)

    key = pending_store.claim(reference)
    if key is None:
        logger.info("Redirect already processed; ignoring duplicate callback", extra={"reference": reference})
        return RedirectResult(outcome=RedirectOutcome.ALREADY_PROCESSED, reference=reference)

    payload = {
        "items": record.items,
        "payment_type": record.payment_type,
        "reference": reference,
        **discount_fields(Discount.from_dict(record.discount)),
    }

    try:
        response = ledger.submit(payload)
    except SettlementError as exc:
        if hasattr(pending_store, "record_error"):
            pending_store.record_error(reference, str(exc))
        logger.error(
            "Redirect settlement failed after payment",
            extra={"reference": reference, "idempotency_key": key, "error": str(exc)},
        )
        return RedirectResult(outcome=RedirectOutcome.FAILED, reference=reference, error=str(exc))

    pending_store.delete(reference)

    settlement = _settlement_from(response, payment_type=record.payment_type, total=record.total)
    logger.info(
        "Redirect settlement completed",
        extra={"reference": reference, "transaction_number": settlement.transaction_number},
    )
    return RedirectResult(outcome=RedirectOutcome.SETTLED, reference=reference, settlement=settlement)
