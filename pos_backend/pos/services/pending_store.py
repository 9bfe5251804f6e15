# pos/services/pending_store.py

"""
======================================================
PATH: pos/services/pending_store.py
======================================================
PENDING SETTLEMENT STORE (DURABLE KEY-VALUE)

Purpose:
- put / get / claim / delete for the redirect payment path.

Rules:
- claim() is the idempotency guard: a single conditional UPDATE
  (... WHERE idempotency_key IS NULL). Row count 1 = this caller owns the
  settlement; 0 = someone already claimed it (or the record is gone).
- One record per reference, ever: put() never overwrites an existing row
  (a claimed guard or a recorded failure must survive).
- discard_unclaimed() is the cashier-side cancel: it only removes a record
  no callback has claimed yet.
- Nothing here submits settlement; see pos.services.checkout.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.utils import timezone

from pos.models import PendingSettlement


class DuplicateReferenceError(Exception):
    """A pending settlement already exists for this reference."""

    def __init__(self, reference: str):
        self.reference = reference
        super().__init__(f"A pending settlement already exists for reference {reference}")


@dataclass(frozen=True)
class PendingRecord:
    reference: str
    items: list = field(default_factory=list)
    total: Decimal = Decimal("0.00")
    payment_type: str = "gcash"
    discount: dict | None = None
    idempotency_key: str | None = None
    provider_session_id: str = ""
    last_error: str = ""

    @property
    def is_claimed(self) -> bool:
        return bool(self.idempotency_key)

    @classmethod
    def from_model(cls, row: PendingSettlement) -> "PendingRecord":
        return cls(
            reference=row.reference,
            items=list(row.items or []),
            total=row.total,
            payment_type=row.payment_type,
            discount=row.discount,
            idempotency_key=row.idempotency_key,
            provider_session_id=row.provider_session_id or "",
            last_error=row.last_error or "",
        )


def _json_items(items) -> list:
    return [
        {"product_id": str(i["product_id"]), "quantity": str(i["quantity"])}
        for i in (items or [])
    ]


class PendingSettlementStore:
    """Django-ORM backed; survives process restarts."""

    def put(self, *, reference: str, items, total, payment_type: str, discount: dict | None = None) -> PendingRecord:
        try:
            with transaction.atomic():
                row = PendingSettlement.objects.create(
                    reference=reference,
                    items=_json_items(items),
                    total=total,
                    payment_type=payment_type,
                    discount=discount,
                )
        except IntegrityError as exc:
            raise DuplicateReferenceError(reference) from exc
        return PendingRecord.from_model(row)

    def get(self, reference: str) -> PendingRecord | None:
        row = PendingSettlement.objects.filter(reference=reference).first()
        return PendingRecord.from_model(row) if row else None

    def attach_checkout_url(self, reference: str, checkout_url: str, session_id: str = "") -> None:
        PendingSettlement.objects.filter(reference=reference).update(
            checkout_url=checkout_url,
            provider_session_id=session_id or "",
        )

    def claim(self, reference: str) -> str | None:
        """Set the idempotency guard. Returns the key, or None when already claimed."""
        key = uuid.uuid4().hex
        updated = PendingSettlement.objects.filter(
            reference=reference,
            idempotency_key__isnull=True,
        ).update(idempotency_key=key, claimed_at=timezone.now())
        return key if updated == 1 else None

    def record_error(self, reference: str, message: str) -> None:
        PendingSettlement.objects.filter(reference=reference).update(last_error=str(message)[:2000])

    def discard_unclaimed(self, reference: str) -> bool:
        """Delete the record only while no callback has claimed it."""
        deleted, _ = PendingSettlement.objects.filter(
            reference=reference,
            idempotency_key__isnull=True,
        ).delete()
        return deleted > 0

    def delete(self, reference: str) -> bool:
        deleted, _ = PendingSettlement.objects.filter(reference=reference).delete()
        return deleted > 0
