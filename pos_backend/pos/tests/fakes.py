# pos/tests/fakes.py

"""
In-memory gateways for checkout tests (same methods as the real services).
"""

from dataclasses import replace
from decimal import Decimal

from pos.services.paymongo import PaymentProviderError
from pos.services.pending_store import DuplicateReferenceError, PendingRecord
from sales.services.settlement import SettlementError


class FakeLedger:
    def __init__(self, error=None):
        self.payloads = []
        self.error = error
        self.settled = {}

    def submit(self, payload):
        self.payloads.append(payload)
        if self.error:
            raise SettlementError(self.error)
        n = len(self.payloads)
        response = {"transaction_number": f"TXN-{n}", "transaction_id": f"id-{n}"}
        self.settled[payload.get("reference")] = response
        return response

    def lookup(self, reference):
        return self.settled.get(reference)


class FakePendingStore:
    def __init__(self):
        self.records = {}
        self.errors = {}

    def put(self, *, reference, items, total, payment_type, discount=None):
        if reference in self.records:
            raise DuplicateReferenceError(reference)
        self.records[reference] = PendingRecord(
            reference=reference,
            items=list(items),
            total=total,
            payment_type=payment_type,
            discount=discount,
        )
        return self.records[reference]

    def get(self, reference):
        return self.records.get(reference)

    def attach_checkout_url(self, reference, checkout_url, session_id=""):
        record = self.records.get(reference)
        if record is not None:
            self.records[reference] = replace(record, provider_session_id=session_id)

    def claim(self, reference):
        record = self.records.get(reference)
        if record is None or record.is_claimed:
            return None
        self.records[reference] = replace(record, idempotency_key="claimed")
        return "claimed"

    def record_error(self, reference, message):
        self.errors[reference] = message

    def discard_unclaimed(self, reference):
        record = self.records.get(reference)
        if record is None or record.is_claimed:
            return False
        del self.records[reference]
        return True

    def delete(self, reference):
        return self.records.pop(reference, None) is not None


class FakePayments:
    def __init__(self, store=None, error=None, checkout_url="https://pay.example/cs_test_1", paid_amount=None):
        self.calls = []
        self.seen_pending = []
        self.verified = []
        self.store = store
        self.error = error
        self.checkout_url = checkout_url
        self.paid_amount = paid_amount

    def create_checkout(self, **kwargs):
        self.calls.append(kwargs)
        if self.store is not None:
            self.seen_pending.append(self.store.get(kwargs["reference_number"]))
        if self.error:
            raise PaymentProviderError(self.error)
        return {"checkoutUrl": self.checkout_url, "sessionId": f"cs_test_{len(self.calls)}"}

    def verify_checkout(self, session_id):
        self.verified.append(session_id)
        if self.paid_amount is None:
            return {"paid": False, "amount": None}
        return {"paid": True, "amount": Decimal(str(self.paid_amount))}
