# pos/tests/test_redirect_settlement.py

from decimal import Decimal

from django.test import TestCase

from inventory.models import Product
from inventory.services.catalog import CatalogService
from pos.models import PendingSettlement
from pos.services.cart_session import CartSession
from pos.services.checkout import CheckoutError, CheckoutSession, CheckoutState, RedirectOutcome, finalize_redirect
from pos.services.pending_store import DuplicateReferenceError, PendingSettlementStore
from pos.tests.fakes import FakePayments
from sales.models import Transaction
from sales.services.settlement import LedgerService


class PendingSettlementStoreTests(TestCase):
    """
    GUARANTEES:
    - claim() succeeds exactly once per record
    - put() never rewrites an existing reference (claim and last_error survive)
    - discard_unclaimed() only removes a record no callback has claimed
    """

    def setUp(self):
        self.store = PendingSettlementStore()
        self.store.put(
            reference="T-1-20240101000000-4321",
            items=[{"product_id": "a1b2", "quantity": Decimal("1.5")}],
            total=Decimal("247.50"),
            payment_type="gcash",
            discount={"kind": "percentage", "value": "10"},
        )

    def test_round_trip(self):
        record = self.store.get("T-1-20240101000000-4321")

        self.assertEqual(record.items, [{"product_id": "a1b2", "quantity": "1.5"}])
        self.assertEqual(record.total, Decimal("247.50"))
        self.assertEqual(record.discount, {"kind": "percentage", "value": "10"})
        self.assertFalse(record.is_claimed)

    def test_claim_once(self):
        first = self.store.claim("T-1-20240101000000-4321")
        second = self.store.claim("T-1-20240101000000-4321")

        self.assertIsNotNone(first)
        self.assertIsNone(second)
        self.assertEqual(self.store.get("T-1-20240101000000-4321").idempotency_key, first)

    def test_claim_missing_reference(self):
        self.assertIsNone(self.store.claim("T-1-missing"))

    def test_put_never_overwrites_a_reference(self):
        key = self.store.claim("T-1-20240101000000-4321")
        self.store.record_error("T-1-20240101000000-4321", "Insufficient stock for Rice 1kg")

        with self.assertRaises(DuplicateReferenceError):
            self.store.put(
                reference="T-1-20240101000000-4321",
                items=[],
                total=Decimal("1.00"),
                payment_type="gcash",
            )

        record = self.store.get("T-1-20240101000000-4321")
        self.assertEqual(record.idempotency_key, key)
        self.assertEqual(record.total, Decimal("247.50"))
        self.assertEqual(record.last_error, "Insufficient stock for Rice 1kg")

    def test_discard_unclaimed(self):
        self.store.claim("T-1-20240101000000-4321")
        self.assertFalse(self.store.discard_unclaimed("T-1-20240101000000-4321"))
        self.assertIsNotNone(self.store.get("T-1-20240101000000-4321"))

        self.store.put(reference="T-1-20240101000000-8765", items=[], total=Decimal("1.00"), payment_type="gcash")
        self.assertTrue(self.store.discard_unclaimed("T-1-20240101000000-8765"))
        self.assertIsNone(self.store.get("T-1-20240101000000-8765"))
        self.assertFalse(self.store.discard_unclaimed("T-1-20240101000000-8765"))

    def test_checkout_session_id_recorded(self):
        self.store.attach_checkout_url("T-1-20240101000000-4321", "https://pay.example/cs_7", session_id="cs_7")

        row = PendingSettlement.objects.get(reference="T-1-20240101000000-4321")
        self.assertEqual(row.checkout_url, "https://pay.example/cs_7")
        self.assertEqual(self.store.get("T-1-20240101000000-4321").provider_session_id, "cs_7")

    def test_delete(self):
        self.assertTrue(self.store.delete("T-1-20240101000000-4321"))
        self.assertFalse(self.store.delete("T-1-20240101000000-4321"))
        self.assertIsNone(self.store.get("T-1-20240101000000-4321"))


class RedirectSettlementTests(TestCase):
    """
    End-to-end redirect path against the real ledger.

    GUARANTEES:
    - Pending record survives until the provider returns
    - Duplicate success callbacks settle (and decrement stock) once
    - A stale snapshot fails once; nothing is resubmitted
    - Cashier cancel retires the reference: a late success settles nothing
    - A claimed sale cannot be cancelled at the till
    """

    def setUp(self):
        self.rice = Product.objects.create(
            sku="RICE-1KG",
            name="Rice 1kg",
            product_type="weight",
            base_unit="kg",
            quantity_per_unit=Decimal("1"),
            quantity_in_stock=Decimal("5000"),
            cost_price=Decimal("45.00"),
            selling_price=Decimal("58.00"),
        )
        self.cart = CartSession(CatalogService())
        self.store = PendingSettlementStore()
        self.ledger = LedgerService()
        self.checkout = CheckoutSession(
            self.cart,
            ledger=self.ledger,
            payments=FakePayments(store=self.store),
            pending_store=self.store,
            business_id=1,
        )

    def start_redirect(self, qty="2"):
        self.cart.add_by_sku("RICE-1KG", qty)
        reference = self.checkout.provisional_number
        url = self.checkout.begin_redirect(
            success_url="https://pos.example/ok",
            cancel_url="https://pos.example/cancel",
        )
        return reference, url

    def finalize(self, reference, status="success"):
        return finalize_redirect(
            reference=reference,
            status=status,
            ledger=self.ledger,
            pending_store=self.store,
        )

    def test_pending_record_written(self):
        reference, url = self.start_redirect()

        row = PendingSettlement.objects.get(reference=reference)
        self.assertEqual(row.total, Decimal("116.00"))
        self.assertEqual(row.checkout_url, url)
        self.assertIsNone(row.idempotency_key)

    def test_duplicate_success_settles_once(self):
        reference, _ = self.start_redirect()

        first = self.finalize(reference)
        second = self.finalize(reference)

        self.assertEqual(first.outcome, RedirectOutcome.SETTLED)
        self.assertEqual(second.outcome, RedirectOutcome.ALREADY_PROCESSED)
        self.assertEqual(second.settlement.transaction_number, first.settlement.transaction_number)

        self.assertEqual(Transaction.objects.filter(reference=reference).count(), 1)
        self.assertFalse(PendingSettlement.objects.filter(reference=reference).exists())

        self.rice.refresh_from_db()
        self.assertEqual(self.rice.quantity_in_stock, Decimal("3000"))

        txn = Transaction.objects.get(reference=reference)
        self.assertEqual(txn.payment_type, "gcash")
        self.assertIsNone(txn.money_received)

    def test_cancel(self):
        reference, _ = self.start_redirect()

        result = self.finalize(reference, status="cancel")

        self.assertEqual(result.outcome, RedirectOutcome.CANCELLED)
        self.assertFalse(PendingSettlement.objects.exists())
        self.assertFalse(Transaction.objects.exists())

    def test_stock_sold_elsewhere_while_paying(self):
        reference, _ = self.start_redirect(qty="3")
        Product.objects.filter(id=self.rice.id).update(quantity_in_stock=Decimal("1000"))

        first = self.finalize(reference)
        second = self.finalize(reference)

        self.assertEqual(first.outcome, RedirectOutcome.FAILED)
        self.assertIn("Insufficient stock for Rice 1kg", first.error)
        self.assertEqual(second.outcome, RedirectOutcome.ALREADY_PROCESSED)
        self.assertFalse(Transaction.objects.exists())

        row = PendingSettlement.objects.get(reference=reference)
        self.assertTrue(row.is_claimed)
        self.assertIn("Insufficient stock", row.last_error)

        self.rice.refresh_from_db()
        self.assertEqual(self.rice.quantity_in_stock, Decimal("1000"))

    def test_cashier_cancel_then_late_success(self):
        reference, _ = self.start_redirect()

        self.checkout.cancel()
        late = self.finalize(reference)

        self.assertEqual(late.outcome, RedirectOutcome.UNKNOWN)
        self.assertNotEqual(self.checkout.provisional_number, reference)
        self.assertFalse(PendingSettlement.objects.exists())
        self.assertFalse(Transaction.objects.exists())

        self.rice.refresh_from_db()
        self.assertEqual(self.rice.quantity_in_stock, Decimal("5000"))

    def test_cashier_cancel_refused_once_claimed(self):
        reference, _ = self.start_redirect()
        key = self.store.claim(reference)

        with self.assertRaises(CheckoutError):
            self.checkout.cancel()

        self.assertEqual(self.checkout.state, CheckoutState.REDIRECT_PENDING)
        self.assertEqual(self.checkout.provisional_number, reference)
        self.assertEqual(PendingSettlement.objects.get(reference=reference).idempotency_key, key)
        self.assertIsNone(self.store.claim(reference))

    def test_retry_after_failure_uses_new_reference(self):
        reference, _ = self.start_redirect(qty="3")
        Product.objects.filter(id=self.rice.id).update(quantity_in_stock=Decimal("1000"))

        self.checkout.redirect_finished(self.finalize(reference))
        self.cart.edit_quantity(0, "1")
        retry = self.checkout.provisional_number
        self.checkout.begin_redirect(
            success_url="https://pos.example/ok",
            cancel_url="https://pos.example/cancel",
        )

        self.assertNotEqual(retry, reference)
        self.assertIn("Insufficient stock", PendingSettlement.objects.get(reference=reference).last_error)
        self.assertEqual(self.finalize(retry).outcome, RedirectOutcome.SETTLED)
        self.assertEqual(self.finalize(reference).outcome, RedirectOutcome.ALREADY_PROCESSED)

        self.rice.refresh_from_db()
        self.assertEqual(self.rice.quantity_in_stock, Decimal("0"))
