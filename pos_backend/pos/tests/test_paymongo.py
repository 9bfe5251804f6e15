# pos/tests/test_paymongo.py

import base64
import io
import json
from decimal import Decimal
from unittest import mock
from urllib.error import HTTPError, URLError

from django.test import SimpleTestCase, override_settings

from pos.services.paymongo import PayMongoGateway, PaymentProviderError

PAYMENTS = {"PAYMONGO": {"SECRET_KEY": "sk_test_abc", "PAYMENT_METHODS": ["gcash"]}}


def _response(body):
    resp = mock.MagicMock()
    resp.read.return_value = json.dumps(body).encode("utf-8")
    cm = mock.MagicMock()
    cm.__enter__.return_value = resp
    return cm


@override_settings(PAYMENTS=PAYMENTS)
class PayMongoGatewayTests(SimpleTestCase):
    """
    GUARANTEES:
    - Amount is sent in centavos with HTTP Basic auth
    - Provider failures surface as PaymentProviderError
    - Verification sums only payments PayMongo reports as paid
    """

    def create(self, **overrides):
        kwargs = {
            "amount": Decimal("125.50"),
            "description": "Payment T-1-20240101000000-1111",
            "reference_number": "T-1-20240101000000-1111",
            "success_url": "https://pos.example/ok",
            "cancel_url": "https://pos.example/cancel",
        }
        kwargs.update(overrides)
        return PayMongoGateway().create_checkout(**kwargs)

    @mock.patch("pos.services.paymongo.urlopen")
    def test_create_checkout(self, urlopen):
        urlopen.return_value = _response(
            {"data": {"id": "cs_123", "attributes": {"checkout_url": "https://checkout.paymongo.com/cs_123"}}}
        )

        result = self.create()

        self.assertEqual(result, {"checkoutUrl": "https://checkout.paymongo.com/cs_123", "sessionId": "cs_123"})

        req = urlopen.call_args[0][0]
        self.assertEqual(req.full_url, "https://api.paymongo.com/v1/checkout_sessions")
        self.assertEqual(req.get_method(), "POST")
        expected_token = base64.b64encode(b"sk_test_abc:").decode("ascii")
        self.assertEqual(req.get_header("Authorization"), f"Basic {expected_token}")

        attributes = json.loads(req.data.decode("utf-8"))["data"]["attributes"]
        self.assertEqual(attributes["line_items"][0]["amount"], 12550)
        self.assertEqual(attributes["line_items"][0]["currency"], "PHP")
        self.assertEqual(attributes["reference_number"], "T-1-20240101000000-1111")
        self.assertEqual(attributes["payment_method_types"], ["gcash"])
        self.assertEqual(attributes["success_url"], "https://pos.example/ok")

    @mock.patch("pos.services.paymongo.urlopen")
    def test_http_error_detail(self, urlopen):
        urlopen.side_effect = HTTPError(
            "https://api.paymongo.com/v1/checkout_sessions",
            400,
            "Bad Request",
            {},
            io.BytesIO(json.dumps({"errors": [{"detail": "amount is below the minimum"}]}).encode("utf-8")),
        )

        with self.assertRaises(PaymentProviderError) as ctx:
            self.create()

        self.assertIn("amount is below the minimum", str(ctx.exception))
        self.assertEqual(ctx.exception.details["errors"][0]["detail"], "amount is below the minimum")

    @mock.patch("pos.services.paymongo.urlopen")
    def test_unreachable(self, urlopen):
        urlopen.side_effect = URLError("timed out")
        with self.assertRaises(PaymentProviderError):
            self.create()

    @mock.patch("pos.services.paymongo.urlopen")
    def test_missing_checkout_url(self, urlopen):
        urlopen.return_value = _response({"data": {"id": "cs_123", "attributes": {}}})
        with self.assertRaises(PaymentProviderError):
            self.create()

    @mock.patch("pos.services.paymongo.urlopen")
    def test_zero_amount_never_calls_provider(self, urlopen):
        with self.assertRaises(PaymentProviderError):
            self.create(amount=Decimal("0"))
        urlopen.assert_not_called()

    @override_settings(PAYMENTS={"PAYMONGO": {"SECRET_KEY": ""}})
    @mock.patch("pos.services.paymongo.urlopen")
    def test_missing_secret_key(self, urlopen):
        with self.assertRaises(PaymentProviderError):
            self.create()
        urlopen.assert_not_called()

    @mock.patch("pos.services.paymongo.urlopen")
    def test_verify_checkout_paid(self, urlopen):
        urlopen.return_value = _response(
            {
                "data": {
                    "id": "cs_123",
                    "attributes": {
                        "reference_number": "T-1-20240101000000-1111",
                        "payments": [
                            {"attributes": {"status": "failed", "amount": 12550}},
                            {"attributes": {"status": "paid", "amount": 12550}},
                        ],
                    },
                }
            }
        )

        result = PayMongoGateway().verify_checkout("cs_123")

        self.assertEqual(result, {"paid": True, "amount": Decimal("125.50")})
        req = urlopen.call_args[0][0]
        self.assertEqual(req.full_url, "https://api.paymongo.com/v1/checkout_sessions/cs_123")
        self.assertEqual(req.get_method(), "GET")

    @mock.patch("pos.services.paymongo.urlopen")
    def test_verify_checkout_unpaid(self, urlopen):
        urlopen.return_value = _response({"data": {"id": "cs_123", "attributes": {"payments": []}}})

        self.assertEqual(PayMongoGateway().verify_checkout("cs_123"), {"paid": False, "amount": None})

    @mock.patch("pos.services.paymongo.urlopen")
    def test_verify_checkout_needs_session_id(self, urlopen):
        with self.assertRaises(PaymentProviderError):
            PayMongoGateway().verify_checkout("")
        urlopen.assert_not_called()
