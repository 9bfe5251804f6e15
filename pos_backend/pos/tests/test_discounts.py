# pos/tests/test_discounts.py

from decimal import Decimal
from types import SimpleNamespace

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase

from pos.services.discounts import Discount, DiscountKind, compute_total, discount_fields


class DiscountEngineTests(SimpleTestCase):
    """
    GUARANTEES:
    - Percentage in (0, 100], fixed > 0 (finite numbers only)
    - Totals never go negative
    - Money rounds half-up to 2dp
    """

    def test_no_discount_returns_subtotal(self):
        self.assertEqual(compute_total(Decimal("120.50"), None), Decimal("120.50"))

    def test_percentage(self):
        self.assertEqual(compute_total(Decimal("200.00"), Discount.percentage(10)), Decimal("180.00"))

    def test_hundred_percent_is_free(self):
        self.assertEqual(compute_total(Decimal("99.99"), Discount.percentage(100)), Decimal("0.00"))

    def test_fixed(self):
        self.assertEqual(compute_total(Decimal("200.00"), Discount.fixed("50")), Decimal("150.00"))

    def test_fixed_larger_than_subtotal_floors_at_zero(self):
        self.assertEqual(compute_total(Decimal("30.00"), Discount.fixed("50")), Decimal("0.00"))

    def test_rounding_half_up(self):
        # 10.05 * 0.5 = 5.025 -> 5.03
        self.assertEqual(compute_total(Decimal("10.05"), Discount.percentage(50)), Decimal("5.03"))

    def test_invalid_values_rejected(self):
        for build in (
            lambda: Discount.percentage(0),
            lambda: Discount.percentage("100.01"),
            lambda: Discount.percentage(-5),
            lambda: Discount.fixed(0),
            lambda: Discount.fixed("-1"),
            lambda: Discount.fixed("abc"),
            lambda: Discount("bogus", 5),
        ):
            with self.assertRaises(ValidationError):
                build()

    def test_non_finite_values_rejected(self):
        for raw in ("NaN", "sNaN", "Infinity", "-Infinity"):
            for build in (Discount.fixed, Discount.percentage):
                with self.subTest(raw=raw, kind=build.__name__):
                    with self.assertRaises(ValidationError):
                        build(raw)

    def test_non_finite_session_value_rejected(self):
        with self.assertRaises(ValidationError):
            Discount.from_dict({"kind": "fixed", "value": "Infinity"})

    def test_discount_fields_are_exclusive(self):
        self.assertEqual(discount_fields(None), {})
        self.assertEqual(discount_fields(Discount.percentage(15)), {"discount_percentage": Decimal("15")})
        self.assertEqual(discount_fields(Discount.fixed("20.00")), {"discount_amount": Decimal("20.00")})

    def test_session_dict_form(self):
        d = Discount.fixed("25.50")
        self.assertEqual(d.to_dict(), {"kind": "fixed", "value": "25.50"})
        self.assertEqual(Discount.from_dict(d.to_dict()), d)
        self.assertIsNone(Discount.from_dict(None))

    def test_from_preset(self):
        preset = SimpleNamespace(name="Senior", kind=DiscountKind.PERCENTAGE, value=Decimal("20"), is_active=True)
        self.assertEqual(Discount.from_preset(preset), Discount.percentage(20))

    def test_inactive_preset_rejected(self):
        preset = SimpleNamespace(name="Old promo", kind=DiscountKind.FIXED, value=Decimal("5"), is_active=False)
        with self.assertRaises(ValidationError):
            Discount.from_preset(preset)
