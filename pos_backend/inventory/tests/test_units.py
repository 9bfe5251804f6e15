# inventory/tests/test_units.py

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import SimpleTestCase

from inventory.choices import QuantityScale
from inventory.services.units import (
    format_quantity,
    recorded_unit,
    to_base,
    to_display,
    to_display_units,
    units_in_stock,
)


class ToDisplayTests(SimpleTestCase):
    """
    GUARANTEES:
    - Count products display as pieces, unchanged
    - Weight / volume products display in sellable units with a size label
    - kg / L stock (recorded in g / mL) is divided by 1000 first
    - Sub-unit amounts fall back to the raw recorded quantity
    """

    def test_count_is_identity(self):
        display = to_display(Decimal("12"), "count", Decimal("1"), "pc")
        self.assertEqual(display.quantity, Decimal("12"))
        self.assertEqual(display.unit, "piece")

    def test_weight_divides_by_pack_size(self):
        display = to_display(Decimal("500"), "weight", Decimal("250"), "g")
        self.assertEqual(display.quantity, Decimal("2"))
        self.assertEqual(display.unit, "250g")

    def test_kilogram_stock_is_recorded_in_grams(self):
        display = to_display(Decimal("10000"), "weight", Decimal("5"), "kg")
        self.assertEqual(display.quantity, Decimal("2"))
        self.assertEqual(display.unit, "5kg")

    def test_litre_stock_is_recorded_in_millilitres(self):
        display = to_display(Decimal("3000"), "volume", Decimal("1"), "L")
        self.assertEqual(display.quantity, Decimal("3"))
        self.assertEqual(display.unit, "1L")

    def test_less_than_one_unit_shows_recorded_amount(self):
        display = to_display(Decimal("100"), "weight", Decimal("250"), "g")
        self.assertEqual(display.quantity, Decimal("100"))
        self.assertEqual(display.unit, "g")

    def test_less_than_one_large_unit_shows_small_unit(self):
        display = to_display(Decimal("500"), "volume", Decimal("1"), "L")
        self.assertEqual(display.quantity, Decimal("500"))
        self.assertEqual(display.unit, "mL")

    def test_non_positive_pack_size_is_treated_as_one(self):
        display = to_display(Decimal("3"), "volume", Decimal("0"), "mL")
        self.assertEqual(display.quantity, Decimal("3"))
        self.assertEqual(display.unit, "1mL")

        display = to_display(Decimal("3"), "volume", Decimal("-5"), "mL")
        self.assertEqual(display.quantity, Decimal("3"))

    def test_unknown_product_type_is_rejected(self):
        with self.assertRaises(ValidationError):
            to_display(Decimal("3"), "bundle", Decimal("1"), "pc")


class ToBaseTests(SimpleTestCase):
    def test_display_scale_multiplies_by_pack_size(self):
        self.assertEqual(to_base(Decimal("2"), "weight", Decimal("250"), "g"), Decimal("500"))

    def test_display_scale_for_large_units(self):
        self.assertEqual(to_base(Decimal("2"), "volume", Decimal("1"), "L"), Decimal("2000"))
        self.assertEqual(to_base(Decimal("0.5"), "weight", Decimal("5"), "kg"), Decimal("2500"))

    def test_base_scale_is_returned_unchanged(self):
        result = to_base(Decimal("750"), "weight", Decimal("250"), "g", scale=QuantityScale.BASE)
        self.assertEqual(result, Decimal("750"))

    def test_count_is_identity_for_either_scale(self):
        self.assertEqual(to_base(Decimal("7"), "count", Decimal("1"), "pc"), Decimal("7"))
        self.assertEqual(
            to_base(Decimal("7"), "count", Decimal("1"), "pc", scale=QuantityScale.BASE),
            Decimal("7"),
        )

    def test_large_number_is_not_mistaken_for_base_scale(self):
        # 600 sellable packs stays 600 packs, whatever its magnitude.
        self.assertEqual(to_base(Decimal("600"), "weight", Decimal("250"), "g"), Decimal("150000"))

    def test_round_trip_through_display(self):
        base = to_base(Decimal("3"), "weight", Decimal("250"), "g")
        self.assertEqual(to_display(base, "weight", Decimal("250"), "g").quantity, Decimal("3"))

    def test_missing_quantity_is_rejected(self):
        with self.assertRaises(ValidationError):
            to_base(None, "weight", Decimal("250"), "g")


class HelperTests(SimpleTestCase):
    def test_units_in_stock_has_no_fallback(self):
        self.assertEqual(units_in_stock(Decimal("100"), "weight", Decimal("250"), "g"), Decimal("0.4"))

    def test_to_display_units_converts_base_scale(self):
        self.assertEqual(
            to_display_units(Decimal("500"), "weight", Decimal("250"), "g", scale=QuantityScale.BASE),
            Decimal("2"),
        )
        self.assertEqual(
            to_display_units(Decimal("2"), "weight", Decimal("250"), "g"),
            Decimal("2"),
        )

    def test_recorded_unit(self):
        self.assertEqual(recorded_unit("kg"), "g")
        self.assertEqual(recorded_unit("L"), "mL")
        self.assertEqual(recorded_unit("g"), "g")

    def test_format_quantity_strips_trailing_zeros(self):
        self.assertEqual(format_quantity(Decimal("250.000")), "250")
        self.assertEqual(format_quantity(Decimal("0.250")), "0.25")
        self.assertEqual(format_quantity(Decimal("1000")), "1000")
