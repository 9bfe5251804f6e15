# inventory/tests/test_valuation.py

from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from inventory.choices import StockStatus
from inventory.models import Product
from inventory.services.valuation import (
    classify,
    classify_quantity,
    low_stock_products,
    value_inventory,
)


def make_product(**overrides):
    fields = {
        "sku": "SKU-1",
        "name": "Widget",
        "product_type": "count",
        "base_unit": "pc",
        "quantity_per_unit": Decimal("1"),
        "quantity_in_stock": Decimal("20"),
        "cost_price": Decimal("2.50"),
        "selling_price": Decimal("4.00"),
        "low_stock_level": 10,
    }
    fields.update(overrides)
    return Product(**fields)


class ClassifierTests(SimpleTestCase):
    """
    GUARANTEES:
    - <= 0 display units is out of stock
    - below the threshold is low stock
    - at or above the threshold is in stock
    """

    def test_boundaries(self):
        self.assertEqual(classify_quantity(Decimal("0"), 10), StockStatus.OUT_OF_STOCK)
        self.assertEqual(classify_quantity(Decimal("-1"), 10), StockStatus.OUT_OF_STOCK)
        self.assertEqual(classify_quantity(Decimal("9.99"), 10), StockStatus.LOW_STOCK)
        self.assertEqual(classify_quantity(Decimal("10"), 10), StockStatus.IN_STOCK)

    def test_weight_product_compares_display_units(self):
        # 1000 g of 250 g packs = 4 packs
        coffee = make_product(
            product_type="weight",
            base_unit="g",
            quantity_per_unit=Decimal("250"),
            quantity_in_stock=Decimal("1000"),
        )
        self.assertEqual(classify(coffee), StockStatus.LOW_STOCK)
        self.assertEqual(coffee.stock_status, StockStatus.LOW_STOCK)

    def test_low_stock_products_sorted_lowest_first(self):
        a = make_product(sku="A", quantity_in_stock=Decimal("5"))
        b = make_product(sku="B", quantity_in_stock=Decimal("0"))
        c = make_product(sku="C", quantity_in_stock=Decimal("50"))

        self.assertEqual([p.sku for p in low_stock_products([a, b, c])], ["B", "A"])


class ValuationTests(SimpleTestCase):
    def setUp(self):
        self.widget = make_product()
        self.coffee = make_product(
            sku="COFFEE",
            name="Coffee",
            product_type="weight",
            base_unit="g",
            quantity_per_unit=Decimal("250"),
            quantity_in_stock=Decimal("1000"),
            cost_price=Decimal("100.00"),
            selling_price=Decimal("150.00"),
        )

    def test_values_at_cost_times_display_units(self):
        report = value_inventory([self.widget, self.coffee])

        values = {line.sku: line.value for line in report.lines}
        self.assertEqual(values["SKU-1"], Decimal("50.00"))
        self.assertEqual(values["COFFEE"], Decimal("400.00"))
        self.assertEqual(report.total_value, Decimal("450.00"))
        self.assertEqual(report.counts[StockStatus.IN_STOCK.value], 1)
        self.assertEqual(report.counts[StockStatus.LOW_STOCK.value], 1)
        self.assertEqual(report.counts[StockStatus.OUT_OF_STOCK.value], 0)
        self.assertFalse(report.flagged_total)

    def test_empty_inventory(self):
        report = value_inventory([])
        self.assertEqual(report.total_value, Decimal("0.00"))
        self.assertEqual(report.lines, [])

    @override_settings(INVENTORY_VALUE_WARNING_THRESHOLD="100")
    def test_implausible_values_are_flagged_not_raised(self):
        with self.assertLogs("inventory.services.valuation", level="WARNING") as logs:
            report = value_inventory([self.widget, self.coffee])

        self.assertEqual([line.sku for line in report.flagged_lines], ["COFFEE"])
        self.assertTrue(report.flagged_total)
        self.assertTrue(any("Implausible" in message for message in logs.output))
