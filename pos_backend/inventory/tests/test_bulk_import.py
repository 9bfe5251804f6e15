# inventory/tests/test_bulk_import.py

import io
from decimal import Decimal

import openpyxl
from django.core.exceptions import ValidationError
from django.test import SimpleTestCase, TestCase

from inventory.models import Product
from inventory.services.bulk_import import (
    BulkImportError,
    ImportRow,
    MissingColumnsError,
    RowError,
    import_products,
    normalize_header,
    normalize_sold_by,
    parse_table,
    parse_unit_size,
    read_csv,
    read_xlsx,
    summarize_errors,
    validate_row,
)

HEADER = ["Name", "Sold By", "Unit Size", "Quantity", "Cost Price", "Selling Price", "SKU"]


class NormalizerTests(SimpleTestCase):
    def test_headers_match_case_and_separators(self):
        self.assertEqual(normalize_header("Selling Price"), "selling_price")
        self.assertEqual(normalize_header("sold-by"), "sold_by")
        self.assertEqual(normalize_header(" QTY "), "quantity")

    def test_sold_by_synonyms(self):
        self.assertEqual(normalize_sold_by("Per Piece"), "per_piece")
        self.assertEqual(normalize_sold_by("kg"), "by_weight")
        self.assertEqual(normalize_sold_by("Litre"), "by_volume")
        with self.assertRaises(ValidationError):
            normalize_sold_by("by the crate")

    def test_unit_size_split(self):
        self.assertEqual(parse_unit_size("1 L"), (Decimal("1"), "L"))
        self.assertEqual(parse_unit_size("250g"), (Decimal("250"), "g"))
        self.assertEqual(parse_unit_size("500"), (Decimal("500"), None))
        with self.assertRaises(ValidationError):
            parse_unit_size("1 bushel")


class ParseTableTests(SimpleTestCase):
    """
    GUARANTEES:
    - every missing required column is reported in one error
    - blank rows are skipped without consuming an error
    - row indices are 1-based data-row positions
    """

    def test_missing_columns_listed_together(self):
        with self.assertRaises(MissingColumnsError) as ctx:
            parse_table([["name", "quantity", "cost_price"]])

        self.assertEqual(ctx.exception.missing, ["sold_by", "unit_size", "selling_price"])
        self.assertEqual(
            str(ctx.exception),
            "Missing required columns: sold_by, unit_size, selling_price",
        )

    def test_blank_rows_skipped_and_mismatch_reported(self):
        table = parse_table(
            [
                HEADER,
                ["Cola", "piece", "1", "10", "10", "15", "COLA"],
                ["", "", "", "", "", "", ""],
                ["Broken", "piece", "1"],
            ]
        )

        self.assertEqual([row.index for row in table.rows], [1])
        self.assertEqual(len(table.errors), 1)
        self.assertEqual(table.errors[0].index, 3)


class ValidateRowTests(SimpleTestCase):
    def row(self, **values):
        base = {
            "name": "Cooking Oil",
            "sold_by": "by volume",
            "unit_size": "1 L",
            "quantity": "24",
            "cost_price": "85",
            "selling_price": "110",
            "sku": "oil-1l",
        }
        base.update(values)
        return ImportRow(index=1, values=base)

    def test_volume_row_converts_stock_to_millilitres(self):
        payload = validate_row(self.row())

        self.assertEqual(payload["sku"], "OIL-1L")
        self.assertEqual(payload["product_type"], "volume")
        self.assertEqual(payload["base_unit"], "L")
        self.assertEqual(payload["quantity_per_unit"], Decimal("1"))
        self.assertEqual(payload["quantity_in_stock"], Decimal("24000"))
        self.assertEqual(payload["low_stock_level"], 10)

    def test_count_row_forces_single_piece(self):
        payload = validate_row(self.row(sold_by="each", unit_size="", quantity="12"))
        self.assertEqual(payload["product_type"], "count")
        self.assertEqual(payload["base_unit"], "pc")
        self.assertEqual(payload["quantity_in_stock"], Decimal("12"))

    def test_selling_below_cost_rejected(self):
        with self.assertRaises(ValidationError):
            validate_row(self.row(selling_price="80"))

    def test_zero_quantity_rejected(self):
        with self.assertRaises(ValidationError):
            validate_row(self.row(quantity="0"))

    def test_unit_incompatible_with_sold_by_rejected(self):
        with self.assertRaises(ValidationError):
            validate_row(self.row(unit_size="500 g"))

    def test_money_formatting_is_accepted(self):
        payload = validate_row(self.row(cost_price="₱1,085.00", selling_price=" PHP 1,250.50 "))
        self.assertEqual(payload["cost_price"], Decimal("1085.00"))
        self.assertEqual(payload["selling_price"], Decimal("1250.50"))

    def test_exponent_notation_keeps_its_value(self):
        payload = validate_row(self.row(sold_by="each", unit_size="", quantity="1e3", selling_price="1E+03"))
        self.assertEqual(payload["quantity_in_stock"], Decimal("1000"))
        self.assertEqual(payload["selling_price"], Decimal("1000"))

    def test_numeric_cells_from_xlsx(self):
        payload = validate_row(self.row(quantity=24, cost_price=85.5, selling_price=110))
        self.assertEqual(payload["quantity_in_stock"], Decimal("24000"))
        self.assertEqual(payload["cost_price"], Decimal("85.5"))

    def test_non_numeric_values_rejected(self):
        for bad in ("abc", "12abc", "1.2.3", "NaN", "Infinity", "-inf", "1,2"):
            with self.subTest(value=bad):
                with self.assertRaises(ValidationError):
                    validate_row(self.row(cost_price=bad))

    def test_blank_sku_is_generated(self):
        payload = validate_row(self.row(sku=""))
        self.assertTrue(payload["sku"].startswith("SKU-"))
        self.assertTrue(payload["sku"].endswith("-1"))


class ReaderTests(SimpleTestCase):
    def test_read_csv_sniffs_semicolons(self):
        raw = read_csv(io.BytesIO(b"name;sold_by\nCola;piece\n"))
        self.assertEqual(raw, [["name", "sold_by"], ["Cola", "piece"]])

    def test_read_xlsx(self):
        workbook = openpyxl.Workbook()
        sheet = workbook.active
        sheet.append(["name", "quantity"])
        sheet.append(["Cola", 12])
        buffer = io.BytesIO()
        workbook.save(buffer)
        buffer.seek(0)

        self.assertEqual(read_xlsx(buffer), [["name", "quantity"], ["Cola", "12"]])


class SummaryTests(SimpleTestCase):
    def test_caps_at_limit(self):
        errors = [RowError(i, "bad") for i in range(1, 8)]
        lines = summarize_errors(errors, limit=5)

        self.assertEqual(len(lines), 6)
        self.assertEqual(lines[0], "Row 1: bad")
        self.assertEqual(lines[-1], "+2 more")


class ImportProductsTests(TestCase):
    def test_partial_success_reports_failed_rows(self):
        result = import_products(
            [
                HEADER,
                ["Cola", "piece", "1", "48", "18", "25", "COLA"],
                ["Coffee", "by weight", "250g", "0", "120", "165", "COFFEE"],
                ["Rice", "by weight", "5 kg", "12", "250", "310", "RICE"],
            ]
        )

        self.assertEqual(result.success_count, 2)
        self.assertEqual([e.index for e in result.errors], [2])
        self.assertEqual(Product.objects.count(), 2)
        self.assertEqual(Product.objects.get(sku="RICE").quantity_in_stock, Decimal("60000"))

    def test_catalog_duplicates_map_back_to_source_rows(self):
        Product.objects.create(
            sku="COLA",
            name="Existing Cola",
            selling_price=Decimal("20.00"),
        )

        result = import_products(
            [
                HEADER,
                ["Bad", "piece", "1", "-1", "1", "2", "BAD"],
                ["Cola", "piece", "1", "48", "18", "25", "cola"],
                ["Bread", "piece", "1", "10", "45", "60", "BREAD"],
            ]
        )

        self.assertEqual(result.success_count, 1)
        self.assertEqual([e.index for e in result.errors], [1, 2])
        self.assertIn("already exists", result.errors[1].error)
        self.assertEqual(result.created[0]["index"], 3)

    def test_zero_valid_rows_raises(self):
        with self.assertRaises(BulkImportError) as ctx:
            import_products([HEADER, ["", "piece", "1", "1", "1", "2", "X"]])

        self.assertEqual(len(ctx.exception.errors), 1)
        self.assertFalse(Product.objects.exists())

    def test_missing_columns_imports_nothing(self):
        with self.assertRaises(MissingColumnsError):
            import_products([["name", "quantity"], ["Cola", "1"]])
        self.assertFalse(Product.objects.exists())
