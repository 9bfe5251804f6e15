# inventory/tests/test_products_api.py

import io
from decimal import Decimal

from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from inventory.models import Product


class ProductAPITests(TestCase):
    """
    GUARANTEES:
    - Stock is exposed in recorded AND display units
    - Scanner lookups and stock intake return the error envelope on failure
    - Bulk import reports partial success
    """

    def setUp(self):
        self.client = APIClient()
        self.oil = Product.objects.create(
            sku="OIL-1L",
            name="Cooking Oil 1L",
            category="Pantry",
            product_type="volume",
            base_unit="L",
            quantity_per_unit=Decimal("1"),
            quantity_in_stock=Decimal("5000"),
            cost_price=Decimal("85.00"),
            selling_price=Decimal("110.00"),
        )

    def test_list_includes_display_stock(self):
        res = self.client.get("/api/inventory/products/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)

        row = res.data["results"][0]
        self.assertEqual(row["display_quantity"], "5")
        self.assertEqual(row["display_unit"], "1L")
        self.assertEqual(row["stock_status"], "low_stock")

    def test_filter_by_product_type(self):
        Product.objects.create(sku="COLA", name="Cola", selling_price=Decimal("25.00"))

        res = self.client.get("/api/inventory/products/", {"product_type": "count"})
        self.assertEqual([r["sku"] for r in res.data["results"]], ["COLA"])

    def test_create_rejects_incompatible_unit(self):
        res = self.client.post(
            "/api/inventory/products/",
            {
                "sku": "rice",
                "name": "Rice",
                "product_type": "weight",
                "base_unit": "mL",
                "selling_price": "10.00",
            },
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_create_uppercases_sku(self):
        res = self.client.post(
            "/api/inventory/products/",
            {
                "sku": "rice-5kg",
                "name": "Rice",
                "product_type": "weight",
                "base_unit": "kg",
                "quantity_per_unit": "5",
                "selling_price": "310.00",
            },
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED)
        self.assertEqual(res.data["sku"], "RICE-5KG")

    def test_lookup_by_sku(self):
        res = self.client.get("/api/inventory/products/sku/oil-1l/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["product_id"], str(self.oil.id))

    def test_lookup_unknown_sku(self):
        res = self.client.get("/api/inventory/products/sku/NOPE/")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(res.data["error"]["code"], "SKU_NOT_FOUND")

    def test_add_stock(self):
        res = self.client.post(
            "/api/inventory/products/add-stock/",
            {"sku": "OIL-1L", "quantity": "2"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)

        self.oil.refresh_from_db()
        self.assertEqual(self.oil.quantity_in_stock, Decimal("7000"))

    def test_adjust_stock_negative_result(self):
        res = self.client.post(
            f"/api/inventory/products/{self.oil.id}/adjust-stock/",
            {"delta": "-6000"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"]["code"], "INVALID_ADJUSTMENT")

    def test_low_stock_report(self):
        res = self.client.get("/api/inventory/products/low-stock/")
        self.assertEqual([r["sku"] for r in res.data], ["OIL-1L"])

    def test_valuation_report(self):
        res = self.client.get("/api/inventory/products/valuation/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["total_value"], "425.00")
        self.assertEqual(res.data["counts"]["low_stock"], 1)

    def test_bulk_import_rows(self):
        res = self.client.post(
            "/api/inventory/products/bulk-import/",
            {
                "rows": [
                    ["name", "sold_by", "unit_size", "quantity", "cost_price", "selling_price", "sku"],
                    ["Cola", "piece", "1", "48", "18", "25", "COLA"],
                    ["Soy Sauce", "by volume", "500 mL", "6", "45", "32", "SOY"],
                ]
            },
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["success_count"], 1)
        self.assertEqual(res.data["errors"][0]["index"], 2)
        self.assertEqual(len(res.data["summary"]), 1)

    def test_bulk_import_csv_upload_missing_columns(self):
        upload = io.BytesIO(b"name,quantity\nCola,1\n")
        upload.name = "products.csv"

        res = self.client.post(
            "/api/inventory/products/bulk-import/",
            {"file": upload},
            format="multipart",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"]["code"], "MISSING_COLUMNS")
        self.assertIn("sold_by", res.data["error"]["missing"])
