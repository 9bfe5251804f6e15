# inventory/views/product.py

"""
PRODUCT VIEWSET

Purpose:
- Staff catalog management (CRUD)
- SKU lookup used by the POS scanner
- Low-stock + valuation reports
- Bulk import (CSV / XLSX upload or JSON rows)
- Stock intake (by SKU) and manual stock adjustment

Rules:
- All stock math goes through inventory.services (never in the view).
- Domain errors leave the API in the {"error": {...}} envelope.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from backend.errors import error_response
from inventory.models import Product
from inventory.serializers import (
    BulkImportInputSerializer,
    ProductSerializer,
    StockAdjustmentInputSerializer,
    StockQuantityInputSerializer,
    ValuationLineSerializer,
)
from inventory.services.bulk_import import (
    BulkImportError,
    MissingColumnsError,
    import_products,
    read_table,
    summarize_errors,
)
from inventory.services.catalog import CatalogService, product_payload
from inventory.services.exceptions import NotFoundError
from inventory.services.valuation import low_stock_products, value_inventory

logger = logging.getLogger(__name__)


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(exc.messages)


class ProductViewSet(viewsets.ModelViewSet):
    """
    Product endpoints.

    - CRUD
    - GET  /products/sku/<sku>/
    - GET  /products/low-stock/
    - GET  /products/valuation/
    - POST /products/bulk-import/
    - POST /products/add-stock/
    - POST /products/<id>/adjust-stock/
    """

    serializer_class = ProductSerializer
    queryset = Product.objects.all()
    parser_classes = [JSONParser, MultiPartParser, FormParser]
    filter_backends = [
        DjangoFilterBackend,
        filters.SearchFilter,
        filters.OrderingFilter,
    ]
    search_fields = ["name", "sku", "category"]
    ordering_fields = ["name", "sku", "created_at", "quantity_in_stock"]
    filterset_fields = ["category", "product_type", "is_active"]

    catalog_class = CatalogService

    def get_catalog(self):
        return self.catalog_class()

    # -----------------------------
    # SKU lookup (scanner)
    # -----------------------------
    @extend_schema(
        responses={
            200: OpenApiResponse(description="Catalog snapshot for the SKU"),
            404: OpenApiResponse(description="SKU not found"),
        },
        description="Look up an active product by SKU (case-insensitive).",
    )
    @action(detail=False, methods=["get"], url_path=r"sku/(?P<sku>[^/]+)")
    def by_sku(self, request, sku=None):
        try:
            snapshot = self.get_catalog().lookup_by_sku(sku)
        except NotFoundError as exc:
            return error_response(code="SKU_NOT_FOUND", message=str(exc), http_status=status.HTTP_404_NOT_FOUND)

        product = Product.objects.get(id=snapshot.product_id)
        return Response(
            {**product_payload(product), **ProductSerializer(product).data},
            status=status.HTTP_200_OK,
        )

    # -----------------------------
    # Reports
    # -----------------------------
    @extend_schema(
        responses={200: ProductSerializer(many=True)},
        description="Products at or below their low-stock level (lowest stock first).",
    )
    @action(detail=False, methods=["get"], url_path="low-stock")
    def low_stock(self, request):
        products = low_stock_products(self.get_catalog().snapshot())
        return Response(ProductSerializer(products, many=True).data)

    @extend_schema(
        responses={200: OpenApiResponse(description="Inventory valuation at cost")},
        description="Value every active product at cost and count stock statuses.",
    )
    @action(detail=False, methods=["get"], url_path="valuation")
    def valuation(self, request):
        report = value_inventory(self.get_catalog().snapshot())
        return Response(
            {
                "total_value": str(report.total_value),
                "counts": report.counts,
                "flagged_total": report.flagged_total,
                "flagged_count": len(report.flagged_lines),
                "lines": ValuationLineSerializer(report.lines, many=True).data,
            }
        )

    # -----------------------------
    # Bulk import
    # -----------------------------
    @extend_schema(
        request=BulkImportInputSerializer,
        responses={
            200: OpenApiResponse(description="Import result (success_count, errors, summary)"),
            400: OpenApiResponse(description="Missing columns / no valid rows / bad file"),
        },
        description="Import products from a CSV / XLSX file or a JSON table.",
    )
    @action(detail=False, methods=["post"], url_path="bulk-import")
    def bulk_import(self, request):
        s = BulkImportInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            raw = read_table(data["file"]) if data.get("file") else data["rows"]
            result = import_products(raw, catalog=self.get_catalog())
        except MissingColumnsError as exc:
            return error_response(
                code="MISSING_COLUMNS",
                message=str(exc),
                http_status=status.HTTP_400_BAD_REQUEST,
                missing=exc.missing,
            )
        except BulkImportError as exc:
            return error_response(
                code="NO_VALID_ROWS",
                message=str(exc),
                http_status=status.HTTP_400_BAD_REQUEST,
                errors=[e.to_dict() for e in exc.errors],
                summary=summarize_errors(exc.errors),
            )
        except ValidationError as exc:
            return error_response(
                code="INVALID_FILE",
                message=_validation_message(exc),
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(result.to_dict(), status=status.HTTP_200_OK)

    # -----------------------------
    # Stock intake / adjustment
    # -----------------------------
    @extend_schema(
        request=StockQuantityInputSerializer,
        responses={200: ProductSerializer},
        description="Add stock to a product by SKU. Quantity scale defaults to display units.",
    )
    @action(detail=False, methods=["post"], url_path="add-stock")
    def add_stock(self, request):
        s = StockQuantityInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            product = self.get_catalog().add_stock_by_sku(
                sku=data["sku"],
                quantity=data["quantity"],
                scale=data["scale"],
            )
        except NotFoundError as exc:
            return error_response(code="SKU_NOT_FOUND", message=str(exc), http_status=status.HTTP_404_NOT_FOUND)
        except ValidationError as exc:
            return error_response(
                code="INVALID_QUANTITY",
                message=_validation_message(exc),
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)

    @extend_schema(
        request=StockAdjustmentInputSerializer,
        responses={200: ProductSerializer},
        description="Adjust stock by a signed delta. Scale defaults to recorded base units.",
    )
    @action(detail=True, methods=["post"], url_path="adjust-stock")
    def adjust_stock(self, request, pk=None):
        s = StockAdjustmentInputSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            product = self.get_catalog().adjust_stock(
                product_id=pk,
                delta=data["delta"],
                scale=data["scale"],
            )
        except NotFoundError as exc:
            return error_response(code="PRODUCT_NOT_FOUND", message=str(exc), http_status=status.HTTP_404_NOT_FOUND)
        except ValidationError as exc:
            return error_response(
                code="INVALID_ADJUSTMENT",
                message=_validation_message(exc),
                http_status=status.HTTP_400_BAD_REQUEST,
            )

        logger.info(
            "Stock adjusted",
            extra={"sku": product.sku, "delta": str(data["delta"]), "scale": data["scale"]},
        )
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)
