from .product import (
    BulkImportInputSerializer,
    ProductSerializer,
    StockAdjustmentInputSerializer,
    StockQuantityInputSerializer,
    ValuationLineSerializer,
)

__all__ = [
    "ProductSerializer",
    "StockQuantityInputSerializer",
    "StockAdjustmentInputSerializer",
    "BulkImportInputSerializer",
    "ValuationLineSerializer",
]
