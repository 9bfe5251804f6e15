# inventory/services/bulk_import.py

"""
======================================================
PATH: inventory/services/bulk_import.py
======================================================
BULK PRODUCT IMPORT

Purpose:
- Turn an uploaded CSV / XLSX table into catalog create-payloads.
- Validate every row on its own and report partial success.

Rules:
- Header must contain every REQUIRED_COLUMNS entry; all missing columns are
  reported in ONE MissingColumnsError and nothing is imported.
- Blank rows are skipped silently. Row numbers are 1-based data-row positions
  (header excluded, blank rows still counted) so they match the spreadsheet.
- Free text ("sold by", unit tokens) is normalized through the synonym
  tables below; edit the tables, not the parsing code.
- Only when ZERO rows validate is the import a failure (BulkImportError).
  Otherwise valid rows go to the catalog as one batch and the catalog's own
  per-row outcome is merged with the client-side errors.
"""

from __future__ import annotations

import csv
import io
import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

import openpyxl
from django.core.exceptions import ValidationError
from django.utils import timezone

from inventory.choices import (
    BaseUnit,
    ProductType,
    SOLD_BY_PRODUCT_TYPE,
    SoldBy,
    UNITS_BY_PRODUCT_TYPE,
)
from inventory.services.units import to_base

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = (
    "name",
    "sold_by",
    "unit_size",
    "quantity",
    "cost_price",
    "selling_price",
)

OPTIONAL_COLUMNS = ("sku", "category", "low_stock_level")

HEADER_ALIASES = {
    "product_name": "name",
    "product": "name",
    "price": "selling_price",
    "selling": "selling_price",
    "cost": "cost_price",
    "stock": "quantity",
    "qty": "quantity",
    "size": "unit_size",
    "unit": "unit_size",
    "sold": "sold_by",
    "low_stock": "low_stock_level",
    "reorder_level": "low_stock_level",
}

SOLD_BY_SYNONYMS = {
    # per piece
    "per piece": SoldBy.PER_PIECE,
    "piece": SoldBy.PER_PIECE,
    "pieces": SoldBy.PER_PIECE,
    "pc": SoldBy.PER_PIECE,
    "pcs": SoldBy.PER_PIECE,
    "each": SoldBy.PER_PIECE,
    "unit": SoldBy.PER_PIECE,
    "units": SoldBy.PER_PIECE,
    "item": SoldBy.PER_PIECE,
    "count": SoldBy.PER_PIECE,
    "by count": SoldBy.PER_PIECE,
    # by weight
    "by weight": SoldBy.BY_WEIGHT,
    "weight": SoldBy.BY_WEIGHT,
    "weighed": SoldBy.BY_WEIGHT,
    "per kg": SoldBy.BY_WEIGHT,
    "kg": SoldBy.BY_WEIGHT,
    "kilo": SoldBy.BY_WEIGHT,
    "g": SoldBy.BY_WEIGHT,
    "gram": SoldBy.BY_WEIGHT,
    "grams": SoldBy.BY_WEIGHT,
    # by volume
    "by volume": SoldBy.BY_VOLUME,
    "volume": SoldBy.BY_VOLUME,
    "liquid": SoldBy.BY_VOLUME,
    "per liter": SoldBy.BY_VOLUME,
    "l": SoldBy.BY_VOLUME,
    "liter": SoldBy.BY_VOLUME,
    "litre": SoldBy.BY_VOLUME,
    "ml": SoldBy.BY_VOLUME,
}

UNIT_SYNONYMS = {
    "pc": BaseUnit.PIECE,
    "pcs": BaseUnit.PIECE,
    "piece": BaseUnit.PIECE,
    "pieces": BaseUnit.PIECE,
    "each": BaseUnit.PIECE,
    "g": BaseUnit.GRAM,
    "gm": BaseUnit.GRAM,
    "gms": BaseUnit.GRAM,
    "gram": BaseUnit.GRAM,
    "grams": BaseUnit.GRAM,
    "kg": BaseUnit.KILOGRAM,
    "kgs": BaseUnit.KILOGRAM,
    "kilo": BaseUnit.KILOGRAM,
    "kilos": BaseUnit.KILOGRAM,
    "kilogram": BaseUnit.KILOGRAM,
    "kilograms": BaseUnit.KILOGRAM,
    "ml": BaseUnit.MILLILITER,
    "milliliter": BaseUnit.MILLILITER,
    "milliliters": BaseUnit.MILLILITER,
    "millilitre": BaseUnit.MILLILITER,
    "millilitres": BaseUnit.MILLILITER,
    "l": BaseUnit.LITER,
    "ltr": BaseUnit.LITER,
    "liter": BaseUnit.LITER,
    "liters": BaseUnit.LITER,
    "litre": BaseUnit.LITER,
    "litres": BaseUnit.LITER,
}

UNIT_SIZE_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)?\s*([A-Za-z]*)\s*$")
CURRENCY_MARKS = re.compile(r"(?i)php|[₱$€£¥]|\s")
THOUSANDS = re.compile(r"(?<=\d),(?=\d{3}(?!\d))")
THREEPLACES = Decimal("0.001")
DEFAULT_LOW_STOCK_LEVEL = 10


# ============================================================
# DOMAIN ERRORS
# ============================================================

class MissingColumnsError(Exception):
    def __init__(self, missing):
        self.missing = list(missing)
        super().__init__(f"Missing required columns: {', '.join(self.missing)}")


class BulkImportError(Exception):
    """Raised only when zero rows pass validation."""

    def __init__(self, message, *, errors=None):
        self.errors = list(errors or [])
        super().__init__(message)


# ============================================================
# RECORDS
# ============================================================

@dataclass
class ImportRow:
    index: int
    values: dict


@dataclass
class RowError:
    index: int
    error: str

    def to_dict(self) -> dict:
        return {"index": self.index, "error": self.error}


@dataclass
class ParsedTable:
    columns: list[str]
    rows: list[ImportRow] = field(default_factory=list)
    errors: list[RowError] = field(default_factory=list)


@dataclass
class ImportResult:
    success_count: int
    errors: list[RowError] = field(default_factory=list)
    created: list[dict] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success_count": self.success_count,
            "errors": [e.to_dict() for e in self.errors],
            "summary": summarize_errors(self.errors),
            "created": self.created,
        }


# ============================================================
# READERS
# ============================================================

def _cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def read_csv(source) -> list[list[str]]:
    data = source.read() if hasattr(source, "read") else source
    if isinstance(data, bytes):
        data = data.decode("utf-8-sig")

    try:
        dialect = csv.Sniffer().sniff(data[:1024], delimiters=",;\t")
    except csv.Error:
        dialect = csv.excel

    reader = csv.reader(io.StringIO(data), dialect)
    return [[_cell_text(cell) for cell in row] for row in reader]


def read_xlsx(source) -> list[list[str]]:
    workbook = openpyxl.load_workbook(source, read_only=True, data_only=True)
    try:
        sheet = workbook.active
        return [[_cell_text(cell) for cell in row] for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def read_table(upload) -> list[list[str]]:
    name = str(getattr(upload, "name", "") or "").lower()
    if name.endswith(".csv"):
        return read_csv(upload)
    if name.endswith((".xlsx", ".xlsm")):
        return read_xlsx(upload)
    raise ValidationError("Unsupported file type. Upload a .csv or .xlsx file.")


# ============================================================
# NORMALIZERS
# ============================================================

def _key(text) -> str:
    return " ".join(str(text or "").strip().lower().replace("_", " ").replace("-", " ").split())


def normalize_header(text) -> str:
    column = _key(text).replace(" ", "_")
    return HEADER_ALIASES.get(column, column)


def normalize_sold_by(text) -> SoldBy:
    sold_by = SOLD_BY_SYNONYMS.get(_key(text))
    if sold_by is None:
        raise ValidationError(f"Unrecognized sold_by value '{text}'")
    return sold_by


def normalize_unit(token) -> BaseUnit:
    unit = UNIT_SYNONYMS.get(_key(token))
    if unit is None:
        raise ValidationError(f"Unrecognized unit '{token}'")
    return unit


def parse_unit_size(text) -> tuple[Decimal | None, BaseUnit | None]:
    """Split "1 L" / "250g" / "500" into (size, unit). Either part may be missing."""
    match = UNIT_SIZE_PATTERN.match(str(text or ""))
    if not match:
        raise ValidationError(f"Invalid unit_size '{text}'")

    number, token = match.groups()
    size = Decimal(number) if number else None
    unit = normalize_unit(token) if token else None
    return size, unit


def _parse_decimal(raw, *, field_name: str) -> Decimal:
    """
    Spreadsheet number: "₱1,250.50", "PHP 58", " 1000 ", "1e3".

    Only whitespace, currency marks and thousands separators are dropped;
    whatever is left must be a finite decimal.
    """
    text = "" if raw is None else str(raw)
    cleaned = THOUSANDS.sub("", CURRENCY_MARKS.sub("", text))
    if not cleaned:
        raise ValidationError(f"{field_name} is required")
    try:
        value = Decimal(cleaned)
    except InvalidOperation as exc:
        raise ValidationError(f"{field_name} must be a number, got '{text.strip()}'") from exc
    if not value.is_finite():
        raise ValidationError(f"{field_name} must be a number, got '{text.strip()}'")
    return value


# ============================================================
# PARSE + VALIDATE
# ============================================================

def parse_table(raw: list[list[str]]) -> ParsedTable:
    rows = [list(r or []) for r in (raw or [])]
    if not rows:
        raise MissingColumnsError(REQUIRED_COLUMNS)

    columns = [normalize_header(c) for c in rows[0]]
    missing = [c for c in REQUIRED_COLUMNS if c not in columns]
    if missing:
        raise MissingColumnsError(missing)

    table = ParsedTable(columns=columns)
    width = len(columns)

    for index, cells in enumerate(rows[1:], start=1):
        cells = [_cell_text(c) for c in cells]
        if not any(cells):
            continue

        while len(cells) > width and not cells[-1]:
            cells.pop()

        if len(cells) != width:
            table.errors.append(
                RowError(index, f"Expected {width} columns, found {len(cells)}")
            )
            continue

        table.rows.append(ImportRow(index=index, values=dict(zip(columns, cells))))

    return table


def _generate_sku(index: int) -> str:
    return f"SKU-{timezone.now():%Y%m%d%H%M%S}-{index}"


def validate_row(row: ImportRow) -> dict:
    """Return a normalized catalog create-payload or raise ValidationError."""
    values = row.values

    name = values.get("name", "").strip()
    if not name:
        raise ValidationError("name is required")

    sold_by = normalize_sold_by(values.get("sold_by"))
    product_type = SOLD_BY_PRODUCT_TYPE[sold_by]

    size, unit = parse_unit_size(values.get("unit_size"))
    if product_type == ProductType.COUNT:
        if unit not in (None, BaseUnit.PIECE):
            raise ValidationError(f"Unit '{unit}' is not valid for products sold per piece")
        size, unit = Decimal("1"), BaseUnit.PIECE
    else:
        if size is None or size <= 0:
            raise ValidationError("unit_size must be a positive number (e.g. '250 g', '1 L')")
        allowed = UNITS_BY_PRODUCT_TYPE[product_type]
        unit = unit or allowed[0]
        if unit not in allowed:
            raise ValidationError(f"Unit '{unit}' is not valid for {product_type} products")

    quantity = _parse_decimal(values.get("quantity"), field_name="quantity")
    if quantity <= 0:
        raise ValidationError("quantity must be greater than zero")
    if product_type == ProductType.COUNT and quantity != quantity.to_integral_value():
        raise ValidationError("quantity must be a whole number for products sold per piece")

    cost_price = _parse_decimal(values.get("cost_price"), field_name="cost_price")
    selling_price = _parse_decimal(values.get("selling_price"), field_name="selling_price")
    if cost_price < 0:
        raise ValidationError("cost_price cannot be negative")
    if selling_price < cost_price:
        raise ValidationError("selling_price must be greater than or equal to cost_price")

    low_stock_raw = values.get("low_stock_level", "")
    low_stock_level = DEFAULT_LOW_STOCK_LEVEL
    if low_stock_raw:
        level = _parse_decimal(low_stock_raw, field_name="low_stock_level")
        if level < 0 or level != level.to_integral_value():
            raise ValidationError("low_stock_level must be a whole number >= 0")
        low_stock_level = int(level)

    sku = values.get("sku", "").strip().upper() or _generate_sku(row.index)

    stock = to_base(quantity, product_type, size, unit).quantize(THREEPLACES)

    return {
        "sku": sku,
        "name": name,
        "category": values.get("category", "").strip(),
        "product_type": str(product_type),
        "base_unit": str(unit),
        "quantity_per_unit": size,
        "quantity_in_stock": stock,
        "cost_price": cost_price,
        "selling_price": selling_price,
        "low_stock_level": low_stock_level,
    }


def summarize_errors(errors, limit: int = 5) -> list[str]:
    errors = sorted(errors, key=lambda e: e.index)
    lines = [f"Row {e.index}: {e.error}" for e in errors[:limit]]
    if len(errors) > limit:
        lines.append(f"+{len(errors) - limit} more")
    return lines


def import_products(raw: list[list[str]], *, catalog=None) -> ImportResult:
    if catalog is None:
        from inventory.services.catalog import CatalogService

        catalog = CatalogService()

    table = parse_table(raw)

    errors = list(table.errors)
    payloads, source_rows = [], []

    for row in table.rows:
        try:
            payload = validate_row(row)
        except ValidationError as exc:
            errors.append(RowError(row.index, "; ".join(exc.messages)))
            continue
        payloads.append(payload)
        source_rows.append(row.index)

    if not payloads:
        raise BulkImportError("No valid rows to import", errors=sorted(errors, key=lambda e: e.index))

    outcome = catalog.bulk_create(payloads) or {}

    for err in outcome.get("errors", []):
        errors.append(RowError(source_rows[int(err["index"])], str(err.get("error") or "Create failed")))

    created = []
    for item in outcome.get("success", []):
        created.append({**item, "index": source_rows[int(item["index"])]})

    result = ImportResult(
        success_count=len(created),
        errors=sorted(errors, key=lambda e: e.index),
        created=created,
    )

    logger.info(
        "Bulk import finished",
        extra={"success_count": result.success_count, "error_count": len(result.errors)},
    )
    return result
