# Overview: Service-layer catalog import; file decoding, column mapping and opening stock.

"""
Catalog import.

Supports CSV and Excel (.xlsx) uploads. Columns are resolved once per file
through an explicit ColumnMapping: each field takes the first unclaimed
header matching its pattern, and falls back to its declared position when
no header matches. A file that yields no usable row aborts the import
without touching the catalog.
"""

from __future__ import annotations

import csv
import io
import logging
import re
import zipfile
from dataclasses import dataclass, field
from typing import Any, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from ..records import (
    MOVEMENT_TRANSFER_IN,
    OPENING_STOCK_REFERENCE,
    Product,
    StockMovement,
    new_record_id,
)
from ..time_utils import today_iso
from ..validation import ValidationError, clean_spreadsheet_number, to_text
from .event_store import CATALOG_MODE_REPLACE, CATALOG_MODES, LedgerStore

logger = logging.getLogger(__name__)


class CatalogImportError(ValidationError):
    """Raised when an import cannot be applied; the catalog is left untouched."""


EXPECTED_COLUMNS_HINT = "Ensure the file has columns named roughly 'Code', 'Name', 'Price', 'Quantity'."
OPENING_STOCK_LOCATION = "INITIAL IMPORT"

FIELD_CODE = "code"
FIELD_NAME = "name"
FIELD_PRICE = "price"
FIELD_QUANTITY = "quantity"
FIELD_ORDER = (FIELD_CODE, FIELD_NAME, FIELD_PRICE, FIELD_QUANTITY)

DEFAULT_PATTERNS = {
    FIELD_CODE: r"code|sku|id|reference|item#|part",
    FIELD_NAME: r"name|description|desc|item|product",
    FIELD_PRICE: r"price|rate|cost|value|amount",
    FIELD_QUANTITY: r"qty|quantity|stock|balance|onhand|units",
}

EXCEL_EXTENSIONS = {"xlsx", "xlsm", "xltx", "xltm"}


@dataclass(frozen=True)
class ResolvedColumns:
    """Header chosen for each field; None when the file has no such column."""
    code: str | None
    name: str | None
    price: str | None
    quantity: str | None


@dataclass(frozen=True)
class ColumnMapping:
    patterns: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_PATTERNS))
    position_fallback: bool = True

    def resolve(self, headers: Sequence[str]) -> ResolvedColumns:
        headers = [str(h) for h in headers if h is not None]
        claimed: set[str] = set()
        chosen: dict[str, str | None] = {name: None for name in FIELD_ORDER}

        # Header matches win over positions, so a positional guess can never
        # steal a column another field matched by name.
        for name in FIELD_ORDER:
            pattern = re.compile(self.patterns.get(name, DEFAULT_PATTERNS[name]), re.IGNORECASE)
            match = next((h for h in headers if h not in claimed and pattern.search(h)), None)
            if match is not None:
                claimed.add(match)
                chosen[name] = match

        if self.position_fallback:
            for position, name in enumerate(FIELD_ORDER):
                if chosen[name] is None and position < len(headers) and headers[position] not in claimed:
                    claimed.add(headers[position])
                    chosen[name] = headers[position]

        if chosen[FIELD_CODE] is None or chosen[FIELD_NAME] is None:
            raise CatalogImportError(f"NO DATA DETECTED: {EXPECTED_COLUMNS_HINT}")
        return ResolvedColumns(**chosen)


@dataclass
class ParsedCatalog:
    products: list[Product] = field(default_factory=list)
    opening_quantities: list[tuple[Product, int]] = field(default_factory=list)
    row_errors: list[dict[str, Any]] = field(default_factory=list)


@dataclass(frozen=True)
class ImportSummary:
    mode: str
    products: int
    opening_movements: int
    skipped_rows: int
    row_errors: tuple[dict[str, Any], ...] = ()

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "products": self.products,
            "opening_movements": self.opening_movements,
            "skipped_rows": self.skipped_rows,
            "row_errors": list(self.row_errors),
            "message": (
                f"{self.products} items cataloged. "
                f"{self.opening_movements} stock levels initialized."
            ),
        }


def _file_extension(filename: str) -> str:
    return (filename or "").rsplit(".", 1)[-1].lower() if "." in (filename or "") else ""


def _read_csv(content: bytes) -> list[dict[str, Any]]:
    stream = io.StringIO(content.decode("utf-8-sig"))
    reader = csv.DictReader(stream)
    rows = []
    for row in reader:
        # DictReader puts overflow cells under a None key
        row.pop(None, None)
        if any(to_text(v) for v in row.values()):
            rows.append(row)
    return rows


def _read_xlsx(content: bytes) -> list[dict[str, Any]]:
    wb = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    try:
        sheet = wb.worksheets[0]
        data = list(sheet.values)
    finally:
        wb.close()
    if not data:
        return []

    headers = [str(h).strip() if h is not None else "" for h in data[0]]
    rows = []
    for values in data[1:]:
        if values is None or not any(v not in (None, "") for v in values):
            continue
        rows.append({
            headers[i]: values[i] if i < len(values) else None
            for i in range(len(headers))
            if headers[i]
        })
    return rows


def read_rows(filename: str, content: bytes) -> list[dict[str, Any]]:
    """Decode an uploaded file into header-keyed rows (header order preserved)."""
    if not content:
        raise CatalogImportError("Error: File data is empty.")

    ext = _file_extension(filename)
    try:
        if ext == "csv":
            return _read_csv(content)
        if ext in EXCEL_EXTENSIONS:
            return _read_xlsx(content)
    except (UnicodeDecodeError, csv.Error, InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        logger.warning("Failed to decode catalog file %s: %s", filename, exc)
        raise CatalogImportError(
            "Failed to parse file. Please check if the file format is valid."
        ) from exc
    raise CatalogImportError(f"Unsupported file type: {filename or '(unnamed)'}. Upload a .csv or .xlsx file.")


def parse_catalog_rows(
    rows: Sequence[dict[str, Any]],
    mapping: ColumnMapping | None = None,
) -> ParsedCatalog:
    parsed = ParsedCatalog()
    if not rows:
        return parsed

    columns = (mapping or ColumnMapping()).resolve(list(rows[0].keys()))
    seen_codes: set[str] = set()

    for row_number, row in enumerate(rows, start=2):
        code = to_text(row.get(columns.code))
        name = to_text(row.get(columns.name))
        if not code or not name:
            parsed.row_errors.append({"row": row_number, "error": "code and name are required"})
            continue

        price = clean_spreadsheet_number(row.get(columns.price)) if columns.price else None
        qty = clean_spreadsheet_number(row.get(columns.quantity)) if columns.quantity else None
        if qty is not None and not float(qty).is_integer():
            parsed.row_errors.append({"row": row_number, "error": "quantity must be a whole number"})
            continue

        product = Product(code=code, name=name, price=price or 0.0)
        if code not in seen_codes:
            seen_codes.add(code)
            parsed.products.append(product)
        if qty is not None and qty > 0:
            parsed.opening_quantities.append((product, int(qty)))

    return parsed


def build_opening_movements(
    opening_quantities: Sequence[tuple[Product, int]],
    *,
    source_name: str,
    today: str,
) -> list[StockMovement]:
    return [
        StockMovement(
            id=new_record_id(),
            date=today,
            item_code=product.code,
            item_name=product.name,
            type=MOVEMENT_TRANSFER_IN,
            reference=OPENING_STOCK_REFERENCE,
            quantity=qty,
            location=OPENING_STOCK_LOCATION,
            notes=f"Bulk Import - {source_name}",
        )
        for product, qty in opening_quantities
    ]


def import_catalog(
    store: LedgerStore,
    rows: Sequence[dict[str, Any]],
    *,
    mode: str = CATALOG_MODE_REPLACE,
    source_name: str = "upload",
    today: str | None = None,
    mapping: ColumnMapping | None = None,
) -> ImportSummary:
    """
    Apply parsed rows to the catalog.

    replace: the catalog becomes exactly the imported products.
    append: only codes not yet cataloged are added.
    Either way every row with quantity > 0 adds one OPENING STOCK movement,
    and the catalog change and the movements land in one store update.
    """
    if mode not in CATALOG_MODES:
        raise CatalogImportError(f"mode must be one of: {', '.join(CATALOG_MODES)}")

    parsed = parse_catalog_rows(rows, mapping)
    if not parsed.products:
        raise CatalogImportError(f"NO DATA DETECTED: {EXPECTED_COLUMNS_HINT}")

    movements = build_opening_movements(
        parsed.opening_quantities,
        source_name=source_name,
        today=today or today_iso(),
    )
    store.import_catalog(parsed.products, movements, mode=mode)
    logger.info(
        "Catalog import (%s) from %s: %d products, %d opening movements, %d rows skipped",
        mode, source_name, len(parsed.products), len(movements), len(parsed.row_errors),
    )
    return ImportSummary(
        mode=mode,
        products=len(parsed.products),
        opening_movements=len(movements),
        skipped_rows=len(parsed.row_errors),
        row_errors=tuple(parsed.row_errors),
    )


def import_catalog_file(
    store: LedgerStore,
    filename: str,
    content: bytes,
    *,
    mode: str = CATALOG_MODE_REPLACE,
    today: str | None = None,
    mapping: ColumnMapping | None = None,
) -> ImportSummary:
    rows = read_rows(filename, content)
    return import_catalog(
        store, rows, mode=mode, source_name=filename, today=today, mapping=mapping
    )
