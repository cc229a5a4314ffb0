# Overview: Sales analysis, daily reconciliation sheet and stock report export.

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Iterable, Sequence

from openpyxl import Workbook

from ..records import Receipt
from .balance_service import StockReportRow, receipt_totals, tax_split, validate_tax_rate


class ReportError(ValueError):
    """Raised when a report has nothing to show."""


BANK_METHODS = ("Bank Transfer", "Juice", "Blink", "MyT")
PAYMENT_BUCKETS = ("cash", "card", "bank", "credit", "gift", "online")
_BUCKET_BY_METHOD = {
    "Cash": "cash",
    "Card": "card",
    "Credit": "credit",
    "Gift": "gift",
    "Online": "online",
    **{method: "bank" for method in BANK_METHODS},
}

STOCK_SHEET_TITLE = "Inventory Master"
STOCK_SHEET_HEADERS = ("SKU Code", "Description", "Stock Balance")
STOCK_SHEET_WIDTHS = {"A": 15, "B": 60, "C": 20}


# ---------------------------------------------------------------------------
# Sales analysis (one row per receipt line)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SalesLine:
    date: str
    inv_no: str
    customer: str
    customer_phone: str
    customer_email: str
    sales_rep: str
    code: str
    description: str
    qty: int
    unit_ex: float
    unit_in: float
    vat: float
    total: float
    method: str

    def to_dict(self) -> dict:
        return {
            "date": self.date,
            "invNo": self.inv_no,
            "customer": self.customer,
            "customerPhone": self.customer_phone,
            "customerEmail": self.customer_email,
            "salesRep": self.sales_rep,
            "code": self.code,
            "description": self.description,
            "qty": self.qty,
            "unitEx": round(self.unit_ex, 2),
            "unitIn": round(self.unit_in, 2),
            "vat": round(self.vat, 2),
            "total": round(self.total, 2),
            "method": self.method,
        }


def _matches_sales_query(receipt: Receipt, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    return (
        needle in receipt.received_from.lower()
        or needle in str(receipt.receipt_number)
        or needle in (receipt.sales_rep or "").lower()
        or any(needle in item.description.lower() for item in receipt.items)
    )


def sales_analysis(
    receipts: Iterable[Receipt],
    *,
    from_date: str | None = None,
    to_date: str | None = None,
    search_query: str = "",
) -> dict:
    """
    Line-level sales log between two ISO dates (inclusive), newest receipt
    number first, with quantity / total / VAT totals.
    """
    lines: list[SalesLine] = []
    query = (search_query or "").strip()
    for receipt in receipts:
        if from_date and receipt.date < from_date:
            continue
        if to_date and receipt.date > to_date:
            continue
        if not _matches_sales_query(receipt, query):
            continue

        rate = validate_tax_rate(receipt.tax_rate)
        factor = 1 + rate / 100
        for item in receipt.items:
            line_incl = item.quantity * item.rate
            split = tax_split(line_incl, rate)
            lines.append(SalesLine(
                date=receipt.date,
                inv_no=str(receipt.receipt_number),
                customer=receipt.received_from,
                customer_phone=receipt.client_phone,
                customer_email=receipt.client_email,
                sales_rep=receipt.sales_rep,
                code=item.code,
                description=item.description,
                qty=item.quantity,
                unit_ex=item.rate / factor,
                unit_in=item.rate,
                vat=split.vat,
                total=line_incl,
                method=receipt.payment_method,
            ))

    lines.sort(key=lambda line: line.inv_no, reverse=True)
    totals = {
        "qty": sum(line.qty for line in lines),
        "total": round(sum(line.total for line in lines), 2),
        "vat": round(sum(line.vat for line in lines), 2),
    }
    return {"rows": [line.to_dict() for line in lines], "totals": totals}


# ---------------------------------------------------------------------------
# Reconciliation sheet (one row per receipt, split by payment bucket)
# ---------------------------------------------------------------------------

def reconciliation_row(receipt: Receipt) -> dict:
    totals = receipt_totals(receipt)
    bucket = _BUCKET_BY_METHOD.get(receipt.payment_method)
    row = {
        "invNo": receipt.receipt_number,
        "description": receipt.received_from or (receipt.items[0].description if receipt.items else "") or "---",
        "qty": totals.quantity,
        "rctpNo": receipt.cheque_no or "",
        "net": totals.exclusive,
        "vat": totals.vat,
        "total": totals.inclusive,
    }
    for name in PAYMENT_BUCKETS:
        row[name] = totals.inclusive if name == bucket else 0.0
    return row


def reconciliation_sheet(receipts: Sequence[Receipt]) -> dict:
    rows = [reconciliation_row(r) for r in receipts]
    summed = ("qty", "net", "vat", "total") + PAYMENT_BUCKETS
    totals = {key: sum(row[key] for row in rows) for key in summed}

    def _rounded(values: dict) -> dict:
        return {k: (round(v, 2) if isinstance(v, float) else v) for k, v in values.items()}

    return {"rows": [_rounded(r) for r in rows], "totals": _rounded(totals)}


# ---------------------------------------------------------------------------
# Stock report export
# ---------------------------------------------------------------------------

def stock_report_workbook(rows: Sequence[StockReportRow]) -> bytes:
    """Render non-zero stock balances as an .xlsx file."""
    if not rows:
        raise ReportError("No items found with a non-zero stock balance. Export cancelled.")

    wb = Workbook()
    ws = wb.active
    ws.title = STOCK_SHEET_TITLE
    ws.append(list(STOCK_SHEET_HEADERS))
    for row in rows:
        ws.append([row.code, row.name, row.balance])
    for column, width in STOCK_SHEET_WIDTHS.items():
        ws.column_dimensions[column].width = width

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
