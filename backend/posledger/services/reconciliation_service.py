# Overview: Voucher tracker projection; one row per logical document with linkage status.

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from ..records import (
    DOC_RECEIPT,
    MOVEMENT_TRANSFER_IN,
    MOVEMENT_TRANSFER_OUT,
    Receipt,
    StockMovement,
)
from .balance_service import receipt_total

"""
Tracker projection rules:

- Receipts map 1:1 to rows.
- TRANSFER_IN / TRANSFER_OUT movements are grouped by (type, reference).
- SALE movements are excluded; they are already represented by their receipt.
- A group's secondary id is the first non-empty associated_wtn encountered.
- is_missing and status_label are both derived from secondary_id, so they can
  never disagree.
"""

CASH_SALE_ENTITY = "CASH SALE"

# SALE rows are left out: their receipt already has a row.
GROUPED_MOVEMENT_TYPES = (MOVEMENT_TRANSFER_IN, MOVEMENT_TRANSFER_OUT)

STATUS_LINKED = "LINKED"
MISSING_LABELS = {
    DOC_RECEIPT: "MISSING INVOICE",
    MOVEMENT_TRANSFER_IN: "MISSING REF",
    MOVEMENT_TRANSFER_OUT: "MISSING WTN",
}

COLUMN_HEADINGS = {
    DOC_RECEIPT: ("Receipt #", "Invoice #"),
    MOVEMENT_TRANSFER_IN: ("Order #", "Supplier Ref"),
    MOVEMENT_TRANSFER_OUT: ("DN #", "WTN #"),
}


@dataclass(frozen=True)
class TrackerItem:
    code: str
    name: str
    qty: int
    rate: float | None = None

    def to_dict(self) -> dict:
        data = {"code": self.code, "name": self.name, "qty": self.qty}
        if self.rate is not None:
            data["rate"] = self.rate
            data["total"] = round(self.qty * self.rate, 2)
        return data


@dataclass
class TrackerRow:
    row_id: str
    raw_type: str
    date: str
    primary_id: str
    secondary_id: str
    entity: str
    items: list[TrackerItem] = field(default_factory=list)
    payment_method: str | None = None
    total: float | None = None

    @property
    def is_missing(self) -> bool:
        return not self.secondary_id

    @property
    def status_label(self) -> str:
        if self.is_missing:
            return MISSING_LABELS[self.raw_type]
        return STATUS_LINKED

    @property
    def type_label(self) -> str:
        return self.raw_type.replace("_", " ")

    @property
    def headings(self) -> tuple[str, str]:
        return COLUMN_HEADINGS[self.raw_type]

    def matches(self, query: str) -> bool:
        if not query:
            return True
        needle = query.lower()
        return (
            needle in self.primary_id.lower()
            or needle in self.secondary_id.lower()
            or needle in self.entity.lower()
        )

    def to_dict(self) -> dict:
        primary_heading, secondary_heading = self.headings
        data = {
            "id": self.row_id,
            "rawType": self.raw_type,
            "type": self.type_label,
            "date": self.date,
            "primaryId": self.primary_id,
            "secondaryId": self.secondary_id,
            "entity": self.entity,
            "isMissing": self.is_missing,
            "statusLabel": self.status_label,
            "primaryHeading": primary_heading,
            "secondaryHeading": secondary_heading,
            "items": [item.to_dict() for item in self.items],
        }
        if self.raw_type == DOC_RECEIPT:
            data["paymentMethod"] = self.payment_method
            data["total"] = round(self.total or 0, 2)
        return data


def _receipt_row(receipt: Receipt) -> TrackerRow:
    return TrackerRow(
        row_id=f"rct-{receipt.receipt_number}",
        raw_type=DOC_RECEIPT,
        date=receipt.date,
        primary_id=str(receipt.receipt_number),
        secondary_id=str(receipt.related_invoice_no or ""),
        entity=receipt.received_from or CASH_SALE_ENTITY,
        items=[
            TrackerItem(code=i.code, name=i.description, qty=i.quantity, rate=i.rate)
            for i in receipt.items
        ],
        payment_method=receipt.payment_method,
        total=receipt_total(receipt),
    )


def group_movements(movements: Iterable[StockMovement]) -> list[TrackerRow]:
    """Collapse transfer movements into one row per (type, reference)."""
    groups: dict[tuple[str, str], TrackerRow] = {}
    for m in movements:
        if m.type not in GROUPED_MOVEMENT_TYPES:
            continue
        key = (m.type, m.reference)
        row = groups.get(key)
        if row is None:
            row = TrackerRow(
                row_id=f"mv-{m.type}-{m.reference}",
                raw_type=m.type,
                date=m.date,
                primary_id=str(m.reference),
                secondary_id="",
                entity=m.location or "",
            )
            groups[key] = row
        if not row.secondary_id and m.associated_wtn:
            row.secondary_id = str(m.associated_wtn)
        row.items.append(TrackerItem(code=m.item_code, name=m.item_name, qty=m.quantity))
    return list(groups.values())


def build_tracker_rows(
    receipts: Iterable[Receipt],
    movements: Iterable[StockMovement],
    *,
    show_only_missing: bool = False,
    search_query: str = "",
) -> list[TrackerRow]:
    rows = [_receipt_row(r) for r in receipts]
    rows.extend(group_movements(movements))

    query = (search_query or "").strip()
    visible = [
        row for row in rows
        if (row.is_missing or not show_only_missing) and row.matches(query)
    ]
    # list.sort is stable, so same-day rows keep grouping order.
    visible.sort(key=lambda row: row.date, reverse=True)
    return visible


def tracker_stats(rows: Iterable[TrackerRow]) -> dict:
    rows = list(rows)
    missing = sum(1 for row in rows if row.is_missing)
    return {"total": len(rows), "missing": missing, "linked": len(rows) - missing}
