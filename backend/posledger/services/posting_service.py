# Overview: Service-layer posting of receipts; validation, SALE movements and receipt numbering.

"""
Receipt posting.

Posting a receipt writes the receipt to history and one SALE movement per
line item in a single store update. Re-posting an existing receipt number
(edit mode) replaces the history entry AND the SALE movements previously
generated for it, so stock is decremented once per receipt no matter how
many times it is edited.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from ..records import (
    MOVEMENT_SALE,
    CURRENCY_SYMBOLS,
    PAYMENT_METHODS,
    CompanyInfo,
    Receipt,
    ReceiptItem,
    StockMovement,
    new_record_id,
)
from ..time_utils import parse_iso_date, today_iso
from ..validation import ValidationError, to_number, to_quantity
from .balance_service import validate_tax_rate
from .event_store import LedgerStore

logger = logging.getLogger(__name__)

DEFAULT_RECEIPT_NUMBER = "116261"
DEFAULT_SETTLEMENT_TEXT = "Full settlement of above."
UNKNOWN_ITEM_CODE = "NA"
RECALL_MIN_QUERY = 3


class PostingError(ValidationError):
    """Raised when a receipt cannot be posted."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


@dataclass(frozen=True)
class PostingResult:
    receipt: Receipt
    movements: tuple[StockMovement, ...]
    next_receipt_number: str | None

    def to_dict(self) -> dict:
        return {
            "receipt": self.receipt.to_dict(),
            "movements": [m.to_dict() for m in self.movements],
            "next_receipt_number": self.next_receipt_number,
        }


def next_receipt_number(receipt_number: str) -> str | None:
    """
    Auto-increment for integer receipt numbers ("116261" -> "116262").

    Operator-assigned numbers that do not parse as integers get no
    suggestion; the operator types the next number by hand.
    """
    try:
        return str(int(str(receipt_number).strip()) + 1)
    except (TypeError, ValueError):
        return None


def new_draft(
    sender: CompanyInfo,
    *,
    receipt_number: str = DEFAULT_RECEIPT_NUMBER,
    tax_rate: float = 15.0,
    today: str | None = None,
) -> Receipt:
    return Receipt(
        receipt_number=receipt_number,
        date=today or today_iso(),
        items=(ReceiptItem(id=new_record_id(), quantity=1, rate=0.0),),
        tax_rate=tax_rate,
        payment_method="Cash",
        settlement_of=DEFAULT_SETTLEMENT_TEXT,
        currency="MUR",
        sender=sender,
        location=(sender.shop_name or "").lower(),
    )


def receipt_from_payload(payload: dict[str, Any]) -> Receipt:
    """
    Build a Receipt from an API payload.

    Line quantities must be whole numbers and rates numeric; the date is
    normalized and the payment method and currency are checked.
    """
    for raw in payload.get("items") or []:
        if not isinstance(raw, dict):
            raise ValidationError("items must be objects")
        to_quantity(raw.get("quantity"), field="quantity", default=1)
        to_number(raw.get("rate"), field="rate", default=0.0)

    receipt = Receipt.from_dict(payload)
    try:
        date = parse_iso_date(receipt.date) or today_iso()
    except ValueError:
        raise ValidationError("date must be an ISO-8601 date")
    if receipt.payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")
    if receipt.currency not in CURRENCY_SYMBOLS:
        raise ValidationError(f"currency must be one of: {', '.join(CURRENCY_SYMBOLS)}")
    return receipt.with_changes(date=date)


def validate_receipt(receipt: Receipt) -> None:
    if not receipt.receipt_number:
        raise PostingError("receipt_number is required")
    if not receipt.received_from.strip():
        raise PostingError("Missing customer name or item data.", details={"field": "received_from"})
    if not any(item.description and item.rate > 0 for item in receipt.items):
        raise PostingError("Missing customer name or item data.", details={"field": "items"})
    for item in receipt.items:
        if item.quantity < 0 or item.rate < 0:
            raise PostingError(
                "quantity and rate must not be negative",
                details={"item_id": item.id},
            )
    validate_tax_rate(receipt.tax_rate)


def build_sale_movements(receipt: Receipt, location: str) -> tuple[StockMovement, ...]:
    return tuple(
        StockMovement(
            id=new_record_id(),
            date=receipt.date,
            item_code=item.code or UNKNOWN_ITEM_CODE,
            item_name=item.description,
            type=MOVEMENT_SALE,
            reference=receipt.receipt_number,
            associated_wtn=receipt.related_invoice_no,
            quantity=item.quantity,
            location=location or "STORE",
            notes=f"Sale to {receipt.received_from}",
        )
        for item in receipt.items
    )


def post_receipt(store: LedgerStore, receipt: Receipt, *, editing: bool = False) -> PostingResult:
    """
    Validate and post a receipt.

    Not editing: the receipt is issued by the current shop and the open
    document is reset to a fresh draft numbered receipt_number + 1 (when the
    number is an integer).
    Editing: the receipt keeps the sender it was issued by, and it and its
    SALE movements replace the earlier ones.
    """
    validate_receipt(receipt)

    sender = receipt.sender if editing and receipt.sender.name else store.shop_settings
    receipt = receipt.with_changes(sender=sender)
    movements = build_sale_movements(receipt, sender.shop_name)
    replacing = editing or store.find_receipt(receipt.receipt_number) is not None
    store.post_receipt_with_movements(receipt, movements, replace_sales=replacing)
    logger.info(
        "Posted receipt %s (%d lines, editing=%s)",
        receipt.receipt_number, len(movements), editing,
    )

    following = None
    if not editing:
        following = next_receipt_number(receipt.receipt_number)
        store.set_draft(
            new_draft(
                store.shop_settings,
                receipt_number=following or "",
                tax_rate=receipt.tax_rate,
            )
        )
    return PostingResult(receipt=receipt, movements=movements, next_receipt_number=following)


def recall_receipt(store: LedgerStore, query: str) -> Receipt | None:
    """First history receipt whose number contains the query (newest first)."""
    needle = (query or "").strip()
    if len(needle) < RECALL_MIN_QUERY:
        return None
    for receipt in store.receipts:
        if needle in str(receipt.receipt_number):
            return receipt
    return None
