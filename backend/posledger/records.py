# Overview: Domain records for receipts, stock movements and the product catalog.

"""
Ledger record shapes.

These are plain dataclasses, not ORM rows: the ledger lives in memory and is
persisted as JSON snapshots (see services/snapshot_service.py). `to_dict()`
uses the camelCase keys of the persisted snapshot layout so that an existing
snapshot loads without migration.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from typing import Any


MOVEMENT_SALE = "SALE"
MOVEMENT_TRANSFER_IN = "TRANSFER_IN"
MOVEMENT_TRANSFER_OUT = "TRANSFER_OUT"
MOVEMENT_TYPES = (MOVEMENT_SALE, MOVEMENT_TRANSFER_IN, MOVEMENT_TRANSFER_OUT)

# Linkage corrections address either a receipt or a movement group.
DOC_RECEIPT = "RECEIPT"
LINKABLE_DOC_TYPES = (DOC_RECEIPT, MOVEMENT_TRANSFER_IN, MOVEMENT_TRANSFER_OUT)

PAYMENT_METHODS = (
    "Cash",
    "Card",
    "Juice",
    "Blink",
    "Bank Transfer",
    "Credit",
    "Gift",
    "Online",
    "MyT",
    "Cheque",
)

CURRENCY_SYMBOLS = {
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "MUR": "Rs",
    "JPY": "¥",
}

OPENING_STOCK_REFERENCE = "OPENING STOCK"


def new_record_id() -> str:
    return uuid.uuid4().hex[:12]


def _str(value: Any) -> str:
    return "" if value is None else str(value)


def _int(value: Any, default: int = 0) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def _num(value: Any, default: float = 0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Product:
    code: str
    name: str
    price: float = 0.0

    def to_dict(self) -> dict:
        return {"code": self.code, "name": self.name, "price": self.price}

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        return cls(code=_str(data.get("code")), name=_str(data.get("name")), price=_num(data.get("price")))


@dataclass(frozen=True)
class CompanyInfo:
    name: str = ""
    shop_name: str = ""
    email: str = ""
    address: str = ""
    phone: str = ""
    tax_id: str = ""
    brn: str = ""

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "shopName": self.shop_name,
            "email": self.email,
            "address": self.address,
            "phone": self.phone,
            "taxId": self.tax_id,
            "brn": self.brn,
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "CompanyInfo":
        data = data or {}
        return cls(
            name=_str(data.get("name")),
            shop_name=_str(data.get("shopName")),
            email=_str(data.get("email")),
            address=_str(data.get("address")),
            phone=_str(data.get("phone")),
            tax_id=_str(data.get("taxId")),
            brn=_str(data.get("brn")),
        )


@dataclass(frozen=True)
class ReceiptItem:
    id: str
    description: str = ""
    quantity: int = 1
    rate: float = 0.0
    code: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "code": self.code,
            "description": self.description,
            "quantity": self.quantity,
            "rate": self.rate,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ReceiptItem":
        return cls(
            id=_str(data.get("id")) or new_record_id(),
            code=_str(data.get("code")),
            description=_str(data.get("description")),
            quantity=_int(data.get("quantity"), 1),
            rate=_num(data.get("rate")),
        )


@dataclass(frozen=True)
class Receipt:
    receipt_number: str
    date: str
    items: tuple[ReceiptItem, ...] = ()
    tax_rate: float = 15.0
    payment_method: str = "Cash"
    related_invoice_no: str = ""
    received_from: str = ""
    sales_rep: str = ""
    client_address: str = ""
    client_phone: str = ""
    client_email: str = ""
    client_tax_id: str = ""
    client_brn: str = ""
    address_notes: str = ""
    cheque_no: str = ""
    settlement_of: str = ""
    currency: str = "MUR"
    notes: str = ""
    location: str = ""
    sender: CompanyInfo = field(default_factory=CompanyInfo)

    def with_changes(self, **changes) -> "Receipt":
        return replace(self, **changes)

    def find_item(self, item_id: str) -> ReceiptItem | None:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> dict:
        return {
            "receiptNumber": self.receipt_number,
            "relatedInvoiceNo": self.related_invoice_no,
            "date": self.date,
            "salesRep": self.sales_rep,
            "receivedFrom": self.received_from,
            "clientAddress": self.client_address,
            "clientPhone": self.client_phone,
            "clientEmail": self.client_email,
            "clientTaxId": self.client_tax_id,
            "clientBrn": self.client_brn,
            "addressNotes": self.address_notes,
            "paymentMethod": self.payment_method,
            "items": [item.to_dict() for item in self.items],
            "chequeNo": self.cheque_no,
            "settlementOf": self.settlement_of,
            "currency": self.currency,
            "sender": self.sender.to_dict(),
            "notes": self.notes,
            "taxRate": self.tax_rate,
            "location": self.location,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Receipt":
        return cls(
            receipt_number=_str(data.get("receiptNumber")).strip(),
            related_invoice_no=_str(data.get("relatedInvoiceNo")),
            date=_str(data.get("date")),
            sales_rep=_str(data.get("salesRep")),
            received_from=_str(data.get("receivedFrom")),
            client_address=_str(data.get("clientAddress")),
            client_phone=_str(data.get("clientPhone")),
            client_email=_str(data.get("clientEmail")),
            client_tax_id=_str(data.get("clientTaxId")),
            client_brn=_str(data.get("clientBrn")),
            address_notes=_str(data.get("addressNotes")),
            payment_method=_str(data.get("paymentMethod")) or "Cash",
            items=tuple(ReceiptItem.from_dict(i) for i in data.get("items") or []),
            cheque_no=_str(data.get("chequeNo")),
            settlement_of=_str(data.get("settlementOf")),
            currency=_str(data.get("currency")) or "MUR",
            sender=CompanyInfo.from_dict(data.get("sender")),
            notes=_str(data.get("notes")),
            tax_rate=_num(data.get("taxRate"), 15.0),
            location=_str(data.get("location")),
        )


@dataclass(frozen=True)
class StockMovement:
    """
    One inventory event. Immutable except for `associated_wtn`, which is
    corrected through LedgerStore.correct_linkage (never edited in place).
    """

    id: str
    date: str
    item_code: str
    item_name: str
    type: str
    reference: str
    quantity: int
    location: str = ""
    associated_wtn: str = ""
    notes: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date,
            "itemCode": self.item_code,
            "itemName": self.item_name,
            "type": self.type,
            "reference": self.reference,
            "associatedWtn": self.associated_wtn,
            "quantity": self.quantity,
            "location": self.location,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "StockMovement":
        return cls(
            id=_str(data.get("id")) or new_record_id(),
            date=_str(data.get("date")),
            item_code=_str(data.get("itemCode")),
            item_name=_str(data.get("itemName")),
            type=_str(data.get("type")),
            reference=_str(data.get("reference")),
            associated_wtn=_str(data.get("associatedWtn")),
            quantity=_int(data.get("quantity")),
            location=_str(data.get("location")),
            notes=_str(data.get("notes")),
        )
