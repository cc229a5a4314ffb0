# Overview: Pure derivations of stock balances and receipt tax splits from the event store.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..records import MOVEMENT_TRANSFER_IN, Product, Receipt, ReceiptItem, StockMovement
from ..validation import ConfigurationError

"""
posledger Balance Invariants (authoritative)

- On-hand quantity is ledger-derived: SUM(TRANSFER_IN) - SUM(SALE + TRANSFER_OUT)
  over every movement for the SKU. Linkage status never filters movements.
- The fold is commutative; date order only matters for display.
- Rates are tax-inclusive. exclusive = inclusive / (1 + rate/100) and
  vat = inclusive - exclusive. None of these values is ever stored.
- A tax rate <= -100% has no finite exclusive amount and is rejected.

Nothing in this module mutates the store.
"""


@dataclass(frozen=True)
class TaxSplit:
    exclusive: float
    vat: float


@dataclass(frozen=True)
class ReceiptTotals:
    quantity: int
    exclusive: float
    vat: float
    inclusive: float

    def to_dict(self) -> dict:
        return {
            "quantity": self.quantity,
            "exclusive": round(self.exclusive, 2),
            "vat": round(self.vat, 2),
            "inclusive": round(self.inclusive, 2),
        }


@dataclass(frozen=True)
class StockReportRow:
    code: str
    name: str
    balance: int

    def to_dict(self) -> dict:
        return {"code": self.code, "name": self.name, "balance": self.balance}


def signed_quantity(movement: StockMovement) -> int:
    if movement.type == MOVEMENT_TRANSFER_IN:
        return int(movement.quantity)
    return -int(movement.quantity)


def on_hand_balance(movements: Iterable[StockMovement], sku: str) -> int:
    """Quantity on hand for one SKU; 0 when it has no movements."""
    return sum(signed_quantity(m) for m in movements if m.item_code == sku)


def movement_history(movements: Iterable[StockMovement], sku: str) -> list[StockMovement]:
    """Movements for one SKU, newest date first (stable for same-day rows)."""
    rows = [m for m in movements if m.item_code == sku]
    rows.sort(key=lambda m: m.date, reverse=True)
    return rows


def validate_tax_rate(tax_rate_percent: float) -> float:
    try:
        rate = float(tax_rate_percent)
    except (TypeError, ValueError):
        raise ConfigurationError(f"tax rate must be a number, got {tax_rate_percent!r}")
    if not math.isfinite(rate):
        raise ConfigurationError("tax rate must be finite")
    if rate <= -100:
        raise ConfigurationError(f"tax rate of {rate}% cannot be applied to inclusive prices")
    return rate


def tax_split(total_inclusive: float, tax_rate_percent: float) -> TaxSplit:
    rate = validate_tax_rate(tax_rate_percent)
    total = float(total_inclusive)
    if not math.isfinite(total):
        raise ConfigurationError("total must be finite")
    if rate == 0:
        return TaxSplit(exclusive=total, vat=0.0)

    exclusive = total / (1 + rate / 100)
    return TaxSplit(exclusive=exclusive, vat=total - exclusive)


def line_total(item: ReceiptItem) -> float:
    return item.quantity * item.rate


def receipt_total(receipt: Receipt) -> float:
    return sum(line_total(item) for item in receipt.items)


def receipt_totals(receipt: Receipt) -> ReceiptTotals:
    inclusive = receipt_total(receipt)
    split = tax_split(inclusive, receipt.tax_rate)
    return ReceiptTotals(
        quantity=sum(int(item.quantity) for item in receipt.items),
        exclusive=split.exclusive,
        vat=split.vat,
        inclusive=inclusive,
    )


def catalog_stock_report(
    products: Sequence[Product], movements: Iterable[StockMovement]
) -> list[StockReportRow]:
    """
    Balance for every cataloged SKU in one pass over the movement log.

    Only non-zero balances are reported; row order follows the catalog.
    """
    balances: dict[str, int] = {}
    for movement in movements:
        balances[movement.item_code] = balances.get(movement.item_code, 0) + signed_quantity(movement)

    rows = [
        StockReportRow(code=p.code, name=p.name, balance=balances.get(p.code, 0))
        for p in products
    ]
    return [row for row in rows if row.balance != 0]
