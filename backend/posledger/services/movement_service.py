# Overview: Manual stock movement entry and catalog lookup for the stock manager.

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from ..records import (
    MOVEMENT_TRANSFER_IN,
    MOVEMENT_TRANSFER_OUT,
    Product,
    StockMovement,
    new_record_id,
)
from ..time_utils import today_iso
from ..validation import ValidationError, to_quantity, to_text
from .event_store import LedgerStore

MANUAL_MOVEMENT_TYPES = (MOVEMENT_TRANSFER_IN, MOVEMENT_TRANSFER_OUT)
UNKNOWN_PRODUCT_NAME = "Unknown Product"
DEFAULT_LOCATIONS = {
    MOVEMENT_TRANSFER_IN: "FROM SUPPLIER",
    MOVEMENT_TRANSFER_OUT: "TO BRANCH",
}


@dataclass(frozen=True)
class ManualMovementEntry:
    type: str
    sku: str
    qty: int
    ref: str
    wtn: str = ""
    loc: str = ""

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "ManualMovementEntry":
        return cls(
            type=to_text(payload.get("type")) or MOVEMENT_TRANSFER_IN,
            sku=to_text(payload.get("sku")),
            qty=to_quantity(payload.get("qty"), field="qty", default=0),
            ref=to_text(payload.get("ref")),
            wtn=to_text(payload.get("wtn")),
            loc=to_text(payload.get("loc")),
        )

    def validate(self) -> None:
        if not self.sku or not self.ref or self.qty <= 0:
            raise ValidationError("Please fill all required fields (SKU, Ref, Qty)")
        if self.type not in MANUAL_MOVEMENT_TYPES:
            raise ValidationError(f"type must be one of: {', '.join(MANUAL_MOVEMENT_TYPES)}")


def record_manual_movement(
    store: LedgerStore,
    entry: ManualMovementEntry,
    *,
    today: str | None = None,
) -> StockMovement:
    entry.validate()

    product = store.find_product(entry.sku)
    movement = StockMovement(
        id=new_record_id(),
        date=today or today_iso(),
        item_code=entry.sku,
        item_name=product.name if product else UNKNOWN_PRODUCT_NAME,
        type=entry.type,
        reference=entry.ref,
        associated_wtn=entry.wtn,
        quantity=entry.qty,
        location=entry.loc or DEFAULT_LOCATIONS[entry.type],
        notes=f"Manual Stock Entry: {entry.ref}",
    )
    store.append_movements([movement])
    return movement


def search_products(products: Sequence[Product], query: str, *, limit: int = 15) -> list[Product]:
    """Code/name substring search; an empty query lists the first 10 products."""
    if not query:
        return list(products[:10])
    needle = query.lower()
    matches = [p for p in products if needle in p.code.lower() or needle in p.name.lower()]
    return matches[:limit]
