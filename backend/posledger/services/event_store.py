# Overview: In-memory event store for receipts, stock movements, catalog and shop state.

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Iterable, Optional, Sequence

from ..records import (
    DOC_RECEIPT,
    LINKABLE_DOC_TYPES,
    MOVEMENT_SALE,
    CompanyInfo,
    Product,
    Receipt,
    StockMovement,
)
from ..validation import ValidationError

"""
posledger Event Store Invariants (authoritative)

- The store is the only write path for receipts, movements and the catalog.
- Receipts are keyed by receipt_number; re-posting replaces the prior entry.
- Movements are append-only (newest first). The only in-place change allowed
  is the associated_wtn linkage correction, applied to a whole
  (type, reference) group at once.
- Every mutation builds the new collection first and swaps it in with a single
  assignment, so a batch is either fully visible or not visible at all.
- The persister runs after each successful mutation. A persister failure does
  not roll back memory; it is logged and exposed via last_persist_error.
"""

logger = logging.getLogger(__name__)

CATALOG_MODE_REPLACE = "replace"
CATALOG_MODE_APPEND = "append"
CATALOG_MODES = (CATALOG_MODE_REPLACE, CATALOG_MODE_APPEND)

Persister = Callable[["LedgerStore"], None]


class LedgerStore:
    def __init__(
        self,
        *,
        shop_settings: CompanyInfo | None = None,
        draft: Receipt | None = None,
        products: Iterable[Product] = (),
        receipts: Iterable[Receipt] = (),
        movements: Iterable[StockMovement] = (),
        persister: Optional[Persister] = None,
    ):
        self._shop_settings = shop_settings or CompanyInfo()
        self._draft = draft
        self._products: tuple[Product, ...] = tuple(products)
        self._receipts: tuple[Receipt, ...] = tuple(receipts)
        self._movements: tuple[StockMovement, ...] = tuple(movements)
        self._persister = persister
        self.last_persist_error: str | None = None

    # ------------------------------------------------------------------
    # Read accessors (tuples, so callers cannot mutate the collections)
    # ------------------------------------------------------------------

    @property
    def shop_settings(self) -> CompanyInfo:
        return self._shop_settings

    @property
    def draft(self) -> Receipt | None:
        return self._draft

    @property
    def products(self) -> tuple[Product, ...]:
        return self._products

    @property
    def receipts(self) -> tuple[Receipt, ...]:
        return self._receipts

    @property
    def movements(self) -> tuple[StockMovement, ...]:
        return self._movements

    def find_receipt(self, receipt_number: str) -> Receipt | None:
        for receipt in self._receipts:
            if receipt.receipt_number == receipt_number:
                return receipt
        return None

    def find_product(self, code: str) -> Product | None:
        for product in self._products:
            if product.code == code:
                return product
        return None

    def restore(
        self,
        *,
        shop_settings: CompanyInfo,
        draft: Receipt | None,
        products: Sequence[Product],
        receipts: Sequence[Receipt],
        movements: Sequence[StockMovement],
    ) -> None:
        """Replace every collection from a loaded snapshot. Does not persist."""
        self._shop_settings = shop_settings
        self._draft = draft
        self._products = tuple(products)
        self._receipts = tuple(receipts)
        self._movements = tuple(movements)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append_receipt(self, receipt: Receipt) -> None:
        """Insert or replace by receipt_number; the posted receipt goes first."""
        _require_receipt_number(receipt)
        self._receipts = _with_receipt(self._receipts, receipt)
        self._persist()

    def append_movements(self, movements: Sequence[StockMovement]) -> None:
        """
        Prepend a batch of movements (recency-first).

        Always takes a sequence; single movements are passed as [movement].
        """
        batch = tuple(movements)
        if not batch:
            return
        self._movements = batch + self._movements
        self._persist()

    def post_receipt_with_movements(
        self,
        receipt: Receipt,
        movements: Sequence[StockMovement],
        *,
        replace_sales: bool = False,
    ) -> None:
        """
        Write a receipt and its SALE movements as one visible update.

        With replace_sales=True, SALE movements previously generated for the
        same receipt number are dropped in the same swap, so an edited receipt
        never decrements stock twice.
        """
        _require_receipt_number(receipt)
        existing = self._movements
        if replace_sales:
            existing = tuple(
                m for m in existing
                if not (m.type == MOVEMENT_SALE and m.reference == receipt.receipt_number)
            )
        receipts = _with_receipt(self._receipts, receipt)
        movements_after = tuple(movements) + existing

        self._receipts = receipts
        self._movements = movements_after
        self._persist()

    def correct_linkage(self, doc_type: str, primary_id: str, new_secondary_id: str) -> int:
        """
        Overwrite the secondary id of a logical document.

        RECEIPT -> related_invoice_no of the receipt with that number.
        TRANSFER_IN / TRANSFER_OUT -> associated_wtn of every movement with
        that (type, reference), since one document spans one row per line.

        Returns the number of records updated.
        """
        if doc_type not in LINKABLE_DOC_TYPES:
            raise ValidationError(f"cannot link documents of type {doc_type!r}")

        secondary = (new_secondary_id or "").strip()
        touched = 0

        if doc_type == DOC_RECEIPT:
            updated_receipts = []
            for receipt in self._receipts:
                if receipt.receipt_number == primary_id:
                    receipt = receipt.with_changes(related_invoice_no=secondary)
                    touched += 1
                updated_receipts.append(receipt)
            if touched:
                self._receipts = tuple(updated_receipts)
        else:
            updated_movements = []
            for movement in self._movements:
                if movement.type == doc_type and movement.reference == primary_id:
                    movement = replace(movement, associated_wtn=secondary)
                    touched += 1
                updated_movements.append(movement)
            if touched:
                self._movements = tuple(updated_movements)

        if touched:
            self._persist()
        else:
            logger.info("Linkage correction matched nothing: %s %s", doc_type, primary_id)
        return touched

    def replace_catalog(self, products: Sequence[Product]) -> None:
        self._products = tuple(products)
        self._persist()

    def import_catalog(
        self,
        products: Sequence[Product],
        opening_movements: Sequence[StockMovement],
        *,
        mode: str = CATALOG_MODE_REPLACE,
    ) -> None:
        """Apply a catalog change and its opening-stock batch together."""
        if mode not in CATALOG_MODES:
            raise ValidationError(f"mode must be one of {', '.join(CATALOG_MODES)}")

        if mode == CATALOG_MODE_REPLACE:
            catalog = tuple(products)
        else:
            catalog = _merged_catalog(self._products, products)
        movements_after = tuple(opening_movements) + self._movements

        self._products = catalog
        self._movements = movements_after
        self._persist()

    def set_shop_settings(self, info: CompanyInfo) -> None:
        self._shop_settings = info
        self._persist()

    def set_draft(self, draft: Receipt | None) -> None:
        self._draft = draft
        self._persist()

    # ------------------------------------------------------------------

    def _persist(self) -> None:
        if self._persister is None:
            return
        try:
            self._persister(self)
        except Exception as exc:
            # Memory stays authoritative for the rest of the session.
            logger.warning("Ledger snapshot failed; unsaved changes will be lost on restart", exc_info=True)
            self.last_persist_error = str(exc) or exc.__class__.__name__
        else:
            self.last_persist_error = None


def _require_receipt_number(receipt: Receipt) -> None:
    if not (receipt.receipt_number or "").strip():
        raise ValidationError("receipt_number is required")


def _with_receipt(receipts: tuple[Receipt, ...], receipt: Receipt) -> tuple[Receipt, ...]:
    others = tuple(r for r in receipts if r.receipt_number != receipt.receipt_number)
    return (receipt,) + others


def _merged_catalog(current: tuple[Product, ...], incoming: Sequence[Product]) -> tuple[Product, ...]:
    existing_codes = {p.code for p in current}
    distinct_new = tuple(p for p in incoming if p.code not in existing_codes)
    return current + distinct_new
