# Overview: Persistence collaborator; mirrors the ledger store into versioned snapshot rows.

from __future__ import annotations

import logging
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import StateSnapshot
from ..records import CompanyInfo, Product, Receipt, StockMovement
from .event_store import LedgerStore

"""
Snapshot layout (authoritative)

Five independent named snapshots, each a JSON value tagged with a format
version:

    shop_settings -> shop_settings_v3   (CompanyInfo)
    draft         -> last_receipt_v5    (in-progress Receipt)
    products      -> inventory_v1       (Product list)
    receipts      -> history_v1         (Receipt list, newest first)
    movements     -> movements_v1       (StockMovement list, newest first)

On load, a missing row, a version mismatch or an unreadable payload falls
back to that collection's default. The other collections still load.
"""

logger = logging.getLogger(__name__)

SNAPSHOT_VERSIONS = {
    "shop_settings": "shop_settings_v3",
    "draft": "last_receipt_v5",
    "products": "inventory_v1",
    "receipts": "history_v1",
    "movements": "movements_v1",
}


def serialize_store(store: LedgerStore) -> dict[str, Any]:
    return {
        "shop_settings": store.shop_settings.to_dict(),
        "draft": store.draft.to_dict() if store.draft is not None else None,
        "products": [p.to_dict() for p in store.products],
        "receipts": [r.to_dict() for r in store.receipts],
        "movements": [m.to_dict() for m in store.movements],
    }


class SnapshotPersister:
    def __init__(self, *, default_tax_rate: float = 15.0):
        self.default_tax_rate = default_tax_rate

    def save(self, store: LedgerStore) -> None:
        """Write every snapshot in one commit. Raises on failure (after rollback)."""
        payloads = serialize_store(store)
        try:
            existing = {
                row.key: row
                for row in db.session.query(StateSnapshot)
                .filter(StateSnapshot.key.in_(list(SNAPSHOT_VERSIONS)))
                .all()
            }
            for key, version in SNAPSHOT_VERSIONS.items():
                row = existing.get(key)
                if row is None:
                    row = StateSnapshot(key=key, version=version)
                    db.session.add(row)
                row.version = version
                row.payload = payloads[key]
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise

    def load_into(self, store: LedgerStore) -> None:
        try:
            rows = {row.key: row for row in db.session.query(StateSnapshot).all()}
        except SQLAlchemyError:
            # Start from defaults; the first successful save recreates the rows.
            db.session.rollback()
            logger.warning("Could not read ledger snapshots; starting from defaults", exc_info=True)
            rows = {}

        from .posting_service import new_draft
        from .settings_service import default_sender

        shop_settings = self._read(rows, "shop_settings", CompanyInfo.from_dict, default_sender)
        draft = self._read(rows, "draft", Receipt.from_dict, lambda: None)
        if draft is None:
            draft = new_draft(shop_settings, tax_rate=self.default_tax_rate)
        else:
            draft = draft.with_changes(sender=shop_settings)

        store.restore(
            shop_settings=shop_settings,
            draft=draft,
            products=self._read(rows, "products", _list_of(Product.from_dict), list),
            receipts=self._read(rows, "receipts", _list_of(Receipt.from_dict), list),
            movements=self._read(rows, "movements", _list_of(StockMovement.from_dict), list),
        )

    def _read(self, rows: dict, key: str, parse: Callable[[Any], Any], default: Callable[[], Any]):
        row = rows.get(key)
        expected = SNAPSHOT_VERSIONS[key]
        if row is None or row.payload is None:
            return default()
        if row.version != expected:
            logger.warning(
                "Snapshot %s has version %s, expected %s; using defaults",
                key, row.version, expected,
            )
            return default()
        try:
            return parse(row.payload)
        except (TypeError, ValueError, AttributeError):
            logger.warning("Snapshot %s is unreadable; using defaults", key, exc_info=True)
            return default()


def _list_of(parse: Callable[[dict], Any]) -> Callable[[Any], list]:
    def _parse(payload: Any) -> list:
        if not isinstance(payload, list):
            raise TypeError("expected a list")
        return [parse(item) for item in payload]
    return _parse
