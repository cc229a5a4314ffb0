# Overview: Shop identity, branch presets and the branch switch applied to the open document.

from __future__ import annotations

from typing import Any

from ..records import CompanyInfo
from ..validation import ValidationError, to_text
from .event_store import LedgerStore


CORPORATE_IDENTITY = {
    "name": "ab Desai & Co. Ltd",
    "tax_id": "VAT20903424",
    "brn": "P07005295",
    "email": "info@abdesai.mu",
}

BRANCH_PRESETS = (
    {"shop_name": "PORT-LOUIS", "address": "9, Corderie St., Port Louis, Mauritius", "phone": "211 4114"},
    {"shop_name": "ROSE-HILL", "address": "Royal Road, Rose Hill, Mauritius", "phone": "464 1234"},
    {"shop_name": "TRIBECCA", "address": "Tribecca Central, Terre Rouge-Verdun Link Rd, Mauritius", "phone": "201 0001"},
    {"shop_name": "TRIANON", "address": "Trianon Shopping Park, Quatre Bornes, Mauritius", "phone": "467 5555"},
    {"shop_name": "ROSE-BELLE", "address": "Plaisance Shopping Mall, Rose Belle, Mauritius", "phone": "627 8888"},
    {"shop_name": "CASCAVELLE", "address": "Cascavelle Shopping Village, Flic en Flac Road, Mauritius", "phone": "489 7777"},
    {"shop_name": "BAGATELLE", "address": "Bagatelle Mall of Mauritius, Moka, Mauritius", "phone": "468 8888"},
    {"shop_name": "MAIN BRANCH", "address": "Head Office, Port Louis, Mauritius", "phone": "211 4114"},
)

DEFAULT_BRANCH = "CASCAVELLE"


def branch_info(shop_name: str) -> CompanyInfo:
    for preset in BRANCH_PRESETS:
        if preset["shop_name"] == shop_name:
            return CompanyInfo(**CORPORATE_IDENTITY, **preset)
    raise ValidationError(f"unknown branch: {shop_name}")


def default_sender() -> CompanyInfo:
    return branch_info(DEFAULT_BRANCH)


def list_branches() -> list[dict]:
    return [branch_info(p["shop_name"]).to_dict() for p in BRANCH_PRESETS]


def _apply_sender(store: LedgerStore, info: CompanyInfo) -> None:
    """Shop settings always flow into the open document's sender and location."""
    store.set_shop_settings(info)
    if store.draft is not None:
        store.set_draft(
            store.draft.with_changes(sender=info, location=(info.shop_name or "").lower())
        )


def select_branch(store: LedgerStore, shop_name: str) -> CompanyInfo:
    info = branch_info(to_text(shop_name).upper())
    _apply_sender(store, info)
    return info


def update_shop_settings(store: LedgerStore, payload: dict[str, Any]) -> CompanyInfo:
    """Partial update of the shop identity; unknown keys are ignored."""
    current = store.shop_settings.to_dict()
    for key in current:
        if key in payload:
            current[key] = to_text(payload[key])
    info = CompanyInfo.from_dict(current)
    if not info.name:
        raise ValidationError("name is required")
    _apply_sender(store, info)
    return info
