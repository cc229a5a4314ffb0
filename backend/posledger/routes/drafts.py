# Overview: Flask API routes for the in-progress document and description polishing.

from flask import Blueprint, request, current_app

from ..extensions import ledger
from ..decorators import reports_persist_warning
from ..services import polish_service
from ..services.posting_service import new_draft, receipt_from_payload
from ..validation import ValidationError


drafts_bp = Blueprint("drafts", __name__, url_prefix="/api/draft")


@drafts_bp.get("")
def get_draft_route():
    store = ledger.store
    draft = store.draft or new_draft(
        store.shop_settings, tax_rate=current_app.config.get("DEFAULT_TAX_RATE", 15.0)
    )
    return {"draft": draft.to_dict()}, 200


@drafts_bp.put("")
@reports_persist_warning
def save_draft_route():
    """Replace the open document. Sender always follows the shop settings."""
    payload = request.get_json(silent=True) or {}
    store = ledger.store
    try:
        draft = receipt_from_payload(payload).with_changes(sender=store.shop_settings)
    except ValidationError as e:
        return {"error": str(e)}, 400
    store.set_draft(draft)
    return {"draft": draft.to_dict()}, 200


@drafts_bp.post("/items/<item_id>/polish")
@reports_persist_warning
def polish_item_route(item_id: str):
    """
    Reword one line item description.

    Never fails because of the polishing service: on any failure the
    original description is kept and returned.
    """
    store = ledger.store
    backend = polish_service.backend_from_config(current_app.config)
    outcome = polish_service.polish_item(store, item_id, backend)
    if outcome is None:
        return {"error": "item not found or has no description"}, 404
    return {"polish": outcome.to_dict()}, 200
