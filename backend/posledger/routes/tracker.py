# Overview: Flask API routes for the voucher tracker and linkage corrections.

from flask import Blueprint, request, current_app

from ..extensions import ledger
from ..decorators import reports_persist_warning
from ..services import reconciliation_service
from ..validation import ValidationError


tracker_bp = Blueprint("tracker", __name__, url_prefix="/api/tracker")


def _flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}


@tracker_bp.get("")
def tracker_route():
    store = ledger.store
    rows = reconciliation_service.build_tracker_rows(
        store.receipts,
        store.movements,
        show_only_missing=_flag(request.args.get("missing")),
        search_query=request.args.get("q", ""),
    )
    return {
        "rows": [row.to_dict() for row in rows],
        "stats": reconciliation_service.tracker_stats(rows),
    }, 200


@tracker_bp.put("/linkage")
@reports_persist_warning
def correct_linkage_route():
    """
    Set the secondary id of a document.

    Body: {"type": "RECEIPT"|"TRANSFER_IN"|"TRANSFER_OUT", "primary_id", "secondary_id"}
    For transfers, every movement row of the document is updated.
    """
    payload = request.get_json(silent=True) or {}
    doc_type = payload.get("type")
    primary_id = payload.get("primary_id")
    if not doc_type or not primary_id:
        return {"error": "type and primary_id required"}, 400

    try:
        updated = ledger.store.correct_linkage(
            doc_type, str(primary_id), str(payload.get("secondary_id") or "")
        )
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to correct linkage")
        return {"error": "Internal server error"}, 500

    if not updated:
        return {"error": "No document matches that type and id"}, 404
    return {"updated": updated}, 200
