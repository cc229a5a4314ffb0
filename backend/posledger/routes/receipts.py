# Overview: Flask API routes for posting, listing and recalling receipts.

from flask import Blueprint, request, current_app

from ..extensions import ledger
from ..decorators import reports_persist_warning
from ..services import posting_service
from ..services.balance_service import receipt_totals
from ..services.posting_service import PostingError
from ..validation import ConfigurationError, ValidationError


receipts_bp = Blueprint("receipts", __name__, url_prefix="/api/receipts")


@receipts_bp.post("")
@reports_persist_warning
def post_receipt_route():
    """
    Post a receipt: history entry plus one SALE movement per line.

    Body: the receipt (camelCase keys) and an optional "editing" flag. When
    editing, the earlier version and its SALE movements are replaced.
    """
    payload = request.get_json(silent=True) or {}
    editing = bool(payload.get("editing", False))
    try:
        receipt = posting_service.receipt_from_payload(payload)
        result = posting_service.post_receipt(ledger.store, receipt, editing=editing)
    except PostingError as e:
        return {"error": str(e), "details": e.details}, 400
    except (ValidationError, ConfigurationError) as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to post receipt")
        return {"error": "Internal server error"}, 500

    return {
        **result.to_dict(),
        "totals": receipt_totals(result.receipt).to_dict(),
        "message": "Invoice recorded and stock levels updated.",
    }, 201


@receipts_bp.get("")
def list_receipts_route():
    limit = request.args.get("limit", default=100, type=int)
    limit = max(1, min(limit, 1000))
    receipts = ledger.store.receipts[:limit]
    return {"receipts": [r.to_dict() for r in receipts], "count": len(ledger.store.receipts)}, 200


@receipts_bp.get("/recall")
def recall_receipt_route():
    query = request.args.get("q", "")
    receipt = posting_service.recall_receipt(ledger.store, query)
    if receipt is None:
        return {"error": "No receipt matches that number"}, 404
    return {"receipt": receipt.to_dict()}, 200


@receipts_bp.get("/<receipt_number>/totals")
def receipt_totals_route(receipt_number: str):
    receipt = ledger.store.find_receipt(receipt_number)
    if receipt is None:
        return {"error": "Receipt not found"}, 404
    try:
        totals = receipt_totals(receipt)
    except ConfigurationError as e:
        return {"error": str(e)}, 400
    return {"receipt_number": receipt_number, "totals": totals.to_dict()}, 200
