# Overview: Flask API routes for shop identity and branch selection.

from flask import Blueprint, request, current_app

from ..extensions import ledger
from ..decorators import reports_persist_warning
from ..services import settings_service
from ..validation import ValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/shop")
def get_shop_settings_route():
    return {"shop": ledger.store.shop_settings.to_dict()}, 200


@settings_bp.put("/shop")
@reports_persist_warning
def update_shop_settings_route():
    payload = request.get_json(silent=True) or {}
    try:
        info = settings_service.update_shop_settings(ledger.store, payload)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to update shop settings")
        return {"error": "Internal server error"}, 500
    return {"shop": info.to_dict()}, 200


@settings_bp.get("/branches")
def list_branches_route():
    return {"branches": settings_service.list_branches()}, 200


@settings_bp.post("/branch")
@reports_persist_warning
def select_branch_route():
    payload = request.get_json(silent=True) or {}
    shop_name = payload.get("shop_name")
    if not shop_name:
        return {"error": "shop_name required"}, 400
    try:
        info = settings_service.select_branch(ledger.store, shop_name)
    except ValidationError as e:
        return {"error": str(e)}, 400
    return {"shop": info.to_dict()}, 200
