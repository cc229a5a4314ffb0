# Overview: Flask API routes for stock movements, balances, catalog import and export.

from flask import Blueprint, request, current_app, send_file
import io

from ..extensions import ledger
from ..decorators import reports_persist_warning
from ..services import balance_service, import_service, movement_service, report_service
from ..services.event_store import CATALOG_MODE_REPLACE
from ..services.import_service import CatalogImportError
from ..services.movement_service import ManualMovementEntry
from ..services.report_service import ReportError
from ..time_utils import today_iso
from ..validation import ValidationError


stock_bp = Blueprint("stock", __name__, url_prefix="/api")

XLSX_MIMETYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@stock_bp.get("/stock/movements")
def list_movements_route():
    """Movement log, newest first; ?sku= narrows to one SKU sorted by date."""
    store = ledger.store
    sku = request.args.get("sku")
    if sku:
        movements = balance_service.movement_history(store.movements, sku)
    else:
        limit = request.args.get("limit", default=200, type=int)
        movements = store.movements[: max(1, min(limit, 5000))]
    return {"movements": [m.to_dict() for m in movements]}, 200


@stock_bp.post("/stock/movements")
@reports_persist_warning
def create_movement_route():
    """
    Manual stock entry.

    Body: {"type": "TRANSFER_IN"|"TRANSFER_OUT", "sku", "qty", "ref", "wtn", "loc"}
    """
    payload = request.get_json(silent=True) or {}
    store = ledger.store
    try:
        entry = ManualMovementEntry.from_payload(payload)
        movement = movement_service.record_manual_movement(store, entry)
    except ValidationError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to record stock movement")
        return {"error": "Internal server error"}, 500

    return {
        "movement": movement.to_dict(),
        "balance": balance_service.on_hand_balance(store.movements, movement.item_code),
    }, 201


@stock_bp.get("/stock/<sku>/balance")
def stock_balance_route(sku: str):
    store = ledger.store
    product = store.find_product(sku)
    history = balance_service.movement_history(store.movements, sku)
    return {
        "sku": sku,
        "product": product.to_dict() if product else None,
        "balance": balance_service.on_hand_balance(store.movements, sku),
        "history": [m.to_dict() for m in history],
    }, 200


@stock_bp.get("/stock/report")
def stock_report_route():
    store = ledger.store
    rows = balance_service.catalog_stock_report(store.products, store.movements)
    return {"rows": [r.to_dict() for r in rows]}, 200


@stock_bp.get("/stock/report.xlsx")
def stock_report_export_route():
    store = ledger.store
    if not store.products:
        return {"error": "The product catalog is empty. Nothing to export."}, 400

    rows = balance_service.catalog_stock_report(store.products, store.movements)
    try:
        content = report_service.stock_report_workbook(rows)
    except ReportError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Failed to generate stock report")
        return {"error": "Failed to generate Excel report."}, 500

    return send_file(
        io.BytesIO(content),
        mimetype=XLSX_MIMETYPE,
        as_attachment=True,
        download_name=f"Stock_Report_{today_iso()}.xlsx",
    )


@stock_bp.post("/stock/import")
@reports_persist_warning
def import_catalog_route():
    """
    Master catalog import from an uploaded .csv or .xlsx file.

    Form fields: file (required), mode = replace | append (default replace).
    """
    if "file" not in request.files:
        return {"error": "file is required"}, 400

    file = request.files["file"]
    mode = request.form.get("mode", CATALOG_MODE_REPLACE)
    try:
        summary = import_service.import_catalog_file(
            ledger.store,
            file.filename or "",
            file.read(),
            mode=mode,
        )
    except CatalogImportError as e:
        return {"error": str(e)}, 400
    except Exception:
        current_app.logger.exception("Catalog import failed")
        return {"error": "Failed to parse file. Please check if the file format is valid."}, 500

    return {"import": summary.to_dict()}, 201


@stock_bp.get("/products")
def search_products_route():
    query = request.args.get("q", "")
    products = movement_service.search_products(ledger.store.products, query)
    return {"products": [p.to_dict() for p in products]}, 200
