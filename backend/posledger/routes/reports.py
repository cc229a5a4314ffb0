# Overview: Flask API routes for the sales log and the daily reconciliation sheet.

from datetime import date, timedelta

from flask import Blueprint, request

from ..extensions import ledger
from ..services import report_service
from ..time_utils import parse_iso_date
from ..validation import ConfigurationError


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")

DEFAULT_SALES_WINDOW_DAYS = 30


@reports_bp.get("/sales")
def sales_analysis_route():
    """Defaults to the last 30 days, like the sales log screen."""
    try:
        to_date = parse_iso_date(request.args.get("to")) or date.today().isoformat()
        from_date = parse_iso_date(request.args.get("from")) or (
            date.fromisoformat(to_date) - timedelta(days=DEFAULT_SALES_WINDOW_DAYS)
        ).isoformat()
    except ValueError:
        return {"error": "from and to must be ISO-8601 dates"}, 400

    try:
        report = report_service.sales_analysis(
            ledger.store.receipts,
            from_date=from_date,
            to_date=to_date,
            search_query=request.args.get("q", ""),
        )
    except ConfigurationError as e:
        return {"error": str(e)}, 400
    return {"from": from_date, "to": to_date, **report}, 200


@reports_bp.get("/reconciliation")
def reconciliation_sheet_route():
    """?date= restricts the sheet to one business day."""
    receipts = ledger.store.receipts
    try:
        day = parse_iso_date(request.args.get("date"))
    except ValueError:
        return {"error": "date must be an ISO-8601 date"}, 400
    if day:
        receipts = tuple(r for r in receipts if r.date == day)

    try:
        sheet = report_service.reconciliation_sheet(receipts)
    except ConfigurationError as e:
        return {"error": str(e)}, 400
    return {"date": day, **sheet}, 200
