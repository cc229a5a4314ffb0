"""
Sales analysis, reconciliation sheet and stock export tests.
"""

import io

import pytest
from openpyxl import load_workbook

from conftest import make_receipt
from posledger.services import report_service
from posledger.services.balance_service import StockReportRow
from posledger.services.report_service import ReportError


def test_sales_analysis_lines_and_totals():
    receipts = [
        make_receipt("101", date="2026-10-10", items=[("A1", "Widget", 2, 115.0), ("B2", "Gadget", 1, 46.0)]),
        make_receipt("100", date="2026-10-01"),
        make_receipt("099", date="2026-09-01"),
    ]
    report = report_service.sales_analysis(receipts, from_date="2026-10-01", to_date="2026-10-31")

    assert [row["invNo"] for row in report["rows"]] == ["101", "101", "100"]
    first = report["rows"][0]
    assert first["unitEx"] == 100.0
    assert first["unitIn"] == 115.0
    assert first["vat"] == 30.0
    assert first["total"] == 230.0
    assert report["totals"] == {"qty": 5, "total": 506.0, "vat": 66.0}


def test_sales_analysis_search():
    receipts = [
        make_receipt("100", customer="Acme Ltd"),
        make_receipt("101", items=[("C3", "Blue gizmo", 1, 10.0)]),
    ]
    assert {r["invNo"] for r in report_service.sales_analysis(receipts, search_query="acme")["rows"]} == {"100"}
    assert {r["invNo"] for r in report_service.sales_analysis(receipts, search_query="GIZMO")["rows"]} == {"101"}


def test_reconciliation_sheet_buckets():
    receipts = [
        make_receipt("100", payment_method="Cash"),
        make_receipt("101", payment_method="Juice"),
        make_receipt("102", payment_method="Cheque"),
    ]
    sheet = report_service.reconciliation_sheet(receipts)

    rows = {row["invNo"]: row for row in sheet["rows"]}
    assert rows["100"]["cash"] == 230.0
    assert rows["101"]["bank"] == 230.0
    assert rows["101"]["cash"] == 0.0
    # Cheques are not bucketed, but still count towards the total
    assert all(rows["102"][b] == 0.0 for b in report_service.PAYMENT_BUCKETS)
    assert sheet["totals"]["total"] == 690.0
    assert sheet["totals"]["net"] == 600.0
    assert sheet["totals"]["cash"] == 230.0
    assert sheet["totals"]["qty"] == 6


def test_stock_workbook():
    content = report_service.stock_report_workbook([
        StockReportRow(code="A1", name="Widget", balance=5),
        StockReportRow(code="C3", name="Gizmo", balance=-2),
    ])
    wb = load_workbook(io.BytesIO(content))
    ws = wb["Inventory Master"]
    values = list(ws.values)

    assert values[0] == ("SKU Code", "Description", "Stock Balance")
    assert values[1:] == [("A1", "Widget", 5), ("C3", "Gizmo", -2)]


def test_stock_workbook_refuses_empty_report():
    with pytest.raises(ReportError):
        report_service.stock_report_workbook([])
