"""
CLI command tests using Flask's CLI runner.
"""

from posledger.extensions import ledger
from posledger.records import Product


def test_import_balance_and_export(app, db_session, tmp_path):
    runner = app.test_cli_runner()
    catalog = tmp_path / "catalog.csv"
    catalog.write_text("Code,Name,Price,Qty\nA1,Widget,115,7\n", encoding="utf-8")

    result = runner.invoke(args=["ledger", "import", str(catalog), "--mode", "replace"])
    assert result.exit_code == 0
    assert "1 items cataloged" in result.output

    result = runner.invoke(args=["ledger", "balance", "A1"])
    assert "A1 Widget: 7" in result.output
    assert "OPENING STOCK" in result.output

    target = tmp_path / "stock.xlsx"
    result = runner.invoke(args=["ledger", "export-stock", str(target)])
    assert result.exit_code == 0
    assert target.exists()


def test_export_with_no_stock_fails(app, db_session, tmp_path):
    ledger.store.replace_catalog([Product(code="A1", name="Widget")])
    result = app.test_cli_runner().invoke(args=["ledger", "export-stock", str(tmp_path / "x.xlsx")])
    assert result.exit_code == 1
    assert "Export cancelled" in result.output


def test_tracker_lists_missing(app, db_session):
    runner = app.test_cli_runner()
    result = runner.invoke(args=["ledger", "tracker", "--missing"])
    assert result.exit_code == 0
    assert "0 documents, 0 missing, 0 linked" in result.output


def test_reset_requires_confirmation(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "reset-snapshots"])
    assert result.exit_code == 1
    result = app.test_cli_runner().invoke(args=["system", "reset-snapshots", "--yes"])
    assert result.exit_code == 0
    assert "PASS Deleted" in result.output
