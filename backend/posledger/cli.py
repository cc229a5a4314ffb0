# Overview: Flask CLI command groups for bootstrap, stock inspection, imports and exports.

# backend/posledger/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create the snapshot table (idempotent). Use `flask db upgrade` for migrations.
# - python -m flask system reset-snapshots --yes
#   DEV/TEST only: delete all saved snapshots (catalog, history, movements).
#
# Ledger inspection:
# - python -m flask ledger balance A1
#   On-hand balance and movement history for one SKU.
# - python -m flask ledger tracker --missing --search DN-
#   Voucher tracker rows (optionally only missing links / filtered).
#
# Catalog & stock files:
# - python -m flask ledger import catalog.xlsx --mode append
#   Import a .csv/.xlsx catalog; rows with a quantity become opening stock.
# - python -m flask ledger export-stock stock.xlsx
#   Write non-zero stock balances to an .xlsx file.

import click
from flask.cli import with_appcontext

from .extensions import db, ledger
from .models import StateSnapshot
from .services import balance_service, import_service, reconciliation_service, report_service
from .services.event_store import CATALOG_MODES, CATALOG_MODE_REPLACE
from .services.import_service import CatalogImportError
from .services.report_service import ReportError
from .time_utils import format_display_date


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create the snapshot table if it does not exist."""
    db.create_all()
    click.echo("PASS Snapshot table ready")


@system_group.command('reset-snapshots')
@click.option('--yes', is_flag=True, help='Confirm deletion of all saved ledger state')
@with_appcontext
def reset_snapshots(yes):
    """DEV/TEST only: delete every saved snapshot."""
    if not yes:
        click.echo("FAIL Refusing to delete snapshots without --yes")
        raise SystemExit(1)
    deleted = db.session.query(StateSnapshot).delete()
    db.session.commit()
    ledger.reset()
    click.echo(f"PASS Deleted {deleted} snapshots")


@click.group('ledger')
def ledger_group():
    """Stock, linkage and catalog commands."""


@ledger_group.command('balance')
@click.argument('sku')
@with_appcontext
def show_balance(sku):
    """Show the on-hand balance and history for one SKU."""
    store = ledger.store
    product = store.find_product(sku)
    balance = balance_service.on_hand_balance(store.movements, sku)
    click.echo(f"{sku} {product.name if product else '(not cataloged)'}: {balance}")
    for move in balance_service.movement_history(store.movements, sku):
        click.echo(
            f"  {format_display_date(move.date)} {move.type:<12} {move.reference:<16} "
            f"{move.quantity:>6} {move.location}"
        )


@ledger_group.command('tracker')
@click.option('--missing', is_flag=True, help='Only documents with a missing link')
@click.option('--search', default='', help='Substring of primary id, secondary id or entity')
@with_appcontext
def show_tracker(missing, search):
    """List voucher tracker rows, newest first."""
    store = ledger.store
    rows = reconciliation_service.build_tracker_rows(
        store.receipts, store.movements, show_only_missing=missing, search_query=search
    )
    for row in rows:
        click.echo(
            f"{format_display_date(row.date)} {row.type_label:<12} {row.primary_id:<16} "
            f"{row.secondary_id or '-':<16} {row.status_label:<16} {row.entity}"
        )
    stats = reconciliation_service.tracker_stats(rows)
    click.echo(f"\n{stats['total']} documents, {stats['missing']} missing, {stats['linked']} linked")


@ledger_group.command('import')
@click.argument('path', type=click.Path(exists=True, dir_okay=False))
@click.option('--mode', type=click.Choice(CATALOG_MODES), default=CATALOG_MODE_REPLACE)
@with_appcontext
def import_catalog(path, mode):
    """Import a .csv or .xlsx catalog file."""
    with open(path, "rb") as fh:
        content = fh.read()
    try:
        summary = import_service.import_catalog_file(ledger.store, path, content, mode=mode)
    except CatalogImportError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    click.echo(f"PASS {summary.to_dict()['message']}")
    if summary.skipped_rows:
        click.echo(f"WARN {summary.skipped_rows} rows skipped")
    if ledger.store.last_persist_error:
        click.echo(f"WARN Not saved: {ledger.store.last_persist_error}")


@ledger_group.command('export-stock')
@click.argument('path', type=click.Path(dir_okay=False, writable=True))
@with_appcontext
def export_stock(path):
    """Write non-zero stock balances to an .xlsx file."""
    store = ledger.store
    rows = balance_service.catalog_stock_report(store.products, store.movements)
    try:
        content = report_service.stock_report_workbook(rows)
    except ReportError as e:
        click.echo(f"FAIL {e}")
        raise SystemExit(1)
    with open(path, "wb") as fh:
        fh.write(content)
    click.echo(f"PASS Wrote {len(rows)} rows to {path}")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(ledger_group)
