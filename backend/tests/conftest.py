"""
Pytest fixtures for posledger backend tests.

Provides an application on in-memory SQLite, a test client, and a fresh
ledger store per test.
"""

import pytest
from posledger import create_app
from posledger.extensions import db, ledger
from posledger.records import (
    MOVEMENT_TRANSFER_IN,
    MOVEMENT_TRANSFER_OUT,
    Product,
    Receipt,
    ReceiptItem,
    StockMovement,
    new_record_id,
)
from posledger.services.event_store import LedgerStore


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'POLISH_API_URL': '',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Clear saved snapshots and the cached store for each test."""
    with app.app_context():
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        ledger.reset()

        yield db.session

        db.session.rollback()
        ledger.reset()


@pytest.fixture(scope='function')
def app_store(db_session):
    """The application's store, hydrated from the (empty) snapshot table."""
    return ledger.store


@pytest.fixture
def store():
    """A standalone store with no persistence."""
    return LedgerStore()


def make_movement(
    *,
    type=MOVEMENT_TRANSFER_IN,
    sku="A1",
    qty=1,
    ref="REF-1",
    wtn="",
    date="2026-10-01",
    location="MAIN",
    name=None,
) -> StockMovement:
    """Helper to build a movement with sensible defaults."""
    return StockMovement(
        id=new_record_id(),
        date=date,
        item_code=sku,
        item_name=name or f"Item {sku}",
        type=type,
        reference=ref,
        associated_wtn=wtn,
        quantity=qty,
        location=location,
    )


def make_receipt(
    number="100",
    *,
    items=None,
    tax_rate=15.0,
    customer="Jane Client",
    date="2026-10-01",
    payment_method="Cash",
    related_invoice_no="",
) -> Receipt:
    """Helper to build a receipt; default is the 2 x 115 @ 15% example."""
    if items is None:
        items = [("A1", "Widget", 2, 115.0)]
    return Receipt(
        receipt_number=number,
        date=date,
        items=tuple(
            ReceiptItem(id=f"item-{i}", code=code, description=desc, quantity=qty, rate=rate)
            for i, (code, desc, qty, rate) in enumerate(items, start=1)
        ),
        tax_rate=tax_rate,
        payment_method=payment_method,
        received_from=customer,
        related_invoice_no=related_invoice_no,
    )


@pytest.fixture
def dn_001_movements():
    """Delivery note DN-001 spread over three SKUs, no WTN yet."""
    return [
        make_movement(type=MOVEMENT_TRANSFER_OUT, sku=sku, qty=qty, ref="DN-001", location="TO ROSE-HILL")
        for sku, qty in (("A1", 2), ("B2", 5), ("C3", 1))
    ]


@pytest.fixture
def catalog():
    return [
        Product(code="A1", name="Widget", price=115.0),
        Product(code="B2", name="Gadget", price=40.0),
        Product(code="C3", name="Gizmo", price=9.5),
    ]
