import unittest
from flask import Flask

from posledger.extensions import db
from posledger.models import StateSnapshot
from posledger.records import CompanyInfo, MOVEMENT_TRANSFER_OUT, Product, Receipt, ReceiptItem, StockMovement
from posledger.services.event_store import LedgerStore
from posledger.services.snapshot_service import SNAPSHOT_VERSIONS, SnapshotPersister


class SnapshotServiceTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = Flask(__name__)
        cls.app.config.update(
            SECRET_KEY="test",
            SQLALCHEMY_DATABASE_URI="sqlite:///:memory:",
            SQLALCHEMY_TRACK_MODIFICATIONS=False,
            TESTING=True,
        )
        db.init_app(cls.app)
        cls.ctx = cls.app.app_context()
        cls.ctx.push()
        from posledger import models  # noqa: F401
        db.create_all()

    @classmethod
    def tearDownClass(cls):
        db.session.remove()
        db.drop_all()
        cls.ctx.pop()

    def setUp(self):
        db.session.query(StateSnapshot).delete()
        db.session.commit()
        self.persister = SnapshotPersister()

    def _populated_store(self):
        store = LedgerStore(persister=self.persister.save)
        store.set_shop_settings(CompanyInfo(name="ab Desai & Co. Ltd", shop_name="TRIANON"))
        store.replace_catalog([Product(code="A1", name="Widget", price=115.0)])
        store.append_receipt(Receipt(
            receipt_number="100",
            date="2026-10-19",
            items=(ReceiptItem(id="i1", code="A1", description="Widget", quantity=2, rate=115.0),),
            received_from="Jane Client",
        ))
        store.append_movements([StockMovement(
            id="m1", date="2026-10-19", item_code="A1", item_name="Widget",
            type=MOVEMENT_TRANSFER_OUT, reference="DN-001", quantity=2,
        )])
        return store

    def _load(self):
        store = LedgerStore()
        self.persister.load_into(store)
        return store

    def test_save_writes_every_snapshot_with_its_version(self):
        self._populated_store()
        rows = {row.key: row.version for row in db.session.query(StateSnapshot).all()}
        self.assertEqual(rows, SNAPSHOT_VERSIONS)

    def test_round_trip_restores_collections(self):
        original = self._populated_store()
        loaded = self._load()

        self.assertEqual(loaded.products, original.products)
        self.assertEqual(loaded.receipts, original.receipts)
        self.assertEqual(loaded.movements, original.movements)
        self.assertEqual(loaded.shop_settings.shop_name, "TRIANON")

    def test_empty_table_gives_defaults(self):
        store = self._load()
        self.assertEqual(store.products, ())
        self.assertEqual(store.receipts, ())
        self.assertEqual(store.shop_settings.shop_name, "CASCAVELLE")
        self.assertIsNotNone(store.draft)
        self.assertEqual(store.draft.sender, store.shop_settings)

    def test_version_mismatch_falls_back_for_that_collection_only(self):
        self._populated_store()
        row = db.session.query(StateSnapshot).filter_by(key="products").one()
        row.version = "inventory_v0"
        db.session.commit()

        store = self._load()
        self.assertEqual(store.products, ())
        self.assertEqual(len(store.receipts), 1)
        self.assertEqual(len(store.movements), 1)

    def test_unreadable_payload_falls_back(self):
        self._populated_store()
        row = db.session.query(StateSnapshot).filter_by(key="movements").one()
        row.payload = {"not": "a list"}
        db.session.commit()

        store = self._load()
        self.assertEqual(store.movements, ())
        self.assertEqual(len(store.products), 1)

    def test_loaded_draft_follows_shop_settings(self):
        store = self._populated_store()
        store.set_draft(Receipt(receipt_number="101", date="2026-10-19", sender=CompanyInfo(name="Stale")))

        loaded = self._load()
        self.assertEqual(loaded.draft.receipt_number, "101")
        self.assertEqual(loaded.draft.sender.shop_name, "TRIANON")

    def test_save_failure_is_reported_but_memory_survives(self):
        store = self._populated_store()
        db.drop_all()
        try:
            store.append_receipt(Receipt(receipt_number="101", date="2026-10-19"))
            self.assertIsNotNone(store.last_persist_error)
            self.assertIsNotNone(store.find_receipt("101"))
        finally:
            db.session.rollback()
            db.create_all()


if __name__ == "__main__":
    unittest.main()
