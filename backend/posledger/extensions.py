# Overview: Flask extension instances for database, migrations and the ledger store.

from flask import current_app
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()


class LedgerStoreExtension:
    """
    Owns the per-application LedgerStore.

    The store is created lazily on first access inside an app context and
    hydrated from the snapshot table, so every request in the process works
    against the same in-memory collections.
    """

    def __init__(self, app=None):
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        app.extensions["ledger_store"] = None

    @property
    def store(self):
        existing = current_app.extensions.get("ledger_store")
        if existing is not None:
            return existing

        from .services.event_store import LedgerStore
        from .services.snapshot_service import SnapshotPersister

        persister = SnapshotPersister(
            default_tax_rate=current_app.config.get("DEFAULT_TAX_RATE", 15.0)
        )
        store = LedgerStore(persister=persister.save)
        persister.load_into(store)
        current_app.extensions["ledger_store"] = store
        return store

    def reset(self) -> None:
        """Drop the cached store; the next access reloads from snapshots."""
        current_app.extensions["ledger_store"] = None


ledger = LedgerStoreExtension()
