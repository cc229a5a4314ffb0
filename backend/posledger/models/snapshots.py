from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class StateSnapshot(db.Model):
    """
    One named, versioned JSON snapshot of ledger state.

    The ledger itself lives in memory (services/event_store.py); this table is
    only its save file. `version` carries the snapshot format tag so a format
    change is detected on load and defaulted instead of crashing.
    """
    __tablename__ = "state_snapshots"
    __table_args__ = (
        db.UniqueConstraint("key", name="uq_state_snapshots_key"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(64), nullable=False)
    version = db.Column(db.String(64), nullable=False)
    payload = db.Column(db.JSON, nullable=True)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<StateSnapshot key={self.key!r} version={self.version!r}>"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "version": self.version,
            "updated_at": to_utc_z(self.updated_at),
        }
