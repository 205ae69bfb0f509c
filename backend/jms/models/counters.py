from __future__ import annotations

from ..extensions import db


class Counter(db.Model):
    """
    Named, monotonically increasing sequence.

    One row per sequence name ("invoiceNumber", "gahanRecord"). Rows are
    created lazily on first allocation and never deleted; value never
    decreases.
    """
    __tablename__ = "counters"

    name = db.Column(db.String(64), primary_key=True)
    value = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def __repr__(self) -> str:
        return f"<Counter name={self.name!r} value={self.value}>"
