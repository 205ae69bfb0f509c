from __future__ import annotations

from ..extensions import db
from jms.time_utils import to_utc_z

GAHAN_STATUS_ACTIVE = "Active"
GAHAN_STATUS_RELEASED = "Released"
# Display-only; derived from due_date at read time, never stored
GAHAN_STATUS_OVERDUE = "Overdue"


def _as_float(value):
    return float(value) if value is not None else None


class Gahan(db.Model):
    """
    Pawned item (collateral loan) record.

    Stored lifecycle is Active -> Released. Overdue is computed when the
    record is read.
    """
    __tablename__ = "gahans"
    __table_args__ = (
        db.Index("ix_gahans_status_due", "status", "due_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    record_number = db.Column(db.Integer, nullable=False, unique=True)

    customer_name = db.Column(db.String(255), nullable=False)
    customer_address = db.Column(db.String(512), nullable=True)
    customer_mobile = db.Column(db.String(32), nullable=True)

    item_name = db.Column(db.String(255), nullable=False)
    item_weight = db.Column(db.Numeric(12, 3), nullable=False)
    item_purity = db.Column(db.String(16), nullable=True)
    amount_given = db.Column(db.Numeric(14, 2), nullable=False)
    # Percent per month
    interest_rate = db.Column(db.Numeric(6, 2), nullable=False)

    pawn_date = db.Column(db.DateTime(timezone=True), nullable=False)
    due_date = db.Column(db.DateTime(timezone=True), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=GAHAN_STATUS_ACTIVE)
    release_date = db.Column(db.DateTime(timezone=True), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def __repr__(self) -> str:
        return f"<Gahan record_number={self.record_number} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "recordNumber": self.record_number,
            "customerName": self.customer_name,
            "customerAddress": self.customer_address,
            "customerMobile": self.customer_mobile,
            "itemName": self.item_name,
            "itemWeight": _as_float(self.item_weight),
            "itemPurity": self.item_purity,
            "amountGiven": _as_float(self.amount_given),
            "interestRate": _as_float(self.interest_rate),
            "pawnDate": to_utc_z(self.pawn_date),
            "dueDate": to_utc_z(self.due_date),
            "status": self.status,
            "releaseDate": to_utc_z(self.release_date),
            "notes": self.notes,
            "createdByUserId": self.created_by_user_id,
            "createdAt": to_utc_z(self.created_at),
        }
