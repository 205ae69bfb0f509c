from __future__ import annotations

from ..extensions import db
from jms.time_utils import to_utc_z

DEBT_STATUS_PENDING = "Pending"
DEBT_STATUS_PAID = "Paid"

PAYMENT_METHOD_CASH = "Cash"


def _as_float(value):
    return float(value) if value is not None else None


class Debt(db.Model):
    """
    Customer khata balance paid down over time.

    amount_remaining and status are derived from initial_amount and
    amount_paid and persisted in the same write as every payment.
    Paid is terminal.
    """
    __tablename__ = "debts"
    __table_args__ = (
        db.CheckConstraint("initial_amount > 0", name="ck_debts_initial_positive"),
        db.CheckConstraint("amount_paid >= 0", name="ck_debts_paid_nonnegative"),
        db.CheckConstraint("amount_remaining >= 0", name="ck_debts_remaining_nonnegative"),
        db.Index("ix_debts_status_created", "status", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    customer_name = db.Column(db.String(255), nullable=False)
    customer_mobile = db.Column(db.String(32), nullable=False, index=True)

    # A sale produces at most one debt
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, unique=True)

    initial_amount = db.Column(db.Numeric(14, 2), nullable=False)
    amount_paid = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    amount_remaining = db.Column(db.Numeric(14, 2), nullable=False)
    status = db.Column(db.String(16), nullable=False, default=DEBT_STATUS_PENDING)

    due_date = db.Column(db.DateTime(timezone=True), nullable=True)
    last_payment_date = db.Column(db.DateTime(timezone=True), nullable=True)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    sale = db.relationship("Sale", foreign_keys=[sale_id])
    payments = db.relationship(
        "DebtPayment",
        backref="debt",
        lazy="selectin",
        order_by="DebtPayment.id",
        cascade="all, delete-orphan",
    )
    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Debt id={self.id} remaining={self.amount_remaining} status={self.status}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "customerName": self.customer_name,
            "customerMobile": self.customer_mobile,
            "saleId": self.sale_id,
            "initialAmount": _as_float(self.initial_amount),
            "amountPaid": _as_float(self.amount_paid),
            "amountRemaining": _as_float(self.amount_remaining),
            "status": self.status,
            "dueDate": to_utc_z(self.due_date),
            "lastPaymentDate": to_utc_z(self.last_payment_date),
            "payments": [p.to_dict() for p in self.payments],
            "createdByUserId": self.created_by_user_id,
            "versionId": self.version_id,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }


class DebtPayment(db.Model):
    """Append-only payment history row for a debt."""
    __tablename__ = "debt_payments"
    __table_args__ = (
        db.CheckConstraint("amount > 0", name="ck_debt_payments_amount_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    debt_id = db.Column(db.Integer, db.ForeignKey("debts.id"), nullable=False, index=True)
    amount = db.Column(db.Numeric(14, 2), nullable=False)
    method = db.Column(db.String(32), nullable=False, default=PAYMENT_METHOD_CASH)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=False)
    recorded_by_user_id = db.Column(db.Integer, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "amount": _as_float(self.amount),
            "date": to_utc_z(self.paid_at),
            "method": self.method,
            "recordedByUserId": self.recorded_by_user_id,
        }
