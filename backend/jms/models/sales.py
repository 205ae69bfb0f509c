from __future__ import annotations

from ..extensions import db
from jms.time_utils import to_utc_z


def _as_float(value):
    return float(value) if value is not None else None


class Sale(db.Model):
    """
    Completed point-of-sale transaction (invoice).

    Append-only: created once, atomically with its inventory deductions,
    never mutated afterwards.

    total_amount = subtotal + total_making_charges
    balance_due  = total_amount - advance_payment - discount
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_at", "created_at"),
        db.Index("ix_sales_customer_mobile", "customer_mobile"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.Integer, nullable=False, unique=True)

    customer_name = db.Column(db.String(255), nullable=False, default="Walk-in Customer")
    customer_address = db.Column(db.String(512), nullable=False, default="")
    customer_mobile = db.Column(db.String(32), nullable=False)

    # Rupees
    subtotal = db.Column(db.Numeric(14, 2), nullable=False)
    total_making_charges = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    discount = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    total_amount = db.Column(db.Numeric(14, 2), nullable=False)
    advance_payment = db.Column(db.Numeric(14, 2), nullable=False, default=0)
    balance_due = db.Column(db.Numeric(14, 2), nullable=False)

    # Grams of customer gold taken in exchange
    old_gold_weight = db.Column(db.Numeric(12, 3), nullable=False, default=0)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    items = db.relationship(
        "SaleItem",
        backref="sale",
        lazy="selectin",
        order_by="SaleItem.line_number",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Sale invoice_number={self.invoice_number} total={self.total_amount}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "invoiceNumber": self.invoice_number,
            "customer": {
                "name": self.customer_name,
                "address": self.customer_address,
                "mobile": self.customer_mobile,
            },
            "items": [item.to_dict() for item in self.items],
            "subtotal": _as_float(self.subtotal),
            "totalMakingCharges": _as_float(self.total_making_charges),
            "discount": _as_float(self.discount),
            "oldGoldWeight": _as_float(self.old_gold_weight),
            "totalAmount": _as_float(self.total_amount),
            "advancePayment": _as_float(self.advance_payment),
            "balanceDue": _as_float(self.balance_due),
            "createdByUserId": self.created_by_user_id,
            "createdAt": to_utc_z(self.created_at),
        }


class SaleItem(db.Model):
    """
    Sold line snapshot.

    Price, weight and purity are copied at sale time so later product edits
    never change historical invoices.
    """
    __tablename__ = "sale_items"
    __table_args__ = (
        db.UniqueConstraint("sale_id", "line_number", name="uq_sale_items_sale_line"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=False, index=True)
    line_number = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    selling_weight = db.Column(db.Numeric(12, 3), nullable=False)
    selling_price_per_gram = db.Column(db.Numeric(12, 2), nullable=False)
    selling_purity = db.Column(db.String(16), nullable=True)
    making_charge_per_gram = db.Column(db.Numeric(12, 2), nullable=False, default=0)

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "name": self.name,
            "quantity": self.quantity,
            "sellingWeight": _as_float(self.selling_weight),
            "sellingPricePerGram": _as_float(self.selling_price_per_gram),
            "sellingPurity": self.selling_purity,
            "makingChargePerGram": _as_float(self.making_charge_per_gram),
        }
