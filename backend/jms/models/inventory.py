from __future__ import annotations

from ..extensions import db
from jms.time_utils import to_utc_z

PRODUCT_TYPE_STANDARD = "standard"
PRODUCT_TYPE_BULK_WEIGHT = "bulk_weight"
PRODUCT_TYPES = (PRODUCT_TYPE_STANDARD, PRODUCT_TYPE_BULK_WEIGHT)


def _as_float(value):
    return float(value) if value is not None else None


class Product(db.Model):
    """
    Product master data.

    TYPE DESIGN:
    - standard: sold by unit count; every sale consumes both stock and weight
    - bulk_weight: sold by weight from a shared pool; stock is never decremented

    stock and weight are written only by the sale engine (deduction) and
    restock (increase). Products are soft-deleted via is_active.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_nonnegative"),
        db.CheckConstraint("weight >= 0", name="ck_products_weight_nonnegative"),
        db.Index("ix_products_active_name", "is_active", "name"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    category = db.Column(db.String(64), nullable=False)
    type = db.Column(db.String(16), nullable=False, default=PRODUCT_TYPE_STANDARD)

    stock = db.Column(db.Integer, nullable=False, default=0)
    # Grams
    weight = db.Column(db.Numeric(12, 3), nullable=False, default=0)
    # Karat
    purity = db.Column(db.Numeric(5, 2), nullable=True)
    price_per_gram = db.Column(db.Numeric(12, 2), nullable=True)
    unit_price = db.Column(db.Numeric(12, 2), nullable=True)

    is_active = db.Column(db.Boolean, nullable=False, default=True)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    __mapper_args__ = {"version_id_col": version_id}

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} type={self.type} stock={self.stock} weight={self.weight}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "type": self.type,
            "stock": self.stock,
            "weight": _as_float(self.weight),
            "purity": _as_float(self.purity),
            "pricePerGram": _as_float(self.price_per_gram),
            "unitPrice": _as_float(self.unit_price),
            "isActive": self.is_active,
            "versionId": self.version_id,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
