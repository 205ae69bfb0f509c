# Overview: Product master data and per-type stock/weight reservation rules.

# backend/jms/services/inventory_service.py
"""
JMS Inventory Invariants (authoritative)

- stock and weight never go below zero.
- Only the sale engine (reserve) decrements stock/weight; only restock
  increases them. Product edits never touch either field.
- standard products consume stock AND weight on every sale.
- bulk_weight products consume weight only; stock is never decremented.
- Products are never hard-deleted; deactivate sets is_active=False and
  inactive products cannot be sold.
"""

from __future__ import annotations

from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Product
from ..models.inventory import PRODUCT_TYPE_STANDARD, PRODUCT_TYPE_BULK_WEIGHT, PRODUCT_TYPES
from ..validation import (
    InsufficientResourceError,
    NotFoundError,
    ValidationError,
    coerce_decimal,
    coerce_int,
    coerce_str,
    format_amount,
    quantize_money,
    quantize_weight,
)
from .concurrency import lock_for_update, run_atomic


class ProductNotFound(NotFoundError):
    """Cart references a product that does not exist or was deactivated."""
    # A bad cart reference is caller-fixable input
    status_code = 400


class InsufficientStock(InsufficientResourceError):
    pass


class InsufficientWeight(InsufficientResourceError):
    pass


# =============================================================================
# RESERVATION POLICIES
# =============================================================================

class ReservationPolicy:
    """
    Deduction rule for one product type.

    reserve() checks the requested quantity/weight against the locked
    product row and decrements it in place; it raises before touching any
    field, so a rejected reservation leaves the product unchanged.
    """
    product_type: str = ""

    def reserve(self, product: Product, quantity: int, weight: Decimal) -> None:
        raise NotImplementedError

    @staticmethod
    def _require_weight(product: Product, weight: Decimal) -> None:
        available = Decimal(product.weight)
        if available < weight:
            raise InsufficientWeight(
                f"Insufficient weight for {product.name}. Only {format_amount(available)}g left.",
                resource="weight",
                available=available,
                requested=weight,
                details={"product_id": product.id, "shortfall": float(weight - available)},
            )


class StandardReservation(ReservationPolicy):
    product_type = PRODUCT_TYPE_STANDARD

    def reserve(self, product: Product, quantity: int, weight: Decimal) -> None:
        if product.stock < quantity:
            raise InsufficientStock(
                f"Insufficient stock for: {product.name}. Available: {product.stock}",
                resource="stock",
                available=product.stock,
                requested=quantity,
                details={"product_id": product.id, "shortfall": quantity - product.stock},
            )
        self._require_weight(product, weight)

        product.stock = product.stock - quantity
        product.weight = quantize_weight(Decimal(product.weight) - weight)


class BulkWeightReservation(ReservationPolicy):
    product_type = PRODUCT_TYPE_BULK_WEIGHT

    def reserve(self, product: Product, quantity: int, weight: Decimal) -> None:
        self._require_weight(product, weight)
        product.weight = quantize_weight(Decimal(product.weight) - weight)


RESERVATION_POLICIES: dict[str, ReservationPolicy] = {
    policy.product_type: policy
    for policy in (StandardReservation(), BulkWeightReservation())
}


def reservation_policy_for(product: Product) -> ReservationPolicy:
    try:
        return RESERVATION_POLICIES[product.type]
    except KeyError:
        raise ValidationError(f"Unsupported product type: {product.type}")


def load_product_for_sale(product_id, display_name: str | None = None) -> Product:
    """
    Load and lock a sellable product inside the caller's transaction.

    Raises ProductNotFound when the id is unknown or the product is inactive.
    """
    label = display_name or str(product_id)
    try:
        pid = coerce_int(product_id, "productId", minimum=1)
    except ValidationError:
        raise ProductNotFound(f"Product not found: {label}", details={"product_id": product_id})

    product = lock_for_update(db.session.query(Product).filter_by(id=pid).populate_existing()).first()
    if product is None or not product.is_active:
        raise ProductNotFound(f"Product not found: {label}", details={"product_id": pid})
    return product


# =============================================================================
# PRODUCT MASTER DATA
# =============================================================================

PRODUCT_MUTABLE_FIELDS = {"name", "category", "purity", "price_per_gram", "unit_price", "is_active"}

# camelCase request keys -> column names
PRODUCT_FIELD_ALIASES = {
    "name": "name",
    "category": "category",
    "purity": "purity",
    "pricePerGram": "price_per_gram",
    "unitPrice": "unit_price",
    "isActive": "is_active",
}


def _clean_product_fields(payload: dict) -> dict:
    patch: dict = {}
    for key, column in PRODUCT_FIELD_ALIASES.items():
        if key not in payload:
            continue
        raw = payload[key]
        if column in ("name", "category"):
            patch[column] = coerce_str(raw, key, max_length=255 if column == "name" else 64, required=True)
        elif column == "is_active":
            if not isinstance(raw, bool):
                raise ValidationError(f"{key} must be a boolean")
            patch[column] = raw
        elif raw is None or raw == "":
            # Optional pricing fields may be cleared
            patch[column] = None
        else:
            patch[column] = quantize_money(coerce_decimal(raw, key, minimum=Decimal("0")))
    return patch


def create_product(payload: dict) -> Product:
    """Create a product with its opening stock and weight."""
    if payload is None or not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    missing = [f for f in ("name", "category", "weight") if payload.get(f) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required product fields: {', '.join(missing)}")

    product_type = payload.get("type") or PRODUCT_TYPE_STANDARD
    if product_type not in PRODUCT_TYPES:
        raise ValidationError(f"type must be one of {list(PRODUCT_TYPES)}")

    fields = _clean_product_fields(payload)
    stock = coerce_int(payload.get("stock"), "stock", default=0, minimum=0)
    weight = quantize_weight(coerce_decimal(payload.get("weight"), "weight", minimum=Decimal("0")))

    def _op():
        product = Product(
            type=product_type,
            stock=stock if product_type == PRODUCT_TYPE_STANDARD else 0,
            weight=weight,
            **fields,
        )
        db.session.add(product)
        db.session.flush()
        return product

    product = run_atomic(_op)
    current_app.logger.info("Product %s created (%s, stock=%s, weight=%sg)", product.id, product.type, product.stock, product.weight)
    return product


def update_product(product_id: int, payload: dict) -> Product:
    """Edit descriptive and pricing fields. stock and weight are not editable here."""
    if payload is None or not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")
    for forbidden in ("stock", "weight", "type"):
        if forbidden in payload:
            raise ValidationError(f"Field not allowed: {forbidden}")

    patch = _clean_product_fields(payload)

    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError("Product not found.")
        for k, v in patch.items():
            if k in PRODUCT_MUTABLE_FIELDS:
                setattr(product, k, v)
        return product

    return run_atomic(_op)


def restock_product(product_id: int, quantity=None, weight=None) -> Product:
    """Increase stock and/or weight. Never decreases either field."""
    qty = coerce_int(quantity, "quantity", default=0, minimum=0)
    grams = quantize_weight(coerce_decimal(weight, "weight", default=Decimal("0"), minimum=Decimal("0")))
    if qty == 0 and grams == 0:
        raise ValidationError("Restock requires a positive quantity or weight")

    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError("Product not found.")
        if qty and product.type != PRODUCT_TYPE_STANDARD:
            raise ValidationError("Bulk weight products are restocked by weight only")
        product.stock = product.stock + qty
        product.weight = quantize_weight(Decimal(product.weight) + grams)
        return product

    product = run_atomic(_op)
    current_app.logger.info("Product %s restocked (+%s units, +%sg)", product.id, qty, grams)
    return product


def deactivate_product(product_id: int) -> Product:
    def _op():
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None:
            raise NotFoundError("Product not found.")
        product.is_active = False
        return product

    return run_atomic(_op)


def get_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product not found.")
    return product


def list_products(include_inactive: bool = False) -> list[Product]:
    query = db.session.query(Product)
    if not include_inactive:
        query = query.filter(Product.is_active.is_(True))
    return query.order_by(Product.created_at.desc(), Product.id.desc()).all()
