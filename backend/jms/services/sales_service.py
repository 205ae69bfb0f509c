"""
Sales Service - atomic invoice creation

A sale is created in one transaction together with the stock/weight
deductions for every line and its invoice number. Either all of it commits
or none of it does.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Sale, SaleItem
from ..validation import (
    NotFoundError,
    ValidationError,
    coerce_decimal,
    coerce_int,
    coerce_str,
    quantize_money,
    quantize_weight,
)
from .concurrency import run_atomic
from .inventory_service import load_product_for_sale, reservation_policy_for
from .sequence_service import INVOICE_SEQUENCE, next_value

ZERO = Decimal("0")

MISSING_MOBILE_MESSAGE = "Invalid sale data. Customer mobile is required."


class SaleNotFound(NotFoundError):
    pass


@dataclass(frozen=True)
class LineRequest:
    product_id: object
    name: str | None
    quantity: int
    selling_weight: Decimal
    selling_price_per_gram: Decimal
    selling_purity: str | None
    making_charge_per_gram: Decimal

    @property
    def value(self) -> Decimal:
        return quantize_money(self.selling_weight * self.selling_price_per_gram)

    @property
    def making_charges(self) -> Decimal:
        return quantize_money(self.selling_weight * self.making_charge_per_gram)


@dataclass(frozen=True)
class SaleTotals:
    subtotal: Decimal
    total_making_charges: Decimal
    total_amount: Decimal
    advance_payment: Decimal
    discount: Decimal
    old_gold_weight: Decimal

    @property
    def balance_due(self) -> Decimal:
        return self.total_amount - self.advance_payment - self.discount


def _parse_line(raw: dict, index: int) -> LineRequest:
    if not isinstance(raw, dict):
        raise ValidationError(f"Item {index} must be an object")

    label = raw.get("name") or f"item {index}"
    product_id = raw.get("productId", raw.get("_id"))
    if product_id in (None, ""):
        raise ValidationError(f"productId is required for {label}")

    weight = coerce_decimal(
        raw.get("sellingWeight"), "sellingWeight", minimum=ZERO, exclusive_minimum=True,
        message=f"Please enter a valid weight for {label}.",
    )
    price = coerce_decimal(
        raw.get("sellingPricePerGram"), "sellingPricePerGram", minimum=ZERO,
        message=f"Please enter a valid price per gram for {label}.",
    )
    making = coerce_decimal(
        raw.get("makingChargePerGram"), "makingChargePerGram", default=ZERO, minimum=ZERO,
        message=f"Please enter a valid making charge for {label}.",
    )
    purity = raw.get("sellingPurity")

    return LineRequest(
        product_id=product_id,
        name=raw.get("name"),
        quantity=coerce_int(raw.get("quantity"), "quantity", default=1, minimum=1),
        selling_weight=quantize_weight(weight),
        selling_price_per_gram=quantize_money(price),
        selling_purity=None if purity in (None, "") else str(purity).strip(),
        making_charge_per_gram=quantize_money(making),
    )


def compute_totals(lines: list[LineRequest], payment: dict) -> SaleTotals:
    """Server-side totals from line items; client totals are only checked against these."""
    subtotal = sum((line.value for line in lines), ZERO)
    making = sum((line.making_charges for line in lines), ZERO)

    advance = quantize_money(coerce_decimal(payment.get("advancePayment"), "advancePayment", default=ZERO, minimum=ZERO))
    discount = quantize_money(coerce_decimal(payment.get("discount"), "discount", default=ZERO, minimum=ZERO))
    old_gold = quantize_weight(coerce_decimal(payment.get("oldGoldWeight"), "oldGoldWeight", default=ZERO, minimum=ZERO))

    return SaleTotals(
        subtotal=subtotal,
        total_making_charges=making,
        total_amount=subtotal + making,
        advance_payment=advance,
        discount=discount,
        old_gold_weight=old_gold,
    )


def _check_client_totals(totals: SaleTotals, claimed: dict) -> None:
    tolerance = Decimal(str(current_app.config.get("SALE_TOTAL_TOLERANCE", "0.01")))
    expected = {
        "subtotal": totals.subtotal,
        "totalMakingCharges": totals.total_making_charges,
        "totalAmount": totals.total_amount,
        "balanceDue": totals.balance_due,
    }
    for field, computed in expected.items():
        if claimed.get(field) in (None, ""):
            continue
        sent = coerce_decimal(claimed[field], field)
        if abs(sent - computed) > tolerance:
            raise ValidationError(
                f"Sale totals do not match line items: {field} sent {sent}, computed {computed}.",
                details={"field": field, "sent": float(sent), "computed": float(computed)},
            )


def create_sale(customer: dict, items: list, payment: dict | None = None, user_id: int | None = None) -> Sale:
    """
    Validate the cart, deduct inventory, allocate an invoice number and
    persist the sale as one atomic unit.

    Args:
        customer: {"name", "address", "mobile"}; mobile is mandatory
        items: [{productId, name, quantity, sellingWeight, sellingPricePerGram,
                 sellingPurity, makingChargePerGram}]
        payment: {advancePayment, discount, oldGoldWeight} plus optional
                 client totals (subtotal, totalMakingCharges, totalAmount,
                 balanceDue) that must agree with the recomputed values
        user_id: authenticated caller

    Raises:
        ValidationError: malformed cart, missing mobile, bad totals
        ProductNotFound, InsufficientStock, InsufficientWeight
        ConflictError, InfrastructureError: from the transaction scope
    """
    customer = customer or {}
    payment = payment or {}

    mobile = coerce_str(customer.get("mobile"), "customerMobile", max_length=32)
    if not items or not isinstance(items, list) or not mobile:
        raise ValidationError(MISSING_MOBILE_MESSAGE)

    lines = [_parse_line(raw, i + 1) for i, raw in enumerate(items)]
    totals = compute_totals(lines, payment)

    if totals.total_amount <= ZERO:
        raise ValidationError("Invalid sale data. Total amount must be greater than zero.")
    if totals.balance_due < ZERO:
        raise ValidationError(
            "Advance payment and discount exceed the sale total.",
            details={"total_amount": float(totals.total_amount), "balance_due": float(totals.balance_due)},
        )
    _check_client_totals(totals, payment)

    customer_name = coerce_str(customer.get("name"), "customerName", max_length=255) or current_app.config.get(
        "DEFAULT_CUSTOMER_NAME", "Walk-in Customer"
    )
    customer_address = coerce_str(customer.get("address"), "customerAddress", max_length=512) or ""

    def _op():
        sold_items = []
        for number, line in enumerate(lines, start=1):
            product = load_product_for_sale(line.product_id, line.name)
            reservation_policy_for(product).reserve(product, line.quantity, line.selling_weight)
            sold_items.append(
                SaleItem(
                    line_number=number,
                    product_id=product.id,
                    name=product.name,
                    quantity=line.quantity,
                    selling_weight=line.selling_weight,
                    selling_price_per_gram=line.selling_price_per_gram,
                    selling_purity=line.selling_purity,
                    making_charge_per_gram=line.making_charge_per_gram,
                )
            )
        db.session.flush()

        # Last step before the insert so a rejected cart never consumes a number
        invoice_number = next_value(INVOICE_SEQUENCE)

        sale = Sale(
            invoice_number=invoice_number,
            customer_name=customer_name,
            customer_address=customer_address,
            customer_mobile=mobile,
            items=sold_items,
            subtotal=totals.subtotal,
            total_making_charges=totals.total_making_charges,
            discount=totals.discount,
            old_gold_weight=totals.old_gold_weight,
            total_amount=totals.total_amount,
            advance_payment=totals.advance_payment,
            balance_due=totals.balance_due,
            created_by_user_id=user_id,
        )
        db.session.add(sale)
        db.session.flush()
        return sale

    sale = run_atomic(_op)
    current_app.logger.info(
        "Sale committed: invoice=%s lines=%s total=%s balance_due=%s",
        sale.invoice_number, len(lines), totals.total_amount, totals.balance_due,
    )
    return sale


def get_sale(invoice_number: int) -> Sale:
    sale = db.session.query(Sale).filter_by(invoice_number=invoice_number).first()
    if sale is None:
        raise SaleNotFound(f"Sale {invoice_number} not found.")
    return sale


def list_sales(limit: int | None = None) -> list[Sale]:
    """Sales newest first."""
    query = db.session.query(Sale).order_by(Sale.created_at.desc(), Sale.invoice_number.desc())
    if limit:
        query = query.limit(limit)
    return query.all()
