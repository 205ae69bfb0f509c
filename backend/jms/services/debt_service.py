# Overview: Service-layer operations for customer debts (khata); payment application and derived balances.

"""
Debt Ledger

DESIGN PRINCIPLES:
- payments are append-only; amount_paid is always their sum
- amount_remaining and status are derived by derive_debt_fields() and
  written in the same transaction as the payment that changes them
- Pending -> Paid happens exactly when a payment brings the remaining
  balance to zero; Paid is terminal
- the overpayment check and the write run under one lock per debt
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Debt, DebtPayment, Sale
from ..models.debts import DEBT_STATUS_PAID, DEBT_STATUS_PENDING, PAYMENT_METHOD_CASH
from ..validation import (
    ConflictError,
    InsufficientResourceError,
    NotFoundError,
    ValidationError,
    coerce_datetime,
    coerce_decimal,
    coerce_str,
    format_amount,
    quantize_money,
)
from jms.time_utils import to_utc_naive, utcnow
from .concurrency import lock_for_update, run_atomic
from .sales_service import SaleNotFound

ZERO = Decimal("0")

VALID_PAYMENT_METHODS = [
    PAYMENT_METHOD_CASH,
    "UPI",
    "Card",
    "Cheque",
    "Bank Transfer",
]


class DebtNotFound(NotFoundError):
    pass


class AlreadyPaid(ValidationError):
    pass


class OverpaymentRejected(InsufficientResourceError):
    pass


def derive_debt_fields(initial_amount: Decimal, amount_paid: Decimal) -> tuple[Decimal, str]:
    """
    Remaining balance and status for a debt.

    remaining = max(0, initial_amount - amount_paid); Paid iff remaining == 0.
    """
    remaining = initial_amount - amount_paid
    if remaining <= ZERO:
        return ZERO, DEBT_STATUS_PAID
    return remaining, DEBT_STATUS_PENDING


def create_debt(
    customer_name,
    customer_mobile,
    initial_amount,
    due_date=None,
    *,
    sale_id: int | None = None,
    user_id: int | None = None,
) -> Debt:
    """Open a Pending debt with no payments."""
    name = coerce_str(customer_name, "customerName", max_length=255)
    mobile = coerce_str(customer_mobile, "customerMobile", max_length=32)
    if not name or not mobile or initial_amount in (None, "", 0):
        raise ValidationError("Customer name, mobile, and amount are required.")

    amount = coerce_decimal(
        initial_amount, "initialAmount",
        minimum=ZERO, exclusive_minimum=True,
        message="Invalid initial amount.",
    )
    # Whole paise only
    if amount != quantize_money(amount):
        raise ValidationError("Invalid initial amount.")
    amount = quantize_money(amount)
    due = coerce_datetime(due_date, "dueDate")

    def _op():
        remaining, status = derive_debt_fields(amount, ZERO)
        debt = Debt(
            customer_name=name,
            customer_mobile=mobile,
            sale_id=sale_id,
            initial_amount=amount,
            amount_paid=ZERO,
            amount_remaining=remaining,
            status=status,
            due_date=due,
            last_payment_date=utcnow(),
            created_by_user_id=user_id,
        )
        db.session.add(debt)
        db.session.flush()
        return debt

    debt = run_atomic(_op)
    current_app.logger.info("Debt %s opened for %s: %s", debt.id, mobile, amount)
    return debt


def create_debt_for_sale(invoice_number: int, due_date=None, *, user_id: int | None = None) -> Debt:
    """
    Open a debt for the unpaid balance of a sale.

    A sale produces at most one debt.
    """
    sale = db.session.query(Sale).filter_by(invoice_number=invoice_number).first()
    if sale is None:
        raise SaleNotFound(f"Sale {invoice_number} not found.")

    balance = Decimal(sale.balance_due)
    if balance <= ZERO:
        raise ValidationError(f"Sale {invoice_number} has no balance due.")

    existing = db.session.query(Debt.id).filter_by(sale_id=sale.id).scalar()
    if existing is not None:
        raise ConflictError(
            f"Sale {invoice_number} already has a debt record.",
            details={"debt_id": existing},
        )

    return create_debt(
        sale.customer_name,
        sale.customer_mobile,
        balance,
        due_date,
        sale_id=sale.id,
        user_id=user_id,
    )


def _parse_payment_amount(amount) -> Decimal:
    try:
        value = coerce_decimal(amount, "paymentAmount", minimum=ZERO, exclusive_minimum=True)
    except ValidationError:
        raise ValidationError("Invalid payment amount.")
    # Whole paise only; the recorded payment must equal the amount entered
    if value != quantize_money(value):
        raise ValidationError("Invalid payment amount.")
    return quantize_money(value)


def apply_payment(
    debt_id: int,
    amount,
    method: str | None = None,
    *,
    user_id: int | None = None,
    paid_at: datetime | None = None,
) -> Debt:
    """
    Record a payment against a debt.

    Raises:
        ValidationError: amount not a positive number, unknown method
        DebtNotFound: no such debt
        AlreadyPaid: debt is Paid (terminal)
        OverpaymentRejected: amount exceeds the remaining balance; the debt is
            left untouched
    """
    value = _parse_payment_amount(amount)
    method = method or PAYMENT_METHOD_CASH
    if method not in VALID_PAYMENT_METHODS:
        raise ValidationError(f"Invalid payment method: {method}. Must be one of {VALID_PAYMENT_METHODS}")

    def _op():
        # populate_existing: the row may be cached from an earlier read in this session
        debt = lock_for_update(
            db.session.query(Debt).filter_by(id=debt_id).populate_existing()
        ).first()
        if debt is None:
            raise DebtNotFound("Debt record not found.", details={"debt_id": debt_id})

        if debt.status == DEBT_STATUS_PAID:
            raise AlreadyPaid("This debt is already fully paid.", details={"debt_id": debt.id})

        remaining = Decimal(debt.amount_remaining)
        if value > remaining:
            raise OverpaymentRejected(
                f"Payment (₹{format_amount(value)}) exceeds remaining balance (₹{format_amount(remaining)}).",
                resource="balance",
                available=remaining,
                requested=value,
                details={"debt_id": debt.id},
            )

        now = to_utc_naive(paid_at) if paid_at else utcnow()
        debt.payments.append(
            DebtPayment(amount=value, method=method, paid_at=now, recorded_by_user_id=user_id)
        )
        debt.amount_paid = Decimal(debt.amount_paid) + value
        debt.amount_remaining, debt.status = derive_debt_fields(Decimal(debt.initial_amount), debt.amount_paid)
        debt.last_payment_date = now
        db.session.flush()
        return debt

    debt = run_atomic(_op)
    current_app.logger.info(
        "Payment of %s applied to debt %s (remaining=%s, status=%s)",
        value, debt.id, debt.amount_remaining, debt.status,
    )
    return debt


def get_debt(debt_id: int) -> Debt:
    debt = db.session.get(Debt, debt_id)
    if debt is None:
        raise DebtNotFound("Debt record not found.", details={"debt_id": debt_id})
    return debt


def list_pending_debts() -> list[Debt]:
    """Pending debts, newest first."""
    return (
        db.session.query(Debt)
        .filter(Debt.status == DEBT_STATUS_PENDING)
        .order_by(Debt.created_at.desc(), Debt.id.desc())
        .all()
    )
