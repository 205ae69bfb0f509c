# Overview: Pawn (gahan) record lifecycle; record numbers come from the shared sequence generator.

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from flask import current_app

from ..extensions import db
from ..models import Gahan
from ..models.gahan import GAHAN_STATUS_ACTIVE, GAHAN_STATUS_OVERDUE, GAHAN_STATUS_RELEASED
from ..validation import (
    NotFoundError,
    ValidationError,
    coerce_datetime,
    coerce_decimal,
    coerce_str,
    quantize_money,
    quantize_weight,
)
from jms.time_utils import as_date, utcnow
from .concurrency import lock_for_update, run_atomic
from .sequence_service import GAHAN_SEQUENCE, next_value

ZERO = Decimal("0")
DUE_SOON_DAYS = 7


class GahanNotFound(NotFoundError):
    pass


def create_gahan(payload: dict, *, user_id: int | None = None) -> Gahan:
    """
    Record a pawned item.

    The record number is allocated in the same transaction as the insert.
    """
    payload = payload or {}
    required = ("customerName", "itemName", "itemWeight", "amountGiven", "interestRate", "dueDate")
    if any(payload.get(f) in (None, "") for f in required):
        raise ValidationError("Missing required fields.")

    due_date = coerce_datetime(payload.get("dueDate"), "dueDate")
    pawn_date = coerce_datetime(payload.get("pawnDate"), "pawnDate") or utcnow()
    if due_date < pawn_date.replace(hour=0, minute=0, second=0, microsecond=0):
        raise ValidationError("dueDate cannot be before pawnDate")

    fields = dict(
        customer_name=coerce_str(payload.get("customerName"), "customerName", max_length=255, required=True),
        customer_address=coerce_str(payload.get("customerAddress"), "customerAddress", max_length=512),
        customer_mobile=coerce_str(payload.get("customerMobile"), "customerMobile", max_length=32),
        item_name=coerce_str(payload.get("itemName"), "itemName", max_length=255, required=True),
        item_weight=quantize_weight(coerce_decimal(payload.get("itemWeight"), "itemWeight", minimum=ZERO, exclusive_minimum=True)),
        item_purity=coerce_str(payload.get("itemPurity"), "itemPurity", max_length=16),
        amount_given=quantize_money(coerce_decimal(payload.get("amountGiven"), "amountGiven", minimum=ZERO, exclusive_minimum=True)),
        interest_rate=quantize_money(coerce_decimal(payload.get("interestRate"), "interestRate", minimum=ZERO)),
        notes=coerce_str(payload.get("notes"), "notes"),
    )

    def _op():
        gahan = Gahan(
            record_number=next_value(GAHAN_SEQUENCE),
            pawn_date=pawn_date,
            due_date=due_date,
            status=GAHAN_STATUS_ACTIVE,
            created_by_user_id=user_id,
            **fields,
        )
        db.session.add(gahan)
        db.session.flush()
        return gahan

    gahan = run_atomic(_op)
    current_app.logger.info("Gahan record %s opened", gahan.record_number)
    return gahan


def release_gahan(gahan_id: int) -> Gahan:
    """Active -> Released. Released is terminal."""
    def _op():
        gahan = lock_for_update(db.session.query(Gahan).filter_by(id=gahan_id).populate_existing()).first()
        if gahan is None:
            raise GahanNotFound("Gahan record not found.")
        if gahan.status == GAHAN_STATUS_RELEASED:
            raise ValidationError("Item already released.")
        gahan.status = GAHAN_STATUS_RELEASED
        gahan.release_date = utcnow()
        return gahan

    return run_atomic(_op)


def display_status(gahan: Gahan, today: date | None = None) -> str:
    """
    Status shown to operators.

    Overdue is computed from the due date here and never written back.
    """
    if gahan.status != GAHAN_STATUS_ACTIVE:
        return gahan.status
    today = today or utcnow().date()
    if as_date(gahan.due_date) < today:
        return GAHAN_STATUS_OVERDUE
    return GAHAN_STATUS_ACTIVE


def is_due_soon(gahan: Gahan, today: date | None = None) -> bool:
    if gahan.status != GAHAN_STATUS_ACTIVE:
        return False
    today = today or utcnow().date()
    due = as_date(gahan.due_date)
    return today <= due <= today + timedelta(days=DUE_SOON_DAYS)


def list_gahans(include_released: bool = False) -> list[Gahan]:
    """Records by due date, soonest first."""
    query = db.session.query(Gahan)
    if not include_released:
        query = query.filter(Gahan.status == GAHAN_STATUS_ACTIVE)
    return query.order_by(Gahan.due_date.asc(), Gahan.record_number.asc()).all()
