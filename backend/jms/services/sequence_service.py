# Overview: Named gap-free sequences (invoice numbers, gahan record numbers).

from __future__ import annotations

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Counter
from ..validation import ValidationError
from .concurrency import run_atomic

INVOICE_SEQUENCE = "invoiceNumber"
GAHAN_SEQUENCE = "gahanRecord"


def next_value(name: str) -> int:
    """
    Increment the counter for name inside the caller's open transaction.

    The increment is a single UPDATE ... SET value = value + 1, so the row
    stays locked until the caller commits or rolls back; a rollback returns
    the number. A missing counter is created with value 1 inside a SAVEPOINT.
    If a concurrent creator wins that insert, the UPDATE path is taken.
    """
    if not name:
        raise ValidationError("Sequence name is required")

    stmt = (
        update(Counter)
        .where(Counter.name == name)
        .values(value=Counter.value + 1)
        .execution_options(synchronize_session=False)
    )

    result = db.session.execute(stmt)
    if not result.rowcount:
        try:
            with db.session.begin_nested():
                db.session.add(Counter(name=name, value=1))
            return 1
        except IntegrityError:
            result = db.session.execute(stmt)
            if not result.rowcount:
                raise

    return db.session.query(Counter.value).filter(Counter.name == name).scalar()


def allocate(name: str) -> int:
    """Allocate and commit the next value for name (first call returns 1)."""
    return run_atomic(lambda: next_value(name))


def current_value(name: str) -> int:
    """Last value handed out for name; 0 when nothing was allocated yet."""
    value = db.session.query(Counter.value).filter(Counter.name == name).scalar()
    return value or 0


def list_counters() -> list[Counter]:
    return db.session.query(Counter).order_by(Counter.name.asc()).all()
