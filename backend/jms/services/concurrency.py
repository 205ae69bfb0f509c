# Overview: Transaction scope and row locking shared by every write path.

from __future__ import annotations

from flask import current_app
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..validation import ConflictError, InfrastructureError


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() takes the
    database write lock there instead.
    """
    return query.with_for_update()


def begin_write() -> None:
    """
    Open the write scope for the current session.

    On SQLite this issues BEGIN IMMEDIATE so concurrent writers queue on the
    database lock before any check-then-write runs. Other dialects rely on
    lock_for_update() row locks and version_id columns.
    """
    if db.engine.dialect.name != "sqlite":
        return
    conn = db.session.connection()
    if not conn.connection.dbapi_connection.in_transaction:
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def run_atomic(func):
    """
    Run func() as one all-or-nothing unit and commit.

    Any exception rolls the session back before it propagates. No retry:
    StaleDataError surfaces as ConflictError so the caller can resubmit with
    a fresh read; driver/connection failures surface as InfrastructureError.
    """
    try:
        begin_write()
        result = func()
        db.session.commit()
        return result
    except StaleDataError as exc:
        db.session.rollback()
        current_app.logger.warning("Concurrent modification detected: %s", exc)
        raise ConflictError("Record was modified concurrently. Please retry.") from exc
    except IntegrityError as exc:
        db.session.rollback()
        current_app.logger.warning("Constraint violation, transaction rolled back: %s", exc.orig)
        raise ConflictError("Record conflicts with existing data. Please retry.") from exc
    except (OperationalError, DBAPIError) as exc:
        db.session.rollback()
        current_app.logger.error("Store failure, transaction rolled back: %s", exc)
        raise InfrastructureError() from exc
    except Exception:
        db.session.rollback()
        raise
