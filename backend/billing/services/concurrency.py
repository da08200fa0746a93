# Overview: Transaction helpers shared by every mutating service.

from __future__ import annotations

from contextlib import contextmanager

from sqlalchemy import text

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; there the whole database is
    locked up front by begin_write_transaction().
    """
    return query.with_for_update().populate_existing()


def begin_write_transaction() -> None:
    """
    On SQLite, take the write lock before the first read of the unit of work.

    The invoice counter is read before it is written; BEGIN IMMEDIATE makes
    the read and every later write happen under a single writer lock.
    """
    if db.engine.dialect.name != "sqlite":
        return
    raw = db.session.connection().connection.dbapi_connection
    if not raw.in_transaction:
        db.session.execute(text("BEGIN IMMEDIATE"))


@contextmanager
def atomic():
    """
    Run a multi-row mutation as one transaction: commit on success,
    rollback on any error, re-raise for the caller to map.

    No retries: a failed request leaves no trace and the caller resubmits.
    """
    begin_write_transaction()
    try:
        yield db.session
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
