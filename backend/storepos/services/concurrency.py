# Overview: Unit-of-work boundary, row locking and conflict retry for stock writes.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


class UnitOfWork:
    """
    Explicit transaction boundary for multi-step writes.

    Services open one per public operation, pass it down to helpers that
    only flush, and call commit() exactly once at the end. Leaving the
    block with an exception rolls everything back; the exception is
    re-raised unchanged.

        with UnitOfWork() as uow:
            apply_movement(uow, ...)
            uow.commit()
    """

    def __init__(self, session=None):
        self.session = session or db.session
        self.committed = False

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.rollback()
        elif not self.committed:
            # Nothing committed explicitly: discard pending writes
            self.rollback()
        return False

    def flush(self) -> None:
        self.session.flush()

    def commit(self) -> None:
        self.session.commit()
        self.committed = True

    def rollback(self) -> None:
        self.session.rollback()


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    Product.version_id covers the SQLite case.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts). Domain errors propagate on the first
    attempt.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
