# Overview: Row locking and retry helpers shared by every mutating service.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking to a box/vouch lookup that precedes a write.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; PostgreSQL honors it. The
    Box version_id column still catches lost updates on SQLite.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, lock timeouts) and StaleDataError
    (another writer bumped the version_id first). The session is rolled back
    before each retry so func() starts from fresh rows.

    ServiceError and everything else propagate on the first raise.
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


def commit_session():
    """
    Commit the request's unit of work; routes call this once per mutation.

    A failed commit is never retried on its own: after the rollback the
    session is empty, so a second commit would report work that was
    discarded. The error propagates and the app handler answers 500.
    Conflicts worth retrying are raised at flush time inside the service's
    run_with_retry, where the whole operation is replayed.
    """
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        raise
