# Overview: Transaction scope and row-locking helpers shared by the write paths.

from __future__ import annotations

from contextlib import contextmanager

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE, but other DBs will honor it.
    """
    return query.with_for_update()


@contextmanager
def unit_of_work():
    """
    Transaction scope for multi-row writes.

    Everything added inside the block commits together when it exits
    normally. Any exception rolls the whole session back before it
    propagates, so no partial batch or orphaned log is ever committed.
    """
    try:
        yield db.session
        db.session.commit()
    except BaseException:
        db.session.rollback()
        raise

