# Overview: Transaction scoping and row locking helpers shared by the write paths.

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
    Scope one database transaction around a block of writes.

    Commits when the block exits normally. On any exception the session is
    rolled back and the exception re-raised unchanged, so callers never see a
    partially applied batch. No retries are attempted.
    """
    try:
        yield db.session
        db.session.commit()
    except BaseException:
        db.session.rollback()
        raise
