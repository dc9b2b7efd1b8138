"""SQLite helpers for the persistence layer."""
from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

from config.settings import settings
from interview_session.errors import PersistenceError


@contextmanager
def get_conn() -> Iterator[sqlite3.Connection]:
    """Yield a SQLite connection that commits on success and rolls back on error.

    Driver failures surface as :class:`PersistenceError` so callers never
    see a half-written transition.
    """

    directory = os.path.dirname(settings.DB_PATH) or "."
    try:
        os.makedirs(directory, exist_ok=True)
        conn = sqlite3.connect(settings.DB_PATH, timeout=10)
    except (OSError, sqlite3.Error) as exc:
        raise PersistenceError(f"Database unavailable: {exc}") from exc
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
        conn.commit()
    except sqlite3.Error as exc:
        conn.rollback()
        raise PersistenceError(f"Database error: {exc}") from exc
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
