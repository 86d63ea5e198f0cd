from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import StorageError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """Yield (conn, cursor); commit on success, roll back on any error.

    Driver errors leave this block as StorageError.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        raise StorageError("Database unavailable") from exc

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        _rollback_quietly(conn)
        raise StorageError(f"Database operation failed: {exc.msg}") from exc
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def _rollback_quietly(conn) -> None:
    try:
        conn.rollback()
    except mysql.connector.Error:
        logger.warning("Rollback failed after database error", exc_info=True)


def is_duplicate_key(exc: mysql.connector.Error) -> bool:
    return getattr(exc, "errno", None) == errorcode.ER_DUP_ENTRY


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def in_clause(values: Sequence[Any]) -> str:
    """Placeholder list for `IN (...)`; callers must not pass an empty sequence."""

    if not values:
        raise ValueError("in_clause needs at least one value")
    return ", ".join(["%s"] * len(values))
