from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional, Tuple

import mysql.connector

from ..core.exceptions import StoreUnavailableError
from .connection import DatabaseConnection

logger = logging.getLogger(__name__)


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True) -> Iterator[Tuple[Any, Any]]:
    """One connection + cursor per unit of work: commit on success, rollback on any error.

    Driver errors surface as StoreUnavailableError (the caller may retry);
    domain errors raised inside the block propagate unchanged after rollback.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as e:
        raise StoreUnavailableError(f"Remote store unavailable: {e}") from e

    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as e:
        _rollback(conn)
        raise StoreUnavailableError(f"Remote store unavailable: {e}") from e
    except Exception:
        _rollback(conn)
        raise
    finally:
        conn.close()


def _rollback(conn) -> None:
    try:
        conn.rollback()
    except mysql.connector.Error as e:
        # the original error is re-raised by the caller
        logger.warning("Rollback failed: %s", e)


def fetch_body(cur) -> Optional[str]:
    row: Optional[Dict[str, Any]] = cur.fetchone()
    return row["body"] if row else None
