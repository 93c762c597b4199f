from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Tuple

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetch_body
from .repository import DocumentStore, Writer

logger = logging.getLogger(__name__)


def _decode(partition: str, raw: Optional[str]) -> Optional[Any]:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse stored document %s: %s", partition, e)
        return None


def _encode(blob: dict) -> str:
    return json.dumps(blob, ensure_ascii=False)


class MySQLDocumentStore(DocumentStore):
    """Remote document store: one JSON document per partition in ``documents``.

    ``locked`` holds a row lock (SELECT ... FOR UPDATE) for the whole block, so
    concurrent writers on the same partition are serialised by the server,
    across processes as well as threads.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def read(self, partition: str) -> Optional[Any]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT body FROM documents WHERE partition_key=%s", (partition,))
            return _decode(partition, fetch_body(cur))

    def write(self, partition: str, blob: dict) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO documents(partition_key, body) VALUES(%s, %s)
                ON DUPLICATE KEY UPDATE body=VALUES(body)
                """,
                (partition, _encode(blob)),
            )

    @contextmanager
    def locked(self, partition: str) -> Iterator[Tuple[Optional[Any], Writer]]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Make sure a row exists so FOR UPDATE has something to lock.
            cur.execute("INSERT IGNORE INTO documents(partition_key, body) VALUES(%s, NULL)", (partition,))
            cur.execute("SELECT body FROM documents WHERE partition_key=%s FOR UPDATE", (partition,))
            blob = _decode(partition, fetch_body(cur))

            def write(new_blob: dict) -> None:
                cur.execute(
                    "UPDATE documents SET body=%s WHERE partition_key=%s",
                    (_encode(new_blob), partition),
                )

            yield blob, write
