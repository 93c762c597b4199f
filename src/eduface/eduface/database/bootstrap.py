from __future__ import annotations

import logging

from .connection import DatabaseConnection, DBConfig

logger = logging.getLogger(__name__)

DOCUMENTS_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    partition_key VARCHAR(64) NOT NULL PRIMARY KEY,
    body LONGTEXT NULL,
    updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP ON UPDATE CURRENT_TIMESTAMP
) ENGINE=InnoDB DEFAULT CHARSET=utf8mb4 COLLATE=utf8mb4_unicode_ci
"""


def ensure_database_exists(config: DBConfig) -> None:
    conn = DatabaseConnection(config).connect(with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci;"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(config: DBConfig) -> None:
    """Create the database and the documents table (idempotent)."""

    ensure_database_exists(config)

    conn = DatabaseConnection(config).connect()
    try:
        cur = conn.cursor()
        cur.execute(DOCUMENTS_SCHEMA)
        conn.commit()
    finally:
        conn.close()
    logger.info("Documents table ready on %s", config.describe())


def list_tables(config: DBConfig) -> list[str]:
    conn = DatabaseConnection(config).connect()
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
    finally:
        conn.close()
