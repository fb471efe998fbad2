"""Database schema and connection management for SQLite."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Generator, Optional

from shareserver.config import DATABASE_PATH


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS reverse_shares (
                reverse_share_id TEXT PRIMARY KEY,
                max_share_size TEXT NOT NULL,
                share_expiration TEXT,
                created_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS shares (
                share_id TEXT PRIMARY KEY,
                upload_locked INTEGER NOT NULL DEFAULT 0,
                max_share_size TEXT,
                reverse_share_id TEXT,
                created_at TEXT NOT NULL,
                FOREIGN KEY(reverse_share_id) REFERENCES reverse_shares(reverse_share_id) ON DELETE SET NULL
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS files (
                file_id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                size TEXT NOT NULL,
                share_id TEXT NOT NULL,
                created_at TEXT NOT NULL,
                FOREIGN KEY(share_id) REFERENCES shares(share_id) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_files_share_id ON files(share_id)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(DATABASE_PATH)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()


def get_row_value(row: Optional[sqlite3.Row], column: str, default: Any = None) -> Any:
    """
    Read a column from a row, falling back to default for NULL or missing columns.
    """
    if row is None or column not in row.keys():
        return default
    value = row[column]
    return default if value is None else value
