"""SQLite cache for documents and their raw activity records."""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

from .models import DocumentInfo, to_utc


DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    enable_foreign_keys(conn)
    initialize_schema(conn)
    return conn


@contextmanager
def database_connection(
    path: Path, *, check_same_thread: bool = True
) -> Iterator[sqlite3.Connection]:
    conn = open_database(path, check_same_thread=check_same_thread)
    try:
        yield conn
    finally:
        conn.close()


@contextmanager
def transaction(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    conn.execute("BEGIN")
    try:
        yield conn
    except BaseException:
        conn.execute("ROLLBACK")
        raise
    conn.execute("COMMIT")


def enable_foreign_keys(conn: sqlite3.Connection) -> None:
    conn.execute("PRAGMA foreign_keys = ON;")


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS documents (
            id INTEGER PRIMARY KEY,
            document_id TEXT NOT NULL UNIQUE,
            name TEXT NOT NULL,
            mime_type TEXT,
            modified_time TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS activity_records (
            id INTEGER PRIMARY KEY,
            document_id TEXT NOT NULL
                REFERENCES documents(document_id) ON DELETE CASCADE,
            payload TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_activity_document
            ON activity_records(document_id);
        """
    )


def format_datetime(value: datetime) -> str:
    return to_utc(value).strftime(DATETIME_FMT)


def parse_datetime(value: str) -> datetime:
    return to_utc(datetime.strptime(value, DATETIME_FMT))


def upsert_document(conn: sqlite3.Connection, document: DocumentInfo) -> None:
    """Insert a document or refresh its name, type and modification time."""
    conn.execute(
        """
        INSERT INTO documents (document_id, name, mime_type, modified_time)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(document_id) DO UPDATE SET
            name = excluded.name,
            mime_type = excluded.mime_type,
            modified_time = excluded.modified_time
        """,
        (
            document.document_id,
            document.name,
            document.mime_type,
            format_datetime(document.modified_time),
        ),
    )


def insert_activity_records(
    conn: sqlite3.Connection, document_id: str, records: Iterable[Any]
) -> int:
    rows = [(document_id, json.dumps(record)) for record in records]
    conn.executemany(
        "INSERT INTO activity_records (document_id, payload) VALUES (?, ?)",
        rows,
    )
    return len(rows)


def replace_activity_records(
    conn: sqlite3.Connection, document_id: str, records: Iterable[Any]
) -> int:
    """Swap a document's cached records for ``records``."""
    conn.execute("DELETE FROM activity_records WHERE document_id = ?", (document_id,))
    return insert_activity_records(conn, document_id, records)


def fetch_documents(
    conn: sqlite3.Connection,
    *,
    content_type: Optional[str] = None,
    modified_after: Optional[datetime] = None,
) -> list[sqlite3.Row]:
    """Return cached documents in insertion order, optionally filtered."""
    clauses: list[str] = []
    params: list[object] = []
    if content_type is not None:
        clauses.append("mime_type = ?")
        params.append(content_type)
    if modified_after is not None:
        clauses.append("modified_time >= ?")
        params.append(format_datetime(modified_after))

    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    return list(
        conn.execute(
            f"""
            SELECT document_id, name, mime_type, modified_time
            FROM documents
            {where}
            ORDER BY id;
            """,
            params,
        )
    )


def fetch_activity_records(conn: sqlite3.Connection, document_id: str) -> list[Any]:
    rows = conn.execute(
        "SELECT payload FROM activity_records WHERE document_id = ? ORDER BY id",
        (document_id,),
    )
    return [json.loads(row["payload"]) for row in rows]


def row_to_document(row: sqlite3.Row) -> DocumentInfo:
    return DocumentInfo(
        document_id=row["document_id"],
        name=row["name"],
        modified_time=parse_datetime(row["modified_time"]),
        mime_type=row["mime_type"],
    )
