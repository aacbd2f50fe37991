"""Document and activity source interfaces, with SQLite-backed adapters."""

from __future__ import annotations

import json
import logging
import sqlite3
from pathlib import Path
from typing import Protocol, Sequence

from .activity import events_from_records
from .db import database_connection, fetch_activity_records, fetch_documents, row_to_document
from .models import DocumentCriteria, DocumentInfo, EditEvent

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    """Enumerates candidate documents for a report."""

    def list_documents(self, criteria: DocumentCriteria) -> Sequence[DocumentInfo]:
        """Return documents matching the criteria."""


class ActivitySource(Protocol):
    """Supplies the edit events recorded for a document."""

    def fetch_events(self, document_id: str) -> Sequence[EditEvent]:
        """Return edit events for a document; never raises for a single document."""


class SQLiteDocumentSource:
    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def list_documents(self, criteria: DocumentCriteria) -> Sequence[DocumentInfo]:
        with database_connection(self.db_path) as conn:
            rows = fetch_documents(
                conn,
                content_type=criteria.content_type,
                modified_after=criteria.modified_after,
            )
        return [row_to_document(row) for row in rows]


class SQLiteActivitySource:
    """Reads raw activity records cached by ``import-activity``."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    def fetch_events(self, document_id: str) -> Sequence[EditEvent]:
        try:
            with database_connection(self.db_path, check_same_thread=False) as conn:
                records = fetch_activity_records(conn, document_id)
        except (sqlite3.Error, json.JSONDecodeError):
            logger.exception("Error reading cached activity for document %s", document_id)
            return []
        return events_from_records(records)
