"""Load JSON activity exports into the local cache."""

from __future__ import annotations

import json
import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .db import replace_activity_records, transaction, upsert_document
from .models import DocumentInfo, to_utc

logger = logging.getLogger(__name__)


class ExportDocument(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    modified_time: datetime = Field(alias="modifiedTime")
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    activities: list[Any] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> DocumentInfo:
        return DocumentInfo(
            document_id=self.id,
            name=self.name,
            modified_time=to_utc(self.modified_time),
            mime_type=self.mime_type,
        )


class ActivityExport(BaseModel):
    documents: list[ExportDocument]

    model_config = ConfigDict(extra="ignore")


def load_export(path: Path) -> ActivityExport:
    """Parse an export file; raises ``ValueError`` when it is not valid."""
    text = Path(path).read_text(encoding="utf-8")
    return ActivityExport.model_validate(json.loads(text))


def import_export(conn: sqlite3.Connection, export: ActivityExport) -> tuple[int, int]:
    """Store every exported document, replacing its cached activities. Returns (documents, records)."""
    record_count = 0
    with transaction(conn):
        for item in export.documents:
            upsert_document(conn, item.to_document())
            record_count += replace_activity_records(conn, item.id, item.activities)
    logger.info(
        "Imported %d documents with %d activity records.",
        len(export.documents),
        record_count,
    )
    return len(export.documents), record_count
