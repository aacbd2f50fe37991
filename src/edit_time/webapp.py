"""FastAPI application that exposes editing-time reports over a local API."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict

from .config import ReportSettings
from .db import (
    database_connection,
    fetch_documents,
    replace_activity_records,
    row_to_document,
    transaction,
    upsert_document,
)
from .models import DocumentInfo, to_utc
from .paths import get_db_path
from .reporting import report_to_payload, run_report
from .sources import SQLiteActivitySource, SQLiteDocumentSource

logger = logging.getLogger(__name__)


class DocumentPayload(BaseModel):
    document_id: str
    name: str
    modified_time: datetime
    mime_type: Optional[str] = None
    activities: list[Any] = []

    model_config = ConfigDict(extra="forbid")


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[ReportSettings] = None,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_db_path = Path(db_path or get_db_path())
    resolved_settings = settings or ReportSettings()

    app = FastAPI(title="Edit Time", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.db_path = resolved_db_path
    app.state.settings = resolved_settings

    @app.get("/api/status")
    def status(request: Request) -> Dict[str, Any]:
        current: ReportSettings = request.app.state.settings
        return {
            "database_path": str(request.app.state.db_path),
            "mime_type": current.mime_type,
            "lookback_days": current.lookback.total_seconds() / 86400.0,
            "gap_minutes": current.gap_threshold.total_seconds() / 60.0,
            "min_minutes": current.minimum_session_minutes,
        }

    @app.get("/api/report")
    def report(
        request: Request,
        days: Optional[float] = Query(
            default=None, description="Look-back window in days."
        ),
        mime_type: Optional[str] = Query(
            default=None, description="Only include documents of this MIME type."
        ),
        gap_minutes: Optional[float] = Query(
            default=None, description="Inactivity gap that starts a new session."
        ),
        min_minutes: Optional[int] = Query(
            default=None, description="Minimum minutes credited to a session."
        ),
    ) -> Dict[str, Any]:
        base: ReportSettings = request.app.state.settings
        try:
            current = ReportSettings(
                mime_type=mime_type or base.mime_type,
                lookback=timedelta(days=days) if days is not None else base.lookback,
                gap_threshold=(
                    timedelta(minutes=gap_minutes)
                    if gap_minutes is not None
                    else base.gap_threshold
                ),
                minimum_session_minutes=(
                    min_minutes if min_minutes is not None else base.minimum_session_minutes
                ),
            )
        except (ValueError, OverflowError) as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc

        db = request.app.state.db_path
        result = run_report(SQLiteDocumentSource(db), SQLiteActivitySource(db), current)
        payload = report_to_payload(result)
        payload["mime_type"] = current.mime_type
        return payload

    @app.get("/api/documents")
    def list_documents(request: Request) -> Dict[str, Any]:
        with database_connection(request.app.state.db_path) as conn:
            rows = fetch_documents(conn)
        return {"documents": [_document_payload(row_to_document(row)) for row in rows]}

    @app.post("/api/documents")
    def create_or_update_document(
        payload: DocumentPayload, request: Request
    ) -> Dict[str, Any]:
        document_id = payload.document_id.strip()
        name = payload.name.strip()
        if not document_id or not name:
            raise HTTPException(status_code=400, detail="document_id and name are required")

        document = DocumentInfo(
            document_id=document_id,
            name=name,
            modified_time=to_utc(payload.modified_time),
            mime_type=payload.mime_type,
        )
        with database_connection(request.app.state.db_path) as conn, transaction(conn):
            upsert_document(conn, document)
            stored = replace_activity_records(conn, document_id, payload.activities)
        logger.info("Stored document %s with %d activity records.", document_id, stored)
        return {"document": _document_payload(document), "activities_stored": stored}

    return app


def _document_payload(document: DocumentInfo) -> Dict[str, Any]:
    return {
        "document_id": document.document_id,
        "name": document.name,
        "mime_type": document.mime_type,
        "modified_time": document.modified_time.isoformat(),
    }
