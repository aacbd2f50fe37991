"""Google Drive and Drive Activity adapters.

Both adapters expect an already-authorised ``requests.Session``; obtaining
credentials is left to the caller.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, Iterator, Optional, Sequence

import requests
from pydantic import BaseModel, ConfigDict, Field

from .activity import events_from_records
from .models import DocumentCriteria, DocumentInfo, EditEvent, to_utc

logger = logging.getLogger(__name__)

DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DRIVE_ACTIVITY_URL = "https://driveactivity.googleapis.com/v2/activity:query"
EDIT_FILTER = "detail.action_detail_case:EDIT"


class DriveFile(BaseModel):
    id: str
    name: str
    mime_type: Optional[str] = Field(default=None, alias="mimeType")
    modified_time: datetime = Field(alias="modifiedTime")

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_document(self) -> DocumentInfo:
        return DocumentInfo(
            document_id=self.id,
            name=self.name,
            modified_time=to_utc(self.modified_time),
            mime_type=self.mime_type,
        )


def build_files_query(criteria: DocumentCriteria) -> str:
    modified_after = to_utc(criteria.modified_after).strftime("%Y-%m-%dT%H:%M:%SZ")
    return (
        f"mimeType = '{criteria.content_type}'"
        f" and modifiedTime >= '{modified_after}'"
        " and trashed = false"
    )


class DriveDocumentSource:
    """Lists Drive files via ``files.list``, following every result page."""

    def __init__(
        self,
        session: requests.Session,
        *,
        timeout: float = 30.0,
        page_size: int = 100,
    ) -> None:
        self.session = session
        self.timeout = timeout
        self.page_size = page_size

    def list_documents(self, criteria: DocumentCriteria) -> Sequence[DocumentInfo]:
        params: Dict[str, Any] = {
            "q": build_files_query(criteria),
            "fields": "nextPageToken, files(id, name, mimeType, modifiedTime)",
            "pageSize": self.page_size,
        }
        documents: list[DocumentInfo] = []
        while True:
            resp = self.session.get(DRIVE_FILES_URL, params=params, timeout=self.timeout)
            resp.raise_for_status()
            body = resp.json()
            documents.extend(
                DriveFile.model_validate(item).to_document()
                for item in body.get("files", [])
            )
            token = body.get("nextPageToken")
            if not token:
                break
            params["pageToken"] = token
        logger.info("Drive returned %d candidate documents.", len(documents))
        return documents


class DriveActivitySource:
    """Queries EDIT activity for a document from the Drive Activity API.

    Pass ``session_factory`` instead of ``session`` when documents are fetched
    from several threads; each thread then gets its own session.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        session_factory: Optional[Callable[[], requests.Session]] = None,
        timeout: float = 30.0,
        page_size: int = 100,
    ) -> None:
        if session is None and session_factory is None:
            raise ValueError("a session or a session factory is required")
        self.session = session
        self.session_factory = session_factory
        self.timeout = timeout
        self.page_size = page_size
        self._local = threading.local()

    def fetch_events(self, document_id: str) -> Sequence[EditEvent]:
        try:
            activities = list(self._iter_activities(document_id))
        except (requests.RequestException, ValueError) as exc:
            logger.warning("Error fetching events for file %s: %s", document_id, exc)
            return []
        return events_from_records(activities)

    def _thread_session(self) -> requests.Session:
        if self.session_factory is None:
            return self.session
        session = getattr(self._local, "session", None)
        if session is None:
            session = self.session_factory()
            self._local.session = session
        return session

    def _iter_activities(self, document_id: str) -> Iterator[Any]:
        payload: Dict[str, Any] = {
            "itemName": f"items/{document_id}",
            "filter": EDIT_FILTER,
            "pageSize": self.page_size,
        }
        session = self._thread_session()
        while True:
            resp = session.post(
                DRIVE_ACTIVITY_URL, json=payload, timeout=self.timeout
            )
            resp.raise_for_status()
            body = resp.json()
            if not isinstance(body, dict):
                raise ValueError("unexpected activity response shape")
            yield from body.get("activities") or []
            token = body.get("nextPageToken")
            if not token:
                return
            payload["pageToken"] = token
