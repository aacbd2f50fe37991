"""Domain models for edit activity and editing-time reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional


@dataclass(frozen=True, order=True, slots=True)
class EditEvent:
    """A single instant at which an edit was observed on a document."""

    timestamp: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", to_utc(self.timestamp))


Session = tuple[EditEvent, ...]


@dataclass(frozen=True, slots=True)
class DocumentCriteria:
    """Selection criteria handed to a document source."""

    content_type: str
    modified_after: datetime


@dataclass(frozen=True, slots=True)
class DocumentInfo:
    document_id: str
    name: str
    modified_time: datetime
    mime_type: Optional[str] = None


@dataclass(frozen=True, slots=True)
class DocumentReport:
    """Total editing minutes attributed to one document."""

    document_id: str
    document_name: str
    total_minutes: int
    session_count: int = 0
    event_count: int = 0


Report = tuple[DocumentReport, ...]


def to_utc(value: datetime) -> datetime:
    """Return an aware UTC datetime; naive values are taken to be UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
