"""Configuration models and helpers for editing-time reports."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

from .models import DocumentCriteria, to_utc

GOOGLE_DOCS_MIME_TYPE = "application/vnd.google-apps.document"

_EARLIEST = datetime.min.replace(tzinfo=timezone.utc)


@dataclass(slots=True)
class ReportSettings:
    """Parameters for document selection and session measurement."""

    mime_type: str = GOOGLE_DOCS_MIME_TYPE
    lookback: timedelta = timedelta(days=30)
    gap_threshold: timedelta = timedelta(minutes=5)
    minimum_session_minutes: int = 1

    def __post_init__(self) -> None:
        if self.gap_threshold <= timedelta(0):
            raise ValueError("gap threshold must be positive")
        if self.minimum_session_minutes < 0:
            raise ValueError("minimum session minutes cannot be negative")
        if self.lookback <= timedelta(0):
            raise ValueError("look-back window must be positive")
        if self.lookback >= datetime.now(timezone.utc) - _EARLIEST:
            raise ValueError("look-back window reaches before year 1")

    @classmethod
    def from_options(
        cls,
        days: float = 30.0,
        gap_minutes: float = 5.0,
        min_minutes: int = 1,
        mime_type: Optional[str] = None,
    ) -> "ReportSettings":
        return cls(
            mime_type=mime_type or GOOGLE_DOCS_MIME_TYPE,
            lookback=timedelta(days=days),
            gap_threshold=timedelta(minutes=gap_minutes),
            minimum_session_minutes=min_minutes,
        )

    def criteria(self, now: Optional[datetime] = None) -> DocumentCriteria:
        """Documents of the configured type modified within the look-back window."""
        reference = to_utc(now) if now else datetime.now(timezone.utc)
        try:
            modified_after = reference - self.lookback
        except OverflowError as exc:
            raise ValueError("look-back window reaches before year 1") from exc
        return DocumentCriteria(content_type=self.mime_type, modified_after=modified_after)
