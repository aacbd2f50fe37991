"""Group edit events into sessions and measure them."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Iterable, Optional

from .config import ReportSettings
from .models import DocumentReport, EditEvent, Session

logger = logging.getLogger(__name__)

DEFAULT_GAP_THRESHOLD = timedelta(minutes=5)
_MINUTE = timedelta(minutes=1)


def build_sessions(
    events: Iterable[EditEvent],
    gap_threshold: timedelta = DEFAULT_GAP_THRESHOLD,
) -> tuple[Session, ...]:
    """Split events into runs whose consecutive gaps stay within ``gap_threshold``.

    Events are sorted first (stable on ties), so callers may pass them in any
    order. A gap exactly equal to the threshold keeps the session open.
    """
    ordered = sorted(events, key=lambda event: event.timestamp)
    if not ordered:
        return ()

    sessions: list[Session] = []
    start = 0
    for index in range(1, len(ordered)):
        gap = ordered[index].timestamp - ordered[index - 1].timestamp
        if gap > gap_threshold:
            sessions.append(tuple(ordered[start:index]))
            start = index
    sessions.append(tuple(ordered[start:]))
    return tuple(sessions)


def session_duration(session: Session, minimum_minutes: int = 1) -> int:
    """Whole minutes between first and last event, rounded half-up, floored at ``minimum_minutes``."""
    if not session:
        return 0
    elapsed = session[-1].timestamp - session[0].timestamp
    minutes, remainder = divmod(elapsed, _MINUTE)
    if remainder * 2 >= _MINUTE:
        minutes += 1
    return max(minimum_minutes, minutes)


def aggregate_document(
    document_id: str,
    document_name: str,
    events: Iterable[EditEvent],
    settings: Optional[ReportSettings] = None,
) -> Optional[DocumentReport]:
    """Summarize one document, or return ``None`` when it has no events."""
    settings = settings or ReportSettings()
    sessions = build_sessions(events, settings.gap_threshold)
    if not sessions:
        return None

    total = sum(
        session_duration(session, settings.minimum_session_minutes)
        for session in sessions
    )
    logger.debug(
        "Document %s: %d sessions, %d minutes", document_id, len(sessions), total
    )
    return DocumentReport(
        document_id=document_id,
        document_name=document_name,
        total_minutes=total,
        session_count=len(sessions),
        event_count=sum(len(session) for session in sessions),
    )
