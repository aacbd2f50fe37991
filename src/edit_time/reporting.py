"""Report orchestration and output sinks."""

from __future__ import annotations

import csv
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Sequence

from .config import ReportSettings
from .models import DocumentInfo, DocumentReport, Report
from .sessions import aggregate_document
from .sources import ActivitySource, DocumentSource

logger = logging.getLogger(__name__)


def generate_report(
    documents: Iterable[DocumentInfo],
    activity_source: ActivitySource,
    settings: Optional[ReportSettings] = None,
    *,
    max_workers: int = 1,
) -> Report:
    """Aggregate every document, keeping the input order and skipping empty ones."""
    settings = settings or ReportSettings()
    documents = list(documents)

    def summarize(document: DocumentInfo) -> Optional[DocumentReport]:
        events = activity_source.fetch_events(document.document_id)
        return aggregate_document(
            document.document_id, document.name, events, settings
        )

    if max_workers > 1 and len(documents) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            results = list(pool.map(summarize, documents))
    else:
        results = [summarize(document) for document in documents]

    report = tuple(result for result in results if result is not None)
    logger.info(
        "Report covers %d of %d candidate documents.", len(report), len(documents)
    )
    return report


def run_report(
    document_source: DocumentSource,
    activity_source: ActivitySource,
    settings: Optional[ReportSettings] = None,
    *,
    now: Optional[datetime] = None,
    max_workers: int = 1,
) -> Report:
    settings = settings or ReportSettings()
    documents = document_source.list_documents(settings.criteria(now))
    return generate_report(
        documents, activity_source, settings, max_workers=max_workers
    )


class ReportPrinter:
    """Render human-readable reports in the console."""

    def print_report(self, report: Sequence[DocumentReport]) -> None:
        if not report:
            print("No editing events found for the specified criteria.")
            return

        print("Editing Time Report")
        print("-" * 40)
        for entry in report:
            print(
                f"  {entry.document_name[:40]:<40} {format_minutes(entry.total_minutes)}"
                f"  ({entry.total_minutes} min, ID: {entry.document_id})"
            )
        print()
        print(f"Total: {format_minutes(total_minutes(report))}")


CSV_COLUMNS = ("document_id", "document_name", "total_minutes", "sessions", "events")


def write_csv(report: Iterable[DocumentReport], path: Path) -> None:
    with Path(path).open("w", newline="", encoding="utf-8") as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_COLUMNS)
        for entry in report:
            writer.writerow(
                (
                    entry.document_id,
                    entry.document_name,
                    entry.total_minutes,
                    entry.session_count,
                    entry.event_count,
                )
            )


def report_to_payload(report: Sequence[DocumentReport]) -> Dict[str, Any]:
    return {
        "total_minutes": total_minutes(report),
        "documents": [
            {
                "document_id": entry.document_id,
                "document_name": entry.document_name,
                "total_minutes": entry.total_minutes,
                "sessions": entry.session_count,
                "events": entry.event_count,
            }
            for entry in report
        ],
    }


def total_minutes(report: Iterable[DocumentReport]) -> int:
    return sum(entry.total_minutes for entry in report)


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(int(minutes), 60)
    return f"{hours:02d}:{mins:02d}"
