import csv
import threading
import time
from datetime import datetime, timedelta, timezone

from edit_time.config import ReportSettings
from edit_time.models import DocumentInfo, DocumentReport, EditEvent
from edit_time.reporting import (
    ReportPrinter,
    format_minutes,
    generate_report,
    report_to_payload,
    run_report,
    write_csv,
)

BASE = datetime(2026, 10, 1, 9, 0, tzinfo=timezone.utc)


def doc(document_id, name=None):
    return DocumentInfo(
        document_id=document_id,
        name=name or document_id.upper(),
        modified_time=BASE,
        mime_type="application/vnd.google-apps.document",
    )


class FakeActivitySource:
    def __init__(self, minutes_by_document, delays=None):
        self.minutes_by_document = minutes_by_document
        self.delays = delays or {}
        self.calls = []
        self._lock = threading.Lock()

    def fetch_events(self, document_id):
        with self._lock:
            self.calls.append(document_id)
        time.sleep(self.delays.get(document_id, 0))
        return [
            EditEvent(timestamp=BASE + timedelta(minutes=m))
            for m in self.minutes_by_document.get(document_id, [])
        ]


class FakeDocumentSource:
    def __init__(self, documents):
        self.documents = documents
        self.last_criteria = None

    def list_documents(self, criteria):
        self.last_criteria = criteria
        return self.documents


def test_document_without_events_is_left_out():
    source = FakeActivitySource({"a": [0, 1]})

    report = generate_report([doc("a"), doc("b")], source)

    assert report == (
        DocumentReport(
            document_id="a",
            document_name="A",
            total_minutes=1,
            session_count=1,
            event_count=2,
        ),
    )
    assert source.calls == ["a", "b"]


def test_empty_event_list_produces_empty_report():
    assert generate_report([doc("a")], FakeActivitySource({})) == ()


def test_report_keeps_document_order():
    source = FakeActivitySource({"z": [0], "a": [0, 5], "m": [0, 2, 4, 10, 12]})

    report = generate_report([doc("z"), doc("a"), doc("m")], source)

    assert [(r.document_id, r.total_minutes) for r in report] == [
        ("z", 1),
        ("a", 5),
        ("m", 6),
    ]


def test_parallel_fetch_keeps_document_order():
    source = FakeActivitySource(
        {"first": [0], "second": [0, 3], "third": [0, 4]},
        delays={"first": 0.05, "second": 0.02},
    )

    report = generate_report(
        [doc("first"), doc("second"), doc("third")], source, max_workers=3
    )

    assert [r.document_id for r in report] == ["first", "second", "third"]


def test_run_report_selects_documents_with_settings_criteria():
    documents = FakeDocumentSource([doc("a")])
    settings = ReportSettings.from_options(days=7, mime_type="text/plain")

    report = run_report(
        documents, FakeActivitySource({"a": [0]}), settings, now=BASE
    )

    assert documents.last_criteria.content_type == "text/plain"
    assert documents.last_criteria.modified_after == BASE - timedelta(days=7)
    assert len(report) == 1


def test_print_report_lists_each_document(capsys):
    report = (
        DocumentReport(document_id="a", document_name="Notes", total_minutes=75),
        DocumentReport(document_id="b", document_name="Plan", total_minutes=5),
    )

    ReportPrinter().print_report(report)

    out = capsys.readouterr().out
    assert "Notes" in out and "01:15" in out and "ID: a" in out
    assert "Total: 01:20" in out


def test_print_empty_report(capsys):
    ReportPrinter().print_report(())

    assert "No editing events found" in capsys.readouterr().out


def test_write_csv(tmp_path):
    path = tmp_path / "report.csv"
    report = (
        DocumentReport(
            document_id="a",
            document_name="Notes, draft",
            total_minutes=6,
            session_count=2,
            event_count=5,
        ),
    )

    write_csv(report, path)

    with path.open(newline="", encoding="utf-8") as handle:
        rows = list(csv.reader(handle))
    assert rows == [
        ["document_id", "document_name", "total_minutes", "sessions", "events"],
        ["a", "Notes, draft", "6", "2", "5"],
    ]


def test_report_payload_and_formatting():
    report = (DocumentReport(document_id="a", document_name="Notes", total_minutes=6),)

    payload = report_to_payload(report)

    assert payload["total_minutes"] == 6
    assert payload["documents"][0]["document_name"] == "Notes"
    assert format_minutes(0) == "00:00"
    assert format_minutes(125) == "02:05"
