from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from edit_time.webapp import create_app

DOCS = "application/vnd.google-apps.document"


@pytest.fixture()
def client(tmp_path):
    return TestClient(create_app(db_path=tmp_path / "cache.sqlite3"))


def post_document(client, document_id, name, minutes):
    start = datetime.now(timezone.utc) - timedelta(days=1)
    return client.post(
        "/api/documents",
        json={
            "document_id": document_id,
            "name": name,
            "modified_time": start.isoformat(),
            "mime_type": DOCS,
            "activities": [
                {"timestamp": (start + timedelta(minutes=m)).isoformat()} for m in minutes
            ],
        },
    )


def test_status_reports_defaults(client, tmp_path):
    body = client.get("/api/status").json()

    assert body["database_path"] == str(tmp_path / "cache.sqlite3")
    assert body["gap_minutes"] == 5.0
    assert body["min_minutes"] == 1


def test_report_lists_documents_with_edits(client):
    assert post_document(client, "a", "Notes", [0, 2, 4, 10, 12]).status_code == 200
    assert post_document(client, "b", "Empty", []).status_code == 200

    body = client.get("/api/report").json()

    assert body["total_minutes"] == 6
    assert [d["document_id"] for d in body["documents"]] == ["a"]
    assert body["documents"][0]["sessions"] == 2


def test_report_honours_query_overrides(client):
    post_document(client, "a", "Notes", [0, 2, 4, 10, 12])

    merged = client.get("/api/report", params={"gap_minutes": 10}).json()
    other_type = client.get("/api/report", params={"mime_type": "text/plain"}).json()

    assert merged["documents"][0]["total_minutes"] == 12
    assert other_type["documents"] == []


def test_report_rejects_invalid_settings(client):
    assert client.get("/api/report", params={"gap_minutes": 0}).status_code == 400
    assert client.get("/api/report", params={"days": -1}).status_code == 400


def test_documents_endpoint_and_validation(client):
    post_document(client, "a", "Notes", [0])

    listed = client.get("/api/documents").json()["documents"]
    blank = client.post(
        "/api/documents",
        json={"document_id": " ", "name": "X", "modified_time": "2026-10-01T00:00:00Z"},
    )
    unknown_field = client.post(
        "/api/documents",
        json={
            "document_id": "z",
            "name": "Z",
            "modified_time": "2026-10-01T00:00:00Z",
            "owner": "someone",
        },
    )

    assert [d["document_id"] for d in listed] == ["a"]
    assert blank.status_code == 400
    assert unknown_field.status_code == 422


def test_report_rejects_window_reaching_before_year_one(client):
    response = client.get("/api/report", params={"days": 800000})

    assert response.status_code == 400
    assert "year 1" in response.json()["detail"]


def test_reposting_a_document_replaces_its_activities(client):
    post_document(client, "a", "Notes", [0, 2])
    second = post_document(client, "a", "Notes", [0, 2])

    body = client.get("/api/report").json()

    assert second.json()["activities_stored"] == 2
    assert body["documents"][0]["events"] == 2
    assert body["documents"][0]["total_minutes"] == 2
