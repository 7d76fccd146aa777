from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import api.main as main
from core.data import build_snapshot
from core.errors import ResolutionError, SourceUnavailableError

from conftest import SAMPLE_CSV, SHEET_URL


@pytest.fixture()
def client(catalog, monkeypatch):
    def fake_ingest(sheet_url: str):
        if "/spreadsheets/d/" not in sheet_url:
            raise ResolutionError(sheet_url)
        if "broken" in sheet_url:
            raise SourceUnavailableError("Sheet export returned HTTP 500", sheet_id="broken", status_code=500)
        return build_snapshot(SAMPLE_CSV, catalog=catalog, sheet_id="abc-123_XYZ")

    monkeypatch.setattr(main, "ingest", fake_ingest)
    main.state.clear()
    yield TestClient(main.app)
    main.state.clear()


def test_views_require_a_snapshot(client) -> None:
    response = client.post("/views/cards", json={})
    assert response.status_code == 409
    assert client.get("/summary").status_code == 409


def test_ingest_returns_overview(client) -> None:
    response = client.post("/ingest", json={"sheet_url": SHEET_URL})
    assert response.status_code == 200
    body = response.json()
    assert body["sheet_id"] == "abc-123_XYZ"
    assert body["totals"]["kpis"] == 4


def test_bad_url_is_400(client) -> None:
    response = client.post("/ingest", json={"sheet_url": "https://example.com/x"})
    assert response.status_code == 400
    assert response.json()["type"] == "ResolutionError"


def test_failed_refresh_keeps_previous_snapshot(client) -> None:
    client.post("/ingest", json={"sheet_url": SHEET_URL})
    before = main.state.snapshot

    response = client.post("/ingest", json={"sheet_url": "https://docs.google.com/spreadsheets/d/broken/edit"})
    assert response.status_code == 502
    body = response.json()
    assert body["type"] == "SourceUnavailableError"
    assert body["sheet_id"] == "broken"
    assert body["status_code"] == 500
    assert main.state.snapshot is before
    assert main.state.sheet_url == SHEET_URL


def test_filtered_kpis(client) -> None:
    client.post("/ingest", json={"sheet_url": SHEET_URL})
    response = client.post("/kpis", json={"department": "DeptX", "search_term": "vis"})
    body = response.json()
    assert body["count"] == 1
    assert body["kpis"][0]["kpi_name"] == "Visitors"
    assert body["kpis"][0]["status"] == "Needs Improvement"


def test_summary_and_table(client) -> None:
    client.post("/ingest", json={"sheet_url": SHEET_URL})
    summary = client.get("/summary").json()
    assert [s["department"] for s in summary["summaries"]] == ["DeptX", "DeptY", "DeptZ"]
    table = client.post("/views/table", json={"show_only_complete": True}).json()
    assert table["count"] == 3


def test_meta_enums_before_and_after_ingest(client) -> None:
    before = client.get("/meta/enums").json()
    assert before["sheet_url"] is None
    client.post("/ingest", json={"sheet_url": SHEET_URL})
    after = client.get("/meta/enums").json()
    assert after["departments"] == ["DeptX", "DeptY", "DeptZ"]
    assert after["sheet_url"] == SHEET_URL


def test_export_csv(client) -> None:
    client.post("/ingest", json={"sheet_url": SHEET_URL})
    response = client.post("/export/csv", json={"department": "DeptY"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("id,section,kpi_name")
    assert len(lines) == 2


def test_export_csv_failure_is_500(client, monkeypatch) -> None:
    client.post("/ingest", json={"sheet_url": SHEET_URL})

    def broken_export(filters, snapshot):
        raise ValueError("frame build failed")

    monkeypatch.setattr(main, "export_frame", broken_export)
    response = client.post("/export/csv", json={})
    assert response.status_code == 500
    assert response.json() == {"error": "frame build failed", "type": "ValueError"}
