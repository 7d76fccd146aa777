from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Tuple

import pytest
import requests

from core.config import CatalogConfig
from core.data import DatasetSnapshot, build_snapshot

SAMPLE_CSV = (
    "Section,KPI,2024,2025,Notes,Department\n"
    "Activities,KPI A Something,100,150,x,DeptX\n"
    "Outputs,Visitors,200,180,,DeptX\n"
    "Activities,Press releases,0,50,,DeptY\n"
    ',Mentions,"10","11",,\n'
    "short,row,1\n"
    "Outputs,,5,6,,DeptY\n"
)

SHEET_URL = "https://docs.google.com/spreadsheets/d/abc-123_XYZ/edit#gid=0"


class FakeSession:
    """Stands in for requests.Session; returns a canned response or raises."""

    def __init__(self, response: Optional[requests.Response] = None, exc: Optional[Exception] = None) -> None:
        self.response = response
        self.exc = exc
        self.calls: List[Tuple[str, Optional[float]]] = []

    def get(self, url: str, timeout: Optional[float] = None) -> requests.Response:
        self.calls.append((url, timeout))
        if self.exc is not None:
            raise self.exc
        assert self.response is not None
        return self.response


def make_response(body: str, status_code: int = 200, content_type: str = "text/csv; charset=utf-8") -> requests.Response:
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8")
    response.headers["Content-Type"] = content_type
    response.url = "https://docs.google.com/spreadsheets/d/abc-123_XYZ/export?format=csv&gid=0"
    return response


@pytest.fixture()
def catalog() -> CatalogConfig:
    return CatalogConfig(
        departments=("DeptX", "DeptY", "DeptZ"),
        sections=("Activities", "Outputs"),
        unspecified_label="Unspecified",
    )


@pytest.fixture()
def snapshot(catalog: CatalogConfig) -> DatasetSnapshot:
    return build_snapshot(
        SAMPLE_CSV,
        catalog=catalog,
        sheet_id="abc-123_XYZ",
        now=datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc),
    )
