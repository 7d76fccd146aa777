from __future__ import annotations

from typing import Optional


class KpiDashboardError(Exception):
    """Base class for ingestion failures surfaced to the dashboard shells."""


class ResolutionError(KpiDashboardError):
    """The supplied URL carries no recognizable spreadsheet identifier."""

    def __init__(self, sheet_url: object) -> None:
        self.sheet_url = sheet_url
        super().__init__(f"Not a Google Sheets URL: {sheet_url!r}")


class SourceUnavailableError(KpiDashboardError):
    """The CSV export could not be fetched or its body is not CSV."""

    def __init__(self, message: str, *, sheet_id: Optional[str] = None, status_code: Optional[int] = None) -> None:
        self.sheet_id = sheet_id
        self.status_code = status_code
        super().__init__(message)
