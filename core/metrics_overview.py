from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, Optional

from core.data import DatasetSnapshot
from core.filters import KpiFilters, filter_kpis


def compute_overview(filters: KpiFilters, snapshot: DatasetSnapshot) -> Dict[str, Any]:
    """Header numbers and filter options for the dashboard."""
    filtered = filter_kpis(snapshot.kpis, filters)
    return {
        "filters": asdict(filters),
        "sheet_id": snapshot.sheet_id,
        "last_updated": snapshot.last_updated.isoformat(),
        "departments": list(snapshot.departments),
        "sections": list(snapshot.sections),
        "totals": {
            "kpis": len(snapshot.kpis),
            "complete_kpis": sum(1 for k in snapshot.kpis if k.is_complete),
            "filtered_kpis": len(filtered),
        },
    }


NO_SNAPSHOT_MESSAGE = "No data yet. Paste a public Google Sheets link in the sidebar to show KPIs."
NO_KPI_ROWS_MESSAGE = (
    "The sheet loaded but has no KPI rows. Check that rows after the header have a KPI name "
    "and at least six columns."
)


def empty_state_message(snapshot: Optional[DatasetSnapshot]) -> Optional[str]:
    """Message to show instead of the dashboard, or None when there are KPIs to render."""
    if snapshot is None:
        return NO_SNAPSHOT_MESSAGE
    if not snapshot.kpis:
        return NO_KPI_ROWS_MESSAGE
    return None
