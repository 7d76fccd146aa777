from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from core.data import DatasetSnapshot, KpiRecord, format_number, format_percentage, kpis_to_frame
from core.filters import KpiFilters, filter_kpis

MISSING = "-"

TABLE_COLUMNS = [
    ("kpi_name", "KPI"),
    ("department", "Department"),
    ("section", "Section"),
    ("value_2024", "2024"),
    ("value_2025", "2025"),
    ("improvement", "Improvement"),
    ("status", "Status"),
]


def table_frame(kpis: List[KpiRecord]) -> pd.DataFrame:
    """Display frame for the table view; numeric cells of incomplete rows read '-'."""
    df = kpis_to_frame(kpis)
    out = pd.DataFrame({"id": df["id"], "kpi_name": df["kpi_name"], "department": df["department"], "section": df["section"]})
    complete = df["is_complete"].astype(bool)
    out["value_2024"] = df["value_2024"].apply(format_number).where(complete, MISSING)
    out["value_2025"] = df["value_2025"].apply(format_number).where(complete, MISSING)
    out["improvement"] = df["improvement"].apply(format_percentage).where(complete, MISSING)
    out["status"] = df["status"].where(complete, MISSING)
    return out


def export_frame(filters: KpiFilters, snapshot: DatasetSnapshot) -> pd.DataFrame:
    return kpis_to_frame(filter_kpis(snapshot.kpis, filters))


def compute_table_view(filters: KpiFilters, snapshot: DatasetSnapshot) -> Dict[str, Any]:
    filtered = filter_kpis(snapshot.kpis, filters)
    return {
        "filters": asdict(filters),
        "count": len(filtered),
        "columns": [{"key": key, "label": label} for key, label in TABLE_COLUMNS],
        "rows": table_frame(filtered).to_dict(orient="records"),
    }
