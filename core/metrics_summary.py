from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List

from core.charts import department_improvement_chart, to_vega_spec
from core.data import DatasetSnapshot, format_percentage
from core.status import DEFAULT_THRESHOLDS, KpiStatus, StatusThresholds, classify_department, improvement_tone, trend_direction


@dataclass(frozen=True)
class DepartmentSummary:
    department: str
    total_kpis: int
    complete_kpis: int
    avg_improvement: float
    status: KpiStatus


def summarize_departments(
    snapshot: DatasetSnapshot, thresholds: StatusThresholds = DEFAULT_THRESHOLDS
) -> List[DepartmentSummary]:
    """One summary per catalog department, in catalog order.

    Only complete KPIs count towards the average; a department without any
    gets 0.0. Independent of the active filters.
    """
    summaries: List[DepartmentSummary] = []
    for dept in snapshot.departments:
        dept_kpis = [k for k in snapshot.kpis if k.department == dept]
        complete = [k for k in dept_kpis if k.is_complete]
        avg = sum(k.improvement for k in complete) / len(complete) if complete else 0.0
        summaries.append(
            DepartmentSummary(
                department=dept,
                total_kpis=len(dept_kpis),
                complete_kpis=len(complete),
                avg_improvement=avg,
                status=classify_department(avg, thresholds),
            )
        )
    return summaries


def compute_summary_view(snapshot: DatasetSnapshot) -> Dict[str, Any]:
    rows = []
    for s in summarize_departments(snapshot):
        rows.append(
            {
                "department": s.department,
                "total_kpis": s.total_kpis,
                "complete_kpis": s.complete_kpis,
                "avg_improvement": s.avg_improvement,
                "avg_improvement_label": format_percentage(s.avg_improvement),
                "status": s.status.value,
                "trend": trend_direction(s.avg_improvement),
                "tone": improvement_tone(s.avg_improvement),
            }
        )
    charts = {"avg_improvement": to_vega_spec(department_improvement_chart(rows))} if rows else {}
    return {"summaries": rows, "charts": charts}
