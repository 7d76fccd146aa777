from __future__ import annotations

from typing import Any, Dict, List

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

STATUS_COLORS = {
    "Excellent": "#16a34a",
    "Good": "#2563eb",
    "Needs Improvement": "#dc2626",
}


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def department_improvement_chart(rows: List[Dict[str, Any]]) -> alt.Chart:
    """Bar per department: average improvement of its complete KPIs, coloured by status."""
    df = pd.DataFrame(rows, columns=["department", "avg_improvement", "status", "total_kpis", "complete_kpis"])
    return (
        alt.Chart(df)
        .mark_bar()
        .encode(
            x=alt.X("department:N", title="Department", sort=None),
            y=alt.Y("avg_improvement:Q", title="Avg Improvement (%)"),
            color=alt.Color(
                "status:N",
                title="Status",
                scale=alt.Scale(domain=list(STATUS_COLORS), range=list(STATUS_COLORS.values())),
            ),
            tooltip=[
                "department",
                alt.Tooltip("avg_improvement:Q", format=".1f"),
                "total_kpis",
                "complete_kpis",
                "status",
            ],
        )
        .properties(height=260)
    )
