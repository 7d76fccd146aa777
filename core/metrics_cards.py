from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

from core.data import DatasetSnapshot, KpiRecord, format_number, format_percentage
from core.filters import KpiFilters, filter_kpis
from core.status import improvement_tone, trend_direction

INCOMPLETE_PLACEHOLDER = "Incomplete data"


def kpi_card(kpi: KpiRecord) -> Dict[str, Any]:
    card: Dict[str, Any] = {
        "id": kpi.id,
        "kpi_name": kpi.kpi_name,
        "department": kpi.department,
        "section": kpi.section,
        "is_complete": kpi.is_complete,
        "status": kpi.status.value,
    }
    if not kpi.is_complete:
        # Incomplete KPIs never expose numbers; improvement is a 0 default.
        card["placeholder"] = INCOMPLETE_PLACEHOLDER
        return card
    card.update(
        {
            "value_2024": kpi.value_2024,
            "value_2025": kpi.value_2025,
            "value_2024_label": format_number(kpi.value_2024),
            "value_2025_label": format_number(kpi.value_2025),
            "improvement": kpi.improvement,
            "improvement_label": format_percentage(kpi.improvement),
            "trend": trend_direction(kpi.improvement),
            "tone": improvement_tone(kpi.improvement),
        }
    )
    return card


def compute_cards_view(filters: KpiFilters, snapshot: DatasetSnapshot) -> Dict[str, Any]:
    filtered = filter_kpis(snapshot.kpis, filters)
    return {
        "filters": asdict(filters),
        "count": len(filtered),
        "cards": [kpi_card(k) for k in filtered],
    }
