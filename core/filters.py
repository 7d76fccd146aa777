from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from core.data import KpiRecord


ALL = "ALL"


@dataclass(frozen=True)
class KpiFilters:
    department: str = ALL
    section: str = ALL
    search_term: str = ""
    show_only_complete: bool = False


def _as_choice(value: Optional[object]) -> str:
    if value is None:
        return ALL
    s = str(value).strip()
    return s if s else ALL


def _as_bool(value: Optional[object]) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return bool(value)


def normalize_filters(raw: Optional[dict]) -> KpiFilters:
    """Build filters from loosely typed input (API body, widget state).

    Unknown departments or sections are kept as given; they simply match
    nothing.
    """
    raw = raw or {}
    return KpiFilters(
        department=_as_choice(raw.get("department")),
        section=_as_choice(raw.get("section")),
        search_term=str(raw.get("search_term") or ""),
        show_only_complete=_as_bool(raw.get("show_only_complete", False)),
    )


def matches(kpi: KpiRecord, filters: KpiFilters) -> bool:
    if filters.department != ALL and kpi.department != filters.department:
        return False
    if filters.section != ALL and kpi.section != filters.section:
        return False
    if filters.search_term and filters.search_term.lower() not in kpi.kpi_name.lower():
        return False
    return kpi.is_complete or not filters.show_only_complete


def filter_kpis(kpis: Iterable[KpiRecord], filters: Optional[KpiFilters] = None) -> List[KpiRecord]:
    filters = filters or KpiFilters()
    return [kpi for kpi in kpis if matches(kpi, filters)]
