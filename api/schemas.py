from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from core.filters import ALL


class IngestRequest(BaseModel):
    sheet_url: str


class KpiFiltersModel(BaseModel):
    department: str = ALL
    section: str = ALL
    search_term: str = ""
    show_only_complete: bool = False


class MetaEnumsResponse(BaseModel):
    departments: List[str]
    sections: List[str]
    sheet_url: Optional[str] = None
    last_updated: Optional[str] = None


class KpiRecordModel(BaseModel):
    id: int
    section: str
    kpi_name: str
    value_2024: float
    value_2025: float
    improvement: float
    department: str
    is_complete: bool
    status: str


class KpiListResponse(BaseModel):
    count: int
    kpis: List[KpiRecordModel] = Field(default_factory=list)
