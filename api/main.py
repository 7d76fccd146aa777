from __future__ import annotations

from dataclasses import asdict
import logging
import math
from typing import Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.responses import Response
from fastapi.encoders import jsonable_encoder

from api.schemas import IngestRequest, KpiFiltersModel, KpiListResponse, KpiRecordModel, MetaEnumsResponse
from core.config import get_settings
from core.data import DatasetSnapshot, ingest
from core.errors import ResolutionError, SourceUnavailableError
from core.filters import KpiFilters, filter_kpis, normalize_filters
from core.metrics_cards import compute_cards_view
from core.metrics_overview import compute_overview
from core.metrics_summary import compute_summary_view
from core.metrics_table import compute_table_view, export_frame


settings = get_settings()
logging.basicConfig(level=settings.log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = FastAPI(title="KPI Sheet Dashboard API", version="0.1.0")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


class DashboardState:
    """Last good snapshot and the URL it came from; replaced only on success."""

    def __init__(self) -> None:
        self.snapshot: Optional[DatasetSnapshot] = None
        self.sheet_url: Optional[str] = None

    def replace(self, snapshot: DatasetSnapshot, sheet_url: str) -> None:
        self.snapshot = snapshot
        self.sheet_url = sheet_url

    def clear(self) -> None:
        self.snapshot = None
        self.sheet_url = None


state = DashboardState()


def _filters_from_model(model: KpiFiltersModel) -> KpiFilters:
    return normalize_filters(model.model_dump())


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except Exception:
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
                pd.Timestamp: lambda ts: ts.isoformat(),
            },
        )
    )


def _error(code: int, exc: Exception, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=code, content={"error": str(exc), "type": type(exc).__name__, **extra})


def _no_snapshot() -> JSONResponse:
    return JSONResponse(
        status_code=409,
        content={"error": "No sheet loaded yet. POST /ingest with a Google Sheets URL first.", "type": "NoSnapshot"},
    )


@app.post("/ingest")
def ingest_sheet(body: IngestRequest):
    try:
        snapshot = ingest(body.sheet_url)
    except ResolutionError as exc:
        logger.warning("ingest rejected url=%r", body.sheet_url)
        return _error(400, exc)
    except SourceUnavailableError as exc:
        # Previous snapshot stays in place.
        logger.warning("ingest failed sheet_id=%s status=%s: %s", exc.sheet_id, exc.status_code, exc)
        return _error(502, exc, sheet_id=exc.sheet_id, status_code=exc.status_code)
    except Exception as exc:
        logger.exception("ingest failed")
        return _error(500, exc)
    state.replace(snapshot, body.sheet_url)
    return _json(compute_overview(KpiFilters(), snapshot))


@app.get("/meta/enums")
def meta_enums():
    snapshot = state.snapshot
    if snapshot is None:
        catalog = settings.catalog
        payload = MetaEnumsResponse(departments=list(catalog.departments), sections=list(catalog.sections))
    else:
        payload = MetaEnumsResponse(
            departments=list(snapshot.departments),
            sections=list(snapshot.sections),
            sheet_url=state.sheet_url,
            last_updated=snapshot.last_updated.isoformat(),
        )
    return _json(payload.model_dump())


@app.post("/overview")
def overview(filters: KpiFiltersModel):
    snapshot = state.snapshot
    if snapshot is None:
        return _no_snapshot()
    try:
        return _json(compute_overview(_filters_from_model(filters), snapshot))
    except Exception as exc:
        logger.exception("overview failed")
        return _error(500, exc)


@app.post("/kpis")
def kpis(filters: KpiFiltersModel):
    snapshot = state.snapshot
    if snapshot is None:
        return _no_snapshot()
    try:
        filtered = filter_kpis(snapshot.kpis, _filters_from_model(filters))
        records = [KpiRecordModel(**{**asdict(k), "status": k.status.value}) for k in filtered]
        return _json(KpiListResponse(count=len(records), kpis=records).model_dump())
    except Exception as exc:
        logger.exception("kpis failed")
        return _error(500, exc)


@app.get("/summary")
def summary():
    snapshot = state.snapshot
    if snapshot is None:
        return _no_snapshot()
    try:
        return _json(compute_summary_view(snapshot))
    except Exception as exc:
        logger.exception("summary failed")
        return _error(500, exc)


@app.post("/views/cards")
def cards_view(filters: KpiFiltersModel):
    snapshot = state.snapshot
    if snapshot is None:
        return _no_snapshot()
    try:
        return _json(compute_cards_view(_filters_from_model(filters), snapshot))
    except Exception as exc:
        logger.exception("cards_view failed")
        return _error(500, exc)


@app.post("/views/table")
def table_view(filters: KpiFiltersModel):
    snapshot = state.snapshot
    if snapshot is None:
        return _no_snapshot()
    try:
        return _json(compute_table_view(_filters_from_model(filters), snapshot))
    except Exception as exc:
        logger.exception("table_view failed")
        return _error(500, exc)


@app.post("/export/csv")
def export_csv(filters: KpiFiltersModel):
    snapshot = state.snapshot
    if snapshot is None:
        return _no_snapshot()
    try:
        export_df = export_frame(_filters_from_model(filters), snapshot)
        csv_bytes = export_df.to_csv(index=False).encode("utf-8")
    except Exception as exc:
        logger.exception("export_csv failed")
        return _error(500, exc)
    return Response(content=csv_bytes, media_type="text/csv", headers={"Content-Disposition": "attachment; filename=kpis.csv"})
