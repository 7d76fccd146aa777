from __future__ import annotations

import logging
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
import requests

from core.config import DEFAULT_SHEETS_HOST, AppSettings, CatalogConfig, SheetSettings, get_settings
from core.errors import ResolutionError, SourceUnavailableError
from core.status import DEFAULT_THRESHOLDS, KpiStatus, StatusThresholds, classify_kpi


logger = logging.getLogger(__name__)

SHEET_ID_PATTERN = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
EXPORT_PATH = "/spreadsheets/d/{sheet_id}/export?format=csv&gid=0"

# Leading numeric prefix, so "12.5%" reads as 12.5 and "n/a" as nothing.
NUMBER_PREFIX = r"^\s*([+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)"

MIN_ROW_CELLS = 6
# Source column positions; column 4 is not used.
SOURCE_COLUMNS = {
    0: "section",
    1: "kpi_name",
    2: "value_2024",
    3: "value_2025",
    5: "department",
}

KPI_COLUMNS = [
    "id",
    "section",
    "kpi_name",
    "value_2024",
    "value_2025",
    "improvement",
    "department",
    "is_complete",
    "status",
]


@dataclass(frozen=True)
class KpiRecord:
    id: int
    section: str
    kpi_name: str
    value_2024: float
    value_2025: float
    improvement: float
    department: str
    is_complete: bool
    status: KpiStatus


@dataclass(frozen=True)
class DatasetSnapshot:
    kpis: Tuple[KpiRecord, ...]
    departments: Tuple[str, ...]
    sections: Tuple[str, ...]
    last_updated: datetime
    sheet_id: Optional[str] = None


# ---------------- Reference resolution ----------------
def extract_sheet_id(url: object) -> Optional[str]:
    if not isinstance(url, str):
        return None
    match = SHEET_ID_PATTERN.search(url)
    return match.group(1) if match else None


def resolve_sheet_id(url: object) -> str:
    sheet_id = extract_sheet_id(url)
    if not sheet_id:
        raise ResolutionError(url)
    return sheet_id


def build_export_url(sheet_id: str, host: str = DEFAULT_SHEETS_HOST) -> str:
    return host.rstrip("/") + EXPORT_PATH.format(sheet_id=sheet_id)


# ---------------- Retrieval ----------------
def _looks_like_html(response: requests.Response, text: str) -> bool:
    content_type = (response.headers.get("Content-Type") or "").lower()
    if "text/html" in content_type:
        return True
    head = text.lstrip()[:20].lower()
    return head.startswith("<!doctype html") or head.startswith("<html")


def fetch_sheet_csv(
    sheet_id: str,
    *,
    session: Optional[requests.Session] = None,
    settings: Optional[SheetSettings] = None,
) -> str:
    """Fetch the first worksheet of a public sheet as CSV text.

    Any transport failure, non-2xx status or HTML body (Google serves its
    sign-in page for private sheets) raises SourceUnavailableError.
    """
    settings = settings or get_settings().sheets
    url = build_export_url(sheet_id, host=settings.host)
    http = session or requests.Session()
    try:
        response = http.get(url, timeout=settings.timeout_seconds)
        response.raise_for_status()
    except requests.HTTPError as exc:
        status_code = exc.response.status_code if exc.response is not None else None
        raise SourceUnavailableError(
            f"Sheet export returned HTTP {status_code}", sheet_id=sheet_id, status_code=status_code
        ) from exc
    except requests.RequestException as exc:
        raise SourceUnavailableError(f"Sheet export request failed: {exc}", sheet_id=sheet_id) from exc
    finally:
        if session is None:
            http.close()

    response.encoding = "utf-8"
    text = response.text
    if _looks_like_html(response, text):
        raise SourceUnavailableError(
            "Sheet export returned an HTML page; is the sheet shared publicly?",
            sheet_id=sheet_id,
            status_code=response.status_code,
        )
    return text


# ---------------- Parsing ----------------
def parse_csv_text(text: str) -> List[List[str]]:
    """Split CSV text naively: no quoted commas, no embedded newlines."""
    return [[cell.replace('"', "").strip() for cell in line.split(",")] for line in text.split("\n")]


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            extracted = df[col].astype(str).str.extract(NUMBER_PREFIX, expand=False)
            values = pd.to_numeric(extracted, errors="coerce").replace([np.inf, -np.inf], np.nan)
            df[col] = values.fillna(0.0).astype(float)
    return df


def fill_blank(df: pd.DataFrame, col: str, placeholder: str) -> pd.DataFrame:
    df[col] = df[col].where(df[col] != "", placeholder)
    return df


def normalize_rows(
    rows: Sequence[Sequence[str]],
    *,
    catalog: Optional[CatalogConfig] = None,
    thresholds: StatusThresholds = DEFAULT_THRESHOLDS,
) -> List[KpiRecord]:
    """Map parsed rows (header included) to KPI records.

    The first row is always dropped. Rows with fewer than six cells or a blank
    KPI name are skipped silently. Unparseable numbers become 0, and a 0 in
    either year marks the KPI incomplete with no improvement.
    """
    catalog = catalog or get_settings().catalog
    eligible = [row for row in list(rows)[1:] if len(row) >= MIN_ROW_CELLS and row[1]]
    if not eligible:
        return []

    df = pd.DataFrame(
        [[row[pos] for pos in SOURCE_COLUMNS] for row in eligible],
        columns=list(SOURCE_COLUMNS.values()),
    )
    df.insert(0, "id", range(1, len(df) + 1))
    df = numericize(df, ["value_2024", "value_2025"])
    df = fill_blank(df, "section", catalog.unspecified_label)
    df = fill_blank(df, "department", catalog.unspecified_label)
    df["kpi_name"] = df["kpi_name"].where(df["kpi_name"] != "", "Indicator " + df["id"].astype(str))

    df["is_complete"] = (df["value_2024"] != 0) & (df["value_2025"] != 0)
    base = df["value_2024"].where(df["value_2024"] != 0)
    change = (df["value_2025"] - df["value_2024"]) / base * 100
    df["improvement"] = change.where(df["is_complete"], 0.0).fillna(0.0)

    return [
        KpiRecord(
            id=int(r.id),
            section=str(r.section),
            kpi_name=str(r.kpi_name),
            value_2024=float(r.value_2024),
            value_2025=float(r.value_2025),
            improvement=float(r.improvement),
            department=str(r.department),
            is_complete=bool(r.is_complete),
            status=classify_kpi(float(r.improvement), thresholds),
        )
        for r in df.itertuples(index=False)
    ]


def build_snapshot(
    text: str,
    *,
    catalog: Optional[CatalogConfig] = None,
    sheet_id: Optional[str] = None,
    now: Optional[datetime] = None,
    thresholds: StatusThresholds = DEFAULT_THRESHOLDS,
) -> DatasetSnapshot:
    catalog = catalog or get_settings().catalog
    kpis = normalize_rows(parse_csv_text(text), catalog=catalog, thresholds=thresholds)
    return DatasetSnapshot(
        kpis=tuple(kpis),
        departments=tuple(catalog.departments),
        sections=tuple(catalog.sections),
        last_updated=now or datetime.now(timezone.utc),
        sheet_id=sheet_id,
    )


# ---------------- Formatting ----------------
def format_number(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    number = float(value)
    if number.is_integer():
        return f"{number:,.0f}"
    return f"{number:,.3f}".rstrip("0").rstrip(".")


def format_percentage(value: object) -> str:
    if value is None or pd.isna(value):
        return "N/A"
    number = float(value)
    sign = "+" if number > 0 else ""
    return f"{sign}{number:.1f}%"


def kpis_to_frame(kpis: Iterable[KpiRecord]) -> pd.DataFrame:
    records = [asdict(k) for k in kpis]
    if not records:
        return pd.DataFrame(columns=KPI_COLUMNS)
    df = pd.DataFrame.from_records(records, columns=KPI_COLUMNS)
    df["status"] = df["status"].apply(lambda s: s.value if isinstance(s, KpiStatus) else str(s))
    return df


# ---------------- Public API (Streamlit + FastAPI use) ----------------
def ingest(
    sheet_url: str,
    *,
    settings: Optional[AppSettings] = None,
    catalog: Optional[CatalogConfig] = None,
    session: Optional[requests.Session] = None,
    thresholds: StatusThresholds = DEFAULT_THRESHOLDS,
) -> DatasetSnapshot:
    settings = settings or get_settings()
    sheet_id = resolve_sheet_id(sheet_url)
    logger.info("Fetching KPI sheet %s", sheet_id)
    text = fetch_sheet_csv(sheet_id, session=session, settings=settings.sheets)
    snapshot = build_snapshot(text, catalog=catalog or settings.catalog, sheet_id=sheet_id, thresholds=thresholds)
    logger.info("Ingested %d KPIs from sheet %s", len(snapshot.kpis), sheet_id)
    return snapshot
