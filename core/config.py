"""
Environment-driven settings for sheet retrieval and the fixed KPI catalog.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Tuple


DEFAULT_SHEETS_HOST = "https://docs.google.com"

# Department and section names must match the cell values of the source sheet.
DEFAULT_DEPARTMENTS: Tuple[str, ...] = ("الإعلام", "التسويق", "السمعة", "التشريفات", "الاتصال")
DEFAULT_SECTIONS: Tuple[str, ...] = ("الأنشطة", "المخرجات", "النتائج", "الأثر")
DEFAULT_UNSPECIFIED_LABEL = "غير محدد"


def _get_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_float_env(name: str) -> Optional[float]:
    """
    Read an optional positive float; unset, blank or invalid values give None.
    """

    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return None
    try:
        value = float(raw_value)
    except ValueError:
        return None
    return value if value > 0 else None


def _get_list_env(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    items = tuple(item.strip() for item in raw_value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class CatalogConfig:
    """Fixed category enumerations attached to every snapshot."""

    departments: Tuple[str, ...] = DEFAULT_DEPARTMENTS
    sections: Tuple[str, ...] = DEFAULT_SECTIONS
    unspecified_label: str = DEFAULT_UNSPECIFIED_LABEL


@dataclass(frozen=True)
class SheetSettings:
    """
    HTTP retrieval settings.

    `timeout_seconds` stays None unless configured; requests then waits
    indefinitely, same as a bare `requests.get`.
    """

    host: str = DEFAULT_SHEETS_HOST
    timeout_seconds: Optional[float] = None


@dataclass(frozen=True)
class AppSettings:
    sheets: SheetSettings = field(default_factory=SheetSettings)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    log_level: str = "INFO"
    cors_origins: Tuple[str, ...] = ("http://localhost:3000", "http://127.0.0.1:3000")


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached settings read from the process environment."""

    sheets = SheetSettings(
        host=_get_str_env("KPI_SHEETS_HOST", DEFAULT_SHEETS_HOST).rstrip("/"),
        timeout_seconds=_get_optional_float_env("KPI_SHEETS_TIMEOUT"),
    )
    catalog = CatalogConfig(
        departments=_get_list_env("KPI_DEPARTMENTS", DEFAULT_DEPARTMENTS),
        sections=_get_list_env("KPI_SECTIONS", DEFAULT_SECTIONS),
        unspecified_label=_get_str_env("KPI_UNSPECIFIED_LABEL", DEFAULT_UNSPECIFIED_LABEL),
    )
    return AppSettings(
        sheets=sheets,
        catalog=catalog,
        log_level=_get_str_env("KPI_LOG_LEVEL", "INFO").upper(),
        cors_origins=_get_list_env("KPI_CORS_ORIGINS", AppSettings.cors_origins),
    )
