"""Core (UI-agnostic) KPI dashboard logic.

This package contains:
- sheet ingestion (Google Sheets CSV export -> typed KPI records)
- filter normalization and the KPI query layer
- view compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
