import streamlit as st
import pandas as pd
from contextlib import contextmanager
from typing import Optional

from core.data import DatasetSnapshot, ingest, kpis_to_frame
from core.errors import ResolutionError, SourceUnavailableError
from core.filters import ALL, KpiFilters, filter_kpis, normalize_filters
from core.metrics_cards import compute_cards_view
from core.metrics_overview import empty_state_message
from core.metrics_summary import compute_summary_view
from core.metrics_table import table_frame

VIEW_MODES = ["Department summary", "Cards", "Table"]
TONE_COLORS = {
    "excellent": "#166534",
    "positive": "#1e40af",
    "negative": "#991b1b",
    "neutral": "#374151",
}
TREND_ARROWS = {"up": "▲", "down": "▼", "flat": "■"}


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .card-actions {font-size: 0.9rem;color: #2563eb;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        .badge {display: inline-block;border-radius: 14px;padding: 4px 10px;font-weight: 600;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str, actions: Optional[str] = None):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
            <div class="card-actions">{actions or ""}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def badge(label: str, tone: str, trend: str) -> str:
    color = TONE_COLORS.get(tone, TONE_COLORS["neutral"])
    return f"<span class='badge' style='color:{color};border:1px solid {color};'>{TREND_ARROWS.get(trend, '')} {label}</span>"


def format_filter_summary(filters: KpiFilters) -> str:
    dept_chip = "Department: All" if filters.department == ALL else f"Department: {filters.department}"
    section_chip = "Section: All" if filters.section == ALL else f"Section: {filters.section}"
    search_chip = f"Search: {filters.search_term}" if filters.search_term else "Search: none"
    complete_chip = "Complete only" if filters.show_only_complete else "All rows"
    return "".join(f"<span class='chip'>{txt}</span>" for txt in [dept_chip, section_chip, search_chip, complete_chip])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_df: Optional[pd.DataFrame] = None, export_name: str = "export.csv"):
    top = st.container()
    c1, c2 = top.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_df is not None and not export_df.empty:
            st.download_button(
                "Export CSV",
                data=export_df.to_csv(index=False).encode("utf-8"),
                file_name=export_name,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


# ---------- State ----------
def load_sheet(url: str):
    """Ingest a sheet; on failure keep the previous snapshot and record the error."""
    url = (url or "").strip()
    if not url:
        return
    try:
        snapshot = ingest(url)
    except ResolutionError:
        st.session_state["load_error"] = "That does not look like a Google Sheets link."
    except SourceUnavailableError as exc:
        st.session_state["load_error"] = f"Could not load the sheet: {exc}"
    else:
        st.session_state["snapshot"] = snapshot
        st.session_state["sheet_url"] = url
        st.session_state["load_error"] = None


def select_department(dept: str):
    st.session_state["filter_department"] = dept


# ---------- UI setup ----------
st.set_page_config(page_title="KPI Dashboard", layout="wide")
st.session_state.setdefault("snapshot", None)
st.session_state.setdefault("sheet_url", "")
st.session_state.setdefault("load_error", None)
inject_base_styles()
st.title("Key Performance Indicators Dashboard")
st.caption("First half of 2025 compared with 2024, loaded from a public Google Sheet.")

with st.sidebar:
    st.markdown("### Data source")
    url_input = st.text_input("Google Sheets URL", value=st.session_state["sheet_url"], placeholder="https://docs.google.com/spreadsheets/d/...")
    if st.button("Refresh data", disabled=not url_input):
        with st.spinner("Loading sheet..."):
            load_sheet(url_input)
    with st.expander("How to connect a sheet", expanded=False):
        st.markdown(
            "1. Create a Google Sheet or reuse an existing one.\n"
            "2. Keep the column order: section, KPI, 2024, 2025, (unused), department.\n"
            "3. Share it so anyone with the link can view.\n"
            "4. Paste the link above."
        )

if st.session_state["load_error"]:
    st.error(st.session_state["load_error"])

snapshot: Optional[DatasetSnapshot] = st.session_state["snapshot"]
empty_message = empty_state_message(snapshot)
if empty_message:
    st.info(empty_message)
    st.stop()

st.caption(f"Last updated: {snapshot.last_updated.astimezone():%Y-%m-%d %H:%M}")

# ----- Sidebar: filters + view mode -----
with st.sidebar:
    st.markdown("---")
    st.markdown("### Filters")
    department_options = [ALL] + list(snapshot.departments)
    if st.session_state.get("filter_department") not in department_options:
        st.session_state["filter_department"] = ALL
    department = st.selectbox(
        "Department",
        options=department_options,
        key="filter_department",
        format_func=lambda v: "All departments" if v == ALL else v,
    )
    section = st.selectbox(
        "Section",
        options=[ALL] + list(snapshot.sections),
        format_func=lambda v: "All sections" if v == ALL else v,
    )
    search_term = st.text_input("Search KPIs", "")
    show_only_complete = st.checkbox("Complete data only", value=False)

    st.markdown("---")
    view_mode = st.radio("View", VIEW_MODES, index=1)

filters = normalize_filters(
    {
        "department": department,
        "section": section,
        "search_term": search_term,
        "show_only_complete": show_only_complete,
    }
)
filtered = filter_kpis(snapshot.kpis, filters)
filter_summary_html = format_filter_summary(filters)
st.metric("Filtered KPIs", len(filtered))


# ----- Page renderers -----
def render_summary_page():
    render_page_header("Department summary", "Home / Summary", filter_summary_html)
    payload = compute_summary_view(snapshot)
    cols = st.columns(max(1, len(payload["summaries"])))
    for col, summary in zip(cols, payload["summaries"]):
        with col:
            with card(summary["department"]):
                st.markdown(f"<div style='font-size:2rem;font-weight:700;color:#2563eb;'>{summary['total_kpis']}</div>", unsafe_allow_html=True)
                st.caption(f"KPIs ({summary['complete_kpis']} complete)")
                st.markdown(badge(summary["avg_improvement_label"], summary["tone"], summary["trend"]), unsafe_allow_html=True)
                st.button("Show KPIs", key=f"dept_{summary['department']}", on_click=select_department, args=(summary["department"],))
    if payload["charts"]:
        with card("Average improvement by department"):
            st.vega_lite_chart(payload["charts"]["avg_improvement"], use_container_width=True)


def render_cards_page():
    render_page_header("KPI cards", "Home / Cards", filter_summary_html)
    payload = compute_cards_view(filters, snapshot)
    cards = payload["cards"]
    for start in range(0, len(cards), 3):
        cols = st.columns(3)
        for col, kpi in zip(cols, cards[start:start + 3]):
            with col:
                with card(kpi["kpi_name"], actions=f"{kpi['department']} · {kpi['section']}"):
                    if not kpi["is_complete"]:
                        st.caption(f"⚠️ {kpi['placeholder']}")
                    else:
                        values = st.columns(2)
                        values[0].metric("2025", kpi["value_2025_label"])
                        values[1].metric("2024", kpi["value_2024_label"])
                        st.markdown(badge(kpi["improvement_label"], kpi["tone"], kpi["trend"]), unsafe_allow_html=True)


def render_table_page():
    export_df = kpis_to_frame(filtered)
    render_page_header("KPI table", "Home / Table", filter_summary_html, export_df=export_df, export_name="kpis.csv")
    display = table_frame(filtered).drop(columns=["id"]).rename(
        columns={
            "kpi_name": "KPI",
            "department": "Department",
            "section": "Section",
            "value_2024": "2024",
            "value_2025": "2025",
            "improvement": "Improvement",
            "status": "Status",
        }
    )
    st.dataframe(display, hide_index=True, use_container_width=True)


if view_mode == "Department summary":
    render_summary_page()
elif not filtered:
    st.info("No KPIs found. Try changing the filters or the search term.")
elif view_mode == "Cards":
    render_cards_page()
else:
    render_table_page()
