"""
DCU Network Dashboard: interactive front end.

Run with:  streamlit run app.py
"""

import sys
from pathlib import Path

import pandas as pd
import plotly.express as px
import plotly.graph_objects as go
import streamlit as st

sys.path.insert(0, str(Path(__file__).resolve().parent))

from dcu_dashboard.columns import ColumnKind, classify_columns, columns_of_kind, detect_anomalies
from dcu_dashboard.config import (
    DATE_COLUMN,
    DELIMITED_EXTENSIONS,
    METER_NUMBER_COLUMN,
    SPREADSHEET_EXTENSIONS,
)
from dcu_dashboard.dashboard import (
    filter_by_comment,
    get_attention_table,
    get_collection_rate_summary,
    get_comment_summary,
    get_meter_status_table,
    get_rate_points,
    get_status_summary,
    get_top_deviations,
    get_trend_frame,
    map_points,
)
from dcu_dashboard.exceptions import DashboardError
from dcu_dashboard.ingest import DashboardSession
from dcu_dashboard.metrics import analyse_dcus
from dcu_dashboard.simulator import generate_dcu_export
from dcu_dashboard.transforms import rows_to_frame

# ---------------------------------------------------------------------------
# Page config
# ---------------------------------------------------------------------------
st.set_page_config(
    page_title="DCU Network Dashboard",
    page_icon="📡",
    layout="wide",
    initial_sidebar_state="expanded",
)

STATUS_COLORS = {
    "Online": "#2ecc71",
    "Offline": "#e74c3c",
    "Não Registrado": "#95a5a6",
    "Removidos": "#bdc3c7",
}
BAND_COLORS = ["#e74c3c", "#f39c12", "#2ecc71"]

if "session" not in st.session_state:
    st.session_state["session"] = DashboardSession()
session: DashboardSession = st.session_state["session"]

# ---------------------------------------------------------------------------
# Sidebar: data source
# ---------------------------------------------------------------------------
st.sidebar.title("DCU Network")
st.sidebar.markdown("Metering network monitoring")
st.sidebar.divider()

upload = st.sidebar.file_uploader(
    "Load export",
    type=[ext.lstrip(".") for ext in SPREADSHEET_EXTENSIONS + DELIMITED_EXTENSIONS],
)
if upload is not None and st.session_state.get("loaded_name") != upload.name:
    try:
        session.ingest(upload.getvalue(), filename=upload.name)
        st.session_state["loaded_name"] = upload.name
        st.sidebar.success(f"{len(session.snapshot.rows)} records loaded from {upload.name}")
    except DashboardError as exc:
        st.sidebar.error(f"Could not load {upload.name}: {exc}")

if st.sidebar.button("Load shared sheet"):
    try:
        session.ingest_remote()
        st.sidebar.success("Shared sheet loaded")
    except DashboardError as exc:
        st.sidebar.error(f"Could not load shared sheet: {exc}")


@st.cache_data
def simulated_analysis():
    return analyse_dcus(generate_dcu_export())


snapshot = session.snapshot
if snapshot is None:
    st.sidebar.caption("No file loaded: showing simulated data")
    analysis = simulated_analysis()
    meter_history = None
else:
    analysis = snapshot.dcu_analysis
    meter_history = snapshot.meter_history

# ===========================================================================
# Meter exports
# ===========================================================================
if meter_history is not None:
    st.title("Meter Status")
    st.caption(f"Latest date: **{meter_history.latest_date}**")

    cols = st.columns(3)
    cols[0].metric("Meters (latest)", f"{meter_history.total_latest:,}", delta=meter_history.total_change)
    cols[1].metric("Meters (previous)", f"{meter_history.total_previous:,}")
    cols[2].metric("Without location", f"{meter_history.no_location_count:,}")

    table = get_meter_status_table(meter_history)
    fig = go.Figure()
    fig.add_trace(go.Bar(x=table["status"], y=table["previous"], name=meter_history.previous_date or "previous"))
    fig.add_trace(go.Bar(x=table["status"], y=table["latest"], name=meter_history.latest_date))
    fig.update_layout(barmode="group", height=400, plot_bgcolor="rgba(0,0,0,0)")
    st.plotly_chart(fig, use_container_width=True)
    st.dataframe(table, use_container_width=True, hide_index=True)

    st.subheader("Map")
    latest_rows = [r for r in snapshot.rows if r.get(DATE_COLUMN) == meter_history.latest_date]
    st.map(map_points(latest_rows, id_column=METER_NUMBER_COLUMN))
    st.stop()

if analysis is None:
    st.info("Load a DCU export to see the dashboard.")
    st.stop()

page = st.sidebar.radio(
    "Navigate",
    ["Overview", "Collection Rate", "History", "Attention", "Map", "Columns"],
)

# ===========================================================================
# PAGE: Overview
# ===========================================================================
if page == "Overview":
    st.title("Overview")
    st.caption(f"Latest reading: **{analysis.latest_date or 'n/a'}**")

    cols = st.columns(4)
    cols[0].metric("DCUs", analysis.total_dcus)
    cols[1].metric("Overloaded (> 850)", len(analysis.overloaded))
    cols[2].metric("Underloaded (< 50)", len(analysis.underloaded))
    cols[3].metric("Without meters", len(analysis.no_reading))

    col1, col2 = st.columns(2)
    with col1:
        status = get_status_summary(analysis)
        if not status.empty:
            fig = px.pie(status, names="status", values="dcus", color="status",
                         color_discrete_map=STATUS_COLORS, hole=0.4)
            st.plotly_chart(fig, use_container_width=True)
    with col2:
        st.markdown("**Meters by DCU status**")
        st.dataframe(
            pd.DataFrame(list(analysis.readings_by_state.items()), columns=["status", "meters"]),
            use_container_width=True, hide_index=True,
        )

    comments = get_comment_summary(analysis)
    if not comments.empty:
        st.subheader("Comments")
        fig = px.bar(comments, x="comment", y="dcus")
        fig.update_layout(height=350, plot_bgcolor="rgba(0,0,0,0)")
        st.plotly_chart(fig, use_container_width=True)

        selected = st.selectbox("Filter by comment", ["all"] + list(analysis.comments))
        rows = filter_by_comment(analysis, None if selected == "all" else selected)
        st.dataframe(rows_to_frame(rows), use_container_width=True, hide_index=True)

# ===========================================================================
# PAGE: Collection Rate
# ===========================================================================
elif page == "Collection Rate":
    st.title("Collection Rate")

    bands = get_collection_rate_summary(analysis)
    if bands.empty:
        st.warning("No collection rate data in this export.")
    else:
        col1, col2 = st.columns([1, 2])
        with col1:
            fig = px.pie(bands, names="band", values="dcus", color_discrete_sequence=BAND_COLORS, hole=0.4)
            st.plotly_chart(fig, use_container_width=True)
        with col2:
            lowest = get_rate_points(analysis, lowest_only=True)
            fig = px.bar(lowest, x="dcu", y="rate", hover_data=["load"], title="Lowest collection rates")
            fig.add_hline(y=95, line_dash="dash", line_color="#e74c3c")
            st.plotly_chart(fig, use_container_width=True)

        scatter = get_rate_points(analysis)
        fig = px.scatter(scatter, x="rate", y="load", hover_name="dcu", title="Load vs. collection rate")
        fig.add_vline(x=95, line_dash="dash", line_color="#e74c3c")
        fig.add_hline(y=850, line_dash="dash", line_color="#f39c12")
        st.plotly_chart(fig, use_container_width=True)

# ===========================================================================
# PAGE: History
# ===========================================================================
elif page == "History":
    st.title("Load History")

    trend = get_trend_frame(analysis)
    if trend.empty:
        st.warning("No dated meter columns in this export.")
    else:
        fig = go.Figure()
        for column in trend.columns:
            dashed = column == "average"
            fig.add_trace(go.Scatter(
                x=trend.index,
                y=trend[column],
                name="Mean of top DCUs" if dashed else column,
                mode="lines" if dashed else "lines+markers",
                line=dict(dash="dash", color="#888") if dashed else None,
            ))
        fig.update_layout(height=450, yaxis_title="Meters", plot_bgcolor="rgba(0,0,0,0)")
        st.plotly_chart(fig, use_container_width=True)
        st.dataframe(get_top_deviations(analysis).round(1), use_container_width=True, hide_index=True)

# ===========================================================================
# PAGE: Attention
# ===========================================================================
elif page == "Attention":
    st.title("Attention Cases")

    cols = st.columns(3)
    cols[0].metric("Attention cases", analysis.total_attention_cases)
    cols[1].metric("Under study", analysis.total_in_study)
    cols[2].metric("Under study (%)", f"{analysis.in_study_percent}%")

    stages = pd.DataFrame(
        [(stage, len(rows)) for stage, rows in analysis.in_study_by_stage.items()],
        columns=["stage", "dcus"],
    )
    st.dataframe(stages, use_container_width=True, hide_index=True)
    st.dataframe(get_attention_table(analysis), use_container_width=True, hide_index=True)

# ===========================================================================
# PAGE: Map
# ===========================================================================
elif page == "Map":
    st.title("DCU Map")

    subset = st.selectbox("Show", ["All", "Offline", "Overloaded", "Below 95%"])
    rows = {
        "All": analysis.rows,
        "Offline": analysis.unreachable,
        "Overloaded": analysis.overloaded,
        "Below 95%": analysis.rate_below,
    }[subset]
    points = map_points(rows)
    st.caption(f"{len(points)} of {len(rows)} DCUs have valid coordinates")
    st.map(points)

# ===========================================================================
# PAGE: Columns
# ===========================================================================
elif page == "Columns":
    st.title("Columns")

    columns = classify_columns(list(analysis.rows))
    st.dataframe(
        pd.DataFrame([
            {
                "column": info.name,
                "kind": info.kind.value,
                "unique": info.unique_count,
                "min": info.min,
                "max": info.max,
                "mean": info.mean,
            }
            for info in columns.values()
        ]),
        use_container_width=True,
        hide_index=True,
    )

    numeric = columns_of_kind(columns, ColumnKind.NUMBER)
    if numeric:
        column = st.selectbox("Anomalies in", numeric, index=len(numeric) - 1)
        anomalies = detect_anomalies(list(analysis.rows), column)
        st.caption(f"{len(anomalies)} DCUs more than two standard deviations from the mean")
        st.dataframe(rows_to_frame(anomalies), use_container_width=True, hide_index=True)
