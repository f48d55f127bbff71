"""
Dashboard-ready output functions.

These are the entry points for a Streamlit/Dash front end. Each function
reads an AnalysisResult (or MeterHistoryResult) and returns a DataFrame or
plain list suitable for cards, Plotly charts and tables. No metric is
derived here.
"""

import logging

import pandas as pd

from .config import (
    COMMENT_COLUMN,
    DCU_COLUMN,
    LAT_COLUMN,
    LONG_COLUMN,
    MAP_EXCLUDED_IDS,
    STATUS_COLUMN,
)
from .loaders.utils import to_number
from .metrics import attention_reason, has_valid_coordinates
from .models import AnalysisResult, MeterHistoryResult

logger = logging.getLogger(__name__)


def get_status_summary(analysis: AnalysisResult) -> pd.DataFrame:
    """Status pie data: one row per recognised state with at least one DCU.

    Returns
    -------
    DataFrame with columns: status, dcus
    """
    return pd.DataFrame(analysis.status_counts, columns=["status", "dcus"])


def get_collection_rate_summary(analysis: AnalysisResult) -> pd.DataFrame:
    """Collection-rate pie data.

    Returns
    -------
    DataFrame with columns: band, dcus
    """
    return pd.DataFrame(analysis.rate_band_counts, columns=["band", "dcus"])


def get_comment_summary(analysis: AnalysisResult) -> pd.DataFrame:
    """Comment bar-chart data, most frequent first."""
    return pd.DataFrame(
        [(g.comment, g.count) for g in analysis.comment_groups],
        columns=["comment", "dcus"],
    )


def get_top_deviations(analysis: AnalysisResult) -> pd.DataFrame:
    """Top-deviation table.

    Returns
    -------
    DataFrame with columns:
        dcu, average, latest_value, deviation, deviation_pct
    """
    columns = ["dcu", "average", "latest_value", "deviation", "deviation_pct"]
    rows = [
        (h.dcu, h.average, h.latest_value, h.deviation, h.deviation_percent)
        for h in analysis.top_deviations
    ]
    return pd.DataFrame(rows, columns=columns)


def get_trend_frame(analysis: AnalysisResult) -> pd.DataFrame:
    """Reading history of the top-deviation DCUs, one column per DCU.

    The index holds the date tokens in the same order used to pick the
    latest column; an "average" column carries the rounded mean of the top
    DCUs' averages for the dashed reference line.
    """
    if not analysis.dates:
        return pd.DataFrame()

    series = {
        str(h.dcu): pd.Series(dict(h.history), dtype="int64")
        for h in analysis.top_deviations
    }
    frame = pd.DataFrame(series, index=list(analysis.dates))
    frame.index.name = "date"
    frame["average"] = round(analysis.overall_average)
    return frame


def get_rate_points(analysis: AnalysisResult, lowest_only: bool = False) -> pd.DataFrame:
    """Collection rate against load (latest meter count) per DCU.

    With lowest_only, only the DCUs with the lowest rates are returned,
    lowest first.
    """
    points = analysis.lowest_collection_rates if lowest_only else analysis.rate_load_points
    return pd.DataFrame(
        [(p.dcu, p.rate, p.load) for p in points],
        columns=["dcu", "rate", "load"],
    )


def get_attention_table(analysis: AnalysisResult) -> pd.DataFrame:
    """Every DCU needing attention with the reason, offline first."""
    records = []
    for subset in (analysis.unreachable, analysis.unregistered, analysis.operational_no_reading):
        for row in subset:
            records.append({
                "dcu": row.get(DCU_COLUMN),
                "status": row.get(STATUS_COLUMN),
                "comment": row.get(COMMENT_COLUMN),
                "reason": attention_reason(row, analysis.latest_column).value,
            })
    return pd.DataFrame(records, columns=["dcu", "status", "comment", "reason"])


def filter_by_comment(analysis: AnalysisResult, comment: str | None) -> list[dict]:
    """Rows carrying the given comment; every row when comment is None."""
    if comment is None:
        return list(analysis.rows)
    return [row for row in analysis.rows if row.get(COMMENT_COLUMN) == comment]


def map_points(
    rows,
    excluded_ids=MAP_EXCLUDED_IDS,
    id_column: str = DCU_COLUMN,
) -> pd.DataFrame:
    """Rows with valid coordinates as map points.

    DCU identifiers in excluded_ids are dropped here only; the analysis
    itself still counts them.

    Returns
    -------
    DataFrame with columns: id, latitude, longitude, status
    """
    excluded = {str(x) for x in excluded_ids}
    points = []
    skipped = 0
    for row in rows:
        if not has_valid_coordinates(row):
            skipped += 1
            continue
        if str(row.get(id_column)) in excluded:
            continue
        points.append({
            "id": row.get(id_column),
            "latitude": to_number(row.get(LAT_COLUMN)),
            "longitude": to_number(row.get(LONG_COLUMN)),
            "status": row.get(STATUS_COLUMN),
        })

    if skipped:
        logger.info("Skipped %d rows without valid coordinates", skipped)
    return pd.DataFrame(points, columns=["id", "latitude", "longitude", "status"])


def get_meter_status_table(history: MeterHistoryResult) -> pd.DataFrame:
    """Per-status counts at the latest and previous dates with the change.

    Returns
    -------
    DataFrame with columns: status, latest, previous, change
    """
    rows = [
        (
            status,
            history.status_counts.get(status, 0),
            history.previous_status_counts.get(status, 0),
            change,
        )
        for status, change in history.changes.items()
    ]
    return pd.DataFrame(rows, columns=["status", "latest", "previous", "change"])
