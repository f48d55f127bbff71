"""
Data transforms: detect the layout of a loaded export and melt the wide
meter layout into one record per (meter, date).

Two wide layouts exist in the field:

- Meter exports carry paired "Status DD.MM.YYYY" / "DCU DD.MM.YYYY" columns.
  Status history is analysed per date, so these are melted to long form.
- DCU exports carry "Meters DD.MM.YYYY" reading counts. Load history is
  analysed per DCU across dates, so these stay wide.
"""

import enum
import logging

import pandas as pd

from .config import (
    DATE_COLUMN,
    DCU_COLUMN,
    GROUP_PREFIX,
    LAT_COLUMN,
    LONG_COLUMN,
    METER_NUMBER_COLUMN,
    READING_PREFIX,
    STATE_PREFIX,
    STATUS_COLUMN,
)
from .loaders.utils import column_names, dated_columns

logger = logging.getLogger(__name__)


class Layout(enum.Enum):
    """Shape of a loaded export, decided from column names only."""

    METER_WIDE = "meter_wide"
    DCU_WIDE = "dcu_wide"
    FLAT = "flat"


def detect_layout(rows: list[dict]) -> Layout:
    """Classify rows by the dated column families found across all rows."""
    if not rows:
        return Layout.FLAT

    columns = column_names(rows)
    if dated_columns(columns, STATE_PREFIX) and dated_columns(columns, GROUP_PREFIX):
        return Layout.METER_WIDE
    if dated_columns(columns, READING_PREFIX):
        return Layout.DCU_WIDE
    return Layout.FLAT


def melt_meter_rows(rows: list[dict]) -> list[dict]:
    """Melt paired Status/DCU dated columns into one row per meter and date.

    For each date of the Status family (column order), every input row
    yields a record with the meter number, location, the status and DCU at
    that date, and the date token. N rows and D dates give N * D records,
    including records whose status is blank.

    Returns
    -------
    List of dicts with keys:
        Meter Number, LAT, LONG, Status, DCU, Data
    """
    status_columns = dated_columns(column_names(rows), STATE_PREFIX)

    long_rows = []
    for status_col, date in status_columns.items():
        group_col = f"{GROUP_PREFIX} {date}"
        for row in rows:
            long_rows.append({
                METER_NUMBER_COLUMN: row.get(METER_NUMBER_COLUMN),
                LAT_COLUMN: row.get(LAT_COLUMN),
                LONG_COLUMN: row.get(LONG_COLUMN),
                STATUS_COLUMN: row.get(status_col),
                DCU_COLUMN: row.get(group_col),
                DATE_COLUMN: date,
            })

    logger.info(
        "Melted %d meter rows across %d dates into %d records",
        len(rows), len(status_columns), len(long_rows),
    )
    return long_rows


def reshape_wide_rows(rows: list[dict]) -> list[dict]:
    """Return rows in the shape the metric engine expects.

    Meter exports with paired Status/DCU dated columns are melted; DCU
    exports with Meters dated columns and unrecognised layouts are returned
    unchanged. Never raises.
    """
    layout = detect_layout(rows)
    if layout is Layout.METER_WIDE:
        return melt_meter_rows(rows)

    if layout is Layout.DCU_WIDE:
        n_dates = len(dated_columns(column_names(rows), READING_PREFIX))
        logger.info("Keeping wide DCU layout: %d DCUs x %d dates", len(rows), n_dates)
    else:
        logger.info("No dated column family detected, rows kept as loaded")
    return rows


def rows_to_frame(rows: list[dict]) -> pd.DataFrame:
    """Build a DataFrame whose columns follow first-seen key order across rows."""
    if not rows:
        return pd.DataFrame()
    return pd.DataFrame.from_records(rows, columns=column_names(rows))
