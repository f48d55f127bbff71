"""
Column classification for generic exports.

classify_columns() tags every column once with a ColumnKind so chart and
table code can pick columns by kind instead of re-testing names.
"""

import enum
import logging
from dataclasses import dataclass
from datetime import date

import pandas as pd

from .loaders.utils import column_names, is_missing, parse_date_token, to_number

logger = logging.getLogger(__name__)

_MAX_STATUS_VALUES = 10
_DATE_SAMPLE_SIZE = 10


class ColumnKind(enum.Enum):
    LOCATION = "location"
    DATE = "date"
    NUMBER = "number"
    STATUS = "status"
    TEXT = "text"


@dataclass(frozen=True)
class ColumnInfo:
    name: str
    kind: ColumnKind
    unique_count: int
    min: float | None = None
    max: float | None = None
    mean: float | None = None


def _looks_like_date(value) -> bool:
    if is_missing(value) or value == "":
        return False
    if isinstance(value, (date, pd.Timestamp)):
        return True
    if not isinstance(value, str):
        return False
    if parse_date_token(value) is not None:
        return True
    # bare numbers such as meter counts are not dates
    if to_number(value) is not None:
        return False
    try:
        pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return False
    return True


def classify_column(name: str, values: list) -> ColumnInfo:
    """Classify one column from its name and non-null values.

    Location names win over everything, then date names or date-like
    sampled values, then all-numeric values, then low-cardinality
    "status" columns. Anything else is text.
    """
    lowered = name.lower()
    unique_count = len({str(v) for v in values})

    if "lat" in lowered or "long" in lowered or "coord" in lowered:
        return ColumnInfo(name, ColumnKind.LOCATION, unique_count)

    if (
        "data" in lowered
        or "date" in lowered
        or any(_looks_like_date(v) for v in values[:_DATE_SAMPLE_SIZE])
    ):
        return ColumnInfo(name, ColumnKind.DATE, unique_count)

    numbers = pd.to_numeric(pd.Series(values, dtype=object), errors="coerce")
    if values and numbers.notna().all():
        return ColumnInfo(
            name,
            ColumnKind.NUMBER,
            unique_count,
            min=float(numbers.min()),
            max=float(numbers.max()),
            mean=float(numbers.mean()),
        )

    if unique_count <= _MAX_STATUS_VALUES and "status" in lowered:
        return ColumnInfo(name, ColumnKind.STATUS, unique_count)

    return ColumnInfo(name, ColumnKind.TEXT, unique_count)


def classify_columns(rows: list[dict]) -> dict[str, ColumnInfo]:
    """Classify every column used by any row, in column order."""
    if not rows:
        return {}

    result = {}
    for name in column_names(rows):
        values = [row.get(name) for row in rows if not is_missing(row.get(name))]
        result[name] = classify_column(name, values)

    kinds = pd.Series([info.kind.value for info in result.values()]).value_counts()
    logger.info("Classified %d columns: %s", len(result), kinds.to_dict())
    return result


def columns_of_kind(columns: dict[str, ColumnInfo], kind: ColumnKind) -> list[str]:
    return [name for name, info in columns.items() if info.kind is kind]


def detect_anomalies(rows: list[dict], column: str) -> list[dict]:
    """Return rows whose value lies more than two standard deviations from the mean.

    Uses the population standard deviation over the numeric values of the
    column; non-numeric cells are ignored.
    """
    values = pd.to_numeric(pd.Series([row.get(column) for row in rows], dtype=object), errors="coerce")
    present = values.dropna()
    if present.empty:
        return []

    mean = present.mean()
    threshold = 2 * present.std(ddof=0)
    flagged = (values - mean).abs() > threshold
    return [row for row, is_anomaly in zip(rows, flagged) if is_anomaly]
