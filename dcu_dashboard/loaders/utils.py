"""
Shared utilities for data ingestion: cell coercion, dated column names,
date tokens.
"""

import logging
import math
import numbers
import re
from datetime import datetime
from typing import Any

import pandas as pd

from ..config import DATE_TOKEN_PATTERN

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_DATE_TOKEN = re.compile(DATE_TOKEN_PATTERN)


def is_missing(val: Any) -> bool:
    """True for None and float NaN (pandas' missing marker)."""
    if val is None:
        return True
    try:
        return bool(pd.isna(val))
    except (TypeError, ValueError):
        return False


def parse_int(val: Any) -> int | None:
    """Read an integer the permissive way spreadsheet users expect.

    Strings contribute their leading optional sign and digits, so "12 meters"
    is 12 and "abc" is None. Finite numbers are truncated toward zero.
    Returns None for anything else.
    """
    if is_missing(val) or isinstance(val, bool):
        return None
    if isinstance(val, numbers.Integral):
        return int(val)
    if isinstance(val, numbers.Real):
        if math.isinf(val):
            return None
        return int(val)
    match = _LEADING_INT.match(str(val))
    if not match:
        return None
    return int(match.group(1))


def parse_float(val: Any) -> float | None:
    """Read a float from the leading numeric part of a value.

    Returns None for missing, empty and non-numeric values.
    """
    if is_missing(val) or isinstance(val, bool):
        return None
    if isinstance(val, numbers.Real):
        return float(val)
    match = _LEADING_FLOAT.match(str(val))
    if not match:
        return None
    return float(match.group(1))


def clean_cell(val: Any) -> Any:
    """Normalise a decoded spreadsheet value.

    Integral floats become ints so "850.0" style artefacts of the binary
    format compare like the integers users typed. Strings are kept verbatim.
    """
    if isinstance(val, float) and val.is_integer():
        return int(val)
    return val


def dated_column_token(column: str, prefix: str) -> str | None:
    """Return the DD.MM.YYYY token of a "<prefix> DD.MM.YYYY" column name.

    The remainder after the prefix and a single space must be exactly the
    token; "Meters 1.02.2024" or "Meters 01.02.2024 (old)" are not dated.
    """
    head = f"{prefix} "
    if not isinstance(column, str) or not column.startswith(head):
        return None
    token = column[len(head):]
    if _DATE_TOKEN.fullmatch(token):
        return token
    return None


def column_names(rows) -> list:
    """Every key used by any row, in first-seen order.

    Spreadsheet rows omit empty cells, so the first row alone can miss
    columns the sheet header declares.
    """
    names: dict = {}
    for row in rows:
        names.update(dict.fromkeys(row))
    return list(names)


def dated_columns(columns, prefix: str) -> dict[str, str]:
    """Map each dated column of the given family to its date token, in column order."""
    found = {}
    for column in columns:
        token = dated_column_token(column, prefix)
        if token is not None:
            found[column] = token
    return found


def parse_date_token(token: Any) -> datetime | None:
    """Convert a DD.MM.YYYY (or DD/MM/YYYY) token to a datetime.

    Returns None for unparseable values.
    """
    if is_missing(token):
        return None
    if isinstance(token, datetime):
        return token
    text = str(token).strip()
    for fmt in ("%d.%m.%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    logger.debug("Could not parse date token: %s", token)
    return None


def to_number(val: Any) -> float | None:
    """Strict numeric conversion: the whole value must be a number.

    Unlike parse_float, "12abc" is rejected. NaN and infinities are None.
    """
    if is_missing(val) or isinstance(val, bool):
        return None
    if isinstance(val, numbers.Real):
        number = float(val)
    else:
        try:
            number = float(str(val).strip())
        except ValueError:
            return None
    if not math.isfinite(number):
        return None
    return number
