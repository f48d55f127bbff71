"""
Loader for binary spreadsheet exports (.xlsx via openpyxl, .xls via xlrd).

Only the first sheet is read. Its first row holds the field names and each
following row becomes a dict; empty cells are left out of the dict rather
than stored as None, so "column absent" and "column blank" stay
distinguishable downstream.
"""

import io
import logging
from pathlib import Path
from typing import Any

import openpyxl
import xlrd

from ..exceptions import FormatError
from .utils import clean_cell

logger = logging.getLogger(__name__)

_EMPTY_HEADER = "__EMPTY"


def _header_names(raw_headers) -> list[str]:
    """Stringify header cells, naming blank ones __EMPTY, __EMPTY_1, ..."""
    names = []
    empty_count = 0
    for raw in raw_headers:
        if raw is None or str(raw).strip() == "":
            names.append(_EMPTY_HEADER if empty_count == 0 else f"{_EMPTY_HEADER}_{empty_count}")
            empty_count += 1
        else:
            names.append(str(raw).strip())
    return names


def _rows_from_values(value_rows) -> list[dict]:
    """Turn an iterator of row value tuples into header-keyed dicts."""
    value_rows = iter(value_rows)
    try:
        headers = _header_names(next(value_rows))
    except StopIteration:
        return []

    rows = []
    for values in value_rows:
        record: dict = {}
        for header, value in zip(headers, values):
            if value is None:
                continue
            record[header] = clean_cell(value)
        if record:
            rows.append(record)
    return rows


def _read_xlsx(content: bytes) -> list[dict]:
    try:
        wb = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as exc:
        logger.exception("Failed to open workbook")
        raise FormatError(f"Not a valid .xlsx workbook: {exc}") from exc

    try:
        ws = wb.worksheets[0]
        logger.info("Reading first sheet '%s' of %d", ws.title, len(wb.sheetnames))
        return _rows_from_values(ws.iter_rows(values_only=True))
    finally:
        wb.close()


def _xls_cell_value(cell, datemode: int) -> Any:
    if cell.ctype in (xlrd.XL_CELL_EMPTY, xlrd.XL_CELL_BLANK):
        return None
    if cell.ctype == xlrd.XL_CELL_DATE:
        return xlrd.xldate.xldate_as_datetime(cell.value, datemode)
    if cell.ctype == xlrd.XL_CELL_BOOLEAN:
        return bool(cell.value)
    if cell.ctype == xlrd.XL_CELL_ERROR:
        return xlrd.error_text_from_code.get(cell.value)
    return cell.value


def _read_xls(content: bytes) -> list[dict]:
    try:
        book = xlrd.open_workbook(file_contents=content)
    except Exception as exc:
        logger.exception("Failed to open legacy workbook")
        raise FormatError(f"Not a valid .xls workbook: {exc}") from exc

    sheet = book.sheet_by_index(0)
    logger.info("Reading first sheet '%s' of %d", sheet.name, book.nsheets)
    value_rows = (
        [_xls_cell_value(cell, book.datemode) for cell in sheet.row(idx)]
        for idx in range(sheet.nrows)
    )
    return _rows_from_values(value_rows)


def read_spreadsheet_rows(source: bytes | str | Path, extension: str = ".xlsx") -> list[dict]:
    """Load the first sheet of a workbook as a list of row dicts.

    Parameters
    ----------
    source : Raw workbook bytes, or a path to the file.
    extension : ".xlsx" or ".xls"; ignored when source is a path with a suffix.

    Returns
    -------
    List of dicts keyed by the first-row field names. Numbers stay numeric
    (integral floats become int) and date cells become datetime.

    Raises
    ------
    FormatError : the content is not a decodable workbook.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        extension = path.suffix or extension
        content = path.read_bytes()
    else:
        content = source

    if extension.lower() == ".xls":
        rows = _read_xls(content)
    else:
        rows = _read_xlsx(content)

    logger.info("Extracted %d spreadsheet rows", len(rows))
    return rows
