"""
Loader for delimited text exports (.csv, .tsv, .txt).

The exports come from different spreadsheet tools, so the delimiter is
sniffed from the header line: tab, then semicolon, then comma. Tokenisation
is a plain split followed by trimming and removal of double quotes; a quoted
field containing the delimiter is split like any other.
"""

import logging

logger = logging.getLogger(__name__)

_DELIMITER_PRIORITY = ("\t", ";", ",")
_DEFAULT_DELIMITER = "\t"


def sniff_delimiter(header_line: str) -> str:
    """Return the first delimiter of tab, semicolon, comma found in the line."""
    for delimiter in _DELIMITER_PRIORITY:
        if delimiter in header_line:
            return delimiter
    return _DEFAULT_DELIMITER


def _clean(cell: str) -> str:
    return cell.strip().replace('"', "")


def decode_text(content: bytes) -> str:
    """Decode uploaded bytes, preferring UTF-8 and falling back to Latin-1."""
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.warning("Content is not valid UTF-8, decoding as Latin-1")
        return content.decode("latin-1")


def parse_delimited(text: str) -> list[dict]:
    """Parse delimited text into a list of row dicts.

    Assumptions
    -----------
    - The first non-blank line is the header.
    - Cell i of a data line belongs to header i. Missing or empty cells are
      recorded as None; extra cells beyond the header are ignored.
    - Repeated header names are not deduplicated; the last cell wins.
    - Rows whose cells are all empty are dropped.

    Returns
    -------
    List of dicts keyed by header name, in file order. Empty when the text
    has no non-blank lines.
    """
    lines = [line for line in text.splitlines() if line.strip()]
    if not lines:
        logger.warning("Delimited input is empty")
        return []

    delimiter = sniff_delimiter(lines[0])
    headers = [_clean(h) for h in lines[0].split(delimiter)]
    logger.info(
        "Detected delimiter %r with %d header columns", delimiter, len(headers)
    )

    rows = []
    for line in lines[1:]:
        values = [_clean(v) for v in line.split(delimiter)]
        record: dict = {}
        for idx, header in enumerate(headers):
            value = values[idx] if idx < len(values) else None
            record[header] = value or None
        if any(v is not None and v != "" for v in record.values()):
            rows.append(record)

    logger.info("Parsed %d delimited rows", len(rows))
    return rows
