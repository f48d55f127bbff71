"""Data ingestion loaders for DCU and meter exports."""

from .delimited import decode_text, parse_delimited, sniff_delimiter
from .remote import fetch_remote_workbook
from .spreadsheet import read_spreadsheet_rows

__all__ = [
    "decode_text",
    "parse_delimited",
    "sniff_delimiter",
    "fetch_remote_workbook",
    "read_spreadsheet_rows",
]
