"""
Loader for the shared DCU sheet published as a spreadsheet export URL.

A single GET of a static export is all the dashboard needs; there is no
retry or polling. The body is handed to the spreadsheet loader unchanged.
"""

import logging

import requests

from ..config import DATA_URL, FETCH_TIMEOUT_SECONDS
from ..exceptions import RemoteFetchError
from .spreadsheet import read_spreadsheet_rows

logger = logging.getLogger(__name__)


def fetch_remote_workbook(
    url: str = DATA_URL,
    timeout: float = FETCH_TIMEOUT_SECONDS,
    session: requests.Session | None = None,
) -> list[dict]:
    """Download a spreadsheet export and return its first sheet as rows.

    Raises
    ------
    RemoteFetchError : the request failed or returned an error status.
    FormatError : the response body is not a workbook.
    """
    http = session or requests.Session()
    try:
        response = http.get(url, timeout=timeout)
        response.raise_for_status()
    except requests.RequestException as exc:
        logger.error("Failed to fetch remote workbook from %s: %s", url, exc)
        raise RemoteFetchError(f"Could not download {url}: {exc}") from exc

    rows = read_spreadsheet_rows(response.content, ".xlsx")
    logger.info("Loaded %d DCU rows from remote workbook", len(rows))
    return rows
