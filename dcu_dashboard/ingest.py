"""
Ingestion: dispatch a file to the right loader, reshape, and analyse.

DashboardSession keeps the last successful analysis. A failed or empty
load leaves it untouched, so the front end never shows a half-updated
result.
"""

import logging
from dataclasses import dataclass
from pathlib import Path

from .config import (
    DATE_COLUMN,
    DEFAULT_CONFIG,
    METER_NUMBER_COLUMN,
    SPREADSHEET_EXTENSIONS,
    DerivationConfig,
)
from .exceptions import EmptyInputError
from .loaders import decode_text, fetch_remote_workbook, parse_delimited, read_spreadsheet_rows
from .metrics import analyse_dcus, analyse_meter_history
from .models import AnalysisResult, MeterHistoryResult
from .transforms import Layout, detect_layout, reshape_wide_rows

logger = logging.getLogger(__name__)


def read_rows(source: bytes | str | Path, filename: str | None = None) -> list[dict]:
    """Load a DCU or meter export as rows, before any reshaping.

    Parameters
    ----------
    source : File path, or raw bytes of an uploaded file.
    filename : Name used for the extension hint when source is bytes.

    Raises
    ------
    FormatError : a spreadsheet could not be decoded.
    EmptyInputError : the file produced no rows.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        filename = filename or path.name
        content = path.read_bytes()
    else:
        content = source

    extension = Path(filename or "").suffix.lower()
    if extension in SPREADSHEET_EXTENSIONS:
        rows = read_spreadsheet_rows(content, extension)
    else:
        rows = parse_delimited(decode_text(content))

    if not rows:
        raise EmptyInputError(f"{filename or 'input'} is empty or has no data rows")

    logger.info("Loaded %d rows from %s", len(rows), filename or "upload")
    return rows


def load_rows(source: bytes | str | Path, filename: str | None = None) -> list[dict]:
    """Load a DCU or meter export and return rows in analysis shape."""
    return reshape_wide_rows(read_rows(source, filename))


def is_meter_records(rows: list[dict]) -> bool:
    """True for long-format meter rows (one per meter and date)."""
    return bool(rows) and DATE_COLUMN in rows[0] and METER_NUMBER_COLUMN in rows[0]


@dataclass(frozen=True)
class Snapshot:
    """One successful ingestion."""

    source: str
    layout: Layout
    rows: tuple[dict, ...]
    dcu_analysis: AnalysisResult | None = None
    meter_history: MeterHistoryResult | None = None


class DashboardSession:
    """Holds the current snapshot and replaces it whole on each ingestion."""

    def __init__(self, config: DerivationConfig = DEFAULT_CONFIG):
        self.config = config
        self.snapshot: Snapshot | None = None

    @property
    def has_data(self) -> bool:
        return self.snapshot is not None

    def _publish(self, raw_rows: list[dict], source: str) -> Snapshot:
        if not raw_rows:
            raise EmptyInputError(f"{source} produced no rows")

        layout = detect_layout(raw_rows)
        rows = reshape_wide_rows(raw_rows)
        if is_meter_records(rows):
            snapshot = Snapshot(source, layout, tuple(rows), meter_history=analyse_meter_history(rows))
        else:
            snapshot = Snapshot(source, layout, tuple(rows), dcu_analysis=analyse_dcus(rows, self.config))

        self.snapshot = snapshot
        logger.info("Published snapshot from %s (%s, %d rows)", source, layout.value, len(rows))
        return snapshot

    def ingest(self, source: bytes | str | Path, filename: str | None = None) -> Snapshot:
        """Load, reshape and analyse a file, then publish the result.

        On FormatError or EmptyInputError the previous snapshot is kept and
        the error propagates.
        """
        name = filename or (Path(source).name if isinstance(source, (str, Path)) else "upload")
        try:
            raw_rows = read_rows(source, filename=name)
        except Exception:
            logger.warning("Ingestion of %s failed, keeping previous data", name)
            raise
        return self._publish(raw_rows, name)

    def ingest_remote(self, url: str | None = None, **kwargs) -> Snapshot:
        """Fetch the shared DCU sheet and publish it.

        On RemoteFetchError or FormatError the previous snapshot is kept and
        the error propagates.
        """
        if url is not None:
            kwargs["url"] = url
        try:
            raw_rows = fetch_remote_workbook(**kwargs)
        except Exception:
            logger.warning("Remote ingestion failed, keeping previous data")
            raise
        return self._publish(raw_rows, kwargs.get("url", "remote"))
