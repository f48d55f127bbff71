"""
Configuration: column names, dated-column prefixes, state labels, thresholds.

DerivationConfig bundles everything the metric engine is parameterised by,
so differences between dashboard deployments are a config diff rather than
a second copy of the analysis code.
"""

import os
from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Remote source
# ---------------------------------------------------------------------------
# Spreadsheet export of the shared DCU sheet
DATA_URL = os.environ.get(
    "DCU_DASHBOARD_DATA_URL",
    "https://docs.google.com/spreadsheets/d/1k5CmUWiCf3KVuewsvSlkTvUQMY57S2Y0/export?format=xlsx",
)
FETCH_TIMEOUT_SECONDS = 30.0

DELIMITED_EXTENSIONS = (".csv", ".tsv", ".txt")
SPREADSHEET_EXTENSIONS = (".xlsx", ".xls")

# ---------------------------------------------------------------------------
# Column names
# ---------------------------------------------------------------------------
DCU_COLUMN = "DCU"
STATUS_COLUMN = "Status"
COMMENT_COLUMN = "Comentário"
ANALYSIS_STATUS_COLUMN = "Status da Análise"
COLLECTION_RATE_COLUMN = "Taxa de coleta"
LAT_COLUMN = "LAT"
LONG_COLUMN = "LONG"
METER_NUMBER_COLUMN = "Meter Number"
DATE_COLUMN = "Data"

# ---------------------------------------------------------------------------
# Dated column families: "<prefix> DD.MM.YYYY"
# ---------------------------------------------------------------------------
READING_PREFIX = "Meters"
STATE_PREFIX = "Status"
GROUP_PREFIX = "DCU"

DATE_TOKEN_PATTERN = r"\d{2}\.\d{2}\.\d{4}"

# ---------------------------------------------------------------------------
# Sentinels
# ---------------------------------------------------------------------------
NOT_AVAILABLE = "#N/D"
NULL_MARKER = "null"
INTERNAL_COMMENT_PREFIX = "Interno"
UNKNOWN_STATUS = "Unknown"

# ---------------------------------------------------------------------------
# State labels (compared case-insensitively, untrimmed)
# ---------------------------------------------------------------------------
OPERATIONAL_LABELS = ("online",)
UNREACHABLE_LABELS = ("offline",)
UNREGISTERED_LABELS = ("não registrado",)

# Display names for the status pie
STATE_DISPLAY_NAMES = {
    "operational": "Online",
    "unreachable": "Offline",
    "unregistered": "Não Registrado",
}

# ---------------------------------------------------------------------------
# Cases under study
# ---------------------------------------------------------------------------
IN_STUDY_COMMENT = "em estudo"

# (key, label in the "Status da Análise" column), in display order
ANALYSIS_STAGES: tuple[tuple[str, str], ...] = (
    ("identified", "identificado"),
    ("under_analysis", "em análise"),
    ("awaiting_action", "aguardando atuação"),
    ("solved", "solucionado"),
)

# ---------------------------------------------------------------------------
# Thresholds
# ---------------------------------------------------------------------------
OVERLOAD_THRESHOLD = 850
UNDERLOAD_THRESHOLD = 50
RATE_LOW_THRESHOLD = 95.0
RATE_HIGH_THRESHOLD = 98.0
TOP_N = 10

RATE_BAND_DISPLAY_NAMES = {
    "below": "Abaixo de 95%",
    "between": "Entre 95% e 98%",
    "above": "Acima de 98%",
}

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
# DCU identifiers never drawn on maps
MAP_EXCLUDED_IDS: tuple[str, ...] = ()


@dataclass(frozen=True)
class DerivationConfig:
    """Labels, column names and thresholds used by the metric engine."""

    id_column: str = DCU_COLUMN
    status_column: str = STATUS_COLUMN
    comment_column: str = COMMENT_COLUMN
    analysis_status_column: str = ANALYSIS_STATUS_COLUMN
    rate_column: str = COLLECTION_RATE_COLUMN
    reading_prefix: str = READING_PREFIX

    operational_labels: tuple[str, ...] = OPERATIONAL_LABELS
    unreachable_labels: tuple[str, ...] = UNREACHABLE_LABELS
    unregistered_labels: tuple[str, ...] = UNREGISTERED_LABELS

    not_available: str = NOT_AVAILABLE
    null_marker: str = NULL_MARKER
    internal_comment_prefix: str = INTERNAL_COMMENT_PREFIX
    in_study_comment: str = IN_STUDY_COMMENT
    analysis_stages: tuple[tuple[str, str], ...] = ANALYSIS_STAGES

    overload_threshold: int = OVERLOAD_THRESHOLD
    underload_threshold: int = UNDERLOAD_THRESHOLD
    rate_low_threshold: float = RATE_LOW_THRESHOLD
    rate_high_threshold: float = RATE_HIGH_THRESHOLD
    top_n: int = TOP_N


DEFAULT_CONFIG = DerivationConfig()
