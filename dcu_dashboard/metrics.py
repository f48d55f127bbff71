"""
Metric computation: pure functions with no side effects.

analyse_dcus() derives every DCU dashboard metric from wide DCU rows
(one row per DCU, one "Meters DD.MM.YYYY" column per date).
analyse_meter_history() summarises long-format meter rows produced by
transforms.melt_meter_rows().

Malformed cells never raise: readings that cannot be parsed count as "no
reading" (or zero in averages) and unparseable rates fall out of every band.
"""

import logging
import math
from collections import Counter
from typing import Any

from .config import (
    DATE_COLUMN,
    DEFAULT_CONFIG,
    LAT_COLUMN,
    LONG_COLUMN,
    RATE_BAND_DISPLAY_NAMES,
    STATE_DISPLAY_NAMES,
    STATUS_COLUMN,
    UNKNOWN_STATUS,
    DerivationConfig,
)
from .loaders.utils import (
    column_names,
    dated_columns,
    is_missing,
    parse_date_token,
    parse_float,
    parse_int,
    to_number,
)
from .models import (
    AnalysisResult,
    AttentionReason,
    CommentGroup,
    DcuHistory,
    MeterHistoryResult,
    RatePoint,
    frozen_mapping,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Cell coercion
# ---------------------------------------------------------------------------

def has_no_reading(value: Any, not_available: str = DEFAULT_CONFIG.not_available) -> bool:
    """Return True when a meter-count cell holds no usable reading.

    Absent, empty, the not-available marker, zero and anything without a
    leading integer all count as no reading.
    """
    if is_missing(value):
        return True
    if isinstance(value, str) and value in ("", not_available):
        return True
    reading = parse_int(value)
    return reading is None or reading == 0


def reading_value(value: Any) -> int:
    """Meter count of a cell, zero when it cannot be parsed."""
    reading = parse_int(value)
    return reading if reading is not None else 0


def parse_collection_rate(value: Any, not_available: str = DEFAULT_CONFIG.not_available) -> float | None:
    """Parse a collection rate such as "97,5%" to 97.5.

    Returns None when the value is missing, the not-available marker, or
    not numeric.
    """
    if is_missing(value) or isinstance(value, bool):
        return None
    if not isinstance(value, str):
        return to_number(value)
    text = value.replace("%", "").strip().replace(",", ".")
    if not text or value.strip() == not_available:
        return None
    rate = parse_float(text)
    if rate is None or math.isnan(rate):
        return None
    return rate


def has_valid_coordinates(row: dict, lat_column: str = LAT_COLUMN, long_column: str = LONG_COLUMN) -> bool:
    """True when both coordinates are numbers in range and neither is zero.

    Zero means "not surveyed" in the exports, not the equator or meridian.
    """
    lat = to_number(row.get(lat_column))
    lon = to_number(row.get(long_column))
    if lat is None or lon is None:
        return False
    if lat == 0 or lon == 0:
        return False
    return -90 <= lat <= 90 and -180 <= lon <= 180


def _normalised(value: Any) -> str:
    if is_missing(value):
        return ""
    return str(value).strip().lower()


def _state(value: Any) -> str:
    # states match case-insensitively but exactly; no trimming
    if is_missing(value):
        return ""
    return str(value).lower()


def _state_labels(labels) -> set[str]:
    return {str(label).lower() for label in labels}


# ---------------------------------------------------------------------------
# Dated reading columns
# ---------------------------------------------------------------------------

def resolve_reading_columns(columns, prefix: str = DEFAULT_CONFIG.reading_prefix) -> list[tuple[str, str]]:
    """Return (date token, column) pairs sorted by token.

    Tokens are compared as raw DD.MM.YYYY strings. This is the ordering the
    dashboards have always used; the last pair names the latest column.
    """
    found = dated_columns(columns, prefix)
    return sorted(((token, column) for column, token in found.items()), key=lambda p: p[0])


def attention_reason(row: dict, latest_column: str | None, config: DerivationConfig = DEFAULT_CONFIG) -> AttentionReason:
    """Explain why a DCU needs attention."""
    status = _state(row.get(config.status_column))
    if status in _state_labels(config.unregistered_labels):
        return AttentionReason.UNREGISTERED
    if status in _state_labels(config.unreachable_labels):
        return AttentionReason.UNREACHABLE
    if (
        status in _state_labels(config.operational_labels)
        and latest_column is not None
        and has_no_reading(row.get(latest_column), config.not_available)
    ):
        return AttentionReason.ONLINE_WITHOUT_METERS
    return AttentionReason.UNIDENTIFIED


# ---------------------------------------------------------------------------
# DCU analysis
# ---------------------------------------------------------------------------

def _group_comments(rows: list[dict], config: DerivationConfig) -> tuple[CommentGroup, ...]:
    counts: Counter = Counter()
    for row in rows:
        comment = row.get(config.comment_column)
        if is_missing(comment):
            continue
        comment = str(comment)
        if not comment or comment == config.null_marker:
            continue
        if comment.startswith(config.internal_comment_prefix):
            continue
        counts[comment] += 1

    # Counter keeps first-seen order; sorted() keeps it for equal counts
    ordered = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return tuple(CommentGroup(comment, count) for comment, count in ordered)


def _build_histories(
    rows: list[dict],
    reading_columns: list[tuple[str, str]],
    latest_column: str | None,
    config: DerivationConfig,
) -> list[DcuHistory]:
    histories = []
    for row in rows:
        history = tuple((token, reading_value(row.get(col))) for token, col in reading_columns)
        values = [v for _, v in history]
        average = sum(values) / len(values) if values else 0.0
        latest = reading_value(row.get(latest_column)) if latest_column else 0
        deviation = abs(latest - average)
        deviation_pct = deviation / average * 100 if average > 0 else 0.0
        histories.append(DcuHistory(
            dcu=row.get(config.id_column),
            average=average,
            latest_value=latest,
            deviation=deviation,
            deviation_percent=deviation_pct,
            history=history,
        ))
    return histories


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def analyse_dcus(rows: list[dict], config: DerivationConfig = DEFAULT_CONFIG) -> AnalysisResult | None:
    """Derive the full DCU analysis from wide DCU rows.

    Parameters
    ----------
    rows : One dict per DCU, already reshaped (see transforms.reshape_wide_rows).
    config : Labels, column names and thresholds.

    Returns
    -------
    AnalysisResult, or None when there are no rows ("no data loaded").
    """
    if not rows:
        logger.warning("No DCU rows to analyse")
        return None

    rows = list(rows)
    reading_columns = resolve_reading_columns(column_names(rows), config.reading_prefix)
    latest_date, latest_column = reading_columns[-1] if reading_columns else (None, None)
    if latest_column is None:
        logger.warning("No '%s DD.MM.YYYY' columns found; load metrics skipped", config.reading_prefix)

    def with_state(labels):
        wanted = _state_labels(labels)
        return tuple(r for r in rows if _state(r.get(config.status_column)) in wanted)

    operational = with_state(config.operational_labels)
    unreachable = with_state(config.unreachable_labels)
    unregistered = with_state(config.unregistered_labels)

    # load partitions
    overloaded, underloaded, no_reading = [], [], []
    if latest_column is not None:
        for row in rows:
            value = row.get(latest_column)
            reading = parse_int(value)
            if reading is not None and reading > config.overload_threshold:
                overloaded.append(row)
            if reading is not None and 0 < reading < config.underload_threshold:
                underloaded.append(row)
            if has_no_reading(value, config.not_available):
                no_reading.append(row)
    no_reading_ids = {id(r) for r in no_reading}
    operational_no_reading = tuple(r for r in operational if id(r) in no_reading_ids)

    # collection rate bands
    rates = {}
    for row in rows:
        rate = parse_collection_rate(row.get(config.rate_column), config.not_available)
        if rate is not None:
            rates[id(row)] = rate
    with_rate = tuple(r for r in rows if id(r) in rates)
    rate_below = tuple(r for r in with_rate if rates[id(r)] < config.rate_low_threshold)
    rate_between = tuple(
        r for r in with_rate
        if config.rate_low_threshold <= rates[id(r)] < config.rate_high_threshold
    )
    rate_above = tuple(r for r in with_rate if rates[id(r)] >= config.rate_high_threshold)

    # cases under study
    in_study = tuple(
        r for r in rows if _normalised(r.get(config.comment_column)) == _normalised(config.in_study_comment)
    )
    in_study_by_stage = {
        key: tuple(r for r in in_study if _normalised(r.get(config.analysis_status_column)) == _normalised(label))
        for key, label in config.analysis_stages
    }
    total_attention = len(unreachable) + len(unregistered) + len(operational_no_reading)
    in_study_percent = _round_half_up(len(in_study) / total_attention * 100) if total_attention else 0

    # historical deviation
    histories = _build_histories(rows, reading_columns, latest_column, config)
    ranked = sorted((h for h in histories if h.average != 0), key=lambda h: h.deviation, reverse=True)
    top_deviations = tuple(ranked[:config.top_n])
    overall_average = (
        sum(h.average for h in top_deviations) / len(top_deviations) if top_deviations else 0.0
    )

    # rate vs. load, excluding cases already under study
    def load_of(row) -> int:
        return reading_value(row.get(latest_column)) if latest_column else 0

    rate_points = [
        RatePoint(r.get(config.id_column), rates[id(r)], load_of(r))
        for r in with_rate
        if _normalised(r.get(config.comment_column)) != _normalised(config.in_study_comment)
    ]
    lowest_rates = tuple(sorted(rate_points, key=lambda p: p.rate)[:config.top_n])
    rate_load_points = tuple(p for p in rate_points if p.load > 0)

    status_counts = tuple(
        (STATE_DISPLAY_NAMES[key], len(subset))
        for key, subset in (
            ("operational", operational),
            ("unreachable", unreachable),
            ("unregistered", unregistered),
        )
        if subset
    )
    rate_band_counts = tuple(
        (RATE_BAND_DISPLAY_NAMES[key], len(subset))
        for key, subset in (("below", rate_below), ("between", rate_between), ("above", rate_above))
        if subset
    )
    readings_by_state = {
        "operational": sum(load_of(r) for r in operational),
        "unreachable": sum(load_of(r) for r in unreachable),
        "unregistered": sum(load_of(r) for r in unregistered),
    }

    result = AnalysisResult(
        latest_date=latest_date,
        latest_column=latest_column,
        dates=tuple(token for token, _ in reading_columns),
        reading_columns=tuple(col for _, col in reading_columns),
        rows=tuple(rows),
        operational=operational,
        unreachable=unreachable,
        unregistered=unregistered,
        overloaded=tuple(overloaded),
        underloaded=tuple(underloaded),
        no_reading=tuple(no_reading),
        operational_no_reading=operational_no_reading,
        with_collection_rate=with_rate,
        rate_below=rate_below,
        rate_between=rate_between,
        rate_above=rate_above,
        in_study=in_study,
        in_study_by_stage=frozen_mapping(in_study_by_stage),
        in_study_percent=in_study_percent,
        comment_groups=_group_comments(rows, config),
        status_counts=status_counts,
        rate_band_counts=rate_band_counts,
        readings_by_state=frozen_mapping(readings_by_state),
        histories=tuple(histories),
        top_deviations=top_deviations,
        overall_average=overall_average,
        lowest_collection_rates=lowest_rates,
        rate_load_points=rate_load_points,
    )

    logger.info(
        "Analysed %d DCUs at %s: %d online, %d offline, %d overloaded, %d without meters",
        result.total_dcus, latest_date, len(operational), len(unreachable),
        len(result.overloaded), len(result.no_reading),
    )
    return result


# ---------------------------------------------------------------------------
# Meter status history
# ---------------------------------------------------------------------------

def _date_sort_key(token: str):
    parsed = parse_date_token(token)
    # unparseable tokens go after real dates, in text order
    return (parsed is None, parsed or 0, str(token))


def analyse_meter_history(rows: list[dict]) -> MeterHistoryResult | None:
    """Summarise long-format meter rows at the latest and previous dates.

    Returns
    -------
    MeterHistoryResult, or None when there are no rows.
    """
    if not rows:
        logger.warning("No meter rows to analyse")
        return None

    dates = sorted(
        {r.get(DATE_COLUMN) for r in rows if not is_missing(r.get(DATE_COLUMN))},
        key=_date_sort_key,
    )
    latest_date = dates[-1] if dates else None
    previous_date = dates[-2] if len(dates) > 1 else None

    latest_counts: Counter = Counter()
    previous_counts: Counter = Counter()
    no_location = 0

    for row in rows:
        status = row.get(STATUS_COLUMN)
        status = UNKNOWN_STATUS if is_missing(status) or status == "" else str(status)
        date = row.get(DATE_COLUMN)
        if date == latest_date:
            latest_counts[status] += 1
            if not has_valid_coordinates(row):
                no_location += 1
        elif date == previous_date:
            previous_counts[status] += 1

    changes = {
        status: latest_counts.get(status, 0) - previous_counts.get(status, 0)
        for status in dict.fromkeys([*latest_counts, *previous_counts])
    }

    result = MeterHistoryResult(
        dates=tuple(dates),
        latest_date=latest_date,
        previous_date=previous_date,
        status_counts=frozen_mapping(latest_counts),
        previous_status_counts=frozen_mapping(previous_counts),
        changes=frozen_mapping(changes),
        total_latest=sum(latest_counts.values()),
        total_previous=sum(previous_counts.values()),
        no_location_count=no_location,
    )
    logger.info(
        "Analysed %d meter records over %d dates; %d at %s",
        len(rows), len(dates), result.total_latest, latest_date,
    )
    return result
