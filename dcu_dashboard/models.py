"""
Result types returned by the metric engine.

Row subsets are tuples holding references to the loaded row dicts; no row
is copied between subsets. Mappings are exposed read-only.
"""

import enum
from collections.abc import Iterator, Mapping
from dataclasses import dataclass

Row = dict


class AttentionReason(enum.Enum):
    UNREGISTERED = "Status da DCU é não registrado"
    UNREACHABLE = "Status da DCU é offline"
    ONLINE_WITHOUT_METERS = "Status da DCU é online mas não contém medidores"
    UNIDENTIFIED = "Motivo não identificado"


@dataclass(frozen=True)
class CommentGroup:
    comment: str
    count: int


@dataclass(frozen=True)
class DcuHistory:
    """Reading history of one DCU and its deviation from the historical mean."""

    dcu: object
    average: float
    latest_value: int
    deviation: float
    deviation_percent: float
    history: tuple[tuple[str, int], ...]


@dataclass(frozen=True)
class RatePoint:
    dcu: object
    rate: float
    load: int


@dataclass(frozen=True)
class AnalysisResult:
    """Snapshot of every metric the DCU dashboard displays."""

    latest_date: str | None
    latest_column: str | None
    dates: tuple[str, ...]
    reading_columns: tuple[str, ...]
    rows: tuple[Row, ...]

    # state partitions
    operational: tuple[Row, ...]
    unreachable: tuple[Row, ...]
    unregistered: tuple[Row, ...]

    # load partitions on the latest reading
    overloaded: tuple[Row, ...]
    underloaded: tuple[Row, ...]
    no_reading: tuple[Row, ...]
    operational_no_reading: tuple[Row, ...]

    # collection rate bands
    with_collection_rate: tuple[Row, ...]
    rate_below: tuple[Row, ...]
    rate_between: tuple[Row, ...]
    rate_above: tuple[Row, ...]

    # cases under study
    in_study: tuple[Row, ...]
    in_study_by_stage: Mapping[str, tuple[Row, ...]]
    in_study_percent: int

    comment_groups: tuple[CommentGroup, ...]
    status_counts: tuple[tuple[str, int], ...]
    rate_band_counts: tuple[tuple[str, int], ...]
    readings_by_state: Mapping[str, int]

    histories: tuple[DcuHistory, ...]
    top_deviations: tuple[DcuHistory, ...]
    overall_average: float

    lowest_collection_rates: tuple[RatePoint, ...]
    rate_load_points: tuple[RatePoint, ...]

    @property
    def total_dcus(self) -> int:
        return len(self.rows)

    @property
    def total_attention_cases(self) -> int:
        return len(self.unreachable) + len(self.unregistered) + len(self.operational_no_reading)

    @property
    def total_in_study(self) -> int:
        return len(self.in_study)

    @property
    def comments(self) -> tuple[str, ...]:
        return tuple(g.comment for g in self.comment_groups)


@dataclass(frozen=True)
class MeterHistoryResult:
    """Status counts of long-format meter records at the two latest dates."""

    dates: tuple[str, ...]
    latest_date: str | None
    previous_date: str | None
    status_counts: Mapping[str, int]
    previous_status_counts: Mapping[str, int]
    changes: Mapping[str, int]
    total_latest: int
    total_previous: int
    no_location_count: int

    @property
    def total_change(self) -> int:
        return self.total_latest - self.total_previous


class FrozenMapping(Mapping):
    """Read-only mapping over a private dict copy.

    Unlike types.MappingProxyType it pickles, so results can go through
    Streamlit's cache.
    """

    def __init__(self, data=()):
        self._data = dict(data)

    def __getitem__(self, key):
        return self._data[key]

    def __iter__(self) -> Iterator:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"FrozenMapping({self._data!r})"


def frozen_mapping(data) -> Mapping:
    """Copy a dict into a read-only mapping."""
    return FrozenMapping(data)
