"""
Star Wars API usage statistics.

Pure aggregation over logged upstream calls. Nothing here touches the database
or the cache: callers pass in the records and the reference time and get an
immutable ``StatsReport`` back.

Ties in every ranking (top queries, popular hour, popular weekday) are broken
by first appearance in the input sequence. The log service returns records
ordered by ``started_at`` then ``id``, so the earliest group wins a tie.
"""

from collections import Counter
from collections.abc import Hashable, Iterable, Sequence
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import TypeVar

from starwars_api.schemas.statistics import (
    ApiLogRecord,
    StatsReport,
    StatsSnapshot,
    TopQuery,
)

K = TypeVar("K", bound=Hashable)

TOP_QUERY_LIMIT = 5

WEEKDAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

# (report field, look-back from now); None means all time
STATS_WINDOWS: tuple[tuple[str, timedelta | None], ...] = (
    ("all_time", None),
    ("last_30_days", timedelta(days=30)),
    ("last_7_days", timedelta(days=7)),
    ("last_24_hours", timedelta(hours=24)),
)

PEOPLE = "people"
FILMS = "films"


class EndpointCategory(str, Enum):
    """Kind of upstream call a log record represents."""

    PERSON_BY_ID = "person_by_id"
    PERSON_BY_NAME = "person_by_name"
    FILM_BY_ID = "film_by_id"
    FILM_BY_NAME = "film_by_name"
    UNCLASSIFIED = "unclassified"


# Categories reported in average_by_endpoint / total_by_endpoint, in output order
REPORTED_CATEGORIES = (
    EndpointCategory.PERSON_BY_ID,
    EndpointCategory.PERSON_BY_NAME,
    EndpointCategory.FILM_BY_ID,
    EndpointCategory.FILM_BY_NAME,
)


def _is_id_lookup(record: ApiLogRecord, resource: str) -> bool:
    prefix = f"{resource}/"
    return (
        record.endpoint.startswith(prefix)
        and len(record.endpoint) > len(prefix)
        and record.param_name is None
    )


def _is_search(record: ApiLogRecord, resource: str) -> bool:
    return record.endpoint == resource and record.param_name is not None


def classify_endpoint(record: ApiLogRecord) -> EndpointCategory:
    """
    Classify a record into exactly one endpoint category.

    - ``people/<id>`` without params -> PERSON_BY_ID
    - ``people`` with a param -> PERSON_BY_NAME
    - ``films/<id>`` without params -> FILM_BY_ID
    - ``films`` with a param -> FILM_BY_NAME
    - anything else -> UNCLASSIFIED
    """
    if _is_id_lookup(record, PEOPLE):
        return EndpointCategory.PERSON_BY_ID
    if _is_search(record, PEOPLE):
        return EndpointCategory.PERSON_BY_NAME
    if _is_id_lookup(record, FILMS):
        return EndpointCategory.FILM_BY_ID
    if _is_search(record, FILMS):
        return EndpointCategory.FILM_BY_NAME
    return EndpointCategory.UNCLASSIFIED


def query_label(record: ApiLogRecord) -> str:
    """Display string for a call: ``people?name=Luke`` or ``people/1``."""
    if record.param_name is not None and record.param_value is not None:
        return f"{record.endpoint}?{record.param_name}={record.param_value}"
    return record.endpoint


def rank(keys: Iterable[K]) -> list[tuple[K, int]]:
    """Count keys and order by count descending, first-seen first on ties."""
    counts = Counter(keys)
    # sorted() is stable and Counter keeps insertion order
    return sorted(counts.items(), key=lambda item: -item[1])


def _most_common(keys: Iterable[K]) -> K | None:
    ranked = rank(keys)
    return ranked[0][0] if ranked else None


def round2(value: float) -> float:
    """Round to two decimals, halves away from zero (1.125 -> 1.13)."""
    return float(Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _average(durations: Sequence[int]) -> float:
    if not durations:
        return 0.0
    return round2(sum(durations) / len(durations))


def top_queries(
    records: Sequence[ApiLogRecord], limit: int = TOP_QUERY_LIMIT
) -> list[TopQuery]:
    """Most frequent query labels with their percentage of all records."""
    total = len(records)
    if total == 0:
        return []

    return [
        TopQuery(
            query=label,
            count=count,
            percentage=round2(count / total * 100),
        )
        for label, count in rank(query_label(r) for r in records)[:limit]
    ]


def most_popular_hour(records: Sequence[ApiLogRecord]) -> int | None:
    """Wall-clock hour (0-23) of ``started_at`` with the most calls."""
    return _most_common(r.started_at.hour for r in records)


def most_popular_day_of_week(records: Sequence[ApiLogRecord]) -> str | None:
    """Weekday name of ``started_at`` with the most calls."""
    return _most_common(WEEKDAY_NAMES[r.started_at.weekday()] for r in records)


def endpoint_breakdown(
    records: Sequence[ApiLogRecord],
) -> tuple[dict[str, float], dict[str, int]]:
    """Per-category average duration and call count.

    Every reported category is present; categories without calls map to 0.
    Unclassified records are left out of both mappings.
    """
    durations: dict[EndpointCategory, list[int]] = {
        category: [] for category in REPORTED_CATEGORIES
    }
    for record in records:
        category = classify_endpoint(record)
        if category is EndpointCategory.UNCLASSIFIED:
            continue
        durations[category].append(record.duration_ms)

    averages = {c.value: _average(durations[c]) for c in REPORTED_CATEGORIES}
    totals = {c.value: len(durations[c]) for c in REPORTED_CATEGORIES}
    return averages, totals


def empty_snapshot() -> StatsSnapshot:
    """Snapshot for a window without any calls."""
    return StatsSnapshot(
        top_five_queries=[],
        average_duration_ms=0.0,
        most_popular_hour=None,
        most_popular_day_of_week=None,
        longest_query_ms=0,
        shortest_query_ms=0,
        average_by_endpoint={c.value: 0.0 for c in REPORTED_CATEGORIES},
        total_by_endpoint={c.value: 0 for c in REPORTED_CATEGORIES},
        grand_total=0,
    )


def aggregate_window(records: Sequence[ApiLogRecord]) -> StatsSnapshot:
    """Compute the statistics snapshot for records already filtered to a window."""
    if not records:
        return empty_snapshot()

    durations = [r.duration_ms for r in records]
    average_by_endpoint, total_by_endpoint = endpoint_breakdown(records)

    return StatsSnapshot(
        top_five_queries=top_queries(records),
        average_duration_ms=_average(durations),
        most_popular_hour=most_popular_hour(records),
        most_popular_day_of_week=most_popular_day_of_week(records),
        longest_query_ms=max(durations),
        shortest_query_ms=min(durations),
        average_by_endpoint=average_by_endpoint,
        total_by_endpoint=total_by_endpoint,
        grand_total=len(records),
    )


def records_since(
    records: Sequence[ApiLogRecord], since: datetime | None
) -> list[ApiLogRecord]:
    """Records with ``started_at >= since``, keeping input order."""
    if since is None:
        return list(records)
    return [r for r in records if r.started_at >= since]


def build_report(records: Sequence[ApiLogRecord], now: datetime) -> StatsReport:
    """
    Aggregate every window against the same reference time.

    All windows are anchored at ``now`` and filtered from the same record
    sequence, so they nest: 24h within 7d within 30d within all time.
    """
    snapshots = {
        name: aggregate_window(
            records_since(records, None if lookback is None else now - lookback)
        )
        for name, lookback in STATS_WINDOWS
    }
    return StatsReport(**snapshots, generated_at=now)
