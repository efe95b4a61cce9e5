"""Statistics schemas for API call aggregation."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator


# Log Store
class ApiLogRecord(BaseModel):
    """Read-only view of one logged upstream call."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    endpoint: str
    param_name: str | None = None
    param_value: str | None = None
    started_at: datetime
    completed_at: datetime
    duration_ms: int
    exception_message: str | None = None


# Snapshot
class TopQuery(BaseModel):
    """Ranked query label with its share of the window."""

    model_config = ConfigDict(frozen=True)

    query: str
    count: int
    percentage: float


class StatsSnapshot(BaseModel):
    """Aggregate statistics for one time window."""

    model_config = ConfigDict(frozen=True)

    top_five_queries: list[TopQuery]
    average_duration_ms: float
    most_popular_hour: int | None
    most_popular_day_of_week: str | None
    longest_query_ms: int
    shortest_query_ms: int
    average_by_endpoint: dict[str, float]
    total_by_endpoint: dict[str, int]
    grand_total: int


# Report
class StatsReport(BaseModel):
    """Snapshots for every window plus the time they were generated."""

    model_config = ConfigDict(frozen=True)

    all_time: StatsSnapshot
    last_30_days: StatsSnapshot
    last_7_days: StatsSnapshot
    last_24_hours: StatsSnapshot
    generated_at: datetime

    @field_validator("generated_at")
    @classmethod
    def to_local_naive(cls, v: datetime) -> datetime:
        """Stored reports carry an offset; keep local wall-clock like the log."""
        return v.astimezone().replace(tzinfo=None) if v.tzinfo else v

    @field_serializer("generated_at", when_used="json")
    def with_utc_offset(self, v: datetime) -> str:
        return v.astimezone().isoformat()
