"""Pydantic schemas for API request/response."""

from starwars_api.schemas.health import HealthResponse
from starwars_api.schemas.starwars import CharacterRef, MovieRef
from starwars_api.schemas.statistics import (
    ApiLogRecord,
    StatsReport,
    StatsSnapshot,
    TopQuery,
)

__all__ = [
    "ApiLogRecord",
    "CharacterRef",
    "HealthResponse",
    "MovieRef",
    "StatsReport",
    "StatsSnapshot",
    "TopQuery",
]
