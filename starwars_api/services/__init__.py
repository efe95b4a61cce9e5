"""Service layer for business logic."""

from starwars_api.services.api_log_service import ApiLogService
from starwars_api.services.stats_cache import (
    DatabaseResultCache,
    InMemoryResultCache,
    ResultCache,
    get_result_cache,
)
from starwars_api.services.starwars_service import StarWarsService

__all__ = [
    "ApiLogService",
    "DatabaseResultCache",
    "InMemoryResultCache",
    "ResultCache",
    "StarWarsService",
    "get_result_cache",
]
