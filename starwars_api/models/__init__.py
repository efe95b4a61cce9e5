"""Database models."""

from starwars_api.models.api_log import StarWarsApiLog
from starwars_api.models.cache_entry import CacheEntry

__all__ = [
    "CacheEntry",
    "StarWarsApiLog",
]
