"""
Model registry.

Import all models here to ensure they are registered with SQLAlchemy metadata
before ``Base.metadata.create_all`` runs.
"""

from starwars_api.db.base import Base
from starwars_api.models.api_log import StarWarsApiLog
from starwars_api.models.cache_entry import CacheEntry

__all__ = [
    "Base",
    "CacheEntry",
    "StarWarsApiLog",
]
