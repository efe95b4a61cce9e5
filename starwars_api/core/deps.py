"""FastAPI dependencies for dependency injection."""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from starwars_api.core.exceptions import SwapiUnavailableError
from starwars_api.db.session import async_session_maker
from starwars_api.services.stats_cache import ResultCache, get_result_cache
from starwars_api.swapi import SwapiClient, get_swapi_client


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Get database session."""
    async with async_session_maker() as session:
        try:
            yield session
        finally:
            await session.close()


def get_swapi() -> SwapiClient:
    """Get the upstream client, raise 503 if the app has not started one."""
    client = get_swapi_client()
    if client is None:
        raise SwapiUnavailableError("Star Wars API client is not configured")
    return client


def get_cache() -> ResultCache:
    """Get the stats result cache."""
    return get_result_cache()


# Type aliases for cleaner dependency injection
DBSession = Annotated[AsyncSession, Depends(get_db)]
Swapi = Annotated[SwapiClient, Depends(get_swapi)]
StatsCache = Annotated[ResultCache, Depends(get_cache)]
