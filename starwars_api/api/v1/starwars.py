"""Star Wars people, films and usage statistics endpoints."""

from typing import Any

from fastapi import APIRouter, Query

from starwars_api.core.config import get_settings
from starwars_api.core.deps import DBSession, StatsCache, Swapi
from starwars_api.schemas.statistics import StatsReport
from starwars_api.services.starwars_service import StarWarsService

settings = get_settings()

router = APIRouter()


@router.get("/person")
async def get_person_by_name(
    db: DBSession,
    client: Swapi,
    name: str = Query(..., min_length=2, max_length=255),
) -> list[dict[str, Any]]:
    """
    Search characters by name.

    - **name**: part of the character name (2-255 characters)
    """
    return await StarWarsService(db, client).get_person_by_name(name)


@router.get("/person/{person_id}")
async def get_person_by_id(
    person_id: int,
    db: DBSession,
    client: Swapi,
) -> dict[str, Any] | None:
    """Get a character with the films they appear in."""
    return await StarWarsService(db, client).get_person_by_id(person_id)


@router.get("/film")
async def get_film_by_title(
    db: DBSession,
    client: Swapi,
    title: str = Query(..., min_length=2, max_length=255),
) -> list[dict[str, Any]]:
    """
    Search films by title.

    - **title**: part of the film title (2-255 characters)
    """
    return await StarWarsService(db, client).get_film_by_title(title)


@router.get("/film/{film_id}")
async def get_film_by_id(
    film_id: int,
    db: DBSession,
    client: Swapi,
) -> dict[str, Any] | None:
    """Get a film with its characters."""
    return await StarWarsService(db, client).get_film_by_id(film_id)


@router.get("/stats", response_model=StatsReport | None)
async def get_api_stats(cache: StatsCache) -> StatsReport | None:
    """
    Get the latest cached usage statistics.

    Returns null until the stats job has produced its first report.
    """
    return await cache.get(settings.stats_cache_key)
