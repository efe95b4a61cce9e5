"""Star Wars people and film lookups with call logging."""

from collections.abc import Awaitable, Callable
from datetime import datetime
from typing import Any, TypeVar

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from starwars_api.core.config import get_settings
from starwars_api.core.exceptions import SwapiError
from starwars_api.schemas.starwars import CharacterRef, MovieRef
from starwars_api.services.api_log_service import ApiLogService
from starwars_api.swapi.client import SwapiClient

T = TypeVar("T")


def flatten_result(item: dict[str, Any]) -> dict[str, Any]:
    """Merge an upstream item's ``properties`` into its top level."""
    flattened = dict(item)
    properties = flattened.pop("properties", None)
    if isinstance(properties, dict):
        flattened.update(properties)
    return flattened


def flatten_results(result: Any) -> Any:
    """Flatten a single upstream item or a list of items."""
    if result is None:
        return None
    if isinstance(result, list):
        return [flatten_result(item) for item in result]
    if isinstance(result, dict):
        return flatten_result(result)
    return result


def resource_id_from_url(url: str) -> int | None:
    """Extract the trailing numeric id from ``https://.../films/1``."""
    tail = url.rstrip("/").rsplit("/", 1)[-1]
    return int(tail) if tail.isdigit() else None


class StarWarsService:
    """Proxy for the upstream API that logs every call it makes."""

    def __init__(
        self,
        db: AsyncSession,
        client: SwapiClient,
        clock: Callable[[], datetime] = datetime.now,
        resolve_references: bool | None = None,
    ):
        self.client = client
        self.logs = ApiLogService(db)
        self.clock = clock
        if resolve_references is None:
            resolve_references = get_settings().swapi_resolve_references
        self.resolve_references = resolve_references

    async def _execute_with_logging(
        self,
        endpoint: str,
        param_name: str | None,
        param_value: str | None,
        call: Callable[[], Awaitable[T]],
    ) -> T:
        """Run an upstream call and log it, whether it succeeds or raises."""
        started_at = self.clock()
        exception_message: str | None = None

        try:
            return await call()
        except Exception as e:
            exception_message = str(e)
            raise
        finally:
            # Wall-clock can step backwards (NTP, DST); never log a negative span
            completed_at = max(self.clock(), started_at)
            await self.logs.record_call(
                endpoint=endpoint,
                param_name=param_name,
                param_value=param_value,
                started_at=started_at,
                completed_at=completed_at,
                exception_message=exception_message,
            )

    async def _get(
        self, endpoint: str, param_name: str | None = None, param_value: str | None = None
    ) -> dict[str, Any]:
        params = {param_name: param_value} if param_name is not None else None
        return await self._execute_with_logging(
            endpoint,
            param_name,
            param_value,
            lambda: self.client.get(endpoint, params),
        )

    async def get_person_by_name(self, name: str) -> list[dict[str, Any]]:
        """Search people whose name contains ``name``."""
        res = await self._get("people", "name", name)
        return flatten_results(res.get("result") or [])

    async def get_person_by_id(self, person_id: int) -> dict[str, Any] | None:
        """Get one person; film URLs are replaced with ``movies`` (id + title)."""
        res = await self._get(f"people/{person_id}")
        person = flatten_results(res.get("result"))

        if isinstance(person, dict) and self.resolve_references and "films" in person:
            movies = await self._resolve_movies(person.pop("films") or [])
            person["movies"] = [m.model_dump() for m in movies]

        return person

    async def get_film_by_title(self, title: str) -> list[dict[str, Any]]:
        """Search films whose title contains ``title``."""
        res = await self._get("films", "title", title)
        return flatten_results(res.get("result") or [])

    async def get_film_by_id(self, film_id: int) -> dict[str, Any] | None:
        """Get one film; character URLs are replaced with id + name."""
        res = await self._get(f"films/{film_id}")
        film = flatten_results(res.get("result"))

        if isinstance(film, dict) and self.resolve_references and "characters" in film:
            characters = await self._resolve_characters(film["characters"] or [])
            film["characters"] = [c.model_dump() for c in characters]

        return film

    async def _resolve_property(self, resource: str, url: str, field: str) -> tuple[int, Any] | None:
        resource_id = resource_id_from_url(url)
        if resource_id is None:
            logger.warning(f"Skipping unrecognised {resource} reference: {url}")
            return None

        try:
            res = await self._get(f"{resource}/{resource_id}")
        except SwapiError as e:
            logger.warning(f"Could not resolve {resource}/{resource_id}: {e.message}")
            return None

        properties = (res.get("result") or {}).get("properties") or {}
        return resource_id, properties.get(field)

    async def _resolve_movies(self, film_urls: list[str]) -> list[MovieRef]:
        # Sequential: every lookup is logged through the same session
        movies = []
        for url in film_urls:
            resolved = await self._resolve_property("films", url, "title")
            if resolved:
                movies.append(MovieRef(id=resolved[0], title=resolved[1]))
        return movies

    async def _resolve_characters(self, character_urls: list[str]) -> list[CharacterRef]:
        characters = []
        for url in character_urls:
            resolved = await self._resolve_property("people", url, "name")
            if resolved:
                characters.append(CharacterRef(id=resolved[0], name=resolved[1]))
        return characters
