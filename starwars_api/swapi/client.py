"""HTTP client for the upstream Star Wars API (swapi.tech)."""

from typing import Any

import httpx
from loguru import logger

from starwars_api.core.config import get_settings
from starwars_api.core.exceptions import SwapiError, SwapiNotFoundError


class SwapiClient:
    """Thin GET wrapper around one shared ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.swapi_base_url).rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout or settings.swapi_timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        GET a resource and return the decoded JSON body.

        Raises SwapiNotFoundError on 404 and SwapiError on any other failure.
        """
        try:
            response = await self._client.get(f"/{path.lstrip('/')}", params=params)
        except httpx.RequestError as e:
            logger.warning(f"SWAPI request failed: {path} ({e})")
            raise SwapiError(f"Star Wars API request failed: {e}") from e

        if response.status_code == 404:
            raise SwapiNotFoundError(f"Star Wars API resource not found: {path}")

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(f"SWAPI returned {response.status_code} for {path}")
            raise SwapiError(
                f"Star Wars API returned {response.status_code} for {path}"
            ) from e

        try:
            return response.json()
        except ValueError as e:
            raise SwapiError(f"Star Wars API returned invalid JSON for {path}") from e

    async def aclose(self) -> None:
        """Close the underlying HTTP connection pool."""
        await self._client.aclose()
