"""Upstream Star Wars API client."""

from starwars_api.swapi.client import SwapiClient

# Global client instance (set by main.py on startup)
_swapi_client: SwapiClient | None = None


def get_swapi_client() -> SwapiClient | None:
    """Get the global SWAPI client instance."""
    return _swapi_client


def set_swapi_client(client: SwapiClient | None) -> None:
    """Set the global SWAPI client instance."""
    global _swapi_client
    _swapi_client = client


__all__ = [
    "SwapiClient",
    "get_swapi_client",
    "set_swapi_client",
]
