"""Result cache holding the latest stats report."""

import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Protocol

from sqlalchemy import delete
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from starwars_api.core.config import get_settings
from starwars_api.db.session import async_session_maker
from starwars_api.models.cache_entry import CacheEntry
from starwars_api.schemas.statistics import StatsReport


class ResultCache(Protocol):
    """Key-value store for generated reports. ``put`` overwrites the whole value.

    ``acquire_lease``/``release_lease`` guard a run across every process that
    shares the cache: a lease is held by one token until released or expired.
    """

    async def get(self, key: str) -> StatsReport | None: ...

    async def put(self, key: str, report: StatsReport) -> None: ...

    async def acquire_lease(self, name: str, ttl: timedelta) -> str | None: ...

    async def release_lease(self, name: str, token: str) -> None: ...


class InMemoryResultCache:
    """Process-local cache, mainly for single-worker deployments and tests."""

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._entries: dict[str, StatsReport] = {}
        self._leases: dict[str, tuple[str, datetime]] = {}
        self._clock = clock

    async def get(self, key: str) -> StatsReport | None:
        return self._entries.get(key)

    async def put(self, key: str, report: StatsReport) -> None:
        self._entries[key] = report

    async def acquire_lease(self, name: str, ttl: timedelta) -> str | None:
        now = self._clock()
        held = self._leases.get(name)
        if held and held[1] > now - ttl:
            return None
        token = uuid.uuid4().hex
        self._leases[name] = (token, now)
        return token

    async def release_lease(self, name: str, token: str) -> None:
        held = self._leases.get(name)
        if held and held[0] == token:
            del self._leases[name]

    def clear(self) -> None:
        self._entries.clear()
        self._leases.clear()


class DatabaseResultCache:
    """Cache stored in the ``cache_entries`` table, shared by all processes."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._session_maker = session_maker
        self._clock = clock

    async def get(self, key: str) -> StatsReport | None:
        async with self._session_maker() as db:
            entry = await db.get(CacheEntry, key)
            if not entry:
                return None
            value = entry.get_value()
            return StatsReport.model_validate(value) if value else None

    async def put(self, key: str, report: StatsReport) -> None:
        entry = CacheEntry(key=key, updated_at=self._clock())
        entry.set_value(report.model_dump(mode="json"))

        # Insert or replace in one statement
        stmt = sqlite_insert(CacheEntry).values(
            key=entry.key, value=entry.value, updated_at=entry.updated_at
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[CacheEntry.key],
            set_={"value": stmt.excluded.value, "updated_at": stmt.excluded.updated_at},
        )
        async with self._session_maker() as db:
            await db.execute(stmt)
            await db.commit()

    async def acquire_lease(self, name: str, ttl: timedelta) -> str | None:
        """Take the lease row ``name`` unless another holder's lease is still live."""
        now = self._clock()
        token = uuid.uuid4().hex

        stmt = sqlite_insert(CacheEntry).values(key=name, value=token, updated_at=now)
        stmt = stmt.on_conflict_do_update(
            index_elements=[CacheEntry.key],
            set_={"value": token, "updated_at": now},
            where=CacheEntry.updated_at <= now - ttl,
        )
        async with self._session_maker() as db:
            await db.execute(stmt)
            await db.commit()
            entry = await db.get(CacheEntry, name)

        return token if entry and entry.value == token else None

    async def release_lease(self, name: str, token: str) -> None:
        async with self._session_maker() as db:
            await db.execute(
                delete(CacheEntry).where(CacheEntry.key == name, CacheEntry.value == token)
            )
            await db.commit()


@lru_cache
def get_result_cache() -> ResultCache:
    """Get the cache instance selected by ``stats_cache_backend``."""
    if get_settings().stats_cache_backend == "memory":
        return InMemoryResultCache()
    return DatabaseResultCache(async_session_maker)
