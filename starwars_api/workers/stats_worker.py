"""Stats worker: aggregates the API call log and caches the report."""

import asyncio
import sys
import time
from collections.abc import Callable
from datetime import datetime, timedelta

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from starwars_api.core.config import get_settings
from starwars_api.db.session import async_session_maker
from starwars_api.schemas.statistics import StatsReport
from starwars_api.services.api_log_service import ApiLogService
from starwars_api.services.stats_aggregator import build_report
from starwars_api.services.stats_cache import ResultCache, get_result_cache

settings = get_settings()


class StatsWorker:
    """Worker that rebuilds the cached stats report.

    Only one run is active at a time: the local lock covers this process and
    the cache lease covers every process sharing the cache. A run triggered
    while another is in progress is skipped, not queued.
    """

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession] | None = None,
        cache: ResultCache | None = None,
        clock: Callable[[], datetime] = datetime.now,
        cache_key: str | None = None,
    ):
        self._session_maker = session_maker or async_session_maker
        self._cache = cache or get_result_cache()
        self._clock = clock
        self.cache_key = cache_key or settings.stats_cache_key
        self.lease_name = f"{self.cache_key}:lease"
        self.lease_ttl = timedelta(seconds=settings.stats_lease_seconds)
        self._lock = asyncio.Lock()

    @property
    def running(self) -> bool:
        return self._lock.locked()

    async def calculate(self) -> StatsReport:
        """Build a report from a single read of the log."""
        now = self._clock()
        async with self._session_maker() as db:
            records = await ApiLogService(db).fetch_logs()
        return build_report(records, now)

    async def run(self) -> bool:
        """Run one calculation and overwrite the cached report.

        Returns True when a new report was written.
        """
        if self._lock.locked():
            logger.warning("Star Wars API stats run still in progress, skipping")
            return False

        async with self._lock:
            try:
                token = await self._cache.acquire_lease(self.lease_name, self.lease_ttl)
            except Exception as e:
                logger.error(f"Star Wars API stats lease unavailable, skipping run: {e}")
                return False
            if token is None:
                logger.warning("Star Wars API stats run held by another process, skipping")
                return False

            logger.info("Generating Star Wars API stats")
            started = time.perf_counter()

            try:
                report = await self.calculate()
                await self._cache.put(self.cache_key, report)
            except Exception as e:
                logger.error(f"Star Wars API stats run failed, keeping previous report: {e}")
                return False
            finally:
                await self._cache.release_lease(self.lease_name, token)

            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                f"Star Wars API stats cached under '{self.cache_key}': "
                f"{report.all_time.grand_total} calls, {elapsed_ms:.0f} ms"
            )
            return True


async def calculate_once() -> bool:
    """Create tables if needed and run a single stats calculation."""
    from starwars_api.db.init_db import init_database

    await init_database()
    logger.info("Calculating Star Wars API statistics...")
    return await StatsWorker().run()


def main() -> int:
    """CLI entry point; exit code 0 when a report was written."""
    return 0 if asyncio.run(calculate_once()) else 1


if __name__ == "__main__":
    sys.exit(main())
