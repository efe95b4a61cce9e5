"""Tests for the stats worker and result caches."""

import asyncio
from datetime import datetime, timedelta

import pytest

from starwars_api.models.api_log import StarWarsApiLog
from starwars_api.models.cache_entry import CacheEntry
from starwars_api.services.stats_aggregator import build_report, empty_snapshot
from starwars_api.services.stats_cache import DatabaseResultCache, InMemoryResultCache
from starwars_api.workers.stats_worker import StatsWorker

SCENARIO_NOW = datetime(2026, 1, 11, 15, 30, 0)
CACHE_KEY = "star_wars_api_stats"


class FailingCache(InMemoryResultCache):
    """Cache whose writes fail once ``fail_writes`` is set."""

    fail_writes = False

    async def put(self, key, report):
        if self.fail_writes:
            raise RuntimeError("cache unavailable")
        await super().put(key, report)


class BlockingCache(InMemoryResultCache):
    """Cache whose writes wait until released."""

    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def put(self, key, report):
        self.entered.set()
        await self.release.wait()
        await super().put(key, report)


@pytest.mark.asyncio
async def test_worker_writes_report(session_maker, sample_logs, result_cache):
    """A run aggregates every window and stores the report."""
    worker = StatsWorker(session_maker, result_cache, clock=lambda: SCENARIO_NOW)

    assert await worker.run() is True

    report = await result_cache.get(CACHE_KEY)
    assert report is not None
    assert report.generated_at == SCENARIO_NOW
    assert report.all_time.grand_total == 20
    assert report.last_30_days.grand_total == 16
    assert report.last_7_days.grand_total == 12
    assert report.last_24_hours.grand_total == 10
    assert report.all_time.top_five_queries[0].query == "people/1"


@pytest.mark.asyncio
async def test_worker_empty_log(session_maker, result_cache):
    """An empty log still produces a report with empty snapshots."""
    worker = StatsWorker(session_maker, result_cache, clock=lambda: SCENARIO_NOW)

    assert await worker.run() is True

    report = await result_cache.get(CACHE_KEY)
    assert report.all_time == empty_snapshot()
    assert report.last_24_hours == empty_snapshot()


@pytest.mark.asyncio
async def test_worker_overwrites_previous_report(
    session_maker, db_session, sample_logs, result_cache
):
    """Each run replaces the whole cached report."""
    worker = StatsWorker(session_maker, result_cache, clock=lambda: SCENARIO_NOW)
    await worker.run()

    db_session.add(StarWarsApiLog(**{
        "endpoint": "films/9",
        "started_at": SCENARIO_NOW,
        "completed_at": SCENARIO_NOW,
        "duration_ms": 0,
    }))
    await db_session.commit()
    await worker.run()

    report = await result_cache.get(CACHE_KEY)
    assert report.all_time.grand_total == 21
    assert report.last_24_hours.grand_total == 11


@pytest.mark.asyncio
async def test_worker_failure_keeps_previous_report(session_maker, sample_logs):
    """A failed cache write leaves the last good report in place."""
    cache = FailingCache()
    await StatsWorker(session_maker, cache, clock=lambda: SCENARIO_NOW).run()
    previous = await cache.get(CACHE_KEY)

    cache.fail_writes = True
    later = SCENARIO_NOW + timedelta(hours=1)
    worker = StatsWorker(session_maker, cache, clock=lambda: later)

    assert await worker.run() is False
    assert await cache.get(CACHE_KEY) == previous
    assert (await cache.get(CACHE_KEY)).generated_at == SCENARIO_NOW
    assert worker.running is False


@pytest.mark.asyncio
async def test_worker_skips_overlapping_run(session_maker, sample_logs):
    """A trigger during a run is skipped, not queued."""
    cache = BlockingCache()
    worker = StatsWorker(session_maker, cache, clock=lambda: SCENARIO_NOW)

    first = asyncio.create_task(worker.run())
    await cache.entered.wait()

    assert worker.running is True
    assert await worker.run() is False

    cache.release.set()
    assert await first is True
    assert worker.running is False


@pytest.mark.asyncio
async def test_worker_calculate_matches_pure_aggregation(
    session_maker, sample_logs, scenario_records, result_cache
):
    """Reading from the database gives the same report as the in-memory records."""
    worker = StatsWorker(session_maker, result_cache, clock=lambda: SCENARIO_NOW)

    report = await worker.calculate()

    assert report == build_report(scenario_records, SCENARIO_NOW)


@pytest.mark.asyncio
async def test_database_cache_round_trip(session_maker, db_session, scenario_records):
    """Reports survive JSON storage unchanged; put replaces the single row."""
    cache = DatabaseResultCache(session_maker, clock=lambda: SCENARIO_NOW)
    assert await cache.get(CACHE_KEY) is None

    report = build_report(scenario_records, SCENARIO_NOW)
    await cache.put(CACHE_KEY, report)
    await cache.put(CACHE_KEY, report)

    assert await cache.get(CACHE_KEY) == report

    entry = await db_session.get(CacheEntry, CACHE_KEY)
    assert entry is not None
    assert entry.updated_at == SCENARIO_NOW
    assert entry.get_value()["all_time"]["grand_total"] == 20


@pytest.mark.asyncio
async def test_database_cache_concurrent_first_writes(session_maker, scenario_records):
    """Two first writes to an empty slot both succeed; one report remains."""
    cache = DatabaseResultCache(session_maker, clock=lambda: SCENARIO_NOW)
    first = build_report(scenario_records, SCENARIO_NOW)
    second = build_report(scenario_records[:10], SCENARIO_NOW)

    results = await asyncio.gather(
        cache.put(CACHE_KEY, first),
        cache.put(CACHE_KEY, second),
        return_exceptions=True,
    )

    assert results == [None, None]
    assert await cache.get(CACHE_KEY) in (first, second)


@pytest.mark.asyncio
async def test_database_lease_is_exclusive(session_maker):
    """A live lease blocks other holders until released or expired."""
    now = [SCENARIO_NOW]
    cache = DatabaseResultCache(session_maker, clock=lambda: now[0])
    ttl = timedelta(minutes=10)

    token = await cache.acquire_lease("stats:lease", ttl)
    assert token is not None
    assert await cache.acquire_lease("stats:lease", ttl) is None

    await cache.release_lease("stats:lease", "someone-else")
    assert await cache.acquire_lease("stats:lease", ttl) is None

    await cache.release_lease("stats:lease", token)
    renewed = await cache.acquire_lease("stats:lease", ttl)
    assert renewed is not None

    # holder died without releasing
    now[0] = SCENARIO_NOW + ttl
    taken_over = await cache.acquire_lease("stats:lease", ttl)
    assert taken_over is not None
    assert taken_over != renewed


@pytest.mark.asyncio
async def test_worker_skips_when_another_process_holds_lease(session_maker, sample_logs):
    """Workers sharing a database cache never run at the same time."""
    cache = DatabaseResultCache(session_maker)
    other = StatsWorker(session_maker, cache, clock=lambda: SCENARIO_NOW)
    token = await cache.acquire_lease(other.lease_name, other.lease_ttl)

    worker = StatsWorker(session_maker, cache, clock=lambda: SCENARIO_NOW)
    assert await worker.run() is False
    assert await cache.get(CACHE_KEY) is None

    await cache.release_lease(other.lease_name, token)
    assert await worker.run() is True
    assert (await cache.get(CACHE_KEY)).all_time.grand_total == 20


@pytest.mark.asyncio
async def test_worker_releases_lease_after_failure(session_maker, sample_logs):
    """A failed run does not block the next one."""
    cache = FailingCache()
    cache.fail_writes = True
    worker = StatsWorker(session_maker, cache, clock=lambda: SCENARIO_NOW)

    assert await worker.run() is False

    cache.fail_writes = False
    assert await worker.run() is True


@pytest.mark.asyncio
async def test_scheduler_job_options(monkeypatch):
    """The stats job runs on the configured interval, one instance at a time."""
    from starwars_api import main

    monkeypatch.setattr(main.settings, "enable_scheduler", True)
    monkeypatch.setattr(main.settings, "stats_run_on_startup", False)
    monkeypatch.setattr(main.settings, "stats_interval_minutes", 7)

    main.start_scheduler()
    try:
        job = main.scheduler.get_job("star_wars_api_stats")
        assert job is not None
        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.trigger.interval == timedelta(minutes=7)
        assert job.func == main.stats_worker.run
    finally:
        main.stop_scheduler()

    assert main.scheduler is None


def test_scheduler_disabled(monkeypatch):
    """No scheduler is created when the periodic job is turned off."""
    from starwars_api import main

    monkeypatch.setattr(main.settings, "enable_scheduler", False)
    monkeypatch.setattr(main, "scheduler", None)

    main.start_scheduler()

    assert main.scheduler is None


@pytest.mark.parametrize("written, exit_code", [(True, 0), (False, 1)])
def test_cli_exit_code(monkeypatch, written, exit_code):
    """One-off CLI run exits 0 only when a report was written."""
    from starwars_api.db import init_db
    from starwars_api.workers import stats_worker

    class FakeWorker:
        async def run(self):
            return written

    async def no_tables():
        return None

    monkeypatch.setattr(init_db, "init_database", no_tables)
    monkeypatch.setattr(stats_worker, "StatsWorker", FakeWorker)

    assert stats_worker.main() == exit_code
