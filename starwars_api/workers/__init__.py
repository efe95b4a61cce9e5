"""Background workers for scheduled tasks."""

from starwars_api.workers.stats_worker import StatsWorker

__all__ = [
    "StatsWorker",
]
