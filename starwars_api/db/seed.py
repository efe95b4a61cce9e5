"""Database seeder for demo API call logs."""

import asyncio
import random
from datetime import datetime, timedelta

from loguru import logger

from starwars_api.db.init_db import init_database, reset_database
from starwars_api.db.session import async_session_maker
from starwars_api.models.api_log import StarWarsApiLog

PEOPLE_NAMES = ["Luke", "Leia", "Vader", "Yoda", "Han", "Obi"]
FILM_TITLES = ["Hope", "Empire", "Return", "Phantom", "Clones", "Revenge"]

# (max age, number of logs) so every stats window has data
AGE_BUCKETS = [
    (timedelta(hours=24), 40),
    (timedelta(days=7), 60),
    (timedelta(days=30), 80),
    (timedelta(days=90), 100),
]


def _random_call() -> tuple[str, str | None, str | None]:
    """Pick an endpoint shape: person/film, by id or by search."""
    kind = random.choice(["person_by_id", "person_by_name", "film_by_id", "film_by_name"])
    if kind == "person_by_id":
        return f"people/{random.randint(1, 20)}", None, None
    if kind == "person_by_name":
        return "people", "name", random.choice(PEOPLE_NAMES)
    if kind == "film_by_id":
        return f"films/{random.randint(1, 6)}", None, None
    return "films", "title", random.choice(FILM_TITLES)


def build_logs(now: datetime | None = None) -> list[StarWarsApiLog]:
    """Generate demo logs spread over the last 90 days."""
    now = now or datetime.now()
    logs = []

    for max_age, count in AGE_BUCKETS:
        for _ in range(count):
            endpoint, param_name, param_value = _random_call()
            started_at = now - timedelta(seconds=random.randint(0, int(max_age.total_seconds())))
            duration_ms = random.randint(40, 900)
            failed = random.random() < 0.05

            logs.append(StarWarsApiLog(
                endpoint=endpoint,
                param_name=param_name,
                param_value=param_value,
                started_at=started_at,
                completed_at=started_at + timedelta(milliseconds=duration_ms),
                duration_ms=duration_ms,
                exception_message="Star Wars API returned 500" if failed else None,
            ))

    return logs


async def seed_logs() -> None:
    """Seed API call logs."""
    logs = build_logs()

    async with async_session_maker() as db:
        db.add_all(logs)
        await db.commit()
    logger.info(f"Seeded {len(logs)} API call logs")


async def seed_all() -> None:
    """Seed all demo data."""
    logger.info("Starting database seeding...")

    await init_database()
    await seed_logs()

    logger.info("Database seeding completed!")


if __name__ == "__main__":
    import sys

    if len(sys.argv) > 1 and sys.argv[1] == "--clear":
        asyncio.run(reset_database())
    else:
        asyncio.run(seed_all())
