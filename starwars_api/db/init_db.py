"""Database table creation helpers."""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncEngine

from starwars_api.db import models_registry  # noqa: F401 - Import to register models
from starwars_api.db.base import Base
from starwars_api.db.session import engine as default_engine


async def init_database(engine: AsyncEngine | None = None) -> None:
    """Create missing tables."""
    async with (engine or default_engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database initialized")


async def reset_database(engine: AsyncEngine | None = None) -> None:
    """Drop and recreate all tables."""
    async with (engine or default_engine).begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    logger.info("All tables dropped and recreated")
