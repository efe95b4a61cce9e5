"""
Star Wars API Proxy - FastAPI Application

Main entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from starwars_api.api import router as api_router
from starwars_api.core.config import get_settings
from starwars_api.core.exceptions import SwapiError
from starwars_api.core.logging import configure_logging
from starwars_api.db.init_db import init_database
from starwars_api.swapi import SwapiClient, get_swapi_client, set_swapi_client
from starwars_api.workers.stats_worker import StatsWorker

settings = get_settings()

# Global instances
scheduler: AsyncIOScheduler | None = None
stats_worker: StatsWorker | None = None


def start_scheduler() -> None:
    """Schedule the periodic stats job."""
    global scheduler, stats_worker

    if not settings.enable_scheduler:
        logger.info("Scheduler disabled - stats will not be recalculated")
        return

    stats_worker = StatsWorker()
    scheduler = AsyncIOScheduler()

    # Overlapping runs are skipped, never queued
    job_options = {}
    if settings.stats_run_on_startup:
        job_options["next_run_time"] = datetime.now()

    scheduler.add_job(
        stats_worker.run,
        "interval",
        minutes=settings.stats_interval_minutes,
        id="star_wars_api_stats",
        max_instances=1,
        coalesce=True,
        **job_options,
    )

    scheduler.start()
    logger.info(f"Scheduler started (stats every {settings.stats_interval_minutes} min)")


def stop_scheduler() -> None:
    """Stop the scheduler without waiting for a running job."""
    global scheduler

    if scheduler:
        scheduler.shutdown(wait=False)
        scheduler = None
        logger.info("Scheduler stopped")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup
    configure_logging()
    logger.info("Starting Star Wars API Proxy...")

    Path(settings.data_save_folder).mkdir(parents=True, exist_ok=True)
    await init_database()

    set_swapi_client(SwapiClient())
    start_scheduler()

    logger.info(f"Star Wars API Proxy started on port {settings.port}")

    yield

    # Shutdown
    logger.info("Shutting down Star Wars API Proxy...")
    stop_scheduler()

    client = get_swapi_client()
    if client:
        await client.aclose()
        set_swapi_client(None)
        logger.info("SWAPI client closed")

    logger.info("Star Wars API Proxy stopped")


# Create FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Star Wars API proxy with call logging and usage statistics",
    lifespan=lifespan,
    docs_url="/swagger" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)


@app.exception_handler(SwapiError)
async def swapi_exception_handler(request: Request, exc: SwapiError) -> JSONResponse:
    """Upstream failures keep their status (404, 502, 503)."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"Code": exc.status_code, "Message": exc.message},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"Code": 500, "Message": str(exc)},
    )


# Include API router
app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "starwars_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=settings.workers,
    )
