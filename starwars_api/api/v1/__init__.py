"""API router initialization."""

from fastapi import APIRouter

from starwars_api.api.v1.health import router as health_router
from starwars_api.api.v1.starwars import router as starwars_router

router = APIRouter()

router.include_router(health_router, prefix="/health", tags=["Health"])
router.include_router(starwars_router, prefix="/starwars", tags=["Star Wars"])
