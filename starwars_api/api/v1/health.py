"""Health API endpoint."""

from datetime import datetime

from fastapi import APIRouter

from starwars_api.schemas.health import HealthResponse

router = APIRouter()


@router.get("", response_model=HealthResponse)
async def get_health() -> HealthResponse:
    """Basic endpoint to ensure the API is functioning."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now().astimezone().isoformat(),
    )
