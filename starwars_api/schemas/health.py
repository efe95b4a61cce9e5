"""Health check schemas."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Basic liveness response."""

    status: str
    timestamp: str  # ISO 8601
