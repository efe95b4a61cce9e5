"""Log store for upstream Star Wars API calls."""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from starwars_api.models.api_log import StarWarsApiLog
from starwars_api.schemas.statistics import ApiLogRecord
from starwars_api.services.base_service import BaseService


def elapsed_ms(started_at: datetime, completed_at: datetime) -> int:
    """Whole milliseconds between two timestamps, never negative."""
    return max(0, int((completed_at - started_at).total_seconds() * 1000))


class ApiLogService(BaseService[StarWarsApiLog]):
    """Append-only access to the API call log."""

    def __init__(self, db: AsyncSession):
        super().__init__(db, StarWarsApiLog)

    async def record_call(
        self,
        endpoint: str,
        param_name: str | None,
        param_value: str | None,
        started_at: datetime,
        completed_at: datetime,
        exception_message: str | None = None,
    ) -> StarWarsApiLog:
        """Persist one upstream call."""
        if (param_name is None) != (param_value is None):
            raise ValueError("param_name and param_value must be set together")
        if completed_at < started_at:
            raise ValueError("completed_at must not be before started_at")

        log = StarWarsApiLog(
            endpoint=endpoint,
            param_name=param_name,
            param_value=param_value,
            started_at=started_at,
            completed_at=completed_at,
            duration_ms=elapsed_ms(started_at, completed_at),
            exception_message=exception_message,
        )
        return await self.create(log)

    async def fetch_logs(self, since: datetime | None = None) -> list[ApiLogRecord]:
        """
        Get logged calls, oldest first.

        - **since**: lower bound on ``started_at`` (inclusive); None for all time
        """
        query = select(StarWarsApiLog).order_by(
            StarWarsApiLog.started_at.asc(), StarWarsApiLog.id.asc()
        )
        if since is not None:
            query = query.where(StarWarsApiLog.started_at >= since)

        result = await self.db.execute(query)
        return [ApiLogRecord.model_validate(row) for row in result.scalars().all()]
