"""Log of every call made to the upstream Star Wars API."""

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from starwars_api.db.base import Base


class StarWarsApiLog(Base):
    """One upstream call.

    ``param_name``/``param_value`` are both set for name/title searches and both
    null for lookups by id. ``duration_ms`` is stored so aggregation never has
    to recompute it from the two timestamps.
    """

    __tablename__ = "star_wars_api_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # "people", "films", "people/12", "films/1"
    endpoint: Mapped[str] = mapped_column(String(255), index=True)
    param_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    param_value: Mapped[str | None] = mapped_column(String(255), nullable=True)

    started_at: Mapped[datetime] = mapped_column(DateTime, index=True)
    completed_at: Mapped[datetime] = mapped_column(DateTime)
    duration_ms: Mapped[int] = mapped_column(Integer, default=0)

    exception_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_star_wars_api_logs_started_at_id", "started_at", "id"),
    )

    @property
    def failed(self) -> bool:
        return self.exception_message is not None
