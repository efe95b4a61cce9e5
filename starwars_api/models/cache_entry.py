"""Key-value cache table backing the stats result cache."""

import json
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from starwars_api.db.base import Base


class CacheEntry(Base):
    """Cache entry - one row per key, value stored as a JSON string."""

    __tablename__ = "cache_entries"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime)

    def get_value(self) -> Any:
        """Deserialize the stored JSON value."""
        try:
            return json.loads(self.value)
        except json.JSONDecodeError:
            return None

    def set_value(self, value: Any) -> None:
        """Serialize value to JSON."""
        self.value = json.dumps(value)
