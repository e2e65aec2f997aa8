"""Column types shared by the table models."""

from datetime import datetime

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from taskflow.core.timeutils import ensure_utc


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetime column.

    Values are normalized to UTC before binding. Backends that drop the
    offset on storage (SQLite) hand back naive values, which are read as UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)

    def process_result_value(self, value: datetime | None, dialect) -> datetime | None:
        if value is None:
            return None
        return ensure_utc(value)
