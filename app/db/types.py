"""
Column types shared by the table models.
"""
from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

from app.core.clock import as_utc


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware UTC timestamp.

    Values are converted to UTC on the way in and always come back aware, also on
    SQLite and MySQL, which store the UTC wall time without an offset.
    """
    impl = DateTime
    cache_ok = True

    def __init__(self):
        super().__init__(timezone=True)

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        return as_utc(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return value
        return as_utc(value)
