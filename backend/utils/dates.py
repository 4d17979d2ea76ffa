# backend/utils/dates.py
from datetime import datetime, timezone


# All timestamps are stored as naive UTC so SQLite and Postgres compare the same way
def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def as_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value
