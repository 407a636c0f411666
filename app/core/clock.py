from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as an aware UTC datetime, the form every timestamp column holds."""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    # Naive values are taken to already be UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
