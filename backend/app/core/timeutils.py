from datetime import datetime, timezone


def utcnow() -> datetime:
    """Timezone-aware current time in UTC; every stored timestamp uses it"""
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """
    Aware UTC datetime for comparisons.
    Naive values are taken to be UTC (SQLite hands stored timestamps back without tzinfo).
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
