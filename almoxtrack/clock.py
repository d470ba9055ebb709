from datetime import date, datetime, time, timezone


def now() -> datetime:
    """Current time as naive UTC, the form every DateTime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def start_of_day(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        value = to_utc_naive(value).date()
    return datetime.combine(value, time.min)


def end_of_day(value: date | datetime) -> datetime:
    if isinstance(value, datetime):
        value = to_utc_naive(value).date()
    return datetime.combine(value, time.max)
