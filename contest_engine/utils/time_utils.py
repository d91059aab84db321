from datetime import date, datetime, time, timezone


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, matching how timestamps are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_day(day: date) -> datetime:
    """Midnight at the beginning of the given day."""
    return datetime.combine(day, time.min)
