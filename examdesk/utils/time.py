from datetime import date, datetime, timezone


def utcnow() -> datetime:
    """Naive UTC timestamp, the form every datetime column stores."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def utctoday() -> date:
    return utcnow().date()


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes elapsed from start to end, never negative."""
    if start is None or end is None:
        return 0
    seconds = (end - start).total_seconds()
    return max(0, int(seconds // 60))
