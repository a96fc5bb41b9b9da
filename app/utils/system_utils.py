from datetime import datetime
from pytz import timezone

from app.config import settings


def local_now() -> datetime:
    """Current time in the school's configured timezone."""
    return datetime.now(timezone(settings.TIMEZONE))


def to_local(value: datetime) -> datetime:
    """Express a datetime in the school's timezone; naive values are taken as already local.

    Stored timestamps come from ``local_now()`` and SQLite keeps only their wall-clock
    part, so comparisons must use the same clock.
    """
    tz = timezone(settings.TIMEZONE)
    if value.tzinfo is None:
        return tz.localize(value)
    return value.astimezone(tz)


def mask_code(code: str) -> str:
    """Keep redemption codes out of the logs, apart from the last characters."""
    if not code:
        return ""
    return "*" * max(len(code) - 4, 0) + code[-4:]
