"""
Next fire time for stored cron tasks.

Only computes previews (`next_run_at`); firing the trigger belongs to the
cron execution engine, which reads `cron_expression` on active tasks.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from croniter import croniter

from planwise.core.schedule.validation import split_cron_expression

logger = logging.getLogger(__name__)


def next_run_at(expr: str, now: Optional[datetime] = None, tz: str = "UTC") -> datetime:
    """
    Next fire time (UTC, timezone-aware) of a 6-field cron expression evaluated in tz.

    Raises ScheduleValidationError for a malformed expression.
    """
    seconds, rest = split_cron_expression(expr)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    zone = ZoneInfo(tz) if tz else ZoneInfo("UTC")
    local_now = now.astimezone(zone)
    # croniter takes the seconds field last
    it = croniter(f"{rest} {seconds}", local_now)
    next_dt = it.get_next(datetime)
    if next_dt.tzinfo is None:
        next_dt = next_dt.replace(tzinfo=zone)
    return next_dt.astimezone(timezone.utc)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Naive UTC datetime for storage in SQLite DateTime columns."""
    if value is None:
        return None
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def from_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
