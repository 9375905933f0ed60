"""
Derive the reminder cron trigger for a recurring task template.

Output is a 6-field cron expression (second minute hour day-of-month month
day-of-week) with seconds fixed at 0:

- daily:   0 {min} {hour} * * *
- weekly:  0 {min} {hour} * * {weekdays}
- monthly: 0 {min} {hour} {monthDays} * *

The reminder time is the task time minus `minutesBefore`, wrapped within the
same 24h clock. The calendar day is never shifted, so a reminder that should
land the evening before fires at that wall-clock time on the task's own day.
Only times[0] is used.
"""
import re
from typing import Optional, Tuple

from planwise.core.task.models import ReminderConfig, TimeConfig

DEFAULT_TIME_OF_DAY = "09:00"
DEFAULT_MINUTES_BEFORE = 30
DEFAULT_WEEKDAYS = [1]
DEFAULT_MONTH_DAYS = [1]
SUPPORTED_TYPES = ("daily", "weekly", "monthly")

_MINUTES_PER_DAY = 24 * 60
_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$", re.ASCII)


def parse_time_of_day(value: str) -> Optional[Tuple[int, int]]:
    """Parse "HH:MM" into (hour, minute); None if malformed or out of range."""
    match = _TIME_PATTERN.match((value or "").strip())
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        return None
    return hour, minute


def reminder_time_of_day(hour: int, minute: int, minutes_before: int) -> Tuple[int, int]:
    """
    Subtract the offset and wrap the result into the same 24h clock.

    Offsets up to 60 minutes match a single borrow from the hour. Larger
    offsets are wrapped modulo one day rather than borrowed once, so the
    minute and hour fields always stay in range (e.g. 09:00 minus 150
    minutes gives 06:30).
    """
    total = (hour * 60 + minute - minutes_before) % _MINUTES_PER_DAY
    return divmod(total, 60)


def _in_range(values, low: int, high: int) -> bool:
    return all(low <= v <= high for v in values)


def _join(values) -> str:
    return ",".join(str(v) for v in values)


def derive_reminder_cron(
    time_config: Optional[TimeConfig],
    reminder_config: Optional[ReminderConfig],
) -> Optional[str]:
    """
    Cron expression for the template's reminder, or None when no schedule should exist.

    None means: reminder missing or disabled, no time config, unsupported
    recurrence type, an unparsable time of day, or a weekday outside 0-6 or
    month day outside 1-31.
    """
    if reminder_config is None or not reminder_config.enabled:
        return None
    if time_config is None or time_config.type not in SUPPORTED_TYPES:
        return None

    time_of_day = time_config.times[0] if time_config.times else DEFAULT_TIME_OF_DAY
    parsed = parse_time_of_day(time_of_day)
    if parsed is None:
        return None

    # 0 is treated like "not set"
    minutes_before = reminder_config.minutes_before or DEFAULT_MINUTES_BEFORE
    hour, minute = reminder_time_of_day(parsed[0], parsed[1], minutes_before)

    if time_config.type == "daily":
        return f"0 {minute} {hour} * * *"
    if time_config.type == "weekly":
        weekdays = time_config.weekdays or DEFAULT_WEEKDAYS
        if not _in_range(weekdays, 0, 6):
            return None
        return f"0 {minute} {hour} * * {_join(weekdays)}"
    month_days = time_config.month_days or DEFAULT_MONTH_DAYS
    if not _in_range(month_days, 1, 31):
        return None
    return f"0 {minute} {hour} {_join(month_days)} * *"
