"""Next-trigger computation for group reminders.

Times of day are wall-clock in the creator's time zone; the result is a UTC
epoch timestamp in milliseconds.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytz

from group_reminders.models.group import RepeatPolicy

# Days to roll forward when today's slot has already passed.
ROLLOVER_DAYS = {
    RepeatPolicy.once: 1,
    RepeatPolicy.daily: 1,
    RepeatPolicy.weekly: 7,
}


def parse_time_of_day(value: str) -> tuple[int, int]:
    """Split an ``HH:MM`` string, raising ValueError when out of range."""
    hours_text, _, minutes_text = value.partition(":")
    hours, minutes = int(hours_text), int(minutes_text)
    if not (0 <= hours <= 23 and 0 <= minutes <= 59):
        raise ValueError(f"Invalid time of day: {value!r}")
    return hours, minutes


def compute_next_trigger(
    time_of_day: str,
    repeat: RepeatPolicy,
    tz_name: str = "UTC",
    now: Optional[datetime] = None,
) -> int:
    """Return the next occurrence of ``time_of_day`` as UTC epoch milliseconds."""
    hours, minutes = parse_time_of_day(time_of_day)
    tz = pytz.timezone(tz_name)
    now_utc = now.astimezone(timezone.utc) if now else datetime.now(timezone.utc)
    local_now = now_utc.astimezone(tz)

    naive = local_now.replace(tzinfo=None, hour=hours, minute=minutes, second=0, microsecond=0)
    candidate = tz.localize(naive)
    if candidate <= local_now:
        # Re-localize so DST transitions keep the wall-clock time.
        candidate = tz.localize(naive + timedelta(days=ROLLOVER_DAYS[RepeatPolicy(repeat)]))

    return int(candidate.astimezone(timezone.utc).timestamp() * 1000)
