"""Entry checks for manually logged sessions and profiles."""

from datetime import date, datetime
from typing import List, Optional

from ..core.constants import (
    MIN_SLEEP_DURATION_MINUTES, MAX_SLEEP_DURATION_HOURS, MIN_WAKE_DURATION_MINUTES,
)
from ..utils.dates import local_today, minutes_between, resolve_now

MSG_START_BEFORE_END = "Start time must be before end time"
MSG_FUTURE_DATE = "Cannot log sleep sessions in the future"
MSG_MIN_SLEEP = f"Sleep session must be at least {MIN_SLEEP_DURATION_MINUTES} minutes"
MSG_MAX_SLEEP = f"Sleep session cannot exceed {MAX_SLEEP_DURATION_HOURS} hours"
MSG_MIN_WAKE = f"Wake time must be at least {MIN_WAKE_DURATION_MINUTES} minutes"
MSG_FUTURE_BIRTH_DATE = "Birth date cannot be in the future"


# Used by: api/planner (POST /sessions/validate)
def validate_session_entry(
    start: datetime,
    end: datetime,
    now: Optional[datetime] = None,
    previous_end: Optional[datetime] = None
) -> List[str]:
    """Returns user-facing messages; an empty list means the entry is valid."""
    now = resolve_now(now, (start, end))

    if end <= start:
        return [MSG_START_BEFORE_END]

    errors = []
    if end > now:
        errors.append(MSG_FUTURE_DATE)

    duration = minutes_between(start, end)
    if duration < MIN_SLEEP_DURATION_MINUTES:
        errors.append(MSG_MIN_SLEEP)
    elif duration > MAX_SLEEP_DURATION_HOURS * 60:
        errors.append(MSG_MAX_SLEEP)

    if previous_end is not None and previous_end <= start:
        if minutes_between(previous_end, start) < MIN_WAKE_DURATION_MINUTES:
            errors.append(MSG_MIN_WAKE)

    return errors


# Used by: api/models.BabyProfileIn
def validate_profile_birth_date(birth_date: date, today: Optional[date] = None) -> List[str]:
    if today is None:
        today = local_today()
    if birth_date > today:
        return [MSG_FUTURE_BIRTH_DATE]
    return []
