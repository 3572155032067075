"""Local-time conversion, minute arithmetic and age calculation."""

import math
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional

import pytz

from ..core.settings import settings


# Used by: learner, coach, session_validation
def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, truncated toward zero."""
    return int((end - start).total_seconds() / 60)


# Used by: schedule_predictor, coach, notifications
def to_local(value: datetime) -> datetime:
    """Aware timestamps move to settings.TIMEZONE; naive ones are already local."""
    if value.tzinfo is None:
        return value
    return value.astimezone(pytz.timezone(settings.TIMEZONE))


# Used by: schedule_predictor (simulation horizon)
def local_start_of_day(value: datetime, days_ahead: int = 0) -> datetime:
    """Local midnight of value's day, shifted by whole calendar days.

    The offset is resolved for the target date, so a DST change between the
    two days does not move the result off midnight.
    """
    local = to_local(value)
    midnight = datetime.combine(local.date() + timedelta(days=days_ahead), time())
    if value.tzinfo is None:
        return midnight
    return pytz.timezone(settings.TIMEZONE).localize(midnight)


# Used by: calculate_age_in_months, session_validation
def local_today(now: Optional[datetime] = None) -> date:
    if now is None:
        now = local_now()
    return to_local(now).date()


# Used by: schedule_predictor.resolve_age_months
def calculate_age_in_months(birth_date: date, today: Optional[date] = None) -> int:
    """Calendar months since birth; a month counts once its day-of-month is reached."""
    if today is None:
        today = local_today()
    if isinstance(birth_date, datetime):
        birth_date = birth_date.date()

    total_months = (today.year - birth_date.year) * 12 + (today.month - birth_date.month)
    if today.day < birth_date.day:
        total_months -= 1

    return max(0, total_months)


# Used by: learner (estimates are reported as whole minutes)
def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


# Used by: api/models.py (request timestamps), api/planner
def ensure_aware(value: datetime) -> datetime:
    """Naive timestamps are read as local time in settings.TIMEZONE."""
    if value.tzinfo is not None:
        return value
    return pytz.timezone(settings.TIMEZONE).localize(value)


# Used by: local_today, resolve_now, api/planner
def local_now() -> datetime:
    return datetime.now(pytz.timezone(settings.TIMEZONE))


# Used by: learner, schedule_predictor, coach, notifications, session_validation, pipeline
def resolve_now(now: Optional[datetime], timestamps: Iterable[Optional[datetime]] = ()) -> datetime:
    """An explicit now wins. Otherwise the local clock, aware only when the inputs are."""
    if now is not None:
        return now
    current = local_now()
    if any(t is not None and t.tzinfo is not None for t in timestamps):
        return current
    return current.replace(tzinfo=None)
