import pytest
from datetime import date, datetime, timedelta

from sleepcoach.core.models import BabyProfile, LearnerState, SleepSession
from sleepcoach.core.settings import settings


@pytest.fixture(autouse=True)
def utc_timezone(monkeypatch):
    """Pin local time to UTC unless a test overrides it."""
    monkeypatch.setattr(settings, "TIMEZONE", "UTC")
    monkeypatch.setattr(settings, "DEFAULT_AGE_MONTHS", 6)


@pytest.fixture
def now():
    return datetime(2023, 1, 1, 11, 0)


@pytest.fixture
def profile():
    """Six months old on 2023-01-01."""
    return BabyProfile(id="baby-1", name="Test Baby", birth_date=date(2022, 7, 1))


@pytest.fixture
def learner_state(now):
    return LearnerState(
        version=1,
        ewma_nap_length_min=60,
        ewma_wake_window_min=120,
        last_updated=now,
        confidence=0.5,
    )


@pytest.fixture
def make_session():
    def _make(session_id, start, minutes=None, **kwargs):
        end = start + timedelta(minutes=minutes) if minutes is not None else None
        return SleepSession(id=session_id, start=start, end=end, **kwargs)
    return _make
