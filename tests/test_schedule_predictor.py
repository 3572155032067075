import pytest
import pytz
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from sleepcoach.core.models import BlockKind
from sleepcoach.core.settings import settings
from sleepcoach.services.schedule_predictor import (
    generate_schedule, generate_what_if_schedule, is_bedtime_hour, what_if_learner_state,
)


def _sleep_blocks(blocks):
    return [b for b in blocks if b.kind != BlockKind.WIND_DOWN]


def _assert_continuity(blocks):
    starts = [b.start for b in blocks]
    assert starts == sorted(starts)
    for i, block in enumerate(blocks):
        if block.kind == BlockKind.WIND_DOWN:
            assert i + 1 < len(blocks)
            assert blocks[i + 1].kind != BlockKind.WIND_DOWN
            assert block.end == blocks[i + 1].start


@pytest.fixture
def last_session(make_session):
    return make_session("1", datetime(2023, 1, 1, 10, 0), 60)


class TestGenerateSchedule:
    """Forward simulation of wake windows and sleeps."""

    def test_first_sleep_follows_wake_window(self, learner_state, last_session, profile, now):
        schedule = generate_schedule(learner_state, last_session, profile, now)

        first_sleep = _sleep_blocks(schedule)[0]
        assert first_sleep.kind == BlockKind.NAP
        assert first_sleep.start == datetime(2023, 1, 1, 13, 0)
        assert first_sleep.end == datetime(2023, 1, 1, 14, 0)

        wind_down = schedule[0]
        assert wind_down.kind == BlockKind.WIND_DOWN
        assert wind_down.start == datetime(2023, 1, 1, 12, 45)
        assert wind_down.end == datetime(2023, 1, 1, 13, 0)

    def test_full_two_day_projection(self, learner_state, last_session, profile, now):
        schedule = generate_schedule(learner_state, last_session, profile, now)
        sleeps = _sleep_blocks(schedule)

        assert [(b.kind, b.start) for b in sleeps] == [
            (BlockKind.NAP, datetime(2023, 1, 1, 13, 0)),
            (BlockKind.NAP, datetime(2023, 1, 1, 16, 0)),
            (BlockKind.BEDTIME, datetime(2023, 1, 1, 19, 0)),
            (BlockKind.NAP, datetime(2023, 1, 2, 7, 45)),
            (BlockKind.NAP, datetime(2023, 1, 2, 10, 45)),
            (BlockKind.NAP, datetime(2023, 1, 2, 13, 45)),
            (BlockKind.NAP, datetime(2023, 1, 2, 16, 45)),
            (BlockKind.BEDTIME, datetime(2023, 1, 2, 19, 45)),
        ]
        assert len(schedule) == 16

    def test_bedtime_blocks(self, learner_state, last_session, profile, now):
        schedule = generate_schedule(learner_state, last_session, profile, now)
        bedtime = next(b for b in schedule if b.kind == BlockKind.BEDTIME)
        wind_down = schedule[schedule.index(bedtime) - 1]

        assert bedtime.end - bedtime.start == timedelta(minutes=660)
        assert bedtime.confidence == pytest.approx(0.4)
        assert bedtime.rationale == (
            "Bedtime based on 120m wake window and typical evening schedule"
        )
        assert wind_down.end - wind_down.start == timedelta(minutes=20)
        assert wind_down.rationale == "20m wind-down before bedtime"

    def test_nap_rationale_compares_against_typical_wake_window(self, learner_state, last_session, profile, now):
        nap = _sleep_blocks(generate_schedule(learner_state, last_session, profile, now))[0]
        assert nap.rationale == "Nap adjusted above 105m baseline (6mo)"

        aligned = replace(learner_state, ewma_wake_window_min=110)
        nap = _sleep_blocks(generate_schedule(aligned, last_session, profile, now))[0]
        assert nap.rationale == "Nap aligned with 105m baseline (6mo)"

        below = replace(learner_state, ewma_wake_window_min=80)
        nap = _sleep_blocks(generate_schedule(below, last_session, profile, now))[0]
        assert nap.rationale == "Nap adjusted below 105m baseline (6mo)"

    def test_nap_length_clamped_to_age_bracket(self, learner_state, last_session, profile, now):
        long_naps = replace(learner_state, ewma_nap_length_min=200)
        nap = _sleep_blocks(generate_schedule(long_naps, last_session, profile, now))[0]
        assert nap.end - nap.start == timedelta(minutes=120)

    def test_confidence_and_rationale_on_every_block(self, learner_state, last_session, profile, now):
        for block in generate_schedule(learner_state, last_session, profile, now):
            assert 0.1 <= block.confidence <= 1.0
            assert block.rationale

    def test_no_profile_defaults_to_six_months(self, learner_state, last_session, now):
        nap = _sleep_blocks(generate_schedule(learner_state, last_session, None, now))[0]
        assert nap.rationale.endswith("(6mo)")

    def test_no_history_still_produces_blocks(self, learner_state, now):
        schedule = generate_schedule(learner_state, None, None, now)
        assert schedule
        assert _sleep_blocks(schedule)[0].start == now + timedelta(minutes=120)

    def test_deterministic(self, learner_state, last_session, profile, now):
        first = generate_schedule(learner_state, last_session, profile, now)
        second = generate_schedule(learner_state, last_session, profile, now)
        assert first == second
        assert len({b.id for b in first}) == len(first)


class TestStartingPoint:
    """Resolving the simulation start from the last session."""

    def test_open_session_projects_wake_from_nap_estimate(self, learner_state, profile, make_session):
        asleep = make_session("open", datetime(2023, 1, 1, 10, 0))
        now = datetime(2023, 1, 1, 10, 30)

        first_sleep = _sleep_blocks(generate_schedule(learner_state, asleep, profile, now))[0]
        # wakes 11:00, then a 120m wake window
        assert first_sleep.start == datetime(2023, 1, 1, 13, 0)

    def test_overdue_open_session_starts_from_now(self, learner_state, profile, make_session):
        asleep = make_session("open", datetime(2023, 1, 1, 8, 0))
        now = datetime(2023, 1, 1, 11, 0)

        first_sleep = _sleep_blocks(generate_schedule(learner_state, asleep, profile, now))[0]
        assert first_sleep.start == datetime(2023, 1, 1, 13, 0)

    def test_stale_last_session_starts_from_now(self, learner_state, profile, make_session):
        earlier = make_session("1", datetime(2023, 1, 1, 6, 0), 60)
        now = datetime(2023, 1, 1, 11, 0)

        first_sleep = _sleep_blocks(generate_schedule(learner_state, earlier, profile, now))[0]
        assert first_sleep.start == datetime(2023, 1, 1, 13, 0)


class TestInvariants:
    """Continuity, ordering and the iteration cap."""

    @pytest.mark.parametrize("wake, nap, hour", [
        (120, 60, 11), (90, 45, 6), (200, 120, 15), (45, 30, 21), (300, 90, 2),
    ])
    def test_wind_down_precedes_its_sleep_block(self, learner_state, profile, make_session, wake, nap, hour):
        state = replace(learner_state, ewma_wake_window_min=wake, ewma_nap_length_min=nap)
        now = datetime(2023, 1, 1, hour, 0)
        last = make_session("1", now - timedelta(minutes=nap), nap)

        _assert_continuity(generate_schedule(state, last, profile, now))

    def test_iteration_cap_bounds_output(self, learner_state, profile, now):
        tiny_wake = replace(learner_state, ewma_wake_window_min=1)
        schedule = generate_schedule(tiny_wake, None, profile, now)
        assert len(_sleep_blocks(schedule)) <= 20
        assert len(schedule) <= 40

    @pytest.mark.parametrize("hour, expected", [
        (19, True), (22, True), (0, True), (3, True),
        (4, False), (12, False), (18, False), (23, False),
    ])
    def test_bedtime_hours(self, hour, expected):
        assert is_bedtime_hour(hour) is expected


class TestWhatIf:
    """Adjusted wake windows with reduced confidence."""

    def test_adjusted_state(self, learner_state):
        adjusted = what_if_learner_state(learner_state, -30)
        assert adjusted.ewma_wake_window_min == 90
        assert adjusted.confidence == pytest.approx(0.2)
        assert learner_state.ewma_wake_window_min == 120

    def test_shifts_first_sleep(self, learner_state, last_session, profile, now):
        schedule = generate_what_if_schedule(learner_state, last_session, profile, 30, now)
        assert _sleep_blocks(schedule)[0].start == datetime(2023, 1, 1, 13, 30)

    def test_reduces_confidence(self, learner_state, last_session, profile, now):
        confident = replace(learner_state, confidence=0.8)
        normal = generate_schedule(confident, last_session, profile, now)
        adjusted = generate_what_if_schedule(confident, last_session, profile, 30, now)

        assert adjusted
        assert max(b.confidence for b in adjusted) < min(b.confidence for b in normal)
        for block in adjusted:
            assert block.confidence < confident.confidence

    def test_negative_adjustment_also_reduces_confidence(self, learner_state, last_session, profile, now):
        adjusted = generate_what_if_schedule(learner_state, last_session, profile, -30, now)
        naps = [b for b in adjusted if b.kind == BlockKind.NAP]
        assert naps[0].start == datetime(2023, 1, 1, 12, 30)
        assert all(b.confidence == pytest.approx(0.2) for b in naps)

    def test_confidence_floor(self, learner_state, last_session, profile, now):
        shaky = replace(learner_state, confidence=0.3)
        adjusted = generate_what_if_schedule(shaky, last_session, profile, 60, now)
        assert all(b.confidence == pytest.approx(0.1) for b in adjusted)


class TestLocalTime:
    """Clock hours are read in the configured timezone for aware timestamps."""

    def test_bedtime_uses_local_hour(self, learner_state, profile, make_session, monkeypatch):
        monkeypatch.setattr(settings, "TIMEZONE", "Asia/Tokyo")
        # 09:00 UTC is 18:00 in Tokyo; +120m lands on 20:00 local
        now = datetime(2023, 1, 1, 9, 0, tzinfo=timezone.utc)
        last = make_session("1", now - timedelta(minutes=60), 60)

        first_sleep = _sleep_blocks(generate_schedule(learner_state, last, profile, now))[0]
        assert first_sleep.kind == BlockKind.BEDTIME
        assert first_sleep.start == datetime(2023, 1, 1, 11, 0, tzinfo=timezone.utc)

    def test_horizon_is_end_of_local_tomorrow(self, learner_state, profile, make_session, monkeypatch):
        monkeypatch.setattr(settings, "TIMEZONE", "Asia/Tokyo")
        now = datetime(2023, 1, 1, 9, 0, tzinfo=timezone.utc)
        last = make_session("1", now - timedelta(minutes=60), 60)

        schedule = generate_schedule(learner_state, last, profile, now)
        # midnight Jan 3 in Tokyo
        horizon = datetime(2023, 1, 2, 15, 0, tzinfo=timezone.utc)
        assert all(b.start < horizon for b in schedule)

    @pytest.mark.parametrize("wake", range(30, 400, 5))
    def test_horizon_holds_across_dst_change(self, learner_state, profile, monkeypatch, wake):
        monkeypatch.setattr(settings, "TIMEZONE", "America/New_York")
        new_york = pytz.timezone("America/New_York")
        # clocks spring forward at 02:00 on 2026-03-08
        now = new_york.localize(datetime(2026, 3, 7, 20, 0))
        state = replace(learner_state, ewma_wake_window_min=wake)

        schedule = generate_schedule(state, None, profile, now)

        horizon = new_york.localize(datetime(2026, 3, 9))
        assert all(b.start < horizon for b in schedule)


class TestDefaultNow:
    """Without an explicit now the clock follows the inputs' awareness."""

    def test_aware_session(self, learner_state, profile, make_session):
        last = make_session("1", datetime(2023, 1, 1, 10, 0, tzinfo=timezone.utc), 60)

        schedule = generate_schedule(learner_state, last, profile)

        assert schedule
        assert all(b.start.tzinfo is not None for b in schedule)

    def test_naive_session(self, learner_state, profile, make_session):
        last = make_session("1", datetime(2023, 1, 1, 10, 0), 60)

        schedule = generate_schedule(learner_state, last, profile)

        assert schedule
        assert all(b.start.tzinfo is None for b in schedule)

    def test_aware_what_if(self, learner_state, profile, make_session):
        last = make_session("1", datetime(2023, 1, 1, 10, 0, tzinfo=timezone.utc), 60)
        assert generate_what_if_schedule(learner_state, last, profile, 30)
