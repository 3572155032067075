"""
Rule-based caregiver tips.

Rules (fixed set, evaluated independently and in order):
  - short-nap-streak       2+ of the last 3 naps under 30 minutes
  - overtired              last wake window above 120% of the age maximum
  - bedtime-drift          newest bedtime 30+ minutes off the recent average
  - split-night            a session nested inside a recent night sleep
  - inconsistent-schedule  nap lengths spread > 30 minutes while confidence is low
  - high-confidence        confidence >= 0.75 with 5+ sessions
  - insufficient-data      fewer than 5 sessions logged
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from statistics import mean, pstdev
from typing import Callable, Iterable, List, Optional, Tuple

from .baselines import AgeBaseline, get_baseline_for_age
from .learner import is_nap, usable_sessions
from .schedule_predictor import resolve_age_months
from ..core.constants import (
    SHORT_NAP_THRESHOLD_MINUTES, SHORT_NAP_STREAK, SHORT_NAP_MIN_COUNT,
    LONG_WAKE_THRESHOLD_RATIO,
    BEDTIME_VARIANCE_THRESHOLD_MINUTES, BEDTIME_LOOKBACK_SESSIONS, BEDTIME_MIN_SESSIONS,
    BEDTIME_WINDOW_START_HOUR, BEDTIME_WINDOW_END_HOUR,
    SPLIT_NIGHT_LOOKBACK_SESSIONS,
    MIN_SESSIONS_FOR_CONFIDENCE, HIGH_CONFIDENCE_THRESHOLD,
    INCONSISTENCY_NAP_LOOKBACK, INCONSISTENCY_MIN_NAPS, INCONSISTENCY_STD_DEV_MINUTES,
    INCONSISTENCY_RELATED_NAPS,
)
from ..core.models import BabyProfile, CoachTip, LearnerState, SleepSession, TipType
from ..utils.dates import minutes_between, resolve_now, round_half_up, to_local

logger = logging.getLogger(__name__)


class CoachRule(str, Enum):
    SHORT_NAP_STREAK = "short-nap-streak"
    OVERTIRED = "overtired"
    BEDTIME_DRIFT = "bedtime-drift"
    SPLIT_NIGHT = "split-night"
    INCONSISTENT_SCHEDULE = "inconsistent-schedule"
    HIGH_CONFIDENCE = "high-confidence"
    INSUFFICIENT_DATA = "insufficient-data"


@dataclass
class CoachContext:
    sessions: List[SleepSession]  # usable, newest first
    learner_state: LearnerState
    baseline: AgeBaseline

    @property
    def naps(self) -> List[SleepSession]:
        return [s for s in self.sessions if is_nap(s)]

    @property
    def nights(self) -> List[SleepSession]:
        return [s for s in self.sessions if not is_nap(s)]


def _is_bedtime_start(session: SleepSession) -> bool:
    hour = to_local(session.start).hour
    return hour >= BEDTIME_WINDOW_START_HOUR or hour <= BEDTIME_WINDOW_END_HOUR


def _minute_of_day(value: datetime) -> int:
    local = to_local(value)
    return local.hour * 60 + local.minute


def _hours(minutes: float) -> str:
    # One decimal, without a trailing ".0"
    return f"{round_half_up(minutes / 60 * 10) / 10:g}"


def _short_nap_streak(ctx: CoachContext) -> Optional[CoachTip]:
    recent_naps = ctx.naps[:SHORT_NAP_STREAK]
    short_naps = [s for s in recent_naps if s.duration_minutes < SHORT_NAP_THRESHOLD_MINUTES]

    if len(short_naps) < SHORT_NAP_MIN_COUNT or len(recent_naps) < SHORT_NAP_MIN_COUNT:
        return None

    return CoachTip(
        id=CoachRule.SHORT_NAP_STREAK.value,
        title="Short Nap Streak",
        message=(
            f"{len(short_naps)} of the last {len(recent_naps)} naps were under "
            f"{SHORT_NAP_THRESHOLD_MINUTES} minutes. Try extending wind-down routine or checking "
            f"room environment (darkness, temperature, white noise)."
        ),
        type=TipType.WARNING,
        related_session_ids=[s.id for s in short_naps],
    )


def _overtired(ctx: CoachContext) -> Optional[CoachTip]:
    if len(ctx.sessions) < 2:
        return None

    last_sleep, previous_sleep = ctx.sessions[0], ctx.sessions[1]
    wake_window = minutes_between(previous_sleep.end, last_sleep.start)
    limit = ctx.baseline.wake_window_max * LONG_WAKE_THRESHOLD_RATIO

    if wake_window <= limit:
        return None

    return CoachTip(
        id=CoachRule.OVERTIRED.value,
        title="Long Wake Window Detected",
        message=(
            f"Last wake window was {_hours(wake_window)}h, which exceeds "
            f"{_hours(ctx.baseline.wake_window_max)}h recommended for this age. "
            f"Baby may be overtired. Consider shortening next wake window by 15-30 minutes."
        ),
        type=TipType.WARNING,
        related_session_ids=[last_sleep.id, previous_sleep.id],
    )


def _bedtime_drift(ctx: CoachContext) -> Optional[CoachTip]:
    bedtimes = [s for s in ctx.nights if _is_bedtime_start(s)][:BEDTIME_LOOKBACK_SESSIONS]
    if len(bedtimes) < BEDTIME_MIN_SESSIONS:
        return None

    minutes = [_minute_of_day(s.start) for s in bedtimes]
    average = mean(minutes)
    latest = minutes[0]
    drift = abs(latest - average)

    if drift <= BEDTIME_VARIANCE_THRESHOLD_MINUTES:
        return None

    direction = "later" if latest > average else "earlier"
    avg_hour = int(average // 60)
    avg_minute = int(average % 60)

    return CoachTip(
        id=CoachRule.BEDTIME_DRIFT.value,
        title=f"Bedtime Drifting {direction.capitalize()}",
        message=(
            f"Recent bedtime is {round_half_up(drift)} minutes {direction} than average "
            f"({avg_hour}:{avg_minute:02d}). Try to maintain consistent bedtime routine "
            f"to improve sleep quality."
        ),
        type=TipType.INFO,
        related_session_ids=[bedtimes[0].id],
    )


def _split_night(ctx: CoachContext) -> Optional[CoachTip]:
    for night in ctx.nights[:SPLIT_NIGHT_LOOKBACK_SESSIONS]:
        nested = [
            other for other in ctx.sessions
            if other.id != night.id and other.start > night.start and other.end < night.end
        ]
        if nested:
            return CoachTip(
                id=CoachRule.SPLIT_NIGHT.value,
                title="Split Night Detected",
                message=(
                    "Baby had a wake period during the night. This might indicate too much "
                    "daytime sleep or late bedtime. Consider adjusting daytime nap schedule."
                ),
                type=TipType.WARNING,
                related_session_ids=[night.id] + [s.id for s in nested],
            )
    return None


def _inconsistent_schedule(ctx: CoachContext) -> Optional[CoachTip]:
    if ctx.learner_state.confidence >= HIGH_CONFIDENCE_THRESHOLD:
        return None
    if len(ctx.sessions) < MIN_SESSIONS_FOR_CONFIDENCE:
        return None

    naps = ctx.naps
    durations = [s.duration_minutes for s in naps[:INCONSISTENCY_NAP_LOOKBACK]]
    if len(durations) < INCONSISTENCY_MIN_NAPS:
        return None

    average = mean(durations)
    spread = pstdev(durations)
    if spread <= INCONSISTENCY_STD_DEV_MINUTES:
        return None

    return CoachTip(
        id=CoachRule.INCONSISTENT_SCHEDULE.value,
        title="Inconsistent Sleep Patterns",
        message=(
            f"Sleep durations vary significantly (avg: {round_half_up(average)}min, "
            f"variance: ±{round_half_up(spread)}min). Try to maintain consistent wake windows and "
            f"bedtime routines to help establish predictable patterns."
        ),
        type=TipType.INFO,
        related_session_ids=[s.id for s in naps[:INCONSISTENCY_RELATED_NAPS]],
    )


def _high_confidence(ctx: CoachContext) -> Optional[CoachTip]:
    if ctx.learner_state.confidence < HIGH_CONFIDENCE_THRESHOLD:
        return None
    if len(ctx.sessions) < MIN_SESSIONS_FOR_CONFIDENCE:
        return None

    return CoachTip(
        id=CoachRule.HIGH_CONFIDENCE.value,
        title="Great Sleep Consistency! \U0001F389",
        message=(
            f"Sleep patterns are {round_half_up(ctx.learner_state.confidence * 100)}% consistent. "
            f"Keep up the great work with the current routine!"
        ),
        type=TipType.SUCCESS,
    )


def _insufficient_data(ctx: CoachContext) -> Optional[CoachTip]:
    # Guard is the negation of _high_confidence's session check
    if len(ctx.sessions) >= MIN_SESSIONS_FOR_CONFIDENCE:
        return None

    return CoachTip(
        id=CoachRule.INSUFFICIENT_DATA.value,
        title="Keep Logging Sleep Sessions",
        message=(
            f"{MIN_SESSIONS_FOR_CONFIDENCE - len(ctx.sessions)} more sessions needed for "
            f"personalized insights. Continue tracking to unlock smart predictions!"
        ),
        type=TipType.INFO,
    )


RULES: Tuple[Tuple[CoachRule, Callable[[CoachContext], Optional[CoachTip]]], ...] = (
    (CoachRule.SHORT_NAP_STREAK, _short_nap_streak),
    (CoachRule.OVERTIRED, _overtired),
    (CoachRule.BEDTIME_DRIFT, _bedtime_drift),
    (CoachRule.SPLIT_NIGHT, _split_night),
    (CoachRule.INCONSISTENT_SCHEDULE, _inconsistent_schedule),
    (CoachRule.HIGH_CONFIDENCE, _high_confidence),
    (CoachRule.INSUFFICIENT_DATA, _insufficient_data),
)


# Used by: pipeline.refresh_derived_state, api/planner
def evaluate_coach_tips(
    sessions: Iterable[SleepSession],
    learner_state: LearnerState,
    profile: Optional[BabyProfile],
    now: Optional[datetime] = None,
) -> List[CoachTip]:
    valid = usable_sessions(sessions, newest_first=True)
    if not valid:
        return []

    now = resolve_now(now, (s.start for s in valid))
    age_months = resolve_age_months(profile, now)

    ctx = CoachContext(
        sessions=valid,
        learner_state=learner_state,
        baseline=get_baseline_for_age(age_months),
    )

    tips = []
    for rule, build in RULES:
        tip = build(ctx)
        if tip is not None:
            logger.debug(f"Coach rule {rule.value} triggered")
            tips.append(tip)

    logger.info(f"Coach evaluated {len(valid)} sessions: {len(tips)} tips")
    return tips
