"""Projects upcoming wind-down / nap / bedtime blocks from the learner state."""

import logging
import uuid
from dataclasses import replace
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from .baselines import AgeBaseline, get_baseline_for_age
from ..core.constants import (
    BEDTIME_EVENING_START_HOUR, BEDTIME_EVENING_END_HOUR, BEDTIME_EARLY_MORNING_END_HOUR,
    NIGHT_SLEEP_DURATION_MINUTES, NIGHT_SLEEP_CONFIDENCE_PENALTY,
    WIND_DOWN_NAP_MINUTES, WIND_DOWN_BEDTIME_MINUTES,
    MORNING_WAKE_WINDOW_REDUCTION_MINUTES, BASELINE_ALIGNMENT_TOLERANCE_MINUTES,
    SCHEDULE_MAX_ITERATIONS, SCHEDULE_HORIZON_DAYS,
    CONFIDENCE_MIN, CONFIDENCE_MAX, WHAT_IF_CONFIDENCE_DIVISOR,
)
from ..core.models import BabyProfile, BlockKind, LearnerState, ScheduleBlock, SleepSession
from ..core.settings import settings
from ..utils.dates import calculate_age_in_months, local_start_of_day, resolve_now, to_local

logger = logging.getLogger(__name__)

_BLOCK_ID_NAMESPACE = uuid.UUID("6f1c2d4e-8a3b-4c5d-9e7f-0a1b2c3d4e5f")


# Used by: generate_schedule, coach, pipeline, api/planner
def resolve_age_months(profile: Optional[BabyProfile], now: datetime) -> int:
    if profile is None:
        return settings.DEFAULT_AGE_MONTHS
    return calculate_age_in_months(profile.birth_date, to_local(now).date())


# Used by: generate_schedule
def is_bedtime_hour(hour: int) -> bool:
    """Fixed clock-hour heuristic: evenings [19, 22] and early mornings [0, 4)."""
    return (
        BEDTIME_EVENING_START_HOUR <= hour <= BEDTIME_EVENING_END_HOUR
        or 0 <= hour < BEDTIME_EARLY_MORNING_END_HOUR
    )


def _block_id(kind: BlockKind, start: datetime) -> str:
    # Derived from content so repeated runs yield identical ids
    return str(uuid.uuid5(_BLOCK_ID_NAMESPACE, f"{kind.value}:{start.isoformat()}"))


def _clamp_confidence(value: float) -> float:
    return max(CONFIDENCE_MIN, min(CONFIDENCE_MAX, value))


# Used by: generate_schedule
def _resolve_start_time(
        learner_state: LearnerState,
        last_session: Optional[SleepSession],
        now: datetime
) -> Tuple[datetime, bool]:
    """Returns (simulation start, currently asleep)."""
    if last_session is None:
        return now, False

    if last_session.end is None:
        predicted_wake = last_session.start + timedelta(minutes=learner_state.ewma_nap_length_min)
        return max(predicted_wake, now), True

    return max(last_session.end, now), False


# Used by: generate_schedule
def _nap_rationale(learner_state: LearnerState, baseline: AgeBaseline, age_months: int) -> str:
    typical = baseline.wake_window_typical
    diff = learner_state.ewma_wake_window_min - typical

    if abs(diff) < BASELINE_ALIGNMENT_TOLERANCE_MINUTES:
        comparison = "aligned with"
    elif diff > 0:
        comparison = "adjusted above"
    else:
        comparison = "adjusted below"

    return f"Nap {comparison} {typical}m baseline ({age_months}mo)"


# Used by: pipeline.refresh_derived_state, generate_what_if_schedule, api/planner
def generate_schedule(
        learner_state: LearnerState,
        last_session: Optional[SleepSession],
        profile: Optional[BabyProfile],
        now: Optional[datetime] = None
) -> List[ScheduleBlock]:
    """Simulate alternating wake windows and sleeps through the end of tomorrow."""
    last_times = (last_session.start, last_session.end) if last_session else ()
    now = resolve_now(now, last_times)

    age_months = resolve_age_months(profile, now)
    baseline = get_baseline_for_age(age_months)

    simulation_time, currently_asleep = _resolve_start_time(learner_state, last_session, now)
    horizon = local_start_of_day(now, days_ahead=SCHEDULE_HORIZON_DAYS)

    logger.debug(
        f"Generating schedule from {simulation_time.isoformat()} "
        f"(asleep={currently_asleep}, age={age_months}mo, horizon={horizon.isoformat()})"
    )

    schedule: List[ScheduleBlock] = []
    iterations = 0

    while simulation_time < horizon and iterations < SCHEDULE_MAX_ITERATIONS:
        iterations += 1

        sleep_start = simulation_time + timedelta(minutes=learner_state.ewma_wake_window_min)
        bedtime = is_bedtime_hour(to_local(sleep_start).hour)
        kind = BlockKind.BEDTIME if bedtime else BlockKind.NAP

        if bedtime:
            # Overnight length is not learned
            duration = NIGHT_SLEEP_DURATION_MINUTES
            penalty = NIGHT_SLEEP_CONFIDENCE_PENALTY
            wind_down_minutes = WIND_DOWN_BEDTIME_MINUTES
            rationale = (
                f"Bedtime based on {learner_state.ewma_wake_window_min}m wake window "
                f"and typical evening schedule"
            )
        else:
            duration = max(baseline.nap_min, min(baseline.nap_max, learner_state.ewma_nap_length_min))
            penalty = 0.0
            wind_down_minutes = WIND_DOWN_NAP_MINUTES
            rationale = _nap_rationale(learner_state, baseline, age_months)

        confidence = _clamp_confidence(learner_state.confidence + penalty)
        sleep_end = sleep_start + timedelta(minutes=duration)
        wind_down_start = sleep_start - timedelta(minutes=wind_down_minutes)

        # A wind-down is only emitted together with the sleep block it leads into
        if now < sleep_start and sleep_start < horizon:
            schedule.append(ScheduleBlock(
                id=_block_id(BlockKind.WIND_DOWN, wind_down_start),
                kind=BlockKind.WIND_DOWN,
                start=wind_down_start,
                end=sleep_start,
                confidence=confidence,
                rationale=f"{wind_down_minutes}m wind-down before {kind.value}",
            ))

        if now < sleep_end and sleep_start < horizon:
            schedule.append(ScheduleBlock(
                id=_block_id(kind, sleep_start),
                kind=kind,
                start=sleep_start,
                end=sleep_end,
                confidence=confidence,
                rationale=rationale,
            ))

        simulation_time = sleep_end
        if bedtime:
            simulation_time -= timedelta(minutes=MORNING_WAKE_WINDOW_REDUCTION_MINUTES)

    logger.info(f"Generated {len(schedule)} schedule blocks in {iterations} iterations")
    return schedule


# Used by: generate_what_if_schedule, api/planner (displayed wake window)
def what_if_learner_state(learner_state: LearnerState, adjustment_minutes: int) -> LearnerState:
    """Wake window shifted by the adjustment; confidence drops with the shift size."""
    return replace(
        learner_state,
        ewma_wake_window_min=learner_state.ewma_wake_window_min + adjustment_minutes,
        confidence=max(
            CONFIDENCE_MIN,
            learner_state.confidence - abs(adjustment_minutes) / WHAT_IF_CONFIDENCE_DIVISOR,
        ),
    )


# Used by: api/planner (what-if slider)
def generate_what_if_schedule(
        learner_state: LearnerState,
        last_session: Optional[SleepSession],
        profile: Optional[BabyProfile],
        adjustment_minutes: int,
        now: Optional[datetime] = None
) -> List[ScheduleBlock]:
    adjusted = what_if_learner_state(learner_state, adjustment_minutes)
    return generate_schedule(adjusted, last_session, profile, now)
