"""
Pattern learner: EWMA estimates of nap length and wake window.

The state is rebuilt from the full non-deleted history on every call, so
edited or deleted sessions never leave stale contributions behind.
"""

import logging
from datetime import datetime
from typing import Iterable, List, Optional

from .baselines import get_baseline_for_age
from ..core.constants import (
    EWMA_ALPHA, LEARNER_STATE_VERSION,
    DEFAULT_NAP_LENGTH_MINUTES, DEFAULT_WAKE_WINDOW_MINUTES, DEFAULT_CONFIDENCE,
    NAP_MAX_DURATION_MINUTES, NAP_CLAMP_MIN_MINUTES, NAP_CLAMP_MAX_MINUTES,
    WAKE_WINDOW_VALID_MAX_MINUTES, WAKE_WINDOW_CLAMP_MIN_MINUTES, WAKE_WINDOW_CLAMP_MAX_MINUTES,
    CONFIDENCE_BASE, CONFIDENCE_STEP, CONFIDENCE_MAX,
)
from ..core.models import LearnerState, SleepSession
from ..utils.dates import minutes_between, resolve_now, round_half_up

logger = logging.getLogger(__name__)


# Used by: update_learner_state (no prior state)
def default_learner_state(now: Optional[datetime] = None) -> LearnerState:
    return LearnerState(
        version=LEARNER_STATE_VERSION,
        ewma_nap_length_min=DEFAULT_NAP_LENGTH_MINUTES,
        ewma_wake_window_min=DEFAULT_WAKE_WINDOW_MINUTES,
        last_updated=resolve_now(now),
        confidence=DEFAULT_CONFIDENCE,
    )


# Used by: update_learner_state, coach
def usable_sessions(sessions: Iterable[SleepSession], newest_first: bool = False) -> List[SleepSession]:
    """Non-deleted sessions with a recorded end, sorted by start."""
    closed = [s for s in sessions if not s.deleted and s.end is not None]
    valid = [s for s in closed if s.end > s.start]
    if len(valid) < len(closed):
        logger.warning(f"Ignoring {len(closed) - len(valid)} sessions that end before they start")

    valid.sort(key=lambda s: s.start, reverse=newest_first)
    return valid


# Used by: update_learner_state, coach
def is_nap(session: SleepSession) -> bool:
    return minutes_between(session.start, session.end) < NAP_MAX_DURATION_MINUTES


def _smooth(observed: float, estimate: float) -> float:
    return EWMA_ALPHA * observed + (1 - EWMA_ALPHA) * estimate


def confidence_for_points(count: int) -> float:
    return min(CONFIDENCE_BASE + CONFIDENCE_STEP * count, CONFIDENCE_MAX)


# Used by: pipeline.refresh_derived_state, api/planner
def update_learner_state(
    previous_state: Optional[LearnerState],
    sessions: Iterable[SleepSession],
    age_months: int,
    now: Optional[datetime] = None,
) -> LearnerState:
    """Rebuild the learner state from the complete session history."""
    valid = usable_sessions(sessions)
    now = resolve_now(now, (s.start for s in valid))
    state = previous_state or default_learner_state(now)

    if not valid:
        return state

    baseline = get_baseline_for_age(age_months)
    ewma_nap = (baseline.nap_min + baseline.nap_max) / 2
    ewma_wake = (baseline.wake_window_min + baseline.wake_window_max) / 2

    # On cold start the first observation replaces the midpoint outright
    cold_start = previous_state is None
    seeded_nap = False
    seeded_wake = False
    points = 0

    for index, session in enumerate(valid):
        if is_nap(session):
            observed = max(NAP_CLAMP_MIN_MINUTES, min(minutes_between(session.start, session.end), NAP_CLAMP_MAX_MINUTES))
            if cold_start and not seeded_nap:
                ewma_nap = observed
                seeded_nap = True
            else:
                ewma_nap = _smooth(observed, ewma_nap)
            points += 1

        if index == 0:
            continue

        wake_window = minutes_between(valid[index - 1].end, session.start)
        if 0 < wake_window < WAKE_WINDOW_VALID_MAX_MINUTES:
            observed = max(WAKE_WINDOW_CLAMP_MIN_MINUTES, min(wake_window, WAKE_WINDOW_CLAMP_MAX_MINUTES))
            if cold_start and not seeded_wake:
                ewma_wake = observed
                seeded_wake = True
            else:
                ewma_wake = _smooth(observed, ewma_wake)
            points += 1

    confidence = confidence_for_points(points)

    logger.debug(
        f"Learner rebuilt from {len(valid)} sessions: nap={ewma_nap:.1f}m "
        f"wake={ewma_wake:.1f}m points={points} confidence={confidence:.2f}"
    )

    return LearnerState(
        version=state.version or LEARNER_STATE_VERSION,
        ewma_nap_length_min=round_half_up(ewma_nap),
        ewma_wake_window_min=round_half_up(ewma_wake),
        last_updated=now,
        confidence=confidence,
    )
