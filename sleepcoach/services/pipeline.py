"""
One recomputation pass over a consistent snapshot of sessions and profile.

    sessions + profile + prior state
        → learner state → schedule blocks → notification requests
                        → coach tips

Nothing here reads or writes storage; callers persist the returned state.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterable, List, Optional

from .coach import evaluate_coach_tips
from .learner import update_learner_state
from .notifications import (
    NotificationRequest, build_notification_requests, describe_next_block, next_upcoming_block,
)
from .schedule_predictor import generate_schedule, resolve_age_months
from ..core.models import BabyProfile, CoachTip, LearnerState, ScheduleBlock, SleepSession
from ..utils.dates import resolve_now

logger = logging.getLogger(__name__)


@dataclass
class DerivedState:
    age_months: int
    learner_state: LearnerState
    last_session: Optional[SleepSession]
    schedule: List[ScheduleBlock] = field(default_factory=list)
    coach_tips: List[CoachTip] = field(default_factory=list)
    notifications: List[NotificationRequest] = field(default_factory=list)
    schedule_message: Optional[str] = None


# Used by: refresh_derived_state
def sessions_for_profile(
    sessions: Iterable[SleepSession],
    profile: Optional[BabyProfile]
) -> List[SleepSession]:
    """Non-deleted sessions that are unassigned or belong to the profile."""
    live = [s for s in sessions if not s.deleted]
    if profile is None:
        return live
    return [s for s in live if s.profile_id is None or s.profile_id == profile.id]


# Used by: refresh_derived_state
def find_last_session(sessions: Iterable[SleepSession]) -> Optional[SleepSession]:
    """Latest-starting session; an open one means the baby is asleep now."""
    return max(sessions, key=lambda s: s.start, default=None)


# Used by: api/planner (POST /pipeline/refresh)
def refresh_derived_state(
    sessions: Iterable[SleepSession],
    profile: Optional[BabyProfile],
    learner_state: Optional[LearnerState],
    now: Optional[datetime] = None
) -> DerivedState:
    profile_sessions = sessions_for_profile(sessions, profile)
    now = resolve_now(now, (s.start for s in profile_sessions))
    age_months = resolve_age_months(profile, now)

    logger.info(
        f"Refreshing derived state for profile {profile.id if profile else '-'}: "
        f"{len(profile_sessions)} sessions, age {age_months}mo"
    )

    new_state = update_learner_state(learner_state, profile_sessions, age_months, now)
    last_session = find_last_session(profile_sessions)

    schedule = generate_schedule(new_state, last_session, profile, now)
    tips = evaluate_coach_tips(profile_sessions, new_state, profile, now)
    notifications = build_notification_requests(schedule, now)

    return DerivedState(
        age_months=age_months,
        learner_state=new_state,
        last_session=last_session,
        schedule=schedule,
        coach_tips=tips,
        notifications=notifications,
        schedule_message=describe_next_block(next_upcoming_block(schedule, now)),
    )
