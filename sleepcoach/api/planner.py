"""
Planner API: stateless wrappers around the sleep pipeline.

Callers send their own snapshot (profile, sessions, last learner state);
nothing is stored server-side.

Routes:
  GET  /baselines/{age_months}  - Age bracket (wake windows, nap lengths, day sleep)
  POST /learner/update          - Rebuild learner state from session history
  POST /schedule                - Upcoming wind-down / nap / bedtime blocks
  POST /schedule/what-if        - Same, with the wake window shifted
  POST /coach/tips              - Rule-based caregiver tips
  POST /pipeline/refresh        - Learner + schedule + tips + notifications in one pass
  POST /sessions/validate       - Entry checks for a manually logged session
"""

import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status

from .models import (
    AgeBaselineResponse,
    CoachTipModel,
    CoachTipsRequest,
    CoachTipsResponse,
    LearnerStateModel,
    LearnerUpdateRequest,
    NotificationRequestModel,
    PipelineRequest,
    PipelineResponse,
    ScheduleBlockModel,
    ScheduleRequest,
    ScheduleResponse,
    SessionValidationRequest,
    SessionValidationResponse,
    WhatIfScheduleRequest,
)
from ..core.models import BabyProfile, LearnerState, ScheduleBlock
from ..services.baselines import clamp_to_age_baseline, get_baseline_for_age
from ..services.coach import evaluate_coach_tips
from ..services.learner import update_learner_state
from ..services.pipeline import refresh_derived_state
from ..services.schedule_predictor import (
    generate_schedule, generate_what_if_schedule, resolve_age_months, what_if_learner_state,
)
from ..services.session_validation import validate_session_entry
from ..utils.dates import ensure_aware, local_now

logger = logging.getLogger(__name__)

router = APIRouter(tags=["planner"])


def _resolve_now(now: Optional[datetime]) -> datetime:
    return ensure_aware(now) if now is not None else local_now()


def _schedule_response(
        blocks: List[ScheduleBlock],
        state: LearnerState,
        profile: Optional[BabyProfile],
        now: datetime
) -> ScheduleResponse:
    age_months = resolve_age_months(profile, now)
    return ScheduleResponse(
        generated_at=now,
        age_months=age_months,
        wake_window_min=clamp_to_age_baseline(state.ewma_wake_window_min, age_months, "wakeWindow"),
        nap_length_min=clamp_to_age_baseline(state.ewma_nap_length_min, age_months, "napLength"),
        blocks=[ScheduleBlockModel.model_validate(b) for b in blocks],
    )


# Used by: Schedule screen, age bracket card
@router.get("/baselines/{age_months}", response_model=AgeBaselineResponse)
async def get_baseline(age_months: int):
    if age_months < 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="age_months must be zero or positive"
        )
    return AgeBaselineResponse.model_validate(get_baseline_for_age(age_months))


# Used by: storage collaborator, recompute after any session create/edit/delete
@router.post("/learner/update", response_model=LearnerStateModel)
async def update_learner(request: LearnerUpdateRequest):
    now = _resolve_now(request.now)
    profile = request.profile.to_domain() if request.profile else None

    if request.age_months is not None:
        age_months = request.age_months
    else:
        age_months = resolve_age_months(profile, now)

    previous = request.previous_state.to_domain() if request.previous_state else None
    sessions = [s.to_domain() for s in request.sessions]

    state = update_learner_state(previous, sessions, age_months, now)
    return LearnerStateModel.model_validate(state)


# Used by: Schedule screen
@router.post("/schedule", response_model=ScheduleResponse)
async def get_schedule(request: ScheduleRequest):
    now = _resolve_now(request.now)
    profile = request.profile.to_domain() if request.profile else None
    last_session = request.last_session.to_domain() if request.last_session else None

    state = request.learner_state.to_domain()

    blocks = generate_schedule(state, last_session, profile, now)
    return _schedule_response(blocks, state, profile, now)


# Used by: Schedule screen, what-if slider
@router.post("/schedule/what-if", response_model=ScheduleResponse)
async def get_what_if_schedule(request: WhatIfScheduleRequest):
    now = _resolve_now(request.now)
    profile = request.profile.to_domain() if request.profile else None
    last_session = request.last_session.to_domain() if request.last_session else None

    state = request.learner_state.to_domain()

    logger.info(f"What-if schedule with {request.adjustment_minutes:+d}m wake window adjustment")
    blocks = generate_what_if_schedule(state, last_session, profile, request.adjustment_minutes, now)
    adjusted = what_if_learner_state(state, request.adjustment_minutes)
    return _schedule_response(blocks, adjusted, profile, now)


# Used by: Coach screen
@router.post("/coach/tips", response_model=CoachTipsResponse)
async def get_coach_tips(request: CoachTipsRequest):
    now = _resolve_now(request.now)
    profile = request.profile.to_domain() if request.profile else None
    sessions = [s.to_domain() for s in request.sessions]

    tips = evaluate_coach_tips(sessions, request.learner_state.to_domain(), profile, now)
    return CoachTipsResponse(tips=[CoachTipModel.model_validate(t) for t in tips])


# Used by: app store, single refresh after every CRUD action or profile switch
@router.post("/pipeline/refresh", response_model=PipelineResponse)
async def refresh_pipeline(request: PipelineRequest):
    now = _resolve_now(request.now)
    profile = request.profile.to_domain() if request.profile else None
    previous = request.learner_state.to_domain() if request.learner_state else None
    sessions = [s.to_domain() for s in request.sessions]

    derived = refresh_derived_state(sessions, profile, previous, now)
    last_session = derived.last_session

    return PipelineResponse(
        age_months=derived.age_months,
        learner_state=LearnerStateModel.model_validate(derived.learner_state),
        last_session_id=last_session.id if last_session else None,
        currently_asleep=bool(last_session and last_session.is_open),
        schedule=[ScheduleBlockModel.model_validate(b) for b in derived.schedule],
        coach_tips=[CoachTipModel.model_validate(t) for t in derived.coach_tips],
        notifications=[NotificationRequestModel.model_validate(n) for n in derived.notifications],
        schedule_message=derived.schedule_message,
    )


# Used by: Add past session form
@router.post("/sessions/validate", response_model=SessionValidationResponse)
async def validate_session(request: SessionValidationRequest):
    errors = validate_session_entry(
        start=request.start,
        end=request.end,
        now=_resolve_now(request.now),
        previous_end=request.previous_end,
    )
    return SessionValidationResponse(valid=not errors, errors=errors)
