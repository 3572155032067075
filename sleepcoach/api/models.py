"""Pydantic request/response models for all API endpoints."""

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from datetime import datetime, date
from typing import List, Optional

from ..core.constants import (
    SESSION_QUALITY_MIN, SESSION_QUALITY_MAX, WHAT_IF_MAX_ADJUSTMENT_MINUTES,
)
from ..core.models import (
    BabyProfile, BlockKind, LearnerState, SessionSource, SleepSession, TipType,
)
from ..services.session_validation import validate_profile_birth_date
from ..utils.dates import ensure_aware


# Domain inputs

class BabyProfileIn(BaseModel):
    id: str
    name: str
    birth_date: date

    @field_validator("birth_date")
    @classmethod
    def birth_date_not_in_future(cls, value: date) -> date:
        errors = validate_profile_birth_date(value)
        if errors:
            raise ValueError(errors[0])
        return value

    def to_domain(self) -> BabyProfile:
        return BabyProfile(id=self.id, name=self.name, birth_date=self.birth_date)


class SleepSessionIn(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    start: datetime
    end: Optional[datetime] = None
    profile_id: Optional[str] = None
    quality: Optional[int] = Field(None, ge=SESSION_QUALITY_MIN, le=SESSION_QUALITY_MAX)
    notes: Optional[str] = None
    source: SessionSource = SessionSource.MANUAL
    deleted: bool = False
    updated_at: Optional[datetime] = None

    @field_validator("start", "end", "updated_at")
    @classmethod
    def localize_naive(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value) if value is not None else None

    @model_validator(mode="after")
    def end_after_start(self) -> "SleepSessionIn":
        if self.end is not None and self.end <= self.start:
            raise ValueError("end must be after start")
        return self

    def to_domain(self) -> SleepSession:
        return SleepSession(**self.model_dump())


class LearnerStateModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    version: int = 1
    ewma_nap_length_min: int
    ewma_wake_window_min: int
    last_updated: datetime
    confidence: float = Field(..., ge=0.0, le=1.0)

    def to_domain(self) -> LearnerState:
        return LearnerState(**self.model_dump())


# Learner

class LearnerUpdateRequest(BaseModel):
    previous_state: Optional[LearnerStateModel] = None
    sessions: List[SleepSessionIn] = []
    age_months: Optional[int] = Field(None, ge=0)
    profile: Optional[BabyProfileIn] = None
    now: Optional[datetime] = None


# Schedule

class ScheduleRequest(BaseModel):
    learner_state: LearnerStateModel
    last_session: Optional[SleepSessionIn] = None
    profile: Optional[BabyProfileIn] = None
    now: Optional[datetime] = None


class WhatIfScheduleRequest(ScheduleRequest):
    adjustment_minutes: int = Field(
        ..., ge=-WHAT_IF_MAX_ADJUSTMENT_MINUTES, le=WHAT_IF_MAX_ADJUSTMENT_MINUTES
    )


class ScheduleBlockModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    kind: BlockKind
    start: datetime
    end: datetime
    confidence: float
    rationale: str


class ScheduleResponse(BaseModel):
    generated_at: datetime
    age_months: int
    # Learner estimates bounded to the age bracket, for display
    wake_window_min: float
    nap_length_min: float
    blocks: List[ScheduleBlockModel]


# Coach

class CoachTipsRequest(BaseModel):
    sessions: List[SleepSessionIn] = []
    learner_state: LearnerStateModel
    profile: Optional[BabyProfileIn] = None
    now: Optional[datetime] = None


class CoachTipModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    title: str
    message: str
    type: TipType
    related_session_ids: List[str] = []


class CoachTipsResponse(BaseModel):
    tips: List[CoachTipModel]


# Baselines

class AgeBaselineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    min_age_months: int
    max_age_months: int
    wake_window_min: int
    wake_window_typical: int
    wake_window_max: int
    nap_min: int
    nap_typical: int
    nap_max: int
    total_day_sleep_min: int
    total_day_sleep_max: int
    naps_per_day: int
    description: str


# Full refresh

class PipelineRequest(BaseModel):
    sessions: List[SleepSessionIn] = []
    profile: Optional[BabyProfileIn] = None
    learner_state: Optional[LearnerStateModel] = None
    now: Optional[datetime] = None


class NotificationRequestModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    schedule_block_id: str
    title: str
    body: str
    fire_at: datetime
    seconds_until: int


class PipelineResponse(BaseModel):
    age_months: int
    learner_state: LearnerStateModel
    last_session_id: Optional[str] = None
    currently_asleep: bool
    schedule: List[ScheduleBlockModel]
    coach_tips: List[CoachTipModel]
    notifications: List[NotificationRequestModel]
    schedule_message: Optional[str] = None


# Session entry validation

class SessionValidationRequest(BaseModel):
    start: datetime
    end: datetime
    previous_end: Optional[datetime] = None
    now: Optional[datetime] = None

    @field_validator("start", "end", "previous_end", "now")
    @classmethod
    def localize_naive(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value) if value is not None else None


class SessionValidationResponse(BaseModel):
    valid: bool
    errors: List[str]
