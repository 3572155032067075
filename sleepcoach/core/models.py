"""Domain types shared by the learner, scheduler and coach."""

from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import List, Optional


class SessionSource(str, Enum):
    MANUAL = "manual"
    TIMER = "timer"


class BlockKind(str, Enum):
    NAP = "nap"
    BEDTIME = "bedtime"
    WIND_DOWN = "windDown"


class TipType(str, Enum):
    WARNING = "warning"
    INFO = "info"
    SUCCESS = "success"


@dataclass
class BabyProfile:
    id: str
    name: str
    birth_date: date


@dataclass
class SleepSession:
    id: str
    start: datetime  # inclusive
    end: Optional[datetime] = None  # exclusive; None while still asleep
    profile_id: Optional[str] = None
    quality: Optional[int] = None  # 1-5
    notes: Optional[str] = None
    source: SessionSource = SessionSource.MANUAL
    deleted: bool = False
    updated_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.end is None

    @property
    def duration_minutes(self) -> Optional[int]:
        """Whole minutes between start and end, truncated."""
        if self.end is None:
            return None
        return int((self.end - self.start).total_seconds() / 60)


@dataclass
class LearnerState:
    version: int
    ewma_nap_length_min: int
    ewma_wake_window_min: int
    last_updated: datetime
    confidence: float  # 0..1


@dataclass
class ScheduleBlock:
    id: str
    kind: BlockKind
    start: datetime
    end: datetime
    confidence: float  # 0..1
    rationale: str


@dataclass
class CoachTip:
    id: str
    title: str
    message: str
    type: TipType
    related_session_ids: List[str] = field(default_factory=list)
