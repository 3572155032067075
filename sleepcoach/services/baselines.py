"""Age-bracket lookup for wake windows, nap lengths and daytime sleep totals."""

from dataclasses import dataclass
from typing import List, Literal

from ..core.constants import AGE_BASELINES

BaselineKind = Literal["wakeWindow", "napLength"]


@dataclass(frozen=True)
class AgeBaseline:
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


def _build_table() -> List[AgeBaseline]:
    table = [
        AgeBaseline(min_age_months=min_age, max_age_months=max_age, **values)
        for (min_age, max_age), values in AGE_BASELINES.items()
    ]
    table.sort(key=lambda b: b.min_age_months)
    return table


# Immutable; shared across callers without locking
BASELINE_TABLE: List[AgeBaseline] = _build_table()


# Used by: learner, schedule_predictor, coach, api/planner
def get_baseline_for_age(age_months: float) -> AgeBaseline:
    """Bracket containing the age; ages past the table use the oldest bracket."""
    for baseline in BASELINE_TABLE:
        if baseline.min_age_months <= age_months <= baseline.max_age_months:
            return baseline
    return BASELINE_TABLE[-1]


# Used by: api/planner (display bounds)
def clamp_to_age_baseline(value: float, age_months: float, kind: BaselineKind) -> float:
    baseline = get_baseline_for_age(age_months)
    if kind == "wakeWindow":
        low, high = baseline.wake_window_min, baseline.wake_window_max
    else:
        low, high = baseline.nap_min, baseline.nap_max
    return max(low, min(high, value))
