"""Age baselines, learner/scheduler tuning constants, coach rule thresholds."""

# ── AGE BASELINES (minutes) ─────────────────────────────────────────────────
# Keyed by (min_age_months, max_age_months), both inclusive. Brackets are
# contiguous from 0; the last bracket doubles as the fallback for older ages.
#
# NOTE: Values are app-level heuristics in line with common wake-window and
# nap-length guidance for infants and toddlers. No single study prescribes
# these exact numbers; they are rounded to 15-minute steps.
AGE_BASELINES = {
    (0, 3): {
        "wake_window_min": 30, "wake_window_typical": 60, "wake_window_max": 90,
        "nap_min": 30, "nap_typical": 45, "nap_max": 120,
        "total_day_sleep_min": 240, "total_day_sleep_max": 480,
        "naps_per_day": 5,
        "description": "Newborn (0-3 months)",
    },
    (4, 6): {
        "wake_window_min": 75, "wake_window_typical": 105, "wake_window_max": 150,
        "nap_min": 45, "nap_typical": 60, "nap_max": 120,
        "total_day_sleep_min": 180, "total_day_sleep_max": 240,
        "naps_per_day": 4,
        "description": "Infant (4-6 months)",
    },
    (7, 12): {
        "wake_window_min": 120, "wake_window_typical": 150, "wake_window_max": 210,
        "nap_min": 45, "nap_typical": 75, "nap_max": 120,
        "total_day_sleep_min": 120, "total_day_sleep_max": 180,
        "naps_per_day": 3,
        "description": "Baby (7-12 months)",
    },
    (13, 18): {
        "wake_window_min": 180, "wake_window_typical": 210, "wake_window_max": 270,
        "nap_min": 60, "nap_typical": 90, "nap_max": 150,
        "total_day_sleep_min": 90, "total_day_sleep_max": 150,
        "naps_per_day": 2,
        "description": "Toddler (13-18 months)",
    },
    (19, 36): {
        "wake_window_min": 240, "wake_window_typical": 300, "wake_window_max": 360,
        "nap_min": 60, "nap_typical": 120, "nap_max": 180,
        "total_day_sleep_min": 60, "total_day_sleep_max": 150,
        "naps_per_day": 1,
        "description": "Toddler (19-36 months)",
    },
}


# ── PATTERN LEARNER ─────────────────────────────────────────────────────────
# No clinical source, app-level smoothing choices.
# Higher alpha = more weight to recent observations.
EWMA_ALPHA = 0.3

LEARNER_STATE_VERSION = 1
DEFAULT_NAP_LENGTH_MINUTES = 60
DEFAULT_WAKE_WINDOW_MINUTES = 90
DEFAULT_CONFIDENCE = 0.5

# Sessions at or above this length count as night sleep
NAP_MAX_DURATION_MINUTES = 240

NAP_CLAMP_MIN_MINUTES = 10
NAP_CLAMP_MAX_MINUTES = 180

# Gaps outside (0, 720) are not wake windows (overlap, or missing logs)
WAKE_WINDOW_VALID_MAX_MINUTES = 720
WAKE_WINDOW_CLAMP_MIN_MINUTES = 30
WAKE_WINDOW_CLAMP_MAX_MINUTES = 400

# confidence = min(BASE + STEP * accepted_points, MAX)
CONFIDENCE_BASE = 0.3
CONFIDENCE_STEP = 0.05
CONFIDENCE_MAX = 1.0
CONFIDENCE_MIN = 0.1


# ── SCHEDULE SIMULATION ─────────────────────────────────────────────────────
# Fixed day/night heuristic, not derived from the baseline table.
# Bedtime if the predicted start hour is in [19, 22] or [0, 4).
BEDTIME_EVENING_START_HOUR = 19
BEDTIME_EVENING_END_HOUR = 22
BEDTIME_EARLY_MORNING_END_HOUR = 4

NIGHT_SLEEP_DURATION_MINUTES = 660
NIGHT_SLEEP_CONFIDENCE_PENALTY = -0.1

WIND_DOWN_NAP_MINUTES = 15
WIND_DOWN_BEDTIME_MINUTES = 20

# First wake window of the day tends to be shorter
MORNING_WAKE_WINDOW_REDUCTION_MINUTES = 15

# Rationale says "aligned with" baseline when within this many minutes
BASELINE_ALIGNMENT_TOLERANCE_MINUTES = 15

# Bounds pathological inputs, not a business rule
SCHEDULE_MAX_ITERATIONS = 20
SCHEDULE_HORIZON_DAYS = 2

WHAT_IF_CONFIDENCE_DIVISOR = 100.0
WHAT_IF_MAX_ADJUSTMENT_MINUTES = 120


# ── COACH RULES ─────────────────────────────────────────────────────────────
# No clinical source, app-level thresholds.
SHORT_NAP_THRESHOLD_MINUTES = 30
SHORT_NAP_STREAK = 3
SHORT_NAP_MIN_COUNT = 2

LONG_WAKE_THRESHOLD_RATIO = 1.2

BEDTIME_VARIANCE_THRESHOLD_MINUTES = 30
BEDTIME_LOOKBACK_SESSIONS = 7
BEDTIME_MIN_SESSIONS = 3
# Night sleep starting at or after 18:00 or at or before 03:00 counts as bedtime
BEDTIME_WINDOW_START_HOUR = 18
BEDTIME_WINDOW_END_HOUR = 3

SPLIT_NIGHT_LOOKBACK_SESSIONS = 3

MIN_SESSIONS_FOR_CONFIDENCE = 5
HIGH_CONFIDENCE_THRESHOLD = 0.75

INCONSISTENCY_NAP_LOOKBACK = 10
INCONSISTENCY_MIN_NAPS = 5
INCONSISTENCY_STD_DEV_MINUTES = 30
INCONSISTENCY_RELATED_NAPS = 5


# ── SESSION ENTRY VALIDATION ────────────────────────────────────────────────
# No clinical source, app-level guards against typos and forgotten timers.
MIN_SLEEP_DURATION_MINUTES = 10
MAX_SLEEP_DURATION_HOURS = 16
MIN_WAKE_DURATION_MINUTES = 5

SESSION_QUALITY_MIN = 1
SESSION_QUALITY_MAX = 5
