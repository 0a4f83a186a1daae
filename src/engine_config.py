"""
Engine thresholds.

Every heuristic cut-off used by the pattern layers lives here as a named
constant, bundled into a frozen ``EngineConfig`` so tests can vary one
sensitivity without touching layer code.

Environment overrides use the ``PAIN_ENGINE_`` prefix, e.g.
``PAIN_ENGINE_ANOMALY_K=3.0``.  Call ``load_dotenv()`` before
``EngineConfig.from_env()`` if a .env file should be honoured.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Optional


# ═══════════════════════════════════════════════════════════════
#  DEFAULTS
# ═══════════════════════════════════════════════════════════════

BAD_DAY_PAIN = 7.0          # pain >= this is a bad day
GOOD_DAY_PAIN = 3.0         # pain <= this is a good day

ROLLING_WINDOW = 7          # trailing points for rolling avg/std
ANOMALY_K = 2.5             # |x - avg| > k * std -> anomaly

MIN_LABEL_SUPPORT = 2       # below this a correlation is low-confidence
REFERENCE_LABEL_COUNT = 8   # occurrences for full correlation confidence
MIN_BUNDLE_SUPPORT = 3      # trigger pair co-occurrences
MIN_QOL_READINGS = 8
MIN_QOL_GROUP = 3

BASELINE_WINDOW_DAYS = 14   # trailing days for the episode baseline
ONSET_THRESHOLD = 2.0       # day mean - baseline >= this opens an episode
RECOVERY_THRESHOLD = 1.0    # day mean - baseline <= this closes it
EPISODE_MIN_DAYS = 1
HIGH_SEVERITY_PEAK = 8.0

OVERALL_BASELINE_DAYS = 30
OVERALL_BASELINE_MIN_ENTRIES = 7

RELIEF_SCALE = 3.0          # avg reduction giving a 100 effectiveness score
WINDOW_CONFIDENCE_COUNT = 4

RECENT_ENTRIES = 7
TREND_TAIL = 3
FLARE_RECENT_AVG = 6.0
FLARE_HIGH_AVG = 8.0
FLARE_MAX_PROBABILITY = 95
RISK_RISING_BONUS = 20.0

FORECAST_STRONG_PCT = 5.0
FORECAST_STRONG_UP = 0.8
FORECAST_MILD_UP = 0.4
FORECAST_STRONG_DOWN = -0.7
FORECAST_MILD_DOWN = -0.3
FORECAST_HIGH_N = 40
FORECAST_MEDIUM_N = 20

TOUGH_DAY_MARGIN = 1.0
AGGRAVATING_DELTA = 1.0
STANDOUT_RELIEF = 0.5
WINDOW_RELIEF = 0.3

COVERAGE_HIGH_N = 60
COVERAGE_MEDIUM_N = 25

MIN_ENTRIES_FOR_TREND = 7       # below this a low-sample caution is raised
MIN_CORRELATION_ENTRIES = 8


@dataclass(frozen=True)
class EngineConfig:
    """Named thresholds for one engine run (hashable, immutable)."""

    bad_day_pain: float = BAD_DAY_PAIN
    good_day_pain: float = GOOD_DAY_PAIN

    rolling_window: int = ROLLING_WINDOW
    anomaly_k: float = ANOMALY_K

    min_label_support: int = MIN_LABEL_SUPPORT
    reference_label_count: int = REFERENCE_LABEL_COUNT
    min_bundle_support: int = MIN_BUNDLE_SUPPORT
    min_qol_readings: int = MIN_QOL_READINGS
    min_qol_group: int = MIN_QOL_GROUP

    baseline_window_days: int = BASELINE_WINDOW_DAYS
    onset_threshold: float = ONSET_THRESHOLD
    recovery_threshold: float = RECOVERY_THRESHOLD
    episode_min_days: int = EPISODE_MIN_DAYS
    high_severity_peak: float = HIGH_SEVERITY_PEAK

    overall_baseline_days: int = OVERALL_BASELINE_DAYS
    overall_baseline_min_entries: int = OVERALL_BASELINE_MIN_ENTRIES

    relief_scale: float = RELIEF_SCALE
    window_confidence_count: int = WINDOW_CONFIDENCE_COUNT

    recent_entries: int = RECENT_ENTRIES
    trend_tail: int = TREND_TAIL
    flare_recent_avg: float = FLARE_RECENT_AVG
    flare_high_avg: float = FLARE_HIGH_AVG
    flare_max_probability: int = FLARE_MAX_PROBABILITY
    risk_rising_bonus: float = RISK_RISING_BONUS

    forecast_strong_pct: float = FORECAST_STRONG_PCT
    forecast_strong_up: float = FORECAST_STRONG_UP
    forecast_mild_up: float = FORECAST_MILD_UP
    forecast_strong_down: float = FORECAST_STRONG_DOWN
    forecast_mild_down: float = FORECAST_MILD_DOWN
    forecast_high_n: int = FORECAST_HIGH_N
    forecast_medium_n: int = FORECAST_MEDIUM_N

    tough_day_margin: float = TOUGH_DAY_MARGIN
    aggravating_delta: float = AGGRAVATING_DELTA
    standout_relief: float = STANDOUT_RELIEF
    window_relief: float = WINDOW_RELIEF

    coverage_high_n: int = COVERAGE_HIGH_N
    coverage_medium_n: int = COVERAGE_MEDIUM_N

    min_entries_for_trend: int = MIN_ENTRIES_FOR_TREND
    min_correlation_entries: int = MIN_CORRELATION_ENTRIES

    # IANA zone for converting aware timestamps; None keeps their own offset
    local_timezone: Optional[str] = None

    @classmethod
    def from_env(cls, prefix: str = "PAIN_ENGINE_") -> "EngineConfig":
        """Build a config, overriding defaults from ``<prefix><FIELD>`` vars."""
        overrides = {}
        for f in fields(cls):
            raw = os.getenv(prefix + f.name.upper())
            if raw is None or raw.strip() == "":
                continue
            default = f.default
            if isinstance(default, bool):
                overrides[f.name] = raw.strip().lower() in ("1", "true", "yes")
            elif isinstance(default, int):
                overrides[f.name] = int(raw)
            elif isinstance(default, float):
                overrides[f.name] = float(raw)
            else:
                overrides[f.name] = raw.strip()
        return cls(**overrides)

    def coverage_tier(self, n: int) -> str:
        """Confidence tier from sample coverage."""
        if n >= self.coverage_high_n:
            return "high"
        if n >= self.coverage_medium_n:
            return "medium"
        return "low"


DEFAULT_CONFIG = EngineConfig()
