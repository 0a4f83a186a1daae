"""
Pain-log input records and analytics snapshot models.

Every model is frozen.  Field names serialise as camelCase (``meanPain``,
``predictedFlare``) because dashboard consumers depend on those keys;
snake_case is accepted on input as well.

All derived numbers are observational heuristics over the user's own log,
not diagnostic or clinical-efficacy claims.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class FrozenModel(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


# ─── Input ─────────────────────────────────────────────────


class MedicationUse(FrozenModel):
    name: str


class Entry(FrozenModel):
    """One health-log entry, supplied by the caller and never mutated."""

    timestamp: datetime
    pain: float
    locations: FrozenSet[str] = frozenset()
    symptoms: FrozenSet[str] = frozenset()
    triggers: FrozenSet[str] = frozenset()
    activities: FrozenSet[str] = frozenset()
    quality_of_sleep: Optional[float] = None
    mood_impact: Optional[float] = None
    medications_used: Tuple[MedicationUse, ...] = ()
    stress: Optional[float] = None
    activity_level: Optional[float] = None

    @field_validator("medications_used", mode="before")
    @classmethod
    def _wrap_bare_names(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple({"name": v} if isinstance(v, str) else v for v in value)
        return value

    @field_validator("locations", "symptoms", "triggers", "activities", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return frozenset() if value is None else value

    @property
    def medication_names(self) -> Tuple[str, ...]:
        """Distinct medication names in logged order."""
        seen = []
        for med in self.medications_used:
            name = med.name.strip()
            if name and name not in seen:
                seen.append(name)
        return tuple(seen)


# ─── Aggregates ────────────────────────────────────────────


class DayBucket(FrozenModel):
    day: date
    count: int
    mean_pain: float
    pains: Tuple[float, ...]


class PeriodStat(FrozenModel):
    period: str
    count: int
    mean_pain: float


class WeekdayStat(FrozenModel):
    iso_day: int
    label: str
    count: int
    mean_pain: float


class MonthStat(FrozenModel):
    month: int
    count: int
    mean_pain: float


class FrequencyStat(FrozenModel):
    label: str
    count: int
    percentage: float


class StatisticalSummary(FrozenModel):
    mean: float = 0.0
    median: float = 0.0
    mode: float = 0.0
    std_dev: float = 0.0
    min: float = 0.0
    max: float = 0.0
    count: int = 0


class RollingPoint(FrozenModel):
    index: int
    timestamp: datetime
    pain: float
    rolling_avg: Optional[float] = None
    rolling_std: Optional[float] = None
    anomaly: bool = False


# ─── Correlations ──────────────────────────────────────────


class CorrelationResult(FrozenModel):
    label: str
    kind: str
    occurrence_count: int
    mean_delta: float
    rank: int
    confidence: float
    low_confidence: bool
    strength: str
    direction: str


class TriggerBundle(FrozenModel):
    triggers: Tuple[str, ...]
    co_occurrence: int
    combined_delta: float


class QoLPattern(FrozenModel):
    metric: str
    evidence_count: int
    delta: float
    confidence: str
    description: str


# ─── Episodes ──────────────────────────────────────────────


class BaselineResult(FrozenModel):
    value: float = 0.0
    method: str = "median"
    confidence: str = "low"
    entry_count: int = 0


class Episode(FrozenModel):
    start: date
    end: date
    severity_tier: str
    peak_pain: float
    avg_pain: float
    duration_days: int
    recovery_days: Optional[int] = None
    entry_count: int
    ongoing: bool = False


# ─── Medication ────────────────────────────────────────────


class MedicationEffect(FrozenModel):
    name: str
    uses: int
    doses_observed: int
    avg_reduction: float
    effectiveness_score: float


class MedicationWindowInsight(FrozenModel):
    id: str
    label: str
    start_hour: int
    end_hour: int
    count: int
    avg_reduction: float
    confidence: float


# ─── Predictions + insights ────────────────────────────────


class FlarePrediction(FrozenModel):
    probability: int
    timeframe_label: str
    severity_tier: str
    recommended_actions: Tuple[str, ...]


class Forecast(FrozenModel):
    projected_average: float
    delta_from_current: float
    confidence_tier: str
    narrative: str


class Recommendation(FrozenModel):
    title: str
    detail: str
    category: str
    emphasis: str


class ReasoningNode(FrozenModel):
    id: str
    title: str
    insight: str
    confidence: str
    evidence: Optional[str] = None
    suggested_action: Optional[str] = None
    children: Tuple[ReasoningNode, ...] = ()

    def depth(self) -> int:
        return 1 + max((c.depth() for c in self.children), default=0)


ReasoningNode.model_rebuild()

# ─── Snapshot ──────────────────────────────────────────────


class AnalyticsSnapshot(FrozenModel):
    """Complete output bundle of one engine run over one entry set + window."""

    window: str
    reference_time: datetime
    entry_count: int = 0
    analysis_status: str = "success"
    degraded_reasons: Tuple[str, ...] = ()

    mean_pain: float = 0.0
    volatility: float = 0.0
    trend: float = 0.0
    trend_percent: float = 0.0
    half_split_change_pct: float = 0.0
    statistics: StatisticalSummary = StatisticalSummary()
    good_days: int = 0
    bad_days: int = 0
    bad_day_ratio: float = 0.0

    day_buckets: Tuple[DayBucket, ...] = ()
    time_of_day: Tuple[PeriodStat, ...] = ()
    day_of_week: Tuple[WeekdayStat, ...] = ()
    months: Tuple[MonthStat, ...] = ()
    top_locations: Tuple[FrequencyStat, ...] = ()
    top_triggers: Tuple[FrequencyStat, ...] = ()
    rolling: Tuple[RollingPoint, ...] = ()
    anomaly_count: int = 0

    correlations: Tuple[CorrelationResult, ...] = ()
    trigger_bundles: Tuple[TriggerBundle, ...] = ()
    qol_patterns: Tuple[QoLPattern, ...] = ()

    baseline: BaselineResult = BaselineResult()
    episodes: Tuple[Episode, ...] = ()

    medication_effectiveness: Tuple[MedicationEffect, ...] = ()
    medication_windows: Tuple[MedicationWindowInsight, ...] = ()
    optimal_medication_window: Optional[MedicationWindowInsight] = None

    risk_score: int = 0
    improvement_score: int = 0
    predicted_flare: Optional[FlarePrediction] = None
    forecast: Optional[Forecast] = None

    recommendations: Tuple[Recommendation, ...] = ()
    reasoning_tree: Optional[ReasoningNode] = None

    data_quality: str = "low"
    cautions: Tuple[str, ...] = ()

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)

    @classmethod
    def from_json(cls, payload: str) -> "AnalyticsSnapshot":
        return cls.model_validate_json(payload)
