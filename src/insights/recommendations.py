"""Ordered rules mapping engine signals to prioritized recommendations."""

from __future__ import annotations

from typing import List, Optional, Sequence

from engine_config import EngineConfig
from schema import (
    CorrelationResult,
    FlarePrediction,
    MedicationEffect,
    MedicationWindowInsight,
    Recommendation,
    WeekdayStat,
)

EMPHASIS_RANK = {"high": 0, "medium": 1, "low": 2}

FALLBACK = Recommendation(
    title="Keep logging for smarter predictions",
    detail=(
        "More varied entries (triggers, medication notes, sleep quality) "
        "will unlock individualized recommendations."
    ),
    category="routine",
    emphasis="low",
)


def toughest_weekday(weekdays: Sequence[WeekdayStat]) -> Optional[WeekdayStat]:
    logged = [d for d in weekdays if d.count > 0]
    if not logged:
        return None
    return sorted(logged, key=lambda d: (-d.mean_pain, d.iso_day))[0]


def build_recommendations(
    *,
    predicted_flare: Optional[FlarePrediction],
    weekdays: Sequence[WeekdayStat],
    mean_pain: float,
    correlations: Sequence[CorrelationResult],
    medication_effects: Sequence[MedicationEffect],
    optimal_window: Optional[MedicationWindowInsight],
    cfg: EngineConfig,
) -> List[Recommendation]:
    """Apply the rules in order, then stable-sort by emphasis.

    Never returns an empty list: with no rule firing, the single low-emphasis
    fallback is returned.
    """
    recs: List[Recommendation] = []

    if predicted_flare is not None:
        recs.append(Recommendation(
            title="Prepare for possible flare",
            detail=(
                f"Probability {predicted_flare.probability}% in the next "
                f"{predicted_flare.timeframe_label}. Emphasize pacing and preventive care now."
            ),
            category="flare",
            emphasis="high",
        ))

    day = toughest_weekday(weekdays)
    if day is not None and day.mean_pain - mean_pain >= cfg.tough_day_margin:
        recs.append(Recommendation(
            title=f"{day.label} pattern",
            detail=(
                f"Average pain {day.mean_pain:.1f} on {day.label}s. "
                "Schedule lighter duties or recovery blocks."
            ),
            category="routine",
            emphasis="medium",
        ))

    trigger = next(
        (c for c in correlations
         if c.kind == "trigger" and c.mean_delta > cfg.aggravating_delta),
        None,
    )
    if trigger is not None:
        recs.append(Recommendation(
            title=f"{trigger.label} drives pain",
            detail=(
                f"Pain averages +{trigger.mean_delta:.1f} when this trigger appears. "
                "Create a mitigation plan or log exposure notes."
            ),
            category="trigger",
            emphasis="high",
        ))

    med = next((m for m in medication_effects if m.avg_reduction > cfg.standout_relief), None)
    if med is not None:
        recs.append(Recommendation(
            title=f"{med.name} shows relief",
            detail=(
                f"Average reduction {med.avg_reduction:.1f} points across {med.uses} uses. "
                "Remember to document dosing accuracy."
            ),
            category="medication",
            emphasis="medium",
        ))

    if optimal_window is not None and optimal_window.avg_reduction > cfg.window_relief:
        recs.append(Recommendation(
            title="Optimize medication timing",
            detail=(
                f"Greatest relief occurs around {optimal_window.label}. "
                "Aim to medicate within this window when feasible."
            ),
            category="medication",
            emphasis="medium",
        ))

    if not recs:
        return [FALLBACK]
    return sorted(recs, key=lambda r: EMPHASIS_RANK[r.emphasis])
