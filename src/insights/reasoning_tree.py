"""
Explainable reasoning tree over a computed snapshot.

    root  (sample size, mean, volatility)
    ├── patterns   leaves: two toughest logged weekdays
    ├── risk       leaves: optimal medication window, top medication
    └── clinical   leaves: top two recommendations

Root and branch confidence come from entry coverage.  A leaf's own tier is
capped at coverage, so thin data never yields a confident leaf.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from engine_config import EngineConfig
from schema import (
    CorrelationResult,
    FlarePrediction,
    FrequencyStat,
    MedicationEffect,
    MedicationWindowInsight,
    PeriodStat,
    ReasoningNode,
    Recommendation,
    WeekdayStat,
)

TIER_RANK = {"low": 0, "medium": 1, "high": 2}

EMPTY_TREE = ReasoningNode(
    id="empty-state",
    title="No evidence yet",
    insight="Log at least one pain entry to begin automated reasoning.",
    confidence="low",
    suggested_action="Capture today's pain level and triggers.",
)


def cap_tier(tier: str, ceiling: str) -> str:
    return tier if TIER_RANK[tier] <= TIER_RANK[ceiling] else ceiling


def build_reasoning_tree(
    *,
    entry_count: int,
    mean_pain: float,
    volatility: float,
    weekdays: Sequence[WeekdayStat],
    periods: Sequence[PeriodStat],
    correlations: Sequence[CorrelationResult],
    risk_score: int,
    bad_days: int,
    good_days: int,
    predicted_flare: Optional[FlarePrediction],
    optimal_window: Optional[MedicationWindowInsight],
    medication_effects: Sequence[MedicationEffect],
    top_locations: Sequence[FrequencyStat],
    recommendations: Sequence[Recommendation],
    cfg: EngineConfig,
) -> ReasoningNode:
    if entry_count == 0:
        return EMPTY_TREE

    coverage = cfg.coverage_tier(entry_count)
    children = [
        _pattern_branch(weekdays, periods, correlations, mean_pain, coverage),
        _risk_branch(risk_score, bad_days, predicted_flare, optimal_window,
                     medication_effects, coverage),
        _clinical_branch(good_days, bad_days, top_locations, recommendations, coverage),
    ]
    return ReasoningNode(
        id="root",
        title="Pain analytics reasoning loop",
        insight=(
            f"Analyzed {entry_count} entries with average pain {mean_pain:.1f}/10 "
            f"and volatility {volatility:.1f}."
        ),
        confidence=coverage,
        children=tuple(children),
    )


def _pattern_branch(weekdays, periods, correlations, mean_pain, coverage) -> ReasoningNode:
    logged = sorted((d for d in weekdays if d.count > 0),
                    key=lambda d: (-d.mean_pain, d.iso_day))
    observations = sum(p.count for p in periods)
    top = next((c for c in correlations if c.kind == "trigger"), None)

    leaves = [
        ReasoningNode(
            id=f"day-{d.iso_day}",
            title=f"{d.label} trend",
            insight=f"Average pain {d.mean_pain:.1f} with {d.count} observations",
            confidence=cap_tier("medium" if d.count >= 4 else "low", coverage),
            suggested_action=(
                "Prep pacing plan ahead of this day."
                if d.mean_pain >= mean_pain
                else "Consider scheduling recovery work here."
            ),
        )
        for d in logged[:2]
    ]

    if top is not None:
        evidence = f"{top.label} shifts pain by {top.mean_delta:+.1f}"
        toughest = logged[0].label if logged else "high-pain days"
        action = f"Mitigate {top.label} exposure on {toughest}."
    else:
        evidence = "Need more trigger tagging"
        action = "Log triggers alongside entries for richer pattern detection."

    return ReasoningNode(
        id="patterns",
        title="Temporal & trigger patterns",
        insight=(
            f"Detected {len(logged)}/7 day patterns and "
            f"{observations} time-of-day observations."
        ),
        confidence=coverage,
        evidence=evidence,
        suggested_action=action,
        children=tuple(leaves),
    )


def _risk_branch(risk_score, bad_days, predicted_flare, optimal_window,
                 medication_effects, coverage) -> ReasoningNode:
    leaves: List[ReasoningNode] = []
    if optimal_window is not None:
        leaves.append(ReasoningNode(
            id="med-window",
            title="Medication timing",
            insight=f"Best relief around {optimal_window.label}.",
            confidence=cap_tier("high" if optimal_window.confidence >= 0.75 else "medium", coverage),
            suggested_action="Align doses with this window when medically appropriate.",
        ))
    if medication_effects:
        med = medication_effects[0]
        leaves.append(ReasoningNode(
            id="med-effectiveness",
            title=f"{med.name} response",
            insight=f"Avg reduction {med.avg_reduction:.1f} points.",
            confidence=cap_tier("high" if med.uses >= 3 else "medium", coverage),
            suggested_action="Document dosage notes for provider review.",
        ))

    if predicted_flare is not None:
        evidence = (f"Flare probability {predicted_flare.probability}% "
                    f"({predicted_flare.timeframe_label})")
        action = predicted_flare.recommended_actions[0]
    else:
        evidence = "No imminent flare detected"
        action = "Maintain current pacing plan and continue monitoring."

    return ReasoningNode(
        id="risk",
        title="Risk posture & flare outlook",
        insight=f"Risk score {risk_score} with {bad_days} high-pain days.",
        confidence=coverage,
        evidence=evidence,
        suggested_action=action,
        children=tuple(leaves),
    )


def _clinical_branch(good_days, bad_days, top_locations, recommendations, coverage) -> ReasoningNode:
    # positional ids: rec-1, rec-2
    leaves = [
        ReasoningNode(
            id=f"rec-{i}",
            title=rec.title,
            insight=rec.detail,
            confidence=cap_tier(rec.emphasis, coverage),
            suggested_action=(
                "Confirm with care team before adjusting meds."
                if rec.category == "medication"
                else "Add notes after acting on this insight."
            ),
        )
        for i, rec in enumerate(recommendations[:2], start=1)
    ]
    locations = ", ".join(loc.label for loc in top_locations[:2]) or "N/A"
    return ReasoningNode(
        id="clinical",
        title="Clinical readiness",
        insight=f"{good_days} managed days vs {bad_days} tough days.",
        confidence=coverage,
        evidence=f"Top locations: {locations}",
        suggested_action="Share the exported summary with your care team.",
        children=tuple(leaves),
    )
