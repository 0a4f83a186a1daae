"""Medication relief estimates from consecutive-entry pain changes.

For a medicated entry i followed by entry i+1:

    reduction = pain[i] − pain[i+1]

Only positive reductions count as relief evidence.  Non-positive changes
are dropped rather than scored as harm, since the next entry's pain can rise
for unrelated reasons.  ``effectiveness_score`` is a 0-100 display scale,
not an efficacy claim.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from constants import MEDICATION_WINDOWS
from engine_config import EngineConfig
from schema import Entry, MedicationEffect, MedicationWindowInsight


def window_for_hour(hour: int) -> Tuple[str, int, int, str]:
    for band in MEDICATION_WINDOWS:
        if band[1] <= hour < band[2]:
            return band
    return MEDICATION_WINDOWS[-1]


def relief_observations(entries: Sequence[Entry]) -> List[Tuple[Entry, float]]:
    """(medicated entry, reduction) for every medicated entry with a successor.

    ``entries`` must already be sorted chronologically.
    """
    out = []
    for current, following in zip(entries, entries[1:]):
        if current.medication_names:
            out.append((current, current.pain - following.pain))
    return out


def medication_effectiveness(
    observations: Sequence[Tuple[Entry, float]],
    cfg: EngineConfig,
) -> List[MedicationEffect]:
    doses: Dict[str, int] = defaultdict(int)
    relief: Dict[str, List[float]] = defaultdict(list)
    for entry, reduction in observations:
        for name in entry.medication_names:
            doses[name] += 1
            if reduction > 0:
                relief[name].append(reduction)

    effects = []
    for name, reductions in relief.items():
        avg = sum(reductions) / len(reductions)
        score = min(100.0, max(0.0, avg / cfg.relief_scale * 100))
        effects.append(MedicationEffect(
            name=name,
            uses=len(reductions),
            doses_observed=doses[name],
            avg_reduction=avg,
            effectiveness_score=score,
        ))
    effects.sort(key=lambda m: (-m.effectiveness_score, -m.uses, m.name))
    return effects


def medication_windows(
    observations: Sequence[Tuple[Entry, float]],
    cfg: EngineConfig,
) -> List[MedicationWindowInsight]:
    """Relief per time-of-day band, best band first."""
    relief: Dict[str, List[float]] = defaultdict(list)
    for entry, reduction in observations:
        if reduction > 0:
            relief[window_for_hour(entry.timestamp.hour)[0]].append(reduction)

    order = {band[0]: i for i, band in enumerate(MEDICATION_WINDOWS)}
    ref = max(cfg.window_confidence_count, 1)
    insights = []
    for band_id, start, end, label in MEDICATION_WINDOWS:
        reductions = relief.get(band_id)
        if not reductions:
            continue
        insights.append(MedicationWindowInsight(
            id=band_id,
            label=label,
            start_hour=start,
            end_hour=end,
            count=len(reductions),
            avg_reduction=sum(reductions) / len(reductions),
            confidence=min(1.0, len(reductions) / ref),
        ))
    insights.sort(key=lambda w: (-w.avg_reduction, -w.count, order[w.id]))
    return insights


def optimal_window(insights: Sequence[MedicationWindowInsight]) -> Optional[MedicationWindowInsight]:
    return insights[0] if insights else None
