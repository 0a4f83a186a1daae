"""Label-conditioned pain deltas, trigger bundles and quality-of-life splits."""

from __future__ import annotations

from collections import defaultdict
from itertools import combinations
from typing import Dict, List, Sequence, Tuple

import numpy as np

from constants import LABEL_KINDS
from engine_config import EngineConfig
from schema import CorrelationResult, Entry, QoLPattern, TriggerBundle

# (metric, Entry attribute, inverse) -- inverse: low reading is the good one
QOL_DIMENSIONS = [
    ("sleep", "quality_of_sleep", False),
    ("mood", "mood_impact", True),
    ("activity", "activity_level", False),
    ("stress", "stress", True),
]
QOL_GOOD = 7.0
QOL_POOR = 3.0


def correlation_strength(delta: float) -> str:
    magnitude = abs(delta)
    if magnitude < 0.3:
        return "none"
    if magnitude < 0.7:
        return "weak"
    if magnitude < 1.5:
        return "moderate"
    return "strong"


def correlation_direction(delta: float) -> str:
    if delta > 0.3:
        return "increases"
    if delta < -0.3:
        return "decreases"
    return "neutral"


def label_correlations(
    entries: Sequence[Entry],
    overall_mean: float,
    cfg: EngineConfig,
) -> List[CorrelationResult]:
    """meanDelta per (kind, label), ranked by |delta| then occurrence count."""
    pains_by_label: Dict[Tuple[str, str], List[float]] = defaultdict(list)
    for e in entries:
        for kind, attr in LABEL_KINDS:
            for label in getattr(e, attr):
                pains_by_label[(kind, label)].append(e.pain)

    rows = []
    for (kind, label), pains in pains_by_label.items():
        delta = float(np.mean(pains)) - overall_mean
        rows.append((kind, label, len(pains), delta))
    rows.sort(key=lambda r: (-abs(r[3]), -r[2], r[0], r[1]))

    ref = max(cfg.reference_label_count, 1)
    return [
        CorrelationResult(
            label=label,
            kind=kind,
            occurrence_count=n,
            mean_delta=delta,
            rank=rank,
            confidence=min(1.0, n / ref),
            low_confidence=n < cfg.min_label_support,
            strength=correlation_strength(delta),
            direction=correlation_direction(delta),
        )
        for rank, (kind, label, n, delta) in enumerate(rows, start=1)
    ]


def trigger_bundles(
    entries: Sequence[Entry],
    overall_mean: float,
    cfg: EngineConfig,
) -> List[TriggerBundle]:
    """Trigger pairs that co-occur often, with their joint pain delta."""
    pair_pains: Dict[Tuple[str, str], List[float]] = defaultdict(list)
    for e in entries:
        for pair in combinations(sorted(e.triggers), 2):
            pair_pains[pair].append(e.pain)

    bundles = [
        TriggerBundle(
            triggers=pair,
            co_occurrence=len(pains),
            combined_delta=float(np.mean(pains)) - overall_mean,
        )
        for pair, pains in pair_pains.items()
        if len(pains) >= cfg.min_bundle_support
    ]
    bundles.sort(key=lambda b: (-abs(b.combined_delta), -b.co_occurrence, b.triggers))
    return bundles


def qol_patterns(entries: Sequence[Entry], cfg: EngineConfig) -> List[QoLPattern]:
    patterns = []
    for metric, attr, inverse in QOL_DIMENSIONS:
        pattern = _qol_dimension(entries, cfg, metric, attr, inverse)
        if pattern is not None:
            patterns.append(pattern)
    return patterns


def _qol_dimension(entries, cfg, metric, attr, inverse):
    readings = [(getattr(e, attr), e.pain) for e in entries if getattr(e, attr) is not None]
    if len(readings) < cfg.min_qol_readings:
        return None

    if inverse:
        good = [p for v, p in readings if v <= QOL_POOR]
        poor = [p for v, p in readings if v >= QOL_GOOD]
    else:
        good = [p for v, p in readings if v >= QOL_GOOD]
        poor = [p for v, p in readings if v <= QOL_POOR]
    if len(good) < cfg.min_qol_group and len(poor) < cfg.min_qol_group:
        return None

    fallback = float(np.mean([p for _, p in readings]))
    mean_good = float(np.mean(good)) if good else fallback
    mean_poor = float(np.mean(poor)) if poor else fallback
    delta = mean_good - mean_poor
    if correlation_strength(delta) == "none":
        return None

    evidence = len(good) + len(poor)
    if evidence >= 20:
        confidence = "high"
    elif evidence >= 10:
        confidence = "medium"
    else:
        confidence = "low"

    word = "lower" if delta < 0 else "higher"
    return QoLPattern(
        metric=metric,
        evidence_count=evidence,
        delta=delta,
        confidence=confidence,
        description=f"On good {metric} readings pain averages {abs(delta):.1f} points {word}.",
    )
