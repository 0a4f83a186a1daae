"""
Pain Pattern Engine
===================
Turns a user's chronological pain-log entries into one immutable
``AnalyticsSnapshot``.

Architecture (5 layers):
  Layer 0 - Clean + window filter:  drop non-finite pains, clamp to [0, 10],
            normalise aware timestamps to local wall-clock time, keep entries
            inside the selected window.
  Layer 1 - Aggregation:  day buckets, time-of-day / weekday / month stats,
            top locations and triggers, good/bad day counts.
  Layer 2 - Patterns:
            2a mean, volatility, OLS trend, rolling anomaly flags,
            2b label correlations, trigger bundles, QoL splits,
            2c baseline + flare-episode segmentation,
            2d medication relief and timing windows.
  Layer 3 - Predictive heuristics:  risk score, improvement score, flare
            outlook, next-period forecast.
  Layer 4 - Insights:  ranked recommendations + reasoning tree.

Layers 2b-2d and the reasoning tree run guarded: a failure there leaves the
feature empty, sets ``analysis_status = "degraded"`` and records a reason.

The engine keeps no state between calls.  ``SnapshotMemo`` is an optional
caller-owned memo for repeated identical requests.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from functools import lru_cache
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

from constants import WINDOW_DAYS
from engine_config import DEFAULT_CONFIG, EngineConfig
from insights.reasoning_tree import build_reasoning_tree
from insights.recommendations import build_recommendations
from patterns.aggregation import (
    day_buckets,
    entries_frame,
    good_bad_days,
    month_stats,
    time_of_day_stats,
    top_frequencies,
    weekday_stats,
)
from patterns.correlation_layer import label_correlations, qol_patterns, trigger_bundles
from patterns.episode_layer import detect_episodes, overall_baseline
from patterns.medication_layer import (
    medication_effectiveness,
    medication_windows,
    optimal_window,
    relief_observations,
)
from patterns.predictive_layer import (
    forecast,
    improvement_score,
    is_rising,
    predict_flare,
    risk_score,
)
from patterns.trend_layer import (
    half_split_change,
    mean_and_volatility,
    ols_slope,
    pain_statistics,
    rolling_profile,
    trend_percent,
)
from schema import AnalyticsSnapshot, BaselineResult, Entry

log = logging.getLogger("pain_engine")


# ═══════════════════════════════════════════════════════════════
#  LAYER 0 - CLEAN + FILTER
# ═══════════════════════════════════════════════════════════════

def to_local_naive(ts: datetime, local_timezone: Optional[str] = None) -> datetime:
    """Aware timestamps become naive wall-clock time; naive ones pass through."""
    if ts.tzinfo is None:
        return ts
    if local_timezone:
        ts = ts.astimezone(ZoneInfo(local_timezone))
    return ts.replace(tzinfo=None)


def clean_entries(entries: Iterable[Entry], cfg: EngineConfig = DEFAULT_CONFIG) -> List[Entry]:
    """Drop non-finite pains, clamp the rest to [0, 10], localise timestamps.

    Input order is preserved and the input entries are never mutated.
    """
    cleaned: List[Entry] = []
    n_dropped = n_clamped = n_localised = 0
    for e in entries:
        if not math.isfinite(e.pain):
            n_dropped += 1
            continue
        changes: Dict[str, Any] = {}
        pain = min(10.0, max(0.0, e.pain))
        if pain != e.pain:
            changes["pain"] = pain
            n_clamped += 1
        if e.timestamp.tzinfo is not None:
            changes["timestamp"] = to_local_naive(e.timestamp, cfg.local_timezone)
            n_localised += 1
        cleaned.append(e.model_copy(update=changes) if changes else e)

    if n_dropped:
        log.info("   Dropped %d entries with non-finite pain", n_dropped)
    if n_clamped:
        log.info("   Clamped %d pain values into [0, 10]", n_clamped)
    if n_localised:
        log.info("   Converted %d aware timestamps to local time", n_localised)
    return cleaned


def filter_entries(entries: Sequence[Entry], window: str, now: datetime) -> List[Entry]:
    """Entries with ``timestamp >= now - window`` (inclusive), order kept.

    Raises ValueError for a window selector outside ``WINDOW_DAYS``.
    """
    if window not in WINDOW_DAYS:
        raise ValueError(
            f"Unknown window {window!r}; expected one of {', '.join(WINDOW_DAYS)}"
        )
    days = WINDOW_DAYS[window]
    if days is None:
        return list(entries)
    cutoff = now - timedelta(days=days)
    return [e for e in entries if e.timestamp >= cutoff]


def assess_data_quality(n: int, cfg: EngineConfig = DEFAULT_CONFIG) -> str:
    if n >= cfg.coverage_high_n:
        return "high"
    if n >= cfg.min_entries_for_trend * 3:
        return "medium"
    return "low"


def build_cautions(entries: Sequence[Entry], cfg: EngineConfig = DEFAULT_CONFIG) -> List[str]:
    cautions = []
    n = len(entries)
    if n < cfg.min_entries_for_trend:
        cautions.append(
            f"Low sample size ({n} entries). Add more entries for reliable trends."
        )
    if n < cfg.min_correlation_entries:
        cautions.append(
            "Not enough data for correlation analysis. Keep logging triggers and symptoms."
        )
    has_qol = any(
        e.quality_of_sleep is not None
        or e.mood_impact is not None
        or e.activity_level is not None
        for e in entries
    )
    if not has_qol:
        cautions.append(
            "Quality of Life data missing. Log sleep, mood, and activity for richer insights."
        )
    return cautions


# ═══════════════════════════════════════════════════════════════
#  ENGINE
# ═══════════════════════════════════════════════════════════════

class PainPatternEngine:
    """Stateless orchestrator; one ``analyze`` call per snapshot."""

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or DEFAULT_CONFIG

    def reference_time(self, now: Optional[datetime] = None) -> datetime:
        if now is None:
            return datetime.now()
        return to_local_naive(now, self.config.local_timezone)

    def analyze(
        self,
        entries: Iterable[Entry],
        window: str = "30d",
        now: Optional[datetime] = None,
    ) -> AnalyticsSnapshot:
        cfg = self.config
        reference = self.reference_time(now)
        status: Dict[str, Any] = {"analysis_status": "success", "degraded_reasons": []}

        log.info("   Layer 0: cleaning + window %s (ref %s)...", window, reference.isoformat())
        scoped = filter_entries(clean_entries(entries, cfg), window, reference)
        ordered = sorted(scoped, key=lambda e: e.timestamp)
        n = len(ordered)
        pains = [e.pain for e in ordered]
        timestamps = [e.timestamp for e in ordered]
        log.info("   OK %d entries in window", n)

        # Layer 1
        log.info("   Layer 1: aggregation...")
        frame = entries_frame(ordered)
        buckets = day_buckets(frame)
        periods = time_of_day_stats(frame)
        weekdays = weekday_stats(frame)
        months = month_stats(frame)
        top_locations = top_frequencies(ordered, "locations")
        top_triggers = top_frequencies(ordered, "triggers")
        good, bad = good_bad_days(pains, cfg.good_day_pain, cfg.bad_day_pain)
        bad_ratio = bad / n if n else 0.0
        good_ratio = good / n if n else 0.0

        # Layer 2a
        log.info("   Layer 2a: trend + volatility...")
        mean, volatility = mean_and_volatility(pains)
        slope = ols_slope(pains)
        trend_pct = trend_percent(slope, n, mean)
        rolling = self._guarded(
            status, "rolling_layer_failed",
            lambda: rolling_profile(timestamps, pains, cfg.rolling_window, cfg.anomaly_k),
            [],
        )

        # Layer 2b
        log.info("   Layer 2b: correlations...")
        correlations, bundles, qol = self._guarded(
            status, "correlation_layer_failed",
            lambda: (
                label_correlations(ordered, mean, cfg),
                trigger_bundles(ordered, mean, cfg),
                qol_patterns(ordered, cfg),
            ),
            ([], [], []),
        )

        # Layer 2c
        log.info("   Layer 2c: baseline + episodes...")
        baseline, episodes = self._guarded(
            status, "episode_layer_failed",
            lambda: (overall_baseline(ordered, reference, cfg), detect_episodes(buckets, cfg)),
            (BaselineResult(), []),
        )

        # Layer 2d
        log.info("   Layer 2d: medication relief...")
        effects, windows = self._guarded(
            status, "medication_layer_failed",
            lambda: self._medication(ordered),
            ([], []),
        )
        best_window = optimal_window(windows)

        # Layer 3
        log.info("   Layer 3: predictive heuristics...")
        rising = is_rising(pains, cfg.trend_tail)
        risk = risk_score(mean, volatility, bad_ratio, rising, cfg) if n else 0
        improvement = improvement_score(mean, volatility, trend_pct, good_ratio) if n else 0
        flare = predict_flare(pains, cfg)
        outlook = forecast(mean, trend_pct, n, cfg)

        # Layer 4
        log.info("   Layer 4: recommendations + reasoning tree...")
        recommendations = build_recommendations(
            predicted_flare=flare,
            weekdays=weekdays,
            mean_pain=mean,
            correlations=correlations,
            medication_effects=effects,
            optimal_window=best_window,
            cfg=cfg,
        )
        tree = self._guarded(
            status, "reasoning_tree_failed",
            lambda: build_reasoning_tree(
                entry_count=n,
                mean_pain=mean,
                volatility=volatility,
                weekdays=weekdays,
                periods=periods,
                correlations=correlations,
                risk_score=risk,
                bad_days=bad,
                good_days=good,
                predicted_flare=flare,
                optimal_window=best_window,
                medication_effects=effects,
                top_locations=top_locations,
                recommendations=recommendations,
                cfg=cfg,
            ),
            None,
        )

        snapshot = AnalyticsSnapshot(
            window=window,
            reference_time=reference,
            entry_count=n,
            analysis_status=status["analysis_status"],
            degraded_reasons=tuple(status["degraded_reasons"]),
            mean_pain=mean,
            volatility=volatility,
            trend=slope,
            trend_percent=trend_pct,
            half_split_change_pct=half_split_change(pains),
            statistics=pain_statistics(pains),
            good_days=good,
            bad_days=bad,
            bad_day_ratio=bad_ratio,
            day_buckets=tuple(buckets),
            time_of_day=tuple(periods),
            day_of_week=tuple(weekdays),
            months=tuple(months),
            top_locations=tuple(top_locations),
            top_triggers=tuple(top_triggers),
            rolling=tuple(rolling),
            anomaly_count=sum(1 for p in rolling if p.anomaly),
            correlations=tuple(correlations),
            trigger_bundles=tuple(bundles),
            qol_patterns=tuple(qol),
            baseline=baseline,
            episodes=tuple(episodes),
            medication_effectiveness=tuple(effects),
            medication_windows=tuple(windows),
            optimal_medication_window=best_window,
            risk_score=risk,
            improvement_score=improvement,
            predicted_flare=flare,
            forecast=outlook,
            recommendations=tuple(recommendations),
            reasoning_tree=tree,
            data_quality=assess_data_quality(n, cfg),
            cautions=tuple(build_cautions(ordered, cfg)),
        )

        log.info(
            "\n   ANALYSIS DIGEST (%s, %d entries)\n"
            "   Layer 1 Aggregation     : %d days, %d months\n"
            "   Layer 2a Trend          : slope %.3f, %d anomalies\n"
            "   Layer 2b Correlations   : %d labels, %d bundles, %d QoL\n"
            "   Layer 2c Episodes       : %d\n"
            "   Layer 2d Medications    : %d effects, %d windows\n"
            "   Layer 3 Risk            : %d (flare %s)\n"
            "   Layer 4 Recommendations : %d\n"
            "   Status                  : %s",
            window, n,
            len(buckets), len(months),
            slope, snapshot.anomaly_count,
            len(correlations), len(bundles), len(qol),
            len(episodes),
            len(effects), len(windows),
            risk, "yes" if flare else "no",
            len(recommendations),
            snapshot.analysis_status,
        )
        return snapshot

    def _medication(self, ordered: Sequence[Entry]):
        observations = relief_observations(ordered)
        return (
            medication_effectiveness(observations, self.config),
            medication_windows(observations, self.config),
        )

    @staticmethod
    def _guarded(status: Dict[str, Any], reason: str, compute, fallback):
        try:
            return compute()
        except Exception as e:
            log.warning("%s; continuing in degraded mode: %s", reason, e)
            status["analysis_status"] = "degraded"
            status["degraded_reasons"].append(reason)
            return fallback


# ═══════════════════════════════════════════════════════════════
#  MEMO
# ═══════════════════════════════════════════════════════════════

class SnapshotMemo:
    """Caller-owned memo over one engine.

    Keyed by (entries tuple, window, reference time); the engine's config is
    fixed per memo.  A missing ``now`` is resolved to the wall clock before
    lookup, so such calls only hit the memo within the same instant.
    """

    def __init__(self, engine: Optional[PainPatternEngine] = None, maxsize: int = 32):
        self.engine = engine or PainPatternEngine()
        self._cached = lru_cache(maxsize=maxsize)(self._compute)

    def _compute(self, entries: Tuple[Entry, ...], window: str, now: datetime) -> AnalyticsSnapshot:
        return self.engine.analyze(entries, window=window, now=now)

    def get(self, entries: Iterable[Entry], window: str = "30d",
            now: Optional[datetime] = None) -> AnalyticsSnapshot:
        return self._cached(tuple(entries), window, self.engine.reference_time(now))

    def cache_info(self):
        return self._cached.cache_info()

    def clear(self):
        self._cached.cache_clear()
