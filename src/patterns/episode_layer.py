"""Flare-episode segmentation over the day-bucket mean series.

Each day's baseline is the median of the prior ``baseline_window_days``
calendar days of bucket means.  A day opens an episode when

    day_mean − baseline ≥ onset_threshold

The onset baseline is then frozen for the life of the episode (otherwise the
elevated days would drag the baseline up and end the episode early).  The
episode continues while ``day_mean − baseline > recovery_threshold`` and closes
on the first day back inside that band; that day is the recovery day.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from engine_config import EngineConfig
from schema import BaselineResult, DayBucket, Entry, Episode

log = logging.getLogger("pain_engine")


def rolling_baselines(buckets: Sequence[DayBucket], window_days: int) -> List[Optional[float]]:
    """Trailing median of prior bucket means; None where no prior day exists."""
    if not buckets:
        return []
    series = pd.Series(
        [b.mean_pain for b in buckets],
        index=pd.to_datetime([b.day for b in buckets]),
        dtype="float64",
    )
    medians = series.rolling(f"{window_days}D", closed="left").median()
    return [None if pd.isna(v) else float(v) for v in medians]


def detect_episodes(buckets: Sequence[DayBucket], cfg: EngineConfig) -> List[Episode]:
    baselines = rolling_baselines(buckets, cfg.baseline_window_days)
    episodes: List[Episode] = []
    run: List[DayBucket] = []
    frozen: Optional[float] = None

    for bucket, base in zip(buckets, baselines):
        if not run:
            if base is not None and bucket.mean_pain - base >= cfg.onset_threshold:
                run = [bucket]
                frozen = base
            continue

        if bucket.mean_pain - frozen > cfg.recovery_threshold:
            run.append(bucket)
            continue

        if len(run) >= cfg.episode_min_days:
            episodes.append(_close_episode(run, cfg, recovered_on=bucket))
        run, frozen = [], None

    if run and len(run) >= cfg.episode_min_days:
        episodes.append(_close_episode(run, cfg, recovered_on=None))

    log.info("   OK %d episodes over %d days", len(episodes), len(buckets))
    return episodes


def _close_episode(run: List[DayBucket], cfg: EngineConfig,
                   recovered_on: Optional[DayBucket]) -> Episode:
    means = [b.mean_pain for b in run]
    peak = max(means)
    start, end = run[0].day, run[-1].day
    return Episode(
        start=start,
        end=end,
        severity_tier="high" if peak >= cfg.high_severity_peak else "moderate",
        peak_pain=peak,
        avg_pain=float(np.mean(means)),
        duration_days=(end - start).days + 1,
        recovery_days=(recovered_on.day - end).days if recovered_on else None,
        entry_count=sum(b.count for b in run),
        ongoing=recovered_on is None,
    )


def overall_baseline(entries: Sequence[Entry], now: datetime, cfg: EngineConfig) -> BaselineResult:
    """Median pain over the recent window, falling back to all entries."""
    if not entries:
        return BaselineResult()
    cutoff = now - timedelta(days=cfg.overall_baseline_days)
    recent = [e.pain for e in entries if e.timestamp >= cutoff]
    used = recent if len(recent) >= cfg.overall_baseline_min_entries else [e.pain for e in entries]

    n = len(used)
    if n >= 30:
        confidence = "high"
    elif n >= 14:
        confidence = "medium"
    else:
        confidence = "low"
    return BaselineResult(
        value=float(np.median(used)),
        method="median",
        confidence=confidence,
        entry_count=n,
    )
