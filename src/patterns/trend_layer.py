"""Mean, volatility, trend and rolling anomaly flags over the pain series.

Canonical trend is the OLS slope over the 0-based entry index
(pain points per entry):

    slope = (n·Σxy − Σx·Σy) / (n·Σx² − (Σx)²)

``trend_percent`` re-expresses that slope as fitted % change across the
series.  ``half_split_change`` (second-half mean vs first-half mean) is kept
as a second descriptor only: the two are not numerically interchangeable.
"""

from __future__ import annotations

import math
from collections import Counter
from datetime import datetime
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats as sp_stats

from schema import RollingPoint, StatisticalSummary

STD_EPS = 1e-10


def mean_and_volatility(pains: Sequence[float]) -> Tuple[float, float]:
    """Arithmetic mean and population standard deviation (0, 0 when empty)."""
    if len(pains) == 0:
        return 0.0, 0.0
    arr = np.asarray(pains, dtype=np.float64)
    return float(arr.mean()), float(arr.std())


def pain_statistics(pains: Sequence[float]) -> StatisticalSummary:
    if len(pains) == 0:
        return StatisticalSummary()
    arr = np.asarray(pains, dtype=np.float64)
    counts = Counter(float(p) for p in pains)
    top = max(counts.values())
    mode = min(v for v, c in counts.items() if c == top)
    return StatisticalSummary(
        mean=float(arr.mean()),
        median=float(np.median(arr)),
        mode=mode,
        std_dev=float(arr.std()),
        min=float(arr.min()),
        max=float(arr.max()),
        count=len(pains),
    )


def ols_slope(pains: Sequence[float]) -> float:
    """Least-squares slope of pain against entry index; 0 for n < 2."""
    if len(pains) < 2:
        return 0.0
    x = np.arange(len(pains), dtype=np.float64)
    y = np.asarray(pains, dtype=np.float64)
    slope, _, _, _, _ = sp_stats.linregress(x, y)
    return 0.0 if math.isnan(slope) else float(slope)


def trend_percent(slope: float, n: int, mean: float) -> float:
    """Fitted first-to-last change as % of the mean."""
    if n < 2 or mean == 0:
        return 0.0
    return slope * (n - 1) / mean * 100


def half_split_change(pains: Sequence[float]) -> float:
    """% change of second-half mean over first-half mean (chronological)."""
    mid = len(pains) // 2
    if mid == 0:
        return 0.0
    first = float(np.mean(pains[:mid]))
    if first == 0:
        return 0.0
    second = float(np.mean(pains[mid:]))
    return (second - first) / first * 100


def rolling_profile(
    timestamps: Sequence[datetime],
    pains: Sequence[float],
    window: int,
    k: float,
) -> List[RollingPoint]:
    """Trailing avg/std over the previous ``window`` points plus anomaly flag.

    Index 0 has no prior point, so its rolling values are None.  The window
    shrinks near the start rather than producing NaN.
    """
    if len(pains) == 0:
        return []
    prior = pd.Series(pains, dtype="float64").shift(1)
    roll = prior.rolling(window, min_periods=1)
    avgs = roll.mean()
    stds = roll.std(ddof=0)

    points: List[RollingPoint] = []
    for i, (ts, pain) in enumerate(zip(timestamps, pains)):
        avg, std = avgs.iloc[i], stds.iloc[i]
        if pd.isna(avg):
            points.append(RollingPoint(index=i, timestamp=ts, pain=float(pain)))
            continue
        std = 0.0 if pd.isna(std) or std < STD_EPS else float(std)
        anomaly = std > 0 and abs(pain - avg) > k * std
        points.append(RollingPoint(
            index=i,
            timestamp=ts,
            pain=float(pain),
            rolling_avg=float(avg),
            rolling_std=std,
            anomaly=bool(anomaly),
        ))
    return points
