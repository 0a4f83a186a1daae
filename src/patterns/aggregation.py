"""Calendar bucketing: day, time-of-day period, ISO weekday and month."""

from __future__ import annotations

from collections import Counter
from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from constants import DAY_LABELS, TIME_PERIODS
from schema import DayBucket, Entry, FrequencyStat, MonthStat, PeriodStat, WeekdayStat

FRAME_COLUMNS = ["timestamp", "pain", "day", "hour", "iso_day", "month"]


def entries_frame(entries: Sequence[Entry]) -> pd.DataFrame:
    """One row per entry, sorted chronologically (stable for equal times)."""
    if not entries:
        return pd.DataFrame(columns=FRAME_COLUMNS)
    rows = [
        {
            "timestamp": e.timestamp,
            "pain": float(e.pain),
            "day": e.timestamp.date(),
            "hour": e.timestamp.hour,
            "iso_day": e.timestamp.isoweekday(),
            "month": e.timestamp.month,
        }
        for e in entries
    ]
    df = pd.DataFrame(rows, columns=FRAME_COLUMNS)
    return df.sort_values("timestamp", kind="mergesort").reset_index(drop=True)


def period_for_hour(hour: int) -> str:
    for key, start, end in TIME_PERIODS:
        if start < end:
            if start <= hour < end:
                return key
        elif hour >= start or hour < end:
            return key
    return TIME_PERIODS[-1][0]


def day_buckets(frame: pd.DataFrame) -> List[DayBucket]:
    if frame.empty:
        return []
    buckets: List[DayBucket] = []
    for day, grp in frame.groupby("day", sort=True):
        pains = tuple(float(p) for p in grp["pain"])
        buckets.append(DayBucket(
            day=day,
            count=len(pains),
            mean_pain=float(np.mean(pains)),
            pains=pains,
        ))
    return buckets


def time_of_day_stats(frame: pd.DataFrame) -> List[PeriodStat]:
    """All four periods, zero-count periods carry mean_pain 0."""
    totals = {key: [0, 0.0] for key, _, _ in TIME_PERIODS}
    for hour, pain in zip(frame["hour"], frame["pain"]):
        slot = totals[period_for_hour(int(hour))]
        slot[0] += 1
        slot[1] += float(pain)
    return [
        PeriodStat(period=key, count=n, mean_pain=(total / n) if n else 0.0)
        for key, (n, total) in totals.items()
    ]


def weekday_stats(frame: pd.DataFrame) -> List[WeekdayStat]:
    """All seven ISO weekdays (1 = Monday)."""
    grouped = {}
    if not frame.empty:
        grouped = frame.groupby("iso_day")["pain"].agg(["count", "mean"]).to_dict("index")
    out = []
    for iso_day, label in DAY_LABELS.items():
        row = grouped.get(iso_day)
        n = int(row["count"]) if row else 0
        out.append(WeekdayStat(
            iso_day=iso_day,
            label=label,
            count=n,
            mean_pain=float(row["mean"]) if n else 0.0,
        ))
    return out


def month_stats(frame: pd.DataFrame) -> List[MonthStat]:
    """Touched months only, ascending."""
    if frame.empty:
        return []
    grouped = frame.groupby("month")["pain"].agg(["count", "mean"])
    return [
        MonthStat(month=int(month), count=int(row["count"]), mean_pain=float(row["mean"]))
        for month, row in grouped.sort_index().iterrows()
    ]


def top_frequencies(entries: Sequence[Entry], attr: str, limit: int = 5) -> List[FrequencyStat]:
    """Most frequent labels of one kind with percentage of entries."""
    if not entries:
        return []
    counts: Counter = Counter()
    for e in entries:
        counts.update(getattr(e, attr))
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))[:limit]
    return [
        FrequencyStat(label=label, count=n, percentage=n / len(entries) * 100)
        for label, n in ranked
    ]


def good_bad_days(pains: Sequence[float], good_cut: float, bad_cut: float) -> Tuple[int, int]:
    good = sum(1 for p in pains if p <= good_cut)
    bad = sum(1 for p in pains if p >= bad_cut)
    return good, bad
