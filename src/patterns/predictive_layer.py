"""Risk score, flare prediction and next-period forecast heuristics."""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from constants import FLARE_ACTIONS, FLARE_TIMEFRAME
from engine_config import EngineConfig
from schema import FlarePrediction, Forecast


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def round_half_up(value: float) -> int:
    """Nearest integer with .5 always rounded up."""
    return int(math.floor(value + 0.5))


def is_rising(pains: Sequence[float], tail: int) -> bool:
    """Last ``tail`` chronological pains (or all, if fewer) are non-decreasing."""
    if len(pains) == 0 or tail < 1:
        return False
    last = list(pains[-tail:])
    return all(b >= a for a, b in zip(last, last[1:]))


def risk_score(mean: float, volatility: float, bad_ratio: float,
               rising: bool, cfg: EngineConfig) -> int:
    raw = mean * 10 + volatility * 5 + bad_ratio * 30
    if rising:
        raw += cfg.risk_rising_bonus
    return int(clamp(round_half_up(raw), 0, 100))


def improvement_score(mean: float, volatility: float, trend_pct: float,
                      good_ratio: float) -> int:
    raw = 100 - mean * 10 - max(trend_pct, 0.0) + good_ratio * 30 - volatility * 5
    return int(clamp(round_half_up(raw), 0, 100))


def predict_flare(pains: Sequence[float], cfg: EngineConfig) -> Optional[FlarePrediction]:
    """Flare outlook when the recent average is high and still climbing."""
    if len(pains) == 0:
        return None
    recent_avg = float(np.mean(pains[-cfg.recent_entries:]))
    if recent_avg <= cfg.flare_recent_avg or not is_rising(pains, cfg.trend_tail):
        return None
    return FlarePrediction(
        probability=int(min(cfg.flare_max_probability, round_half_up(recent_avg * 10))),
        timeframe_label=FLARE_TIMEFRAME,
        severity_tier="high" if recent_avg > cfg.flare_high_avg else "moderate",
        recommended_actions=tuple(FLARE_ACTIONS),
    )


def projected_change(trend_pct: float, cfg: EngineConfig) -> float:
    if trend_pct > cfg.forecast_strong_pct:
        return cfg.forecast_strong_up
    if trend_pct > 0:
        return cfg.forecast_mild_up
    if trend_pct < -cfg.forecast_strong_pct:
        return cfg.forecast_strong_down
    if trend_pct < 0:
        return cfg.forecast_mild_down
    return 0.0


def forecast(mean: float, trend_pct: float, n: int, cfg: EngineConfig) -> Forecast:
    if n == 0:
        return Forecast(
            projected_average=0.0,
            delta_from_current=0.0,
            confidence_tier="low",
            narrative="No entries in this window yet.",
        )

    change = projected_change(trend_pct, cfg)
    if n >= cfg.forecast_high_n:
        confidence = "high"
    elif n >= cfg.forecast_medium_n:
        confidence = "medium"
    else:
        confidence = "low"

    if change > 0.3:
        descriptor = "worsening"
    elif change < -0.3:
        descriptor = "improving"
    else:
        descriptor = "holding steady"
    projected = clamp(mean + change, 0.0, 10.0)
    return Forecast(
        projected_average=projected,
        delta_from_current=projected - mean,
        confidence_tier=confidence,
        narrative=f"Pain levels are {descriptor} based on the last {n} entries.",
    )
