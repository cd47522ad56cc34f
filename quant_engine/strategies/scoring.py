"""
Multi-factor signal scoring.

Each factor is a separate pure function so weights can be tuned and tested
without touching the simulator. The total is clamped to [0, 10].
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Optional

from quant_engine.core.config import StrategyConfig
from quant_engine.core.types import Direction, Divergence, Signal

TREND_POINTS = 4.0
MOMENTUM_POINTS = 3.0
RSI_DIVERGENCE_POINTS = 2.0
VOLUME_DIVERGENCE_POINTS = 1.0
MAX_SCORE = 10.0
# ATR below this fraction of the previous bar's ATR fails the volatility filter
VOLATILITY_DROP_RATIO = 0.8


def _available(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value)


@dataclass(frozen=True)
class IndicatorSnapshot:
    """Indicator state at one bar. None (or NaN) means not yet available."""
    close: float
    ema_fast: Optional[float] = None
    ema_slow: Optional[float] = None
    prev_ema_fast: Optional[float] = None
    prev_ema_slow: Optional[float] = None
    rsi: Optional[float] = None
    atr: Optional[float] = None
    prev_atr: Optional[float] = None
    ema_trend: Optional[float] = None
    rsi_divergence: Divergence = Divergence.NONE
    volume_divergence: Divergence = Divergence.NONE


def trend_points(snapshot: IndicatorSnapshot) -> float:
    if not (_available(snapshot.ema_fast) and _available(snapshot.ema_slow)):
        return 0.0
    return TREND_POINTS if snapshot.ema_fast > snapshot.ema_slow else 0.0


def momentum_points(snapshot: IndicatorSnapshot, config: StrategyConfig) -> float:
    if not _available(snapshot.rsi):
        return 0.0
    return MOMENTUM_POINTS if config.rsi_lower <= snapshot.rsi <= config.rsi_upper else 0.0


def divergence_points(divergence: Divergence, weight: float) -> float:
    if divergence == Divergence.BULLISH:
        return weight
    if divergence == Divergence.BEARISH:
        return -weight
    return 0.0


def bearish_crossover(snapshot: IndicatorSnapshot) -> bool:
    """Fast EMA crosses below slow EMA on this bar."""
    values = (snapshot.ema_fast, snapshot.ema_slow, snapshot.prev_ema_fast, snapshot.prev_ema_slow)
    if not all(_available(v) for v in values):
        return False
    return snapshot.prev_ema_fast >= snapshot.prev_ema_slow and snapshot.ema_fast < snapshot.ema_slow


def trend_filter_passes(snapshot: IndicatorSnapshot) -> bool:
    """Close at or above the long-term EMA. Not applied until that EMA exists."""
    if not _available(snapshot.ema_trend):
        return True
    return snapshot.close >= snapshot.ema_trend


def volatility_filter_passes(snapshot: IndicatorSnapshot) -> bool:
    """Reject bars where ATR collapsed versus the previous bar."""
    if not (_available(snapshot.atr) and _available(snapshot.prev_atr)):
        return True
    return snapshot.atr >= snapshot.prev_atr * VOLATILITY_DROP_RATIO


def compute_score(snapshot: IndicatorSnapshot, config: StrategyConfig) -> float:
    raw = (
        trend_points(snapshot)
        + momentum_points(snapshot, config)
        + divergence_points(snapshot.rsi_divergence, RSI_DIVERGENCE_POINTS)
        + divergence_points(snapshot.volume_divergence, VOLUME_DIVERGENCE_POINTS)
    )
    return min(MAX_SCORE, max(0.0, raw))


def score_snapshot(snapshot: IndicatorSnapshot, config: StrategyConfig) -> Signal:
    """Stateless: the same snapshot and config always give the same Signal."""
    if not (_available(snapshot.ema_fast) and _available(snapshot.ema_slow)):
        return Signal.hold()
    score = compute_score(snapshot, config)
    if bearish_crossover(snapshot):
        direction = Direction.SELL
    elif (
        score >= config.score_threshold
        and (not config.trend_filter or trend_filter_passes(snapshot))
        and (not config.volatility_filter or volatility_filter_passes(snapshot))
    ):
        direction = Direction.BUY
    else:
        direction = Direction.HOLD
    return Signal(
        direction=direction,
        score=score,
        ema_fast=float(snapshot.ema_fast),
        ema_slow=float(snapshot.ema_slow),
        rsi=float(snapshot.rsi) if _available(snapshot.rsi) else None,
        rsi_divergence=snapshot.rsi_divergence,
        volume_divergence=snapshot.volume_divergence,
    )
