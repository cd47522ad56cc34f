"""
Multi-factor weighted momentum strategy: EMA trend + RSI zone + RSI/volume
divergence, with optional long-term trend and volatility filters.
"""

from __future__ import annotations
import logging
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd

from quant_engine.core.config import StrategyConfig
from quant_engine.core.errors import InsufficientData
from quant_engine.core.types import Bar, Divergence, Signal
from quant_engine.data.frames import bars_to_frame
from quant_engine.indicators import atr, ema, macd, rsi, rsi_divergence, sma, volume_divergence
from quant_engine.strategies.base import BaseStrategy
from quant_engine.strategies.scoring import IndicatorSnapshot, score_snapshot

logger = logging.getLogger("quant_engine.strategy")

VOLUME_MA_LEN = 20


def _value(row: pd.Series, column: str) -> Optional[float]:
    v = row.get(column)
    if v is None or pd.isna(v):
        return None
    return float(v)


class MultiFactorStrategy(BaseStrategy):
    """Scores every bar from its indicator snapshot; see strategies.scoring for weights."""

    name = "Multi-Factor Weighted Momentum"

    def __init__(self, config: Optional[StrategyConfig] = None):
        self.config = config or StrategyConfig()

    @property
    def warmup_bars(self) -> int:
        return self.config.warmup_bars

    def _ema_or_nan(self, close: pd.Series, period: int) -> pd.Series:
        try:
            return ema(close, period)
        except InsufficientData as e:
            logger.debug("Indicator not available yet: %s", e)
            return pd.Series(np.nan, index=close.index, dtype=float)

    def compute_indicators(self, df: pd.DataFrame) -> pd.DataFrame:
        cfg = self.config
        df = df.copy()
        close = df["close"].astype(float)
        df["ema_fast"] = self._ema_or_nan(close, cfg.ema_fast)
        df["ema_slow"] = self._ema_or_nan(close, cfg.ema_slow)
        df["ema_trend"] = self._ema_or_nan(close, cfg.trend_period)
        df["rsi"] = rsi(close, cfg.rsi_period)
        df["atr"] = atr(df, cfg.atr_period)
        df["vol_ma"] = sma(df["volume"].astype(float), VOLUME_MA_LEN)
        df = df.join(macd(close))
        df["rsi_divergence"] = rsi_divergence(close, df["rsi"])
        df["volume_divergence"] = volume_divergence(close, df["volume"].astype(float))
        return df

    def snapshot_at(self, df: pd.DataFrame, i: int) -> IndicatorSnapshot:
        """Indicator snapshot for row i of a frame from compute_indicators."""
        row = df.iloc[i]
        prev = df.iloc[i - 1] if i > 0 else None
        return IndicatorSnapshot(
            close=float(row["close"]),
            ema_fast=_value(row, "ema_fast"),
            ema_slow=_value(row, "ema_slow"),
            prev_ema_fast=_value(prev, "ema_fast") if prev is not None else None,
            prev_ema_slow=_value(prev, "ema_slow") if prev is not None else None,
            rsi=_value(row, "rsi"),
            atr=_value(row, "atr"),
            prev_atr=_value(prev, "atr") if prev is not None else None,
            ema_trend=_value(row, "ema_trend"),
            rsi_divergence=Divergence(row.get("rsi_divergence", Divergence.NONE)),
            volume_divergence=Divergence(row.get("volume_divergence", Divergence.NONE)),
        )

    def generate_signals(self, df: pd.DataFrame) -> List[Signal]:
        return [score_snapshot(self.snapshot_at(df, i), self.config) for i in range(len(df))]


def score_symbol(bars: Sequence[Bar], config: Optional[StrategyConfig] = None) -> Signal:
    """
    Score the last bar of a series without simulating. Raises InsufficientData
    when the series is shorter than the strategy warm-up.
    """
    strategy = MultiFactorStrategy(config)
    if len(bars) < strategy.warmup_bars:
        raise InsufficientData(strategy.warmup_bars, len(bars), what="score_symbol")
    df = strategy.compute_indicators(bars_to_frame(bars))
    return score_snapshot(strategy.snapshot_at(df, len(df) - 1), strategy.config)
