"""Indicators: EMA, RSI, ATR, MACD and divergence detection."""

from quant_engine.indicators.core import sma, ema, rsi, atr, true_range, macd
from quant_engine.indicators.divergence import (
    classify_rsi_divergence,
    classify_volume_divergence,
    rsi_divergence,
    volume_divergence,
)

__all__ = [
    "sma",
    "ema",
    "rsi",
    "atr",
    "true_range",
    "macd",
    "classify_rsi_divergence",
    "classify_volume_divergence",
    "rsi_divergence",
    "volume_divergence",
]
