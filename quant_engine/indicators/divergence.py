"""
RSI and volume divergence classification.

Each classifier looks at one trailing window whose last element is the current
bar and compares the current close against the extremum of the bars before it:

- bullish: close makes a lower low, while RSI holds a higher low (or volume
  dries up relative to the bar of the prior low)
- bearish: close makes a higher high, while RSI prints a lower high (or volume
  dries up relative to the bar of the prior high)
"""

from __future__ import annotations
import math
from typing import Sequence

import pandas as pd

from quant_engine.core.types import Divergence

DIVERGENCE_LOOKBACK = 14
PRICE_TOLERANCE_PCT = 0.5
RSI_TOLERANCE = 2.0


def _usable(values: Sequence[float]) -> bool:
    return len(values) >= 3 and not any(v is None or math.isnan(v) for v in values)


def _new_extreme(prices: Sequence[float]) -> tuple[Divergence, int]:
    """
    Whether the last price breaks the prior window's low or high by more than the
    tolerance. Returns the direction it would imply and the index of the prior extreme.
    """
    prior = list(prices[:-1])
    current = prices[-1]
    tol = PRICE_TOLERANCE_PCT / 100.0
    low_idx = min(range(len(prior)), key=prior.__getitem__)
    high_idx = max(range(len(prior)), key=prior.__getitem__)
    if current < prior[low_idx] * (1 - tol):
        return Divergence.BULLISH, low_idx
    if current > prior[high_idx] * (1 + tol):
        return Divergence.BEARISH, high_idx
    return Divergence.NONE, -1


def classify_rsi_divergence(prices: Sequence[float], rsi_values: Sequence[float]) -> Divergence:
    """Price lower-low with RSI higher-low is bullish; price higher-high with RSI lower-high is bearish."""
    if len(prices) != len(rsi_values) or not (_usable(prices) and _usable(rsi_values)):
        return Divergence.NONE
    kind, idx = _new_extreme(prices)
    if kind == Divergence.BULLISH and rsi_values[-1] > rsi_values[idx] + RSI_TOLERANCE:
        return Divergence.BULLISH
    if kind == Divergence.BEARISH and rsi_values[-1] < rsi_values[idx] - RSI_TOLERANCE:
        return Divergence.BEARISH
    return Divergence.NONE


def classify_volume_divergence(prices: Sequence[float], volumes: Sequence[float]) -> Divergence:
    """A new price extreme printed on lower volume than the prior extreme."""
    if len(prices) != len(volumes) or not (_usable(prices) and _usable(volumes)):
        return Divergence.NONE
    kind, idx = _new_extreme(prices)
    if kind != Divergence.NONE and volumes[-1] < volumes[idx]:
        return kind
    return Divergence.NONE


def _rolling_classify(prices: pd.Series, other: pd.Series, classify, lookback: int) -> pd.Series:
    p = prices.to_numpy(dtype=float)
    o = other.to_numpy(dtype=float)
    window = lookback + 1
    labels = [Divergence.NONE] * len(p)
    for i in range(window - 1, len(p)):
        labels[i] = classify(p[i - window + 1:i + 1], o[i - window + 1:i + 1])
    return pd.Series(labels, index=prices.index, dtype=object)


def rsi_divergence(close: pd.Series, rsi_series: pd.Series, lookback: int = DIVERGENCE_LOOKBACK) -> pd.Series:
    """Per-bar RSI divergence over the trailing `lookback` bars."""
    return _rolling_classify(close, rsi_series, classify_rsi_divergence, lookback)


def volume_divergence(close: pd.Series, volume: pd.Series, lookback: int = DIVERGENCE_LOOKBACK) -> pd.Series:
    """Per-bar volume divergence over the trailing `lookback` bars."""
    return _rolling_classify(close, volume, classify_volume_divergence, lookback)
