"""
Moving averages and oscillators over OHLCV series. Values that are not yet
defined are NaN; callers must not treat them as zero.
"""

from __future__ import annotations

import numpy as np
import pandas as pd

from quant_engine.core.errors import InsufficientData


def _seeded_smoothing(series: pd.Series, period: int, alpha: float) -> pd.Series:
    """
    Recursive smoothing seeded with the simple mean of the first `period`
    valid observations: y[seed] = mean, y[t] = alpha * x[t] + (1 - alpha) * y[t-1].
    """
    out = pd.Series(np.nan, index=series.index, dtype=float)
    present = series.notna().to_numpy()
    if present.sum() < period:
        return out
    start = int(present.argmax())
    seed_pos = start + period - 1
    if seed_pos >= len(series):
        return out
    tail = series.iloc[seed_pos:].astype(float).copy()
    tail.iloc[0] = float(series.iloc[start:seed_pos + 1].mean())
    out.iloc[seed_pos:] = tail.ewm(alpha=alpha, adjust=False).mean().to_numpy()
    return out


def sma(series: pd.Series, period: int) -> pd.Series:
    """Simple moving average; NaN for the first period-1 values."""
    return series.rolling(period).mean()


def ema(series: pd.Series, period: int) -> pd.Series:
    """
    Exponential moving average, alpha = 2 / (period + 1), seeded with the SMA
    of the first `period` values. Raises InsufficientData if the series is shorter.
    """
    if period < 1:
        raise ValueError(f"period must be >= 1, got {period}")
    if len(series) < period:
        raise InsufficientData(period, len(series), what=f"EMA({period})")
    return _seeded_smoothing(series, period, 2.0 / (period + 1))


def rsi(close: pd.Series, period: int = 14) -> pd.Series:
    """
    Wilder RSI. First value at index `period` (needs `period` price changes).
    No losses and some gains -> 100; no movement at all -> 50.
    """
    delta = close.diff()
    gain = delta.clip(lower=0)
    loss = (-delta).clip(lower=0)
    avg_gain = _seeded_smoothing(gain, period, 1.0 / period)
    avg_loss = _seeded_smoothing(loss, period, 1.0 / period)
    rs = avg_gain / avg_loss.replace(0, np.nan)
    out = 100 - (100 / (1 + rs))
    out = out.mask((avg_loss == 0) & (avg_gain > 0), 100.0)
    out = out.mask((avg_loss == 0) & (avg_gain == 0), 50.0)
    return out


def true_range(df: pd.DataFrame) -> pd.Series:
    """max(high-low, |high-prev_close|, |low-prev_close|); first bar is high-low."""
    prev_close = df["close"].shift()
    high_low = df["high"] - df["low"]
    high_close = (df["high"] - prev_close).abs()
    low_close = (df["low"] - prev_close).abs()
    return pd.concat([high_low, high_close, low_close], axis=1).max(axis=1)


def atr(df: pd.DataFrame, period: int = 14) -> pd.Series:
    """Wilder-smoothed average true range. First value at index period-1."""
    return _seeded_smoothing(true_range(df), period, 1.0 / period)


def macd(close: pd.Series, fast: int = 12, slow: int = 26, signal: int = 9) -> pd.DataFrame:
    """MACD line, signal line and histogram. NaN until each leg is defined."""
    frame = pd.DataFrame(index=close.index, columns=["macd", "macd_signal", "macd_hist"], dtype=float)
    if len(close) < slow:
        return frame
    line = ema(close, fast) - ema(close, slow)
    frame["macd"] = line
    frame["macd_signal"] = _seeded_smoothing(line, signal, 2.0 / (signal + 1))
    frame["macd_hist"] = frame["macd"] - frame["macd_signal"]
    return frame
