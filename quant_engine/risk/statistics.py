"""
Return-series statistics for the portfolio risk engine.

Standard deviations are population (ddof=0). Degenerate inputs (fewer than two
observations, zero variance) resolve to 0.0 rather than NaN.
"""

from __future__ import annotations
from typing import Mapping, Sequence, Tuple, Union

import numpy as np
import pandas as pd
from scipy.stats import norm

ReturnSeries = Union[pd.Series, Sequence[float]]

_EPS = 1e-12


def _as_series(values: ReturnSeries) -> pd.Series:
    if isinstance(values, pd.Series):
        return values.astype(float)
    return pd.Series(list(values), dtype=float)


def _dated(values: ReturnSeries) -> bool:
    return isinstance(values, pd.Series) and not isinstance(values.index, pd.RangeIndex)


def align_returns(series_by_symbol: Mapping[str, ReturnSeries]) -> pd.DataFrame:
    """
    One column per symbol on a common index. Date-indexed series are inner-joined
    on their dates; otherwise each series is aligned on its most recent
    observations and the frame is truncated to the shortest.
    """
    if not series_by_symbol:
        return pd.DataFrame()
    if all(_dated(v) for v in series_by_symbol.values()):
        frame = pd.concat({s: _as_series(v) for s, v in series_by_symbol.items()}, axis=1, join="inner")
        return frame.sort_index().dropna()
    cols = {s: _as_series(v).dropna().to_numpy() for s, v in series_by_symbol.items()}
    n = min(len(c) for c in cols.values())
    return pd.DataFrame({s: c[len(c) - n:] for s, c in cols.items()})


def align_pair(a: ReturnSeries, b: ReturnSeries) -> Tuple[np.ndarray, np.ndarray]:
    frame = align_returns({"a": a, "b": b})
    if frame.empty:
        return np.array([]), np.array([])
    return frame["a"].to_numpy(), frame["b"].to_numpy()


def volatility(returns: Sequence[float]) -> float:
    arr = np.asarray(returns, dtype=float)
    if len(arr) < 2:
        return 0.0
    return float(arr.std())


def mean_return(returns: Sequence[float]) -> float:
    arr = np.asarray(returns, dtype=float)
    return float(arr.mean()) if len(arr) else 0.0


def covariance(a: Sequence[float], b: Sequence[float]) -> float:
    x = np.asarray(a, dtype=float)
    y = np.asarray(b, dtype=float)
    if len(x) < 2 or len(x) != len(y):
        return 0.0
    return float(np.mean((x - x.mean()) * (y - y.mean())))


def beta(asset: Sequence[float], market: Sequence[float]) -> float:
    """cov(asset, market) / var(market); 0 when the market has no variance."""
    market_var = covariance(market, market)
    if market_var <= _EPS:
        return 0.0
    return covariance(asset, market) / market_var


def correlation(a: Sequence[float], b: Sequence[float]) -> float:
    """Pearson coefficient clamped to [-1, 1]; 0 if either side has no variance."""
    denom = np.sqrt(covariance(a, a) * covariance(b, b))
    if denom <= _EPS:
        return 0.0
    return float(np.clip(covariance(a, b) / denom, -1.0, 1.0))


def correlation_matrix(returns: pd.DataFrame) -> np.ndarray:
    """Symmetric N x N matrix with an exact unit diagonal."""
    cols = list(returns.columns)
    n = len(cols)
    m = np.eye(n)
    for i in range(n):
        for j in range(i + 1, n):
            m[i, j] = m[j, i] = correlation(returns[cols[i]].to_numpy(), returns[cols[j]].to_numpy())
    return m


def z_score(confidence: float) -> float:
    return float(norm.ppf(confidence))


def parametric_var(mu: float, sigma: float, value: float, confidence: float) -> float:
    """
    One-day Value-at-Risk under a normal return assumption:
    VaR = -(mu - z * sigma) * value, floored at zero.
    """
    return max(0.0, -(mu - z_score(confidence) * sigma)) * value


def parametric_cvar(mu: float, sigma: float, value: float, confidence: float) -> float:
    """
    Expected loss beyond the VaR cutoff under a normal assumption:
    CVaR = (-mu + sigma * pdf(z) / (1 - confidence)) * value, floored at zero.
    """
    tail = float(norm.pdf(z_score(confidence))) / (1.0 - confidence)
    return max(0.0, -mu + sigma * tail) * value


def drawdown_stats(returns: Sequence[float]) -> Tuple[float, float, int]:
    """
    (max drawdown, current drawdown, max drawdown duration in bars) of the wealth
    index built from simple returns. Drawdowns are fractions of the running peak.
    """
    arr = np.asarray(returns, dtype=float)
    if len(arr) == 0:
        return 0.0, 0.0, 0
    wealth = np.concatenate([[1.0], np.cumprod(1.0 + arr)])
    peak = np.maximum.accumulate(wealth)
    dd = np.where(peak > 0, (peak - wealth) / peak, 0.0)
    max_dd = float(dd.max())
    if max_dd <= 0:
        return 0.0, 0.0, 0
    trough = int(dd.argmax())
    # last bar at the running peak before the trough
    before = wealth[:trough + 1]
    peak_idx = trough - int(np.argmax(before[::-1] >= peak[trough]))
    return max_dd, float(dd[-1]), trough - peak_idx
