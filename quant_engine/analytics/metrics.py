"""
Performance metrics: Sharpe, Sortino, max drawdown, win rate, profit factor, expectancy.

Every ratio that could divide by zero resolves to 0.0 or RATIO_CAP instead of
raising or returning NaN.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from quant_engine.core.types import TradeRecord

# Reported when the denominator is zero but the numerator is positive (e.g. no losing trades)
RATIO_CAP = 999.0
_EPS = 1e-12


@dataclass(frozen=True)
class PerformanceMetrics:
    """Aggregate performance metrics for one backtest run."""
    total_return_pct: float
    sharpe_ratio: float
    sortino_ratio: float
    max_drawdown_pct: float
    win_rate: float
    profit_factor: float
    expectancy: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    avg_win: float
    avg_loss: float


def capped_ratio(numerator: float, denominator: float) -> float:
    if denominator <= _EPS:
        return RATIO_CAP if numerator > _EPS else 0.0
    return min(RATIO_CAP, numerator / denominator)


def sharpe_ratio(returns: Sequence[float], risk_free_rate: float = 0.0, periods_per_year: float = 252.0) -> float:
    """Annualized Sharpe. 0 for fewer than 2 returns or zero deviation."""
    if len(returns) < 2:
        return 0.0
    arr = np.asarray(returns, dtype=float)
    excess = arr - risk_free_rate / periods_per_year
    if arr.std() <= _EPS:
        return 0.0
    return float(np.sqrt(periods_per_year) * excess.mean() / arr.std())


def downside_deviation(returns: Sequence[float]) -> float:
    """Standard deviation of the negative returns only; 0 if there are none."""
    arr = np.asarray(returns, dtype=float)
    downside = arr[arr < 0]
    if len(downside) == 0:
        return 0.0
    return float(downside.std())


def sortino_ratio(returns: Sequence[float], risk_free_rate: float = 0.0, periods_per_year: float = 252.0) -> float:
    """Annualized Sortino. Zero downside deviation -> RATIO_CAP when mean excess is positive, else 0."""
    if len(returns) < 2:
        return 0.0
    excess = float(np.mean(returns)) - risk_free_rate / periods_per_year
    dd = downside_deviation(returns)
    if dd <= _EPS:
        return RATIO_CAP if excess > _EPS else 0.0
    return float(np.sqrt(periods_per_year) * excess / dd)


def max_drawdown(equity: Sequence[float]) -> float:
    """Largest peak-to-trough decline, as a positive percent of the peak (15.0 = 15%)."""
    if len(equity) == 0:
        return 0.0
    arr = np.asarray(equity, dtype=float)
    peak = np.maximum.accumulate(arr)
    dd = (peak - arr) / np.where(peak > 0, peak, 1)
    return float(np.max(dd)) * 100.0


def equity_returns(equity: Sequence[float]) -> List[float]:
    """Per-bar simple returns of an equity curve. Zero-equity bars are skipped."""
    arr = np.asarray(equity, dtype=float)
    if len(arr) < 2:
        return []
    prev, cur = arr[:-1], arr[1:]
    mask = prev != 0
    return ((cur[mask] - prev[mask]) / prev[mask]).tolist()


def win_rate(pnls: Sequence[float]) -> float:
    """Fraction of trades with positive PnL."""
    if not pnls:
        return 0.0
    return sum(1 for p in pnls if p > 0) / len(pnls)


def profit_factor(pnls: Sequence[float]) -> float:
    """Gross profit / gross loss. RATIO_CAP if there are wins but no losses, 0 if neither."""
    wins = sum(p for p in pnls if p > 0)
    losses = sum(-p for p in pnls if p < 0)
    return capped_ratio(wins, losses)


def expectancy(pnls: Sequence[float]) -> float:
    """Average PnL per trade."""
    if not pnls:
        return 0.0
    return sum(pnls) / len(pnls)


def drawdown_risk_proxy(pnls: Sequence[float], initial_capital: float) -> float:
    """
    Max drawdown (percent) of the closed-trade equity path only. This is the
    dashboard's quick risk gauge and is not a Value-at-Risk estimate.
    """
    if initial_capital <= 0:
        return 0.0
    path = [initial_capital]
    for p in pnls:
        path.append(path[-1] + p)
    return max_drawdown(path)


def compute_metrics(
    trades: Sequence[TradeRecord],
    equity_curve: Sequence[float],
    risk_free_rate: float = 0.0,
    periods_per_year: float = 252.0,
) -> PerformanceMetrics:
    """
    Full metrics from one run's ledger and equity curve. Sharpe/Sortino and drawdown
    come from the per-bar equity curve; trade statistics from the ledger.
    """
    pnls = [t.pnl for t in trades]
    wins = [p for p in pnls if p > 0]
    losses = [p for p in pnls if p < 0]
    rets = equity_returns(equity_curve)
    start = equity_curve[0] if len(equity_curve) else 0.0
    end = equity_curve[-1] if len(equity_curve) else 0.0
    total_return_pct = (end - start) / start * 100.0 if start > 0 else 0.0
    return PerformanceMetrics(
        total_return_pct=total_return_pct,
        sharpe_ratio=sharpe_ratio(rets, risk_free_rate, periods_per_year),
        sortino_ratio=sortino_ratio(rets, risk_free_rate, periods_per_year),
        max_drawdown_pct=max_drawdown(equity_curve),
        win_rate=win_rate(pnls),
        profit_factor=profit_factor(pnls),
        expectancy=expectancy(pnls),
        total_trades=len(pnls),
        winning_trades=len(wins),
        losing_trades=len(losses),
        avg_win=sum(wins) / len(wins) if wins else 0.0,
        avg_loss=sum(losses) / len(losses) if losses else 0.0,
    )
