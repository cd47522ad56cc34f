"""Analytics: performance metrics (Sharpe, Sortino, MDD, win rate, etc.)."""

from quant_engine.analytics.metrics import (
    RATIO_CAP,
    capped_ratio,
    PerformanceMetrics,
    compute_metrics,
    sharpe_ratio,
    sortino_ratio,
    downside_deviation,
    max_drawdown,
    equity_returns,
    win_rate,
    profit_factor,
    expectancy,
    drawdown_risk_proxy,
)

__all__ = [
    "RATIO_CAP",
    "capped_ratio",
    "PerformanceMetrics",
    "compute_metrics",
    "sharpe_ratio",
    "sortino_ratio",
    "downside_deviation",
    "max_drawdown",
    "equity_returns",
    "win_rate",
    "profit_factor",
    "expectancy",
    "drawdown_risk_proxy",
]
