"""Risk analytics result records."""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List

import pandas as pd


@dataclass(frozen=True)
class ValueAtRisk:
    """Parametric-normal loss estimates in currency units (non-negative)."""
    var95: float
    var99: float
    cvar95: float
    cvar99: float


@dataclass(frozen=True)
class VolatilityMetrics:
    daily: float
    annualized: float
    downside_deviation: float


@dataclass(frozen=True)
class ReturnMetrics:
    daily: float
    annualized: float
    cumulative: float


@dataclass(frozen=True)
class PortfolioRiskMetrics:
    total_value: float
    value_at_risk: ValueAtRisk
    volatility: VolatilityMetrics
    returns: ReturnMetrics
    sharpe_ratio: float
    sortino_ratio: float
    calmar_ratio: float
    max_drawdown: float
    current_drawdown: float
    max_drawdown_duration: int
    beta: float
    alpha: float
    correlation: float
    concentration_risk: float
    diversification_ratio: float


@dataclass(frozen=True)
class AssetRiskMetrics:
    symbol: str
    name: str
    portfolio_weight: float
    marginal_contribution: float
    component_var: float
    volatility: float
    beta: float
    sharpe_ratio: float
    max_drawdown: float
    current_value: float
    unrealized_pnl: float
    unrealized_pnl_percent: float


@dataclass(frozen=True)
class CorrelationMatrix:
    """Symmetric, unit diagonal, entries within [-1, 1]."""
    symbols: List[str]
    matrix: List[List[float]]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def as_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.matrix, index=self.symbols, columns=self.symbols)


@dataclass(frozen=True)
class RiskAnalytics:
    portfolio: PortfolioRiskMetrics
    assets: List[AssetRiskMetrics]
    correlations: CorrelationMatrix
    calculated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
