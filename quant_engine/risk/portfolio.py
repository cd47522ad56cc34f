"""
Portfolio risk engine: VaR/CVaR, volatility, risk-adjusted ratios, benchmark
beta/alpha, concentration and a per-asset breakdown.

VaR and CVaR are parametric (normal distribution) one-day estimates built from
the mean and standard deviation of the weighted daily portfolio return, not
historical simulation. Weights are current position values over total value,
and the same total value scales VaR, so every figure is recomputed together.
"""

from __future__ import annotations
import logging
import math
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from quant_engine.analytics.metrics import capped_ratio, downside_deviation, sharpe_ratio, sortino_ratio
from quant_engine.core.errors import EmptyPortfolio
from quant_engine.core.types import Holding
from quant_engine.risk.models import (
    AssetRiskMetrics,
    CorrelationMatrix,
    PortfolioRiskMetrics,
    ReturnMetrics,
    RiskAnalytics,
    ValueAtRisk,
    VolatilityMetrics,
)
from quant_engine.risk.statistics import (
    ReturnSeries,
    align_pair,
    align_returns,
    beta,
    correlation,
    correlation_matrix,
    covariance,
    drawdown_stats,
    mean_return,
    parametric_cvar,
    parametric_var,
    volatility,
)

logger = logging.getLogger("quant_engine.risk")

# 10-year US Treasury, annual
RISK_FREE_RATE = 0.045
TRADING_DAYS_PER_YEAR = 252
CONCENTRATION_CAP = 0.40
_EPS = 1e-12


def _merge_holdings(holdings: Sequence[Holding]) -> List[Holding]:
    """One holding per symbol; repeated symbols are combined at their blended cost."""
    merged: Dict[str, Holding] = {}
    for h in holdings:
        prev = merged.get(h.symbol)
        if prev is None:
            merged[h.symbol] = h
            continue
        qty = prev.quantity + h.quantity
        cost = prev.quantity * prev.avg_price + h.quantity * h.avg_price
        merged[h.symbol] = Holding(
            symbol=h.symbol,
            quantity=qty,
            avg_price=cost / qty if qty else 0.0,
            type=prev.type,
            name=prev.name or h.name,
        )
    return list(merged.values())


def _returns_frame(symbols: List[str], returns_by_symbol: Mapping[str, ReturnSeries]) -> pd.DataFrame:
    present = {}
    for s in symbols:
        series = returns_by_symbol.get(s)
        if series is None or len(series) == 0:
            logger.warning("No return history for %s, treating it as flat", s)
            continue
        present[s] = series
    frame = align_returns(present)
    for s in symbols:
        if s not in frame.columns:
            frame[s] = 0.0
    return frame[symbols].astype(float)


def compute_risk_analytics(
    holdings: Sequence[Holding],
    returns_by_symbol: Mapping[str, ReturnSeries],
    benchmark_returns: Optional[ReturnSeries] = None,
    prices: Optional[Mapping[str, float]] = None,
    risk_free_rate: float = RISK_FREE_RATE,
    trading_days: int = TRADING_DAYS_PER_YEAR,
) -> RiskAnalytics:
    """
    Full risk analytics for the current holdings.

    `prices` maps symbol -> latest price; holdings without one are valued at
    their average price. Raises EmptyPortfolio if there is nothing to value.
    """
    holdings = _merge_holdings(holdings)
    if not holdings:
        raise EmptyPortfolio("no holdings to analyze")
    prices = prices or {}
    symbols = [h.symbol for h in holdings]
    current_prices = np.array([float(prices.get(h.symbol, h.avg_price)) for h in holdings])
    values = np.array([h.quantity for h in holdings]) * current_prices
    total_value = float(values.sum())
    if total_value <= 0:
        raise EmptyPortfolio(f"portfolio total value is {total_value:.2f}")
    weights = values / total_value

    frame = _returns_frame(symbols, returns_by_symbol)
    asset_returns = frame.to_numpy()
    portfolio_returns = pd.Series(asset_returns @ weights, index=frame.index)
    port = portfolio_returns.to_numpy()
    n_obs = len(port)
    enough = n_obs >= 2
    if not enough:
        logger.warning("Only %d aligned return observations; VaR and ratios reported as 0", n_obs)

    annual = math.sqrt(trading_days)
    mu = mean_return(port)
    sigma = volatility(port)
    annualized_return = mu * trading_days
    cumulative = float(np.prod(1.0 + port) - 1.0) if n_obs else 0.0

    value_at_risk = ValueAtRisk(
        var95=parametric_var(mu, sigma, total_value, 0.95) if enough else 0.0,
        var99=parametric_var(mu, sigma, total_value, 0.99) if enough else 0.0,
        cvar95=parametric_cvar(mu, sigma, total_value, 0.95) if enough else 0.0,
        cvar99=parametric_cvar(mu, sigma, total_value, 0.99) if enough else 0.0,
    )
    max_dd, current_dd, dd_duration = drawdown_stats(port)

    bench_beta = bench_alpha = bench_corr = 0.0
    has_benchmark = benchmark_returns is not None and len(benchmark_returns) >= 2
    if has_benchmark and enough:
        p, b = align_pair(portfolio_returns, benchmark_returns)
        if len(p) >= 2:
            bench_beta = beta(p, b)
            bench_corr = correlation(p, b)
            bench_alpha = mean_return(p) * trading_days - bench_beta * mean_return(b) * trading_days

    asset_vols = np.array([volatility(asset_returns[:, i]) for i in range(len(symbols))]) * annual
    portfolio_vol = sigma * annual
    if len(symbols) == 1 or portfolio_vol <= _EPS:
        diversification = 1.0
    else:
        diversification = float(weights @ asset_vols) / portfolio_vol

    portfolio = PortfolioRiskMetrics(
        total_value=total_value,
        value_at_risk=value_at_risk,
        volatility=VolatilityMetrics(
            daily=sigma,
            annualized=portfolio_vol,
            downside_deviation=downside_deviation(port) * annual,
        ),
        returns=ReturnMetrics(daily=mu, annualized=annualized_return, cumulative=cumulative),
        sharpe_ratio=sharpe_ratio(port, risk_free_rate, trading_days),
        sortino_ratio=sortino_ratio(port, risk_free_rate, trading_days),
        calmar_ratio=capped_ratio(annualized_return, max_dd) if enough else 0.0,
        max_drawdown=max_dd,
        current_drawdown=current_dd,
        max_drawdown_duration=dd_duration,
        beta=bench_beta,
        alpha=bench_alpha,
        correlation=bench_corr,
        concentration_risk=float(np.sum(weights ** 2)),
        diversification_ratio=diversification,
    )

    assets = _asset_breakdown(
        holdings, current_prices, values, weights, asset_returns, portfolio_returns,
        benchmark_returns if has_benchmark else None, value_at_risk.var95, risk_free_rate, trading_days,
    )
    correlations = CorrelationMatrix(symbols=symbols, matrix=correlation_matrix(frame).tolist())
    logger.info(
        "Risk analytics: %d holdings, value %.2f, VaR95 %.2f, vol %.2f%%, %d observations",
        len(holdings), total_value, value_at_risk.var95, portfolio_vol * 100, n_obs,
    )
    return RiskAnalytics(portfolio=portfolio, assets=assets, correlations=correlations)


def _asset_breakdown(
    holdings: List[Holding],
    current_prices: np.ndarray,
    values: np.ndarray,
    weights: np.ndarray,
    asset_returns: np.ndarray,
    portfolio_returns: pd.Series,
    benchmark_returns: Optional[ReturnSeries],
    var95: float,
    risk_free_rate: float,
    trading_days: int,
) -> List[AssetRiskMetrics]:
    port = portfolio_returns.to_numpy()
    port_var = covariance(port, port)
    annual = math.sqrt(trading_days)
    assets = []
    for i, h in enumerate(holdings):
        r = asset_returns[:, i]
        beta_to_portfolio = beta(r, port)
        # Euler allocation: shares sum to 1 across holdings
        share = weights[i] * beta_to_portfolio if port_var > _EPS else weights[i]
        if benchmark_returns is not None:
            a, b = align_pair(pd.Series(r, index=portfolio_returns.index), benchmark_returns)
            asset_beta = beta(a, b)
        else:
            asset_beta = beta_to_portfolio
        cost = h.quantity * h.avg_price
        pnl = float(values[i]) - cost
        assets.append(AssetRiskMetrics(
            symbol=h.symbol,
            name=h.name,
            portfolio_weight=float(weights[i]),
            marginal_contribution=float(share),
            component_var=var95 * float(share),
            volatility=volatility(r) * annual,
            beta=asset_beta,
            sharpe_ratio=sharpe_ratio(r, risk_free_rate, trading_days),
            max_drawdown=drawdown_stats(r)[0],
            current_value=float(values[i]),
            unrealized_pnl=pnl,
            unrealized_pnl_percent=pnl / cost * 100.0 if cost else 0.0,
        ))
    return assets


def concentration_alerts(analytics: RiskAnalytics, cap: float = CONCENTRATION_CAP) -> List[str]:
    """Human-readable alerts for holdings whose weight exceeds `cap`."""
    return [
        f"{a.symbol} allocation ({a.portfolio_weight:.0%}) exceeds recommended cap of {cap:.0%}"
        for a in analytics.assets
        if a.portfolio_weight > cap
    ]
