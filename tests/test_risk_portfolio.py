"""Unit tests for risk.portfolio and risk.statistics."""

import numpy as np
import pandas as pd
import pytest
from quant_engine.core.errors import EmptyPortfolio
from quant_engine.core.types import Holding
from quant_engine.risk.portfolio import compute_risk_analytics, concentration_alerts
from quant_engine.risk.statistics import (
    align_returns,
    beta,
    correlation,
    drawdown_stats,
    parametric_cvar,
    parametric_var,
)


def _returns(seed: int, n: int = 250, mu: float = 0.0005, sigma: float = 0.01) -> pd.Series:
    rng = np.random.RandomState(seed)
    return pd.Series(rng.normal(mu, sigma, n), index=pd.bdate_range("2023-01-02", periods=n))


@pytest.fixture
def portfolio():
    holdings = [
        Holding("AAPL", quantity=10, avg_price=150.0),
        Holding("MSFT", quantity=5, avg_price=300.0),
        Holding("XOM", quantity=20, avg_price=100.0),
    ]
    returns = {"AAPL": _returns(1), "MSFT": _returns(2), "XOM": _returns(3, sigma=0.02)}
    return holdings, returns


def test_correlation_matrix_symmetric_unit_diagonal(portfolio):
    holdings, returns = portfolio
    analytics = compute_risk_analytics(holdings, returns)
    m = np.array(analytics.correlations.matrix)
    assert m.shape == (3, 3)
    assert np.allclose(m, m.T)
    assert np.all(np.diag(m) == 1.0)
    assert np.all((m >= -1.0) & (m <= 1.0))
    assert list(analytics.correlations.as_frame().index) == ["AAPL", "MSFT", "XOM"]


def test_var99_at_least_var95(portfolio):
    holdings, returns = portfolio
    var = compute_risk_analytics(holdings, returns).portfolio.value_at_risk
    assert var.var95 > 0
    assert var.var99 >= var.var95
    assert var.cvar95 >= var.var95
    assert var.cvar99 >= var.var99


def test_weights_and_component_var(portfolio):
    holdings, returns = portfolio
    analytics = compute_risk_analytics(holdings, returns)
    weights = [a.portfolio_weight for a in analytics.assets]
    # 1500 / 1500 / 2000
    assert weights == pytest.approx([0.3, 0.3, 0.4])
    assert analytics.portfolio.total_value == pytest.approx(5000.0)
    assert sum(a.component_var for a in analytics.assets) == pytest.approx(
        analytics.portfolio.value_at_risk.var95
    )
    assert analytics.portfolio.concentration_risk == pytest.approx(0.09 + 0.09 + 0.16)
    assert analytics.portfolio.diversification_ratio > 1.0


def test_latest_prices_drive_value_and_pnl(portfolio):
    holdings, returns = portfolio
    analytics = compute_risk_analytics(holdings, returns, prices={"AAPL": 165.0})
    aapl = analytics.assets[0]
    assert aapl.current_value == pytest.approx(1650.0)
    assert aapl.unrealized_pnl == pytest.approx(150.0)
    assert aapl.unrealized_pnl_percent == pytest.approx(10.0)


def test_single_zero_variance_holding():
    holdings = [Holding("CASHLIKE", quantity=10, avg_price=100.0)]
    analytics = compute_risk_analytics(holdings, {"CASHLIKE": [0.0] * 30})
    p = analytics.portfolio
    assert p.volatility.annualized == 0.0
    assert p.sharpe_ratio == 0.0
    assert p.sortino_ratio == 0.0
    assert p.calmar_ratio == 0.0
    assert p.concentration_risk == 1.0
    assert p.diversification_ratio == 1.0
    assert p.value_at_risk.var95 == 0.0
    assert analytics.correlations.matrix == [[1.0]]
    assert analytics.assets[0].component_var == 0.0


def test_empty_portfolio():
    with pytest.raises(EmptyPortfolio):
        compute_risk_analytics([], {})
    with pytest.raises(EmptyPortfolio):
        compute_risk_analytics([Holding("AAPL", quantity=0, avg_price=100.0)], {})


def test_missing_history_treated_as_flat(portfolio):
    holdings, returns = portfolio
    returns = {"AAPL": returns["AAPL"]}
    analytics = compute_risk_analytics(holdings[:2], returns)
    msft = analytics.assets[1]
    assert msft.volatility == 0.0
    assert analytics.correlations.matrix[0][1] == 0.0


def test_too_few_observations():
    holdings = [Holding("AAPL", quantity=1, avg_price=100.0)]
    p = compute_risk_analytics(holdings, {"AAPL": [0.05]}).portfolio
    assert p.value_at_risk.var95 == 0.0
    assert p.sharpe_ratio == 0.0


def test_benchmark_beta_and_alpha():
    bench = _returns(7)
    holdings = [Holding("SPY", quantity=10, avg_price=400.0)]
    p = compute_risk_analytics(holdings, {"SPY": bench}, benchmark_returns=bench).portfolio
    assert p.beta == pytest.approx(1.0)
    assert p.correlation == pytest.approx(1.0)
    assert p.alpha == pytest.approx(0.0, abs=1e-12)


def test_no_benchmark_means_zero_beta(portfolio):
    holdings, returns = portfolio
    p = compute_risk_analytics(holdings, returns).portfolio
    assert p.beta == 0.0
    assert p.alpha == 0.0


def test_duplicate_holdings_merged():
    holdings = [
        Holding("AAPL", quantity=10, avg_price=100.0),
        Holding("AAPL", quantity=10, avg_price=200.0),
    ]
    analytics = compute_risk_analytics(holdings, {"AAPL": _returns(4)})
    assert len(analytics.assets) == 1
    assert analytics.portfolio.total_value == pytest.approx(3000.0)


def test_concentration_alerts(portfolio):
    holdings, returns = portfolio
    holdings = holdings + [Holding("NVDA", quantity=100, avg_price=100.0)]
    returns = dict(returns, NVDA=_returns(5))
    alerts = concentration_alerts(compute_risk_analytics(holdings, returns))
    assert len(alerts) == 1
    assert alerts[0].startswith("NVDA allocation")


def test_align_returns_dated_inner_join():
    a = pd.Series([0.01, 0.02, 0.03], index=pd.to_datetime(["2024-01-01", "2024-01-02", "2024-01-03"]))
    b = pd.Series([0.1, 0.2], index=pd.to_datetime(["2024-01-02", "2024-01-03"]))
    frame = align_returns({"A": a, "B": b})
    assert list(frame["A"]) == [0.02, 0.03]
    assert list(frame["B"]) == [0.1, 0.2]


def test_align_returns_tail_aligned():
    frame = align_returns({"A": [1.0, 2.0, 3.0], "B": [20.0, 30.0]})
    assert list(frame["A"]) == [2.0, 3.0]


def test_zero_variance_statistics():
    assert beta([0.01, 0.02], [0.0, 0.0]) == 0.0
    assert correlation([0.01, 0.02, 0.03], [0.0, 0.0, 0.0]) == 0.0


def test_parametric_var_floor():
    # large positive drift with no volatility: no loss at any confidence
    assert parametric_var(0.01, 0.0, 1000.0, 0.95) == 0.0
    assert parametric_cvar(0.01, 0.0, 1000.0, 0.99) == 0.0
    assert parametric_var(0.0, 0.01, 1000.0, 0.95) == pytest.approx(16.4485, rel=1e-3)


def test_drawdown_stats():
    max_dd, current, duration = drawdown_stats([0.1, -0.5, 0.2])
    assert max_dd == pytest.approx(0.5)
    assert current == pytest.approx(0.4)
    assert duration == 1
    assert drawdown_stats([0.01, 0.02]) == (0.0, 0.0, 0)
