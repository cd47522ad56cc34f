"""Strategy backtesting and portfolio risk analytics engine."""

from quant_engine.backtesting import run_backtest, BacktestEngine, BacktestResult
from quant_engine.core import StrategyConfig
from quant_engine.risk import compute_risk_analytics, RiskAnalytics
from quant_engine.scanner import BatchScanner
from quant_engine.strategies import score_symbol

__version__ = "0.1.0"

__all__ = [
    "run_backtest",
    "BacktestEngine",
    "BacktestResult",
    "StrategyConfig",
    "compute_risk_analytics",
    "RiskAnalytics",
    "BatchScanner",
    "score_symbol",
]
