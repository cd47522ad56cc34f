"""Backtesting engine: bar-by-bar single-position simulation."""

from quant_engine.backtesting.engine import BacktestEngine, BacktestResult, run_backtest

__all__ = ["BacktestEngine", "BacktestResult", "run_backtest"]
