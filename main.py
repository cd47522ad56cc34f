#!/usr/bin/env python3
"""
Quant engine CLI: backtest | scan | risk
Usage:
  python main.py backtest AAPL [--config config.yaml] [--capital 10000]
  python main.py scan [AAPL MSFT ...] [--sector TECH] [--date 2024-06-28]
  python main.py risk --holdings holdings.yaml
"""

from __future__ import annotations
import argparse
import logging
import sys
from datetime import datetime, timedelta
from pathlib import Path

# Project root
ROOT = Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from quant_engine.backtesting.engine import run_backtest
from quant_engine.core.config import Config, load_config
from quant_engine.core.errors import EngineError, UpstreamDataError
from quant_engine.core.logger import setup_logging
from quant_engine.data.frames import returns_from_bars
from quant_engine.data.providers import (
    ChartApiHistoryProvider,
    CsvHistoryProvider,
    PriceHistoryProvider,
    YamlHoldingsProvider,
)
from quant_engine.risk.portfolio import compute_risk_analytics, concentration_alerts
from quant_engine.scanner.batch import BatchScanner
from quant_engine.scanner.sectors import ALL_SYMBOLS, MARKET_SECTORS
from quant_engine.utils.timeframes import range_to_days

logger = logging.getLogger("quant_engine")


def build_provider(config: Config) -> PriceHistoryProvider:
    if config.provider == "http":
        return ChartApiHistoryProvider(
            config.chart_api_url,
            timeout=config.request_timeout,
            default_lookback_days=range_to_days(config.lookback),
        )
    data_dir = config.data_dir if config.data_dir.is_absolute() else ROOT / config.data_dir
    return CsvHistoryProvider(data_dir)


def run_backtest_cmd(config: Config, symbol: str, capital: float | None) -> int:
    provider = build_provider(config)
    end = datetime.now()
    bars = provider.get_history(symbol, end - timedelta(days=range_to_days(config.lookback)), end)
    result = run_backtest(
        symbol,
        bars,
        config.strategy_config(),
        initial_capital=capital or config.initial_capital,
    )
    m = result.metrics
    print(f"\n--- Backtest Results: {symbol} ({result.strategy}) ---")
    if result.start_date and result.end_date:
        print(f"Period: {result.start_date:%Y-%m-%d} -> {result.end_date:%Y-%m-%d} ({len(result.history)} bars)")
    print(f"Capital: {result.initial_capital:.2f} -> {result.final_capital:.2f} ({result.total_pnl_pct:+.2f}%)")
    print(f"Total trades: {m.total_trades} (wins: {m.winning_trades}, losses: {m.losing_trades})")
    print(f"Win rate: {m.win_rate*100:.1f}%")
    print(f"Profit factor: {m.profit_factor:.2f}")
    print(f"Sharpe ratio: {m.sharpe_ratio:.2f}")
    print(f"Max drawdown: {m.max_drawdown_pct:.2f}%")
    print(f"Expectancy: {m.expectancy:.2f} per trade")
    for t in result.trades:
        print(
            f"  {t.entry_date:%Y-%m-%d} {t.entry_price:10.2f} -> {t.exit_date:%Y-%m-%d} {t.exit_price:10.2f}"
            f"  pnl {t.pnl:+10.2f} ({t.pnl_percent:+.2f}%)  {t.exit_reason.value}"
        )
    return 0


def run_scan_cmd(config: Config, symbols: list[str], sector: str | None, scan_date: str | None) -> int:
    if sector:
        symbols = MARKET_SECTORS.get(sector.upper(), [])
        if not symbols:
            logger.error("Unknown sector %s (choose from %s)", sector, ", ".join(MARKET_SECTORS))
            return 1
    symbols = symbols or ALL_SYMBOLS
    as_of = datetime.strptime(scan_date, "%Y-%m-%d").date() if scan_date else None
    scanner = BatchScanner(
        build_provider(config),
        config.strategy_config(),
        max_workers=config.max_workers or None,
        lookback_days=range_to_days(config.lookback),
    )
    report = scanner.scan(symbols, scan_date=as_of)
    print(f"\n--- Scan {report.scan_date:%Y-%m-%d} ---")
    for r in report.results:
        rsi = f"{r.signal.rsi:.1f}" if r.signal.rsi is not None else "n/a"
        print(f"{r.symbol:10s} {r.sector:11s} {r.signal.direction.value:5s} score={r.signal.score:4.1f} "
              f"price={r.price:.2f} rsi={rsi}")
    print("\nBy sector:")
    for s in report.sectors.values():
        print(f"{s.sector:11s} n={s.symbols} buy={s.buy} sell={s.sell} hold={s.hold} "
              f"avg={s.average_score:.1f} top={','.join(s.top_symbols)}")
    for symbol, err in report.errors.items():
        print(f"skipped {symbol}: {err}")
    return 0


def run_risk_cmd(config: Config, holdings_path: Path) -> int:
    holdings = YamlHoldingsProvider(holdings_path).get_holdings()
    provider = build_provider(config)
    end = datetime.now()
    start = end - timedelta(days=range_to_days(config.lookback))
    returns, prices = {}, {}
    for h in holdings:
        try:
            bars = provider.get_history(h.symbol, start, end)
        except UpstreamDataError as e:
            logger.warning("No history for %s: %s", h.symbol, e)
            continue
        if bars:
            returns[h.symbol] = returns_from_bars(bars)
            prices[h.symbol] = bars[-1].close
    benchmark = None
    if config.benchmark:
        try:
            benchmark = returns_from_bars(provider.get_history(config.benchmark, start, end))
        except UpstreamDataError as e:
            logger.warning("Benchmark %s unavailable: %s", config.benchmark, e)
    analytics = compute_risk_analytics(
        holdings, returns, benchmark, prices=prices,
        risk_free_rate=config.risk_free_rate, trading_days=config.trading_days,
    )
    p = analytics.portfolio
    print("\n--- Portfolio Risk ---")
    print(f"Value: {p.total_value:.2f}")
    print(f"VaR 95/99 (1d, parametric): {p.value_at_risk.var95:.2f} / {p.value_at_risk.var99:.2f}")
    print(f"CVaR 95/99: {p.value_at_risk.cvar95:.2f} / {p.value_at_risk.cvar99:.2f}")
    print(f"Volatility (ann.): {p.volatility.annualized*100:.2f}%")
    print(f"Return (ann.): {p.returns.annualized*100:.2f}%  cumulative: {p.returns.cumulative*100:.2f}%")
    print(f"Sharpe / Sortino / Calmar: {p.sharpe_ratio:.2f} / {p.sortino_ratio:.2f} / {p.calmar_ratio:.2f}")
    print(f"Max drawdown: {p.max_drawdown*100:.2f}% (current {p.current_drawdown*100:.2f}%)")
    print(f"Beta / alpha / corr: {p.beta:.2f} / {p.alpha:.4f} / {p.correlation:.2f}")
    print(f"Concentration (HHI): {p.concentration_risk:.3f}  diversification: {p.diversification_ratio:.2f}")
    for a in analytics.assets:
        print(f"  {a.symbol:10s} w={a.portfolio_weight*100:5.1f}% vol={a.volatility*100:6.2f}% "
              f"cVaR={a.component_var:9.2f} pnl={a.unrealized_pnl:+.2f} ({a.unrealized_pnl_percent:+.2f}%)")
    for alert in concentration_alerts(analytics):
        print(f"ALERT: {alert}")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Strategy backtesting and portfolio risk CLI")
    parser.add_argument("--config", type=Path, default=None, help="Path to config.yaml")
    sub = parser.add_subparsers(dest="mode", required=True)
    bt = sub.add_parser("backtest", help="Backtest the multi-factor strategy on one symbol")
    bt.add_argument("symbol")
    bt.add_argument("--capital", type=float, default=None, help="Initial capital")
    sc = sub.add_parser("scan", help="Score many symbols and aggregate by sector")
    sc.add_argument("symbols", nargs="*")
    sc.add_argument("--sector", default=None, help="Scan one sector from the built-in universe")
    sc.add_argument("--date", default=None, help="Scan as of YYYY-MM-DD")
    rk = sub.add_parser("risk", help="Portfolio risk analytics")
    rk.add_argument("--holdings", type=Path, required=True, help="Path to holdings.yaml")
    args = parser.parse_args()

    config = load_config(args.config, ROOT)
    setup_logging(config.log_level, config.log_dir, config.log_file)
    try:
        if args.mode == "backtest":
            return run_backtest_cmd(config, args.symbol.upper(), args.capital)
        if args.mode == "scan":
            return run_scan_cmd(config, [s.upper() for s in args.symbols], args.sector, args.date)
        return run_risk_cmd(config, args.holdings)
    except EngineError as e:
        logger.error("%s failed: %s", args.mode, e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
