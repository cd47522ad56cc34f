"""
Backtest engine: single-symbol, long-only, one position at a time.

Entry policy: a buy signal fills at the same bar's close (never on the final bar).
Exits are checked on every later bar in this order: stop (low <= stop, fills at
stop), target (high >= target, fills at target), sell signal (fills at close).
A bar that closes a trade does not open a new one. An open position is closed
at the final close with reason end_of_data.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

import pandas as pd

from quant_engine.analytics.metrics import PerformanceMetrics, compute_metrics
from quant_engine.core.config import StrategyConfig
from quant_engine.core.errors import InvalidConfig
from quant_engine.core.events import EventBus, EventType
from quant_engine.core.types import (
    Bar,
    Direction,
    ExitReason,
    Position,
    PositionSide,
    Signal,
    TradeRecord,
)
from quant_engine.data.frames import bars_to_frame
from quant_engine.strategies.base import BaseStrategy
from quant_engine.strategies.multi_factor import MultiFactorStrategy

logger = logging.getLogger("quant_engine.backtest")


@dataclass(frozen=True)
class BacktestResult:
    """Backtest output: ledger, equity curve, metrics and the annotated bar history."""
    symbol: str
    strategy: str
    start_date: Optional[datetime]
    end_date: Optional[datetime]
    initial_capital: float
    final_capital: float
    trades: Tuple[TradeRecord, ...]
    equity_curve: Tuple[float, ...]
    metrics: PerformanceMetrics
    history: pd.DataFrame

    @property
    def total_pnl(self) -> float:
        return self.final_capital - self.initial_capital

    @property
    def total_pnl_pct(self) -> float:
        return self.total_pnl / self.initial_capital * 100.0

    @property
    def win_rate(self) -> float:
        return self.metrics.win_rate

    @property
    def profit_factor(self) -> float:
        return self.metrics.profit_factor

    @property
    def sharpe_ratio(self) -> float:
        return self.metrics.sharpe_ratio

    @property
    def max_drawdown(self) -> float:
        return self.metrics.max_drawdown_pct


def _to_datetime(value) -> datetime:
    return pd.Timestamp(value).to_pydatetime()


class BacktestEngine:
    """Walks bars in order and moves one position between FLAT and LONG."""

    def __init__(
        self,
        strategy: BaseStrategy,
        initial_capital: float = 10000.0,
        position_fraction: Optional[float] = None,
        event_bus: Optional[EventBus] = None,
        periods_per_year: float = 252.0,
    ):
        if initial_capital <= 0:
            raise InvalidConfig(f"initial_capital must be > 0, got {initial_capital}")
        config = getattr(strategy, "config", None)
        if position_fraction is None:
            position_fraction = config.position_fraction if config is not None else 1.0
        if not 0 < position_fraction <= 1:
            raise InvalidConfig(f"position_fraction must be within (0, 1], got {position_fraction}")
        self.strategy = strategy
        self.initial_capital = initial_capital
        self.position_fraction = position_fraction
        self.event_bus = event_bus
        self.periods_per_year = periods_per_year

    @property
    def _multipliers(self) -> Tuple[float, float]:
        config = getattr(self.strategy, "config", None) or StrategyConfig()
        return config.atr_multiplier, config.tp_multiplier

    def _publish(self, event_type: EventType, payload) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, payload)

    @staticmethod
    def check_exit(position: Position, low: float, high: float, close: float, signal: Signal) -> Optional[Tuple[float, ExitReason]]:
        """Exit price and reason for this bar, protective exits first. None keeps the position."""
        if low <= position.stop_price:
            return position.stop_price, ExitReason.STOP_LOSS
        if high >= position.take_profit_price:
            return position.take_profit_price, ExitReason.TAKE_PROFIT
        if signal.direction == Direction.SELL:
            return close, ExitReason.SIGNAL
        return None

    def _open(self, symbol: str, date: datetime, price: float, atr: float, cash: float) -> Position:
        atr_mult, tp_mult = self._multipliers
        position = Position(
            side=PositionSide.LONG,
            entry_date=date,
            entry_price=price,
            quantity=cash * self.position_fraction / price,
            stop_price=price - atr_mult * atr,
            take_profit_price=price + tp_mult * atr,
        )
        logger.debug("%s open LONG %.6f @ %.4f stop=%.4f tp=%.4f", symbol, position.quantity, price,
                     position.stop_price, position.take_profit_price)
        self._publish(EventType.POSITION_OPENED, {"symbol": symbol, "position": position})
        return position

    def _close(self, symbol: str, position: Position, date: datetime, price: float, reason: ExitReason) -> TradeRecord:
        pnl = (price - position.entry_price) * position.quantity
        trade = TradeRecord(
            symbol=symbol,
            entry_date=position.entry_date,
            entry_price=position.entry_price,
            exit_date=date,
            exit_price=price,
            quantity=position.quantity,
            side=position.side,
            pnl=pnl,
            pnl_percent=(price - position.entry_price) / position.entry_price * 100.0,
            risk_reward=(position.take_profit_price - position.entry_price)
            / (position.entry_price - position.stop_price),
            exit_reason=reason,
        )
        logger.debug("%s close LONG @ %.4f (%s) pnl=%.2f", symbol, price, reason.value, pnl)
        self._publish(EventType.POSITION_CLOSED, trade)
        return trade

    def run(self, df: pd.DataFrame, symbol: str = "") -> BacktestResult:
        """
        Run on an OHLCV DataFrame (columns: date, open, high, low, close, volume),
        ascending by date.
        """
        if len(df) == 0:
            logger.warning("%s: empty price history, nothing to simulate", symbol)
            return self._result(symbol, df, [], [], [])

        df = self.strategy.compute_indicators(df).reset_index(drop=True)
        if len(df) < self.strategy.warmup_bars:
            logger.warning(
                "%s: %d bars is shorter than the %d-bar warm-up, no trades",
                symbol, len(df), self.strategy.warmup_bars,
            )
        signals = self.strategy.generate_signals(df)

        dates = [_to_datetime(d) for d in df["date"]]
        highs = df["high"].to_numpy(dtype=float)
        lows = df["low"].to_numpy(dtype=float)
        closes = df["close"].to_numpy(dtype=float)
        atrs = df["atr"].to_numpy(dtype=float)
        last = len(df) - 1

        cash = self.initial_capital
        position: Optional[Position] = None
        trades: List[TradeRecord] = []
        equity_curve: List[float] = []

        for i in range(len(df)):
            if position is not None:
                hit = self.check_exit(position, lows[i], highs[i], closes[i], signals[i])
                if hit is not None:
                    price, reason = hit
                    trades.append(self._close(symbol, position, dates[i], price, reason))
                    cash += position.quantity * price
                    position = None
            elif i < last and signals[i].direction == Direction.BUY:
                atr = atrs[i]
                if not math.isnan(atr) and atr > 0:
                    position = self._open(symbol, dates[i], closes[i], atr, cash)
                    cash -= position.quantity * position.entry_price
            equity_curve.append(cash + (position.quantity * closes[i] if position is not None else 0.0))

        if position is not None:
            trades.append(self._close(symbol, position, dates[last], closes[last], ExitReason.END_OF_DATA))
            cash += position.quantity * closes[last]

        return self._result(symbol, df, signals, trades, equity_curve)

    def _result(
        self,
        symbol: str,
        df: pd.DataFrame,
        signals: Sequence[Signal],
        trades: List[TradeRecord],
        equity_curve: List[float],
    ) -> BacktestResult:
        history = df.copy()
        if len(history):
            history["direction"] = [s.direction.value for s in signals]
            history["score"] = [s.score for s in signals]
            history["equity"] = equity_curve
        final_capital = equity_curve[-1] if equity_curve else self.initial_capital
        curve = [self.initial_capital] + equity_curve
        metrics = compute_metrics(trades, curve, periods_per_year=self.periods_per_year)
        result = BacktestResult(
            symbol=symbol,
            strategy=getattr(self.strategy, "name", type(self.strategy).__name__),
            start_date=_to_datetime(df["date"].iloc[0]) if len(df) else None,
            end_date=_to_datetime(df["date"].iloc[-1]) if len(df) else None,
            initial_capital=self.initial_capital,
            final_capital=final_capital,
            trades=tuple(trades),
            equity_curve=tuple(equity_curve),
            metrics=metrics,
            history=history,
        )
        logger.info(
            "%s backtest: %d trades, final %.2f (%.2f%%), win rate %.1f%%, max DD %.2f%%",
            symbol, metrics.total_trades, final_capital, result.total_pnl_pct,
            metrics.win_rate * 100, metrics.max_drawdown_pct,
        )
        self._publish(EventType.BACKTEST_COMPLETED, result)
        return result


def run_backtest(
    symbol: str,
    bars: Sequence[Bar],
    config: Optional[StrategyConfig] = None,
    initial_capital: float = 10000.0,
    event_bus: Optional[EventBus] = None,
) -> BacktestResult:
    """Backtest the multi-factor strategy over `bars`."""
    engine = BacktestEngine(
        MultiFactorStrategy(config),
        initial_capital=initial_capital,
        event_bus=event_bus,
    )
    return engine.run(bars_to_frame(bars), symbol=symbol)
