"""
Core data types for bars, signals, positions, trades and holdings.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class Direction(str, Enum):
    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


class Divergence(str, Enum):
    BULLISH = "bullish"
    BEARISH = "bearish"
    NONE = "none"


class PositionSide(str, Enum):
    FLAT = "flat"
    LONG = "long"


class ExitReason(str, Enum):
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"
    SIGNAL = "signal"
    END_OF_DATA = "end_of_data"


@dataclass(frozen=True)
class Bar:
    """OHLCV candle."""
    date: datetime
    open: float
    high: float
    low: float
    close: float
    volume: float

    @property
    def typical_price(self) -> float:
        return (self.high + self.low + self.close) / 3.0


@dataclass(frozen=True)
class Signal:
    """Per-bar scoring output. Indicator fields are None until the indicator is available."""
    direction: Direction
    score: float
    ema_fast: Optional[float] = None
    ema_slow: Optional[float] = None
    rsi: Optional[float] = None
    rsi_divergence: Divergence = Divergence.NONE
    volume_divergence: Divergence = Divergence.NONE

    @classmethod
    def hold(cls) -> "Signal":
        return cls(direction=Direction.HOLD, score=0.0)


@dataclass
class Position:
    """Open position inside a single simulation run."""
    side: PositionSide
    entry_date: datetime
    entry_price: float
    quantity: float
    stop_price: float
    take_profit_price: float


@dataclass(frozen=True)
class TradeRecord:
    """Closed trade. Appended to the ledger at exit time."""
    symbol: str
    entry_date: datetime
    entry_price: float
    exit_date: datetime
    exit_price: float
    quantity: float
    side: PositionSide
    pnl: float
    pnl_percent: float
    risk_reward: float
    exit_reason: ExitReason


@dataclass(frozen=True)
class Holding:
    """Portfolio holding. Read-only input to the risk engine."""
    symbol: str
    quantity: float
    avg_price: float
    type: str = "stock"
    name: str = ""
