"""Core: config, types, errors, logging, events."""

from quant_engine.core.config import load_config, Config, StrategyConfig
from quant_engine.core.errors import (
    EngineError,
    InsufficientData,
    InvalidConfig,
    EmptyPortfolio,
    UpstreamDataError,
    NotFound,
    UpstreamUnavailable,
)
from quant_engine.core.events import EventBus, EventType
from quant_engine.core.logger import setup_logging
from quant_engine.core.types import (
    Bar,
    Direction,
    Divergence,
    ExitReason,
    Holding,
    Position,
    PositionSide,
    Signal,
    TradeRecord,
)

__all__ = [
    "load_config",
    "Config",
    "StrategyConfig",
    "EngineError",
    "InsufficientData",
    "InvalidConfig",
    "EmptyPortfolio",
    "UpstreamDataError",
    "NotFound",
    "UpstreamUnavailable",
    "EventBus",
    "EventType",
    "setup_logging",
    "Bar",
    "Direction",
    "Divergence",
    "ExitReason",
    "Holding",
    "Position",
    "PositionSide",
    "Signal",
    "TradeRecord",
]
