"""Data access: bar/frame conversion and external providers."""

from quant_engine.data.frames import bars_to_frame, frame_to_bars, returns_from_bars
from quant_engine.data.providers import (
    PriceHistoryProvider,
    HoldingsProvider,
    CsvHistoryProvider,
    ChartApiHistoryProvider,
    StaticHoldingsProvider,
    YamlHoldingsProvider,
)

__all__ = [
    "bars_to_frame",
    "frame_to_bars",
    "returns_from_bars",
    "PriceHistoryProvider",
    "HoldingsProvider",
    "CsvHistoryProvider",
    "ChartApiHistoryProvider",
    "StaticHoldingsProvider",
    "YamlHoldingsProvider",
]
