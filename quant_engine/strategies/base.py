"""Abstract strategy: indicators + per-bar signals."""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import List

import pandas as pd

from quant_engine.core.types import Signal


class BaseStrategy(ABC):
    """
    Strategy computes indicator columns over an OHLCV frame and turns each bar
    into a Signal. The simulator reads the "atr" column for stop/target sizing.
    """

    name: str = "strategy"

    @property
    @abstractmethod
    def warmup_bars(self) -> int:
        """Bars required before any signal can be produced."""

    @abstractmethod
    def compute_indicators(self, df: pd.DataFrame) -> pd.DataFrame:
        """Add indicator columns to OHLCV DataFrame. No lookahead."""

    @abstractmethod
    def generate_signals(self, df: pd.DataFrame) -> List[Signal]:
        """One Signal per row of an indicator frame from compute_indicators."""
