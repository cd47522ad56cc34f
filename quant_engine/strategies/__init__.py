"""Strategies: base interface, scoring functions and the multi-factor strategy."""

from quant_engine.strategies.base import BaseStrategy
from quant_engine.strategies.multi_factor import MultiFactorStrategy, score_symbol
from quant_engine.strategies.scoring import IndicatorSnapshot, score_snapshot

__all__ = ["BaseStrategy", "MultiFactorStrategy", "score_symbol", "IndicatorSnapshot", "score_snapshot"]
