"""Utils: lookback ranges."""

from quant_engine.utils.timeframes import range_to_days

__all__ = ["range_to_days"]
