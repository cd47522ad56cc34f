"""Conversion between Bar sequences and OHLCV DataFrames."""

from __future__ import annotations
from typing import List, Sequence

import pandas as pd

from quant_engine.core.types import Bar

OHLCV_COLUMNS = ["date", "open", "high", "low", "close", "volume"]


def bars_to_frame(bars: Sequence[Bar]) -> pd.DataFrame:
    """
    OHLCV DataFrame with a RangeIndex and a `date` column.
    Raises ValueError unless dates are strictly ascending.
    """
    df = pd.DataFrame(
        [(b.date, b.open, b.high, b.low, b.close, b.volume) for b in bars],
        columns=OHLCV_COLUMNS,
    )
    if len(df) > 1:
        dates = pd.to_datetime(df["date"])
        if not (dates.diff().iloc[1:] > pd.Timedelta(0)).all():
            raise ValueError("bars must be strictly ascending by date with no duplicates")
    for col in OHLCV_COLUMNS[1:]:
        df[col] = df[col].astype(float)
    return df


def frame_to_bars(df: pd.DataFrame) -> List[Bar]:
    """Rows with any missing OHLCV value are dropped."""
    clean = df.dropna(subset=OHLCV_COLUMNS)
    return [
        Bar(
            date=pd.Timestamp(row.date).to_pydatetime(),
            open=float(row.open),
            high=float(row.high),
            low=float(row.low),
            close=float(row.close),
            volume=float(row.volume),
        )
        for row in clean.itertuples(index=False)
    ]


def returns_from_bars(bars: Sequence[Bar]) -> pd.Series:
    """Simple daily close-to-close returns indexed by date. Zero previous closes are skipped."""
    closes = pd.Series([b.close for b in bars], index=pd.DatetimeIndex([b.date for b in bars]), dtype=float)
    prev = closes.shift()
    returns = (closes - prev) / prev
    return returns[prev.notna() & (prev != 0)]
