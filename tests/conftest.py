"""Shared fixtures: synthetic daily bars."""

from datetime import datetime, timedelta

import pytest

from quant_engine.core.types import Bar


def make_bars(closes, start=datetime(2024, 1, 1), spread=1.0, volume=1000.0):
    """Daily bars around the given closes: open = close, high/low = close +/- spread."""
    return [
        Bar(
            date=start + timedelta(days=i),
            open=c,
            high=c + spread,
            low=c - spread,
            close=c,
            volume=volume,
        )
        for i, c in enumerate(closes)
    ]


@pytest.fixture
def bar_factory():
    return make_bars
