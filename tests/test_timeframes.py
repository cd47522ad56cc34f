"""Unit tests for utils.timeframes."""

import pytest
from quant_engine.utils.timeframes import range_to_days


def test_range_to_days():
    assert range_to_days("5d") == 5
    assert range_to_days("2w") == 14
    assert range_to_days("3mo") == 90
    assert range_to_days("1y") == 365


def test_range_invalid():
    with pytest.raises(ValueError):
        range_to_days("1x")
    with pytest.raises(ValueError):
        range_to_days("")
