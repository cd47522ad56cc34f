"""Unit tests for strategies.scoring and the multi-factor strategy."""

import pytest
from quant_engine.core.config import StrategyConfig
from quant_engine.core.errors import InsufficientData
from quant_engine.core.types import Direction, Divergence
from quant_engine.strategies.multi_factor import MultiFactorStrategy, score_symbol
from quant_engine.strategies.scoring import (
    MAX_SCORE,
    IndicatorSnapshot,
    compute_score,
    score_snapshot,
    trend_filter_passes,
    volatility_filter_passes,
)
from quant_engine.data.frames import bars_to_frame


def _crossing_snapshot(**overrides) -> IndicatorSnapshot:
    # fast EMA has just crossed above slow EMA, RSI in the momentum zone
    values = dict(
        close=110.0,
        ema_fast=105.0,
        ema_slow=104.0,
        prev_ema_fast=103.5,
        prev_ema_slow=103.8,
        rsi=55.0,
        atr=2.0,
        prev_atr=2.0,
    )
    values.update(overrides)
    return IndicatorSnapshot(**values)


def test_buy_on_crossover_with_rsi_in_zone():
    signal = score_snapshot(_crossing_snapshot(), StrategyConfig())
    assert signal.direction == Direction.BUY
    assert signal.score == 7.0
    assert signal.rsi == 55.0


def test_hold_when_rsi_overbought():
    signal = score_snapshot(_crossing_snapshot(rsi=80.0), StrategyConfig())
    assert signal.direction == Direction.HOLD
    assert signal.score == 4.0


def test_sell_on_bearish_crossover():
    snap = _crossing_snapshot(
        ema_fast=103.0, ema_slow=104.0, prev_ema_fast=104.5, prev_ema_slow=104.0,
        rsi_divergence=Divergence.BULLISH,
    )
    assert score_snapshot(snap, StrategyConfig()).direction == Direction.SELL


def test_hold_until_emas_available():
    signal = score_snapshot(IndicatorSnapshot(close=100.0, rsi=55.0), StrategyConfig())
    assert signal.direction == Direction.HOLD
    assert signal.score == 0.0
    assert signal.ema_fast is None


def test_score_bounds():
    config = StrategyConfig()
    best = _crossing_snapshot(rsi_divergence=Divergence.BULLISH, volume_divergence=Divergence.BULLISH)
    worst = _crossing_snapshot(
        ema_fast=100.0, rsi=90.0,
        rsi_divergence=Divergence.BEARISH, volume_divergence=Divergence.BEARISH,
    )
    assert compute_score(best, config) == MAX_SCORE
    assert compute_score(worst, config) == 0.0


def test_trend_filter():
    assert trend_filter_passes(_crossing_snapshot(ema_trend=100.0))
    assert not trend_filter_passes(_crossing_snapshot(ema_trend=120.0))
    assert trend_filter_passes(_crossing_snapshot(ema_trend=None))

    blocked = _crossing_snapshot(ema_trend=120.0)
    assert score_snapshot(blocked, StrategyConfig()).direction == Direction.HOLD
    assert score_snapshot(blocked, StrategyConfig(trend_filter=False)).direction == Direction.BUY


def test_volatility_filter():
    assert volatility_filter_passes(_crossing_snapshot(atr=1.7, prev_atr=2.0))
    assert not volatility_filter_passes(_crossing_snapshot(atr=1.5, prev_atr=2.0))
    assert volatility_filter_passes(_crossing_snapshot(prev_atr=None))

    collapsed = _crossing_snapshot(atr=1.0, prev_atr=2.0)
    assert score_snapshot(collapsed, StrategyConfig()).direction == Direction.HOLD
    assert score_snapshot(collapsed, StrategyConfig(volatility_filter=False)).direction == Direction.BUY


def test_rescoring_is_deterministic():
    snap = _crossing_snapshot(volume_divergence=Divergence.BEARISH)
    config = StrategyConfig()
    assert score_snapshot(snap, config) == score_snapshot(snap, config)


def test_score_symbol_insufficient_data(bar_factory):
    with pytest.raises(InsufficientData):
        score_symbol(bar_factory([100.0] * 10), StrategyConfig())


def test_score_symbol_flat_series_holds(bar_factory):
    signal = score_symbol(bar_factory([100.0] * 60), StrategyConfig())
    assert signal.direction == Direction.HOLD
    assert signal.score == 3.0  # RSI 50 sits in the momentum zone
    assert signal.rsi == pytest.approx(50.0)


def test_score_symbol_rising_series_buys(bar_factory):
    config = StrategyConfig(
        ema_fast=3, ema_slow=5, rsi_period=5, atr_period=5,
        rsi_lower=0.0, rsi_upper=100.0, score_threshold=4.0,
        trend_filter=False, volatility_filter=False,
    )
    signal = score_symbol(bar_factory([100.0 + i for i in range(30)]), config)
    assert signal.direction == Direction.BUY
    assert signal.score == 7.0
    assert signal.ema_fast > signal.ema_slow


def test_compute_indicators_columns(bar_factory):
    strategy = MultiFactorStrategy()
    df = strategy.compute_indicators(bars_to_frame(bar_factory([100.0] * 30)))
    for col in ("ema_fast", "ema_slow", "ema_trend", "rsi", "atr", "macd", "rsi_divergence", "volume_divergence"):
        assert col in df.columns
    # 30 bars: EMA(21) defined, EMA(50) and EMA(200) not yet
    assert df["ema_fast"].notna().sum() == 10
    assert df["ema_slow"].isna().all()
    assert len(strategy.generate_signals(df)) == 30
