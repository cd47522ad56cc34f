"""Unit tests for core.config."""

import pytest
from quant_engine.core.config import Config, StrategyConfig, load_config
from quant_engine.core.errors import InvalidConfig


def test_strategy_defaults():
    cfg = StrategyConfig()
    assert (cfg.ema_fast, cfg.ema_slow) == (21, 50)
    assert (cfg.rsi_lower, cfg.rsi_upper) == (45.0, 65.0)
    assert cfg.score_threshold == 7.0
    assert cfg.trend_filter and cfg.volatility_filter
    assert cfg.warmup_bars == 50


@pytest.mark.parametrize("kwargs", [
    {"ema_fast": 50, "ema_slow": 21},
    {"ema_fast": 0},
    {"rsi_lower": 70.0},
    {"rsi_upper": 120.0},
    {"score_threshold": 11.0},
    {"atr_multiplier": 0.0},
    {"position_fraction": 0.0},
])
def test_strategy_invalid(kwargs):
    with pytest.raises(InvalidConfig):
        StrategyConfig(**kwargs)


def test_invalid_config_is_value_error():
    with pytest.raises(ValueError):
        StrategyConfig(ema_fast=60)


def test_strategy_immutable():
    cfg = StrategyConfig()
    with pytest.raises(AttributeError):
        cfg.ema_fast = 10


def test_from_dict_aliases():
    cfg = StrategyConfig.from_dict({"emaFast": 12, "emaSlow": 26, "trendFilter": False, "rsi_lower": 40})
    assert cfg.ema_fast == 12
    assert cfg.ema_slow == 26
    assert cfg.trend_filter is False
    assert cfg.rsi_lower == 40


def test_from_dict_unknown_key():
    with pytest.raises(InvalidConfig):
        StrategyConfig.from_dict({"emaFastest": 3})


def test_load_config_yaml_and_env(tmp_path, monkeypatch):
    for key in ("EMA_FAST", "EMA_SLOW", "INITIAL_CAPITAL", "DATA_PROVIDER", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(
        "strategy:\n  ema_fast: 10\n  ema_slow: 30\n"
        "backtest:\n  initial_capital: 5000\n"
        "data:\n  provider: HTTP\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("EMA_SLOW", "40")
    cfg = load_config(path, tmp_path)
    assert cfg.ema_fast == 10
    assert cfg.ema_slow == 40
    assert cfg.initial_capital == 5000
    assert cfg.provider == "http"
    strategy = cfg.strategy_config()
    assert (strategy.ema_fast, strategy.ema_slow) == (10, 40)


def test_load_config_missing_file(tmp_path, monkeypatch):
    monkeypatch.delenv("RISK_FREE_RATE", raising=False)
    cfg = load_config(tmp_path / "absent.yaml", tmp_path)
    assert isinstance(cfg, Config)
    assert cfg.risk_free_rate == 0.045


def test_config_strategy_validation():
    with pytest.raises(InvalidConfig):
        Config(ema_fast=60, ema_slow=50).strategy_config()
