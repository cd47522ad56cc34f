"""
Load configuration from config.yaml and .env. Strategy parameters become an
immutable, validated StrategyConfig per backtest or scan request.
"""

from __future__ import annotations
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv

from quant_engine.core.errors import InvalidConfig


@dataclass(frozen=True)
class StrategyConfig:
    """Multi-factor strategy parameters. Validated on construction, never mutated."""
    ema_fast: int = 21
    ema_slow: int = 50
    rsi_lower: float = 45.0
    rsi_upper: float = 65.0
    score_threshold: float = 7.0
    atr_multiplier: float = 1.5
    tp_multiplier: float = 3.0
    trend_filter: bool = True
    volatility_filter: bool = True
    rsi_period: int = 14
    atr_period: int = 14
    trend_period: int = 200
    position_fraction: float = 0.95

    def __post_init__(self) -> None:
        for name in ("ema_fast", "ema_slow", "rsi_period", "atr_period", "trend_period"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise InvalidConfig(f"{name} must be a positive integer, got {value!r}")
        if self.ema_fast >= self.ema_slow:
            raise InvalidConfig(f"ema_fast ({self.ema_fast}) must be below ema_slow ({self.ema_slow})")
        if not 0 <= self.rsi_lower < self.rsi_upper <= 100:
            raise InvalidConfig(f"RSI zone must satisfy 0 <= lower < upper <= 100, got [{self.rsi_lower}, {self.rsi_upper}]")
        if not 0 <= self.score_threshold <= 10:
            raise InvalidConfig(f"score_threshold must be within [0, 10], got {self.score_threshold}")
        if self.atr_multiplier <= 0 or self.tp_multiplier <= 0:
            raise InvalidConfig("atr_multiplier and tp_multiplier must be > 0")
        if not 0 < self.position_fraction <= 1:
            raise InvalidConfig(f"position_fraction must be within (0, 1], got {self.position_fraction}")

    @property
    def warmup_bars(self) -> int:
        """Bars needed before both EMAs and ATR are defined."""
        return max(self.ema_slow, self.atr_period, self.rsi_period + 1)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StrategyConfig":
        """Build from a loosely typed request body (camelCase or snake_case keys)."""
        aliases = {
            "emaFast": "ema_fast", "emaSlow": "ema_slow",
            "rsiLower": "rsi_lower", "rsiUpper": "rsi_upper",
            "scoreThreshold": "score_threshold",
            "atrMultiplier": "atr_multiplier", "tpMultiplier": "tp_multiplier",
            "trendFilter": "trend_filter", "volatilityFilter": "volatility_filter",
            "positionFraction": "position_fraction",
        }
        known = set(cls.__dataclass_fields__)
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = aliases.get(key, key)
            if name not in known:
                raise InvalidConfig(f"unknown strategy parameter: {key}")
            kwargs[name] = value
        return cls(**kwargs)


def _env_path(project_root: Optional[Path] = None) -> Path:
    root = project_root or Path(__file__).resolve().parents[2]
    return root / ".env"


def load_dotenv_if_exists(project_root: Optional[Path] = None) -> None:
    """Load .env from project root if present."""
    path = _env_path(project_root)
    if path.exists():
        load_dotenv(path)


def load_config(config_path: Optional[Path] = None, project_root: Optional[Path] = None) -> "Config":
    """Load config.yaml and overlay with env. Returns Config."""
    load_dotenv_if_exists(project_root)
    root = project_root or Path(__file__).resolve().parents[2]
    path = config_path or root / "config.yaml"
    data: dict[str, Any] = {}
    if path.exists():
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

    def env(key: str, default: str = "") -> str:
        return os.getenv(key, default).strip()

    def env_bool(key: str, default: bool = False) -> bool:
        return os.getenv(key, str(default)).lower() in ("true", "1", "yes")

    def env_int(key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, str(default)))
        except ValueError:
            return default

    def env_float(key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, str(default)))
        except ValueError:
            return default

    strategy = data.get("strategy", {})
    backtest = data.get("backtest", {})
    risk = data.get("risk", {})
    scanner = data.get("scanner", {})
    source = data.get("data", {})
    logging_cfg = data.get("logging", {})

    return Config(
        # Strategy
        ema_fast=env_int("EMA_FAST", strategy.get("ema_fast", 21)),
        ema_slow=env_int("EMA_SLOW", strategy.get("ema_slow", 50)),
        rsi_lower=env_float("RSI_LOWER", strategy.get("rsi_lower", 45.0)),
        rsi_upper=env_float("RSI_UPPER", strategy.get("rsi_upper", 65.0)),
        score_threshold=env_float("SCORE_THRESHOLD", strategy.get("score_threshold", 7.0)),
        atr_multiplier=env_float("ATR_MULTIPLIER", strategy.get("atr_multiplier", 1.5)),
        tp_multiplier=env_float("TP_MULTIPLIER", strategy.get("tp_multiplier", 3.0)),
        trend_filter=env_bool("TREND_FILTER", strategy.get("trend_filter", True)),
        volatility_filter=env_bool("VOLATILITY_FILTER", strategy.get("volatility_filter", True)),
        position_fraction=env_float("POSITION_FRACTION", strategy.get("position_fraction", 0.95)),
        # Backtest
        initial_capital=env_float("INITIAL_CAPITAL", backtest.get("initial_capital", 10000.0)),
        lookback=env("LOOKBACK", backtest.get("lookback", "1y")),
        # Risk
        risk_free_rate=env_float("RISK_FREE_RATE", risk.get("risk_free_rate", 0.045)),
        trading_days=env_int("TRADING_DAYS", risk.get("trading_days", 252)),
        benchmark=env("BENCHMARK", risk.get("benchmark", "^GSPC")),
        # Scanner (0 = one worker per core)
        max_workers=env_int("SCAN_MAX_WORKERS", scanner.get("max_workers", 0)),
        # Data
        provider=env("DATA_PROVIDER", source.get("provider", "csv")).lower(),
        data_dir=Path(env("DATA_DIR", str(source.get("data_dir", "data")))),
        chart_api_url=env("CHART_API_URL", source.get("chart_api_url", "https://query1.finance.yahoo.com/v8/finance/chart")),
        request_timeout=env_float("REQUEST_TIMEOUT", source.get("request_timeout", 10.0)),
        # Logging
        log_level=env("LOG_LEVEL", logging_cfg.get("level", "INFO")),
        log_dir=Path(logging_cfg.get("log_dir", "logs")),
        log_file=logging_cfg.get("log_file", "quant_engine.log"),
    )


class Config:
    """Unified application configuration. Immutable after load."""

    __slots__ = (
        "ema_fast", "ema_slow", "rsi_lower", "rsi_upper", "score_threshold",
        "atr_multiplier", "tp_multiplier", "trend_filter", "volatility_filter", "position_fraction",
        "initial_capital", "lookback",
        "risk_free_rate", "trading_days", "benchmark",
        "max_workers",
        "provider", "data_dir", "chart_api_url", "request_timeout",
        "log_level", "log_dir", "log_file",
    )

    def __init__(
        self,
        ema_fast: int = 21,
        ema_slow: int = 50,
        rsi_lower: float = 45.0,
        rsi_upper: float = 65.0,
        score_threshold: float = 7.0,
        atr_multiplier: float = 1.5,
        tp_multiplier: float = 3.0,
        trend_filter: bool = True,
        volatility_filter: bool = True,
        position_fraction: float = 0.95,
        initial_capital: float = 10000.0,
        lookback: str = "1y",
        risk_free_rate: float = 0.045,
        trading_days: int = 252,
        benchmark: str = "^GSPC",
        max_workers: int = 0,
        provider: str = "csv",
        data_dir: Path = None,
        chart_api_url: str = "https://query1.finance.yahoo.com/v8/finance/chart",
        request_timeout: float = 10.0,
        log_level: str = "INFO",
        log_dir: Path = None,
        log_file: str = "quant_engine.log",
    ):
        self.ema_fast = ema_fast
        self.ema_slow = ema_slow
        self.rsi_lower = rsi_lower
        self.rsi_upper = rsi_upper
        self.score_threshold = score_threshold
        self.atr_multiplier = atr_multiplier
        self.tp_multiplier = tp_multiplier
        self.trend_filter = trend_filter
        self.volatility_filter = volatility_filter
        self.position_fraction = position_fraction
        self.initial_capital = initial_capital
        self.lookback = lookback
        self.risk_free_rate = risk_free_rate
        self.trading_days = trading_days
        self.benchmark = benchmark
        self.max_workers = max_workers
        self.provider = provider
        self.data_dir = Path(data_dir) if data_dir else Path("data")
        self.chart_api_url = chart_api_url
        self.request_timeout = request_timeout
        self.log_level = log_level
        self.log_dir = Path(log_dir) if log_dir else Path("logs")
        self.log_file = log_file

    def strategy_config(self) -> StrategyConfig:
        """Validated strategy parameters. Raises InvalidConfig."""
        return StrategyConfig(
            ema_fast=self.ema_fast,
            ema_slow=self.ema_slow,
            rsi_lower=self.rsi_lower,
            rsi_upper=self.rsi_upper,
            score_threshold=self.score_threshold,
            atr_multiplier=self.atr_multiplier,
            tp_multiplier=self.tp_multiplier,
            trend_filter=self.trend_filter,
            volatility_filter=self.volatility_filter,
            position_fraction=self.position_fraction,
        )
