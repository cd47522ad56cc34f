"""
Price-history and holdings providers. The engine only sees these interfaces;
fetch failures surface as NotFound / UpstreamUnavailable.
"""

from __future__ import annotations
import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, List, Optional, Sequence

import pandas as pd
import requests
import yaml

from quant_engine.core.errors import NotFound, UpstreamUnavailable
from quant_engine.core.types import Bar, Holding
from quant_engine.data.frames import OHLCV_COLUMNS, frame_to_bars

logger = logging.getLogger("quant_engine.data")


class PriceHistoryProvider(ABC):
    """Ordered daily bars for a symbol and optional date range."""

    @abstractmethod
    def get_history(
        self,
        symbol: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Bar]:
        """Raise NotFound if the symbol is unknown, UpstreamUnavailable if the source fails."""


class HoldingsProvider(ABC):
    """Current portfolio holdings."""

    @abstractmethod
    def get_holdings(self) -> List[Holding]:
        pass


def _clip(bars: List[Bar], start: Optional[datetime], end: Optional[datetime]) -> List[Bar]:
    def naive(d: datetime) -> datetime:
        return d.replace(tzinfo=None)
    return [
        b for b in bars
        if (start is None or naive(b.date) >= naive(start)) and (end is None or naive(b.date) <= naive(end))
    ]


class CsvHistoryProvider(PriceHistoryProvider):
    """Reads <data_dir>/<SYMBOL>.csv with columns date, open, high, low, close, volume."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)

    def _path(self, symbol: str) -> Path:
        return self.data_dir / f"{symbol.upper()}.csv"

    def get_history(
        self,
        symbol: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Bar]:
        path = self._path(symbol)
        if not path.exists():
            raise NotFound(symbol, f"no history file at {path}")
        try:
            df = pd.read_csv(path, parse_dates=["date"])
        except (ValueError, pd.errors.ParserError) as e:
            raise UpstreamUnavailable(symbol, f"unreadable history file: {e}") from e
        missing = set(OHLCV_COLUMNS) - set(df.columns)
        if missing:
            raise UpstreamUnavailable(symbol, f"history file missing columns: {sorted(missing)}")
        df = df.sort_values("date").drop_duplicates(subset="date", keep="last")
        return _clip(frame_to_bars(df), start, end)


def retry_on_rate_limit(max_retries: int = 3, base_delay: float = 1.0):
    """Decorator: retry when the upstream answers HTTP 429."""
    def decorator(f):
        def wrapped(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return f(*args, **kwargs)
                except UpstreamUnavailable as e:
                    if e.status_code == 429 and attempt < max_retries - 1:
                        delay = base_delay * (2 ** attempt)
                        logger.warning("Rate limited, retry in %.1fs (attempt %d)", delay, attempt + 1)
                        time.sleep(delay)
                    else:
                        raise
        return wrapped
    return decorator


class ChartApiHistoryProvider(PriceHistoryProvider):
    """Daily bars from a Yahoo-style chart JSON endpoint: {base_url}/{symbol}."""

    def __init__(
        self,
        base_url: str = "https://query1.finance.yahoo.com/v8/finance/chart",
        timeout: float = 10.0,
        default_lookback_days: int = 365,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.default_lookback_days = default_lookback_days

    @retry_on_rate_limit(max_retries=3, base_delay=1.0)
    def _fetch(self, symbol: str, start: datetime, end: datetime) -> dict[str, Any]:
        params = {
            "period1": int(start.timestamp()),
            "period2": int(end.timestamp()),
            "interval": "1d",
        }
        try:
            r = requests.get(
                f"{self.base_url}/{symbol}",
                params=params,
                timeout=self.timeout,
                headers={"User-Agent": "quant-engine/0.1"},
            )
        except requests.RequestException as e:
            raise UpstreamUnavailable(symbol, f"request failed: {e}") from e
        if r.status_code == 404:
            raise NotFound(symbol, "unknown symbol")
        if r.status_code != 200:
            raise UpstreamUnavailable(symbol, f"HTTP {r.status_code}: {r.text[:200]}", status_code=r.status_code)
        try:
            return r.json()
        except ValueError as e:
            raise UpstreamUnavailable(symbol, "response is not JSON") from e

    def get_history(
        self,
        symbol: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Bar]:
        end = end or datetime.now(timezone.utc)
        start = start or end - timedelta(days=self.default_lookback_days)
        if start.tzinfo is None:
            start = start.replace(tzinfo=timezone.utc)
        if end.tzinfo is None:
            end = end.replace(tzinfo=timezone.utc)
        payload = self._fetch(symbol, start, end)
        chart = payload.get("chart") or {}
        if chart.get("error"):
            raise NotFound(symbol, str(chart["error"].get("description", chart["error"])))
        results = chart.get("result") or []
        if not results or not results[0].get("timestamp"):
            raise NotFound(symbol, "no price history returned")
        result = results[0]
        quote = (result.get("indicators", {}).get("quote") or [{}])[0]
        df = pd.DataFrame({
            "date": pd.to_datetime(result["timestamp"], unit="s").normalize(),
            **{col: quote.get(col) for col in OHLCV_COLUMNS[1:]},
        })
        # Upstream pads halted sessions with nulls
        df = df.dropna(subset=OHLCV_COLUMNS).drop_duplicates(subset="date", keep="last")
        bars = frame_to_bars(df)
        logger.debug("Fetched %d bars for %s", len(bars), symbol)
        return bars


class StaticHoldingsProvider(HoldingsProvider):
    def __init__(self, holdings: Sequence[Holding]):
        self._holdings = list(holdings)

    def get_holdings(self) -> List[Holding]:
        return list(self._holdings)


class YamlHoldingsProvider(HoldingsProvider):
    """
    holdings.yaml:
      holdings:
        - {symbol: AAPL, quantity: 10, avg_price: 150.0, type: stock}
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def get_holdings(self) -> List[Holding]:
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return [
            Holding(
                symbol=str(h["symbol"]).upper(),
                quantity=float(h["quantity"]),
                avg_price=float(h["avg_price"]),
                type=h.get("type", "stock"),
                name=h.get("name", ""),
            )
            for h in data.get("holdings", [])
        ]
