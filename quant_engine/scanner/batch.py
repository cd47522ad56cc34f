"""
Batch scanner: fetch and score many symbols on a thread pool, then aggregate by
sector. A symbol that fails to fetch or score is recorded in ScanReport.errors
and left out of the results; the rest of the batch still completes.
"""

from __future__ import annotations
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, List, Optional, Union

from quant_engine.core.config import StrategyConfig
from quant_engine.core.events import EventBus, EventType
from quant_engine.core.types import Direction, Signal
from quant_engine.data.providers import PriceHistoryProvider
from quant_engine.scanner.sectors import sector_of
from quant_engine.strategies.multi_factor import score_symbol

logger = logging.getLogger("quant_engine.scanner")

TOP_SYMBOLS_PER_SECTOR = 3


@dataclass(frozen=True)
class ScanResult:
    symbol: str
    sector: str
    price: float
    signal: Signal


@dataclass(frozen=True)
class SectorSummary:
    sector: str
    symbols: int
    buy: int
    sell: int
    hold: int
    average_score: float
    top_symbols: List[str]


@dataclass
class ScanReport:
    scan_date: datetime
    results: List[ScanResult] = field(default_factory=list)
    errors: Dict[str, str] = field(default_factory=dict)
    sectors: Dict[str, SectorSummary] = field(default_factory=dict)

    @property
    def buy_signals(self) -> List[ScanResult]:
        return [r for r in self.results if r.signal.direction == Direction.BUY]


def aggregate_by_sector(results: Iterable[ScanResult]) -> Dict[str, SectorSummary]:
    """Direction counts, mean score and highest-scoring symbols per sector."""
    grouped: Dict[str, List[ScanResult]] = {}
    for r in results:
        grouped.setdefault(r.sector, []).append(r)
    summaries = {}
    for sector, items in sorted(grouped.items()):
        ranked = sorted(items, key=lambda r: (-r.signal.score, r.symbol))
        summaries[sector] = SectorSummary(
            sector=sector,
            symbols=len(items),
            buy=sum(1 for r in items if r.signal.direction == Direction.BUY),
            sell=sum(1 for r in items if r.signal.direction == Direction.SELL),
            hold=sum(1 for r in items if r.signal.direction == Direction.HOLD),
            average_score=sum(r.signal.score for r in items) / len(items),
            top_symbols=[r.symbol for r in ranked[:TOP_SYMBOLS_PER_SECTOR]],
        )
    return summaries


def _end_of_day(scan_date: Union[date, datetime]) -> datetime:
    if isinstance(scan_date, datetime):
        return scan_date.replace(tzinfo=None)
    return datetime.combine(scan_date, time.max)


class BatchScanner:
    """Scores the latest bar of each symbol without simulating trades."""

    def __init__(
        self,
        provider: PriceHistoryProvider,
        config: Optional[StrategyConfig] = None,
        max_workers: Optional[int] = None,
        lookback_days: int = 365,
        event_bus: Optional[EventBus] = None,
    ):
        self.provider = provider
        self.config = config or StrategyConfig()
        self.max_workers = max_workers or os.cpu_count() or 1
        self.lookback_days = lookback_days
        self.event_bus = event_bus

    def _publish(self, event_type: EventType, payload) -> None:
        if self.event_bus is not None:
            self.event_bus.publish(event_type, payload)

    def scan_symbol(self, symbol: str, scan_date: Optional[Union[date, datetime]] = None) -> ScanResult:
        """Fetch history up to scan_date (default: now) and score its last bar."""
        end = _end_of_day(scan_date) if scan_date is not None else datetime.now()
        start = end - timedelta(days=self.lookback_days)
        bars = self.provider.get_history(symbol, start, end)
        # providers may ignore the range; never score bars after the scan date
        bars = [b for b in bars if b.date.replace(tzinfo=None) <= end]
        signal = score_symbol(bars, self.config)
        return ScanResult(symbol=symbol, sector=sector_of(symbol), price=bars[-1].close, signal=signal)

    def scan(self, symbols: Iterable[str], scan_date: Optional[Union[date, datetime]] = None) -> ScanReport:
        unique = list(dict.fromkeys(s.strip().upper() for s in symbols if s.strip()))
        report = ScanReport(scan_date=_end_of_day(scan_date) if scan_date is not None else datetime.now())
        by_symbol: Dict[str, ScanResult] = {}
        workers = max(1, min(self.max_workers, len(unique) or 1))
        logger.info("Scanning %d symbols with %d workers", len(unique), workers)

        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {pool.submit(self.scan_symbol, s, scan_date): s for s in unique}
            for future in as_completed(futures):
                symbol = futures[future]
                try:
                    result = future.result()
                except Exception as e:
                    # isolate per-symbol failures from the batch
                    logger.warning("Failed to scan %s: %s", symbol, e)
                    report.errors[symbol] = f"{type(e).__name__}: {e}"
                    self._publish(EventType.SCAN_SYMBOL_FAILED, {"symbol": symbol, "error": report.errors[symbol]})
                    continue
                by_symbol[symbol] = result
                self._publish(EventType.SCAN_SYMBOL_COMPLETED, result)

        report.results = [by_symbol[s] for s in unique if s in by_symbol]
        report.sectors = aggregate_by_sector(report.results)
        logger.info(
            "Scan finished: %d scored, %d failed, %d buy signals",
            len(report.results), len(report.errors), len(report.buy_signals),
        )
        self._publish(EventType.SCAN_COMPLETED, report)
        return report
