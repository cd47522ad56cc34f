"""Scanner: concurrent multi-symbol scoring with sector aggregation."""

from quant_engine.scanner.batch import BatchScanner, ScanReport, ScanResult, SectorSummary, aggregate_by_sector
from quant_engine.scanner.sectors import MARKET_SECTORS, ALL_SYMBOLS, sector_of

__all__ = [
    "BatchScanner",
    "ScanReport",
    "ScanResult",
    "SectorSummary",
    "aggregate_by_sector",
    "MARKET_SECTORS",
    "ALL_SYMBOLS",
    "sector_of",
]
