"""Sector universe used for batch scans and sector aggregation."""

MARKET_SECTORS = {
    "TECH": ["AAPL", "MSFT", "NVDA", "GOOGL", "META", "AVGO", "ORCL", "CRM"],
    "FINANCE": ["JPM", "BAC", "WFC", "GS", "MS", "V", "MA", "PYPL"],
    "CRYPTO": ["BTC-USD", "ETH-USD", "SOL-USD", "BNB-USD", "ADA-USD", "XRP-USD"],
    "ENERGY": ["XOM", "CVX", "SHEL", "BP", "TTE", "COP"],
    "HEALTHCARE": ["LLY", "UNH", "JNJ", "ABBV", "MRK", "PFE"],
    "CONSUMER": ["AMZN", "WMT", "COST", "HD", "PG", "KO", "PEP"],
    "INDICES": ["^GSPC", "^NDX", "^DJI", "^RUT"],
}

UNCLASSIFIED = "OTHER"

ALL_SYMBOLS = [s for symbols in MARKET_SECTORS.values() for s in symbols]

_SECTOR_BY_SYMBOL = {s: sector for sector, symbols in MARKET_SECTORS.items() for s in symbols}


def sector_of(symbol: str) -> str:
    return _SECTOR_BY_SYMBOL.get(symbol.upper(), UNCLASSIFIED)
