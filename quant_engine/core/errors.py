"""
Engine error taxonomy. Zero-variance statistics never raise; see analytics.metrics.
"""

from __future__ import annotations
from typing import Optional


class EngineError(Exception):
    """Base class for engine errors."""


class InsufficientData(EngineError):
    """Series shorter than the lookback an indicator or check needs. Callers degrade, not abort."""

    def __init__(self, required: int, available: int, what: str = "series"):
        self.required = required
        self.available = available
        super().__init__(f"{what} needs {required} observations, got {available}")


class InvalidConfig(EngineError, ValueError):
    """Strategy or engine configuration rejected before any simulation starts."""


class EmptyPortfolio(EngineError, ValueError):
    """No holdings (or zero total value) to analyze."""


class UpstreamDataError(EngineError):
    """Raised by price-history providers. Surfaced to the caller as-is."""

    def __init__(self, symbol: str, message: str = "", status_code: Optional[int] = None):
        self.symbol = symbol
        self.status_code = status_code
        super().__init__(f"{symbol}: {message}" if message else symbol)


class NotFound(UpstreamDataError):
    """Provider has no history for the symbol."""


class UpstreamUnavailable(UpstreamDataError):
    """Provider could not be reached or returned an unusable response."""
