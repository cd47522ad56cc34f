"""
In-memory publish/subscribe for progress events. Engines push through it when
one is supplied and run unchanged without it.
"""

from __future__ import annotations
import logging
from enum import Enum
from typing import Any, Callable, Dict, List

logger = logging.getLogger("quant_engine.events")


class EventType(str, Enum):
    POSITION_OPENED = "position_opened"
    POSITION_CLOSED = "position_closed"
    BACKTEST_COMPLETED = "backtest_completed"
    SCAN_SYMBOL_COMPLETED = "scan_symbol_completed"
    SCAN_SYMBOL_FAILED = "scan_symbol_failed"
    SCAN_COMPLETED = "scan_completed"


class EventBus:
    """Synchronous event bus. A failing subscriber is logged and skipped."""

    def __init__(self) -> None:
        self._subscribers: Dict[EventType, List[Callable[[Any], None]]] = {}

    def publish(self, event_type: EventType, payload: Any) -> None:
        logger.debug("Publishing event: %s", event_type.value)
        for callback in list(self._subscribers.get(event_type, [])):
            try:
                callback(payload)
            except Exception as e:
                logger.error("Error in event subscriber for %s: %s", event_type.value, e, exc_info=True)

    def subscribe(self, event_type: EventType, callback: Callable[[Any], None]) -> None:
        self._subscribers.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: EventType, callback: Callable[[Any], None]) -> None:
        try:
            self._subscribers.get(event_type, []).remove(callback)
        except ValueError:
            logger.warning("Callback not subscribed to %s", event_type.value)
