"""
Logging for the quant_engine logger tree. Modules log under
"quant_engine.<area>"; the CLI calls setup_logging once at startup.
"""

from __future__ import annotations
import logging
import sys
from pathlib import Path
from typing import Iterable, List, Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
# HTTP chart provider; connection-pool chatter at DEBUG drowns scan output
NOISY_LOGGERS = ("urllib3",)


def setup_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_file: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> logging.Logger:
    """Attach console (and, with log_dir + log_file, file) handlers to the quant_engine logger."""
    engine_logger = logging.getLogger("quant_engine")
    engine_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in list(engine_logger.handlers):
        engine_logger.removeHandler(handler)
        handler.close()

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_dir and log_file:
        target = Path(log_dir)
        target.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(target / log_file, encoding="utf-8"))

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        engine_logger.addHandler(handler)

    for name in quiet:
        logging.getLogger(name).setLevel(logging.WARNING)
    return engine_logger
