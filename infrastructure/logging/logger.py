"""
Logging configuration for Vault Bridge
One stdout handler on the root logger; every module logs through
get_logger(__name__) and inherits it.
"""
import logging
import sys
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional, Tuple

from infrastructure.config.settings import settings

# Libraries that log every request or query at INFO/DEBUG
QUIET_LOGGERS = (
    "sqlalchemy.engine",
    "sqlalchemy.pool",
    "httpx",
    "httpcore",
    "web3",
)


class DeduplicationFilter(logging.Filter):
    """
    Drops an INFO/DEBUG line once the same logger has emitted it
    max_repeats times within window seconds. Warnings and errors always pass.
    """

    def __init__(
        self,
        window: float = 60,
        max_repeats: int = 3,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__()
        self.window = window
        self.max_repeats = max_repeats
        self.clock = clock
        self._seen: Dict[Tuple[str, int, str], Deque[float]] = {}

    def filter(self, record: logging.LogRecord) -> bool:
        if record.levelno >= logging.WARNING:
            return True

        now = self.clock()
        key = (record.name, record.levelno, record.getMessage())
        stamps = self._seen.setdefault(key, deque())
        while stamps and now - stamps[0] >= self.window:
            stamps.popleft()

        if len(stamps) >= self.max_repeats:
            return False
        stamps.append(now)
        self._prune(now)
        return True

    def _prune(self, now: float) -> None:
        """Forget messages whose last sighting left the window"""
        if len(self._seen) < 1024:
            return
        for key in [k for k, stamps in self._seen.items() if not stamps or now - stamps[-1] >= self.window]:
            del self._seen[key]


class _BridgeHandler(logging.StreamHandler):
    """Marker type so setup_logging can find and replace its own handler"""


def setup_logging(
    name: Optional[str] = None,
    level: Optional[str] = None,
    format_string: Optional[str] = None,
    enable_deduplication: bool = True,
) -> logging.Logger:
    """
    Configure the root logger for this process

    Safe to call more than once: the handler installed by a previous call
    is replaced, handlers installed by others are left alone.

    Args:
        name: Name of the logger to return (usually the entrypoint's __name__)
        level: Level name, defaults to LOG_LEVEL
        format_string: Record format, defaults to the configured format
        enable_deduplication: Attach a DeduplicationFilter to the handler

    Returns:
        The named logger
    """
    log_level = (level or settings.logging.level).upper()
    numeric_level = logging.getLevelName(log_level)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger()
    for handler in [h for h in root.handlers if isinstance(h, _BridgeHandler)]:
        root.removeHandler(handler)

    handler = _BridgeHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(format_string or settings.logging.format))
    if enable_deduplication:
        handler.addFilter(DeduplicationFilter(
            window=settings.logging.dedup_window_seconds,
            max_repeats=settings.logging.dedup_max_repeats,
        ))
    root.addHandler(handler)
    root.setLevel(numeric_level)

    for noisy in QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(max(numeric_level, logging.WARNING))

    return logging.getLogger(name)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
