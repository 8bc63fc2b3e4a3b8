"""
Phase timing for the decode and statistics steps.

Usage:
    from seqlen.timing import Timer

    with Timer("Decoding reads.bam", logger=logger) as t:
        ...
    t.duration  # seconds
"""

import logging
import time
from typing import Optional


def format_duration(seconds: float) -> str:
    """Short human-readable duration: 850us, 12.5ms, 3.20s, 4m 05s, 1h 02m."""
    if seconds < 1e-3:
        return f"{seconds * 1e6:.0f}us"
    if seconds < 1:
        return f"{seconds * 1e3:.1f}ms"
    if seconds < 60:
        return f"{seconds:.2f}s"

    minutes, secs = divmod(int(round(seconds)), 60)
    if minutes < 60:
        return f"{minutes}m {secs:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"


class Timer:
    """
    Measure a block and log how long it took.

    The message goes to `logger` at DEBUG, also when the block raises.
    """

    def __init__(self, label: str, logger: Optional[logging.Logger] = None):
        self.label = label
        self.logger = logger
        self.duration = 0.0
        self._started = 0.0

    def __enter__(self) -> "Timer":
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.duration = time.perf_counter() - self._started
        if self.logger is None:
            return
        if exc_type is None:
            self.logger.debug(f"{self.label} took {format_duration(self.duration)}")
        else:
            self.logger.debug(f"{self.label} failed after {format_duration(self.duration)}")
