"""
Clock Service

Source of the integer timestamps written to `created_date` and `updated_at`.
Timestamps are nanoseconds since the Unix epoch and never go backwards, even
if the system clock is adjusted.

Usage:
    from app.services.clock import get_clock

    now = get_clock().now()
"""

import logging
import time
from abc import ABC, abstractmethod
from functools import lru_cache

logger = logging.getLogger(__name__)


class BaseClock(ABC):
    """Interface for timestamp providers."""

    @abstractmethod
    def now(self) -> int:
        """
        Return the current timestamp.

        Returns:
            int: Nanoseconds since the epoch, never lower than a previous call
        """
        pass


class SystemClock(BaseClock):
    """Wall clock clamped so that readings are non-decreasing."""

    def __init__(self):
        self._last = 0

    def now(self) -> int:
        current = time.time_ns()
        if current < self._last:
            logger.warning(
                f"System clock moved backwards by {self._last - current}ns, "
                f"holding at last reading"
            )
            current = self._last
        self._last = current
        return current


@lru_cache()
def get_clock() -> BaseClock:
    """Get the process-wide clock."""
    return SystemClock()
