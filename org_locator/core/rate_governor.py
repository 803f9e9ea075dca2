"""Process-wide throttle for the Overpass API."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from org_locator.core.config import get_settings

logger = logging.getLogger(__name__)


class RateGovernor:
    """Keeps governed calls at least ``min_interval`` seconds apart.

    Spacing is measured between call starts. ``clock`` and ``sleep`` are
    injectable so tests can drive time deterministically.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_start: Optional[float] = None
        self._lock = threading.Lock()

    def wait(self) -> float:
        """Block until the next call may start; return the seconds slept."""
        with self._lock:
            waited = 0.0
            if self._last_start is not None:
                delta = self._clock() - self._last_start
                if delta < self.min_interval:
                    waited = self.min_interval - delta
                    logger.debug("Throttling Overpass call for %.3fs", waited)
                    self._sleep(waited)
            self._last_start = self._clock()
            return waited


_default_governor: Optional[RateGovernor] = None


def get_default_governor() -> RateGovernor:
    """Process-wide governor, spaced by ``OVERPASS_MIN_INTERVAL_MS``."""
    global _default_governor
    if _default_governor is None:
        _default_governor = RateGovernor(min_interval=get_settings().min_interval_ms / 1000.0)
    return _default_governor
