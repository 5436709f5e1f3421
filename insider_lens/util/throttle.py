from __future__ import annotations

import threading
import time
from typing import Callable


class RateLimiter:
    """Enforce a fixed minimum interval between successive calls to `wait()`.

    One limiter is owned per request by the pipeline and passed to every
    component that talks to SEC endpoints. The clock and sleep functions are
    injectable so tests can run without real delays.
    """

    def __init__(
        self,
        min_interval_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.min_interval_seconds = max(0.0, float(min_interval_seconds or 0.0))
        self._clock = clock
        self._sleep = sleep
        self._last: float | None = None
        self._lock = threading.Lock()
        self.calls = 0

    def wait(self) -> float:
        """Block until the next call is allowed. Returns the seconds slept."""
        with self._lock:
            slept = 0.0
            now = self._clock()
            if self._last is not None and self.min_interval_seconds > 0:
                dt = now - self._last
                if dt < self.min_interval_seconds:
                    slept = self.min_interval_seconds - dt
                    self._sleep(slept)
            self._last = self._clock()
            self.calls += 1
            return slept
