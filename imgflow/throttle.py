from __future__ import annotations

import time
from typing import Callable, Protocol


class RateLimiter(Protocol):
    def wait(self) -> None: ...


class FixedDelayLimiter:
    """Blocks for the same delay before every call, whatever the observed load."""

    def __init__(
        self,
        delay_seconds: float,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds must not be negative: {delay_seconds}")
        self.delay_seconds = delay_seconds
        self._sleep = sleep

    def wait(self) -> None:
        if self.delay_seconds > 0:
            self._sleep(self.delay_seconds)
