from __future__ import annotations

import logging
import time
from collections.abc import Callable

log = logging.getLogger(__name__)


class DelayPolicy:
    """
    Politeness delays between top-level steps.

    `between_platforms()` runs before every adapter call except the first,
    `between_companies()` before every website lookup except the first.
    """

    def __init__(
        self,
        platform_seconds: float = 3.0,
        company_seconds: float = 2.0,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.platform_seconds = max(0.0, float(platform_seconds))
        self.company_seconds = max(0.0, float(company_seconds))
        self.sleep = sleep

    def between_platforms(self) -> None:
        self._pause(self.platform_seconds, "platform")

    def between_companies(self) -> None:
        self._pause(self.company_seconds, "company")

    def _pause(self, seconds: float, what: str) -> None:
        if seconds <= 0:
            return
        log.debug("sleeping %.1fs before next %s", seconds, what)
        self.sleep(seconds)


class NoDelay(DelayPolicy):
    """Zero-delay policy for tests and dry-runs; adapters handed `sleep` never block either."""

    def __init__(self) -> None:
        super().__init__(0.0, 0.0, sleep=lambda _seconds: None)
