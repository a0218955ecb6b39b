"""
Exponential-backoff retry policy for catalog loads.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry a call up to ``max_attempts`` times with capped exponential delay."""

    max_attempts: int = 3
    base_delay: float = 0.2
    max_delay: float = 5.0
    multiplier: float = 2.0
    retry_on: tuple[type[BaseException], ...] = (Exception,)
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be >= 0")
        if self.multiplier < 1:
            raise ValueError("multiplier must be >= 1")

    def delay_for(self, attempt: int) -> float:
        """Delay after the given zero-based failed attempt."""
        return min(self.base_delay * (self.multiplier**attempt), self.max_delay)

    def call(self, func: Callable[[], T]) -> T:
        for attempt in range(self.max_attempts):
            try:
                return func()
            except self.retry_on as exc:
                if attempt == self.max_attempts - 1:
                    logger.error(
                        "Catalog load failed after %d attempts: %s",
                        self.max_attempts,
                        exc,
                    )
                    raise
                delay = self.delay_for(attempt)
                logger.warning(
                    "Catalog load failed (attempt %d/%d): %s. Retrying in %.2fs",
                    attempt + 1,
                    self.max_attempts,
                    exc,
                    delay,
                )
                self.sleep(delay)
        raise AssertionError("unreachable")
