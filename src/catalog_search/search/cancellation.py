"""
Cooperative cancellation for long ranking passes.
"""

from __future__ import annotations

import threading
import time
from typing import Callable

from ..errors import SearchCancelled


class CancellationToken:
    """Cancel flag with an optional monotonic deadline."""

    def __init__(
        self,
        *,
        timeout_ms: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._event = threading.Event()
        self._clock = clock
        self._deadline = clock() + timeout_ms / 1000 if timeout_ms is not None else None

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        if self._event.is_set():
            return True
        return self._deadline is not None and self._clock() >= self._deadline

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise SearchCancelled("Search was cancelled.")
        if self._deadline is not None and self._clock() >= self._deadline:
            raise SearchCancelled("Search deadline exceeded.")
