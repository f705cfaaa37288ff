"""Leading-edge throttle that drops calls made inside the limit window."""

from __future__ import annotations

import time
from typing import Any, Callable


class RateLimited:
    """Wrap ``callback`` so it runs at most once per ``rate_limit_ms``.

    The first call runs immediately and opens the window. Calls arriving
    while the window is open are not queued: they go to
    ``limited_callback`` when one is given and are otherwise dropped.

    Args:
        callback: Function to rate limit.
        rate_limit_ms: Minimum spacing between calls that reach ``callback``.
        limited_callback: Called instead of ``callback`` inside the window.
        start_limited: Open a window immediately on construction.
        clock: Monotonic clock in seconds.
    """

    def __init__(
        self,
        callback: Callable[[], Any],
        rate_limit_ms: float,
        limited_callback: Callable[[], Any] | None = None,
        start_limited: bool = False,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.callback = callback
        self.rate_limit_ms = rate_limit_ms
        self.limited_callback = limited_callback
        self._clock = clock
        self._limited_until = clock() + rate_limit_ms / 1000 if start_limited else float("-inf")

    @property
    def limited(self) -> bool:
        return self._clock() < self._limited_until

    def __call__(self) -> Any:
        if not self.limited:
            self._limited_until = self._clock() + self.rate_limit_ms / 1000
            return self.callback()
        if self.limited_callback is not None:
            return self.limited_callback()
        return None
