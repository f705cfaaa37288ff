"""Scroll-driven catalog that renders history pages as rows."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable

from history_stream import config
from history_stream.catalog.formatting import Row, row_for
from history_stream.catalog.throttle import RateLimited
from history_stream.visits.streamer import HistoryVisitStreamer

logger = logging.getLogger(__name__)


class HistoryCatalog:
    """Feed rows from a streamer to a renderer as the user scrolls.

    Args:
        streamer: Source of history pages.
        render_row: Called once per row, in display order.
        buffer_dist: Remaining scroll distance that triggers the next page.
        rate_limit_ms: Minimum spacing between scroll-triggered loads. A scroll
            that arrives while a page is still loading starts nothing.

    Call ``start()`` once from a running event loop to fill the first screen.
    """

    def __init__(
        self,
        streamer: HistoryVisitStreamer,
        render_row: Callable[[Row], None],
        buffer_dist: int = config.DEFAULT_BUFFER_DIST,
        rate_limit_ms: float = config.DEFAULT_RATE_LIMIT_MS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.streamer = streamer
        self.render_row = render_row
        self.buffer_dist = buffer_dist
        self.rows_rendered = 0
        self._tasks: set[asyncio.Task] = set()
        self._load_lock = asyncio.Lock()
        self._load_on_reached_end = RateLimited(self._schedule_block, rate_limit_ms, clock=clock)

    def start(self) -> asyncio.Task | None:
        """Load the first page without waiting for a scroll event."""
        return self._schedule_block()

    async def load_block(self) -> list[Row]:
        """Fetch the next page and render it. Renders nothing once exhausted."""
        async with self._load_lock:
            if self.streamer.exhausted:
                return []
            entries = await self.streamer.get_next()
            if entries is None:
                return []
            rows = [row_for(entry) for entry in entries]
            for row in rows:
                self.render_row(row)
            self.rows_rendered += len(rows)
            return rows

    def on_scroll(self, scroll_top: float, scroll_top_max: float) -> asyncio.Task | None:
        """Handle a scroll event; returns the load task when one was started."""
        if scroll_top_max - scroll_top >= self.buffer_dist:
            return None
        logger.debug("Scrolled to bottom (%s/%s)", scroll_top, scroll_top_max)
        return self._load_on_reached_end()

    def _schedule_block(self) -> asyncio.Task | None:
        if self._tasks:
            logger.debug("Page load already in flight, skipping")
            return None
        task = asyncio.get_running_loop().create_task(self.load_block())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait_idle(self) -> None:
        """Wait for scroll-triggered loads still in flight."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))
