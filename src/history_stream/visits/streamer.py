"""On-demand, reverse-chronological paging through history visits."""

from __future__ import annotations

import logging
from datetime import datetime
from enum import Enum
from typing import AsyncIterator

from history_stream import config
from history_stream.exceptions import QueryError
from history_stream.timestamps import EPOCH, ONE_MS, coerce_datetime, now
from history_stream.visits.finder import DateLike, HistoryVisitFinder
from history_stream.visits.models import Entry, FilterConfig

logger = logging.getLogger(__name__)


class StreamState(str, Enum):
    ACTIVE = "active"
    EXHAUSTED = "exhausted"


class HistoryVisitStreamer:
    """Pages of visits from ``end_datetime`` (latest) back to ``start_datetime``.

    A cursor moves backward in time and serves as the end of each successive
    query. Once no more visits are found, or the cursor passes
    ``start_datetime``, the stream is exhausted for good.

    Only one ``get_next`` call may be in flight at a time.

    Args:
        finder: Finder used for every page query.
        text: Substring the page url or title must contain.
        start_datetime: Earliest visit time to stream (default: epoch origin).
        end_datetime: Latest visit time to stream (default: now).
        default_page_size: Page size when ``get_next`` is called without one.
        filter_config: Noise filter settings passed to the finder.
    """

    def __init__(
        self,
        finder: HistoryVisitFinder,
        text: str = "",
        start_datetime: DateLike = None,
        end_datetime: DateLike = None,
        default_page_size: int = config.DEFAULT_PAGE_SIZE,
        filter_config: FilterConfig | None = None,
    ):
        self.finder = finder
        self.text = text
        self.start_datetime = coerce_datetime(start_datetime, EPOCH)
        self.end_datetime = coerce_datetime(end_datetime, now())
        self.default_page_size = default_page_size
        self.filter_config = filter_config
        self._cursor = self.end_datetime
        self._state = StreamState.ACTIVE
        if self._cursor < self.start_datetime:
            self._state = StreamState.EXHAUSTED

    @property
    def cursor(self) -> datetime:
        """Inclusive upper bound of the next query."""
        return self._cursor

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def exhausted(self) -> bool:
        return self._state is StreamState.EXHAUSTED

    async def get_next(self, page_size: int | None = None) -> list[Entry] | None:
        """Next page of entries, newest first, or ``None`` once exhausted.

        A page holds ``page_size`` entries unless fewer remain or the noise
        filter dropped some.
        """
        if self.exhausted:
            return None

        if page_size is None:
            page_size = self.default_page_size
        if page_size <= 0:
            raise QueryError(f"page_size must be positive, got {page_size}")

        entries = await self.finder.search_visits(
            text=self.text,
            start_datetime=self.start_datetime,
            end_datetime=self._cursor,
            max_count=page_size,
            filter_config=self.filter_config,
        )

        if not entries:
            self._state = StreamState.EXHAUSTED
            logger.debug("History stream exhausted at %s", self._cursor.isoformat())
            return None

        self._advance_cursor(entries)
        return entries

    def _advance_cursor(self, entries: list[Entry]) -> None:
        self._cursor = entries[-1].datetime - ONE_MS
        if self._cursor < self.start_datetime:
            self._state = StreamState.EXHAUSTED

    async def __aiter__(self) -> AsyncIterator[list[Entry]]:
        while True:
            page = await self.get_next()
            if page is None:
                return
            yield page
