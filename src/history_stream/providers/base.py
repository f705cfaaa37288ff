"""Abstract base class for history providers."""

from __future__ import annotations

from abc import ABC, abstractmethod

from history_stream.visits.models import HistoryItem, VisitItem


class HistoryProvider(ABC):
    """Async interface to a browser's history search API.

    Times are epoch milliseconds. ``max_results`` of ``None`` asks for every
    matching page.
    """

    @abstractmethod
    async def search_pages(
        self,
        text: str,
        start_time: int,
        end_time: int,
        max_results: int | None = None,
    ) -> list[HistoryItem]:
        """Pages whose url or title contains ``text`` visited within the window."""
        ...

    @abstractmethod
    async def get_visits(self, url: str) -> list[VisitItem]:
        """Every recorded visit to ``url``, in no particular order."""
        ...
