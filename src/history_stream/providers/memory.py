"""In-process history provider backed by plain lists."""

from __future__ import annotations

import logging

from history_stream.exceptions import VisitFetchError
from history_stream.providers.base import HistoryProvider
from history_stream.visits.models import HistoryItem, Transition, VisitItem

logger = logging.getLogger(__name__)


class InMemoryHistoryProvider(HistoryProvider):
    """History provider holding pages and visits in memory.

    Args:
        fail_urls: URLs whose ``get_visits`` call raises ``VisitFetchError``.
    """

    def __init__(self, fail_urls: set[str] | None = None) -> None:
        self._titles: dict[str, str] = {}
        self._visits: dict[str, list[VisitItem]] = {}
        self._next_visit_id = 1
        self.fail_urls: set[str] = set(fail_urls or ())
        self.search_calls = 0
        self.visit_calls = 0

    def add_visit(
        self,
        url: str,
        visit_time: int,
        title: str | None = None,
        transition: str = Transition.LINK.value,
        referring_visit_id: str = "",
        visit_id: str | None = None,
    ) -> VisitItem:
        """Record one visit; the page is created on first use."""
        if title is not None or url not in self._titles:
            self._titles[url] = title or ""
        if visit_id is None:
            visit_id = str(self._next_visit_id)
            self._next_visit_id += 1
        visit = VisitItem(
            visit_time=visit_time,
            visit_id=visit_id,
            referring_visit_id=referring_visit_id,
            transition=str(getattr(transition, "value", transition)),
        )
        self._visits.setdefault(url, []).append(visit)
        return visit

    async def search_pages(
        self,
        text: str,
        start_time: int,
        end_time: int,
        max_results: int | None = None,
    ) -> list[HistoryItem]:
        self.search_calls += 1
        needle = (text or "").lower()
        pages = []
        for url, visits in self._visits.items():
            title = self._titles.get(url, "")
            if needle and needle not in url.lower() and needle not in title.lower():
                continue
            in_window = [v.visit_time for v in visits if start_time <= v.visit_time <= end_time]
            if not in_window:
                continue
            pages.append(HistoryItem(
                url=url,
                title=title,
                id=url,
                last_visit_time=max(in_window),
                visit_count=len(visits),
                typed_count=sum(1 for v in visits if v.transition == Transition.TYPED.value),
            ))

        pages.sort(key=lambda p: p.last_visit_time, reverse=True)
        if max_results is not None:
            pages = pages[:max_results]
        logger.debug("search_pages(%r, %s, %s, %s) -> %d pages",
                     text, start_time, end_time, max_results, len(pages))
        return pages

    async def get_visits(self, url: str) -> list[VisitItem]:
        self.visit_calls += 1
        if url in self.fail_urls:
            raise VisitFetchError(f"Visits unavailable for {url}")
        return list(self._visits.get(url, []))
