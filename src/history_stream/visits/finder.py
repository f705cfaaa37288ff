"""Merged page/visit searches over a history provider."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import TYPE_CHECKING

from history_stream.timestamps import ONE_MS, ms_to_datetime
from history_stream.visits.filters import process_visits
from history_stream.visits.models import (
    DEFAULT_FILTER_CONFIG,
    Entry,
    FilterConfig,
    HistoryItem,
    VisitItem,
    VisitQuery,
    VisitRecord,
)

if TYPE_CHECKING:
    from history_stream.providers.base import HistoryProvider

logger = logging.getLogger(__name__)

DateLike = datetime | int | float | str | None


class HistoryVisitFinder:
    """Find visits by joining a provider's page search with per-page visits.

    Args:
        provider: The history provider to query.
        exhaustive_pages: Search pages without a cap and only truncate the
            merged visits. Slower, but a page left out by the provider's
            page-level cap can no longer hide visits newer than the ones
            returned.
    """

    def __init__(self, provider: HistoryProvider, exhaustive_pages: bool = False):
        self.provider = provider
        self.exhaustive_pages = exhaustive_pages

    async def get_visits_data(
        self,
        text: str = "",
        start_datetime: DateLike = None,
        end_datetime: DateLike = None,
        max_count: int | None = None,
    ) -> list[VisitRecord] | None:
        """Visits whose page url/title contains ``text`` inside the inclusive window.

        Returns at most ``max_count`` records, newest first, or ``None`` when
        the provider has no pages for the query at all.
        """
        query = VisitQuery.build(text, start_datetime, end_datetime, max_count)
        return await self._get_visits_data(query)

    async def _get_visits_data(self, query: VisitQuery) -> list[VisitRecord] | None:
        max_results = None if self.exhaustive_pages else query.max_count
        pages = await self.provider.search_pages(
            query.text, query.start_time, query.end_time, max_results
        )
        if not pages:
            return None

        results = await asyncio.gather(
            *(self.provider.get_visits(page.url) for page in pages),
            return_exceptions=True,
        )

        records: list[VisitRecord] = []
        for page, result in zip(pages, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("Could not get visits for %s: %s", page.url, result)
                continue
            records.extend(self._join(page, visit) for visit in result if query.contains(visit.visit_time))

        records.sort(key=_visit_order, reverse=True)
        if query.max_count is not None:
            records = records[:query.max_count]
        logger.debug("%d pages -> %d visits for %r", len(pages), len(records), query.text)
        return records

    @staticmethod
    def _join(page: HistoryItem, visit: VisitItem) -> VisitRecord:
        return VisitRecord(
            url=page.url,
            title=page.title,
            datetime=visit.visit_time,
            id=str(visit.visit_id),
            referring_visit_id=str(visit.referring_visit_id or ""),
            transition=str(getattr(visit.transition, "value", visit.transition)),
        )

    async def search_visits(
        self,
        text: str = "",
        start_datetime: DateLike = None,
        end_datetime: DateLike = None,
        max_count: int | None = None,
        filter_config: FilterConfig | None = None,
    ) -> list[Entry] | None:
        """Filtered display entries, newest first.

        Keeps querying until ``max_count`` raw visits are collected or the
        provider runs dry, so the filter's drops are made up for when the
        history allows it. Returns ``None`` when nothing was found.
        """
        query = VisitQuery.build(text, start_datetime, end_datetime, max_count)
        stored: list[VisitRecord] = []

        while query.max_count is None or len(stored) < query.max_count:
            remaining = None if query.max_count is None else query.max_count - len(stored)
            batch = await self._get_visits_data(query.replace(max_count=remaining))
            if not batch:
                break
            stored.extend(batch)
            if query.max_count is None:
                break
            # Continue strictly before what was already collected.
            next_end = ms_to_datetime(batch[-1].datetime) - ONE_MS
            if next_end < query.start_datetime:
                break
            query = query.replace(end_datetime=next_end)

        if not stored:
            return None
        return process_visits(stored, filter_config or DEFAULT_FILTER_CONFIG)


def _visit_order(record: VisitRecord) -> tuple:
    # Sorted in reverse: newest first, same-millisecond ties by visit id, highest first.
    return (record.datetime, _id_order(record.id))


def _id_order(visit_id: str) -> tuple:
    if visit_id.isdigit():
        return (1, int(visit_id), "")
    return (0, 0, visit_id)
