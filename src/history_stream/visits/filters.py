"""Noise filtering and display mapping for merged visit records."""

from __future__ import annotations

import re

from history_stream.timestamps import ms_to_datetime
from history_stream.visits.models import (
    DEFAULT_FILTER_CONFIG,
    Entry,
    FilterConfig,
    Transition,
    VisitRecord,
)

_URL_SPLIT_PROTOCOL_REST = re.compile(r"(^[^:/]+://)(.+)", re.IGNORECASE)


def url_after_protocol(url: str) -> str:
    """Part of the URL after ``scheme://``; the URL itself when it has none."""
    match = _URL_SPLIT_PROTOCOL_REST.match(url)
    if match is None:
        return url
    return match.group(2)


def filter_visits(
    visits: list[VisitRecord],
    filter_config: FilterConfig = DEFAULT_FILTER_CONFIG,
) -> list[VisitRecord]:
    """Drop noise visits from a list sorted newest first.

    The first visit is dropped if it is a reload. Every later visit is
    dropped if its URL differs from the preceding *input* element only by
    protocol (which includes being the identical URL). The comparison is
    against the raw predecessor, not the last kept visit.
    """
    kept = []
    for index, visit in enumerate(visits):
        if index > 0:
            if filter_config.exclude_protocol_change:
                previous = visits[index - 1]
                if url_after_protocol(visit.url) == url_after_protocol(previous.url):
                    continue
        elif filter_config.exclude_reload_transition:
            if visit.transition == Transition.RELOAD.value:
                continue
        kept.append(visit)
    return kept


def to_entry(visit: VisitRecord) -> Entry:
    return Entry(url=visit.url, title=visit.title, datetime=ms_to_datetime(visit.datetime))


def process_visits(
    visits: list[VisitRecord],
    filter_config: FilterConfig = DEFAULT_FILTER_CONFIG,
) -> list[Entry]:
    """Filter then map records to display entries."""
    return [to_entry(visit) for visit in filter_visits(visits, filter_config)]
