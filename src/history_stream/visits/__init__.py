"""Visit retrieval, merging, filtering and paging."""

from history_stream.visits.models import (
    Entry,
    FilterConfig,
    HistoryItem,
    Transition,
    VisitItem,
    VisitQuery,
    VisitRecord,
)
from history_stream.visits.filters import filter_visits, process_visits, url_after_protocol
from history_stream.visits.finder import HistoryVisitFinder
from history_stream.visits.streamer import HistoryVisitStreamer, StreamState

__all__ = [
    "Entry",
    "FilterConfig",
    "HistoryItem",
    "Transition",
    "VisitItem",
    "VisitQuery",
    "VisitRecord",
    "filter_visits",
    "process_visits",
    "url_after_protocol",
    "HistoryVisitFinder",
    "HistoryVisitStreamer",
    "StreamState",
]
