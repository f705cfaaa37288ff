"""Data models for history visits."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from history_stream.exceptions import QueryError
from history_stream.timestamps import EPOCH, coerce_datetime, datetime_to_ms, now


class Transition(str, Enum):
    """How the browser navigated to a visited page."""

    LINK = "link"
    TYPED = "typed"
    AUTO_BOOKMARK = "auto_bookmark"
    AUTO_SUBFRAME = "auto_subframe"
    MANUAL_SUBFRAME = "manual_subframe"
    GENERATED = "generated"
    AUTO_TOPLEVEL = "auto_toplevel"
    FORM_SUBMIT = "form_submit"
    RELOAD = "reload"
    KEYWORD = "keyword"
    KEYWORD_GENERATED = "keyword_generated"


@dataclass
class HistoryItem:
    """A distinct visited page as returned by a provider's page search."""

    url: str
    title: str = ""
    id: str = ""
    last_visit_time: int | None = None  # epoch ms
    visit_count: int = 0
    typed_count: int = 0


@dataclass
class VisitItem:
    """One visit to a page as returned by a provider."""

    visit_time: int  # epoch ms
    visit_id: str
    referring_visit_id: str = ""
    transition: str = Transition.LINK.value


@dataclass(frozen=True)
class VisitRecord:
    """A page joined with one of its visits."""

    url: str
    title: str
    datetime: int  # epoch ms
    id: str
    referring_visit_id: str
    transition: str


@dataclass(frozen=True)
class Entry:
    """A visit ready for display."""

    url: str
    title: str
    datetime: datetime


@dataclass(frozen=True)
class FilterConfig:
    """Which noise visits the filter stage drops."""

    exclude_protocol_change: bool = True
    exclude_reload_transition: bool = True


DEFAULT_FILTER_CONFIG = FilterConfig()


@dataclass(frozen=True)
class VisitQuery:
    """A normalized visit search: text filter, inclusive window and cap.

    ``max_count`` of ``None`` means no limit.
    """

    text: str
    start_datetime: datetime
    end_datetime: datetime
    max_count: int | None = None

    @classmethod
    def build(
        cls,
        text: str | None = "",
        start_datetime: datetime | int | float | str | None = None,
        end_datetime: datetime | int | float | str | None = None,
        max_count: int | None = None,
    ) -> VisitQuery:
        """Apply defaults (epoch origin to now, unbounded) and validate."""
        start = coerce_datetime(start_datetime, EPOCH)
        end = coerce_datetime(end_datetime, now())
        if start > end:
            raise QueryError(
                f"start_datetime {start.isoformat()} is after end_datetime {end.isoformat()}"
            )
        if max_count is not None and max_count < 0:
            raise QueryError(f"max_count must be non-negative, got {max_count}")
        return cls(text=text or "", start_datetime=start, end_datetime=end, max_count=max_count)

    @property
    def start_time(self) -> int:
        return datetime_to_ms(self.start_datetime)

    @property
    def end_time(self) -> int:
        return datetime_to_ms(self.end_datetime)

    def contains(self, visit_time: int) -> bool:
        return self.start_time <= visit_time <= self.end_time

    def replace(self, **changes) -> VisitQuery:
        return dataclasses.replace(self, **changes)
