"""Display formatting for catalog rows."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from history_stream.visits.models import Entry


@dataclass(frozen=True)
class Row:
    """One rendered history row."""

    timestamp: str
    text: str
    href: str
    tooltip: str


def std_time_from_date(date: datetime, pm_string: str = "PM", am_string: str = "AM") -> str:
    """12-hour clock time, hours not zero-padded, e.g. ``10:23 PM``."""
    hours = date.hour
    period = pm_string if hours >= 12 else am_string
    hours = hours % 12 or 12
    return f"{hours}:{date.minute:02d} {period}"


def tooltip_for(entry: Entry) -> str:
    return f"{entry.title}\n{entry.url}" if entry.title else entry.url


def row_for(entry: Entry, local: bool = True) -> Row:
    """Build a row, showing the visit time in local time unless ``local`` is false."""
    when = entry.datetime.astimezone() if local else entry.datetime
    return Row(
        timestamp=std_time_from_date(when),
        text=entry.title or entry.url,
        href=entry.url,
        tooltip=tooltip_for(entry),
    )
