"""Row rendering and scroll handling for history pages."""

from history_stream.catalog.catalog import HistoryCatalog
from history_stream.catalog.formatting import Row, row_for, std_time_from_date, tooltip_for
from history_stream.catalog.throttle import RateLimited

__all__ = [
    "HistoryCatalog",
    "Row",
    "row_for",
    "std_time_from_date",
    "tooltip_for",
    "RateLimited",
]
