"""History providers: in-memory, Chrome/Chromium and Safari."""

from history_stream.providers.base import HistoryProvider
from history_stream.providers.memory import InMemoryHistoryProvider
from history_stream.providers.sqlite import SQLiteHistoryProvider
from history_stream.providers.chrome import ChromeHistoryProvider
from history_stream.providers.safari import SafariHistoryProvider

__all__ = [
    "HistoryProvider",
    "InMemoryHistoryProvider",
    "SQLiteHistoryProvider",
    "ChromeHistoryProvider",
    "SafariHistoryProvider",
]
