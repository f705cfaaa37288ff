"""Unified exception hierarchy for history-stream."""


class HistoryStreamError(Exception):
    """Base exception for all history-stream errors."""


# Providers
class ProviderError(HistoryStreamError):
    """Base exception for history provider operations."""


class VisitFetchError(ProviderError):
    """Failed to fetch the visits of a single page."""


class HistoryReadError(ProviderError):
    """Failed to open or query a browser history database."""


# Queries
class QueryError(HistoryStreamError):
    """Malformed visit query (bad window, count or date value)."""
