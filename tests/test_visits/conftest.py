"""Shared fixtures for visit finder/streamer tests."""

import pytest

from history_stream.providers.memory import InMemoryHistoryProvider
from history_stream.visits.finder import HistoryVisitFinder
from history_stream.visits.models import VisitRecord


@pytest.fixture
def provider():
    return InMemoryHistoryProvider()


@pytest.fixture
def finder(provider):
    return HistoryVisitFinder(provider)


@pytest.fixture
def five_visits(provider):
    """Five distinct pages visited at t=10, 20, 30, 40, 50."""
    for t in (10, 20, 30, 40, 50):
        provider.add_visit(f"https://example.com/{t}", t, title=f"Page {t}")
    return provider



def _record(url, t, transition="link", visit_id=None):
    return VisitRecord(
        url=url,
        title="",
        datetime=t,
        id=str(visit_id if visit_id is not None else t),
        referring_visit_id="",
        transition=transition,
    )


@pytest.fixture
def record():
    """Factory for raw visit records: record(url, t, transition="link")."""
    return _record
