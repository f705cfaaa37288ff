"""Tests for HistoryVisitFinder."""

import logging

import pytest

from history_stream.exceptions import QueryError
from history_stream.providers.memory import InMemoryHistoryProvider
from history_stream.timestamps import ms_to_datetime
from history_stream.visits.finder import HistoryVisitFinder
from history_stream.visits.models import FilterConfig, VisitRecord

KEEP_ALL = FilterConfig(exclude_protocol_change=False, exclude_reload_transition=False)


class RecordingProvider(InMemoryHistoryProvider):
    def __init__(self):
        super().__init__()
        self.max_results_seen = []

    async def search_pages(self, text, start_time, end_time, max_results=None):
        self.max_results_seen.append(max_results)
        return await super().search_pages(text, start_time, end_time, max_results)


@pytest.mark.asyncio
async def test_get_visits_data_none_without_pages(finder):
    assert await finder.get_visits_data(end_datetime=1000) is None


@pytest.mark.asyncio
async def test_get_visits_data_merges_pages_and_sorts(provider, finder):
    provider.add_visit("https://a.com/", 10, title="A")
    provider.add_visit("https://b.com/", 30, title="B")
    provider.add_visit("https://a.com/", 20)

    records = await finder.get_visits_data(end_datetime=1000)

    assert [(r.url, r.datetime) for r in records] == [
        ("https://b.com/", 30),
        ("https://a.com/", 20),
        ("https://a.com/", 10),
    ]
    assert all(isinstance(r, VisitRecord) for r in records)
    assert records[1].title == "A"


@pytest.mark.asyncio
async def test_get_visits_data_window_is_inclusive(provider, finder):
    for t in (99, 100, 150, 200, 201):
        provider.add_visit("https://a.com/", t)

    records = await finder.get_visits_data(start_datetime=100, end_datetime=200)

    assert [r.datetime for r in records] == [200, 150, 100]


@pytest.mark.asyncio
async def test_get_visits_data_truncates_to_max_count(five_visits, finder):
    records = await finder.get_visits_data(end_datetime=1000, max_count=2)
    assert [r.datetime for r in records] == [50, 40]


@pytest.mark.asyncio
async def test_get_visits_data_joins_visit_fields(provider, finder):
    provider.add_visit("https://a.com/", 10, title="A", transition="typed",
                       referring_visit_id="7", visit_id="42")

    [rec] = await finder.get_visits_data(end_datetime=1000)

    assert rec == VisitRecord(
        url="https://a.com/", title="A", datetime=10, id="42",
        referring_visit_id="7", transition="typed",
    )


@pytest.mark.asyncio
async def test_get_visits_data_breaks_ties_by_visit_id(provider, finder):
    provider.add_visit("https://a.com/", 10, visit_id="3")
    provider.add_visit("https://b.com/", 10, visit_id="11")

    records = await finder.get_visits_data(end_datetime=1000)

    assert [r.id for r in records] == ["11", "3"]


@pytest.mark.asyncio
async def test_get_visits_data_breaks_ties_by_text_id_descending(provider, finder):
    provider.add_visit("https://a.com/", 10, visit_id="a")
    provider.add_visit("https://b.com/", 10, visit_id="ab")
    provider.add_visit("https://c.com/", 10, visit_id="b")
    provider.add_visit("https://d.com/", 20, visit_id="a")

    records = await finder.get_visits_data(end_datetime=1000)

    assert [(r.datetime, r.id) for r in records] == [(20, "a"), (10, "b"), (10, "ab"), (10, "a")]


@pytest.mark.asyncio
async def test_partial_failure_keeps_other_pages(provider, finder, caplog):
    provider.add_visit("https://ok.com/", 20)
    provider.add_visit("https://broken.com/", 30)
    provider.fail_urls.add("https://broken.com/")

    with caplog.at_level(logging.WARNING, logger="history_stream.visits.finder"):
        entries = await finder.search_visits(end_datetime=1000)

    assert [e.url for e in entries] == ["https://ok.com/"]
    assert "https://broken.com/" in caplog.text


@pytest.mark.asyncio
async def test_all_pages_failing_yields_empty_list(provider, finder):
    provider.add_visit("https://broken.com/", 30)
    provider.fail_urls.add("https://broken.com/")

    assert await finder.get_visits_data(end_datetime=1000) == []


@pytest.mark.asyncio
async def test_start_after_end_raises(finder):
    with pytest.raises(QueryError, match="after end_datetime"):
        await finder.get_visits_data(start_datetime=200, end_datetime=100)


@pytest.mark.asyncio
async def test_negative_max_count_raises(finder):
    with pytest.raises(QueryError, match="non-negative"):
        await finder.search_visits(end_datetime=100, max_count=-1)


@pytest.mark.asyncio
async def test_accepts_date_strings(provider, finder):
    provider.add_visit("https://a.com/", 1_500)
    provider.add_visit("https://b.com/", 2_500)

    records = await finder.get_visits_data(
        start_datetime="1970-01-01T00:00:01Z",
        end_datetime="1970-01-01T00:00:02Z",
    )

    assert [r.datetime for r in records] == [1_500]


@pytest.mark.asyncio
async def test_text_filters_pages(provider, finder):
    provider.add_visit("https://docs.python.org/3/", 10, title="Python docs")
    provider.add_visit("https://example.com/", 20, title="Example")

    records = await finder.get_visits_data(text="PYTHON", end_datetime=1000)

    assert [r.url for r in records] == ["https://docs.python.org/3/"]


@pytest.mark.asyncio
async def test_page_cap_follows_max_count():
    provider = RecordingProvider()
    provider.add_visit("https://a.com/", 10)
    await HistoryVisitFinder(provider).get_visits_data(end_datetime=1000, max_count=5)
    assert provider.max_results_seen == [5]


@pytest.mark.asyncio
async def test_exhaustive_pages_searches_without_cap():
    provider = RecordingProvider()
    for t in (10, 20, 30):
        provider.add_visit(f"https://a.com/{t}", t)

    records = await HistoryVisitFinder(provider, exhaustive_pages=True).get_visits_data(
        end_datetime=1000, max_count=2
    )

    assert provider.max_results_seen == [None]
    assert [r.datetime for r in records] == [30, 20]


@pytest.mark.asyncio
async def test_search_visits_none_when_nothing_found(finder):
    assert await finder.search_visits(end_datetime=1000, max_count=10) is None


@pytest.mark.asyncio
async def test_search_visits_scenario_reload_after_link(provider, finder):
    provider.add_visit("http://x.com/a", 100, title="A", transition="link")
    provider.add_visit("http://x.com/a", 50, transition="reload")

    entries = await finder.search_visits(start_datetime=0, end_datetime=200)

    assert [(e.url, e.title, e.datetime) for e in entries] == [
        ("http://x.com/a", "A", ms_to_datetime(100)),
    ]


@pytest.mark.asyncio
async def test_search_visits_collapses_protocol_change(provider, finder):
    provider.add_visit("http://y.com/p", 300)
    provider.add_visit("https://y.com/p", 299)

    entries = await finder.search_visits(end_datetime=1000)

    assert [e.datetime for e in entries] == [ms_to_datetime(300)]


@pytest.mark.asyncio
async def test_search_visits_does_not_refetch_collected_visits(five_visits, finder):
    entries = await finder.search_visits(end_datetime=1000, max_count=8, filter_config=KEEP_ALL)

    assert [e.datetime for e in entries] == [ms_to_datetime(t) for t in (50, 40, 30, 20, 10)]
    # One call that collects everything, one that finds nothing older.
    assert five_visits.search_calls == 2


@pytest.mark.asyncio
async def test_search_visits_unbounded_makes_single_query(five_visits, finder):
    entries = await finder.search_visits(end_datetime=1000)
    assert len(entries) == 5
    assert five_visits.search_calls == 1


@pytest.mark.asyncio
async def test_search_visits_collects_raw_count_before_filtering(provider, finder):
    provider.add_visit("http://a.com/", 40)
    provider.add_visit("https://a.com/", 30)
    provider.add_visit("https://b.com/", 20)
    provider.add_visit("https://c.com/", 10)

    entries = await finder.search_visits(end_datetime=1000, max_count=3)

    # Three raw visits were collected; the protocol change was then dropped.
    assert [e.url for e in entries] == ["http://a.com/", "https://b.com/"]
