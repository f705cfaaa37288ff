"""Fixtures building a minimal Chrome History database."""

import sqlite3

import pytest

from history_stream.providers.chrome import ms_to_chrome


def _build_history_db(path, urls, visits):
    conn = sqlite3.connect(str(path))
    try:
        conn.executescript(
            """
            CREATE TABLE urls (
                id INTEGER PRIMARY KEY,
                url LONGVARCHAR,
                title LONGVARCHAR,
                visit_count INTEGER DEFAULT 0 NOT NULL,
                typed_count INTEGER DEFAULT 0 NOT NULL,
                last_visit_time INTEGER NOT NULL,
                hidden INTEGER DEFAULT 0 NOT NULL
            );
            CREATE TABLE visits (
                id INTEGER PRIMARY KEY,
                url INTEGER NOT NULL,
                visit_time INTEGER NOT NULL,
                from_visit INTEGER,
                transition INTEGER DEFAULT 0 NOT NULL
            );
            """
        )
        conn.executemany(
            "INSERT INTO urls (id, url, title, visit_count, typed_count, last_visit_time) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            urls,
        )
        conn.executemany(
            "INSERT INTO visits (id, url, visit_time, from_visit, transition) VALUES (?, ?, ?, ?, ?)",
            visits,
        )
        conn.commit()
    finally:
        conn.close()
    return path


@pytest.fixture
def history_db(tmp_path):
    """Three pages; the python.org page was visited, reloaded, then revisited over https."""
    urls = [
        (1, "http://python.org/", "Welcome to Python.org", 2, 1, ms_to_chrome(3_000)),
        (2, "https://example.com/a_b", "Example", 1, 0, ms_to_chrome(2_000)),
        (3, "https://python.org/", "Welcome to Python.org", 1, 0, ms_to_chrome(4_000)),
    ]
    visits = [
        # core type 1 (typed) with chain-start/chain-end qualifiers
        (10, 1, ms_to_chrome(1_000), 0, 0x30000001),
        (11, 1, ms_to_chrome(3_000), 10, 0x30000008),
        (12, 2, ms_to_chrome(2_000) + 500, 0, 0x00000000),
        (13, 3, ms_to_chrome(4_000), 11, 0x30000000),
    ]
    return _build_history_db(tmp_path / "History", urls, visits)
