"""Read-only history provider over a Chrome/Chromium History database."""

from __future__ import annotations

import logging
import sqlite3
import sys
from contextlib import closing
from pathlib import Path

from history_stream import config
from history_stream.exceptions import HistoryReadError, VisitFetchError
from history_stream.providers.sqlite import SQLiteHistoryProvider, like_pattern
from history_stream.visits.models import HistoryItem, Transition, VisitItem

logger = logging.getLogger(__name__)

# Milliseconds from 1601-01-01 to 1970-01-01 (Chrome epoch).
CHROME_EPOCH_OFFSET_MS = 11644473600 * 1000

# Low byte of visits.transition is the core transition type.
CORE_MASK = 0xFF

# Indexed by core transition type.
CHROME_TRANSITIONS = [
    Transition.LINK,
    Transition.TYPED,
    Transition.AUTO_BOOKMARK,
    Transition.AUTO_SUBFRAME,
    Transition.MANUAL_SUBFRAME,
    Transition.GENERATED,
    Transition.AUTO_TOPLEVEL,
    Transition.FORM_SUBMIT,
    Transition.RELOAD,
    Transition.KEYWORD,
    Transition.KEYWORD_GENERATED,
]


def chrome_base_path() -> Path:
    """Platform default Chrome user data directory."""
    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Application Support" / "Google" / "Chrome"
    if sys.platform.startswith("win"):
        return home / "AppData" / "Local" / "Google" / "Chrome" / "User Data"
    return home / ".config" / "google-chrome"


def chrome_to_ms(ts: int) -> int:
    """Chrome microseconds since 1601 to epoch milliseconds."""
    return int(ts) // 1000 - CHROME_EPOCH_OFFSET_MS


def ms_to_chrome(ms: int) -> int:
    return (int(ms) + CHROME_EPOCH_OFFSET_MS) * 1000


def transition_name(raw: int | None) -> str:
    core = int(raw or 0) & CORE_MASK
    if core < len(CHROME_TRANSITIONS):
        return CHROME_TRANSITIONS[core].value
    return Transition.LINK.value


class ChromeHistoryProvider(SQLiteHistoryProvider):
    """Query a Chrome profile's History database.

    Chrome locks History while running, so queries go to a temporary copy
    made on first use. Call ``close()`` (or use ``async with``) to remove it.

    Args:
        history_path: Path to a History file. Defaults to CHROME_HISTORY_PATH,
            then to ``profile`` under the platform's Chrome directory.
        profile: Chrome profile directory name.
    """

    browser_name = "Chrome"
    copy_database = True

    def __init__(self, history_path: str | Path | None = None, profile: str = "Default"):
        if not history_path:
            history_path = config.CHROME_HISTORY_PATH or chrome_base_path() / profile / "History"
        super().__init__(history_path)

    def search_pages_sync(
        self,
        text: str,
        start_time: int,
        end_time: int,
        max_results: int | None = None,
    ) -> list[HistoryItem]:
        """Pages with a visit inside the window, most recently visited first."""
        # Inclusive at millisecond resolution.
        chrome_start = ms_to_chrome(start_time)
        chrome_end = ms_to_chrome(end_time + 1) - 1
        pattern = like_pattern(text or "")
        limit = -1 if max_results is None else max_results

        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(
                    """
                    SELECT
                        u.id AS id,
                        COALESCE(u.url, '') AS url,
                        COALESCE(u.title, '') AS title,
                        COALESCE(u.visit_count, 0) AS visit_count,
                        COALESCE(u.typed_count, 0) AS typed_count,
                        MAX(v.visit_time) AS last_visit_time
                    FROM urls u
                    JOIN visits v ON v.url = u.id
                    WHERE v.visit_time BETWEEN ? AND ?
                      AND (u.url LIKE ? ESCAPE '\\' OR u.title LIKE ? ESCAPE '\\')
                    GROUP BY u.id
                    ORDER BY last_visit_time DESC
                    LIMIT ?
                    """,
                    (chrome_start, chrome_end, pattern, pattern, limit),
                ).fetchall()
        except sqlite3.Error as e:
            raise HistoryReadError(f"Failed querying Chrome history: {e}") from e

        return [
            HistoryItem(
                url=row["url"],
                title=row["title"],
                id=str(row["id"]),
                last_visit_time=chrome_to_ms(row["last_visit_time"]),
                visit_count=int(row["visit_count"]),
                typed_count=int(row["typed_count"]),
            )
            for row in rows
        ]

    def get_visits_sync(self, url: str) -> list[VisitItem]:
        """Every visit recorded for ``url``."""
        try:
            with closing(self._connect()) as conn:
                rows = conn.execute(
                    """
                    SELECT
                        v.id AS visit_id,
                        v.visit_time AS visit_time,
                        COALESCE(v.from_visit, 0) AS from_visit,
                        COALESCE(v.transition, 0) AS transition
                    FROM visits v
                    JOIN urls u ON u.id = v.url
                    WHERE u.url = ?
                    """,
                    (url,),
                ).fetchall()
        except (sqlite3.Error, HistoryReadError) as e:
            raise VisitFetchError(f"Failed fetching Chrome visits for {url}: {e}") from e

        return [
            VisitItem(
                visit_time=chrome_to_ms(row["visit_time"]),
                visit_id=str(row["visit_id"]),
                referring_visit_id=str(row["from_visit"]) if row["from_visit"] else "",
                transition=transition_name(row["transition"]),
            )
            for row in rows
        ]
