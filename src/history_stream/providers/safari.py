"""Read-only history provider over Safari's History.db."""

from __future__ import annotations

import logging
import sqlite3
from contextlib import closing
from pathlib import Path

from history_stream import config
from history_stream.exceptions import HistoryReadError, VisitFetchError
from history_stream.providers.sqlite import SQLiteHistoryProvider, like_pattern
from history_stream.visits.models import HistoryItem, Transition, VisitItem

logger = logging.getLogger(__name__)

SAFARI_HISTORY_PATH = Path.home() / "Library" / "Safari" / "History.db"

# Seconds from 1970-01-01 to 2001-01-01 (Safari/WebKit epoch).
APPLE_EPOCH_OFFSET = 978307200


def safari_to_ms(ts: float) -> int:
    """Safari seconds since 2001 to epoch milliseconds."""
    # Round to microseconds first so float error cannot cross a millisecond.
    return round((float(ts) + APPLE_EPOCH_OFFSET) * 1_000_000) // 1000


def ms_to_safari(ms: int) -> float:
    return ms / 1000 - APPLE_EPOCH_OFFSET


class SafariHistoryProvider(SQLiteHistoryProvider):
    """Query Safari's History.db in place, read-only.

    Safari records no transition types, so every visit is reported as a
    link; a visit reached through a redirect refers to its redirect source.

    Args:
        history_path: Path to History.db. Defaults to SAFARI_HISTORY_PATH,
            then to ``~/Library/Safari/History.db``.
    """

    browser_name = "Safari"

    def __init__(self, history_path: str | Path | None = None):
        super().__init__(history_path or config.SAFARI_HISTORY_PATH or SAFARI_HISTORY_PATH)

    def search_pages_sync(
        self,
        text: str,
        start_time: int,
        end_time: int,
        max_results: int | None = None,
    ) -> list[HistoryItem]:
        """Pages with a visit inside the window, most recently visited first."""
        pattern = like_pattern(text or "")
        limit = -1 if max_results is None else max_results

        try:
            with closing(self._connect()) as conn:
                title_expr = self._title_expr(conn)
                visit_count_expr = (
                    "COALESCE(hi.visit_count, 0)"
                    if "visit_count" in self._columns(conn, "history_items")
                    else "0"
                )
                rows = conn.execute(
                    f"""
                    SELECT
                        hi.id AS id,
                        COALESCE(hi.url, '') AS url,
                        {title_expr} AS title,
                        {visit_count_expr} AS visit_count,
                        MAX(hv.visit_time) AS last_visit_time
                    FROM history_items hi
                    JOIN history_visits hv ON hv.history_item = hi.id
                    WHERE hv.visit_time >= ? AND hv.visit_time < ?
                      AND (hi.url LIKE ? ESCAPE '\\' OR {title_expr} LIKE ? ESCAPE '\\')
                    GROUP BY hi.id
                    ORDER BY last_visit_time DESC
                    LIMIT ?
                    """,
                    (ms_to_safari(start_time), ms_to_safari(end_time + 1), pattern, pattern, limit),
                ).fetchall()
        except sqlite3.Error as e:
            raise HistoryReadError(f"Failed querying Safari history: {e}") from e

        return [
            HistoryItem(
                url=row["url"],
                title=row["title"],
                id=str(row["id"]),
                last_visit_time=safari_to_ms(row["last_visit_time"]),
                visit_count=int(row["visit_count"]),
            )
            for row in rows
        ]

    def get_visits_sync(self, url: str) -> list[VisitItem]:
        """Every visit recorded for ``url``."""
        try:
            with closing(self._connect()) as conn:
                referrer_expr = (
                    "COALESCE(hv.redirect_source, 0)"
                    if "redirect_source" in self._columns(conn, "history_visits")
                    else "0"
                )
                rows = conn.execute(
                    f"""
                    SELECT
                        hv.id AS visit_id,
                        hv.visit_time AS visit_time,
                        {referrer_expr} AS referrer
                    FROM history_visits hv
                    JOIN history_items hi ON hi.id = hv.history_item
                    WHERE hi.url = ?
                    """,
                    (url,),
                ).fetchall()
        except (sqlite3.Error, HistoryReadError) as e:
            raise VisitFetchError(f"Failed fetching Safari visits for {url}: {e}") from e

        return [
            VisitItem(
                visit_time=safari_to_ms(row["visit_time"]),
                visit_id=str(row["visit_id"]),
                referring_visit_id=str(row["referrer"]) if row["referrer"] else "",
                transition=Transition.LINK.value,
            )
            for row in rows
        ]

    def _title_expr(self, conn: sqlite3.Connection) -> str:
        """Latest visit title where visits carry titles, else the item title."""
        if "title" in self._columns(conn, "history_visits"):
            return (
                "COALESCE((SELECT t.title FROM history_visits t WHERE t.history_item = hi.id "
                "AND t.title IS NOT NULL ORDER BY t.visit_time DESC LIMIT 1), '')"
            )
        if "title" in self._columns(conn, "history_items"):
            return "COALESCE(hi.title, '')"
        return "''"
