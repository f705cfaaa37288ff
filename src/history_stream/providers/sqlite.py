"""Shared plumbing for providers that read a browser's SQLite history file."""

from __future__ import annotations

import asyncio
import logging
import shutil
import sqlite3
import tempfile
import threading
from abc import abstractmethod
from pathlib import Path

from history_stream.exceptions import HistoryReadError
from history_stream.providers.base import HistoryProvider
from history_stream.visits.models import HistoryItem, VisitItem

logger = logging.getLogger(__name__)


def like_pattern(text: str) -> str:
    """Substring LIKE pattern with ``%``, ``_`` and ``\\`` escaped (use ESCAPE '\\')."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SQLiteHistoryProvider(HistoryProvider):
    """Read-only history provider over a SQLite database file.

    Subclasses implement the blocking ``search_pages_sync`` and
    ``get_visits_sync``; the async interface runs them with
    ``asyncio.to_thread``. Browsers that lock their database while running
    set ``copy_database`` so queries go to a temporary copy instead.
    """

    browser_name = "Browser"
    copy_database = False

    def __init__(self, history_path: str | Path):
        self.history_path = Path(history_path)
        self._db_copy: Path | None = None
        self._copy_lock = threading.Lock()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Remove the temporary copy, if one was made."""
        if self._db_copy is not None:
            self._db_copy.unlink(missing_ok=True)
            self._db_copy = None

    # ---- Async interface (asyncio.to_thread) ----

    async def search_pages(
        self,
        text: str,
        start_time: int,
        end_time: int,
        max_results: int | None = None,
    ) -> list[HistoryItem]:
        return await asyncio.to_thread(
            self.search_pages_sync, text, start_time, end_time, max_results
        )

    async def get_visits(self, url: str) -> list[VisitItem]:
        return await asyncio.to_thread(self.get_visits_sync, url)

    # ---- Sync queries ----

    @abstractmethod
    def search_pages_sync(
        self,
        text: str,
        start_time: int,
        end_time: int,
        max_results: int | None = None,
    ) -> list[HistoryItem]:
        ...

    @abstractmethod
    def get_visits_sync(self, url: str) -> list[VisitItem]:
        ...

    def _connect(self) -> sqlite3.Connection:
        db_path = self._ensure_copy() if self.copy_database else self._existing_path()
        try:
            conn = sqlite3.connect(f"file:{db_path}?mode=ro", uri=True)
        except sqlite3.Error as e:
            raise HistoryReadError(
                f"Cannot open {self.browser_name} history DB {db_path}. "
                "Enable Full Disk Access for your terminal if needed."
            ) from e
        conn.row_factory = sqlite3.Row
        return conn

    def _existing_path(self) -> Path:
        if not self.history_path.exists():
            raise HistoryReadError(
                f"{self.browser_name} history DB not found at {self.history_path}"
            )
        return self.history_path

    def _ensure_copy(self) -> Path:
        with self._copy_lock:
            if self._db_copy is None:
                self._db_copy = self._copy_history()
            return self._db_copy

    def _copy_history(self) -> Path:
        """Copy the locked history DB to a temporary file."""
        source = self._existing_path()
        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(prefix="history-stream-", suffix=".db", delete=False) as tmp:
                tmp_path = Path(tmp.name)
            shutil.copy2(source, tmp_path)
        except OSError as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise HistoryReadError(
                f"Failed to copy {self.browser_name} history DB {source}: {e}"
            ) from e
        logger.debug("Copied %s to %s", source, tmp_path)
        return tmp_path

    @staticmethod
    def _columns(conn: sqlite3.Connection, table: str) -> set[str]:
        return {str(row["name"]) for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}
