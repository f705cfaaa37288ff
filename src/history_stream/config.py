"""Environment-driven defaults."""

from __future__ import annotations

import os

DEFAULT_PAGE_SIZE = int(os.environ.get("HISTORY_STREAM_PAGE_SIZE", "100"))

# Minimum spacing between scroll-triggered page loads.
DEFAULT_RATE_LIMIT_MS = int(os.environ.get("HISTORY_STREAM_RATE_LIMIT_MS", "50"))

# Distance from the end of the list at which the next page is requested.
DEFAULT_BUFFER_DIST = int(os.environ.get("HISTORY_STREAM_BUFFER_DIST", "200"))

CHROME_HISTORY_PATH = os.environ.get("CHROME_HISTORY_PATH", "")
SAFARI_HISTORY_PATH = os.environ.get("SAFARI_HISTORY_PATH", "")
