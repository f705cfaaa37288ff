"""history-stream CLI entry point.

Usage: history-stream [--browser chrome|safari] [--text TEXT] [--since DATE] [--pages N] ...
"""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from history_stream import config
from history_stream.catalog.formatting import Row, row_for
from history_stream.exceptions import HistoryStreamError
from history_stream.providers.chrome import ChromeHistoryProvider
from history_stream.providers.safari import SafariHistoryProvider
from history_stream.providers.sqlite import SQLiteHistoryProvider
from history_stream.visits.finder import HistoryVisitFinder
from history_stream.visits.models import FilterConfig
from history_stream.visits.streamer import HistoryVisitStreamer


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="history-stream",
        description="Page backward through browsing history.",
    )
    parser.add_argument(
        "--browser", choices=["chrome", "safari"], default="chrome",
        help="History database format (default: chrome)",
    )
    parser.add_argument(
        "--history-path", default=None,
        help="History DB path (default: CHROME_HISTORY_PATH / SAFARI_HISTORY_PATH or the browser default)",
    )
    parser.add_argument(
        "--profile", default="Default",
        help="Chrome profile directory name (default: Default)",
    )
    parser.add_argument(
        "--text", default="",
        help="Only pages whose url or title contains this text",
    )
    parser.add_argument(
        "--since", default=None,
        help="Earliest visit time, any date format (default: all history)",
    )
    parser.add_argument(
        "--until", default=None,
        help="Latest visit time, any date format (default: now)",
    )
    parser.add_argument(
        "--page-size", type=int, default=config.DEFAULT_PAGE_SIZE,
        help=f"Visits per page (default: {config.DEFAULT_PAGE_SIZE})",
    )
    parser.add_argument(
        "--pages", type=int, default=1,
        help="Number of pages to print, 0 for all (default: 1)",
    )
    parser.add_argument(
        "--keep-reloads", action="store_true",
        help="Do not drop a reload at the top of each page.",
    )
    parser.add_argument(
        "--keep-protocol-changes", action="store_true",
        help="Do not collapse consecutive visits that differ only by protocol.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def format_row(row: Row) -> str:
    return f"{row.timestamp:>8}  {row.text}  <{row.href}>"


def _open_provider(args: argparse.Namespace) -> SQLiteHistoryProvider:
    if args.browser == "safari":
        return SafariHistoryProvider(args.history_path)
    return ChromeHistoryProvider(args.history_path, profile=args.profile)


async def _print_pages(args: argparse.Namespace) -> int:
    filter_config = FilterConfig(
        exclude_protocol_change=not args.keep_protocol_changes,
        exclude_reload_transition=not args.keep_reloads,
    )
    async with _open_provider(args) as provider:
        streamer = HistoryVisitStreamer(
            HistoryVisitFinder(provider),
            text=args.text,
            start_datetime=args.since,
            end_datetime=args.until,
            default_page_size=args.page_size,
            filter_config=filter_config,
        )
        printed = 0
        while args.pages == 0 or printed < args.pages:
            page = await streamer.get_next()
            if page is None:
                break
            if printed:
                print()
            for entry in page:
                print(format_row(row_for(entry)))
            printed += 1
    return printed


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        printed = asyncio.run(_print_pages(args))
    except HistoryStreamError as e:
        print(f"history-stream: {e}", file=sys.stderr)
        sys.exit(1)

    if printed == 0:
        print("No history found.", file=sys.stderr)


if __name__ == "__main__":
    main()
