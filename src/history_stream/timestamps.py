"""Conversions between epoch milliseconds and datetimes."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from dateutil import parser as date_parser

from history_stream.exceptions import QueryError

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ONE_MS = timedelta(milliseconds=1)


def ms_to_datetime(ms: int | float) -> datetime:
    """Epoch milliseconds to an aware UTC datetime, exact to the millisecond."""
    return EPOCH + timedelta(milliseconds=ms)


def datetime_to_ms(dt: datetime) -> int:
    """Aware or naive (local time) datetime to integer epoch milliseconds."""
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return (dt - EPOCH) // ONE_MS


def now() -> datetime:
    return datetime.now(timezone.utc)


def coerce_datetime(value: datetime | int | float | str | None, default: datetime) -> datetime:
    """Normalize a query bound to an aware datetime.

    Accepts datetimes (naive ones are taken as local time), epoch
    milliseconds, or any date string python-dateutil understands.
    """
    if value is None:
        return default
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.astimezone()
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return ms_to_datetime(value)
    if isinstance(value, str):
        try:
            parsed = date_parser.parse(value)
        except (ValueError, OverflowError) as e:
            raise QueryError(f"Unparseable date: {value!r}") from e
        return parsed if parsed.tzinfo is not None else parsed.astimezone()
    raise QueryError(f"Unsupported date value: {value!r}")
