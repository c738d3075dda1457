"""Timestamp and duration formatting for TRX documents."""

import math
from datetime import datetime, timedelta

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
MINIMUM_DURATION = 0.001

_EPOCH = datetime(1970, 1, 1)


def format_timestamp(moment: datetime) -> str:
    """Format a timestamp as ``YYYY-MM-DD HH:MM:SS``."""
    return moment.strftime(TIMESTAMP_FORMAT)


def elapsed_seconds(start: datetime | None, end: datetime | None) -> float:
    """Return seconds between two timestamps, NaN when either is missing."""
    if start is None or end is None:
        return math.nan
    return (end - start).total_seconds()


def format_duration(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS.fff``.

    NaN is replaced by the minimum duration. The value is treated as an
    offset from a zero epoch, so durations of a day or more wrap around.
    """
    if math.isnan(seconds):
        seconds = MINIMUM_DURATION
    moment = _EPOCH + timedelta(milliseconds=round(seconds * 1000))
    return f"{moment:%H:%M:%S}.{moment.microsecond // 1000:03d}"


def calculate_run_time(start: datetime | None, end: datetime | None) -> str:
    """Format the time taken between ``start`` and ``end``."""
    return format_duration(elapsed_seconds(start, end))
