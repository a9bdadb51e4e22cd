"""Shared utility functions for the working-memory activity stream.

Timestamps are always timezone-aware UTC so that events written by
different processes compare and sort consistently.
"""

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Get current UTC datetime (timezone-aware).

    Returns:
        A timezone-aware datetime object representing the current time in UTC.

    Example:
        >>> from working_memory.core.utils import utc_now
        >>> now = utc_now()
        >>> now.tzinfo is not None
        True
    """
    return datetime.now(timezone.utc)


def to_aware_utc(dt: datetime) -> datetime:
    """Convert any datetime to timezone-aware UTC.

    This handles the conversion safely regardless of input type:
    - If naive: assumes UTC, adds tzinfo
    - If aware: converts to UTC

    Args:
        dt: A datetime object (naive or timezone-aware).

    Returns:
        A timezone-aware datetime object in UTC.
    """
    if dt.tzinfo is None:
        # Assume naive datetime is already UTC
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def duration_to_ms(duration: timedelta | float | int | None) -> int:
    """Convert a duration to whole milliseconds, truncating.

    Numbers are interpreted as seconds.  ``None``, negative values and
    numbers a ``timedelta`` cannot hold (infinity, NaN, out of range)
    yield 0.

    Example:
        >>> duration_to_ms(timedelta(seconds=1, microseconds=999))
        1000
        >>> duration_to_ms(0.25)
        250
    """
    if duration is None:
        return 0
    if not isinstance(duration, timedelta):
        try:
            duration = timedelta(seconds=duration)
        except (OverflowError, ValueError):
            return 0
    ms = duration // timedelta(milliseconds=1)
    return max(0, ms)
