"""Wall-clock strings pushed into the application."""

from datetime import datetime

_WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


def local_now() -> datetime:
    """Current time, timezone-aware in the local zone."""
    return datetime.now().astimezone()


def format_today(dt: datetime) -> str:
    """``{year}-{month}-{day}`` without zero padding, e.g. ``2024-3-5``."""
    return f"{dt.year}-{dt.month}-{dt.day}"


def format_now(dt: datetime) -> str:
    """Browser-style timestamp, e.g. ``Tue Mar 05 2024 00:00:00 GMT+0000 (UTC)``.

    Day and month names are always English.
    """
    if dt.tzinfo is None:
        dt = dt.astimezone()
    offset = dt.strftime("%z") or "+0000"
    zone = dt.tzname() or "UTC"
    return (
        f"{_WEEKDAYS[dt.weekday()]} {_MONTHS[dt.month - 1]} {dt.day:02d} {dt.year:04d} "
        f"{dt:%H:%M:%S} GMT{offset} ({zone})"
    )
