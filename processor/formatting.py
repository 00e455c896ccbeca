"""Display labels for normalized event times."""
from datetime import date, datetime, tzinfo
from typing import Optional

from processor.models import NormalizedInterval

TBA_LABEL = "TBA"
ALL_DAY_LABEL = "All day"


def _clock(dt: datetime) -> str:
    suffix = 'AM' if dt.hour < 12 else 'PM'
    return f"{dt.hour % 12 or 12}:{dt.minute:02d} {suffix}"


def _day(dt: datetime) -> str:
    return f"{dt:%a}, {dt:%b} {dt.day}"


def format_date_range(interval: Optional[NormalizedInterval], tz: tzinfo) -> str:
    """
    Format an interval for a list card.
    
    Examples: "Sat, Jan 6" for all-day events,
    "Sat, Jan 6, 7:00 PM – 9:00 PM" for timed events.
    """
    if interval is None:
        return TBA_LABEL
    
    start = interval.start.astimezone(tz)
    if interval.is_all_day:
        return _day(start)
    
    label = f"{_day(start)}, {_clock(start)}"
    if interval.end is not None:
        label += f" – {_clock(interval.end.astimezone(tz))}"
    return label


def format_time_label(interval: Optional[NormalizedInterval], tz: tzinfo) -> str:
    """Format the time of day shown next to an event in a grid cell."""
    if interval is None:
        return TBA_LABEL
    if interval.is_all_day:
        return ALL_DAY_LABEL
    
    label = _clock(interval.start.astimezone(tz))
    if interval.end is not None:
        label += f" – {_clock(interval.end.astimezone(tz))}"
    return label


def format_month_label(month_start: date) -> str:
    return f"{month_start:%B} {month_start.year}"
