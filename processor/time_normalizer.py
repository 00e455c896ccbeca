"""Time normalization for provider start/end values."""
import logging
from datetime import date, datetime, time, tzinfo
from typing import Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil.parser import isoparse

from processor.models import EventTime, NormalizedInterval

logger = logging.getLogger(__name__)

DEFAULT_TIMEZONE = "UTC"


def get_timezone(tz_name: Optional[str], default: str = DEFAULT_TIMEZONE) -> tzinfo:
    """
    Get a ZoneInfo object for the specified timezone name.
    
    Falls back to the default zone if the name is empty or unknown.
    """
    if not tz_name or not tz_name.strip():
        return ZoneInfo(default)
    
    try:
        return ZoneInfo(tz_name.strip())
    except (ZoneInfoNotFoundError, ValueError) as e:
        logger.warning(f"Invalid timezone '{tz_name}', falling back to {default}: {e}")
        return ZoneInfo(default)


def _parse_date_time(value: EventTime, tz: tzinfo) -> Optional[datetime]:
    try:
        parsed = isoparse(value.date_time.strip())
    except (ValueError, OverflowError) as e:
        logger.debug(f"Unparsable dateTime '{value.date_time}': {e}")
        return None
    
    if parsed.tzinfo is None:
        # Offset-less timestamps are wall time in the event's own zone
        zone = get_timezone(value.time_zone) if value.time_zone else tz
        parsed = parsed.replace(tzinfo=zone)
    return parsed


def _parse_date(value: EventTime, tz: tzinfo) -> Optional[datetime]:
    try:
        day = date.fromisoformat(value.date.strip())
    except ValueError as e:
        logger.debug(f"Unparsable date '{value.date}': {e}")
        return None
    return datetime.combine(day, time.min, tzinfo=tz)


def parse_event_time(
    value: Optional[EventTime], tz: tzinfo
) -> Tuple[Optional[datetime], bool]:
    """
    Convert a provider start/end value into an aware datetime.
    
    Args:
        value: Provider value carrying either a date or a dateTime
        tz: Zone whose midnight a date-only value maps to
    
    Returns:
        Tuple of (instant, date_only). The instant is None when the value is
        missing or cannot be parsed.
    """
    if value is None:
        return None, False
    
    if value.date_time:
        parsed = _parse_date_time(value, tz)
        if parsed is not None:
            return parsed, False
    
    if value.date:
        parsed = _parse_date(value, tz)
        if parsed is not None:
            return parsed, True
    
    return None, False


def normalize(
    start: Optional[EventTime],
    end: Optional[EventTime],
    tz: Optional[tzinfo] = None
) -> Optional[NormalizedInterval]:
    """
    Normalize an event's start and end into an instant pair.
    
    Args:
        start: Provider start value
        end: Provider end value
        tz: Viewer time zone; date-only values become midnight in this zone
    
    Returns:
        NormalizedInterval, or None when there is no usable start
    """
    tz = tz or ZoneInfo(DEFAULT_TIMEZONE)
    
    start_instant, is_all_day = parse_event_time(start, tz)
    if start_instant is None:
        return None
    
    end_instant, _ = parse_event_time(end, tz)
    
    return NormalizedInterval(
        start=start_instant,
        end=end_instant,
        is_all_day=is_all_day
    )
