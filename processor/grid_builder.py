"""Month grid construction."""
import logging
import re
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from processor.models import GridCell, MonthGrid, NormalizedInterval, RawEvent
from processor.time_normalizer import DEFAULT_TIMEZONE, normalize

logger = logging.getLogger(__name__)

GRID_DAYS = 42
MAX_VISIBLE_EVENTS = 3

WEEKDAYS = {
    'monday': 0,
    'tuesday': 1,
    'wednesday': 2,
    'thursday': 3,
    'friday': 4,
    'saturday': 5,
    'sunday': 6,
}
SUNDAY = WEEKDAYS['sunday']

MONTH_PARAM_PATTERN = re.compile(r'^(\d{4})-(\d{2})$')


def parse_week_start(name: Optional[str], default: int = SUNDAY) -> int:
    """Map a weekday name to its number (Monday is 0)."""
    if not name:
        return default
    
    weekday = WEEKDAYS.get(name.strip().lower())
    if weekday is None:
        logger.warning(f"Unknown week start '{name}', using {default}")
        return default
    return weekday


def start_of_month(day: date) -> date:
    return day.replace(day=1)


def shift_month(month_start: date, months: int) -> date:
    """Return the first day of the month `months` away from month_start."""
    index = month_start.year * 12 + (month_start.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def start_of_week(day: date, week_start: int = SUNDAY) -> date:
    return day - timedelta(days=(day.weekday() - week_start) % 7)


def month_window(reference: date, week_start: int = SUNDAY) -> Tuple[date, date]:
    """
    Get the day range shown by the grid for the month of `reference`.
    
    Returns:
        Tuple of (grid_start, grid_end) where grid_end is exclusive
    """
    grid_start = start_of_week(start_of_month(reference), week_start)
    return grid_start, grid_start + timedelta(days=GRID_DAYS)


def parse_month_param(value: Optional[str]) -> Optional[date]:
    """
    Parse a ``YYYY-MM`` month selector.
    
    Returns:
        First day of that month, or None for missing or malformed values
    """
    if not value:
        return None
    
    match = MONTH_PARAM_PATTERN.match(value.strip())
    if not match:
        return None
    
    year, month = int(match.group(1)), int(match.group(2))
    if not 1 <= month <= 12 or year < 1:
        return None
    return date(year, month, 1)


def _as_date(value, tz: tzinfo) -> date:
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(tz)
        return value.date()
    return value


def _overlaps_day(
    interval: NormalizedInterval, day_start: datetime, next_day_start: datetime
) -> bool:
    # End is inclusive, so an all-day event whose end date is the next day
    # (as the feed sends it) fills both cells
    # An event without an end occupies the instant it starts at
    end = interval.end if interval.end is not None else interval.start
    return interval.start < next_day_start and end >= day_start


def build_month_grid(
    reference_date: Optional[date],
    events: Iterable[RawEvent],
    today: date,
    week_start: int = SUNDAY,
    tz: Optional[tzinfo] = None
) -> MonthGrid:
    """
    Build the 42-day grid for the month containing reference_date.
    
    Args:
        reference_date: Any day (or instant) in the month to show; today's
            month when None
        events: Raw events, in display order
        today: Current date in the viewer's zone
        week_start: Weekday number the grid rows start on (Monday is 0)
        tz: Viewer time zone that day boundaries are computed in
    
    Returns:
        MonthGrid with exactly 42 cells
    """
    tz = tz or ZoneInfo(DEFAULT_TIMEZONE)
    reference = _as_date(reference_date, tz) if reference_date else today
    
    month_start = start_of_month(reference)
    next_month_start = shift_month(month_start, 1)
    grid_start, _ = month_window(month_start, week_start)
    
    placed: List[Tuple[RawEvent, NormalizedInterval]] = []
    for event in events:
        interval = normalize(event.start, event.end, tz)
        if interval is None:
            logger.debug(f"Event {event.id} has no start, leaving it off the grid")
            continue
        placed.append((event, interval))
    
    cells = []
    for offset in range(GRID_DAYS):
        day = grid_start + timedelta(days=offset)
        day_start = datetime.combine(day, time.min, tzinfo=tz)
        next_day_start = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
        
        cells.append(GridCell(
            date=day,
            in_current_month=month_start <= day < next_month_start,
            is_today=day == today,
            events=tuple(
                event for event, interval in placed
                if _overlaps_day(interval, day_start, next_day_start)
            )
        ))
    
    return MonthGrid(month_start=month_start, week_start=week_start, cells=tuple(cells))


def truncate_events(
    cell: GridCell, limit: int = MAX_VISIBLE_EVENTS
) -> Tuple[Tuple[RawEvent, ...], int]:
    """
    Split a cell's events into the ones shown and the count left over.
    
    The cell itself keeps its full event list.
    """
    visible = cell.events[:limit]
    return visible, len(cell.events) - len(visible)
