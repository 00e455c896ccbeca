"""Event processor composing card and month-grid views from raw events."""
import logging
from datetime import date, tzinfo
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from processor.content_extractor import extract
from processor.formatting import (
    format_date_range,
    format_month_label,
    format_time_label,
)
from processor.grid_builder import (
    SUNDAY,
    build_month_grid,
    shift_month,
    truncate_events,
)
from processor.models import EventCard, GridCell, RawEvent
from processor.time_normalizer import DEFAULT_TIMEZONE, normalize

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ['Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun']


class EventProcessor:
    """Processor turning raw calendar events into display-ready views."""
    
    def __init__(self, tz: Optional[tzinfo] = None, week_start: int = SUNDAY):
        """
        Initialize the processor.
        
        Args:
            tz: Viewer time zone used for labels and day boundaries
            week_start: Weekday number grid rows start on (Monday is 0)
        """
        self.tz = tz or ZoneInfo(DEFAULT_TIMEZONE)
        self.week_start = week_start
    
    def build_cards(self, raw_events: List[RawEvent]) -> List[EventCard]:
        """
        Build list-view cards for raw events.
        
        Args:
            raw_events: Raw events from the calendar feed, in display order
        
        Returns:
            One EventCard per raw event, in the same order
        """
        cards = [self._build_card(event) for event in raw_events]
        
        logger.info(f"Built {len(cards)} event cards")
        return cards
    
    def _build_card(self, event: RawEvent) -> EventCard:
        content = extract(event)
        interval = normalize(event.start, event.end, self.tz)
        
        return EventCard(
            event_id=event.id,
            title=content.title,
            image_url=content.image_url,
            ticket_url=content.ticket_url,
            date_label=format_date_range(interval, self.tz),
            location=event.location.strip() if event.location else None
        )
    
    def build_month_view(
        self,
        raw_events: List[RawEvent],
        today: date,
        reference_date: Optional[date] = None
    ) -> Dict[str, Any]:
        """
        Build the month-view payload.
        
        Args:
            raw_events: Raw events, ordered by start time
            today: Current date in the viewer's zone
            reference_date: Any day in the month to show; defaults to today
        
        Returns:
            Dictionary with the month label, navigation targets, weekday
            header and six weeks of cells, each showing at most three
            events plus a count of the rest
        """
        grid = build_month_grid(
            reference_date,
            raw_events,
            today=today,
            week_start=self.week_start,
            tz=self.tz
        )
        
        titles: Dict[str, str] = {}
        weeks = [
            [self._cell_payload(cell, titles) for cell in week]
            for week in grid.weeks
        ]
        
        logger.info(
            f"Built month view for {grid.month_start:%Y-%m} with "
            f"{len(raw_events)} events"
        )
        return {
            'month': f"{grid.month_start:%Y-%m}",
            'label': format_month_label(grid.month_start),
            'prev': f"{shift_month(grid.month_start, -1):%Y-%m}",
            'next': f"{shift_month(grid.month_start, 1):%Y-%m}",
            'weekdays': WEEKDAY_NAMES[self.week_start:] + WEEKDAY_NAMES[:self.week_start],
            'weeks': weeks
        }
    
    def _cell_payload(self, cell: GridCell, titles: Dict[str, str]) -> Dict[str, Any]:
        visible, hidden = truncate_events(cell)
        
        entries = []
        for event in visible:
            if event.id not in titles:
                titles[event.id] = extract(event).title
            entries.append({
                'id': event.id,
                'title': titles[event.id],
                'time_label': format_time_label(
                    normalize(event.start, event.end, self.tz), self.tz
                ),
                'link': event.permalink or '#'
            })
        
        return {
            'date': cell.date.isoformat(),
            'day': cell.date.day,
            'in_current_month': cell.in_current_month,
            'is_today': cell.is_today,
            'events': entries,
            'more': hidden
        }
