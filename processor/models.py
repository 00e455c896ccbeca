"""Data models for calendar event rendering."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class EventTime:
    """Start or end value as supplied by the calendar provider."""
    date: Optional[str] = None
    date_time: Optional[str] = None
    time_zone: Optional[str] = None


@dataclass(frozen=True)
class Attachment:
    """File attached to a calendar event."""
    mime_type: Optional[str] = None
    file_url: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class RawEvent:
    """Calendar event as received from the feed."""
    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    permalink: Optional[str] = None
    start: Optional[EventTime] = None
    end: Optional[EventTime] = None
    attachments: Tuple[Attachment, ...] = ()


@dataclass(frozen=True)
class ExtractedContent:
    """Display fields mined from a raw event."""
    title: str
    image_url: Optional[str]
    ticket_url: Optional[str]


@dataclass(frozen=True)
class NormalizedInterval:
    """Start/end instants of an event."""
    start: datetime
    end: Optional[datetime]
    is_all_day: bool


@dataclass(frozen=True)
class GridCell:
    """One day of the month grid."""
    date: date
    in_current_month: bool
    is_today: bool
    events: Tuple[RawEvent, ...] = ()


@dataclass(frozen=True)
class MonthGrid:
    """Six full weeks covering a calendar month."""
    month_start: date
    week_start: int
    cells: Tuple[GridCell, ...] = field(default_factory=tuple)
    
    @property
    def grid_start(self) -> date:
        return self.cells[0].date
    
    @property
    def weeks(self) -> Tuple[Tuple[GridCell, ...], ...]:
        return tuple(
            self.cells[i:i + 7] for i in range(0, len(self.cells), 7)
        )


@dataclass(frozen=True)
class EventCard:
    """List-view card for one event."""
    event_id: str
    title: str
    image_url: Optional[str]
    ticket_url: Optional[str]
    date_label: str
    location: Optional[str]
