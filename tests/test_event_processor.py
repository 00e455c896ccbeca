"""Unit tests for EventProcessor."""
from datetime import date
from zoneinfo import ZoneInfo

import pytest

from processor.event_processor import EventProcessor
from processor.models import Attachment, EventTime, RawEvent

TODAY = date(2026, 10, 19)


@pytest.fixture
def sample_events():
    """Create sample raw events."""
    return [
        RawEvent(
            id='evt1',
            title='Live Music Night',
            description=(
                '<a href="https://www.google.com/url?q=https://tix.example.com/band&amp;sa=D">Tickets</a>\n'
                'Image: https://cdn.example.com/band.jpg'
            ),
            location=' Spanish Springs ',
            permalink='https://www.google.com/calendar/event?eid=evt1',
            start=EventTime(date_time='2026-10-03T19:00:00Z'),
            end=EventTime(date_time='2026-10-03T21:00:00Z')
        ),
        RawEvent(
            id='evt2',
            description='Harvest Market\nLocal vendors all day',
            permalink='https://www.google.com/calendar/event?eid=evt2',
            start=EventTime(date='2026-10-03'),
            attachments=(Attachment(mime_type='image/jpeg', file_url='https://files.example.com/market'),)
        ),
        RawEvent(id='evt3', title='Date to be announced')
    ]


class TestBuildCards:
    """Test cases for list-view cards."""
    
    def test_build_cards(self, sample_events):
        """Test card fields for mixed events."""
        processor = EventProcessor(tz=ZoneInfo('UTC'))
        
        cards = processor.build_cards(sample_events)
        
        assert [card.event_id for card in cards] == ['evt1', 'evt2', 'evt3']
        
        music = cards[0]
        assert music.title == 'Live Music Night'
        assert music.image_url == 'https://cdn.example.com/band.jpg'
        assert music.ticket_url == 'https://tix.example.com/band'
        assert music.date_label == 'Sat, Oct 3, 7:00 PM – 9:00 PM'
        assert music.location == 'Spanish Springs'
        
        market = cards[1]
        assert market.title == 'Harvest Market'
        assert market.image_url == 'https://files.example.com/market'
        assert market.ticket_url == 'https://www.google.com/calendar/event?eid=evt2'
        assert market.date_label == 'Sat, Oct 3'
        assert market.location is None
        
        tba = cards[2]
        assert tba.date_label == 'TBA'
        assert tba.image_url is None
        assert tba.ticket_url is None
    
    def test_build_cards_empty(self):
        """Test that no events produce no cards."""
        assert EventProcessor().build_cards([]) == []
    
    def test_labels_use_processor_zone(self, sample_events):
        """Test labels are rendered in the configured zone."""
        processor = EventProcessor(tz=ZoneInfo('America/Los_Angeles'))
        
        cards = processor.build_cards(sample_events[:1])
        
        assert cards[0].date_label == 'Sat, Oct 3, 12:00 PM – 2:00 PM'


class TestBuildMonthView:
    """Test cases for the month-view payload."""
    
    def test_month_view_payload(self, sample_events):
        """Test header, navigation and cell contents."""
        processor = EventProcessor(tz=ZoneInfo('UTC'))
        
        view = processor.build_month_view(sample_events, today=TODAY)
        
        assert view['month'] == '2026-10'
        assert view['label'] == 'October 2026'
        assert view['prev'] == '2026-09'
        assert view['next'] == '2026-11'
        assert view['weekdays'] == ['Sun', 'Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat']
        assert len(view['weeks']) == 6
        assert all(len(week) == 7 for week in view['weeks'])
        
        cells = {cell['date']: cell for week in view['weeks'] for cell in week}
        assert cells['2026-10-19']['is_today'] is True
        assert cells['2026-09-27']['in_current_month'] is False
        
        day = cells['2026-10-03']
        assert day['day'] == 3
        assert day['more'] == 0
        assert day['events'] == [
            {
                'id': 'evt1',
                'title': 'Live Music Night',
                'time_label': '7:00 PM – 9:00 PM',
                'link': 'https://www.google.com/calendar/event?eid=evt1'
            },
            {
                'id': 'evt2',
                'title': 'Harvest Market',
                'time_label': 'All day',
                'link': 'https://www.google.com/calendar/event?eid=evt2'
            },
        ]
    
    def test_month_view_truncates_cells(self):
        """Test that busy days show three events and a remainder count."""
        events = [
            RawEvent(id=f'e{i}', title=f'Event {i}', start=EventTime(date='2026-10-08'))
            for i in range(5)
        ]
        processor = EventProcessor()
        
        view = processor.build_month_view(events, today=TODAY)
        
        cells = {cell['date']: cell for week in view['weeks'] for cell in week}
        day = cells['2026-10-08']
        assert [entry['id'] for entry in day['events']] == ['e0', 'e1', 'e2']
        assert day['more'] == 2
        assert day['events'][0]['link'] == '#'
    
    def test_month_view_reference_and_week_start(self):
        """Test an explicit month and Monday-first weeks."""
        processor = EventProcessor(week_start=0)
        
        view = processor.build_month_view([], today=TODAY, reference_date=date(2027, 1, 1))
        
        assert view['month'] == '2027-01'
        assert view['prev'] == '2026-12'
        assert view['weekdays'][0] == 'Mon'
        assert view['weeks'][0][0]['date'] == '2026-12-28'
