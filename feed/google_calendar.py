"""Google Calendar feed client."""
import logging
import time
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import requests

from processor.models import Attachment, EventTime, RawEvent

logger = logging.getLogger(__name__)


class GoogleCalendarClient:
    """Client for the public events list of a Google Calendar."""
    
    BASE_URL = "https://www.googleapis.com/calendar/v3/calendars"
    
    def __init__(self, api_key: str, calendar_id: str, timeout: int = 30):
        """
        Initialize the calendar client.
        
        Args:
            api_key: Google API key
            calendar_id: Calendar to read events from
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.api_key = api_key
        self.calendar_id = calendar_id
        self.timeout = timeout
    
    @property
    def events_url(self) -> str:
        return f"{self.BASE_URL}/{quote(self.calendar_id, safe='')}/events"
    
    def fetch_events(
        self,
        time_min: datetime,
        time_max: Optional[datetime] = None,
        max_results: int = 24
    ) -> List[RawEvent]:
        """
        Fetch single (expanded) events ordered by start time.
        
        Args:
            time_min: Lower bound on event end time
            time_max: Upper bound on event start time (optional)
            max_results: Maximum number of events to return
        
        Returns:
            List of RawEvent objects
        """
        logger.info(
            f"Fetching up to {max_results} events from {time_min.isoformat()}"
        )
        
        params = {
            'key': self.api_key,
            'singleEvents': 'true',
            'orderBy': 'startTime',
            'timeMin': self._format_bound(time_min),
            'maxResults': str(max_results)
        }
        if time_max is not None:
            params['timeMax'] = self._format_bound(time_max)
        
        payload = self._fetch_events_json(params)
        events = self._parse_events(payload)
        
        logger.info(f"Successfully fetched {len(events)} events")
        return events
    
    @staticmethod
    def _format_bound(value: datetime) -> str:
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    
    def _fetch_events_json(self, params: Dict[str, str]) -> Dict[str, Any]:
        """
        Fetch the events list JSON with retry logic.
        
        Args:
            params: Query parameters for the events list request
        
        Returns:
            Decoded JSON payload
        
        Raises:
            requests.RequestException: If all retry attempts fail
        """
        max_retries = 3
        base_delay = 1  # seconds
        
        for attempt in range(max_retries):
            try:
                logger.info(f"Fetching calendar events (attempt {attempt + 1}/{max_retries})")
                response = requests.get(
                    self.events_url,
                    params=params,
                    timeout=self.timeout
                )
                response.raise_for_status()
                return response.json()
            
            except requests.RequestException as e:
                if attempt < max_retries - 1:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {max_retries} retry attempts failed. Last error: {e}"
                    )
                    raise
    
    def _parse_events(self, payload: Dict[str, Any]) -> List[RawEvent]:
        """
        Parse the items of an events list payload.
        
        Args:
            payload: Decoded events list JSON
        
        Returns:
            List of RawEvent objects, skipping malformed items
        """
        items = payload.get('items') if isinstance(payload, dict) else None
        events = []
        
        for item in items or []:
            try:
                event = self._parse_event_item(item)
                if event:
                    events.append(event)
            except (AttributeError, TypeError) as e:
                logger.warning(f"Failed to parse event item: {e}")
                continue
        
        return events
    
    def _parse_event_item(self, item: Dict[str, Any]) -> Optional[RawEvent]:
        """
        Parse a single event item.
        
        Args:
            item: Event resource from the events list
        
        Returns:
            RawEvent object or None if the item has no id
        """
        event_id = item.get('id')
        if not event_id:
            logger.warning("Skipping event item without id")
            return None
        
        attachments = tuple(
            Attachment(
                mime_type=attachment.get('mimeType'),
                file_url=attachment.get('fileUrl'),
                title=attachment.get('title')
            )
            for attachment in item.get('attachments') or []
        )
        
        return RawEvent(
            id=str(event_id),
            title=item.get('summary'),
            description=item.get('description'),
            location=item.get('location'),
            permalink=item.get('htmlLink'),
            start=self._parse_event_time(item.get('start')),
            end=self._parse_event_time(item.get('end')),
            attachments=attachments
        )
    
    def _parse_event_time(self, value: Optional[Dict[str, Any]]) -> Optional[EventTime]:
        if not value:
            return None
        
        return EventTime(
            date=value.get('date'),
            date_time=value.get('dateTime'),
            time_zone=value.get('timeZone')
        )
