"""AWS Lambda handler serving calendar event list and month views."""
import json
import logging
import os
import time
from dataclasses import asdict
from datetime import datetime, time as dt_time
from typing import Dict, Any

from feed.google_calendar import GoogleCalendarClient
from processor.event_processor import EventProcessor
from processor.grid_builder import (
    MONTH_PARAM_PATTERN,
    month_window,
    parse_month_param,
    parse_week_start,
)
from processor.time_normalizer import get_timezone

LIST_PATHS = ('/', '/events', '/api/events')
CALENDAR_PATHS = ('/calendar', '/api/calendar')
MONTH_MAX_RESULTS = 2500


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""
    
    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }
        
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        
        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.
    
    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()
    
    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    
    # Create new handler with JSON formatter
    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)
    
    # Set log level
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body)
    }


def _request_path(event: Dict[str, Any]) -> str:
    path = event.get('rawPath') or event.get('path') or '/events'
    return path.rstrip('/') or '/'


def lambda_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Main Lambda handler for the calendar views.
    
    Serves the upcoming-events card list on /events and the month grid on
    /calendar. The month grid accepts a ``m=YYYY-MM`` query parameter.
    
    Args:
        event: API Gateway HTTP event payload
        context: Lambda context object
    
    Returns:
        Response dict with statusCode and JSON body
    """
    # Read configuration from environment variables
    api_key = os.environ.get('GOOGLE_API_KEY', '')
    calendar_id = os.environ.get('GOOGLE_CALENDAR_ID', '')
    log_level = os.environ.get('LOG_LEVEL', 'INFO')
    timeout_seconds = int(os.environ.get('TIMEOUT_SECONDS', '30'))
    max_results = int(os.environ.get('MAX_RESULTS', '24'))
    display_timezone = os.environ.get('DISPLAY_TIMEZONE', 'UTC')
    week_start_name = os.environ.get('WEEK_START', 'sunday')
    
    # Initialize logging
    setup_logging(log_level)
    logger = logging.getLogger(__name__)
    
    start_time = time.time()
    path = _request_path(event)
    query = event.get('queryStringParameters') or {}
    logger.info(
        f"Lambda execution started for {path}",
        extra={'path': path, 'timeout_seconds': timeout_seconds}
    )
    
    if path not in LIST_PATHS and path not in CALENDAR_PATHS:
        return _response(404, {'message': f'Unknown path: {path}'})
    
    if not api_key or not calendar_id:
        logger.error("Missing GOOGLE_API_KEY or GOOGLE_CALENDAR_ID")
        return _response(200, {
            'items': [],
            'error': 'Missing GOOGLE_API_KEY or GOOGLE_CALENDAR_ID'
        })
    
    try:
        tz = get_timezone(display_timezone)
        week_start = parse_week_start(week_start_name)
        now = datetime.now(tz)
        today = now.date()
        
        client = GoogleCalendarClient(
            api_key=api_key,
            calendar_id=calendar_id,
            timeout=timeout_seconds
        )
        processor = EventProcessor(tz=tz, week_start=week_start)
        
        month_param = query.get('m')
        if month_param and not MONTH_PARAM_PATTERN.match(month_param):
            logger.warning(f"Ignoring malformed month parameter: {month_param}")
        reference_date = parse_month_param(month_param) or today
        
        # Fetch events from calendar with error handling
        try:
            if path in CALENDAR_PATHS:
                grid_start, grid_end = month_window(reference_date, week_start)
                raw_events = client.fetch_events(
                    time_min=datetime.combine(grid_start, dt_time.min, tzinfo=tz),
                    time_max=datetime.combine(grid_end, dt_time.min, tzinfo=tz),
                    max_results=MONTH_MAX_RESULTS
                )
            else:
                raw_events = client.fetch_events(
                    time_min=now,
                    max_results=max_results
                )
            logger.info(f"Fetched {len(raw_events)} raw events from calendar")
        except Exception as e:
            logger.error(
                f"Failed to fetch events from calendar after retries: {str(e)}",
                extra={'error_type': type(e).__name__},
                exc_info=True
            )
            duration = time.time() - start_time
            return _response(500, {
                'message': 'Failed to fetch calendar events',
                'error': str(e),
                'error_type': type(e).__name__,
                'duration_seconds': round(duration, 2)
            })
        
        if path in CALENDAR_PATHS:
            body = processor.build_month_view(
                raw_events,
                today=today,
                reference_date=reference_date
            )
        else:
            cards = processor.build_cards(raw_events)
            body = {'items': [asdict(card) for card in cards]}
        
        duration = time.time() - start_time
        logger.info(
            f"Lambda execution completed successfully",
            extra={
                'duration_seconds': round(duration, 2),
                'events': len(raw_events)
            }
        )
        
        return _response(200, body)
    
    except Exception as e:
        duration = time.time() - start_time
        
        logger.error(
            f"Lambda execution failed: {str(e)}",
            extra={
                'duration_seconds': round(duration, 2),
                'error_type': type(e).__name__
            },
            exc_info=True
        )
        
        return _response(500, {
            'message': 'Request failed',
            'error': str(e),
            'error_type': type(e).__name__,
            'duration_seconds': round(duration, 2)
        })
