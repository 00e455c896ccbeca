"""Content extraction for event cards.

Derives a display title, an image URL and a ticket URL from the loosely
structured fields of a raw event. Descriptions may carry explicit tag lines
such as ``Title: ...``, ``Image: ...`` and ``Tickets: ...``; these are parsed
once into a mapping and take priority over heuristics.
"""
import logging
import re
from typing import Dict, List, Optional

from processor.host_rules import is_image_like, is_provider_url
from processor.models import ExtractedContent, RawEvent
from processor.url_normalizer import (
    URL_PATTERN,
    decode_entities,
    extract_urls,
    resolve_url,
    strip_tags,
)

logger = logging.getLogger(__name__)

UNTITLED_EVENT = "Untitled event"

TAG_KEYS = {
    'title': 'title',
    'image': 'image',
    'ticket': 'tickets',
    'tickets': 'tickets',
}

LINE_BREAK_PATTERN = re.compile(
    r'\r?\n|\r|<br\s*/?>|</(?:p|div|li|h[1-6])\s*>', re.IGNORECASE
)
TAG_LINE_PATTERN = re.compile(
    r'^\s*(?:<[^>]+>\s*)*(title|image|tickets?)\s*:\s*(?:</[^>]+>\s*)*(.*?)\s*$',
    re.IGNORECASE
)


def split_lines(description: Optional[str]) -> List[str]:
    """Split a description on newlines and line-breaking HTML tags."""
    if not description:
        return []
    return LINE_BREAK_PATTERN.split(decode_entities(description))


def parse_tags(description: Optional[str]) -> Dict[str, str]:
    """
    Parse ``Key: value`` tag lines out of a description.
    
    Args:
        description: Raw event description
    
    Returns:
        Mapping of 'title', 'image' and 'tickets' to the raw remainder of the
        first line carrying that key. Values may still contain markup.
    """
    tags = {}
    for line in split_lines(description):
        match = TAG_LINE_PATTERN.match(line)
        if not match:
            continue
        key = TAG_KEYS[match.group(1).lower()]
        value = match.group(2)
        if value and key not in tags:
            tags[key] = value
    return tags


def _plain_text(fragment: str) -> str:
    return ' '.join(strip_tags(fragment).split())


def _first_text_line(description: Optional[str]) -> Optional[str]:
    for line in split_lines(description):
        if TAG_LINE_PATTERN.match(line):
            continue
        text = _plain_text(line)
        if not text or URL_PATTERN.fullmatch(text):
            continue
        return text
    return None


def resolve_title(event: RawEvent, tags: Dict[str, str]) -> str:
    if 'title' in tags:
        title = _plain_text(tags['title'])
        if title:
            return title
    
    if event.title and event.title.strip():
        return event.title.strip()
    
    return _first_text_line(event.description) or UNTITLED_EVENT


def resolve_image(
    event: RawEvent, tags: Dict[str, str], urls: List[str]
) -> Optional[str]:
    for attachment in event.attachments or ():
        mime_type = (attachment.mime_type or '').lower()
        if mime_type.startswith('image/') and attachment.file_url:
            return attachment.file_url.strip()
    
    if 'image' in tags:
        url = resolve_url(tags['image'])
        if is_image_like(url):
            return url
    
    for url in urls:
        if is_image_like(url):
            return url
    
    return None


def resolve_ticket(
    event: RawEvent, tags: Dict[str, str], urls: List[str]
) -> Optional[str]:
    if 'tickets' in tags:
        url = resolve_url(tags['tickets'])
        if url:
            return url
    
    for url in urls:
        if not is_provider_url(url):
            return url
    
    if event.permalink and event.permalink.strip():
        return event.permalink.strip()
    return None


def extract(event: RawEvent) -> ExtractedContent:
    """
    Derive card display fields from a raw event.
    
    Args:
        event: Raw event from the calendar feed
    
    Returns:
        ExtractedContent with a non-empty title. Missing image and ticket
        URLs are None.
    """
    tags = parse_tags(event.description)
    urls = extract_urls(event.description)
    content = ExtractedContent(
        title=resolve_title(event, tags),
        image_url=resolve_image(event, tags, urls),
        ticket_url=resolve_ticket(event, tags, urls),
    )
    logger.debug(
        f"Extracted content for event {event.id}: title={content.title!r}, "
        f"image={content.image_url}, ticket={content.ticket_url}"
    )
    return content
