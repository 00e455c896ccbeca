"""URL normalization pipeline for free-text event fields.

Every fragment goes through the same stages, in order:
    
    decode-entities -> decode-percent -> extract-attribute-or-strip-tags
    -> unwrap-redirector

The whole sequence is repeated until the candidate stops changing or
MAX_PIPELINE_PASSES is reached. Each decoding stage is itself bounded, so
the pipeline terminates on any input.

Redirector query parameters are read from the candidate before it is
percent-decoded. parse_qs decodes the target once, so an encoded target
keeps its own query string intact.
"""
import html
import logging
import re
from typing import List, Optional
from urllib.parse import parse_qs, unquote, urlparse

from bs4 import BeautifulSoup

from processor.host_rules import REDIRECTOR_RULES, host_matches

logger = logging.getLogger(__name__)

MAX_DECODE_PASSES = 4
MAX_REDIRECT_HOPS = 4
MAX_PIPELINE_PASSES = 4

ATTRIBUTE_PATTERN = re.compile(
    r'''\b(?:href|src)\s*=\s*["']([^"']+)["']''', re.IGNORECASE
)
URL_PATTERN = re.compile(r'https?://[^\s<>"]+', re.IGNORECASE)
ANGLE_URL_PATTERN = re.compile(r'<(https?://[^\s<>]+)>', re.IGNORECASE)
DOCUMENT_URL_PATTERN = re.compile(
    r'''\b(?:href|src)\s*=\s*["']([^"']+)["']|(https?://[^\s<>"]+)''',
    re.IGNORECASE
)
TRAILING_CHARS = '\'")]}>.,;:!?'
# Encoded whitespace, quotes and angle brackets stay encoded so decoded
# URLs remain single tokens
ENCODED_SPACE_PATTERN = re.compile(r'(%(?:20|09|0A|0D|22|3C|3E))', re.IGNORECASE)


def decode_entities(text: str) -> str:
    """Unescape HTML entities until a pass changes nothing."""
    for _ in range(MAX_DECODE_PASSES):
        decoded = html.unescape(text)
        if decoded == text:
            break
        text = decoded
    return text


def _unquote(text: str) -> str:
    parts = ENCODED_SPACE_PATTERN.split(text)
    return ''.join(
        part if i % 2 else unquote(part, errors='strict')
        for i, part in enumerate(parts)
    )


def decode_percent(text: str) -> str:
    """Percent-decode until stable, keeping the last value that decoded."""
    for _ in range(MAX_DECODE_PASSES):
        try:
            decoded = _unquote(text)
        except UnicodeDecodeError:
            logger.debug(f"Percent decoding failed, keeping: {text[:80]}")
            break
        if decoded == text:
            break
        text = decoded
    return text


def strip_tags(text: str, separator: str = ' ') -> str:
    """Return the text content of an HTML fragment."""
    if '<' not in text:
        return text
    # Keep <https://...> autolinks from being read as tags
    text = ANGLE_URL_PATTERN.sub(r' \1 ', text)
    soup = BeautifulSoup(text, 'html.parser')
    return soup.get_text(separator)


def _clean_match(url: str) -> str:
    return url.rstrip(TRAILING_CHARS)


def _is_http(url: str) -> bool:
    return url.lower().startswith(('http://', 'https://'))


def find_candidates(text: str) -> List[str]:
    """
    List URL candidates in a decoded fragment.
    
    Attribute values (href/src) come first, followed by bare http(s)
    tokens from the tag-stripped text.
    """
    candidates = []
    
    for match in ATTRIBUTE_PATTERN.finditer(text):
        value = match.group(1).strip()
        if _is_http(value):
            candidates.append(value)
    
    for match in URL_PATTERN.finditer(strip_tags(text)):
        value = _clean_match(match.group(0))
        if len(value) > len('https://'):
            candidates.append(value)
    
    return candidates


def scan_urls(text: str) -> List[str]:
    """List href/src values and bare http(s) tokens in document order."""
    urls = []
    for match in DOCUMENT_URL_PATTERN.finditer(text):
        attribute, bare = match.groups()
        if attribute is not None:
            value = attribute.strip()
            if _is_http(value):
                urls.append(value)
        else:
            value = _clean_match(bare)
            if len(value) > len('https://'):
                urls.append(value)
    return urls


def unwrap_redirector(url: str) -> str:
    """
    Replace a redirector URL with the target it forwards to.
    
    Args:
        url: Candidate URL
    
    Returns:
        The innermost target URL, following at most MAX_REDIRECT_HOPS
        redirectors.
    """
    for _ in range(MAX_REDIRECT_HOPS):
        try:
            parsed = urlparse(url)
        except ValueError:
            break
        
        host = (parsed.hostname or '').lower()
        target = None
        for rule in REDIRECTOR_RULES:
            if not host_matches(host, rule.hosts):
                continue
            if rule.path is not None and parsed.path != rule.path:
                continue
            values = parse_qs(parsed.query).get(rule.param)
            if values and _is_http(values[0].strip()):
                target = values[0].strip().replace(' ', '%20')
                break
        
        if target is None or target == url:
            break
        url = target
    
    return url


def resolve_url(fragment: Optional[str]) -> Optional[str]:
    """
    Run the normalization pipeline over a text fragment.
    
    Args:
        fragment: Raw text that may hold markup, encoded URLs or redirectors
    
    Returns:
        The first fully decoded and unwrapped URL, or None when the fragment
        holds no http(s) URL
    """
    if not fragment:
        return None
    
    result = None
    current = fragment
    for _ in range(MAX_PIPELINE_PASSES):
        text = decode_entities(current)
        # URLs that only appear once percent-decoded are found on the second try
        candidates = find_candidates(text) or find_candidates(decode_percent(text))
        if not candidates:
            break
        
        candidate = decode_percent(unwrap_redirector(candidates[0]))
        if candidate == result:
            break
        result = current = candidate
    
    if result is None:
        logger.debug("No URL candidate found in fragment")
    return result


def extract_urls(text: Optional[str]) -> List[str]:
    """
    Extract every URL from a free-text field.
    
    URLs are returned in the order they appear, whether they sit in an
    href/src attribute or in the text. Each URL is normalized with
    resolve_url and duplicates are dropped.
    """
    if not text:
        return []
    
    decoded = decode_entities(text)
    candidates = scan_urls(decoded) or scan_urls(decode_percent(decoded))
    urls = []
    for candidate in candidates:
        resolved = resolve_url(candidate)
        if resolved and resolved not in urls:
            urls.append(resolved)
    return urls
