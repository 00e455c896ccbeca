"""Host and path tables used to classify URLs found in event descriptions."""
from dataclasses import dataclass
from typing import Optional, Tuple
from urllib.parse import urlparse

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.gif', '.webp', '.svg')

# CDNs that serve images from extensionless paths
IMAGE_CDN_HOSTS = (
    'images.unsplash.com',
    'lh3.googleusercontent.com',
    'lh4.googleusercontent.com',
    'lh5.googleusercontent.com',
    'lh6.googleusercontent.com',
    'i.imgur.com',
    'img.evbuc.com',
    'cdn.evbuc.com',
    'images.squarespace-cdn.com',
    'res.cloudinary.com',
)

# The calendar provider's own web UI; links here are pages, never images
# and never ticket destinations.
PROVIDER_DOMAINS = (
    'google.com',
)


@dataclass(frozen=True)
class RedirectorRule:
    """A URL shape that forwards to the URL carried in one query parameter."""
    hosts: Tuple[str, ...]
    path: Optional[str]
    param: str


REDIRECTOR_RULES = (
    RedirectorRule(hosts=PROVIDER_DOMAINS, path='/url', param='q'),
    RedirectorRule(hosts=PROVIDER_DOMAINS, path='/imgres', param='imgurl'),
    RedirectorRule(
        hosts=('l.facebook.com', 'lm.facebook.com', 'l.instagram.com'),
        path=None,
        param='u',
    ),
)


def get_host(url: str) -> str:
    """Return the lowercased host of a URL, or an empty string."""
    try:
        return (urlparse(url).hostname or '').lower()
    except ValueError:
        return ''


def host_matches(host: str, domains: Tuple[str, ...]) -> bool:
    """True when host equals one of the domains or is a subdomain of one."""
    host = host.lower().rstrip('.')
    return any(host == d or host.endswith('.' + d) for d in domains)


def is_provider_url(url: str) -> bool:
    return host_matches(get_host(url), PROVIDER_DOMAINS)


def is_image_like(url: Optional[str]) -> bool:
    """
    Decide whether a URL points at an image.
    
    Args:
        url: Candidate URL
    
    Returns:
        True for URLs whose path ends in a known image extension or whose
        host is a known image CDN. Provider UI URLs are never image-like.
    """
    if not url:
        return False
    
    try:
        parsed = urlparse(url)
    except ValueError:
        return False
    
    host = (parsed.hostname or '').lower()
    if not host or host_matches(host, PROVIDER_DOMAINS):
        return False
    
    if parsed.path.lower().endswith(IMAGE_EXTENSIONS):
        return True
    
    return host in IMAGE_CDN_HOSTS
