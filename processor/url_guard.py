"""Outbound link safety check."""
from typing import Any
from urllib.parse import urljoin, urlparse

BASE_ORIGIN = 'https://dfw-dragevents.com/'
SAFE_SCHEMES = ('http', 'https')
FORBIDDEN_HOST_CHARS = frozenset(' \t\r\n<>"')


def is_safe_url(candidate: Any) -> bool:
    """
    Check whether a link may be rendered as a live hyperlink.

    The candidate is resolved against the site origin, so relative paths
    are safe. Only http and https survive; javascript:, data:, file:,
    vbscript:, ftp: and anything unparsable do not. A URL counts as
    unparsable when it has no host, a host with whitespace or markup
    characters, or a port that is not a number in 0-65535.

    Args:
        candidate: Link taken from an event record

    Returns:
        True if the resolved scheme is http or https
    """
    if not isinstance(candidate, str) or not candidate.strip():
        return False

    try:
        resolved = urlparse(urljoin(BASE_ORIGIN, candidate.strip()))
        hostname = resolved.hostname
        resolved.port  # raises ValueError for a bad port
    except ValueError:
        return False

    if resolved.scheme not in SAFE_SCHEMES:
        return False
    if not resolved.netloc or not hostname:
        return False
    return not FORBIDDEN_HOST_CHARS.intersection(hostname)
