"""ISO-8601 instant parsing shared by the filters, formatter and exporter."""
import math
import re
from datetime import datetime, timezone, tzinfo
from typing import Any, Optional

DATE_ONLY_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')


def parse_instant(value: Any, tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """
    Parse an ISO-8601 instant into a timezone-aware datetime.

    A trailing 'Z' is UTC, a bare date is midnight UTC and a date-time
    without an offset is read in the display timezone.

    Args:
        value: Raw value from the event record
        tz: Display timezone for offset-less date-times

    Returns:
        Aware datetime, or None when the value is missing or unparsable
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=tz)
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    if text.endswith(('Z', 'z')):
        text = text[:-1] + '+00:00'

    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None

    if parsed.tzinfo is None:
        if DATE_ONLY_PATTERN.match(text):
            return parsed.replace(tzinfo=timezone.utc)
        return parsed.replace(tzinfo=tz)
    return parsed


def instant_sort_key(value: Any, tz: tzinfo = timezone.utc) -> float:
    """Return the POSIX timestamp of an instant, NaN when unknown."""
    parsed = parse_instant(value, tz)
    if parsed is None:
        return math.nan
    return parsed.timestamp()


def as_aware(value: Optional[datetime], tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """Attach the display timezone to a naive datetime."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value
