"""Human-readable date labels for event lists and detail pages."""
from datetime import datetime, timezone, tzinfo
from typing import Any

from processor.dates import parse_instant

DATE_TBA = 'Date TBA'


class DateFormatter:
    """Formatter for single dates and date ranges in a display timezone."""

    def __init__(self, tz: tzinfo = timezone.utc):
        self.tz = tz

    def format_instant(self, iso: Any) -> str:
        """
        Format an instant as e.g. 'Wed, Oct 15, 2025'.

        Args:
            iso: ISO-8601 instant string

        Returns:
            Date label, or 'Date TBA' when missing or unparsable
        """
        parsed = parse_instant(iso, self.tz)
        if parsed is None:
            return DATE_TBA
        local = parsed.astimezone(self.tz)
        return f"{local:%a}, {self._month_day(local)}, {local.year}"

    def format_range(self, start_iso: Any, end_iso: Any) -> str:
        """
        Format a start/end pair.

        Same-day ranges and ranges without a usable end collapse to a
        single date. Multi-day ranges render as 'Oct 15 - Oct 20, 2025';
        only the end year is printed, even when the years differ.

        Args:
            start_iso: ISO-8601 start instant
            end_iso: ISO-8601 end instant, optional

        Returns:
            Date label
        """
        start = parse_instant(start_iso, self.tz)
        if start is None:
            return DATE_TBA

        end = parse_instant(end_iso, self.tz)
        if end is None:
            return self.format_instant(start_iso)

        start = start.astimezone(self.tz)
        end = end.astimezone(self.tz)
        if start.date() == end.date():
            return self.format_instant(start_iso)

        return f"{self._month_day(start)} - {self._month_day(end)}, {end.year}"

    @staticmethod
    def _month_day(value: datetime) -> str:
        return f"{value:%b} {value.day}"
