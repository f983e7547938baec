"""iCalendar export for a single event."""
import logging
import re
from datetime import datetime, timedelta, timezone, tzinfo
from typing import List, Optional

from processor.dates import as_aware, parse_instant
from processor.fees import fee_summary, format_amount
from processor.models import Event
from processor.url_guard import is_safe_url

logger = logging.getLogger(__name__)


class CalendarExporter:
    """Serializes events into VCALENDAR documents."""

    PRODID = '-//DFW Drag Racing Events//Events Calendar//EN'
    UID_DOMAIN = 'dfw-dragevents.com'
    FALLBACK_URL = 'https://dfw-dragevents.com'
    DEFAULT_DURATION_HOURS = 8
    LINE_BREAK = '\r\n'

    def __init__(self, tz: tzinfo = timezone.utc):
        """
        Initialize the exporter.

        Args:
            tz: Timezone for date-times published without an offset
        """
        self.tz = tz

    def generate_ics(
        self,
        event: Event,
        now: Optional[datetime] = None,
        location: Optional[str] = None
    ) -> Optional[str]:
        """
        Build an iCalendar document for one event.

        Events without an end get a fixed default duration. Content lines
        are not folded at 75 octets; calendar clients accept long lines.

        Args:
            event: Event to export
            now: Instant used for DTSTAMP, defaults to the event start
            location: Track name override, defaults to event.track_name

        Returns:
            ICS text with CRLF line breaks, or None when the event has no
            usable start date
        """
        start = parse_instant(event.start_date, self.tz)
        if start is None:
            logger.debug(f"Event {event.id} has no usable start date, skipping export")
            return None

        end = parse_instant(event.end_date, self.tz)
        if end is None:
            end = start + timedelta(hours=self.DEFAULT_DURATION_HOURS)

        stamp = as_aware(now, self.tz) or start
        if location is None:
            location = event.track_name or ''
        url = event.url if is_safe_url(event.url) else self.FALLBACK_URL

        lines = [
            'BEGIN:VCALENDAR',
            'VERSION:2.0',
            f'PRODID:{self.PRODID}',
            'CALSCALE:GREGORIAN',
            'METHOD:PUBLISH',
            'BEGIN:VEVENT',
            f'UID:{event.id}@{self.UID_DOMAIN}',
            f'DTSTAMP:{self.format_timestamp(stamp)}',
            f'DTSTART:{self.format_timestamp(start)}',
            f'DTEND:{self.format_timestamp(end)}',
            f'SUMMARY:{self.escape_text(str(event.title or ""))}',
            f'DESCRIPTION:{self.escape_text(self.build_description(event))}',
            f'LOCATION:{self.escape_text(str(location))}',
            f'URL:{url}',
            'STATUS:CONFIRMED',
            'END:VEVENT',
            'END:VCALENDAR',
        ]
        return self.LINE_BREAK.join(lines)

    def build_description(self, event: Event) -> str:
        """
        Assemble the description text, sections separated by a blank line.

        Args:
            event: Event to describe

        Returns:
            Unescaped description text
        """
        sections: List[str] = []
        if event.description:
            sections.append(str(event.description))

        fees = fee_summary(event.event_driver_fee, event.event_spectator_fee)
        if fees:
            sections.append(f"Fees: {fees}")

        if event.classes:
            class_lines = ['Classes:']
            for event_class in event.classes:
                line = f"• {event_class.name}"
                if event_class.buyin_fee is not None:
                    line += f" - Buy-in: {format_amount(event_class.buyin_fee)}"
                class_lines.append(line)
            sections.append('\n'.join(class_lines))

        return '\n\n'.join(sections)

    def ics_filename(self, event: Event) -> str:
        """
        Download filename: lowercase slug of the title plus '.ics'.

        Args:
            event: Event being exported

        Returns:
            Filename such as 'fall-shootout-2025.ics'
        """
        slug = re.sub(r'[^a-z0-9]+', '-', str(event.title or '').lower()).strip('-')
        return f"{slug or 'event'}.ics"

    @staticmethod
    def format_timestamp(value: datetime) -> str:
        """Render an instant in UTC basic format, e.g. 20251003T080000Z."""
        return value.astimezone(timezone.utc).strftime('%Y%m%dT%H%M%SZ')

    @staticmethod
    def escape_text(text: str) -> str:
        """Escape a TEXT value: backslash first, then comma, semicolon, newline."""
        return (
            text.replace('\\', '\\\\')
            .replace(',', '\\,')
            .replace(';', '\\;')
            .replace('\r\n', '\\n')
            .replace('\n', '\\n')
        )
