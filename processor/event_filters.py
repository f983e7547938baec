"""Time-window filtering and chronological sorting of events."""
import calendar
import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import List, Optional, Sequence

from processor.dates import as_aware, instant_sort_key, parse_instant
from processor.models import Event

logger = logging.getLogger(__name__)

FILTER_UPCOMING = 'upcoming'
FILTER_THIS_MONTH = 'this-month'
FILTER_NEXT_30 = 'next-30'
FILTER_PAST = 'past'
FILTER_ALL = 'all'


class EventFilter:
    """Named time-window presets and sorting over an event list."""

    NEXT_DAYS = 30

    def __init__(self, tz: tzinfo = timezone.utc):
        """
        Initialize the filter.

        Args:
            tz: Display timezone used for calendar-month boundaries and
                for date-times published without an offset
        """
        self.tz = tz

    def filter_by_range(
        self,
        events: Sequence[Event],
        start: Optional[datetime],
        end: Optional[datetime]
    ) -> List[Event]:
        """
        Select events whose start date lies within [start, end].

        Only start_date is consulted. Events with a missing or unparsable
        start_date are always kept.

        Args:
            events: Events to filter
            start: Inclusive lower bound, or None for unbounded
            end: Inclusive upper bound, or None for unbounded

        Returns:
            New list of matching events in input order
        """
        start = as_aware(start, self.tz)
        end = as_aware(end, self.tz)
        selected = []
        for event in events:
            event_start = parse_instant(event.start_date, self.tz)
            if event_start is None:
                selected.append(event)
                continue
            if start is not None and event_start < start:
                continue
            if end is not None and event_start > end:
                continue
            selected.append(event)
        return selected

    def upcoming(self, events: Sequence[Event], now: datetime) -> List[Event]:
        """
        Select events that have not ended yet, including ongoing ones.

        The effective end is end_date when present, else start_date.

        Args:
            events: Events to filter
            now: Reference instant

        Returns:
            New list of upcoming events in input order
        """
        now = as_aware(now, self.tz)
        selected = []
        for event in events:
            event_start = parse_instant(event.start_date, self.tz)
            if event_start is None:
                selected.append(event)
                continue
            if event.end_date:
                # An unparsable end never compares as not-yet-ended
                event_end = parse_instant(event.end_date, self.tz)
            else:
                event_end = event_start
            if event_end is not None and event_end >= now:
                selected.append(event)
        return selected

    def this_month(self, events: Sequence[Event], now: datetime) -> List[Event]:
        """Select events starting in the calendar month containing now."""
        local_now = as_aware(now, self.tz).astimezone(self.tz)
        last_day = calendar.monthrange(local_now.year, local_now.month)[1]
        start = datetime(local_now.year, local_now.month, 1, tzinfo=self.tz)
        end = datetime(
            local_now.year, local_now.month, last_day, 23, 59, 59, tzinfo=self.tz
        )
        return self.filter_by_range(events, start, end)

    def next_30_days(self, events: Sequence[Event], now: datetime) -> List[Event]:
        """Select events starting within the next 30 x 24 hours."""
        # Elapsed hours, not wall-clock days, across DST changes
        now = as_aware(now, self.tz).astimezone(timezone.utc)
        return self.filter_by_range(
            events, now, now + timedelta(days=self.NEXT_DAYS)
        )

    def past(self, events: Sequence[Event], now: datetime) -> List[Event]:
        """Select events that started at or before now."""
        return self.filter_by_range(events, None, now)

    def apply_filter(
        self,
        events: Sequence[Event],
        filter_name: Optional[str],
        now: datetime
    ) -> List[Event]:
        """
        Apply a named preset.

        Unknown names, including 'all', return every event.

        Args:
            events: Events to filter
            filter_name: Preset name
            now: Reference instant

        Returns:
            New list of selected events
        """
        presets = {
            FILTER_UPCOMING: self.upcoming,
            FILTER_THIS_MONTH: self.this_month,
            FILTER_NEXT_30: self.next_30_days,
            FILTER_PAST: self.past,
        }
        preset = presets.get(filter_name)
        if preset is None:
            selected = list(events)
        else:
            selected = preset(events, now)

        logger.debug(
            f"Filter '{filter_name}' selected {len(selected)} of {len(events)} events"
        )
        return selected

    def sort_by_date(
        self,
        events: Sequence[Event],
        ascending: bool = True
    ) -> List[Event]:
        """
        Return events ordered by start date.

        The sort is stable. Unparsable dates use a NaN key and are not
        moved to either end explicitly.

        Args:
            events: Events to sort, left untouched
            ascending: Oldest first when True

        Returns:
            New sorted list
        """
        return sorted(
            events,
            key=lambda event: instant_sort_key(event.start_date, self.tz),
            reverse=not ascending
        )

    def select_events(
        self,
        events: Sequence[Event],
        filter_name: Optional[str],
        now: datetime
    ) -> List[Event]:
        """Filter by preset, then sort: past newest first, otherwise oldest first."""
        selected = self.apply_filter(events, filter_name, now)
        return self.sort_by_date(selected, ascending=filter_name != FILTER_PAST)
