"""HTML rendering of event list and detail pages."""
import json
import logging
from typing import Any, Dict, Iterable, Optional, Sequence

from bs4 import BeautifulSoup
from bs4.element import Script

from processor.calendar_export import CalendarExporter
from processor.date_formatter import DateFormatter
from processor.event_filters import (
    FILTER_ALL,
    FILTER_NEXT_30,
    FILTER_PAST,
    FILTER_THIS_MONTH,
    FILTER_UPCOMING,
)
from processor.fees import fee_summary, format_amount
from processor.models import Event, Track
from processor.tracks import TrackDirectory
from processor.url_guard import is_safe_url

logger = logging.getLogger(__name__)

SITE_NAME = 'DFW Drag Racing Events'
DEFAULT_DESCRIPTION = 'Drag racing event in Dallas-Fort Worth.'
NO_EVENTS_MESSAGE = 'No events found for this filter.'
NO_FEES_MESSAGE = 'Contact track for pricing'
NO_CLASSES_MESSAGE = 'No classes listed.'

FILTER_BUTTONS = [
    (FILTER_UPCOMING, 'Upcoming'),
    (FILTER_THIS_MONTH, 'This Month'),
    (FILTER_NEXT_30, 'Next 30 Days'),
    (FILTER_PAST, 'Past'),
    (FILTER_ALL, 'All'),
]

LIST_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Events | DFW Drag Racing Events</title>
<meta name="description" content="Upcoming drag racing events at tracks around Dallas-Fort Worth.">
</head>
<body>
<main class="container">
<h1>Events</h1>
<div class="btn-group mb-3" id="event-filters"></div>
<div id="events-list"></div>
</main>
</body>
</html>
"""

DETAIL_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>DFW Drag Racing Events</title>
<meta name="description" content="">
<script id="event-schema" type="application/ld+json"></script>
</head>
<body>
<main class="container">
<h1 id="ev-title"></h1>
<h2 class="h5 text-body-secondary" id="ev-track"></h2>
<p id="ev-time"></p>
<p id="ev-desc"></p>
<h3 class="h5">Fees</h3>
<p id="ev-fees"></p>
<h3 class="h5">Classes</h3>
<div id="ev-classes"></div>
<a class="btn btn-primary disabled" id="ev-link" rel="noopener" target="_blank">Event website</a>
<a class="btn btn-outline-secondary d-none" id="ev-calendar">Add to calendar</a>
</main>
</body>
</html>
"""

MESSAGE_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>DFW Drag Racing Events</title>
</head>
<body>
<main class="container">
<h1 id="message-title"></h1>
<p id="message-body"></p>
</main>
</body>
</html>
"""


class HtmlRenderer:
    """Renders engine output into page markup with BeautifulSoup."""

    def __init__(
        self,
        formatter: Optional[DateFormatter] = None,
        exporter: Optional[CalendarExporter] = None
    ):
        self.formatter = formatter or DateFormatter()
        self.exporter = exporter or CalendarExporter()

    def render_events_page(
        self,
        events: Sequence[Event],
        tracks: Iterable[Track],
        active_filter: str
    ) -> str:
        """
        Render the events list page.

        Args:
            events: Events already filtered and sorted for display
            tracks: Published tracks for name lookup
            active_filter: Filter whose button is marked active

        Returns:
            HTML document
        """
        soup = BeautifulSoup(LIST_PAGE_TEMPLATE, 'html.parser')

        buttons = soup.find(id='event-filters')
        for filter_name, label in FILTER_BUTTONS:
            css = 'btn btn-outline-primary'
            if filter_name == active_filter:
                css += ' active'
            button = soup.new_tag(
                'a',
                attrs={'class': css, 'data-filter': filter_name, 'href': f'?filter={filter_name}'}
            )
            button.string = label
            buttons.append(button)

        container = soup.find(id='events-list')
        container.append(self._events_fragment(soup, events, TrackDirectory(tracks)))
        return str(soup)

    def render_event_list(self, events: Sequence[Event], tracks: Iterable[Track]) -> str:
        """Render only the event cards, for embedding in another page."""
        soup = BeautifulSoup('', 'html.parser')
        soup.append(self._events_fragment(soup, events, TrackDirectory(tracks)))
        return str(soup)

    def render_event_detail(
        self,
        event: Event,
        tracks: Iterable[Track],
        calendar_href: Optional[str] = None
    ) -> str:
        """
        Render the detail page for one event.

        Args:
            event: Event to show
            tracks: Published tracks for name and city lookup
            calendar_href: Download link for the ICS file; the calendar
                button stays hidden when omitted or when the event cannot
                be exported

        Returns:
            HTML document
        """
        soup = BeautifulSoup(DETAIL_PAGE_TEMPLATE, 'html.parser')
        directory = TrackDirectory(tracks)
        track_name = directory.track_name_for(event)
        date_label = self.formatter.format_range(event.start_date, event.end_date)

        soup.find(id='ev-title').string = event.title
        soup.find(id='ev-track').string = track_name
        soup.find(id='ev-time').string = date_label
        soup.find(id='ev-desc').string = event.description or ''

        fees = fee_summary(event.event_driver_fee, event.event_spectator_fee)
        soup.find(id='ev-fees').string = fees or NO_FEES_MESSAGE

        self._fill_classes(soup, soup.find(id='ev-classes'), event)

        link = soup.find(id='ev-link')
        if is_safe_url(event.url):
            link['href'] = event.url
            link['class'] = [c for c in link['class'] if c != 'disabled']
        elif event.url:
            logger.warning(f"Event {event.id} has an unsafe url, not linking it")

        calendar_link = soup.find(id='ev-calendar')
        if calendar_href and self.exporter.generate_ics(event) is not None:
            calendar_link['href'] = calendar_href
            calendar_link['download'] = self.exporter.ics_filename(event)
            calendar_link['class'] = [c for c in calendar_link['class'] if c != 'd-none']

        soup.title.string = f"{event.title} | {SITE_NAME}"
        soup.find('meta', attrs={'name': 'description'})['content'] = (
            f"{event.title} at {track_name} - {date_label}. "
            f"{event.description or DEFAULT_DESCRIPTION}"
        )

        schema = self.build_schema(event, directory)
        soup.find(id='event-schema').append(Script(self._json_for_script(schema)))
        return str(soup)

    def render_message_page(self, title: str, message: str) -> str:
        """Render a plain page for not-found and error responses."""
        soup = BeautifulSoup(MESSAGE_PAGE_TEMPLATE, 'html.parser')
        soup.title.string = f"{title} | {SITE_NAME}"
        soup.find(id='message-title').string = title
        soup.find(id='message-body').string = message
        return str(soup)

    def build_schema(self, event: Event, directory: TrackDirectory) -> Dict[str, Any]:
        """
        Build Schema.org SportsEvent structured data.

        Args:
            event: Event to describe
            directory: Track lookup

        Returns:
            JSON-serializable dict
        """
        track_name = directory.track_name_for(event)
        schema = {
            '@context': 'https://schema.org',
            '@type': 'SportsEvent',
            'name': event.title,
            'description': event.description or f"Drag racing event at {track_name}",
            'startDate': event.start_date,
            'endDate': event.end_date or event.start_date,
            'eventStatus': 'https://schema.org/EventScheduled',
            'eventAttendanceMode': 'https://schema.org/OfflineEventAttendanceMode',
            'location': {
                '@type': 'Place',
                'name': track_name,
                'address': {
                    '@type': 'PostalAddress',
                    'addressLocality': directory.city_for(event),
                    'addressRegion': 'TX',
                    'addressCountry': 'US'
                }
            },
            'offers': []
        }

        if event.event_driver_fee is not None:
            schema['offers'].append(self._offer('Driver Entry', event.event_driver_fee))
        if event.event_spectator_fee is not None:
            schema['offers'].append(self._offer('Spectator Entry', event.event_spectator_fee))

        if is_safe_url(event.url):
            schema['url'] = event.url

        return schema

    def _events_fragment(self, soup, events: Sequence[Event], directory: TrackDirectory):
        """Build the card list, or the empty-filter message."""
        fragment = soup.new_tag('div', attrs={'class': 'events'})
        if not events:
            empty = soup.new_tag('p', attrs={'class': 'text-muted'})
            empty.string = NO_EVENTS_MESSAGE
            fragment.append(empty)
            return fragment

        for event in events:
            fragment.append(self._event_card(soup, event, directory))
        return fragment

    def _event_card(self, soup, event: Event, directory: TrackDirectory):
        card = soup.new_tag('div', attrs={'class': 'card mb-3'})
        body = soup.new_tag('div', attrs={'class': 'card-body'})
        card.append(body)

        title = soup.new_tag('h5', attrs={'class': 'card-title'})
        title.string = event.title
        body.append(title)

        subtitle = soup.new_tag('h6', attrs={'class': 'card-subtitle mb-2 text-body-secondary'})
        subtitle.string = directory.track_name_for(event)
        body.append(subtitle)

        description = soup.new_tag('p', attrs={'class': 'card-text'})
        description.string = event.description or ''
        body.append(description)

        when = soup.new_tag('p', attrs={'class': 'card-text'})
        small = soup.new_tag('small', attrs={'class': 'text-body-secondary'})
        small.string = self.formatter.format_range(event.start_date, event.end_date)
        when.append(small)
        body.append(when)

        details = soup.new_tag('a', attrs={'class': 'card-link', 'href': f'event.html?id={event.id}'})
        details.string = 'Details'
        body.append(details)
        return card

    def _fill_classes(self, soup, container, event: Event) -> None:
        if not event.classes:
            empty = soup.new_tag('p', attrs={'class': 'text-muted'})
            empty.string = NO_CLASSES_MESSAGE
            container.append(empty)
            return

        for event_class in event.classes:
            class_div = soup.new_tag('div', attrs={'class': 'mb-3'})
            name = soup.new_tag('h5')
            name.string = event_class.name
            class_div.append(name)

            if event_class.buyin_fee is not None:
                buyin = soup.new_tag('p', attrs={'class': 'text-muted'})
                buyin.string = f"Buy-in: {format_amount(event_class.buyin_fee)}"
                class_div.append(buyin)

            if event_class.rules:
                rules = soup.new_tag('ul', attrs={'class': 'list-group list-group-flush'})
                for rule in event_class.rules:
                    item = soup.new_tag('li', attrs={'class': 'list-group-item'})
                    item.string = rule.rule
                    rules.append(item)
                class_div.append(rules)

            container.append(class_div)

    @staticmethod
    def _offer(name: str, price: Any) -> Dict[str, Any]:
        return {
            '@type': 'Offer',
            'name': name,
            'price': price,
            'priceCurrency': 'USD'
        }

    @staticmethod
    def _json_for_script(data: Dict[str, Any]) -> str:
        # A literal '</' would close the script element early
        return json.dumps(data, indent=2).replace('</', '<\\/')
