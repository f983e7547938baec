"""Integration tests for the page bootstrap."""
import json
import logging
import os
import sys
from datetime import datetime, timezone
from unittest.mock import Mock, patch

import pytest
import responses
from bs4 import BeautifulSoup

from events_site import EventsSite, JsonFormatter, SiteConfig, create_site, setup_logging
from loader.data_loader import DataCache, EventDataLoader
from processor.models import Event, Track

NOW = datetime(2025, 10, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def mock_env():
    """Set up environment variables for testing."""
    env_vars = {
        'DATA_BASE_URL': 'https://dfw-dragevents.com',
        'LOG_LEVEL': 'DEBUG',
        'TIMEOUT_SECONDS': '10',
        'DISPLAY_TIMEZONE': 'UTC',
        'DEFAULT_FILTER': 'all'
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


@pytest.fixture
def sample_events():
    """Create sample events."""
    return [
        Event(id=1, title='Fall Shootout', track_id=1, track_name='Test Track',
              start_date='2025-10-20T14:00:00Z', end_date='2025-10-21T02:00:00Z',
              description='Heads up racing', event_driver_fee=50),
        Event(id=2, title='Spring Nationals', track_id=2, track_name='Old Name',
              start_date='2025-04-05T14:00:00Z'),
        Event(id=3, title='TBA Grudge Night', track_id=1, start_date=None),
    ]


@pytest.fixture
def sample_tracks():
    """Create sample tracks."""
    return [
        Track(id=1, name='Test Track', city='Dallas'),
        Track(id=2, name='Another Track', city='Fort Worth')
    ]


@pytest.fixture
def mock_loader(sample_events, sample_tracks):
    """Create a loader double returning the sample data."""
    loader = Mock(spec=EventDataLoader)
    loader.cache = DataCache()
    loader.load.return_value = (sample_events, sample_tracks)
    return loader


@pytest.fixture
def site(mock_loader):
    """Create a site in UTC backed by the loader double."""
    return EventsSite(SiteConfig(display_timezone='UTC'), loader=mock_loader)


def card_titles(body: str):
    soup = BeautifulSoup(body, 'html.parser')
    return [t.get_text() for t in soup.select('#events-list .card-title')]


class TestSiteConfig:
    """Test cases for SiteConfig."""

    def test_from_env(self, mock_env):
        """Test reading settings from the environment."""
        config = SiteConfig.from_env()

        assert config.data_base_url == 'https://dfw-dragevents.com'
        assert config.log_level == 'DEBUG'
        assert config.timeout_seconds == 10
        assert config.display_timezone == 'UTC'
        assert config.default_filter == 'all'

    def test_defaults(self):
        """Test defaults when variables are unset or invalid."""
        with patch.dict(os.environ, {'TIMEOUT_SECONDS': 'soon'}, clear=True):
            config = SiteConfig.from_env()

        assert config.timeout_seconds == 30
        assert config.display_timezone == 'America/Chicago'
        assert config.default_filter == 'upcoming'

    def test_unknown_timezone_falls_back_to_utc(self):
        """Test that a bad timezone name does not break the site."""
        assert SiteConfig(display_timezone='Mars/Olympus_Mons').tz() is timezone.utc


class TestEventsPage:
    """Test cases for the events list page."""

    def test_upcoming(self, site):
        """Test the default upcoming view in ascending order."""
        response = site.events_page('upcoming', now=NOW)

        assert response['statusCode'] == 200
        assert response['headers']['Content-Type'].startswith('text/html')
        titles = card_titles(response['body'])
        assert 'Fall Shootout' in titles
        assert 'TBA Grudge Night' in titles
        assert 'Spring Nationals' not in titles

    def test_past_is_newest_first(self, site):
        """Test the past view."""
        response = site.events_page('past', now=NOW)
        titles = card_titles(response['body'])
        assert titles[0] == 'Spring Nationals'
        assert 'Fall Shootout' not in titles

    def test_default_filter_from_config(self, mock_loader):
        """Test that the configured default filter is used."""
        site = EventsSite(SiteConfig(display_timezone='UTC', default_filter='all'), loader=mock_loader)

        response = site.events_page(now=NOW)

        assert len(card_titles(response['body'])) == 3

    def test_unknown_filter_shows_all(self, site):
        """Test that an unknown filter name is treated as no filter."""
        response = site.events_page('not-a-filter', now=NOW)
        assert response['statusCode'] == 200
        assert len(card_titles(response['body'])) == 3

    def test_track_names_resolved(self, site):
        """Test that cards show the current track name."""
        response = site.events_page('past', now=NOW)
        soup = BeautifulSoup(response['body'], 'html.parser')
        subtitles = [s.get_text() for s in soup.select('.card-subtitle')]
        assert 'Another Track' in subtitles

    def test_empty_filter_message(self, site):
        """Test the message when a filter matches nothing."""
        site.loader.load.return_value = ([], [])

        response = site.events_page('upcoming', now=NOW)

        assert 'No events found for this filter' in response['body']

    def test_load_failure(self, site, caplog):
        """Test error handling for data load failures."""
        site.loader.load.side_effect = Exception('Network error')

        with caplog.at_level(logging.ERROR):
            response = site.events_page('upcoming', now=NOW)

        assert response['statusCode'] == 500
        assert 'could not be loaded' in response['body']
        assert 'Network error' in caplog.text


class TestEventPage:
    """Test cases for the event detail page."""

    def test_found(self, site):
        """Test rendering an existing event."""
        response = site.event_page('1')

        assert response['statusCode'] == 200
        soup = BeautifulSoup(response['body'], 'html.parser')
        assert soup.find(id='ev-title').get_text() == 'Fall Shootout'
        assert soup.find(id='ev-time').get_text() == 'Oct 20 - Oct 21, 2025'
        assert soup.find(id='ev-calendar')['href'] == 'event.ics?id=1'

    @pytest.mark.parametrize('event_id', ['999', 'abc', None, ''])
    def test_not_found(self, site, event_id):
        """Test missing or invalid event ids."""
        response = site.event_page(event_id)
        assert response['statusCode'] == 404
        assert 'Event not found' in response['body']

    def test_load_failure(self, site):
        """Test error handling for data load failures."""
        site.loader.load.side_effect = Exception('Network error')
        assert site.event_page(1)['statusCode'] == 500


class TestCalendarDownload:
    """Test cases for the ICS download."""

    def test_download(self, site):
        """Test a successful calendar download."""
        response = site.calendar_download(1, now=NOW)

        assert response['statusCode'] == 200
        assert response['headers']['Content-Type'].startswith('text/calendar')
        assert response['headers']['Content-Disposition'] == (
            'attachment; filename="fall-shootout.ics"'
        )
        assert 'DTSTART:20251020T140000Z' in response['body']
        assert 'DTSTAMP:20251015T120000Z' in response['body']
        assert 'LOCATION:Test Track' in response['body']

    def test_download_uses_resolved_track_name(self, site):
        """Test that the location comes from the tracks document."""
        response = site.calendar_download(2, now=NOW)
        assert 'LOCATION:Another Track\r\n' in response['body']

    def test_download_without_start(self, site):
        """Test that undated events cannot be exported."""
        response = site.calendar_download(3, now=NOW)
        assert response['statusCode'] == 422
        assert 'BEGIN:VCALENDAR' not in response['body']

    def test_download_not_found(self, site):
        """Test a missing event."""
        assert site.calendar_download(42, now=NOW)['statusCode'] == 404


class TestCaching:
    """Test cases for the explicit data cache."""

    @responses.activate
    def test_reset_cache_refetches(self):
        """Test that data is reused across pages until the cache is reset."""
        base = 'https://dfw-dragevents.com'
        responses.add(responses.GET, f'{base}/data/events.json', json=[
            {'id': 1, 'title': 'Fall Shootout', 'start_date': '2025-10-20T14:00:00Z'}
        ])
        responses.add(responses.GET, f'{base}/data/tracks.json', json=[])

        cache = DataCache()
        site = EventsSite(SiteConfig(data_base_url=base, display_timezone='UTC'), cache=cache)

        site.events_page('all', now=NOW)
        site.event_page(1)
        assert len(responses.calls) == 2

        site.reset_cache()
        site.events_page('all', now=NOW)
        assert len(responses.calls) == 4

    @responses.activate
    def test_reset_cache_with_injected_loader(self):
        """Test that reset_cache clears the cache of a loader passed in by the caller."""
        base = 'https://dfw-dragevents.com'
        responses.add(responses.GET, f'{base}/data/events.json', json=[
            {'id': 1, 'title': 'Fall Shootout', 'start_date': '2025-10-20T14:00:00Z'}
        ])
        responses.add(responses.GET, f'{base}/data/tracks.json', json=[])

        loader = EventDataLoader(base_url=base)
        site = EventsSite(SiteConfig(data_base_url=base, display_timezone='UTC'), loader=loader)

        assert site.cache is loader.cache
        site.events_page('all', now=NOW)
        site.reset_cache()
        site.events_page('all', now=NOW)
        assert len(responses.calls) == 4

    def test_mismatched_cache_rejected(self):
        """Test that a cache the loader does not use is refused."""
        loader = EventDataLoader(base_url='https://dfw-dragevents.com')

        with pytest.raises(ValueError):
            EventsSite(SiteConfig(), loader=loader, cache=DataCache())

    def test_loader_cache_accepted(self):
        """Test that passing the loader's own cache is allowed."""
        loader = EventDataLoader(base_url='https://dfw-dragevents.com')

        site = EventsSite(SiteConfig(), loader=loader, cache=loader.cache)

        assert site.cache is loader.cache


class TestLogging:
    """Test cases for logging setup."""

    def test_json_formatter(self):
        """Test that records are formatted as JSON."""
        record = logging.LogRecord('events_site', logging.INFO, __file__, 1, 'hello %s', ('world',), None)

        data = json.loads(JsonFormatter().format(record))

        assert data['message'] == 'hello world'
        assert data['level'] == 'INFO'
        assert data['logger'] == 'events_site'
        assert 'timestamp' in data

    def test_json_formatter_exception(self):
        """Test that exception details are included."""
        try:
            raise ValueError('boom')
        except ValueError:
            record = logging.LogRecord('events_site', logging.ERROR, __file__, 1, 'failed', (), sys.exc_info())

        data = json.loads(JsonFormatter().format(record))

        assert 'ValueError: boom' in data['exception']

    def test_setup_logging(self):
        """Test that setup_logging installs a single JSON handler."""
        root_logger = logging.getLogger()
        saved_handlers = root_logger.handlers[:]
        saved_level = root_logger.level
        try:
            setup_logging('DEBUG')
            setup_logging('WARNING')

            assert len(root_logger.handlers) == 1
            assert isinstance(root_logger.handlers[0].formatter, JsonFormatter)
            assert root_logger.level == logging.WARNING
        finally:
            root_logger.handlers[:] = saved_handlers
            root_logger.setLevel(saved_level)

    def test_create_site(self, mock_env):
        """Test building a site from the environment."""
        with patch('events_site.setup_logging') as mock_setup:
            site = create_site()

        mock_setup.assert_called_once_with('DEBUG')
        assert site.loader.base_url == 'https://dfw-dragevents.com/'
        assert site.loader.timeout == 10
        assert site.loader.cache is site.cache
