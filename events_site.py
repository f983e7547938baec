"""Page bootstrap for the DFW Drag Racing Events site."""
import json
import logging
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from loader.data_loader import DataCache, EventDataLoader
from processor.calendar_export import CalendarExporter
from processor.date_formatter import DateFormatter
from processor.event_filters import FILTER_UPCOMING, EventFilter
from processor.tracks import TrackDirectory
from renderer.html_renderer import HtmlRenderer

HTML_CONTENT_TYPE = 'text/html; charset=utf-8'
ICS_CONTENT_TYPE = 'text/calendar; charset=utf-8'


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class SiteConfig:
    """Runtime settings read from environment variables."""
    data_base_url: str = 'http://localhost:8000'
    log_level: str = 'INFO'
    timeout_seconds: int = 30
    display_timezone: str = 'America/Chicago'
    default_filter: str = FILTER_UPCOMING

    @classmethod
    def from_env(cls) -> 'SiteConfig':
        return cls(
            data_base_url=os.environ.get('DATA_BASE_URL', cls.data_base_url),
            log_level=os.environ.get('LOG_LEVEL', cls.log_level),
            timeout_seconds=_env_int('TIMEOUT_SECONDS', cls.timeout_seconds),
            display_timezone=os.environ.get('DISPLAY_TIMEZONE', cls.display_timezone),
            default_filter=os.environ.get('DEFAULT_FILTER', cls.default_filter)
        )

    def tz(self):
        """Display timezone, UTC when the configured name is unknown."""
        try:
            return ZoneInfo(self.display_timezone)
        except (ZoneInfoNotFoundError, ValueError):
            logging.getLogger(__name__).warning(
                f"Unknown timezone '{self.display_timezone}', using UTC"
            )
            return timezone.utc


class EventsSite:
    """Wires the data loader, event engine and renderer into page responses."""

    def __init__(
        self,
        config: SiteConfig,
        loader: Optional[EventDataLoader] = None,
        cache: Optional[DataCache] = None
    ):
        """
        Initialize the site.

        Args:
            config: Site configuration
            loader: Data loader; built from the config when omitted
            cache: Cache for loaded documents, shared with the loader;
                must be the loader's own cache when both are given

        Raises:
            ValueError: If the cache is not the one the loader uses
        """
        self.config = config
        if loader is not None:
            if cache is not None and cache is not loader.cache:
                raise ValueError("cache must be the cache used by the given loader")
            self.cache = loader.cache
            self.loader = loader
        else:
            self.cache = cache if cache is not None else DataCache()
            self.loader = EventDataLoader(
                base_url=config.data_base_url,
                timeout=config.timeout_seconds,
                cache=self.cache
            )
        tz = config.tz()
        self.event_filter = EventFilter(tz)
        self.formatter = DateFormatter(tz)
        self.exporter = CalendarExporter(tz)
        self.renderer = HtmlRenderer(self.formatter, self.exporter)
        self.logger = logging.getLogger(__name__)

    def reset_cache(self) -> None:
        """Drop loaded documents so the next page refetches them."""
        self.cache.reset()

    def events_page(
        self,
        filter_name: Optional[str] = None,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Render the events list for a filter preset.

        Args:
            filter_name: Preset name, the configured default when omitted
            now: Reference instant, the current time when omitted

        Returns:
            Response dict with statusCode, headers and body
        """
        filter_name = filter_name or self.config.default_filter
        now = now or datetime.now(timezone.utc)

        try:
            events, tracks = self.loader.load()
        except Exception as e:
            return self._load_failure(e)

        selected = self.event_filter.select_events(events, filter_name, now)
        self.logger.info(
            f"Rendering {len(selected)} of {len(events)} events for filter '{filter_name}'"
        )
        body = self.renderer.render_events_page(selected, tracks, filter_name)
        return self._response(200, body)

    def event_page(self, event_id: Any) -> Dict[str, Any]:
        """
        Render the detail page for one event.

        Args:
            event_id: Event id, as an int or a query-string value

        Returns:
            Response dict with statusCode, headers and body
        """
        try:
            events, tracks = self.loader.load()
        except Exception as e:
            return self._load_failure(e)

        event = self._find_event(events, event_id)
        if event is None:
            return self._not_found(event_id)

        body = self.renderer.render_event_detail(
            event,
            tracks,
            calendar_href=f'event.ics?id={event.id}'
        )
        return self._response(200, body)

    def calendar_download(
        self,
        event_id: Any,
        now: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """
        Build the ICS download for one event.

        Args:
            event_id: Event id, as an int or a query-string value
            now: Instant for DTSTAMP, the current time when omitted

        Returns:
            Response dict with statusCode, headers and body
        """
        now = now or datetime.now(timezone.utc)

        try:
            events, tracks = self.loader.load()
        except Exception as e:
            return self._load_failure(e)

        event = self._find_event(events, event_id)
        if event is None:
            return self._not_found(event_id)

        location = TrackDirectory(tracks).track_name_for(event)
        ics = self.exporter.generate_ics(event, now=now, location=location)
        if ics is None:
            self.logger.info(f"Event {event.id} has no start date, no calendar export")
            body = self.renderer.render_message_page(
                'Date TBA',
                'This event has no confirmed date yet, so it cannot be added to a calendar.'
            )
            return self._response(422, body)

        filename = self.exporter.ics_filename(event)
        return {
            'statusCode': 200,
            'headers': {
                'Content-Type': ICS_CONTENT_TYPE,
                'Content-Disposition': f'attachment; filename="{filename}"'
            },
            'body': ics
        }

    def _find_event(self, events, event_id):
        try:
            wanted = int(event_id)
        except (TypeError, ValueError):
            return None
        return next((event for event in events if event.id == wanted), None)

    def _not_found(self, event_id: Any) -> Dict[str, Any]:
        self.logger.info(f"Event {event_id!r} not found")
        body = self.renderer.render_message_page('Event not found', 'The event you are looking for does not exist.')
        return self._response(404, body)

    def _load_failure(self, error: Exception) -> Dict[str, Any]:
        self.logger.error(
            f"Failed to load event data: {str(error)}",
            extra={'error_type': type(error).__name__},
            exc_info=True
        )
        body = self.renderer.render_message_page(
            'Events unavailable',
            'Event data could not be loaded. Please try again later.'
        )
        return self._response(500, body)

    @staticmethod
    def _response(status_code: int, body: str) -> Dict[str, Any]:
        return {
            'statusCode': status_code,
            'headers': {'Content-Type': HTML_CONTENT_TYPE},
            'body': body
        }


def create_site(config: Optional[SiteConfig] = None) -> EventsSite:
    """Build a site from the environment, configuring logging first."""
    config = config or SiteConfig.from_env()
    setup_logging(config.log_level)
    return EventsSite(config)
