"""Loader for the published events.json and tracks.json documents."""
import logging
import time
from typing import Any, List, Optional, Tuple

import requests

from processor.models import Event, Track

logger = logging.getLogger(__name__)


class DataFormatError(ValueError):
    """Raised when a data document is not a JSON array of objects."""


class DataCache:
    """Holds the last loaded events and tracks until reset."""

    def __init__(self):
        self._data: Optional[Tuple[List[Event], List[Track]]] = None

    def get(self) -> Optional[Tuple[List[Event], List[Track]]]:
        return self._data

    def set(self, events: List[Event], tracks: List[Track]) -> None:
        self._data = (events, tracks)

    def reset(self) -> None:
        """Invalidate the cached documents so the next load refetches them."""
        self._data = None


class EventDataLoader:
    """Fetches event and track data from the static site."""

    EVENTS_PATH = 'data/events.json'
    TRACKS_PATH = 'data/tracks.json'
    NO_CACHE_HEADERS = {
        'Cache-Control': 'no-cache',
        'Pragma': 'no-cache'
    }

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        cache: Optional[DataCache] = None
    ):
        """
        Initialize the data loader.

        Args:
            base_url: Site root the data/ documents live under
            timeout: HTTP request timeout in seconds (default: 30)
            cache: Cache shared with the caller; a private one if omitted
        """
        self.base_url = base_url.rstrip('/') + '/'
        self.timeout = timeout
        self.cache = cache if cache is not None else DataCache()

    def load(self) -> Tuple[List[Event], List[Track]]:
        """
        Load events and tracks, using the cache when it is populated.

        Returns:
            Tuple of (events, tracks)

        Raises:
            requests.RequestException: If all retry attempts fail
            DataFormatError: If a document is not a JSON array of objects
        """
        cached = self.cache.get()
        if cached is not None:
            logger.debug("Using cached event data")
            return cached

        raw_events = self.fetch_json(self.EVENTS_PATH)
        raw_tracks = self.fetch_json(self.TRACKS_PATH)

        events = [Event.from_dict(item) for item in self._as_records(raw_events, self.EVENTS_PATH)]
        tracks = [Track.from_dict(item) for item in self._as_records(raw_tracks, self.TRACKS_PATH)]

        logger.info(f"Loaded {len(events)} events and {len(tracks)} tracks")
        self.cache.set(events, tracks)
        return events, tracks

    def fetch_json(self, path: str) -> Any:
        """
        Fetch and decode a JSON document with retry logic.

        Args:
            path: Document path relative to the site root

        Returns:
            Decoded JSON value

        Raises:
            requests.RequestException: If all retry attempts fail
            DataFormatError: If the body is not valid JSON
        """
        url = self.base_url + path
        max_retries = 3
        base_delay = 1  # seconds

        for attempt in range(max_retries):
            try:
                logger.info(f"Fetching {path} (attempt {attempt + 1}/{max_retries})")
                response = requests.get(
                    url,
                    headers=self.NO_CACHE_HEADERS,
                    timeout=self.timeout
                )
                response.raise_for_status()
                break

            except requests.RequestException as e:
                if attempt < max_retries - 1:
                    delay = base_delay * (2 ** attempt)
                    logger.warning(
                        f"Failed to fetch {path} (attempt {attempt + 1}/{max_retries}): {e}. "
                        f"Retrying in {delay} seconds..."
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"All {max_retries} attempts to fetch {path} failed. Last error: {e}"
                    )
                    raise

        try:
            return response.json()
        except ValueError as e:
            raise DataFormatError(f"Failed to parse {path}: {e}") from e

    def _as_records(self, value: Any, path: str) -> List[dict]:
        """
        Check that a decoded document is a list of JSON objects.

        Args:
            value: Decoded JSON value
            path: Document path, for the error message

        Returns:
            The value itself

        Raises:
            DataFormatError: If the shape is wrong
        """
        if not isinstance(value, list):
            raise DataFormatError(f"{path} must contain a JSON array")
        if not all(isinstance(item, dict) for item in value):
            raise DataFormatError(f"{path} must contain only JSON objects")
        return value
