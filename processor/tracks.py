"""Track lookup for events."""
from typing import Dict, Iterable, Optional

from processor.models import Event, Track

DEFAULT_CITY = 'Dallas-Fort Worth'


class TrackDirectory:
    """Resolves an event's track_id to the published track."""

    def __init__(self, tracks: Iterable[Track]):
        self._tracks: Dict[int, Track] = {track.id: track for track in tracks}

    def get(self, track_id) -> Optional[Track]:
        return self._tracks.get(track_id)

    def track_name_for(self, event: Event) -> str:
        """Name of the event's track, falling back to event.track_name."""
        track = self.get(event.track_id)
        if track is not None and track.name:
            return track.name
        return event.track_name or ''

    def city_for(self, event: Event) -> str:
        """City of the event's track, falling back to the region label."""
        track = self.get(event.track_id)
        if track is not None and track.city:
            return track.city
        return DEFAULT_CITY
