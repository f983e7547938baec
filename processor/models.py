"""Data models for events and tracks."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

Number = Union[int, float]


@dataclass
class ClassRule:
    """Single free-text rule attached to a racing class."""
    rule: str
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ClassRule':
        return cls(rule=data.get('rule') or '', id=data.get('id'))


@dataclass
class EventClass:
    """Racing class offered at an event."""
    name: str
    buyin_fee: Optional[Number] = None
    rules: List[ClassRule] = field(default_factory=list)
    id: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EventClass':
        return cls(
            name=data.get('name') or '',
            buyin_fee=data.get('buyin_fee'),
            rules=[ClassRule.from_dict(r) for r in data.get('rules') or []],
            id=data.get('id')
        )


@dataclass
class Event:
    """Event record as published in events.json."""
    id: int
    title: str
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    track_id: Optional[int] = None
    track_name: Optional[str] = None
    description: Optional[str] = None
    event_driver_fee: Optional[Number] = None
    event_spectator_fee: Optional[Number] = None
    url: Optional[str] = None
    classes: List[EventClass] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Event':
        """
        Build an Event from a parsed JSON object.

        Missing keys become None (or an empty class list); dates are kept
        as the raw strings so unparsable values survive to the engine.

        Args:
            data: Parsed JSON object

        Returns:
            Event object
        """
        return cls(
            id=data.get('id'),
            title=data.get('title') or '',
            start_date=data.get('start_date'),
            end_date=data.get('end_date'),
            track_id=data.get('track_id'),
            track_name=data.get('track_name'),
            description=data.get('description'),
            event_driver_fee=data.get('event_driver_fee'),
            event_spectator_fee=data.get('event_spectator_fee'),
            url=data.get('url'),
            classes=[EventClass.from_dict(c) for c in data.get('classes') or []]
        )


@dataclass
class Track:
    """Race track as published in tracks.json."""
    id: int
    name: str
    city: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Track':
        return cls(
            id=data.get('id'),
            name=data.get('name') or '',
            city=data.get('city')
        )
