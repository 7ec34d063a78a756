"""Mapping between Google Calendar event resources and local event objects."""

from .errors import (
    EventFieldError,
    EventFormatError,
    EventNotFoundError,
    GoogleCalendarError,
    RemoteCalendarError,
    StaleEventError,
    UnboundCalendarError,
)
from .event import Event, SaveMethod, sort_events
from .models import FIELD_ALIASES, EventDateTime, EventDocument, FieldName, canonical_path

__all__ = [
    "FIELD_ALIASES",
    "Event",
    "EventDateTime",
    "EventDocument",
    "EventFieldError",
    "EventFormatError",
    "EventNotFoundError",
    "FieldName",
    "GoogleCalendarError",
    "RemoteCalendarError",
    "SaveMethod",
    "StaleEventError",
    "UnboundCalendarError",
    "canonical_path",
    "sort_events",
]
