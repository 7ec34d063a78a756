from __future__ import annotations


class GoogleCalendarError(Exception):
    """Base error for Google Calendar event handling."""


class EventNotFoundError(GoogleCalendarError):
    """Raised when the requested event does not exist remotely."""


class EventFormatError(GoogleCalendarError, ValueError):
    """Raised when a date or date-time field does not match its wire format."""


class EventFieldError(GoogleCalendarError, ValueError):
    """Raised when a dotted path descends into a field that holds a plain value."""


class RemoteCalendarError(GoogleCalendarError):
    """Raised when the Google Calendar API call fails."""


class UnboundCalendarError(GoogleCalendarError):
    """Raised when no calendar can be resolved for an operation."""


class StaleEventError(GoogleCalendarError):
    """Raised when an event is reused after it was deleted."""
