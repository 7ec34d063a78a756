"""Integration layer for the Google Calendar API."""

from .google_calendar import (
    CalendarResolver,
    GoogleCalendar,
    GoogleCalendarConfig,
)

__all__ = [
    "CalendarResolver",
    "GoogleCalendar",
    "GoogleCalendarConfig",
]
