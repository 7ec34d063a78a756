from __future__ import annotations

import pytest

from src.integrations.google_calendar import CalendarResolver, GoogleCalendarConfig

from fakes import DEFAULT_CALENDAR, FakeCalendarService


@pytest.fixture
def calendar_service() -> FakeCalendarService:
    return FakeCalendarService()


@pytest.fixture
def resolver(calendar_service: FakeCalendarService) -> CalendarResolver:
    config = GoogleCalendarConfig(calendar_id=DEFAULT_CALENDAR)
    return CalendarResolver(config, service_factory=lambda cfg: calendar_service)
