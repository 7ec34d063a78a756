from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Any, Callable, Mapping

from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from ..events.errors import (
    EventNotFoundError,
    GoogleCalendarError,
    RemoteCalendarError,
    UnboundCalendarError,
)
from ..events.models import EventDocument

logger = logging.getLogger(__name__)

DEFAULT_SCOPES = ("https://www.googleapis.com/auth/calendar",)
_MISSING_STATUSES = frozenset({404, 410})


@dataclass(slots=True)
class GoogleCalendarConfig:
    """Configuration required to talk to the Google Calendar API."""

    calendar_id: str | None = None
    credentials_path: str | None = None
    scopes: tuple[str, ...] = DEFAULT_SCOPES
    api_version: str = "v3"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> GoogleCalendarConfig:
        environ = os.environ if environ is None else environ
        return cls(
            calendar_id=environ.get("GOOGLE_CALENDAR_ID") or None,
            credentials_path=environ.get("GOOGLE_APPLICATION_CREDENTIALS") or None,
        )


ServiceFactory = Callable[[GoogleCalendarConfig], Any]
EventBody = EventDocument | Mapping[str, Any]


class GoogleCalendar:
    """Remote store for the events of a single Google calendar."""

    def __init__(
        self,
        service: Any,
        calendar_id: str,
        *,
        logger_instance: logging.Logger | None = None,
    ) -> None:
        self._service = service
        self._calendar_id = calendar_id
        self._logger = logger_instance or logger

    @property
    def calendar_id(self) -> str:
        return self._calendar_id

    def get_calendar_id(self) -> str:
        return self._calendar_id

    # Event operations --------------------------------------------------------------
    def list_events(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        query_params: Mapping[str, Any] | None = None,
    ) -> list[dict[str, Any]]:
        if start is None:
            start = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
        if end is None:
            end = datetime.combine(start.date() + timedelta(days=365), time(23, 59, 59), tzinfo=start.tzinfo)

        params: dict[str, Any] = {
            "singleEvents": True,
            "timeMin": _format_rfc3339(start),
            "timeMax": _format_rfc3339(end),
        }
        params.update(query_params or {})

        response = self._execute(
            "list events",
            lambda events: events.list(calendarId=self._calendar_id, **params),
        )
        items = list(response.get("items", []))
        self._logger.info("Fetched %s events from calendar %s", len(items), self._calendar_id)
        return items

    def get_event(self, event_id: str) -> dict[str, Any]:
        return self._execute(
            f"get event {event_id}",
            lambda events: events.get(calendarId=self._calendar_id, eventId=event_id),
            event_id=event_id,
        )

    def insert_event(self, event: EventBody) -> dict[str, Any]:
        body = _to_body(event)
        created = self._execute(
            "insert event",
            lambda events: events.insert(calendarId=self._calendar_id, body=body),
        )
        self._logger.debug("Inserted event %s", created.get("id"))
        return created

    def update_event(self, event: EventBody) -> dict[str, Any]:
        body = _to_body(event)
        event_id = body.get("id")
        if not event_id:
            raise EventNotFoundError("Cannot update an event without an identifier")
        updated = self._execute(
            f"update event {event_id}",
            lambda events: events.update(calendarId=self._calendar_id, eventId=event_id, body=body),
            event_id=event_id,
        )
        self._logger.debug("Updated event %s", event_id)
        return updated

    def delete_event(self, event_id: str) -> None:
        self._execute(
            f"delete event {event_id}",
            lambda events: events.delete(calendarId=self._calendar_id, eventId=event_id),
            event_id=event_id,
        )
        self._logger.debug("Deleted event %s", event_id)

    # Internal helpers -------------------------------------------------------------
    def _execute(
        self,
        action: str,
        build_request: Callable[[Any], Any],
        *,
        event_id: str | None = None,
    ) -> Any:
        try:
            return build_request(self._service.events()).execute()
        except HttpError as exc:
            if exc.resp.status in _MISSING_STATUSES:
                raise EventNotFoundError(
                    f"Event {event_id} not found in calendar {self._calendar_id}"
                ) from exc
            self._logger.exception("Failed to %s: %s", action, exc)
            raise RemoteCalendarError(f"Failed to {action}") from exc
        except Exception as exc:  # pragma: no cover - transport failure path
            self._logger.exception("Failed to %s: %s", action, exc)
            raise RemoteCalendarError(f"Failed to {action}") from exc


class CalendarResolver:
    """Hands out :class:`GoogleCalendar` stores for calendar identifiers."""

    def __init__(
        self,
        config: GoogleCalendarConfig,
        *,
        service_factory: ServiceFactory | None = None,
        logger_instance: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self._service: Any | None = None
        self._service_factory = service_factory or _default_service_factory
        self._logger = logger_instance or logger

    def resolve(self, calendar_id: str | None = None) -> GoogleCalendar:
        resolved = calendar_id or self.config.calendar_id
        if not resolved:
            raise UnboundCalendarError("No calendar id given and no default calendar configured")
        self._logger.debug("Resolved calendar %s", resolved)
        return GoogleCalendar(self._get_service(), resolved, logger_instance=self._logger)

    def _get_service(self) -> Any:
        if self._service is None:
            self._service = self._service_factory(self.config)
        return self._service


def _to_body(event: EventBody) -> dict[str, Any]:
    if hasattr(event, "to_wire"):
        return event.to_wire()
    return dict(event)


def _format_rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="seconds")


def _default_service_factory(config: GoogleCalendarConfig) -> Any:  # pragma: no cover - needs real credentials
    if not config.credentials_path:
        raise GoogleCalendarError("GOOGLE_APPLICATION_CREDENTIALS must point to a service account key file")
    credentials = service_account.Credentials.from_service_account_file(
        config.credentials_path,
        scopes=list(config.scopes),
    )
    return build("calendar", config.api_version, credentials=credentials, cache_discovery=False)
