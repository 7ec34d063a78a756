from __future__ import annotations

import logging
import re
from datetime import date, datetime, timedelta, timezone, tzinfo
from enum import Enum
from typing import TYPE_CHECKING, Any, Iterable, Mapping
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .errors import EventFormatError, EventNotFoundError, StaleEventError, UnboundCalendarError
from .models import DATE_PATHS, DATE_TIME_PATHS, EventDateTime, EventDocument, FieldName, canonical_path

if TYPE_CHECKING:
    from ..integrations.google_calendar import CalendarResolver, GoogleCalendar

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"
SORT_FORMAT = "%Y-%m-%d %H:%M:%S"
_RFC3339_FORMATS = ("%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%dT%H:%M:%S.%f%z")
_EXTRA_FRACTION = re.compile(r"(\.\d{6})\d+")


class SaveMethod(str, Enum):
    """Persistence verbs understood by the remote store."""

    INSERT = "insert"
    UPDATE = "update"


def _field_property(field_name: FieldName) -> property:
    def getter(self: Event) -> Any:
        return self.get(field_name)

    def setter(self: Event, value: Any) -> None:
        self.set(field_name, value)

    return property(getter, setter, doc=f"Accessor for the ``{field_name.value}`` field.")


class Event:
    """Local view of a single Google Calendar event.

    Reads and writes go through friendly field names (see
    :data:`~src.events.models.FIELD_ALIASES`); nothing reaches Google until
    :meth:`save` or :meth:`delete` is called.
    """

    name = _field_property(FieldName.NAME)
    description = _field_property(FieldName.DESCRIPTION)
    start_date = _field_property(FieldName.START_DATE)
    end_date = _field_property(FieldName.END_DATE)
    start_date_time = _field_property(FieldName.START_DATE_TIME)
    end_date_time = _field_property(FieldName.END_DATE_TIME)

    def __init__(
        self,
        resolver: CalendarResolver | None = None,
        *,
        calendar_id: str | None = None,
        logger_instance: logging.Logger | None = None,
    ) -> None:
        self._document = EventDocument()
        self._calendar_id = calendar_id
        self._attendees: list[dict[str, Any]] = []
        self._resolver = resolver
        self._deleted = False
        self._logger = logger_instance or logger

    @classmethod
    def from_remote(
        cls,
        document: Mapping[str, Any] | EventDocument,
        calendar_id: str | None,
        resolver: CalendarResolver | None = None,
    ) -> Event:
        event = cls(resolver, calendar_id=calendar_id)
        event._document = EventDocument.from_wire(document)
        return event

    # Retrieval ---------------------------------------------------------------------
    @classmethod
    def list_events(
        cls,
        resolver: CalendarResolver,
        start: datetime | None = None,
        end: datetime | None = None,
        query_params: Mapping[str, Any] | None = None,
        calendar_id: str | None = None,
    ) -> list[Event]:
        calendar = resolver.resolve(calendar_id)
        documents = calendar.list_events(start, end, query_params or {})
        events = [cls.from_remote(document, calendar.calendar_id, resolver) for document in documents]
        logger.info("Loaded %s events from calendar %s", len(events), calendar.calendar_id)
        return sort_events(events)

    @classmethod
    def find(cls, resolver: CalendarResolver, event_id: str, calendar_id: str | None = None) -> Event:
        calendar = resolver.resolve(calendar_id)
        document = calendar.get_event(event_id)
        return cls.from_remote(document, calendar.calendar_id, resolver)

    @classmethod
    def create(
        cls,
        resolver: CalendarResolver,
        properties: Mapping[FieldName | str, Any],
        calendar_id: str | None = None,
    ) -> Event:
        event = cls(resolver, calendar_id=resolver.resolve(calendar_id).calendar_id)
        for field_name, value in properties.items():
            event.set(field_name, value)
        return event.save(SaveMethod.INSERT)

    # Field access ------------------------------------------------------------------
    def get(self, field_name: FieldName | str) -> Any:
        path = canonical_path(field_name)
        if path == FieldName.SORT_DATE.value:
            return self.get_sort_date()

        value = self._document.lookup(path)
        if not value:
            return value
        if path in DATE_PATHS:
            side = self._document.lookup(path.split(".", 1)[0])
            return _parse_date(value, side.time_zone)
        if path in DATE_TIME_PATHS:
            return _parse_datetime(value)
        return value

    def set(self, field_name: FieldName | str, value: Any) -> None:
        path = canonical_path(field_name)
        if path == FieldName.SORT_DATE.value:
            raise ValueError("sortDate is derived from the start fields and cannot be set")
        if path in DATE_PATHS or path in DATE_TIME_PATHS:
            self._set_date(path, value)
            return
        self._document.assign(path, value)

    @property
    def id(self) -> str:
        return self._document.id

    @property
    def calendar_id(self) -> str | None:
        return self._calendar_id

    @property
    def attendees(self) -> tuple[dict[str, Any], ...]:
        """Attendees queued for the next :meth:`save`."""

        return tuple(dict(attendee) for attendee in self._attendees)

    @property
    def sort_date(self) -> str:
        return self.get_sort_date()

    def to_wire(self) -> dict[str, Any]:
        return self._document.to_wire()

    # State -------------------------------------------------------------------------
    def exists(self) -> bool:
        return self._document.id != ""

    def is_all_day_event(self) -> bool:
        start = self._document.start
        return start is None or start.is_all_day

    def get_sort_date(self) -> str:
        start_date = self.get(FieldName.START_DATE)
        if start_date:
            return start_date.strftime(SORT_FORMAT)
        # timed events carry their own offsets, compare them in UTC
        start_date_time = self.get(FieldName.START_DATE_TIME)
        if start_date_time:
            return start_date_time.astimezone(timezone.utc).strftime(SORT_FORMAT)
        return ""

    def add_attendee(self, attendee: Mapping[str, Any]) -> None:
        self._attendees.append(dict(attendee))

    # Persistence -------------------------------------------------------------------
    def save(self, method: SaveMethod | str | None = None) -> Event:
        self._ensure_usable()
        if method is None:
            method = SaveMethod.UPDATE if self.exists() else SaveMethod.INSERT
        method = SaveMethod(method)

        calendar = self._calendar()
        outgoing = self._document.copy()
        outgoing.attendees = [dict(attendee) for attendee in self._attendees]

        if method is SaveMethod.INSERT:
            document = calendar.insert_event(outgoing)
        else:
            document = calendar.update_event(outgoing)

        saved = type(self).from_remote(document, calendar.calendar_id, self._resolver)
        self._logger.info("Saved event %s (%s) to calendar %s", saved.id, method.value, calendar.calendar_id)
        return saved

    def delete(self, event_id: str | None = None) -> None:
        self._ensure_usable()
        target = event_id or self._document.id
        if not target:
            raise EventNotFoundError("Cannot delete an event without an identifier")

        calendar = self._calendar()
        calendar.delete_event(target)
        if target == self._document.id:
            self._deleted = True
        self._logger.info("Deleted event %s from calendar %s", target, calendar.calendar_id)

    # Internal helpers --------------------------------------------------------------
    def _calendar(self) -> GoogleCalendar:
        if self._resolver is None:
            raise UnboundCalendarError("Event is not attached to a calendar resolver")
        return self._resolver.resolve(self._calendar_id)

    def _ensure_usable(self) -> None:
        if self._deleted:
            raise StaleEventError(f"Event {self._document.id} was deleted and cannot be reused")

    def _set_date(self, path: str, value: Any) -> None:
        if not isinstance(value, date):
            raise EventFormatError(f"{path} expects a date or datetime, got {type(value).__name__}")

        side = EventDateTime(time_zone=_time_zone_name(value))
        if path in DATE_PATHS:
            side.date = value.strftime(DATE_FORMAT)
        else:
            if not isinstance(value, datetime) or value.tzinfo is None:
                raise EventFormatError(f"{path} expects a timezone-aware datetime")
            side.date_time = _format_datetime(value)

        self._document.assign(path.split(".", 1)[0], side)
        self._logger.debug("Set %s to %s", path, side)

    def __repr__(self) -> str:
        return f"Event(id={self.id!r}, name={self._document.summary!r}, calendar_id={self._calendar_id!r})"


def _parse_date(value: str, time_zone: str | None) -> datetime:
    try:
        parsed = datetime.strptime(value, DATE_FORMAT)
    except (TypeError, ValueError) as exc:
        raise EventFormatError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc
    return parsed.replace(tzinfo=_zone(time_zone))


def _parse_datetime(value: str) -> datetime:
    if isinstance(value, str):
        value = _EXTRA_FRACTION.sub(r"\1", value)
    for pattern in _RFC3339_FORMATS:
        try:
            return datetime.strptime(value, pattern)
        except (TypeError, ValueError):
            continue
    raise EventFormatError(f"Invalid RFC 3339 timestamp {value!r}")


def _format_datetime(value: datetime) -> str:
    return value.isoformat(timespec="seconds")


def _zone(name: str | None) -> tzinfo | None:
    if not name:
        return None
    if name == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise EventFormatError(f"Unknown time zone {name!r}") from exc


def _time_zone_name(value: date) -> str | None:
    if not isinstance(value, datetime) or value.tzinfo is None:
        return None
    key = getattr(value.tzinfo, "key", None)
    if key:
        return key
    if value.utcoffset() == timedelta(0):
        return "UTC"
    return None


def sort_events(events: Iterable[Event]) -> list[Event]:
    """Order events chronologically, all-day events by their date."""

    return sorted(events, key=lambda event: event.get_sort_date())
