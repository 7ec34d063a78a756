from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from .errors import EventFieldError


class FieldName(str, Enum):
    """Friendly names understood by :class:`~src.events.event.Event`."""

    NAME = "name"
    DESCRIPTION = "description"
    START_DATE = "startDate"
    END_DATE = "endDate"
    START_DATE_TIME = "startDateTime"
    END_DATE_TIME = "endDateTime"
    SORT_DATE = "sortDate"


FIELD_ALIASES: Mapping[str, str] = MappingProxyType(
    {
        FieldName.NAME.value: "summary",
        FieldName.DESCRIPTION.value: "description",
        FieldName.START_DATE.value: "start.date",
        FieldName.END_DATE.value: "end.date",
        FieldName.START_DATE_TIME.value: "start.dateTime",
        FieldName.END_DATE_TIME.value: "end.dateTime",
    }
)

DATE_PATHS = frozenset({"start.date", "end.date"})
DATE_TIME_PATHS = frozenset({"start.dateTime", "end.dateTime"})

_SIDES = ("start", "end")
_SIDE_KEYS = {"date": "date", "dateTime": "date_time", "timeZone": "time_zone"}
_TOP_LEVEL = ("id", "summary", "description", "attendees")


def canonical_path(name: FieldName | str) -> str:
    """Translate a friendly name to its dotted wire path.

    Names missing from :data:`FIELD_ALIASES` are returned unchanged so any wire
    field stays reachable.
    """

    key = name.value if isinstance(name, FieldName) else name
    return FIELD_ALIASES.get(key, key)


@dataclass(slots=True)
class EventDateTime:
    """One side (start or end) of an event as sent over the wire."""

    date: str | None = None
    date_time: str | None = None
    time_zone: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def is_all_day(self) -> bool:
        return self.date_time is None

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any] | None) -> EventDateTime | None:
        if payload is None:
            return None
        if isinstance(payload, EventDateTime):
            return copy.deepcopy(payload)
        return cls(
            date=payload.get("date"),
            date_time=payload.get("dateTime"),
            time_zone=payload.get("timeZone"),
            extra={
                key: copy.deepcopy(value) for key, value in payload.items() if key not in _SIDE_KEYS
            },
        )

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = copy.deepcopy(self.extra)
        for wire_key, attr in _SIDE_KEYS.items():
            value = getattr(self, attr)
            if value is not None:
                wire[wire_key] = value
        return wire

    def lookup(self, path: str) -> Any:
        attr = _SIDE_KEYS.get(path)
        if attr is not None:
            return getattr(self, attr)
        return _dig(self.extra, path)

    def assign(self, path: str, value: Any) -> None:
        attr = _SIDE_KEYS.get(path)
        if attr is not None:
            setattr(self, attr, value)
            return
        _plant(self.extra, path, value)


@dataclass(slots=True)
class EventDocument:
    """Typed view of a Google Calendar event resource.

    Fields the mapper works with are typed attributes; every other wire key is
    kept verbatim in ``extra``.
    """

    id: str = ""
    summary: str | None = None
    description: str | None = None
    start: EventDateTime | None = None
    end: EventDateTime | None = None
    attendees: list[dict[str, Any]] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_wire(cls, payload: Mapping[str, Any]) -> EventDocument:
        if isinstance(payload, EventDocument):
            return payload.copy()
        raw_id = payload.get("id")
        extra = {
            key: copy.deepcopy(value)
            for key, value in payload.items()
            if key not in _TOP_LEVEL and key not in _SIDES
        }
        return cls(
            id="" if raw_id is None else str(raw_id),
            summary=payload.get("summary"),
            description=payload.get("description"),
            start=EventDateTime.from_wire(payload.get("start")),
            end=EventDateTime.from_wire(payload.get("end")),
            attendees=[dict(attendee) for attendee in payload.get("attendees") or []],
            extra=extra,
        )

    def to_wire(self) -> dict[str, Any]:
        wire: dict[str, Any] = copy.deepcopy(self.extra)
        if self.id:
            wire["id"] = self.id
        if self.summary is not None:
            wire["summary"] = self.summary
        if self.description is not None:
            wire["description"] = self.description
        if self.start is not None:
            wire["start"] = self.start.to_wire()
        if self.end is not None:
            wire["end"] = self.end.to_wire()
        wire["attendees"] = [dict(attendee) for attendee in self.attendees]
        return wire

    def copy(self) -> EventDocument:
        return EventDocument(
            id=self.id,
            summary=self.summary,
            description=self.description,
            start=copy.deepcopy(self.start),
            end=copy.deepcopy(self.end),
            attendees=[dict(attendee) for attendee in self.attendees],
            extra=copy.deepcopy(self.extra),
        )

    # Dotted path access ------------------------------------------------------------
    def lookup(self, path: str) -> Any:
        """Return the value stored at ``path`` or ``None`` when it is absent."""

        head, _, rest = path.partition(".")
        if head in _SIDES:
            side = getattr(self, head)
            if not rest:
                return side
            if side is None:
                return None
            return side.lookup(rest)
        if head in _TOP_LEVEL:
            value = getattr(self, head)
            return _dig(value, rest) if rest else value
        return _dig(self.extra, path)

    def assign(self, path: str, value: Any) -> None:
        """Write ``value`` at ``path``, creating nested containers as needed."""

        head, _, rest = path.partition(".")
        if head in _SIDES:
            if not rest:
                setattr(self, head, EventDateTime.from_wire(value))
                return
            side = getattr(self, head) or EventDateTime()
            side.assign(rest, value)
            setattr(self, head, side)
            return
        if head in _TOP_LEVEL:
            if rest:
                raise EventFieldError(f"Field {head!r} has no nested path {rest!r}")
            if head == "id":
                self.id = "" if value is None else str(value)
            elif head == "attendees":
                self.attendees = [dict(attendee) for attendee in value or []]
            else:
                setattr(self, head, value)
            return
        _plant(self.extra, path, value)


def _dig(container: Any, path: str) -> Any:
    current = container
    for segment in path.split("."):
        if isinstance(current, Mapping):
            if segment not in current:
                return None
            current = current[segment]
        elif isinstance(current, list) and segment.isdigit():
            index = int(segment)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None
    return current


def _plant(container: dict[str, Any], path: str, value: Any) -> None:
    *parents, leaf = path.split(".")
    current = container
    for segment in parents:
        child = current.get(segment)
        if not isinstance(child, dict):
            child = {}
            current[segment] = child
        current = child
    current[leaf] = value
