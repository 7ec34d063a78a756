"""REST API exposing Google Calendar events."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Query, Response, status
from pydantic import BaseModel, Field, model_validator

from ..events.errors import (
    EventFieldError,
    EventFormatError,
    EventNotFoundError,
    GoogleCalendarError,
    RemoteCalendarError,
)
from ..events.event import Event
from ..events.models import FieldName
from ..integrations.google_calendar import CalendarResolver, GoogleCalendarConfig


class AttendeePayload(BaseModel):
    email: str
    display_name: Optional[str] = None
    optional: bool = False

    def to_wire(self) -> dict[str, object]:
        record: dict[str, object] = {"email": self.email}
        if self.display_name:
            record["displayName"] = self.display_name
        if self.optional:
            record["optional"] = True
        return record


class EventPayload(BaseModel):
    """Fields accepted when creating or updating an event."""

    name: Optional[str] = None
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    start_date_time: Optional[datetime] = None
    end_date_time: Optional[datetime] = None
    attendees: List[AttendeePayload] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_sides(self) -> "EventPayload":
        if self.start_date is not None and self.start_date_time is not None:
            raise ValueError("Provide either start_date or start_date_time, not both")
        if self.end_date is not None and self.end_date_time is not None:
            raise ValueError("Provide either end_date or end_date_time, not both")
        return self

    def field_values(self) -> dict[FieldName, object]:
        values = {
            FieldName.NAME: self.name,
            FieldName.DESCRIPTION: self.description,
            FieldName.START_DATE: self.start_date,
            FieldName.END_DATE: self.end_date,
            FieldName.START_DATE_TIME: self.start_date_time,
            FieldName.END_DATE_TIME: self.end_date_time,
        }
        return {name: value for name, value in values.items() if value is not None}


class EventCreateRequest(EventPayload):
    calendar_id: Optional[str] = None


class EventUpdateRequest(EventPayload):
    ...


class EventResponse(BaseModel):
    id: str
    calendar_id: Optional[str]
    name: Optional[str]
    description: Optional[str]
    start: Optional[datetime]
    end: Optional[datetime]
    all_day: bool
    sort_date: str
    attendees: List[Dict[str, Any]]


def _serialize_event(event: Event) -> EventResponse:
    if event.is_all_day_event():
        start, end = event.start_date, event.end_date
    else:
        start, end = event.start_date_time, event.end_date_time
    return EventResponse(
        id=event.id,
        calendar_id=event.calendar_id,
        name=event.name,
        description=event.description,
        start=start,
        end=end,
        all_day=event.is_all_day_event(),
        sort_date=event.get_sort_date(),
        attendees=event.get("attendees") or [],
    )


def _http_error(exc: GoogleCalendarError) -> HTTPException:
    if isinstance(exc, EventNotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
    if isinstance(exc, (EventFormatError, EventFieldError)):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    if isinstance(exc, RemoteCalendarError):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def create_app(resolver: Optional[CalendarResolver] = None) -> FastAPI:
    resolver = resolver or CalendarResolver(GoogleCalendarConfig.from_env())

    app = FastAPI(title="Google Calendar Events API")

    @app.get("/api/events", response_model=List[EventResponse])
    def list_events(
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        calendar_id: Optional[str] = Query(default=None),
    ) -> List[EventResponse]:
        try:
            events = Event.list_events(resolver, start, end, calendar_id=calendar_id)
            return [_serialize_event(event) for event in events]
        except GoogleCalendarError as exc:
            raise _http_error(exc) from exc

    @app.get("/api/events/{event_id}", response_model=EventResponse)
    def get_event(event_id: str, calendar_id: Optional[str] = Query(default=None)) -> EventResponse:
        try:
            return _serialize_event(Event.find(resolver, event_id, calendar_id))
        except GoogleCalendarError as exc:
            raise _http_error(exc) from exc

    @app.post("/api/events", status_code=status.HTTP_201_CREATED, response_model=EventResponse)
    def create_event(payload: EventCreateRequest) -> EventResponse:
        try:
            event = Event(resolver, calendar_id=resolver.resolve(payload.calendar_id).calendar_id)
            for name, value in payload.field_values().items():
                event.set(name, value)
            for attendee in payload.attendees:
                event.add_attendee(attendee.to_wire())
            return _serialize_event(event.save())
        except GoogleCalendarError as exc:
            raise _http_error(exc) from exc

    @app.put("/api/events/{event_id}", response_model=EventResponse)
    def update_event(
        event_id: str,
        payload: EventUpdateRequest,
        calendar_id: Optional[str] = Query(default=None),
    ) -> EventResponse:
        try:
            event = Event.find(resolver, event_id, calendar_id)
            for name, value in payload.field_values().items():
                event.set(name, value)
            attendees = [attendee.to_wire() for attendee in payload.attendees] or event.get("attendees") or []
            for attendee in attendees:
                event.add_attendee(attendee)
            return _serialize_event(event.save())
        except GoogleCalendarError as exc:
            raise _http_error(exc) from exc

    @app.delete("/api/events/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
    def delete_event(event_id: str, calendar_id: Optional[str] = Query(default=None)) -> Response:
        try:
            Event.find(resolver, event_id, calendar_id).delete()
        except GoogleCalendarError as exc:
            raise _http_error(exc) from exc
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @app.post("/api/events/{event_id}/attendees", response_model=EventResponse)
    def add_attendee(
        event_id: str,
        payload: AttendeePayload,
        calendar_id: Optional[str] = Query(default=None),
    ) -> EventResponse:
        try:
            event = Event.find(resolver, event_id, calendar_id)
            for attendee in event.get("attendees") or []:
                event.add_attendee(attendee)
            event.add_attendee(payload.to_wire())
            return _serialize_event(event.save())
        except GoogleCalendarError as exc:
            raise _http_error(exc) from exc

    return app


app = create_app()
