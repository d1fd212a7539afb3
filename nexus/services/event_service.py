from decimal import Decimal, InvalidOperation
from typing import List

from flask import current_app

from nexus.exceptions import (
    EventNotFoundError,
    ForbiddenError,
    MissingFieldsError,
    ValidationError,
)
from nexus.identity import Actor
from nexus.models import Event
from nexus.models.enums import EventType
from nexus.repositories import EventRepository, OrganizationRepository
from nexus.services.access_policy import can_manage_event
from nexus.utils.dates import parse_iso, utcnow


def _as_team_size(value, field):
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError(f"{field} must be an integer")
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be an integer")
    if size < 1:
        raise ValidationError(f"{field} must be at least 1")
    return size


class EventService:
    @staticmethod
    def _auto_complete(events: List[Event]) -> List[Event]:
        now = utcnow()
        expired = [e for e in events if not e.completed and e.has_started(now)]
        if expired:
            EventRepository.mark_completed(expired)
            current_app.logger.info(
                f"Marked {len(expired)} past event(s) as completed: {[e.id for e in expired]}"
            )
        return events

    @staticmethod
    def get_events() -> List[Event]:
        return EventService._auto_complete(EventRepository.get_events())

    @staticmethod
    def get_event(event_id: int) -> Event:
        event = EventRepository.get_event(event_id)
        if not event:
            raise EventNotFoundError(f"Event with ID {event_id} not found")
        EventService._auto_complete([event])
        return event

    @staticmethod
    def create_event(actor: Actor, data) -> Event:
        if not (actor.is_super_admin or actor.is_organizer):
            raise ForbiddenError("Unauthorized to create events")

        required_fields = ["title", "date", "location"]
        missing = [f for f in required_fields if not data.get(f)]
        if missing:
            raise MissingFieldsError(missing)

        if actor.is_super_admin:
            organization_id = data.get("organization_id")
            if organization_id is None:
                raise MissingFieldsError(["organization_id"])
        else:
            organization_id = actor.organization.id
            if organization_id is None:
                raise ForbiddenError(
                    "You are not associated with any organization. Please contact your administrator."
                )
        try:
            organization = OrganizationRepository.get_organization(int(organization_id))
        except (TypeError, ValueError):
            organization = None
        if not organization:
            raise ValidationError("Organization not found")

        try:
            date = parse_iso(data["date"])
        except ValueError:
            raise ValidationError("date must be an ISO-8601 timestamp")
        if date <= utcnow():
            raise ValidationError("Event date must be in the future")

        min_team_size = _as_team_size(data.get("min_team_size", 1), "min_team_size")
        max_team_size = _as_team_size(data.get("max_team_size", min_team_size), "max_team_size")
        if min_team_size > max_team_size:
            raise ValidationError("min_team_size cannot exceed max_team_size")

        event_type = data.get("event_type", EventType.WORKSHOP.value)
        if event_type not in [t.value for t in EventType]:
            raise ValidationError(f"Unsupported event type: {event_type}")

        is_free = bool(data.get("is_free", True))
        price = None
        if not is_free:
            try:
                price = Decimal(str(data.get("price", 0)))
            except InvalidOperation:
                raise ValidationError("price must be a number")

        event = EventRepository.create_event(
            {
                "title": data["title"].strip(),
                "description": data.get("description"),
                "date": date,
                "location": data["location"].strip(),
                "event_type": event_type,
                "department": data.get("department"),
                "min_team_size": min_team_size,
                "max_team_size": max_team_size,
                "is_free": is_free,
                "price": price,
                "organization_id": organization.id,
                "organizer_id": actor.id,
            }
        )
        current_app.logger.info(
            f"Event {event.id} created by user {actor.id} for organization {organization.id}"
        )
        return event

    @staticmethod
    def complete_event(actor: Actor, event_id: int) -> Event:
        event = EventService.get_event(event_id)
        if not can_manage_event(actor, event):
            raise ForbiddenError("Unauthorized to complete this event")
        if not event.completed:
            EventRepository.mark_completed([event])
            current_app.logger.info(f"Event {event_id} marked completed by user {actor.id}")
        return event
