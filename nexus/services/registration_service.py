import re
from typing import List

from flask import current_app

from nexus.exceptions import (
    AlreadyRegisteredError,
    DuplicateParticipantEmailError,
    EventClosedError,
    ForbiddenError,
    IncompleteParticipantDetailsError,
    InvalidParticipantEmailError,
    SelfRegistrationForbiddenError,
    TeamSizeOutOfRangeError,
    UnexpectedParticipantsError,
    ValidationError,
)
from nexus.identity import Actor
from nexus.models import Registration
from nexus.models.enums import RegistrationStatus
from nexus.models.participant import Participant
from nexus.repositories import RegistrationRepository
from nexus.services.access_policy import can_view_roster, is_self_registration_forbidden
from nexus.services.event_service import EventService
from nexus.services.notification_service import NotificationService, dispatch_notifications

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def normalize_email(value) -> str:
    if not isinstance(value, str):
        return ""
    return value.strip().lower()


def is_valid_email(value: str) -> bool:
    return bool(value) and EMAIL_PATTERN.match(value) is not None


def _parse_team_size(value) -> int:
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ValidationError("teamSize must be an integer")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError("teamSize must be an integer")


class RegistrationService:
    @staticmethod
    def create_registration(actor: Actor, event_id: int, team_size, participants=None) -> Registration:
        """Register ``actor`` (and optionally a team) for an event.

        Checks run in a fixed order and each failure raises its own error
        before anything is written:

        1. event exists and is still open
        2. actor is not staff of the organizing organization
        3. actor has no registration for this event yet
        4. team size within the event's bounds
        5. solo registrations carry no extra participants
        6. team registrations list every other member with name and email
        7. all emails, the actor's included, are distinct
        """
        current_app.logger.info(
            f"Registration attempt: user {actor.id} for event {event_id}, team_size={team_size}"
        )

        event = EventService.get_event(event_id)
        if event.is_closed():
            current_app.logger.warning(f"Registration for closed event {event_id} rejected")
            raise EventClosedError()

        if is_self_registration_forbidden(actor, event):
            current_app.logger.warning(
                f"User {actor.id} ({actor.role.value}) blocked from registering for own organization's event {event_id}"
            )
            raise SelfRegistrationForbiddenError()

        if RegistrationRepository.find_by_event_and_user(event.id, actor.id):
            current_app.logger.warning(f"User {actor.id} already registered for event {event_id}")
            raise AlreadyRegisteredError()

        team_size = _parse_team_size(team_size)
        if team_size < event.min_team_size or team_size > event.max_team_size:
            raise TeamSizeOutOfRangeError(event.min_team_size, event.max_team_size)

        members = RegistrationService._validate_members(actor, team_size, participants)

        registration = Registration(
            event_id=event.id,
            user_id=actor.id,
            team_size=team_size,
            status=RegistrationStatus.REGISTERED.value,
        )
        registration.set_participants(members)
        RegistrationRepository.insert(registration)
        NotificationService.enqueue_registration_confirmation(registration, event)
        RegistrationRepository.commit()

        current_app.logger.info(
            f"Successfully registered user {actor.id} for event {event_id} "
            f"(registration {registration.id}, {team_size} participant(s))"
        )
        dispatch_notifications()
        return registration

    @staticmethod
    def _validate_members(actor: Actor, team_size: int, participants) -> List[Participant]:
        if participants is None:
            participants = []
        if not isinstance(participants, list):
            raise ValidationError("participants must be a list")

        if team_size == 1 and participants:
            raise UnexpectedParticipantsError()

        if team_size > 1 and len(participants) != team_size - 1:
            raise IncompleteParticipantDetailsError(
                f"Please provide details for all {team_size - 1} additional team members"
            )

        primary_email = normalize_email(actor.email)
        members = [
            Participant(name=(actor.name or "").strip(), email=primary_email, is_primary=True)
        ]
        for item in participants:
            if not isinstance(item, dict):
                raise IncompleteParticipantDetailsError()
            name = item.get("name")
            name = name.strip() if isinstance(name, str) else ""
            email = normalize_email(item.get("email"))
            if not name or not email:
                raise IncompleteParticipantDetailsError()
            if not is_valid_email(email):
                raise InvalidParticipantEmailError(email)
            members.append(Participant(name=name, email=email))

        seen = set()
        for member in members:
            if member.email in seen:
                raise DuplicateParticipantEmailError(member.email)
            seen.add(member.email)
        return members

    @staticmethod
    def is_registered(actor: Actor, event_id: int) -> bool:
        return RegistrationRepository.find_by_event_and_user(event_id, actor.id) is not None

    @staticmethod
    def get_roster(actor: Actor, event_id: int) -> List[Registration]:
        event = EventService.get_event(event_id)
        if not can_view_roster(actor, event):
            current_app.logger.warning(f"User {actor.id} denied roster for event {event_id}")
            raise ForbiddenError()
        return RegistrationRepository.find_by_event(event.id)
