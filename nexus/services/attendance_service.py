from flask import current_app

from nexus.exceptions import (
    ForbiddenError,
    InvalidStateTransitionError,
    ParticipantNotFoundError,
    RegistrationNotFoundError,
    ValidationError,
)
from nexus.extensions import db
from nexus.identity import Actor
from nexus.models import Event, Registration
from nexus.models.enums import AttendanceAction, AttendanceStatus
from nexus.models.participant import Participant
from nexus.repositories import RegistrationRepository
from nexus.services.access_policy import can_confirm_attendance, can_mark_attendance
from nexus.services.event_service import EventService
from nexus.services.notification_service import NotificationService, dispatch_notifications
from nexus.services.registration_service import is_valid_email, normalize_email
from nexus.utils.dates import utcnow

REQUESTABLE_FROM = (AttendanceStatus.UNMARKED, AttendanceStatus.ABSENT)


def transition(participant: Participant, action: AttendanceAction, actor_id: int, notes=None, now=None) -> Participant:
    """Apply one attendance action and return the updated participant.

    Raises InvalidStateTransitionError when the current status does not
    allow the action; the input participant is never modified.
    """
    now = now or utcnow()
    status = participant.attendance.status

    if action == AttendanceAction.MARK_PRESENT:
        return participant.with_attendance(
            status=AttendanceStatus.CONFIRMED,
            marked_by=actor_id,
            marked_at=now,
            confirmed_by=actor_id,
            confirmed_at=now,
            confirmation_notes=notes,
        )

    if action == AttendanceAction.REQUEST_CONFIRMATION:
        if status not in REQUESTABLE_FROM:
            raise InvalidStateTransitionError(
                f"Cannot request confirmation for attendance that is {status.value}"
            )
        return participant.with_attendance(
            status=AttendanceStatus.PENDING_CONFIRMATION,
            marked_by=actor_id,
            marked_at=now,
            confirmation_notes=notes,
        )

    if action == AttendanceAction.CONFIRM_ATTENDANCE:
        if status != AttendanceStatus.PENDING_CONFIRMATION:
            raise InvalidStateTransitionError()
        return participant.with_attendance(
            status=AttendanceStatus.CONFIRMED,
            confirmed_by=actor_id,
            confirmed_at=now,
            confirmation_notes=notes,
        )

    if action == AttendanceAction.MARK_ABSENT:
        # Reopens the record: a later confirmation earns a fresh certificate.
        return participant.with_attendance(
            status=AttendanceStatus.ABSENT,
            marked_by=actor_id,
            marked_at=now,
            confirmed_by=None,
            confirmed_at=None,
            certificate_sent_at=None,
            confirmation_notes=notes,
        )

    raise ValidationError("Unsupported action")


def parse_action(value) -> AttendanceAction:
    try:
        return AttendanceAction(value)
    except ValueError:
        raise ValidationError("Unsupported action")


class AttendanceService:
    @staticmethod
    def update_attendance(
        actor: Actor,
        event_id: int,
        registration_id: int,
        participant_email: str,
        action,
        notes=None,
    ) -> Participant:
        action = parse_action(action)
        email = normalize_email(participant_email)
        if not email:
            raise ValidationError("registrationId and participantEmail are required")
        if notes is not None and not isinstance(notes, str):
            raise ValidationError("notes must be a string")

        event = EventService.get_event(event_id)
        if not can_mark_attendance(actor, event):
            current_app.logger.warning(
                f"User {actor.id} ({actor.role.value}) denied attendance update on event {event_id}"
            )
            raise ForbiddenError()
        if action == AttendanceAction.CONFIRM_ATTENDANCE and not can_confirm_attendance(actor, event):
            raise ForbiddenError("Only admins can confirm attendance")

        registration = RegistrationRepository.find_by_id_and_event(
            registration_id, event.id, for_update=True
        )
        if not registration:
            raise RegistrationNotFoundError()
        participant = registration.find_participant(email)
        if not participant:
            raise ParticipantNotFoundError()

        updated = transition(participant, action, actor.id, notes)
        registration.replace_participant(updated)
        queued = AttendanceService._queue_certificate(registration, updated, event)
        db.session.commit()

        current_app.logger.info(
            f"Attendance for {email} on registration {registration.id} "
            f"{participant.attendance.status.value} -> {updated.attendance.status.value} "
            f"by user {actor.id} ({action.value})"
        )

        if queued:
            dispatch_notifications()
            # Inline dispatch may already have stamped certificate_sent_at.
            db.session.refresh(registration)
        return registration.find_participant(email) or updated

    @staticmethod
    def _queue_certificate(registration: Registration, participant: Participant, event: Event) -> bool:
        attendance = participant.attendance
        if attendance.status != AttendanceStatus.CONFIRMED:
            return False
        if attendance.certificate_sent_at is not None:
            return False
        if not is_valid_email(participant.email):
            current_app.logger.warning(
                f"Not sending certificate to invalid address {participant.email!r}"
            )
            return False
        if NotificationService.has_pending_certificate(registration, participant):
            return True
        NotificationService.enqueue_certificate(registration, participant, event)
        return True
