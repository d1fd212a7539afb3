import atexit
import logging
import threading

from flask import current_app

from nexus.extensions import db
from nexus.models import Event, Registration
from nexus.models.enums import AttendanceStatus, NotificationKind, NotificationStatus
from nexus.models.participant import Participant
from nexus.repositories import NotificationRepository, RegistrationRepository
from nexus.utils.dates import isoformat, parse_iso, utcnow

logger = logging.getLogger(__name__)


def _organization_name(event: Event) -> str:
    return event.organization_name or current_app.config.get(
        "DEFAULT_ORGANIZATION_NAME", "Nexus Events"
    )


def _event_payload(event: Event) -> dict:
    return {
        "event_id": event.id,
        "event_title": event.title,
        "event_date": isoformat(event.date),
        "organization_name": _organization_name(event),
        "location": event.location,
    }


class NotificationService:
    """Outbox writes and the processing of a single outbox row.

    Enqueue methods only stage rows in the caller's session, so a
    notification exists if and only if the state change it describes was
    committed.
    """

    @staticmethod
    def enqueue_registration_confirmation(registration: Registration, event: Event):
        participants = registration.get_participants()
        payload = _event_payload(event)
        payload["recipients"] = [p.email for p in participants]
        primary = next((p for p in participants if p.is_primary), None)
        return NotificationRepository.add(
            {
                "kind": NotificationKind.REGISTRATION_CONFIRMATION.value,
                "registration_id": registration.id,
                "recipient": primary.email if primary else None,
                "payload": payload,
            }
        )

    @staticmethod
    def enqueue_certificate(registration: Registration, participant: Participant, event: Event):
        payload = _event_payload(event)
        payload["participant_name"] = participant.name
        return NotificationRepository.add(
            {
                "kind": NotificationKind.CERTIFICATE.value,
                "registration_id": registration.id,
                "recipient": participant.email,
                "payload": payload,
            }
        )

    @staticmethod
    def has_pending_certificate(registration: Registration, participant: Participant) -> bool:
        return NotificationRepository.has_pending_certificate(
            registration.id, participant.email
        )

    @staticmethod
    def process(entry_id: int, gateway, max_attempts: int = 3):
        entry = NotificationRepository.get(entry_id)
        if entry is None or entry.status != NotificationStatus.PENDING.value:
            return None

        if entry.kind == NotificationKind.CERTIFICATE.value:
            NotificationService._process_certificate(entry, gateway, max_attempts)
        elif entry.kind == NotificationKind.REGISTRATION_CONFIRMATION.value:
            NotificationService._process_confirmation(entry, gateway, max_attempts)
        else:
            logger.warning(f"Skipping outbox entry {entry.id} with unknown kind {entry.kind}")
            NotificationService._finish(entry, NotificationStatus.SKIPPED)
        db.session.commit()
        return entry

    @staticmethod
    def _process_confirmation(entry, gateway, max_attempts):
        payload = entry.payload or {}
        recipients = payload.get("recipients") or []
        if not recipients:
            NotificationService._finish(entry, NotificationStatus.SKIPPED)
            return
        try:
            gateway.send_registration_confirmation(
                recipients,
                payload.get("event_title"),
                NotificationService._payload_date(payload),
                payload.get("organization_name"),
            )
        except Exception as e:
            NotificationService._record_failure(entry, e, max_attempts)
            return
        logger.info(
            f"Sent registration confirmation for registration {entry.registration_id} "
            f"to {len(recipients)} recipient(s)"
        )
        NotificationService._finish(entry, NotificationStatus.SENT)

    @staticmethod
    def _process_certificate(entry, gateway, max_attempts):
        registration = RegistrationRepository.get_registration(entry.registration_id, fresh=True)
        participant = registration.find_participant(entry.recipient) if registration else None
        if not NotificationService._awaits_certificate(participant):
            logger.info(
                f"Certificate for {entry.recipient} on registration {entry.registration_id} "
                f"no longer needed, skipping"
            )
            NotificationService._finish(entry, NotificationStatus.SKIPPED)
            return

        payload = entry.payload or {}
        try:
            gateway.send_certificate(
                participant.name,
                participant.email,
                payload.get("event_title"),
                NotificationService._payload_date(payload),
                payload.get("organization_name"),
                payload.get("location"),
            )
        except Exception as e:
            NotificationService._record_failure(entry, e, max_attempts)
            return

        NotificationService._finish(entry, NotificationStatus.SENT)

        # Re-read under lock: attendance may have changed while the mail was in flight.
        RegistrationRepository.lock(registration)
        current = registration.find_participant(entry.recipient)
        if not NotificationService._awaits_certificate(current):
            logger.warning(
                f"Attendance for {entry.recipient} changed during certificate delivery; "
                f"leaving certificate marker unset"
            )
            return
        registration.replace_participant(
            current.with_attendance(certificate_sent_at=utcnow())
        )
        logger.info(
            f"Certificate sent to {entry.recipient} for registration {entry.registration_id}"
        )

    @staticmethod
    def _awaits_certificate(participant) -> bool:
        return (
            participant is not None
            and participant.attendance.status == AttendanceStatus.CONFIRMED
            and participant.attendance.certificate_sent_at is None
        )

    @staticmethod
    def _payload_date(payload):
        value = payload.get("event_date")
        return parse_iso(value) if value else None

    @staticmethod
    def _finish(entry, status: NotificationStatus):
        entry.status = status.value
        entry.processed_at = utcnow()

    @staticmethod
    def _record_failure(entry, error, max_attempts):
        entry.attempts = (entry.attempts or 0) + 1
        entry.last_error = str(error)
        if entry.attempts >= max_attempts:
            NotificationService._finish(entry, NotificationStatus.FAILED)
        logger.error(
            f"Notification {entry.id} ({entry.kind}) to {entry.recipient} failed "
            f"(attempt {entry.attempts}/{max_attempts}): {error}"
        )


class NotificationDispatcher:
    """Drains the notification outbox.

    ``inline`` mode drains synchronously when ``notify`` is called, after
    the request has committed. ``thread`` mode runs a daemon worker that
    wakes on ``notify`` or every ``NOTIFICATION_POLL_SECONDS``.
    """

    INLINE = "inline"
    THREAD = "thread"

    def __init__(self, app=None):
        self.app = None
        self.mode = self.THREAD
        self._wake = threading.Event()
        self._stop = threading.Event()
        self._thread = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        self.mode = app.config.get("NOTIFICATION_DISPATCH", self.THREAD)
        app.extensions["notification_dispatcher"] = self

    def start(self):
        if self.mode != self.THREAD or self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="nexus-notification-dispatcher", daemon=True
        )
        self._thread.start()
        atexit.register(self.shutdown)
        logger.info("Notification dispatcher started")

    def shutdown(self, timeout=5):
        if self._thread is None:
            return
        self._stop.set()
        self._wake.set()
        self._thread.join(timeout)
        self._thread = None
        logger.info("Notification dispatcher stopped")

    def notify(self):
        if self.mode == self.INLINE:
            self.drain()
        else:
            self._wake.set()

    def drain(self) -> int:
        """Process every row that is pending right now, once."""
        app = self.app or current_app._get_current_object()
        gateway = app.extensions["notification_gateway"]
        max_attempts = app.config.get("NOTIFICATION_MAX_ATTEMPTS", 3)
        batch_size = app.config.get("NOTIFICATION_BATCH_SIZE", 50)

        processed = 0
        for entry_id in NotificationRepository.pending_ids(batch_size):
            try:
                NotificationService.process(entry_id, gateway, max_attempts)
                processed += 1
            except Exception as e:
                db.session.rollback()
                logger.error(f"Error processing notification {entry_id}: {e}")
        return processed

    def _run(self):
        poll = self.app.config.get("NOTIFICATION_POLL_SECONDS", 5)
        while not self._stop.is_set():
            self._wake.wait(poll)
            self._wake.clear()
            if self._stop.is_set():
                break
            with self.app.app_context():
                try:
                    self.drain()
                except Exception as e:
                    logger.error(f"Notification dispatcher loop error: {e}")
                finally:
                    db.session.remove()


def dispatch_notifications():
    """Hand committed outbox rows to the dispatcher. Never raises."""
    dispatcher = current_app.extensions.get("notification_dispatcher")
    if dispatcher is None:
        return
    try:
        dispatcher.notify()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to dispatch notifications: {e}")
