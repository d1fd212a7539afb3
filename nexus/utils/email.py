import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from flask import current_app
from flask_mail import Message, Mail

from nexus.exceptions import NotificationDeliveryFailed
from nexus.utils.dates import ensure_utc

mail = Mail()
logger = logging.getLogger(__name__)


def _format_date(value):
    if not value:
        return ""
    return ensure_utc(value).strftime("%A, %B %d, %Y at %I:%M %p UTC")


class MailGateway:
    """Sends transactional email through Flask-Mail.

    Each send runs on a small pool so the caller can stop waiting after
    ``NOTIFICATION_TIMEOUT_SECONDS``. Any failure, including the timeout,
    is raised as NotificationDeliveryFailed.
    """

    def __init__(self, app=None, max_workers=2):
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="nexus-mail"
        )
        self.app = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app):
        self.app = app
        app.extensions["notification_gateway"] = self

    def shutdown(self):
        self._executor.shutdown(wait=False)

    def send_registration_confirmation(
        self, recipients, event_title, event_date, organization_name
    ):
        subject = f"You're registered for {event_title}"
        body = f"""
Hi there,

You're all set for "{event_title}".

Event Schedule: {_format_date(event_date)}

You'll receive further updates from the organizer if there are any changes. We can't wait to see you there!

If you didn't make this registration, please contact support immediately.

{organization_name}
"""
        self._deliver(subject, list(recipients), body, organization_name)

    def send_certificate(
        self,
        participant_name,
        participant_email,
        event_title,
        event_date,
        organization_name,
        location,
    ):
        subject = f"Your certificate of participation - {event_title}"
        body = f"""
Congratulations, {participant_name}!

This certifies that you attended "{event_title}", organized by {organization_name}.

Event Details:
- Date: {_format_date(event_date)}
- Location: {location or "TBA"}

Thank you for taking part!

{organization_name}
"""
        self._deliver(subject, [participant_email], body, organization_name)

    def _deliver(self, subject, recipients, body, sender_name):
        app = self.app or current_app._get_current_object()

        # If in testing mode, log the email instead of sending it
        if app.testing:
            logger.info("--- MOCK EMAIL ---")
            logger.info(f"To: {', '.join(recipients)}")
            logger.info(f"Subject: {subject}")
            logger.info(f"Body: {body.strip()}")
            logger.info("--- END MOCK EMAIL ---")
            return

        msg = Message(
            subject,
            sender=(sender_name, app.config.get("MAIL_USERNAME")),
            recipients=recipients,
        )
        msg.body = body

        timeout = app.config.get("NOTIFICATION_TIMEOUT_SECONDS", 10)
        future = self._executor.submit(self._send, app, msg)
        try:
            future.result(timeout=timeout)
        except FutureTimeoutError as e:
            future.cancel()
            raise NotificationDeliveryFailed(
                f"Mail server did not answer within {timeout}s"
            ) from e
        except Exception as e:
            raise NotificationDeliveryFailed(f"Failed to send email: {e}") from e

    @staticmethod
    def _send(app, msg):
        with app.app_context():
            mail.send(msg)
