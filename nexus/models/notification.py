from nexus.extensions import db
from nexus.utils.dates import isoformat
from .enums import NotificationStatus


class NotificationOutbox(db.Model):
    """A side effect recorded in the same transaction as the change that caused it."""

    __tablename__ = "notification_outbox"

    id = db.Column(db.Integer, primary_key=True)
    kind = db.Column(db.String(40), nullable=False)
    registration_id = db.Column(
        db.Integer, db.ForeignKey("registrations.id", ondelete="CASCADE"), nullable=True, index=True
    )
    recipient = db.Column(db.String(255), nullable=True)
    payload = db.Column(db.JSON, nullable=False, default=dict)
    status = db.Column(
        db.String(20), nullable=False, default=NotificationStatus.PENDING.value, index=True
    )
    attempts = db.Column(db.Integer, nullable=False, default=0)
    last_error = db.Column(db.Text, nullable=True)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    processed_at = db.Column(db.TIMESTAMP(timezone=True), nullable=True)

    def to_dict(self):
        return {
            "id": self.id,
            "kind": self.kind,
            "registration_id": self.registration_id,
            "recipient": self.recipient,
            "payload": self.payload,
            "status": self.status,
            "attempts": self.attempts,
            "last_error": self.last_error,
            "created_at": isoformat(self.created_at),
            "processed_at": isoformat(self.processed_at),
        }

    def __repr__(self):
        return (
            f"<NotificationOutbox id={self.id} kind={self.kind} "
            f"recipient={self.recipient} status={self.status}>"
        )
