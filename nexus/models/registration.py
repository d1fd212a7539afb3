from typing import List, Optional

from nexus.extensions import db
from nexus.utils.dates import isoformat
from .enums import RegistrationStatus
from .participant import Participant


class Registration(db.Model):
    __tablename__ = "registrations"

    id = db.Column(db.Integer, primary_key=True)
    event_id = db.Column(
        db.Integer, db.ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    team_size = db.Column(db.Integer, nullable=False, default=1)
    status = db.Column(
        db.String(20), nullable=False, default=RegistrationStatus.REGISTERED.value
    )
    # Embedded participant documents; always replaced as a whole.
    participants = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    event = db.relationship("Event", backref=db.backref("registrations", lazy=True))
    user = db.relationship("User", backref=db.backref("registrations", lazy=True))

    # One registration per user per event, enforced by the database.
    __table_args__ = (
        db.UniqueConstraint("event_id", "user_id", name="uq_registration_event_user"),
    )

    def get_participants(self) -> List[Participant]:
        return [Participant.from_dict(item) for item in (self.participants or [])]

    def set_participants(self, participants: List[Participant]) -> None:
        self.participants = [participant.to_dict() for participant in participants]

    def find_participant(self, email: str) -> Optional[Participant]:
        for participant in self.get_participants():
            if participant.email == email:
                return participant
        return None

    def replace_participant(self, updated: Participant) -> None:
        self.set_participants(
            [
                updated if participant.email == updated.email else participant
                for participant in self.get_participants()
            ]
        )

    def to_dict(self, include_user=False):
        data = {
            "id": self.id,
            "event_id": self.event_id,
            "user_id": self.user_id,
            "team_size": self.team_size,
            "status": self.status,
            "participants": [p.to_dict() for p in self.get_participants()],
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }
        if include_user:
            data["user"] = (
                {
                    "id": self.user.id,
                    "name": self.user.name,
                    "email": self.user.email,
                    "department": self.user.department,
                }
                if self.user
                else None
            )
        return data

    def __repr__(self):
        return (
            f"Registration("
            f"id={self.id}, "
            f"event_id={self.event_id}, "
            f"user_id={self.user_id}, "
            f"team_size={self.team_size}, "
            f"status={self.status}"
            f")"
        )
