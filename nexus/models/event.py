from nexus.extensions import db
from nexus.utils.dates import ensure_utc, isoformat, utcnow
from .enums import EventType
from .organization import OrganizationRef


class Event(db.Model):
    __tablename__ = "events"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=True)
    date = db.Column(db.TIMESTAMP(timezone=True), nullable=False)
    location = db.Column(db.String(255), nullable=False)
    event_type = db.Column(
        db.String(20), nullable=False, default=EventType.WORKSHOP.value
    )
    department = db.Column(db.String(120), nullable=True)
    min_team_size = db.Column(db.Integer, nullable=False, default=1)
    max_team_size = db.Column(db.Integer, nullable=False, default=1)
    # Pricing is informational only; nothing is charged.
    is_free = db.Column(db.Boolean, nullable=False, default=True)
    price = db.Column(db.DECIMAL(10, 2), nullable=True)
    completed = db.Column(db.Boolean, nullable=False, default=False)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organizations.id"), nullable=False
    )
    organizer_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    organization = db.relationship("Organization", backref=db.backref("events", lazy=True))
    organizer = db.relationship("User", backref=db.backref("organized_events", lazy=True))

    __table_args__ = (
        db.CheckConstraint("min_team_size >= 1", name="ck_event_min_team_size"),
        db.CheckConstraint("max_team_size >= min_team_size", name="ck_event_team_size_bounds"),
    )

    @property
    def organization_ref(self) -> OrganizationRef:
        return OrganizationRef.of(self.organization_id)

    @property
    def organization_name(self):
        return self.organization.name if self.organization else None

    def has_started(self, now=None) -> bool:
        now = now or utcnow()
        return self.date is not None and ensure_utc(self.date) < now

    def is_closed(self, now=None) -> bool:
        return bool(self.completed) or self.has_started(now)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "date": isoformat(self.date),
            "location": self.location,
            "event_type": self.event_type,
            "department": self.department,
            "min_team_size": self.min_team_size,
            "max_team_size": self.max_team_size,
            "is_free": self.is_free,
            "price": str(self.price) if self.price is not None else None,
            "completed": bool(self.completed),
            "organization": (
                {"id": self.organization_id, "name": self.organization_name}
                if self.organization_id
                else None
            ),
            "organizer_id": self.organizer_id,
            "created_at": isoformat(self.created_at),
            "updated_at": isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Event id={self.id} title={self.title!r} completed={self.completed}>"
