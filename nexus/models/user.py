from nexus.extensions import db
from .enums import UserRole, ORGANIZER_ROLES
from .organization import OrganizationRef


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password = db.Column(db.String(255), nullable=False)
    name = db.Column(db.String(120), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=UserRole.USER.value)
    organization_id = db.Column(
        db.Integer, db.ForeignKey("organizations.id"), nullable=True
    )
    department = db.Column(db.String(120), nullable=True)
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )

    organization = db.relationship("Organization", backref=db.backref("members", lazy=True))

    @property
    def user_role(self) -> UserRole:
        try:
            return UserRole(self.role)
        except ValueError:
            return UserRole.USER

    @property
    def organization_ref(self) -> OrganizationRef:
        return OrganizationRef.of(self.organization_id)

    @property
    def is_super_admin(self) -> bool:
        return self.user_role == UserRole.SUPER_ADMIN

    @property
    def is_organizer(self) -> bool:
        return self.user_role in ORGANIZER_ROLES

    def __eq__(self, other: object) -> bool:
        if isinstance(other, User):
            return self.id == other.id
        return False

    def __hash__(self):
        return hash(self.id)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "role": self.role,
            "organization_id": self.organization_id,
            "department": self.department,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return (
            f"User("
            f"id={self.id}, "
            f"email='{self.email}', "
            f"role={self.role}, "
            f"organization_id={self.organization_id}"
            f")"
        )
