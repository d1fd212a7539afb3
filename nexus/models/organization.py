from dataclasses import dataclass
from typing import Any, Optional

from nexus.extensions import db


class Organization(db.Model):
    __tablename__ = "organizations"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), unique=True, nullable=False)
    tagline = db.Column(db.String(255), nullable=True)
    created_at = db.Column(
        db.TIMESTAMP(timezone=True), nullable=False, server_default=db.func.now()
    )
    updated_at = db.Column(
        db.TIMESTAMP(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    @property
    def ref(self) -> "OrganizationRef":
        return OrganizationRef.of(self.id)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "tagline": self.tagline,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Organization id={self.id} name={self.name!r}>"


@dataclass(frozen=True)
class OrganizationRef:
    """Canonical organization identifier.

    Rows, raw ids, numeric strings and serialized references
    (``{"id": 3}`` / ``{"_id": "3"}``) all normalize to the same string,
    so comparisons never depend on how the reference was loaded.
    """

    id: Optional[str] = None

    @classmethod
    def of(cls, value: Any) -> "OrganizationRef":
        return cls(_normalize(value))

    @property
    def is_empty(self) -> bool:
        return self.id is None

    def matches(self, other: "OrganizationRef") -> bool:
        # Two unknown organizations are never the same organization.
        if self.is_empty or other is None or other.is_empty:
            return False
        return self.id == other.id

    def __str__(self):
        return self.id or ""


def _normalize(value: Any) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, OrganizationRef):
        return value.id
    if isinstance(value, Organization):
        return _normalize(value.id)
    if isinstance(value, int):
        return str(value)
    if isinstance(value, str):
        value = value.strip()
        return value or None
    if isinstance(value, dict):
        return _normalize(value.get("id", value.get("_id")))
    return None
