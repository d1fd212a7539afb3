from dataclasses import dataclass
from typing import Optional

from flask_jwt_extended import get_jwt_identity

from nexus.exceptions import UnauthorizedError
from nexus.models import OrganizationRef, User, UserRole
from nexus.models.enums import ORGANIZER_ROLES
from nexus.repositories.user_repository import UserRepository


@dataclass(frozen=True)
class Actor:
    """Who is making the current request, as far as authorization cares."""

    id: int
    role: UserRole
    organization: OrganizationRef
    email: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_user(cls, user: User) -> "Actor":
        return cls(
            id=user.id,
            role=user.user_role,
            organization=user.organization_ref,
            email=user.email,
            name=user.name,
        )

    @property
    def is_super_admin(self) -> bool:
        return self.role == UserRole.SUPER_ADMIN

    @property
    def is_organizer(self) -> bool:
        return self.role in ORGANIZER_ROLES


def current_actor() -> Actor:
    """Resolve the JWT identity of the current request to an Actor.

    Must be called inside a ``jwt_required`` view.
    """
    identity = get_jwt_identity()
    if identity is None:
        raise UnauthorizedError()
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        raise UnauthorizedError("Invalid token identity")

    user = UserRepository.find_by_id(user_id)
    if not user:
        raise UnauthorizedError("User not found")
    return Actor.from_user(user)
