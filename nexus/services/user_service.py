from nexus.models import User
from nexus.models.enums import UserRole
from werkzeug.security import generate_password_hash, check_password_hash
from flask_jwt_extended import create_access_token
from nexus.repositories import UserRepository, OrganizationRepository
from nexus.exceptions import (
    ForbiddenError,
    MissingFieldsError,
    UserNotFoundError,
    ValidationError,
)
from nexus.identity import Actor
from datetime import timedelta
import logging
import re

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# Roles an organization admin may hand out inside their own organization.
ORG_ASSIGNABLE_ROLES = (UserRole.USER, UserRole.STAFF, UserRole.COORDINATOR)


def issue_token(user: User) -> str:
    return create_access_token(identity=str(user.id), expires_delta=timedelta(days=1))


class UserService:
    @staticmethod
    def sign_up(user_data):
        missing = [f for f in ("email", "password", "name") if not user_data.get(f)]
        if missing:
            raise MissingFieldsError(missing)

        email = str(user_data["email"]).strip().lower()
        if not EMAIL_PATTERN.match(email):
            raise ValidationError("Invalid email address")
        if len(user_data["password"]) < 8:
            raise ValidationError("Password must be at least 8 characters")

        existing_user = UserRepository.find_by_email(email)
        if existing_user:
            logger.warning(f"Signup attempt with existing email: {email}")
            raise ValidationError("User already exists")

        user = User(
            email=email,
            password=generate_password_hash(user_data["password"]),
            name=str(user_data["name"]).strip(),
            role=UserRole.USER.value,
            department=user_data.get("department"),
        )
        created_user = UserRepository.sign_up(user)
        logger.info(f"User created successfully: {created_user.email}")

        return {"token": issue_token(created_user), "user": created_user.to_dict()}

    @staticmethod
    def sign_in(email, password):
        email = str(email or "").strip().lower()
        user = UserRepository.find_by_email(email)
        if not user or not check_password_hash(user.password, password or ""):
            logger.warning(f"Failed login attempt for: {email}")
            raise ValidationError("Invalid email or password")

        logger.info(f"User logged in successfully: {email}")
        return {"token": issue_token(user), "user": user.to_dict()}

    @staticmethod
    def get_user(user_id: int) -> User:
        user = UserRepository.find_by_id(user_id)
        if not user:
            raise UserNotFoundError()
        return user

    @staticmethod
    def _can_recruit(actor: Actor, user: User) -> bool:
        # Members of the admin's organization, or plain users with none yet.
        if user.organization_id is None:
            return user.user_role == UserRole.USER
        return user.organization_ref.matches(actor.organization)

    @staticmethod
    def assign_role(actor: Actor, user_id: int, data) -> User:
        """Change a user's role and organization.

        Super-admins may assign anything. Organization admins may only
        move users of their own organization between user/staff/coordinator,
        or bring an unaffiliated plain user into it; admins and super-admins
        are out of their reach.
        """
        role_value = data.get("role")
        if not role_value:
            raise MissingFieldsError(["role"])
        try:
            role = UserRole(role_value)
        except ValueError:
            raise ValidationError(f"Unknown role: {role_value}")

        user = UserService.get_user(user_id)

        if actor.is_super_admin:
            organization_id = data.get("organization_id", user.organization_id)
            if organization_id is not None:
                try:
                    organization = OrganizationRepository.get_organization(int(organization_id))
                except (TypeError, ValueError):
                    organization = None
                if not organization:
                    raise ValidationError("Organization not found")
                organization_id = organization.id
        elif actor.role == UserRole.ADMIN:
            if role not in ORG_ASSIGNABLE_ROLES:
                raise ForbiddenError("Organization admins cannot assign this role")
            if actor.organization.is_empty:
                raise ForbiddenError("You are not associated with any organization")
            if user.user_role not in ORG_ASSIGNABLE_ROLES:
                raise ForbiddenError("Organization admins cannot change this user's role")
            if not UserService._can_recruit(actor, user):
                raise ForbiddenError("User belongs to another organization")
            organization_id = int(actor.organization.id)
        else:
            raise ForbiddenError("Admin privileges required")

        if role in (UserRole.STAFF, UserRole.COORDINATOR, UserRole.ADMIN) and organization_id is None:
            raise ValidationError("Organizer roles require an organization")

        UserRepository.update_role(user, role.value, organization_id)
        logger.info(
            f"User {user.id} role set to {role.value} (organization {organization_id}) by user {actor.id}"
        )
        return user
