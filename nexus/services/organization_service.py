from flask import current_app

from nexus.exceptions import ForbiddenError, MissingFieldsError, ValidationError
from nexus.identity import Actor
from nexus.repositories import OrganizationRepository


class OrganizationService:
    @staticmethod
    def get_organizations():
        return OrganizationRepository.get_organizations()

    @staticmethod
    def create_organization(actor: Actor, data):
        if not actor.is_super_admin:
            raise ForbiddenError("Super-admin privileges required")

        name = (data.get("name") or "").strip()
        if not name:
            raise MissingFieldsError(["name"])
        if OrganizationRepository.find_by_name(name):
            raise ValidationError("An organization with this name already exists")

        organization = OrganizationRepository.create_organization(
            {"name": name, "tagline": data.get("tagline")}
        )
        current_app.logger.info(f"Organization {organization.id} ({name}) created by user {actor.id}")
        return organization
