from typing import List, Optional
from nexus.extensions import db
from nexus.models import Organization


class OrganizationRepository:
    @staticmethod
    def get_organization(organization_id: int) -> Optional[Organization]:
        return db.session.get(Organization, organization_id)

    @staticmethod
    def find_by_name(name: str) -> Optional[Organization]:
        return Organization.query.filter_by(name=name).first()

    @staticmethod
    def get_organizations() -> List[Organization]:
        return Organization.query.order_by(Organization.name.asc()).all()

    @staticmethod
    def create_organization(attrs) -> Organization:
        organization = Organization(**attrs)
        db.session.add(organization)
        db.session.commit()
        return organization
