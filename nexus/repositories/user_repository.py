from nexus.extensions import db
from nexus.models import User


class UserRepository:
    @staticmethod
    def sign_up(user):
        db.session.add(user)
        db.session.commit()
        return user

    @staticmethod
    def find_by_email(email):
        return User.query.filter(db.func.lower(User.email) == email.lower()).first()

    @staticmethod
    def find_by_id(user_id: int):
        return db.session.get(User, user_id)

    @staticmethod
    def update_role(user: User, role: str, organization_id=None):
        user.role = role
        user.organization_id = organization_id
        db.session.commit()
        return user
