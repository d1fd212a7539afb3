from typing import List, Optional
from sqlalchemy.exc import IntegrityError
from nexus.extensions import db
from nexus.exceptions import AlreadyRegisteredError
from nexus.models import Registration

UNIQUE_CONSTRAINT = "uq_registration_event_user"


def _is_duplicate_registration(error: IntegrityError) -> bool:
    message = str(error.orig).lower()
    return UNIQUE_CONSTRAINT in message or (
        "unique" in message and "registrations" in message
    )


class RegistrationRepository:
    @staticmethod
    def find_by_event_and_user(event_id: int, user_id: int) -> Optional[Registration]:
        return Registration.query.filter_by(event_id=event_id, user_id=user_id).first()

    @staticmethod
    def find_by_id_and_event(
        registration_id: int, event_id: int, for_update: bool = False
    ) -> Optional[Registration]:
        """Look up a registration of an event.

        With ``for_update`` the row is re-read from the database (never
        served stale from the session) and locked until the caller
        commits, so read-modify-write of ``participants`` cannot lose a
        concurrent update to another participant.
        """
        query = Registration.query.filter_by(id=registration_id, event_id=event_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        return query.first()

    @staticmethod
    def get_registration(registration_id: int, fresh: bool = False) -> Optional[Registration]:
        return db.session.get(Registration, registration_id, populate_existing=fresh)

    @staticmethod
    def lock(registration: Registration) -> Registration:
        """Reload a registration under a row lock held until commit."""
        db.session.refresh(registration, with_for_update=True)
        return registration

    @staticmethod
    def find_by_event(event_id: int) -> List[Registration]:
        return (
            Registration.query.filter_by(event_id=event_id)
            .order_by(Registration.created_at.desc(), Registration.id.desc())
            .all()
        )

    @staticmethod
    def insert(registration: Registration) -> Registration:
        """Flush a new registration so it has an id; the caller commits.

        The (event, user) unique constraint is the only guard against two
        concurrent requests; the loser gets AlreadyRegisteredError.
        """
        db.session.add(registration)
        try:
            db.session.flush()
        except IntegrityError as e:
            db.session.rollback()
            if _is_duplicate_registration(e):
                raise AlreadyRegisteredError() from e
            raise
        return registration

    @staticmethod
    def commit():
        try:
            db.session.commit()
        except IntegrityError as e:
            db.session.rollback()
            if _is_duplicate_registration(e):
                raise AlreadyRegisteredError() from e
            raise
