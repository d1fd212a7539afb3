import itertools
from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token
from werkzeug.security import generate_password_hash

from nexus import create_app
from nexus.exceptions import NotificationDeliveryFailed
from nexus.extensions import db
from nexus.identity import Actor
from nexus.models import Event, Organization, User
from nexus.models.enums import UserRole
from nexus.services.notification_service import NotificationDispatcher
from nexus.utils.dates import utcnow

TEST_CONFIG = {
    "TESTING": True,
    "SQLALCHEMY_DATABASE_URI": "sqlite://",
    "JWT_SECRET_KEY": "test-secret-key-that-is-long-enough-for-hs256",
    "NOTIFICATION_DISPATCH": NotificationDispatcher.INLINE,
    "NOTIFICATION_MAX_ATTEMPTS": 3,
    "RATELIMIT_ENABLED": False,
}


class FakeGateway:
    """Records every send; flip ``fail`` to simulate a mail outage."""

    def __init__(self):
        self.confirmations = []
        self.certificates = []
        self.fail = False

    def send_registration_confirmation(self, recipients, event_title, event_date, organization_name):
        if self.fail:
            raise NotificationDeliveryFailed("SMTP server unavailable")
        self.confirmations.append(
            {
                "recipients": list(recipients),
                "event_title": event_title,
                "event_date": event_date,
                "organization_name": organization_name,
            }
        )

    def send_certificate(
        self, participant_name, participant_email, event_title, event_date, organization_name, location
    ):
        if self.fail:
            raise NotificationDeliveryFailed("SMTP server unavailable")
        self.certificates.append(
            {
                "participant_name": participant_name,
                "participant_email": participant_email,
                "event_title": event_title,
                "organization_name": organization_name,
                "location": location,
            }
        )


@pytest.fixture
def app():
    app = create_app(TEST_CONFIG)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def gateway(app):
    fake = FakeGateway()
    app.extensions["notification_gateway"] = fake
    return fake


@pytest.fixture
def make_org(app):
    counter = itertools.count(1)

    def _make(name=None):
        organization = Organization(name=name or f"Organization {next(counter)}")
        db.session.add(organization)
        db.session.commit()
        return organization

    return _make


@pytest.fixture
def make_user(app):
    counter = itertools.count(1)

    def _make(role=UserRole.USER, organization=None, name=None, email=None):
        n = next(counter)
        user = User(
            email=email or f"user{n}@example.com",
            password=generate_password_hash("password123", method="pbkdf2:sha256:1000"),
            name=name or f"User {n}",
            role=role.value,
            organization_id=organization.id if organization else None,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def make_event(app):
    def _make(organization, organizer, min_team_size=1, max_team_size=1, days_ahead=7, completed=False, **extra):
        event = Event(
            title=extra.pop("title", "Hack Night"),
            description=extra.pop("description", "An evening of building things"),
            date=utcnow() + timedelta(days=days_ahead),
            location=extra.pop("location", "Main Hall"),
            min_team_size=min_team_size,
            max_team_size=max_team_size,
            completed=completed,
            organization_id=organization.id,
            organizer_id=organizer.id,
            **extra,
        )
        db.session.add(event)
        db.session.commit()
        return event

    return _make


@pytest.fixture
def org(make_org):
    return make_org("Acme University")


@pytest.fixture
def other_org(make_org):
    return make_org("Globex Institute")


@pytest.fixture
def organizer(make_user, org):
    return make_user(UserRole.STAFF, org, name="Olive Organizer", email="olive@acme.edu")


@pytest.fixture
def org_admin(make_user, org):
    return make_user(UserRole.ADMIN, org, name="Ada Admin", email="ada@acme.edu")


@pytest.fixture
def super_admin(make_user):
    return make_user(UserRole.SUPER_ADMIN, name="Sam Super", email="sam@nexus.dev")


@pytest.fixture
def attendee(make_user):
    return make_user(UserRole.USER, name="Alice Attendee", email="Alice@Example.com")


def actor_for(user):
    return Actor.from_user(user)


def auth_headers(user):
    token = create_access_token(identity=str(user.id))
    return {"Authorization": f"Bearer {token}"}
