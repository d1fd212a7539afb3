from datetime import timedelta

import pytest

from nexus.models import Registration
from nexus.models.enums import UserRole
from nexus.utils.dates import utcnow
from tests.conftest import auth_headers


@pytest.fixture
def event(org, organizer, make_event):
    return make_event(org, organizer, min_team_size=1, max_team_size=2)


def register(client, user, event, team_size=1, participants=None):
    return client.post(
        "/api/registrations",
        json={"eventId": event.id, "teamSize": team_size, "participants": participants or []},
        headers=auth_headers(user),
    )


class TestAuthentication:
    def test_signup_then_signin(self, client):
        response = client.post(
            "/api/user/signup",
            json={"email": " New.User@Example.com", "password": "s3cret-pass", "name": "New User"},
        )
        assert response.status_code == 201
        body = response.get_json()
        assert body["user"]["email"] == "new.user@example.com"
        assert body["user"]["role"] == "user"
        assert body["token"]

        response = client.post(
            "/api/user/signin", json={"email": "new.user@example.com", "password": "s3cret-pass"}
        )
        assert response.status_code == 200
        token = response.get_json()["token"]

        me = client.get("/api/user/me", headers={"Authorization": f"Bearer {token}"})
        assert me.status_code == 200
        assert me.get_json()["user"]["name"] == "New User"

    def test_signup_rejects_short_passwords(self, client):
        response = client.post(
            "/api/user/signup", json={"email": "a@example.com", "password": "short", "name": "A"}
        )
        assert response.status_code == 400
        assert response.get_json()["success"] is False

    def test_signup_lists_missing_fields(self, client):
        response = client.post("/api/user/signup", json={"email": "a@example.com"})
        assert response.status_code == 400
        assert response.get_json()["missing_fields"] == ["password", "name"]

    def test_duplicate_signup(self, client, attendee):
        response = client.post(
            "/api/user/signup",
            json={"email": attendee.email, "password": "password123", "name": "Again"},
        )
        assert response.status_code == 400

    def test_bad_credentials(self, client, make_user):
        user = make_user(email="carol@example.com")
        response = client.post("/api/user/signin", json={"email": user.email, "password": "wrong-password"})
        assert response.status_code == 401
        assert response.get_json()["code"] == "InvalidRequest"

    @pytest.mark.parametrize(
        "method, path",
        [
            ("get", "/api/user/me"),
            ("post", "/api/registrations"),
            ("get", "/api/registrations?eventId=1"),
            ("patch", "/api/events/1/attendance"),
            ("post", "/api/events"),
        ],
    )
    def test_protected_routes_require_a_token(self, client, method, path):
        response = getattr(client, method)(path, json={})
        assert response.status_code == 401
        assert response.get_json()["code"] == "Unauthorized"

    def test_token_for_deleted_user(self, client, app, make_user):
        from nexus.extensions import db

        user = make_user()
        headers = auth_headers(user)
        db.session.delete(user)
        db.session.commit()

        response = client.get("/api/user/me", headers=headers)
        assert response.status_code == 401

    def test_garbage_token(self, client):
        response = client.get("/api/user/me", headers={"Authorization": "Bearer not-a-jwt"})
        assert response.status_code == 401


class TestEventRoutes:
    def test_list_and_fetch_events(self, client, event):
        listing = client.get("/api/events")
        assert listing.status_code == 200
        assert [e["id"] for e in listing.get_json()["events"]] == [event.id]

        single = client.get(f"/api/events/{event.id}")
        assert single.status_code == 200
        body = single.get_json()
        assert body["organization"]["name"] == "Acme University"
        assert body["max_team_size"] == 2

    def test_missing_event(self, client, app):
        response = client.get("/api/events/999")
        assert response.status_code == 404
        assert response.get_json()["code"] == "EventNotFound"

    def test_create_event(self, client, organizer):
        response = client.post(
            "/api/events",
            json={
                "title": "Robotics Workshop",
                "date": (utcnow() + timedelta(days=3)).isoformat(),
                "location": "Lab 2",
                "min_team_size": 1,
                "max_team_size": 3,
            },
            headers=auth_headers(organizer),
        )
        assert response.status_code == 201
        assert response.get_json()["event"]["organizer_id"] == organizer.id

    def test_create_event_forbidden_for_users(self, client, attendee):
        response = client.post(
            "/api/events",
            json={"title": "X", "date": (utcnow() + timedelta(days=3)).isoformat(), "location": "Y"},
            headers=auth_headers(attendee),
        )
        assert response.status_code == 403

    def test_complete_event(self, client, organizer, event):
        response = client.post(f"/api/events/{event.id}/complete", headers=auth_headers(organizer))
        assert response.status_code == 200
        assert response.get_json()["event"]["completed"] is True


class TestRegistrationRoutes:
    def test_register_and_check_status(self, client, gateway, attendee, event):
        before = client.get(f"/api/registrations?eventId={event.id}", headers=auth_headers(attendee))
        assert before.get_json() == {"registered": False}

        response = register(client, attendee, event, 2, [{"name": "Bob", "email": "bob@example.com"}])
        assert response.status_code == 201
        body = response.get_json()
        assert body["success"] is True
        assert body["message"]
        emails = [p["email"] for p in body["registration"]["participants"]]
        assert emails == ["alice@example.com", "bob@example.com"]
        assert body["registration"]["participants"][0]["attendance"]["status"] == "unmarked"

        after = client.get(
            f"/api/registrations?eventId={event.id}&scope=self", headers=auth_headers(attendee)
        )
        assert after.get_json() == {"registered": True}
        assert len(gateway.confirmations) == 1

    def test_duplicate_registration_conflicts(self, client, gateway, attendee, event):
        assert register(client, attendee, event).status_code == 201
        response = register(client, attendee, event)
        assert response.status_code == 409
        assert response.get_json()["code"] == "AlreadyRegistered"
        assert Registration.query.count() == 1

    def test_team_size_error_body(self, client, gateway, attendee, event):
        response = register(client, attendee, event, 3)
        assert response.status_code == 400
        assert response.get_json() == {
            "success": False,
            "error": "Team size must be between 1 and 2",
            "code": "TeamSizeOutOfRange",
        }

    @pytest.mark.parametrize("event_id", [None, "abc", 0, True])
    def test_invalid_event_id(self, client, gateway, attendee, event_id):
        response = client.post(
            "/api/registrations", json={"eventId": event_id}, headers=auth_headers(attendee)
        )
        assert response.status_code == 400

    def test_unknown_event(self, client, gateway, attendee):
        response = client.post("/api/registrations", json={"eventId": 999}, headers=auth_headers(attendee))
        assert response.status_code == 404

    def test_self_registration_forbidden(self, client, gateway, organizer, event):
        response = register(client, organizer, event)
        assert response.status_code == 403
        assert response.get_json()["code"] == "SelfRegistrationForbidden"

    def test_closed_event(self, client, gateway, org, organizer, attendee, make_event):
        past = make_event(org, organizer, days_ahead=-3)
        response = register(client, attendee, past)
        assert response.status_code == 400
        assert response.get_json()["code"] == "EventClosed"

    def test_roster_visible_to_staff(self, client, gateway, org, attendee, make_user, event):
        register(client, attendee, event)
        coordinator = make_user(UserRole.COORDINATOR, org)

        response = client.get(
            f"/api/registrations?eventId={event.id}&scope=all", headers=auth_headers(coordinator)
        )
        assert response.status_code == 200
        body = response.get_json()
        assert body["count"] == 1
        assert body["registrations"][0]["user"]["name"] == "Alice Attendee"

    def test_roster_hidden_from_participants_and_outsiders(self, client, gateway, other_org, attendee, make_user, event):
        register(client, attendee, event)
        outsider = make_user(UserRole.ADMIN, other_org)
        for user in (attendee, outsider):
            response = client.get(
                f"/api/registrations?eventId={event.id}&scope=all", headers=auth_headers(user)
            )
            assert response.status_code == 403

    def test_unknown_scope(self, client, attendee, event):
        response = client.get(
            f"/api/registrations?eventId={event.id}&scope=everyone", headers=auth_headers(attendee)
        )
        assert response.status_code == 400


class TestAttendanceRoute:
    @pytest.fixture
    def registration_id(self, client, gateway, attendee, event):
        return register(client, attendee, event).get_json()["registration"]["id"]

    def patch(self, client, user, event, body):
        return client.patch(f"/api/events/{event.id}/attendance", json=body, headers=auth_headers(user))

    def test_mark_present(self, client, gateway, organizer, event, registration_id):
        response = self.patch(
            client,
            organizer,
            event,
            {"registrationId": registration_id, "participantEmail": "ALICE@example.com", "action": "mark-present"},
        )
        assert response.status_code == 200
        body = response.get_json()
        assert body["success"] is True
        assert body["participant"]["email"] == "alice@example.com"
        assert body["participant"]["attendance"]["status"] == "confirmed"
        assert body["participant"]["attendance"]["certificate_sent_at"] is not None
        assert len(gateway.certificates) == 1

    def test_invalid_action(self, client, organizer, event, registration_id):
        response = self.patch(
            client,
            organizer,
            event,
            {"registrationId": registration_id, "participantEmail": "alice@example.com", "action": "dance"},
        )
        assert response.status_code == 400

    def test_confirm_without_pending_request(self, client, org_admin, event, registration_id):
        response = self.patch(
            client,
            org_admin,
            event,
            {
                "registrationId": registration_id,
                "participantEmail": "alice@example.com",
                "action": "confirm-attendance",
            },
        )
        assert response.status_code == 400
        assert response.get_json()["code"] == "InvalidStateTransition"

    def test_missing_identifiers(self, client, organizer, event, registration_id):
        response = self.patch(client, organizer, event, {"action": "mark-present"})
        assert response.status_code == 400

    def test_forbidden_for_participants(self, client, attendee, event, registration_id):
        response = self.patch(
            client,
            attendee,
            event,
            {"registrationId": registration_id, "participantEmail": "alice@example.com", "action": "mark-present"},
        )
        assert response.status_code == 403

    def test_unknown_participant(self, client, organizer, event, registration_id):
        response = self.patch(
            client,
            organizer,
            event,
            {"registrationId": registration_id, "participantEmail": "zed@example.com", "action": "mark-absent"},
        )
        assert response.status_code == 404
        assert response.get_json()["code"] == "ParticipantNotFound"


class TestAdminRoutes:
    def test_check(self, client, super_admin, org_admin):
        assert client.get("/api/admin/check", headers=auth_headers(super_admin)).get_json() == {"is_admin": True}
        assert client.get("/api/admin/check", headers=auth_headers(org_admin)).status_code == 403

    def test_create_and_list_organizations(self, client, super_admin):
        response = client.post(
            "/api/admin/organizations",
            json={"name": "Initech College", "tagline": "Learning, mostly"},
            headers=auth_headers(super_admin),
        )
        assert response.status_code == 201

        duplicate = client.post(
            "/api/admin/organizations", json={"name": "Initech College"}, headers=auth_headers(super_admin)
        )
        assert duplicate.status_code == 400

        listing = client.get("/api/admin/organizations", headers=auth_headers(super_admin))
        assert "Initech College" in [o["name"] for o in listing.get_json()["organizations"]]

    def test_only_super_admin_creates_organizations(self, client, org_admin):
        response = client.post(
            "/api/admin/organizations", json={"name": "Rogue U"}, headers=auth_headers(org_admin)
        )
        assert response.status_code == 403

    def test_super_admin_assigns_role_and_organization(self, client, org, super_admin, attendee):
        response = client.put(
            f"/api/admin/users/{attendee.id}/role",
            json={"role": "staff", "organization_id": org.id},
            headers=auth_headers(super_admin),
        )
        assert response.status_code == 200
        user = response.get_json()["user"]
        assert (user["role"], user["organization_id"]) == ("staff", org.id)

    def test_org_admin_promotes_within_own_organization(self, client, org, org_admin, attendee):
        response = client.put(
            f"/api/admin/users/{attendee.id}/role",
            json={"role": "coordinator"},
            headers=auth_headers(org_admin),
        )
        assert response.status_code == 200
        assert response.get_json()["user"]["organization_id"] == org.id

    def test_org_admin_cannot_hand_out_admin(self, client, org_admin, attendee):
        response = client.put(
            f"/api/admin/users/{attendee.id}/role", json={"role": "admin"}, headers=auth_headers(org_admin)
        )
        assert response.status_code == 403

    def test_org_admin_cannot_poach_other_organizations(self, client, other_org, org_admin, make_user):
        outsider = make_user(UserRole.STAFF, other_org)
        response = client.put(
            f"/api/admin/users/{outsider.id}/role", json={"role": "user"}, headers=auth_headers(org_admin)
        )
        assert response.status_code == 403

    def test_org_admin_cannot_demote_the_super_admin(self, client, org_admin, super_admin):
        response = client.put(
            f"/api/admin/users/{super_admin.id}/role", json={"role": "staff"}, headers=auth_headers(org_admin)
        )
        assert response.status_code == 403
        assert client.get("/api/admin/check", headers=auth_headers(super_admin)).status_code == 200

    def test_unknown_role(self, client, super_admin, attendee):
        response = client.put(
            f"/api/admin/users/{attendee.id}/role", json={"role": "overlord"}, headers=auth_headers(super_admin)
        )
        assert response.status_code == 400


def test_health(client, app):
    response = client.get("/api/health")
    assert response.status_code == 200
    body = response.get_json()
    assert body["status"] == "ok"
    assert body["services"]["database"]["status"] == "connected"
