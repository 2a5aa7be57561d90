"""
Tests de invitaciones, aceptación e importación del roster.
"""
from datetime import datetime, timedelta, timezone

import pytest

from gymhub.models.invitation import Invitation
from gymhub.models.user import UserRole
from gymhub.services.email import EmailDeliveryError
from gymhub.services.invitation import parse_roster_file
from gymhub.core.exceptions import ValidationError


class TestCreateInvitations:

    def test_invites_new_emails_and_reports_existing_members(self, client, auth_as, db, coach, athlete,
                                                             mock_email_send):
        auth_as(coach)

        response = client.post(
            "/api/v1/invitations",
            json={"emails": ["new@test.com", "athlete@test.com"], "role": "athlete",
                  "user_info": {"name": "Nuevo"}},
        )

        assert response.status_code == 201
        body = response.json()
        assert [i["email"] for i in body["invited"]] == ["new@test.com"]
        assert body["errors"] == [{"email": "athlete@test.com", "row": None, "error": "El usuario ya existe"}]
        mock_email_send.assert_called_once()
        assert mock_email_send.call_args.args[0] == "new@test.com"
        invitation = db.query(Invitation).one()
        assert len(invitation.token) == 64
        assert invitation.invited_by_id == coach.id

    def test_pending_invitation_is_not_duplicated(self, client, auth_as, db, owner, mock_email_send):
        auth_as(owner)
        client.post("/api/v1/invitations", json={"emails": ["new@test.com"], "role": "coach"})

        response = client.post("/api/v1/invitations", json={"emails": ["new@test.com"], "role": "coach"})

        assert response.json()["invited"] == []
        assert "pendiente" in response.json()["errors"][0]["error"]
        assert db.query(Invitation).count() == 1

    def test_owner_role_cannot_be_invited(self, client, auth_as, owner, mock_email_send):
        auth_as(owner)

        response = client.post("/api/v1/invitations", json={"emails": ["new@test.com"], "role": "owner"})

        assert response.status_code == 422

    def test_failed_email_discards_invitation(self, client, auth_as, db, owner, mock_email_send):
        mock_email_send.side_effect = EmailDeliveryError("Dominio no verificado")
        auth_as(owner)

        response = client.post("/api/v1/invitations", json={"emails": ["new@test.com"], "role": "athlete"})

        assert response.json()["invited"] == []
        assert "Dominio no verificado" in response.json()["errors"][0]["error"]
        assert db.query(Invitation).count() == 0

    def test_athlete_cannot_invite(self, client, auth_as, athlete, mock_email_send):
        auth_as(athlete)

        response = client.post("/api/v1/invitations", json={"emails": ["new@test.com"], "role": "athlete"})

        assert response.status_code == 403


class TestAcceptInvitation:

    @pytest.fixture
    def invitation(self, db, gym, owner):
        invitation = Invitation(
            gym_id=gym.id,
            email="new@test.com",
            role=UserRole.COACH,
            token="a" * 64,
            expires_at=datetime.now(timezone.utc) + timedelta(days=7),
            invited_by_id=owner.id,
            name="Nora Nueva",
        )
        db.add(invitation)
        db.commit()
        return invitation

    def test_accept_joins_gym_with_role(self, client, auth_as, gym, invitation, make_user):
        newcomer = make_user("new@test.com", UserRole.ATHLETE)
        auth_as(newcomer)

        response = client.post("/api/v1/invitations/accept", json={"token": invitation.token})

        assert response.status_code == 200
        body = response.json()
        assert body["gym_id"] == gym.id
        assert body["role"] == "coach"
        assert body["name"] == "Nora Nueva"
        assert body["onboarded"] is True

        reused = client.post("/api/v1/invitations/accept", json={"token": invitation.token})
        assert reused.status_code == 400

    def test_email_mismatch_is_forbidden(self, client, auth_as, invitation, make_user):
        auth_as(make_user("someone@test.com", UserRole.ATHLETE))

        response = client.post("/api/v1/invitations/accept", json={"token": invitation.token})

        assert response.status_code == 403

    def test_expired_invitation(self, client, auth_as, db, invitation, make_user):
        invitation.expires_at = datetime.now(timezone.utc) - timedelta(minutes=1)
        db.commit()
        auth_as(make_user("new@test.com", UserRole.ATHLETE))

        response = client.post("/api/v1/invitations/accept", json={"token": invitation.token})

        assert response.status_code == 400

    def test_unknown_token(self, client, auth_as, make_user):
        auth_as(make_user("new@test.com", UserRole.ATHLETE))

        response = client.post("/api/v1/invitations/accept", json={"token": "b" * 64})

        assert response.status_code == 404

    def test_pending_list(self, client, auth_as, owner, invitation):
        auth_as(owner)

        response = client.get("/api/v1/invitations")

        assert [i["email"] for i in response.json()] == ["new@test.com"]


class TestRosterImport:

    def test_csv_rows_become_invitations(self, client, auth_as, db, owner, mock_email_send):
        content = (
            "Email,Role,Name\n"
            "ana@test.com,Head Coach,Ana\n"
            ",athlete,Sin Email\n"
            "beto@test.com,athlete,Beto\n"
        ).encode("utf-8")
        auth_as(owner)

        response = client.post(
            "/api/v1/roster/import", files={"file": ("roster.csv", content, "text/csv")}
        )

        assert response.status_code == 200
        body = response.json()
        assert sorted(i["email"] for i in body["invited"]) == ["ana@test.com", "beto@test.com"]
        assert body["errors"][0]["row"] == 2
        roles = {i.email: i.role for i in db.query(Invitation).all()}
        assert roles == {"ana@test.com": UserRole.COACH, "beto@test.com": UserRole.ATHLETE}

    def test_json_roster(self, client, auth_as, owner, mock_email_send):
        content = b'[{"email": "carla@test.com", "role": "coach"}, {"email": "owner@test.com"}]'
        auth_as(owner)

        response = client.post(
            "/api/v1/roster/import", files={"file": ("roster.json", content, "application/json")}
        )

        body = response.json()
        assert [i["email"] for i in body["invited"]] == ["carla@test.com"]
        assert body["errors"][0]["error"] == "El usuario ya existe"

    def test_unsupported_format(self, client, auth_as, owner, mock_email_send):
        auth_as(owner)

        response = client.post("/api/v1/roster/import", files={"file": ("roster.txt", b"x", "text/plain")})

        assert response.status_code == 400

    def test_only_owner_imports(self, client, auth_as, coach, mock_email_send):
        auth_as(coach)

        response = client.post(
            "/api/v1/roster/import", files={"file": ("roster.csv", b"email\nx@test.com\n", "text/csv")}
        )

        assert response.status_code == 403


def test_parse_roster_rejects_non_list_json():
    with pytest.raises(ValidationError):
        parse_roster_file("roster.json", b'{"email": "a@test.com"}')
