"""
Tests de onboarding, perfil, ajustes del gimnasio y traducción de errores.
"""
from fastapi import APIRouter

from gymhub.core.exceptions import DuplicateError, NotFoundError, PermissionDeniedError, ValidationError
from gymhub.main import app
from gymhub.models.user import UserRole


class TestOnboarding:

    def test_new_user_creates_gym_and_becomes_owner(self, client, auth_as, db, make_user):
        user = make_user("founder@test.com", UserRole.ATHLETE)
        auth_as(user)

        response = client.post("/api/v1/onboarding", json={"name": "Box Central", "timezone": "Europe/Madrid"})

        assert response.status_code == 201
        assert response.json()["created_by_id"] == user.id
        db.refresh(user)
        assert user.role == UserRole.OWNER
        assert user.gym_id == response.json()["id"]
        assert user.onboarded is True

    def test_member_cannot_onboard_again(self, client, auth_as, owner):
        auth_as(owner)

        response = client.post("/api/v1/onboarding", json={"name": "Segundo Box"})

        assert response.status_code == 400

    def test_invalid_timezone(self, client, auth_as, make_user):
        auth_as(make_user("founder@test.com", UserRole.ATHLETE))

        response = client.post("/api/v1/onboarding", json={"name": "Box", "timezone": "Mars/Olympus"})

        assert response.status_code == 422


class TestGymSettings:

    def test_members_read_gym(self, client, auth_as, gym, athlete):
        auth_as(athlete)

        response = client.get("/api/v1/gym")

        assert response.status_code == 200
        assert response.json()["name"] == "CrossFit Norte"
        assert response.json()["timezone"] == "America/New_York"

    def test_owner_updates_email_preferences(self, client, auth_as, owner):
        auth_as(owner)

        response = client.put("/api/v1/gym", json={"reminder_emails_enabled": False})

        assert response.status_code == 200
        assert response.json()["reminder_emails_enabled"] is False
        assert response.json()["email_enabled"] is True

    def test_coach_cannot_update_gym(self, client, auth_as, coach):
        auth_as(coach)

        assert client.put("/api/v1/gym", json={"name": "Otro"}).status_code == 403


class TestProfile:

    def test_update_own_profile(self, client, auth_as, athlete):
        auth_as(athlete)

        response = client.put("/api/v1/users/me", json={"phone": "555-0199", "alt_email": "ana@work.com"})

        assert response.status_code == 200
        assert response.json()["alt_email"] == "ana@work.com"

    def test_alt_email_equal_to_primary(self, client, auth_as, athlete):
        auth_as(athlete)

        response = client.put("/api/v1/users/me", json={"alt_email": "athlete@test.com"})

        assert response.status_code == 400


class TestErrorMapping:

    def test_unauthenticated(self, client):
        assert client.get("/api/v1/events").status_code == 401

    def test_user_without_gym(self, client, auth_as, make_user):
        auth_as(make_user("lonely@test.com", UserRole.ATHLETE))

        response = client.get("/api/v1/events")

        assert response.status_code == 400

    def test_domain_errors_map_to_status_codes(self, client):
        router = APIRouter()

        @router.get("/_errors/{kind}")
        async def raise_error(kind: str):
            errors = {
                "not_found": NotFoundError("Evento 1 no encontrado"),
                "validation": ValidationError("Datos inválidos"),
                "duplicate": DuplicateError("Ya existe"),
                "forbidden": PermissionDeniedError("Sin permiso"),
            }
            raise errors[kind]

        app.include_router(router)
        try:
            expected = {"not_found": 404, "validation": 400, "duplicate": 400, "forbidden": 403}
            for kind, status_code in expected.items():
                response = client.get(f"/_errors/{kind}")
                assert response.status_code == status_code
                assert "detail" in response.json()
            assert client.get("/_errors/not_found").json() == {"detail": "Evento 1 no encontrado"}
        finally:
            app.router.routes[:] = [r for r in app.router.routes if not getattr(r, "path", "").startswith("/_errors")]

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
