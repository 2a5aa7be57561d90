"""
Tests del registro de asistencia (RSVP).
"""
from datetime import date, timedelta

import pytest

from gymhub.core.exceptions import PermissionDeniedError, ValidationError
from gymhub.models.event import OccurrenceStatus, RSVP, RSVPStatus
from gymhub.services.rsvp import rsvp_service


@pytest.fixture
def upcoming(db, gym, make_event):
    _, occurrence = make_event(gym, date.today() + timedelta(days=5))
    return occurrence


@pytest.fixture
def past(db, gym, make_event):
    _, occurrence = make_event(gym, date.today() - timedelta(days=5), title="Past Training")
    return occurrence


class TestAthleteResponses:

    def test_respond_is_an_upsert(self, client, auth_as, db, athlete, upcoming):
        auth_as(athlete)

        first = client.post("/api/v1/rsvp", json={"occurrence_id": upcoming.id, "status": "going"})
        second = client.post("/api/v1/rsvp", json={"occurrence_id": upcoming.id, "status": "not_going"})

        assert first.status_code == 200
        assert second.status_code == 200
        assert first.json()["id"] == second.json()["id"]
        rows = db.query(RSVP).filter(RSVP.occurrence_id == upcoming.id).all()
        assert len(rows) == 1
        assert rows[0].status == RSVPStatus.NOT_GOING

    def test_canceled_occurrence_is_rejected(self, client, auth_as, db, athlete, upcoming):
        upcoming.status = OccurrenceStatus.CANCELED
        db.commit()
        auth_as(athlete)

        response = client.post("/api/v1/rsvp", json={"occurrence_id": upcoming.id, "status": "going"})

        assert response.status_code == 400

    def test_past_occurrence_is_rejected(self, client, auth_as, athlete, past):
        auth_as(athlete)

        response = client.post("/api/v1/rsvp", json={"occurrence_id": past.id, "status": "going"})

        assert response.status_code == 400

    def test_staff_cannot_rsvp_for_themselves(self, client, auth_as, coach, upcoming):
        auth_as(coach)

        response = client.post("/api/v1/rsvp", json={"occurrence_id": upcoming.id, "status": "going"})

        assert response.status_code == 403

    def test_occurrence_from_other_gym_is_not_found(self, client, auth_as, athlete, other_gym, make_event):
        _, foreign = make_event(other_gym, date.today() + timedelta(days=5))
        auth_as(athlete)

        response = client.post("/api/v1/rsvp", json={"occurrence_id": foreign.id, "status": "going"})

        assert response.status_code == 404

    def test_athlete_only_sees_own_rsvps(self, client, auth_as, db, athlete, athlete2, upcoming):
        db.add_all([
            RSVP(user_id=athlete.id, occurrence_id=upcoming.id, status=RSVPStatus.GOING),
            RSVP(user_id=athlete2.id, occurrence_id=upcoming.id, status=RSVPStatus.GOING),
        ])
        db.commit()
        auth_as(athlete)

        response = client.get("/api/v1/rsvp")

        assert [r["user_id"] for r in response.json()] == [athlete.id]


class TestStaffEdits:

    def test_athlete_cannot_edit_for_others(self, client, auth_as, db, athlete, athlete2, upcoming):
        auth_as(athlete)

        response = client.put(
            "/api/v1/rsvp/staff",
            json={"user_id": athlete2.id, "occurrence_id": upcoming.id, "status": "going"},
        )

        assert response.status_code == 403
        assert db.query(RSVP).count() == 0

    def test_coach_sets_rsvp_on_behalf_of_athlete(self, client, auth_as, db, coach, athlete, upcoming):
        auth_as(coach)

        response = client.put(
            "/api/v1/rsvp/staff",
            json={"user_id": athlete.id, "occurrence_id": upcoming.id, "status": "going"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["user_id"] == athlete.id
        assert body["updated_by_id"] == coach.id

    def test_staff_may_correct_past_attendance(self, db, gym, owner, athlete, past):
        rsvp = rsvp_service.staff_edit(
            db, staff=owner, gym=gym, user_id=athlete.id, occurrence_id=past.id, status=RSVPStatus.NOT_GOING
        )
        assert rsvp.status == RSVPStatus.NOT_GOING

    def test_staff_edit_rejects_member_of_other_gym(self, client, auth_as, owner, other_gym, make_user, upcoming):
        from gymhub.models.user import UserRole

        stranger = make_user("stranger@test.com", UserRole.ATHLETE, other_gym, name="Extra")
        auth_as(owner)

        response = client.put(
            "/api/v1/rsvp/staff",
            json={"user_id": stranger.id, "occurrence_id": upcoming.id, "status": "going"},
        )

        assert response.status_code == 404

    def test_service_rejects_non_staff(self, db, gym, athlete, athlete2, upcoming):
        with pytest.raises(PermissionDeniedError):
            rsvp_service.staff_edit(
                db, staff=athlete, gym=gym, user_id=athlete2.id, occurrence_id=upcoming.id,
                status=RSVPStatus.GOING,
            )

    def test_service_rejects_canceled(self, db, gym, owner, athlete, upcoming):
        upcoming.status = OccurrenceStatus.CANCELED
        db.commit()
        with pytest.raises(ValidationError):
            rsvp_service.staff_edit(
                db, staff=owner, gym=gym, user_id=athlete.id, occurrence_id=upcoming.id,
                status=RSVPStatus.GOING,
            )
