"""
Tests de integración de eventos y ocurrencias.
"""
from datetime import date, time, timedelta

import pytest

from gymhub.models.event import EventOccurrence, OccurrenceStatus


def future(days: int) -> str:
    return (date.today() + timedelta(days=days)).isoformat()


def event_payload(**overrides):
    payload = {
        "title": "Morning Training",
        "start_time": "06:00",
        "end_time": "08:00",
        "start_date": future(3),
        "reminder_offsets": [1, 0.02],
    }
    payload.update(overrides)
    return payload


class TestEventLifecycle:

    def test_coach_creates_recurring_event_with_count(self, client, auth_as, db, coach):
        auth_as(coach)

        response = client.post(
            "/api/v1/events",
            json=event_payload(recurrence_rule="FREQ=WEEKLY;BYDAY=MO,WE,FR", recurrence_count=6),
        )

        assert response.status_code == 201
        event = response.json()
        assert event["created_by_id"] == coach.id
        assert event["reminder_offsets"] == [1, 0.02]
        occurrences = db.query(EventOccurrence).filter(EventOccurrence.event_id == event["id"]).all()
        assert len(occurrences) == 6
        assert all(o.occurrence_date.weekday() in (0, 2, 4) for o in occurrences)
        assert not any(o.is_custom for o in occurrences)

    def test_one_off_event_has_single_occurrence(self, client, auth_as, db, owner):
        auth_as(owner)

        response = client.post("/api/v1/events", json=event_payload())

        assert response.status_code == 201
        occurrences = db.query(EventOccurrence).filter(EventOccurrence.event_id == response.json()["id"]).all()
        assert [o.occurrence_date.isoformat() for o in occurrences] == [future(3)]

    def test_athlete_cannot_create_events(self, client, auth_as, athlete):
        auth_as(athlete)

        response = client.post("/api/v1/events", json=event_payload())

        assert response.status_code == 403

    def test_invalid_rule_is_rejected(self, client, auth_as, owner):
        auth_as(owner)

        response = client.post("/api/v1/events", json=event_payload(recurrence_rule="FREQ=SOMETIMES"))

        assert response.status_code == 400

    def test_end_before_start_is_rejected(self, client, auth_as, owner):
        auth_as(owner)

        response = client.post("/api/v1/events", json=event_payload(start_time="09:00", end_time="08:00"))

        assert response.status_code == 422

    def test_read_event_with_upcoming_occurrences(self, client, auth_as, owner, athlete):
        auth_as(owner)
        created = client.post(
            "/api/v1/events", json=event_payload(recurrence_rule="FREQ=DAILY", recurrence_count=10)
        ).json()

        auth_as(athlete)
        response = client.get(f"/api/v1/events/{created['id']}", params={"limit": 3})

        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Morning Training"
        assert len(body["occurrences"]) == 3

    def test_events_are_scoped_to_gym(self, client, auth_as, owner, other_gym, make_user):
        from gymhub.models.user import UserRole

        auth_as(owner)
        created = client.post("/api/v1/events", json=event_payload()).json()

        outsider = make_user("outsider@test.com", UserRole.OWNER, other_gym, name="Otro")
        auth_as(outsider)

        assert client.get(f"/api/v1/events/{created['id']}").status_code == 404
        assert client.get("/api/v1/events").json() == []

    def test_adding_recurrence_keeps_existing_occurrences(self, client, auth_as, db, owner):
        auth_as(owner)
        created = client.post("/api/v1/events", json=event_payload()).json()
        original = db.query(EventOccurrence).filter(EventOccurrence.event_id == created["id"]).one()
        original_id = original.id

        response = client.put(
            f"/api/v1/events/{created['id']}",
            json={"recurrence_rule": "FREQ=DAILY", "recurrence_count": 4},
        )

        assert response.status_code == 200
        occurrences = db.query(EventOccurrence).filter(EventOccurrence.event_id == created["id"]).all()
        assert len(occurrences) == 4
        assert original_id in {o.id for o in occurrences}

    @pytest.mark.parametrize("field", ["title", "start_time", "end_time", "reminder_offsets"])
    def test_update_rejects_null_required_field(self, client, auth_as, db, owner, field):
        auth_as(owner)
        created = client.post("/api/v1/events", json=event_payload()).json()

        response = client.put(f"/api/v1/events/{created['id']}", json={field: None})

        assert response.status_code == 400
        assert field in response.json()["detail"]
        assert client.get(f"/api/v1/events/{created['id']}").json()["title"] == "Morning Training"

    def test_update_rejects_end_before_start(self, client, auth_as, owner):
        auth_as(owner)
        created = client.post("/api/v1/events", json=event_payload()).json()

        response = client.put(f"/api/v1/events/{created['id']}", json={"end_time": "05:00"})

        assert response.status_code == 400

    def test_update_allows_clearing_optional_fields(self, client, auth_as, owner):
        auth_as(owner)
        created = client.post("/api/v1/events", json=event_payload(location="Box 1")).json()

        response = client.put(f"/api/v1/events/{created['id']}", json={"location": None})

        assert response.status_code == 200
        assert response.json()["location"] is None

    def test_delete_event(self, client, auth_as, db, owner):
        auth_as(owner)
        created = client.post("/api/v1/events", json=event_payload()).json()

        response = client.delete(f"/api/v1/events/{created['id']}")

        assert response.status_code == 204
        assert client.get(f"/api/v1/events/{created['id']}").status_code == 404


class TestOccurrences:

    @pytest.fixture
    def weekly_event(self, client, auth_as, owner):
        auth_as(owner)
        return client.post(
            "/api/v1/events",
            json=event_payload(start_date=future(1), recurrence_rule="FREQ=DAILY", recurrence_count=5),
        ).json()

    def test_custom_occurrence_on_existing_date_is_rejected(self, client, weekly_event):
        response = client.post(
            f"/api/v1/events/{weekly_event['id']}/occurrences", json={"occurrence_date": future(2)}
        )

        assert response.status_code == 400

    def test_add_and_delete_custom_occurrence(self, client, weekly_event):
        response = client.post(
            f"/api/v1/events/{weekly_event['id']}/occurrences",
            json={"occurrence_date": future(20), "note": "Sesión extra"},
        )
        assert response.status_code == 201
        custom = response.json()
        assert custom["is_custom"] is True

        deleted = client.delete(f"/api/v1/occurrences/{custom['id']}")
        assert deleted.status_code == 200

    def test_rule_occurrence_cannot_be_deleted(self, client, db, weekly_event):
        occurrence = db.query(EventOccurrence).filter(EventOccurrence.event_id == weekly_event["id"]).first()

        response = client.delete(f"/api/v1/occurrences/{occurrence.id}")

        assert response.status_code == 400
        assert db.get(EventOccurrence, occurrence.id) is not None

    def test_cancel_and_restore_without_notifying(self, client, db, weekly_event, mock_email_send):
        occurrence = db.query(EventOccurrence).filter(EventOccurrence.event_id == weekly_event["id"]).first()

        canceled = client.patch(f"/api/v1/occurrences/{occurrence.id}", json={"status": "canceled"})
        assert canceled.status_code == 200
        assert canceled.json()["status"] == "canceled"

        restored = client.patch(f"/api/v1/occurrences/{occurrence.id}", json={"status": "scheduled"})
        assert restored.json()["status"] == "scheduled"
        mock_email_send.assert_not_called()

    def test_calendar_window_includes_going_count(self, client, auth_as, db, weekly_event, athlete):
        from gymhub.models.event import RSVP, RSVPStatus

        occurrence = db.query(EventOccurrence).filter(
            EventOccurrence.event_id == weekly_event["id"]
        ).order_by(EventOccurrence.occurrence_date).first()
        db.add(RSVP(user_id=athlete.id, occurrence_id=occurrence.id, status=RSVPStatus.GOING))
        db.commit()

        auth_as(athlete)
        response = client.get("/api/v1/occurrences", params={"start": future(0), "end": future(10)})

        assert response.status_code == 200
        items = response.json()
        assert len(items) == 5
        first = next(i for i in items if i["id"] == occurrence.id)
        assert first["going_count"] == 1
        assert first["title"] == "Morning Training"

    def test_athlete_cannot_cancel(self, client, auth_as, db, weekly_event, athlete):
        occurrence = db.query(EventOccurrence).filter(EventOccurrence.event_id == weekly_event["id"]).first()
        auth_as(athlete)

        response = client.patch(f"/api/v1/occurrences/{occurrence.id}", json={"status": "canceled"})

        assert response.status_code == 403
        db.refresh(occurrence)
        assert occurrence.status == OccurrenceStatus.SCHEDULED


def test_extend_horizons_adds_future_dates(db, gym, owner):
    from gymhub.models.event import Event
    from gymhub.services.event import event_service

    event = Event(
        gym_id=gym.id, title="Open Gym", start_time=time(18, 0),
        end_time=time(20, 0), start_date=date(2026, 1, 5),
        recurrence_rule="FREQ=WEEKLY;BYDAY=MO", reminder_offsets=[],
    )
    db.add(event)
    db.commit()
    event_service.materialize_occurrences(db, event, gym.timezone, today=date(2026, 1, 5))
    before = db.query(EventOccurrence).filter(EventOccurrence.event_id == event.id).count()

    added = event_service.extend_horizons(db, today=date(2026, 3, 2))

    after = db.query(EventOccurrence).filter(EventOccurrence.event_id == event.id).count()
    assert added > 0
    assert after == before + added
