"""
Tests de cancelar y notificar una ocurrencia.
"""
from datetime import date, timedelta

import pytest

from gymhub.models.event import EventOccurrence, OccurrenceStatus, RSVP, RSVPStatus
from gymhub.services.email import EmailDeliveryError


@pytest.fixture
def occurrence_with_rsvps(db, gym, make_event, athlete, athlete2):
    _, occurrence = make_event(gym, date.today() + timedelta(days=2))
    db.add_all([
        RSVP(user_id=athlete.id, occurrence_id=occurrence.id, status=RSVPStatus.GOING),
        RSVP(user_id=athlete2.id, occurrence_id=occurrence.id, status=RSVPStatus.NOT_GOING),
    ])
    db.commit()
    return occurrence


class TestCancelAndNotify:

    def test_notifies_only_going_athletes(self, client, auth_as, db, owner, occurrence_with_rsvps, mock_email_send):
        auth_as(owner)

        response = client.post(
            f"/api/v1/occurrences/{occurrence_with_rsvps.id}/cancel-notify", json={"note": "Lluvia"}
        )

        assert response.status_code == 200
        body = response.json()
        assert body["notified"] == 1
        assert body["failed"] == 0
        assert body["occurrence"]["status"] == "canceled"
        assert body["occurrence"]["note"] == "Lluvia"
        mock_email_send.assert_called_once()
        assert mock_email_send.call_args.args[0] == ["athlete@test.com"]
        assert mock_email_send.call_args.args[1].startswith("Cancelado: Morning Training")

    def test_already_canceled_is_rejected(self, client, auth_as, owner, occurrence_with_rsvps, mock_email_send):
        auth_as(owner)
        client.post(f"/api/v1/occurrences/{occurrence_with_rsvps.id}/cancel-notify", json={})

        response = client.post(f"/api/v1/occurrences/{occurrence_with_rsvps.id}/cancel-notify", json={})

        assert response.status_code == 400
        assert mock_email_send.call_count == 1

    def test_delivery_failure_keeps_cancellation(self, client, auth_as, db, owner, occurrence_with_rsvps,
                                                 mock_email_send):
        mock_email_send.side_effect = EmailDeliveryError("Resend caído")
        auth_as(owner)

        response = client.post(f"/api/v1/occurrences/{occurrence_with_rsvps.id}/cancel-notify", json={})

        assert response.status_code == 200
        body = response.json()
        assert body["notified"] == 0
        assert body["failed"] == 1
        assert body["errors"][0]["email"] == "athlete@test.com"
        db.expire_all()
        assert db.get(EventOccurrence, occurrence_with_rsvps.id).status == OccurrenceStatus.CANCELED

    def test_gym_without_email_cancels_silently(self, client, auth_as, db, gym, owner, occurrence_with_rsvps,
                                                mock_email_send):
        gym.email_enabled = False
        db.commit()
        auth_as(owner)

        response = client.post(f"/api/v1/occurrences/{occurrence_with_rsvps.id}/cancel-notify", json={})

        assert response.status_code == 200
        assert response.json()["notified"] == 0
        mock_email_send.assert_not_called()

    def test_athlete_cannot_cancel(self, client, auth_as, athlete, occurrence_with_rsvps, mock_email_send):
        auth_as(athlete)

        response = client.post(f"/api/v1/occurrences/{occurrence_with_rsvps.id}/cancel-notify", json={})

        assert response.status_code == 403
        mock_email_send.assert_not_called()
