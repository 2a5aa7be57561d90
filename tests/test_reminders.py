"""
Tests del despachador de recordatorios.

Escenario base: "Morning Training" lunes, miércoles y viernes de 06:00 a 08:00
(America/New_York) con recordatorios de 1 día y 0.02 días (30 minutos).
"""
from datetime import date, datetime, time, timezone
from unittest.mock import patch

import pytest
import pytz

from gymhub.models.event import Event, EventOccurrence, OccurrenceStatus, RSVP, RSVPStatus
from gymhub.models.user import UserRole
from gymhub.repositories.event import reminder_log_repository
from gymhub.services.email import EmailDeliveryError
from gymhub.services.event import event_service
from gymhub.services.reminder import reminder_service

NY = pytz.timezone("America/New_York")
MONDAY = date(2026, 12, 7)


def at_local(*args) -> datetime:
    return NY.localize(datetime(*args)).astimezone(timezone.utc)


@pytest.fixture
def morning_training(db, gym, owner):
    event = Event(
        gym_id=gym.id,
        created_by_id=owner.id,
        title="Morning Training",
        start_time=time(6, 0),
        end_time=time(8, 0),
        start_date=MONDAY,
        recurrence_rule="FREQ=WEEKLY;BYDAY=MO,WE,FR",
        reminder_offsets=[1, 0.02],
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    event_service.materialize_occurrences(db, event, gym.timezone, today=date(2026, 12, 1))
    return event


def monday_occurrence(db, event) -> EventOccurrence:
    return db.query(EventOccurrence).filter(
        EventOccurrence.event_id == event.id, EventOccurrence.occurrence_date == MONDAY
    ).one()


class TestDispatchDueReminders:

    def test_day_before_reminder_goes_to_athletes_only(
        self, db, morning_training, coach, athlete, athlete2, mock_email_send, mock_push
    ):
        result = reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 6, 9, 0))

        assert result["processed"] == 1
        assert result["sent"] == 2
        assert result["errors"] == []
        recipients = sorted(call.args[0][0] for call in mock_email_send.call_args_list)
        assert recipients == ["athlete2@test.com", "athlete@test.com"]
        subjects = {call.args[1] for call in mock_email_send.call_args_list}
        assert subjects == {"Morning Training - Es mañana"}

        occurrence = monday_occurrence(db, morning_training)
        assert reminder_log_repository.count(db, occurrence_id=occurrence.id, reminder_type="1_day") == 2

    def test_rerun_does_not_resend(self, db, morning_training, athlete, athlete2, mock_email_send, mock_push):
        now = at_local(2026, 12, 6, 9, 0)
        reminder_service.dispatch_due_reminders(db, now=now)
        mock_email_send.reset_mock()

        result = reminder_service.dispatch_due_reminders(db, now=now)

        assert result["sent"] == 0
        assert result["skipped"] == 2
        mock_email_send.assert_not_called()

    def test_thirty_minute_window(self, db, morning_training, athlete, mock_email_send, mock_push):
        too_early = reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 7, 5, 20))
        assert too_early["processed"] == 0

        in_window = reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 7, 5, 25))
        assert in_window["processed"] == 1
        assert in_window["sent"] == 1
        assert mock_email_send.call_args.args[1] == "Morning Training - Empieza pronto"

        later_tick = reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 7, 5, 35))
        assert later_tick["sent"] == 0
        assert later_tick["skipped"] == 1

        occurrence = monday_occurrence(db, morning_training)
        assert reminder_log_repository.count(db, occurrence_id=occurrence.id, reminder_type="30_min") == 1

    def test_no_reminder_after_start(self, db, morning_training, athlete, mock_email_send, mock_push):
        result = reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 7, 6, 1))
        assert result["sent"] == 0
        mock_email_send.assert_not_called()

    def test_declined_athletes_are_skipped(self, db, morning_training, athlete, athlete2, mock_email_send, mock_push):
        occurrence = monday_occurrence(db, morning_training)
        db.add(RSVP(user_id=athlete2.id, occurrence_id=occurrence.id, status=RSVPStatus.NOT_GOING))
        db.commit()

        result = reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 6, 9, 0))

        assert result["sent"] == 1
        assert mock_email_send.call_args.args[0][0] == "athlete@test.com"

    def test_alt_email_receives_reminder(self, db, gym, morning_training, make_user, mock_email_send, mock_push):
        make_user("main@test.com", UserRole.ATHLETE, gym, name="Dani", alt_email="second@test.com")

        reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 6, 9, 0))

        assert mock_email_send.call_args.args[0] == ["main@test.com", "second@test.com"]

    def test_failures_are_collected_and_retried(
        self, db, morning_training, athlete, athlete2, mock_email_send, mock_push
    ):
        def fail_for_athlete2(to, subject, html):
            if "athlete2@test.com" in to:
                raise EmailDeliveryError("Mailbox unavailable")
            return "email_ok"

        mock_email_send.side_effect = fail_for_athlete2
        now = at_local(2026, 12, 6, 9, 0)

        result = reminder_service.dispatch_due_reminders(db, now=now)

        assert result["sent"] == 1
        assert len(result["errors"]) == 1
        error = result["errors"][0]
        assert error["user_id"] == athlete2.id
        assert error["email"] == "athlete2@test.com"
        assert "Mailbox unavailable" in error["error"]

        # Sin log para el fallo: la siguiente ejecución lo reintenta
        mock_email_send.side_effect = None
        retry = reminder_service.dispatch_due_reminders(db, now=now)
        assert retry["sent"] == 1
        assert retry["skipped"] == 1

    def test_canceled_occurrence_gets_no_reminders(self, db, morning_training, athlete, mock_email_send, mock_push):
        occurrence = monday_occurrence(db, morning_training)
        occurrence.status = OccurrenceStatus.CANCELED
        db.commit()

        result = reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 6, 9, 0))

        assert result["processed"] == 0
        mock_email_send.assert_not_called()

    def test_gym_with_reminders_disabled(self, db, gym, morning_training, athlete, mock_email_send, mock_push):
        gym.reminder_emails_enabled = False
        db.commit()

        result = reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 6, 9, 0))

        assert result["processed"] == 0
        mock_email_send.assert_not_called()

    def test_push_sent_when_user_has_token(self, db, gym, morning_training, make_user, mock_email_send, mock_push):
        make_user("push@test.com", UserRole.ATHLETE, gym, name="Pia", push_token="player-123")

        reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 6, 9, 0))

        mock_push.assert_called_once()
        assert mock_push.call_args.args[0] == ["player-123"]

    def test_no_push_when_another_run_logged_first(
        self, db, gym, morning_training, make_user, mock_email_send, mock_push
    ):
        make_user("push@test.com", UserRole.ATHLETE, gym, name="Pia", push_token="player-123")

        with patch.object(reminder_service, "_log_sent", return_value=False):
            result = reminder_service.dispatch_due_reminders(db, now=at_local(2026, 12, 6, 9, 0))

        assert result["sent"] == 0
        assert result["skipped"] == 1
        mock_push.assert_not_called()


class TestManualReminders:

    def test_targets_athletes_without_rsvp(self, db, gym, owner, morning_training, athlete, athlete2, mock_email_send):
        occurrence = monday_occurrence(db, morning_training)
        db.add(RSVP(user_id=athlete.id, occurrence_id=occurrence.id, status=RSVPStatus.GOING))
        db.commit()

        result = reminder_service.send_manual_reminders(db, staff=owner, gym=gym, occurrence_id=occurrence.id)

        assert result["sent"] == 1
        assert mock_email_send.call_args.args[0][0] == "athlete2@test.com"
        assert mock_email_send.call_args.args[1] == "Confirma tu asistencia a Morning Training"

    def test_manual_reminder_always_sends_but_logs_once(
        self, db, gym, coach, morning_training, athlete, mock_email_send
    ):
        occurrence = monday_occurrence(db, morning_training)

        first = reminder_service.send_manual_reminders(db, staff=coach, gym=gym, occurrence_id=occurrence.id)
        second = reminder_service.send_manual_reminders(db, staff=coach, gym=gym, occurrence_id=occurrence.id)

        assert first["sent"] == 1
        assert second["sent"] == 1
        assert reminder_log_repository.count(db, occurrence_id=occurrence.id, reminder_type="manual") == 1


class TestReminderEndpoints:

    def test_process_requires_cron_secret(self, client):
        response = client.post("/api/v1/reminders/process")
        assert response.status_code == 401

        response = client.post("/api/v1/reminders/process", headers={"Authorization": "Bearer wrong"})
        assert response.status_code == 401

    def test_process_with_valid_secret(self, client, mock_email_send):
        response = client.post(
            "/api/v1/reminders/process", headers={"Authorization": "Bearer test-cron-secret"}
        )
        assert response.status_code == 200
        body = response.json()
        assert set(body.keys()) == {"processed", "sent", "skipped", "errors"}

    def test_manual_send_endpoint(self, client, auth_as, db, coach, morning_training, athlete, mock_email_send):
        occurrence = monday_occurrence(db, morning_training)
        auth_as(coach)

        response = client.post("/api/v1/reminders/send", json={"occurrence_id": occurrence.id})

        assert response.status_code == 200
        assert response.json()["sent"] == 1

    def test_manual_send_forbidden_for_athletes(self, client, auth_as, db, morning_training, athlete, mock_email_send):
        occurrence = monday_occurrence(db, morning_training)
        auth_as(athlete)

        response = client.post("/api/v1/reminders/send", json={"occurrence_id": occurrence.id})

        assert response.status_code == 403
        mock_email_send.assert_not_called()
