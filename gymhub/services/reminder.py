"""
Despachador de recordatorios por email.

Se ejecuta cada 5 minutos (APScheduler o ``POST /reminders/process``). Para
cada ocurrencia programada y cada offset del evento decide si el
recordatorio toca ahora y lo envía a los atletas que no han dicho que no van.
La tabla ReminderLog garantiza un único envío por (ocurrencia, usuario, tipo).

Offsets:
- ``>= 1``: días enteros; se envía el día de la ocurrencia menos N, desde la
  medianoche local del gimnasio. Tipo ``"{N}_day"``.
- ``< 1``: fracción de día pasada a minutos y redondeada a múltiplos de 5
  (mínimo 5). Se envía dentro de ±5 minutos del instante. Tipo ``"{M}_min"``.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Set

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymhub.core.config import get_settings
from gymhub.core.exceptions import PermissionDeniedError, ValidationError
from gymhub.core.timezone_utils import get_current_time_in_gym_timezone, occurrence_start
from gymhub.models.event import Event, EventOccurrence, OccurrenceStatus, RSVP, RSVPStatus
from gymhub.models.gym import Gym
from gymhub.models.user import User, UserRole
from gymhub.repositories.event import (
    event_occurrence_repository, event_repository, reminder_log_repository,
)
from gymhub.repositories.user import user_repository
from gymhub.services.email import EmailDeliveryError, email_service
from gymhub.services.event import event_service
from gymhub.services.notification_service import notification_service

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60
MINUTE_GRANULARITY = 5
MANUAL_REMINDER_TYPE = "manual"

REMINDER_SUBJECTS = {
    "7_day": "Falta una semana",
    "3_day": "Faltan 3 días",
    "1_day": "Es mañana",
    "30_min": "Empieza pronto",
}


def offset_to_minutes(offset: float) -> int:
    """0.02 días = 28.8 min, redondeado al múltiplo de 5 más cercano = 30."""
    minutes = int(round(offset * MINUTES_PER_DAY / MINUTE_GRANULARITY)) * MINUTE_GRANULARITY
    return max(MINUTE_GRANULARITY, minutes)


def reminder_type_for(offset: float) -> str:
    if offset >= 1:
        return f"{int(offset)}_day"
    return f"{offset_to_minutes(offset)}_min"


def reminder_subject(reminder_type: str) -> str:
    return REMINDER_SUBJECTS.get(reminder_type, "Recordatorio")


def is_reminder_due(offset: float, start: datetime, local_now: datetime, window_minutes: int) -> bool:
    """
    ``start`` y ``local_now`` son datetimes aware en la zona del gimnasio.
    Nunca se envía si la ocurrencia ya empezó.
    """
    if start <= local_now:
        return False
    if offset >= 1:
        reminder_day = start.date() - timedelta(days=int(offset))
        return local_now.date() == reminder_day
    reminder_at = start - timedelta(minutes=offset_to_minutes(offset))
    return abs(reminder_at - local_now) <= timedelta(minutes=window_minutes)


class ReminderService:

    def _new_result(self) -> Dict:
        return {"processed": 0, "sent": 0, "skipped": 0, "errors": []}

    def _declined_user_ids(self, db: Session, occurrence_id: int) -> Set[int]:
        rows = db.query(RSVP.user_id).filter(
            RSVP.occurrence_id == occurrence_id, RSVP.status == RSVPStatus.NOT_GOING
        ).all()
        return {r[0] for r in rows}

    def _log_sent(self, db: Session, occurrence_id: int, user_id: int, reminder_type: str) -> bool:
        """Escribe el log. Devuelve False si otra ejecución ya lo había escrito."""
        try:
            reminder_log_repository.create(
                db, occurrence_id=occurrence_id, user_id=user_id, reminder_type=reminder_type
            )
            return True
        except IntegrityError:
            db.rollback()
            logger.warning(
                f"Recordatorio {reminder_type} de ocurrencia {occurrence_id} ya registrado para usuario {user_id}"
            )
            return False

    def _push(self, user: User, gym: Gym, event: Event, occurrence: EventOccurrence, subject: str) -> None:
        if not user.push_token:
            return
        notification_service.send_to_devices(
            [user.push_token],
            title=subject,
            message=f"{event.title} - {occurrence.occurrence_date.strftime('%d/%m')} {event.start_time.strftime('%H:%M')}",
            data={"type": "event_reminder", "occurrence_id": occurrence.id},
            gym_name=gym.name,
        )

    def _send_to_recipients(
        self, db: Session, result: Dict, *, gym: Gym, event: Event, occurrence: EventOccurrence,
        recipients: List[User], reminder_type: str
    ) -> None:
        subject = reminder_subject(reminder_type)
        for user in recipients:
            if reminder_log_repository.exists(
                db, occurrence_id=occurrence.id, user_id=user.id, reminder_type=reminder_type
            ):
                result["skipped"] += 1
                continue
            try:
                email_service.send_reminder(user, gym, event, occurrence, subject)
            except EmailDeliveryError as e:
                result["errors"].append({
                    "occurrence_id": occurrence.id,
                    "user_id": user.id,
                    "email": user.email,
                    "error": str(e),
                })
                continue

            if self._log_sent(db, occurrence.id, user.id, reminder_type):
                result["sent"] += 1
                self._push(user, gym, event, occurrence, subject)
            else:
                result["skipped"] += 1

    def dispatch_due_reminders(self, db: Session, now: Optional[datetime] = None) -> Dict:
        """
        Envía los recordatorios que tocan en este momento.

        Returns:
            ``{processed, sent, skipped, errors}``; ``processed`` cuenta los pares
            (ocurrencia, tipo) que estaban en ventana.
        """
        now = now or datetime.now(timezone.utc)
        window_minutes = get_settings().REMINDER_WINDOW_MINUTES
        result = self._new_result()
        athletes_by_gym: Dict[int, List[User]] = {}

        for event in event_repository.get_events_with_reminders(db):
            gym = event.gym
            if not gym.email_enabled or not gym.reminder_emails_enabled:
                continue

            local_now = get_current_time_in_gym_timezone(gym.timezone, now)
            today = local_now.date()
            max_days = max([int(o) for o in event.reminder_offsets if o >= 1] or [0])
            occurrences = event_occurrence_repository.get_scheduled_for_event(
                db, event_id=event.id, start=today, end=today + timedelta(days=max_days + 1)
            )

            for occurrence in occurrences:
                start = occurrence_start(occurrence.occurrence_date, event.start_time, gym.timezone)
                due_types = [
                    reminder_type_for(offset) for offset in event.reminder_offsets
                    if is_reminder_due(offset, start, local_now, window_minutes)
                ]
                if not due_types:
                    continue

                if gym.id not in athletes_by_gym:
                    athletes_by_gym[gym.id] = user_repository.get_gym_members(
                        db, gym_id=gym.id, role=UserRole.ATHLETE
                    )
                declined = self._declined_user_ids(db, occurrence.id)
                recipients = [a for a in athletes_by_gym[gym.id] if a.id not in declined]

                for reminder_type in dict.fromkeys(due_types):
                    result["processed"] += 1
                    self._send_to_recipients(
                        db, result, gym=gym, event=event, occurrence=occurrence,
                        recipients=recipients, reminder_type=reminder_type,
                    )

        logger.info(
            f"Recordatorios procesados: {result['processed']}, enviados: {result['sent']}, "
            f"omitidos: {result['skipped']}, errores: {len(result['errors'])}"
        )
        return result

    def send_manual_reminders(
        self, db: Session, *, staff: User, gym: Gym, occurrence_id: int, user_ids: Optional[List[int]] = None
    ) -> Dict:
        """
        Recordatorio manual a los atletas que aún no han respondido (o al
        subconjunto indicado). Siempre envía; el log ``manual`` se escribe una vez.
        """
        if not staff.is_staff:
            raise PermissionDeniedError("Solo el staff puede enviar recordatorios")

        occurrence = event_service.get_occurrence(db, gym_id=gym.id, occurrence_id=occurrence_id)
        if occurrence.status == OccurrenceStatus.CANCELED:
            raise ValidationError("La ocurrencia está cancelada")

        responded = {
            r[0] for r in db.query(RSVP.user_id).filter(RSVP.occurrence_id == occurrence.id).all()
        }
        targets = [
            a for a in user_repository.get_gym_members(db, gym_id=gym.id, role=UserRole.ATHLETE)
            if a.id not in responded
        ]
        if user_ids:
            wanted = set(user_ids)
            targets = [t for t in targets if t.id in wanted]

        result = self._new_result()
        result["processed"] = len(targets)
        for user in targets:
            try:
                email_service.send_rsvp_request(user, gym, occurrence.event, occurrence)
            except EmailDeliveryError as e:
                result["errors"].append({
                    "occurrence_id": occurrence.id,
                    "user_id": user.id,
                    "email": user.email,
                    "error": str(e),
                })
                continue
            result["sent"] += 1
            if not reminder_log_repository.exists(
                db, occurrence_id=occurrence.id, user_id=user.id, reminder_type=MANUAL_REMINDER_TYPE
            ):
                self._log_sent(db, occurrence.id, user.id, MANUAL_REMINDER_TYPE)

        logger.info(
            f"Recordatorio manual de ocurrencia {occurrence.id} por staff {staff.id}: "
            f"{result['sent']}/{len(targets)} enviados"
        )
        return result


reminder_service = ReminderService()
