"""
EventService - lógica de negocio de eventos y ocurrencias.

Un evento es una plantilla (franja horaria, regla y recordatorios); sus fechas
concretas se materializan como EventOccurrence, la unidad sobre la que se
responde RSVP, se cancela y se envían recordatorios.

Métodos principales:
- create_event() / update_event() - crean la plantilla y materializan fechas
- materialize_occurrences() - inserta las fechas que faltan (nunca borra)
- list_occurrences() - ocurrencias del gimnasio en una ventana con asistentes
- add_custom_occurrence() / update_occurrence() / delete_occurrence()
- cancel_and_notify() - cancela y avisa por email a quien iba a asistir
- extend_horizons() - job diario para reglas sin fin
"""
import logging
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymhub.core.exceptions import DuplicateError, NotFoundError, ValidationError
from gymhub.core.retry import retry_on_db_error
from gymhub.core.timezone_utils import gym_local_date
from gymhub.models.event import Event, EventOccurrence, OccurrenceStatus, RSVP, RSVPStatus
from gymhub.models.gym import Gym
from gymhub.models.user import User
from gymhub.repositories.event import event_repository, event_occurrence_repository
from gymhub.schemas.event import EventCreate, EventUpdate, OccurrenceCreate, OccurrenceUpdate
from gymhub.services.email import EmailDeliveryError, email_service
from gymhub.services.recurrence import expand_dates, horizon_end, missing_dates, parse_rule

logger = logging.getLogger(__name__)

DEFAULT_LIST_WINDOW_DAYS = 30

RECURRENCE_FIELDS = ("recurrence_rule", "recurrence_end_date", "recurrence_count", "start_date")
NON_NULLABLE_FIELDS = ("title", "start_time", "end_time", "reminder_offsets")


class EventService:

    def _validate_recurrence(self, start_date: date, rule: Optional[str],
                             end_date: Optional[date], count: Optional[int]) -> None:
        if end_date and end_date < start_date:
            raise ValidationError("La fecha de fin de la recurrencia no puede ser anterior al inicio")
        if rule:
            parse_rule(rule, start_date, end_date, count)

    def create_event(self, db: Session, *, gym: Gym, creator: User, event_in: EventCreate) -> Event:
        self._validate_recurrence(
            event_in.start_date, event_in.recurrence_rule,
            event_in.recurrence_end_date, event_in.recurrence_count
        )
        event = event_repository.create(db, obj_in=event_in, gym_id=gym.id, created_by_id=creator.id)
        created = self.materialize_occurrences(db, event, gym.timezone)
        logger.info(f"Evento {event.id} creado en gym {gym.id} con {created} ocurrencias")
        return event

    def materialize_occurrences(self, db: Session, event: Event, gym_timezone: str,
                                today: Optional[date] = None) -> int:
        """
        Inserta las ocurrencias que faltan desde hoy (fecha local del gimnasio)
        hasta el horizonte del evento. Devuelve cuántas se crearon.

        Un evento sin regla ocurre siempre en su ``start_date``.
        """
        today = today or gym_local_date(gym_timezone)
        if event.is_recurring:
            window_start = max(event.start_date, today)
        else:
            window_start = event.start_date
        window_end = horizon_end(event.start_date, today, event.recurrence_end_date, event.recurrence_count)

        expected = expand_dates(
            event.start_date, window_start, window_end,
            rule_text=event.recurrence_rule,
            recurrence_end_date=event.recurrence_end_date,
            recurrence_count=event.recurrence_count,
        )
        existing = event_occurrence_repository.get_existing_dates(db, event_id=event.id)
        new_dates = missing_dates(expected, existing)
        for occurrence_date in new_dates:
            db.add(EventOccurrence(
                event_id=event.id,
                occurrence_date=occurrence_date,
                status=OccurrenceStatus.SCHEDULED,
                is_custom=False,
            ))
        if new_dates:
            db.commit()
        return len(new_dates)

    @retry_on_db_error(max_retries=3, delay=1)
    def list_events(self, db: Session, *, gym_id: int) -> List[Event]:
        return event_repository.get_gym_events(db, gym_id=gym_id)

    @retry_on_db_error(max_retries=3, delay=1)
    def get_event(self, db: Session, *, gym_id: int, event_id: int) -> Event:
        event = event_repository.get(db, id=event_id, gym_id=gym_id)
        if not event:
            raise NotFoundError(f"Evento {event_id} no encontrado")
        return event

    def get_event_with_upcoming(self, db: Session, *, gym: Gym, event_id: int,
                                limit: int = 10) -> Tuple[Event, List[EventOccurrence]]:
        event = self.get_event(db, gym_id=gym.id, event_id=event_id)
        upcoming = event_occurrence_repository.get_upcoming(
            db, event_id=event.id, from_date=gym_local_date(gym.timezone), limit=limit
        )
        return event, upcoming

    def update_event(self, db: Session, *, gym: Gym, event_id: int, event_in: EventUpdate) -> Event:
        """
        Actualiza la plantilla. Si cambia la recurrencia se añaden las fechas
        nuevas; las ocurrencias existentes (y sus RSVP) se conservan.
        """
        event = self.get_event(db, gym_id=gym.id, event_id=event_id)
        update_data = event_in.model_dump(exclude_unset=True)
        for field in NON_NULLABLE_FIELDS:
            if field in update_data and update_data[field] is None:
                raise ValidationError(f"El campo {field} no puede ser nulo")

        start_time = update_data.get("start_time", event.start_time)
        end_time = update_data.get("end_time", event.end_time)
        if end_time <= start_time:
            raise ValidationError("La hora de fin debe ser posterior a la hora de inicio")

        self._validate_recurrence(
            event.start_date,
            update_data.get("recurrence_rule", event.recurrence_rule),
            update_data.get("recurrence_end_date", event.recurrence_end_date),
            update_data.get("recurrence_count", event.recurrence_count),
        )

        event = event_repository.update(db, db_obj=event, obj_in=update_data)
        if any(field in update_data for field in RECURRENCE_FIELDS):
            created = self.materialize_occurrences(db, event, gym.timezone)
            logger.info(f"Evento {event.id}: recurrencia editada, {created} ocurrencias nuevas")
        return event

    def delete_event(self, db: Session, *, gym_id: int, event_id: int) -> Event:
        return event_repository.remove(db, id=event_id, gym_id=gym_id)

    # Ocurrencias

    @retry_on_db_error(max_retries=3, delay=1)
    def get_occurrence(self, db: Session, *, gym_id: int, occurrence_id: int) -> EventOccurrence:
        occurrence = event_occurrence_repository.get_in_gym(db, occurrence_id=occurrence_id, gym_id=gym_id)
        if not occurrence:
            raise NotFoundError(f"Ocurrencia {occurrence_id} no encontrada")
        return occurrence

    @retry_on_db_error(max_retries=3, delay=1)
    def list_occurrences(
        self, db: Session, *, gym: Gym, start: Optional[date] = None, end: Optional[date] = None,
        event_id: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Ocurrencias del gimnasio entre ``start`` y ``end`` (por defecto los
        próximos 30 días) con datos del evento y número de asistentes.
        """
        start = start or gym_local_date(gym.timezone)
        end = end or start + timedelta(days=DEFAULT_LIST_WINDOW_DAYS)
        if end < start:
            raise ValidationError("El final de la ventana no puede ser anterior al inicio")

        occurrences = event_occurrence_repository.get_gym_window(
            db, gym_id=gym.id, start=start, end=end, event_id=event_id
        )
        counts = event_occurrence_repository.going_counts(db, occurrence_ids=[o.id for o in occurrences])
        return [self._occurrence_with_event(o, counts.get(o.id, 0)) for o in occurrences]

    def _occurrence_with_event(self, occurrence: EventOccurrence, going_count: int) -> Dict[str, Any]:
        event = occurrence.event
        return {
            "id": occurrence.id,
            "event_id": event.id,
            "occurrence_date": occurrence.occurrence_date,
            "status": occurrence.status,
            "is_custom": occurrence.is_custom,
            "note": occurrence.note,
            "title": event.title,
            "start_time": event.start_time,
            "end_time": event.end_time,
            "location": event.location,
            "going_count": going_count,
        }

    def add_custom_occurrence(self, db: Session, *, gym_id: int, event_id: int,
                              occurrence_in: OccurrenceCreate) -> EventOccurrence:
        """
        Añade una fecha fuera de la regla.

        Raises:
            DuplicateError: si el evento ya tiene una ocurrencia ese día
        """
        event = self.get_event(db, gym_id=gym_id, event_id=event_id)
        existing = event_occurrence_repository.get_by_event_and_date(
            db, event_id=event.id, occurrence_date=occurrence_in.occurrence_date
        )
        if existing:
            raise DuplicateError(
                f"El evento ya tiene una ocurrencia el {occurrence_in.occurrence_date.isoformat()}"
            )

        occurrence = EventOccurrence(
            event_id=event.id,
            occurrence_date=occurrence_in.occurrence_date,
            status=OccurrenceStatus.SCHEDULED,
            is_custom=True,
            note=occurrence_in.note,
        )
        db.add(occurrence)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            raise DuplicateError(
                f"El evento ya tiene una ocurrencia el {occurrence_in.occurrence_date.isoformat()}"
            )
        db.refresh(occurrence)
        logger.info(f"Ocurrencia personalizada {occurrence.id} añadida al evento {event.id}")
        return occurrence

    def update_occurrence(self, db: Session, *, gym_id: int, occurrence_id: int,
                          occurrence_in: OccurrenceUpdate) -> EventOccurrence:
        """Cancela o restaura una ocurrencia o edita su nota, sin notificar."""
        occurrence = self.get_occurrence(db, gym_id=gym_id, occurrence_id=occurrence_id)
        update_data = occurrence_in.model_dump(exclude_unset=True)
        if update_data.get("status") is None:
            update_data.pop("status", None)
        for field, value in update_data.items():
            setattr(occurrence, field, value)
        db.add(occurrence)
        db.commit()
        db.refresh(occurrence)
        return occurrence

    def delete_occurrence(self, db: Session, *, gym_id: int, occurrence_id: int) -> EventOccurrence:
        """Solo las ocurrencias personalizadas se pueden borrar; las de la regla se cancelan."""
        occurrence = self.get_occurrence(db, gym_id=gym_id, occurrence_id=occurrence_id)
        if not occurrence.is_custom:
            raise ValidationError(
                "Solo se pueden eliminar ocurrencias personalizadas; cancela la ocurrencia en su lugar"
            )
        db.delete(occurrence)
        db.commit()
        return occurrence

    def cancel_and_notify(self, db: Session, *, gym: Gym, occurrence_id: int,
                          note: Optional[str] = None) -> Dict[str, Any]:
        """
        Cancela la ocurrencia y envía un email a quienes respondieron "going".

        El estado se guarda antes de enviar. Los fallos de envío no hacen
        fallar la operación: se devuelven los contadores y los errores.
        """
        occurrence = self.get_occurrence(db, gym_id=gym.id, occurrence_id=occurrence_id)
        if occurrence.status == OccurrenceStatus.CANCELED:
            raise ValidationError("La ocurrencia ya está cancelada")

        occurrence.status = OccurrenceStatus.CANCELED
        if note is not None:
            occurrence.note = note
        db.add(occurrence)
        db.commit()
        db.refresh(occurrence)
        logger.info(f"Ocurrencia {occurrence.id} cancelada en gym {gym.id}")

        going_users = (
            db.query(User)
            .join(RSVP, RSVP.user_id == User.id)
            .filter(RSVP.occurrence_id == occurrence.id, RSVP.status == RSVPStatus.GOING)
            .all()
        )

        notified, failed = 0, 0
        errors: List[Dict[str, Any]] = []
        if not gym.email_enabled:
            logger.info(f"Emails deshabilitados en gym {gym.id}; no se notifica la cancelación")
            going_users = []

        for user in going_users:
            try:
                email_service.send_cancellation(user, gym, occurrence.event, occurrence)
                notified += 1
            except EmailDeliveryError as e:
                failed += 1
                errors.append({
                    "occurrence_id": occurrence.id,
                    "user_id": user.id,
                    "email": user.email,
                    "error": str(e),
                })

        logger.info(f"Cancelación de ocurrencia {occurrence.id}: {notified} notificados, {failed} fallidos")
        return {"occurrence": occurrence, "notified": notified, "failed": failed, "errors": errors}

    def extend_horizons(self, db: Session, today: Optional[date] = None) -> int:
        """Extiende las reglas sin fin para que el horizonte avance cada día."""
        total = 0
        for event in event_repository.get_open_ended_recurring(db):
            try:
                total += self.materialize_occurrences(db, event, event.gym.timezone, today=today)
            except ValidationError as e:
                logger.error(f"Regla inválida en el evento {event.id}, se omite: {e.detail}")
        if total:
            logger.info(f"Horizonte de ocurrencias extendido: {total} ocurrencias nuevas")
        return total


event_service = EventService()
