from typing import Dict, List, Optional
from datetime import date

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from gymhub.models.event import Event, EventOccurrence, OccurrenceStatus, RSVP, RSVPStatus, ReminderLog
from gymhub.repositories.base import BaseRepository
from gymhub.schemas.event import EventCreate, EventUpdate


class EventRepository(BaseRepository[Event, EventCreate, EventUpdate]):
    """Repositorio para operaciones con eventos."""

    def get_gym_events(self, db: Session, *, gym_id: int) -> List[Event]:
        return db.query(Event).filter(Event.gym_id == gym_id).order_by(Event.start_date, Event.start_time).all()

    def get_events_with_reminders(self, db: Session) -> List[Event]:
        """Eventos con al menos un offset de recordatorio (el filtro del JSON se hace en Python)."""
        events = db.query(Event).options(joinedload(Event.gym)).all()
        return [e for e in events if e.reminder_offsets]

    def get_open_ended_recurring(self, db: Session) -> List[Event]:
        """Eventos recurrentes sin fecha de fin ni COUNT, que necesitan extender su horizonte."""
        return db.query(Event).options(joinedload(Event.gym)).filter(
            Event.recurrence_rule.isnot(None),
            Event.recurrence_end_date.is_(None),
            Event.recurrence_count.is_(None),
        ).all()


class EventOccurrenceRepository:
    """Repositorio para ocurrencias concretas de eventos."""

    def get_in_gym(self, db: Session, *, occurrence_id: int, gym_id: int) -> Optional[EventOccurrence]:
        """Ocurrencia por ID limitada al gimnasio del evento."""
        return (
            db.query(EventOccurrence)
            .join(Event, EventOccurrence.event_id == Event.id)
            .options(joinedload(EventOccurrence.event))
            .filter(EventOccurrence.id == occurrence_id, Event.gym_id == gym_id)
            .first()
        )

    def get_by_event_and_date(self, db: Session, *, event_id: int, occurrence_date: date) -> Optional[EventOccurrence]:
        return db.query(EventOccurrence).filter(
            EventOccurrence.event_id == event_id,
            EventOccurrence.occurrence_date == occurrence_date,
        ).first()

    def get_existing_dates(self, db: Session, *, event_id: int) -> List[date]:
        rows = db.query(EventOccurrence.occurrence_date).filter(EventOccurrence.event_id == event_id).all()
        return [r[0] for r in rows]

    def get_by_event(
        self, db: Session, *, event_id: int, start: Optional[date] = None, end: Optional[date] = None
    ) -> List[EventOccurrence]:
        query = db.query(EventOccurrence).filter(EventOccurrence.event_id == event_id)
        if start:
            query = query.filter(EventOccurrence.occurrence_date >= start)
        if end:
            query = query.filter(EventOccurrence.occurrence_date <= end)
        return query.order_by(EventOccurrence.occurrence_date).all()

    def get_upcoming(self, db: Session, *, event_id: int, from_date: date, limit: int = 10) -> List[EventOccurrence]:
        return (
            db.query(EventOccurrence)
            .filter(
                EventOccurrence.event_id == event_id,
                EventOccurrence.occurrence_date >= from_date,
            )
            .order_by(EventOccurrence.occurrence_date)
            .limit(limit)
            .all()
        )

    def get_gym_window(
        self, db: Session, *, gym_id: int, start: date, end: date, event_id: Optional[int] = None
    ) -> List[EventOccurrence]:
        query = (
            db.query(EventOccurrence)
            .join(Event, EventOccurrence.event_id == Event.id)
            .options(joinedload(EventOccurrence.event))
            .filter(
                Event.gym_id == gym_id,
                EventOccurrence.occurrence_date >= start,
                EventOccurrence.occurrence_date <= end,
            )
        )
        if event_id is not None:
            query = query.filter(Event.id == event_id)
        return query.order_by(EventOccurrence.occurrence_date, Event.start_time).all()

    def get_scheduled_for_event(
        self, db: Session, *, event_id: int, start: date, end: date
    ) -> List[EventOccurrence]:
        return db.query(EventOccurrence).filter(
            EventOccurrence.event_id == event_id,
            EventOccurrence.status == OccurrenceStatus.SCHEDULED,
            EventOccurrence.occurrence_date >= start,
            EventOccurrence.occurrence_date <= end,
        ).order_by(EventOccurrence.occurrence_date).all()

    def going_counts(self, db: Session, *, occurrence_ids: List[int]) -> Dict[int, int]:
        if not occurrence_ids:
            return {}
        rows = (
            db.query(RSVP.occurrence_id, func.count(RSVP.id))
            .filter(RSVP.occurrence_id.in_(occurrence_ids), RSVP.status == RSVPStatus.GOING)
            .group_by(RSVP.occurrence_id)
            .all()
        )
        return {occurrence_id: count for occurrence_id, count in rows}


class ReminderLogRepository:

    def exists(self, db: Session, *, occurrence_id: int, user_id: int, reminder_type: str) -> bool:
        query = db.query(ReminderLog.id).filter(
            ReminderLog.occurrence_id == occurrence_id,
            ReminderLog.user_id == user_id,
            ReminderLog.reminder_type == reminder_type,
        )
        return db.query(query.exists()).scalar()

    def create(self, db: Session, *, occurrence_id: int, user_id: int, reminder_type: str) -> ReminderLog:
        log = ReminderLog(occurrence_id=occurrence_id, user_id=user_id, reminder_type=reminder_type)
        db.add(log)
        db.commit()
        return log

    def count(self, db: Session, *, occurrence_id: int, reminder_type: Optional[str] = None) -> int:
        query = db.query(func.count(ReminderLog.id)).filter(ReminderLog.occurrence_id == occurrence_id)
        if reminder_type:
            query = query.filter(ReminderLog.reminder_type == reminder_type)
        return query.scalar()


event_repository = EventRepository(Event)
event_occurrence_repository = EventOccurrenceRepository()
reminder_log_repository = ReminderLogRepository()
