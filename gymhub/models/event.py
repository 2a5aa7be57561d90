import enum
from sqlalchemy import (
    Column, String, Integer, Date, DateTime, Time, ForeignKey, Text, Enum, Boolean, JSON,
    Index, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from gymhub.db.base_class import Base


class OccurrenceStatus(str, enum.Enum):
    """Estado de una ocurrencia concreta de un evento."""
    SCHEDULED = "scheduled"  # Ocurrencia programada
    CANCELED = "canceled"    # Ocurrencia cancelada


class RSVPStatus(str, enum.Enum):
    """Respuesta de asistencia de un usuario a una ocurrencia."""
    GOING = "going"
    NOT_GOING = "not_going"


class Event(Base):
    """
    Plantilla de un evento: título, franja horaria, regla de recurrencia y
    recordatorios. No lleva fecha concreta; las fechas viven en EventOccurrence.
    """
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    # Campo para multi-tenant
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by_id = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)

    # Franja horaria local del gimnasio
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    start_date = Column(Date, nullable=False)

    # Regla RRULE (RFC 5545) sin DTSTART, p.ej. "FREQ=WEEKLY;BYDAY=MO,WE,FR"
    recurrence_rule = Column(String(500), nullable=True)
    recurrence_end_date = Column(Date, nullable=True)
    recurrence_count = Column(Integer, nullable=True)

    # Offsets de recordatorio: >= 1 días, < 1 fracción de día
    reminder_offsets = Column(JSON, nullable=False, default=list)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    gym = relationship("Gym", back_populates="events")
    occurrences = relationship(
        "EventOccurrence",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="EventOccurrence.occurrence_date",
    )

    @property
    def is_recurring(self) -> bool:
        return bool(self.recurrence_rule)


class EventOccurrence(Base):
    """Fecha concreta de un evento. Es la unidad sobre la que se hace RSVP y se envían recordatorios."""
    __tablename__ = "event_occurrences"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    occurrence_date = Column(Date, nullable=False, index=True)
    status = Column(Enum(OccurrenceStatus), nullable=False, default=OccurrenceStatus.SCHEDULED, index=True)
    # True si se añadió a mano, fuera de la regla de recurrencia
    is_custom = Column(Boolean, nullable=False, default=False)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    event = relationship("Event", back_populates="occurrences")
    rsvps = relationship("RSVP", back_populates="occurrence", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('event_id', 'occurrence_date', name='uq_occurrence_event_date'),
    )


class RSVP(Base):
    """Asistencia de un usuario a una ocurrencia. Una fila por (usuario, ocurrencia)."""
    __tablename__ = "rsvps"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    occurrence_id = Column(Integer, ForeignKey("event_occurrences.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(Enum(RSVPStatus), nullable=False, default=RSVPStatus.GOING)
    # Staff que modificó la respuesta en nombre del atleta
    updated_by_id = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    occurrence = relationship("EventOccurrence", back_populates="rsvps")
    user = relationship("User", foreign_keys=[user_id])
    updated_by = relationship("User", foreign_keys=[updated_by_id])

    __table_args__ = (
        UniqueConstraint('user_id', 'occurrence_id', name='uq_rsvp_user_occurrence'),
    )


class ReminderLog(Base):
    """Registro de recordatorios enviados. Se escribe una vez y nunca se actualiza."""
    __tablename__ = "reminder_logs"

    id = Column(Integer, primary_key=True, index=True)
    occurrence_id = Column(Integer, ForeignKey("event_occurrences.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    reminder_type = Column(String(20), nullable=False)
    sent_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        UniqueConstraint('occurrence_id', 'user_id', 'reminder_type', name='uq_reminder_log'),
        Index('ix_reminder_logs_occurrence', 'occurrence_id'),
    )
