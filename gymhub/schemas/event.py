from typing import Optional, List
from datetime import date, time, datetime
from pydantic import BaseModel, Field, field_validator, model_validator

from gymhub.models.event import OccurrenceStatus, RSVPStatus


def _validate_offsets(v: Optional[List[float]]) -> Optional[List[float]]:
    if v is None:
        return v
    for offset in v:
        if offset <= 0:
            raise ValueError("Los offsets de recordatorio deben ser positivos")
    # Sin duplicados, de mayor a menor
    return sorted(set(v), reverse=True)


# Base schemas for Event
class EventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    start_time: time = Field(..., description="Hora local de inicio (HH:MM)")
    end_time: time = Field(..., description="Hora local de fin (HH:MM)")
    recurrence_rule: Optional[str] = Field(
        None, max_length=500, description="Regla RRULE, p.ej. FREQ=WEEKLY;BYDAY=MO,WE,FR"
    )
    recurrence_end_date: Optional[date] = None
    recurrence_count: Optional[int] = Field(None, ge=1)
    reminder_offsets: List[float] = Field(
        default_factory=list,
        description="Offsets de recordatorio: >= 1 en días, < 1 en fracción de día (0.02 ~ 30 min)"
    )

    @field_validator("reminder_offsets")
    @classmethod
    def validate_offsets(cls, v):
        return _validate_offsets(v)

    @model_validator(mode="after")
    def check_time_window(self):
        if self.end_time <= self.start_time:
            raise ValueError("La hora de fin debe ser posterior a la hora de inicio")
        return self


class EventCreate(EventBase):
    start_date: date = Field(..., description="Primer día del evento")


class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    recurrence_rule: Optional[str] = Field(None, max_length=500)
    recurrence_end_date: Optional[date] = None
    recurrence_count: Optional[int] = Field(None, ge=1)
    reminder_offsets: Optional[List[float]] = None

    @field_validator("reminder_offsets")
    @classmethod
    def validate_offsets(cls, v):
        return _validate_offsets(v)


class Occurrence(BaseModel):
    id: int
    event_id: int
    occurrence_date: date
    status: OccurrenceStatus
    is_custom: bool
    note: Optional[str] = None

    model_config = {"from_attributes": True}


class Event(EventBase):
    id: int
    gym_id: int
    start_date: date
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EventWithOccurrences(Event):
    occurrences: List[Occurrence] = []


class OccurrenceCreate(BaseModel):
    """Ocurrencia personalizada fuera de la regla de recurrencia."""
    occurrence_date: date
    note: Optional[str] = None


class OccurrenceUpdate(BaseModel):
    """Cancelar/restaurar una ocurrencia o editar su nota."""
    status: Optional[OccurrenceStatus] = None
    note: Optional[str] = None


class OccurrenceWithEvent(Occurrence):
    title: str
    start_time: time
    end_time: time
    location: Optional[str] = None
    going_count: int = 0


# RSVP
class RSVPCreate(BaseModel):
    occurrence_id: int
    status: RSVPStatus = RSVPStatus.GOING


class RSVPStaffEdit(BaseModel):
    user_id: int
    occurrence_id: int
    status: RSVPStatus


class RSVP(BaseModel):
    id: int
    user_id: int
    occurrence_id: int
    status: RSVPStatus
    updated_by_id: Optional[int] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
