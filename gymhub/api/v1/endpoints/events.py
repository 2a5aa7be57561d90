"""
Events Module - API Endpoints

Events are templates (time slot, recurrence rule and reminder offsets).
Their concrete dates are materialized as occurrences, which are what
athletes RSVP to and what reminders are sent for.

- Creating, editing and deleting events (owners and coaches)
- Viewing events and their occurrences (all members)
- Adding custom one-off dates (owners and coaches)
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gymhub.core.tenant import get_current_gym, verify_staff_access
from gymhub.db.session import get_db
from gymhub.models.gym import Gym
from gymhub.models.user import User
from gymhub.schemas.event import (
    Event as EventSchema,
    EventCreate,
    EventUpdate,
    EventWithOccurrences,
    Occurrence,
    OccurrenceCreate,
    OccurrenceWithEvent,
)
from gymhub.services.event import event_service

router = APIRouter()


@router.get("", response_model=List[EventSchema])
async def list_events(
    db: Session = Depends(get_db),
    gym: Gym = Depends(get_current_gym),
) -> List[EventSchema]:
    return event_service.list_events(db, gym_id=gym.id)


@router.post("", response_model=EventSchema, status_code=status.HTTP_201_CREATED)
async def create_event(
    *,
    event_in: EventCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
    gym: Gym = Depends(get_current_gym),
) -> EventSchema:
    """
    Create an event and materialize its occurrences from today onwards.

    Permissions:
        - Owners and coaches

    Args:
        event_in: Event template; ``recurrence_rule`` is an RRULE body such as
            ``FREQ=WEEKLY;BYDAY=MO,WE,FR``

    Returns:
        Event: The created event
    """
    return event_service.create_event(db, gym=gym, creator=current_user, event_in=event_in)


@router.get("/{event_id}", response_model=EventWithOccurrences)
async def read_event(
    event_id: int,
    limit: int = Query(10, ge=1, le=100, description="Número de próximas ocurrencias"),
    db: Session = Depends(get_db),
    gym: Gym = Depends(get_current_gym),
) -> EventWithOccurrences:
    """
    Get an event with its upcoming occurrences.
    """
    event, upcoming = event_service.get_event_with_upcoming(db, gym=gym, event_id=event_id, limit=limit)
    result = EventWithOccurrences.model_validate(event)
    result.occurrences = [Occurrence.model_validate(o) for o in upcoming]
    return result


@router.put("/{event_id}", response_model=EventSchema)
async def update_event(
    *,
    event_id: int,
    event_in: EventUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
    gym: Gym = Depends(get_current_gym),
) -> EventSchema:
    """
    Update an event. Recurrence changes only add new occurrences; existing
    occurrences and their RSVPs are kept.
    """
    return event_service.update_event(db, gym=gym, event_id=event_id, event_in=event_in)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> None:
    """
    Delete an event together with its occurrences, RSVPs and reminder logs.
    """
    event_service.delete_event(db, gym_id=current_user.gym_id, event_id=event_id)


@router.get("/{event_id}/occurrences", response_model=List[OccurrenceWithEvent])
async def list_event_occurrences(
    event_id: int,
    start: Optional[date] = Query(None, description="Inicio de la ventana (por defecto hoy)"),
    end: Optional[date] = Query(None, description="Fin de la ventana (por defecto +30 días)"),
    db: Session = Depends(get_db),
    gym: Gym = Depends(get_current_gym),
) -> List[OccurrenceWithEvent]:
    event_service.get_event(db, gym_id=gym.id, event_id=event_id)
    return event_service.list_occurrences(db, gym=gym, start=start, end=end, event_id=event_id)


@router.post("/{event_id}/occurrences", response_model=Occurrence, status_code=status.HTTP_201_CREATED)
async def add_custom_occurrence(
    *,
    event_id: int,
    occurrence_in: OccurrenceCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> Occurrence:
    """
    Add a one-off date to an event. A date that already has an occurrence
    is rejected with 400.
    """
    return event_service.add_custom_occurrence(
        db, gym_id=current_user.gym_id, event_id=event_id, occurrence_in=occurrence_in
    )
