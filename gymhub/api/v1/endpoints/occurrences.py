"""
Occurrences Module - API Endpoints

Concrete event dates: calendar listing, cancel/restore, custom date removal,
cancel-and-notify and the RSVPs of a date.
"""
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from gymhub.core.tenant import get_current_gym, get_current_member, verify_staff_access
from gymhub.db.session import get_db
from gymhub.models.gym import Gym
from gymhub.models.user import User
from gymhub.schemas.event import RSVP as RSVPSchema, Occurrence, OccurrenceUpdate, OccurrenceWithEvent
from gymhub.schemas.reminder import CancelNotifyResult
from gymhub.services.event import event_service
from gymhub.services.rsvp import rsvp_service

router = APIRouter()


@router.get("", response_model=List[OccurrenceWithEvent])
async def list_occurrences(
    start: Optional[date] = Query(None, description="Inicio de la ventana (por defecto hoy)"),
    end: Optional[date] = Query(None, description="Fin de la ventana (por defecto +30 días)"),
    event_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    gym: Gym = Depends(get_current_gym),
) -> List[OccurrenceWithEvent]:
    """
    Calendar view: gym occurrences in a date window with the number of
    athletes going.
    """
    return event_service.list_occurrences(db, gym=gym, start=start, end=end, event_id=event_id)


@router.get("/{occurrence_id}", response_model=Occurrence)
async def read_occurrence(
    occurrence_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> Occurrence:
    return event_service.get_occurrence(db, gym_id=current_user.gym_id, occurrence_id=occurrence_id)


@router.patch("/{occurrence_id}", response_model=Occurrence)
async def update_occurrence(
    *,
    occurrence_id: int,
    occurrence_in: OccurrenceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> Occurrence:
    """
    Cancel or restore an occurrence, or edit its note, without notifying anyone.
    """
    return event_service.update_occurrence(
        db, gym_id=current_user.gym_id, occurrence_id=occurrence_id, occurrence_in=occurrence_in
    )


@router.delete("/{occurrence_id}", response_model=Occurrence)
async def delete_occurrence(
    occurrence_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> Occurrence:
    """
    Delete a custom occurrence. Rule-derived occurrences can only be canceled (400).
    """
    return event_service.delete_occurrence(db, gym_id=current_user.gym_id, occurrence_id=occurrence_id)


@router.post("/{occurrence_id}/cancel-notify", response_model=CancelNotifyResult)
def cancel_and_notify(
    occurrence_id: int,
    note: Optional[str] = Body(None, embed=True),
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
    gym: Gym = Depends(get_current_gym),
) -> CancelNotifyResult:
    """
    Cancel an occurrence and email every athlete who RSVP'd "going".

    The cancellation is saved before any email is sent; delivery failures
    are reported in the response and never fail the request.
    """
    result = event_service.cancel_and_notify(db, gym=gym, occurrence_id=occurrence_id, note=note)
    return CancelNotifyResult(
        occurrence=Occurrence.model_validate(result["occurrence"]),
        notified=result["notified"],
        failed=result["failed"],
        errors=result["errors"],
    )


@router.get("/{occurrence_id}/rsvps", response_model=List[RSVPSchema])
async def list_occurrence_rsvps(
    occurrence_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> List[RSVPSchema]:
    return rsvp_service.list_for_occurrence(db, gym_id=current_user.gym_id, occurrence_id=occurrence_id)
