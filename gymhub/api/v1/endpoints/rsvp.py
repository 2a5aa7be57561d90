from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gymhub.core.tenant import get_current_gym, get_current_member, verify_athlete_access, verify_staff_access
from gymhub.db.session import get_db
from gymhub.models.gym import Gym
from gymhub.models.user import User
from gymhub.schemas.event import RSVP as RSVPSchema, RSVPCreate, RSVPStaffEdit
from gymhub.services.rsvp import rsvp_service

router = APIRouter()


@router.get("", response_model=List[RSVPSchema])
async def list_rsvps(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> List[RSVPSchema]:
    """
    Staff see every RSVP in the gym; athletes see their own.
    """
    return rsvp_service.list_visible(db, user=current_user)


@router.post("", response_model=RSVPSchema)
async def respond(
    *,
    rsvp_in: RSVPCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_athlete_access),
    gym: Gym = Depends(get_current_gym),
) -> RSVPSchema:
    """
    Athlete RSVP for an occurrence (upsert). Canceled or past occurrences are rejected.
    """
    return rsvp_service.respond(
        db, user=current_user, gym=gym, occurrence_id=rsvp_in.occurrence_id, status=rsvp_in.status
    )


@router.put("/staff", response_model=RSVPSchema)
async def staff_edit(
    *,
    edit_in: RSVPStaffEdit,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
    gym: Gym = Depends(get_current_gym),
) -> RSVPSchema:
    """
    Set any member's RSVP on their behalf (owners and coaches).
    """
    return rsvp_service.staff_edit(
        db, staff=current_user, gym=gym, user_id=edit_in.user_id,
        occurrence_id=edit_in.occurrence_id, status=edit_in.status,
    )
