from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gymhub.core.auth0_fastapi import get_current_db_user
from gymhub.core.tenant import get_current_gym, verify_staff_access
from gymhub.db.session import get_db
from gymhub.models.gym import Gym
from gymhub.models.user import User
from gymhub.schemas.invitation import (
    Invitation as InvitationSchema,
    InvitationAccept,
    InvitationBatchResult,
    InvitationCreate,
)
from gymhub.schemas.user import User as UserSchema
from gymhub.services.invitation import invitation_service

router = APIRouter()


@router.post("", response_model=InvitationBatchResult, status_code=status.HTTP_201_CREATED)
def create_invitations(
    *,
    invitation_in: InvitationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
    gym: Gym = Depends(get_current_gym),
) -> InvitationBatchResult:
    """
    Invite a batch of emails as coaches or athletes.

    Emails that already belong to a gym member or have a pending invitation
    are reported in ``errors``; the rest are invited and emailed.
    """
    return invitation_service.create_invitations(db, inviter=current_user, gym=gym, invitation_in=invitation_in)


@router.get("", response_model=List[InvitationSchema])
async def list_pending_invitations(
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> List[InvitationSchema]:
    return invitation_service.list_pending(db, gym_id=current_user.gym_id)


@router.post("/accept", response_model=UserSchema)
async def accept_invitation(
    *,
    accept_in: InvitationAccept,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_db_user),
) -> UserSchema:
    """
    Accept an invitation: the current user joins the gym with the invited role.
    """
    return invitation_service.accept(db, user=current_user, token=accept_in.token)
