"""
Roster Module - API Endpoints

Gym member management: list and view members, edit profiles and roles,
remove members and bulk-import a roster file as invitations.
"""
from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.orm import Session

from gymhub.core.tenant import get_current_gym, get_current_member, verify_owner_access, verify_staff_access
from gymhub.db.session import get_db
from gymhub.models.gym import Gym
from gymhub.models.user import User
from gymhub.schemas.invitation import InvitationBatchResult
from gymhub.schemas.user import RosterMemberUpdate, User as UserSchema
from gymhub.services.invitation import invitation_service
from gymhub.services.roster import roster_service

router = APIRouter()


@router.get("", response_model=List[UserSchema])
async def list_members(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> List[UserSchema]:
    """
    List gym members. Athletes only see staff and themselves.
    """
    return roster_service.list_members(db, viewer=current_user)


@router.get("/{user_id}", response_model=UserSchema)
async def read_member(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> UserSchema:
    return roster_service.get_member(db, viewer=current_user, user_id=user_id)


@router.put("/{user_id}", response_model=UserSchema)
async def update_member(
    *,
    user_id: int,
    member_in: RosterMemberUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> UserSchema:
    """
    Update a member's profile or role.

    Permissions:
        - Owners edit anyone and are the only ones who change roles
        - Coaches edit themselves and athletes
    The last owner of a gym cannot be demoted.
    """
    return roster_service.update_member(db, actor=current_user, user_id=user_id, member_in=member_in)


@router.delete("/{user_id}", response_model=UserSchema)
async def remove_member(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_owner_access),
) -> UserSchema:
    """
    Remove a member from the gym (owners only, never themselves).
    """
    return roster_service.remove_member(db, actor=current_user, user_id=user_id)


@router.post("/import", response_model=InvitationBatchResult)
def import_roster(
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_owner_access),
    gym: Gym = Depends(get_current_gym),
) -> InvitationBatchResult:
    """
    Import a CSV or JSON roster. Each row (email, role, name, phone) becomes
    an invitation; row errors are reported without failing the import.
    """
    content = file.file.read()
    return invitation_service.import_roster(
        db, inviter=current_user, gym=gym, filename=file.filename, content=content
    )
