from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gymhub.core.tenant import get_current_gym, get_current_member, verify_staff_access
from gymhub.db.session import get_db
from gymhub.models.gym import Gym
from gymhub.models.user import User
from gymhub.schemas.notice import Notice as NoticeSchema, NoticeCreate, NoticeUpdate
from gymhub.services.notice import notice_service

router = APIRouter()


@router.get("/active", response_model=Optional[NoticeSchema])
async def read_active_notice(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> Optional[NoticeSchema]:
    """
    The gym's active notice, or null when there is none.
    """
    return notice_service.get_active(db, gym_id=current_user.gym_id)


@router.get("", response_model=List[NoticeSchema])
async def list_notices(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> List[NoticeSchema]:
    return notice_service.list_notices(db, gym_id=current_user.gym_id)


@router.post("", response_model=NoticeSchema, status_code=status.HTTP_201_CREATED)
def create_notice(
    *,
    notice_in: NoticeCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
    gym: Gym = Depends(get_current_gym),
) -> NoticeSchema:
    """
    Publish a notice. An active notice deactivates the others; with
    ``send_email`` it is also emailed to every member.
    """
    return notice_service.create_notice(db, author=current_user, gym=gym, notice_in=notice_in)


@router.put("/{notice_id}", response_model=NoticeSchema)
async def update_notice(
    *,
    notice_id: int,
    notice_in: NoticeUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> NoticeSchema:
    return notice_service.update_notice(
        db, user=current_user, gym_id=current_user.gym_id, notice_id=notice_id, notice_in=notice_in
    )


@router.delete("/{notice_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_notice(
    notice_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> None:
    notice_service.delete_notice(db, user=current_user, gym_id=current_user.gym_id, notice_id=notice_id)
