from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from gymhub.core.auth0_fastapi import get_current_db_user
from gymhub.db.session import get_db
from gymhub.models.user import User
from gymhub.schemas.user import User as UserSchema, UserProfileUpdate
from gymhub.services.user import user_service

router = APIRouter()


@router.get("/me", response_model=UserSchema)
async def read_profile(current_user: User = Depends(get_current_db_user)) -> UserSchema:
    """
    Get the authenticated user's profile.
    """
    return current_user


@router.put("/me", response_model=UserSchema)
async def update_profile(
    *,
    db: Session = Depends(get_db),
    profile_in: UserProfileUpdate,
    current_user: User = Depends(get_current_db_user),
) -> UserSchema:
    """
    Update the authenticated user's profile (name, phone, alternate email,
    avatar and push token).
    """
    return user_service.update_profile(db, current_user, profile_in)
