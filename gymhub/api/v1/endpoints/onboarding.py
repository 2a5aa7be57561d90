"""
Onboarding Module - API Endpoints

A newly registered user without a gym creates one and becomes its owner.
"""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from gymhub.core.auth0_fastapi import get_current_db_user
from gymhub.db.session import get_db
from gymhub.models.user import User
from gymhub.schemas.gym import GymCreate, GymSchema
from gymhub.services.gym import gym_service

logger = logging.getLogger("onboarding_api")

router = APIRouter()


@router.post("", response_model=GymSchema, status_code=status.HTTP_201_CREATED)
async def onboard(
    *,
    db: Session = Depends(get_db),
    gym_in: GymCreate,
    current_user: User = Depends(get_current_db_user),
) -> GymSchema:
    """
    Create the user's gym and make the user its onboarded owner.

    Fails with 400 when the user already belongs to a gym.
    """
    return gym_service.onboard(db, current_user, gym_in)
