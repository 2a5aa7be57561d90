from typing import Optional

from fastapi import APIRouter, Depends
from redis.asyncio import Redis
from sqlalchemy.orm import Session

from gymhub.core.tenant import get_current_member, verify_owner_access
from gymhub.db.redis_client import get_redis_client
from gymhub.db.session import get_db
from gymhub.models.user import User
from gymhub.schemas.gym import GymSchema, GymUpdate
from gymhub.services.gym import gym_service

router = APIRouter()


@router.get("", response_model=GymSchema)
async def read_my_gym(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> GymSchema:
    """
    Get the current user's gym (cached).
    """
    return await gym_service.get_gym_cached(db, current_user.gym_id, redis_client)


@router.put("", response_model=GymSchema)
async def update_my_gym(
    *,
    db: Session = Depends(get_db),
    gym_in: GymUpdate,
    current_user: User = Depends(verify_owner_access),
    redis_client: Optional[Redis] = Depends(get_redis_client),
) -> GymSchema:
    """
    Update gym settings: name, logo, website, timezone and email preferences.

    Permissions:
        - Owner only
    """
    return await gym_service.update_gym(db, current_user.gym_id, gym_in, redis_client)
