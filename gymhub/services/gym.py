from typing import Optional
import logging

from redis.asyncio import Redis
from sqlalchemy.orm import Session

from gymhub.core.config import get_settings
from gymhub.core.exceptions import NotFoundError, ValidationError
from gymhub.core.retry import retry_on_db_error
from gymhub.models.gym import Gym
from gymhub.models.user import User, UserRole
from gymhub.repositories.gym import gym_repository
from gymhub.schemas.gym import GymCreate, GymSchema, GymUpdate
from gymhub.services.cache_service import cache_service

logger = logging.getLogger(__name__)


def gym_cache_key(gym_id: int) -> str:
    return f"gym_details:{gym_id}"


class GymService:

    @retry_on_db_error(max_retries=3, delay=1)
    def get_gym(self, db: Session, gym_id: int) -> Gym:
        gym = gym_repository.get(db, id=gym_id)
        if not gym:
            raise NotFoundError(f"Gimnasio {gym_id} no encontrado")
        return gym

    async def get_gym_cached(self, db: Session, gym_id: int, redis_client: Optional[Redis]) -> GymSchema:
        """Detalles del gimnasio desde Redis con fallback a la BD."""
        def _db_fetch() -> Optional[GymSchema]:
            gym = gym_repository.get(db, id=gym_id)
            return GymSchema.model_validate(gym) if gym else None

        gym_schema = await cache_service.get_or_set(
            redis_client=redis_client,
            cache_key=gym_cache_key(gym_id),
            db_fetch_func=_db_fetch,
            model_class=GymSchema,
            expiry_seconds=get_settings().CACHE_TTL_GYM_DETAILS,
        )
        if not gym_schema:
            raise NotFoundError(f"Gimnasio {gym_id} no encontrado")
        return gym_schema

    def onboard(self, db: Session, user: User, gym_in: GymCreate) -> Gym:
        """
        Crea el gimnasio del usuario y lo convierte en owner.

        El usuario no debe pertenecer ya a otro gimnasio.
        """
        if user.gym_id is not None:
            raise ValidationError("El usuario ya pertenece a un gimnasio")

        gym = Gym(**gym_in.model_dump(), created_by_id=user.id)
        db.add(gym)
        db.flush()

        user.gym_id = gym.id
        user.role = UserRole.OWNER
        user.onboarded = True
        db.add(user)
        db.commit()
        db.refresh(gym)
        logger.info(f"Gimnasio {gym.id} creado por el usuario {user.id} en el onboarding")
        return gym

    async def update_gym(
        self, db: Session, gym_id: int, gym_in: GymUpdate, redis_client: Optional[Redis]
    ) -> Gym:
        gym = self.get_gym(db, gym_id)
        gym = gym_repository.update(db, db_obj=gym, obj_in=gym_in)
        await cache_service.delete_key(redis_client, gym_cache_key(gym_id))
        logger.info(f"Gimnasio {gym_id} actualizado; caché invalidada")
        return gym


gym_service = GymService()
