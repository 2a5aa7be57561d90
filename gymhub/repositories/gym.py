from gymhub.models.gym import Gym
from gymhub.repositories.base import BaseRepository
from gymhub.schemas.gym import GymCreate, GymUpdate


class GymRepository(BaseRepository[Gym, GymCreate, GymUpdate]):
    pass


gym_repository = GymRepository(Gym)
