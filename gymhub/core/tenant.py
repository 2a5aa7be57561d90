"""
Dependencias de tenant y de rol.

Cada usuario pertenece a un único gimnasio (``User.gym_id``); todas las
consultas de los endpoints se limitan a ese gimnasio.
"""
from typing import Iterable
import logging

from fastapi import Depends, HTTPException, status
from sqlalchemy.orm import Session

from gymhub.core.auth0_fastapi import get_current_db_user
from gymhub.db.session import get_db
from gymhub.models.gym import Gym
from gymhub.models.user import User, UserRole, STAFF_ROLES

logger = logging.getLogger("tenant_verification")


async def get_current_member(current_user: User = Depends(get_current_db_user)) -> User:
    """Usuario autenticado que pertenece a un gimnasio."""
    if current_user.gym_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="El usuario debe pertenecer a un gimnasio"
        )
    return current_user


def _verify_user_role(user: User, allowed_roles: Iterable[UserRole], action: str) -> User:
    if user.role not in allowed_roles:
        logger.warning(
            f"Acceso denegado: usuario {user.id} con rol {user.role.value} intentó {action} en gym {user.gym_id}"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Tu rol no permite {action}"
        )
    return user


async def verify_staff_access(current_user: User = Depends(get_current_member)) -> User:
    """Owner o coach del gimnasio."""
    return _verify_user_role(current_user, STAFF_ROLES, "esta acción de staff")


async def verify_owner_access(current_user: User = Depends(get_current_member)) -> User:
    """Owner del gimnasio."""
    return _verify_user_role(current_user, (UserRole.OWNER,), "esta acción de administración")


async def verify_athlete_access(current_user: User = Depends(get_current_member)) -> User:
    """Atleta del gimnasio."""
    return _verify_user_role(current_user, (UserRole.ATHLETE,), "esta acción de atleta")


async def get_current_gym(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member)
) -> Gym:
    """Gimnasio del usuario autenticado."""
    gym = db.get(Gym, current_user.gym_id)
    if gym is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Gimnasio no encontrado"
        )
    return gym
