from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from gymhub.models.user import User, UserRole
from gymhub.repositories.base import BaseRepository
from gymhub.schemas.user import RosterMemberUpdate


class UserRepository(BaseRepository[User, RosterMemberUpdate, RosterMemberUpdate]):
    def get_by_email(self, db: Session, *, email: str) -> Optional[User]:
        """
        Obtener un usuario por email (sin distinguir mayúsculas).
        """
        return db.query(User).filter(func.lower(User.email) == email.lower()).first()

    def get_by_any_email(self, db: Session, *, email: str) -> Optional[User]:
        """
        Obtener un usuario por su email principal o alternativo.
        """
        email = email.lower()
        return db.query(User).filter(
            or_(func.lower(User.email) == email, func.lower(User.alt_email) == email)
        ).first()

    def get_by_auth0_id(self, db: Session, *, auth0_id: str) -> Optional[User]:
        """
        Obtener un usuario por ID de Auth0.
        """
        return db.query(User).filter(User.auth0_id == auth0_id).first()

    def get_gym_members(
        self, db: Session, *, gym_id: int, role: Optional[UserRole] = None,
        roles: Optional[List[UserRole]] = None
    ) -> List[User]:
        """
        Miembros de un gimnasio, opcionalmente filtrados por uno o varios roles.
        """
        query = db.query(User).filter(User.gym_id == gym_id)
        if role is not None:
            query = query.filter(User.role == role)
        if roles:
            query = query.filter(User.role.in_(roles))
        return query.order_by(User.name, User.email).all()

    def get_gym_members_by_ids(self, db: Session, *, gym_id: int, user_ids: List[int]) -> List[User]:
        if not user_ids:
            return []
        return db.query(User).filter(User.gym_id == gym_id, User.id.in_(user_ids)).all()

    def count_by_role(self, db: Session, *, gym_id: int, role: UserRole) -> int:
        return db.query(func.count(User.id)).filter(User.gym_id == gym_id, User.role == role).scalar()


user_repository = UserRepository(User)
