import logging
from typing import List

from sqlalchemy.orm import Session

from gymhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from gymhub.core.retry import retry_on_db_error
from gymhub.models.user import User, UserRole, STAFF_ROLES
from gymhub.repositories.chat import chat_repository
from gymhub.repositories.user import user_repository
from gymhub.schemas.user import RosterMemberUpdate

logger = logging.getLogger(__name__)


class RosterService:
    """
    Gestión de los miembros de un gimnasio.

    Reglas:
    - Los atletas solo ven al staff y a sí mismos.
    - Solo los owners cambian roles y siempre debe quedar al menos un owner.
    - Los coaches solo editan su propio perfil o el de atletas.
    - Solo los owners eliminan miembros y nunca a sí mismos.
    """

    @retry_on_db_error(max_retries=3, delay=1)
    def list_members(self, db: Session, *, viewer: User) -> List[User]:
        members = user_repository.get_gym_members(db, gym_id=viewer.gym_id)
        if viewer.is_staff:
            return members
        return [m for m in members if m.role in STAFF_ROLES or m.id == viewer.id]

    def _get_gym_member(self, db: Session, gym_id: int, user_id: int) -> User:
        member = user_repository.get(db, id=user_id)
        if not member or member.gym_id != gym_id:
            raise NotFoundError(f"Miembro {user_id} no encontrado")
        return member

    def get_member(self, db: Session, *, viewer: User, user_id: int) -> User:
        member = self._get_gym_member(db, viewer.gym_id, user_id)
        if (
            viewer.role == UserRole.ATHLETE
            and member.role == UserRole.ATHLETE
            and member.id != viewer.id
        ):
            raise PermissionDeniedError("Los atletas no pueden ver el perfil de otros atletas")
        return member

    def update_member(self, db: Session, *, actor: User, user_id: int, member_in: RosterMemberUpdate) -> User:
        member = self._get_gym_member(db, actor.gym_id, user_id)
        update_data = member_in.model_dump(exclude_unset=True)

        if actor.role == UserRole.ATHLETE:
            raise PermissionDeniedError("Los atletas no pueden editar el roster")
        if actor.role == UserRole.COACH and member.id != actor.id and member.role != UserRole.ATHLETE:
            raise PermissionDeniedError("Los coaches solo pueden editar su perfil o el de atletas")

        new_role = update_data.get("role")
        if new_role is None:
            update_data.pop("role", None)
        elif new_role != member.role:
            if actor.role != UserRole.OWNER:
                raise PermissionDeniedError("Solo los owners pueden cambiar roles")
            if member.role == UserRole.OWNER:
                owners = user_repository.count_by_role(db, gym_id=actor.gym_id, role=UserRole.OWNER)
                if owners <= 1:
                    raise ValidationError("No se puede quitar el rol de owner al último owner del gimnasio")

        alt_email = update_data.get("alt_email")
        if alt_email and alt_email.lower() == member.email.lower():
            raise ValidationError("El email alternativo debe ser distinto del principal")

        member = user_repository.update(db, db_obj=member, obj_in=update_data)
        logger.info(f"Miembro {member.id} actualizado por {actor.id}: {sorted(update_data.keys())}")
        return member

    def remove_member(self, db: Session, *, actor: User, user_id: int) -> User:
        """Saca al usuario del gimnasio; la cuenta local se conserva."""
        if actor.role != UserRole.OWNER:
            raise PermissionDeniedError("Solo los owners pueden eliminar miembros")
        if actor.id == user_id:
            raise ValidationError("No puedes eliminarte a ti mismo del gimnasio")

        member = self._get_gym_member(db, actor.gym_id, user_id)
        gym_id = member.gym_id
        # Sin membresías de chat no se generan más notificaciones para el usuario
        left = chat_repository.remove_user_from_gym_channels(db, user_id=member.id, gym_id=gym_id)
        member = user_repository.update(
            db, db_obj=member, obj_in={"gym_id": None, "role": UserRole.ATHLETE, "onboarded": False}
        )
        logger.info(f"Usuario {member.id} eliminado del gym {gym_id} por {actor.id} (sale de {left} canales)")
        return member


roster_service = RosterService()
