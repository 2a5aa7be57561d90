from typing import Optional
import logging

from sqlalchemy.orm import Session

from gymhub.core.exceptions import ValidationError
from gymhub.models.user import User as UserModel
from gymhub.repositories.user import user_repository
from gymhub.schemas.user import UserProfileUpdate

logger = logging.getLogger(__name__)


class UserService:

    def get_user_by_auth0_id(self, db: Session, auth0_id: str) -> Optional[UserModel]:
        return user_repository.get_by_auth0_id(db, auth0_id=auth0_id)

    def sync_auth0_user(self, db: Session, auth0_user) -> Optional[UserModel]:
        """
        Crear o vincular el usuario local a partir de la identidad de Auth0.

        Orden de búsqueda: auth0_id, luego email (usuarios invitados o importados
        que aún no habían iniciado sesión). Si no existe ninguno se crea un
        usuario sin gimnasio que deberá completar el onboarding o aceptar una invitación.
        """
        user = self.get_user_by_auth0_id(db, auth0_id=auth0_user.id)
        if user:
            return user

        email = auth0_user.email
        if not email:
            logger.warning(f"Token de Auth0 {auth0_user.id} sin email; no se puede sincronizar el usuario")
            return None

        user = user_repository.get_by_email(db, email=email)
        if user:
            if user.auth0_id and user.auth0_id != auth0_user.id:
                # Conflicto: el email ya está asociado a otra identidad
                logger.error(
                    f"Conflicto de sincronización Auth0: email {email} ya asociado al usuario {user.id} "
                    f"con otro Auth0 ID"
                )
                return None
            logger.info(f"Asociando Auth0 ID {auth0_user.id} al usuario existente {user.id} encontrado por email")
            return user_repository.update(db, db_obj=user, obj_in={"auth0_id": auth0_user.id})

        logger.info(f"Creando nuevo usuario local para Auth0 ID {auth0_user.id}")
        return user_repository.create(
            db,
            obj_in={
                "auth0_id": auth0_user.id,
                "email": email,
                "name": auth0_user.name,
                "avatar_url": auth0_user.picture,
            },
        )

    def update_profile(self, db: Session, user: UserModel, profile_in: UserProfileUpdate) -> UserModel:
        """Actualiza el perfil del propio usuario."""
        update_data = profile_in.model_dump(exclude_unset=True)
        alt_email = update_data.get("alt_email")
        if alt_email and alt_email.lower() == user.email.lower():
            raise ValidationError("El email alternativo debe ser distinto del principal")
        updated = user_repository.update(db, db_obj=user, obj_in=update_data)
        if updated.name and not updated.onboarded and updated.gym_id:
            updated = user_repository.update(db, db_obj=updated, obj_in={"onboarded": True})
        return updated


user_service = UserService()
