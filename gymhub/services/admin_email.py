import logging
import time
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from gymhub.core.config import get_settings
from gymhub.core.exceptions import PermissionDeniedError
from gymhub.models.gym import Gym
from gymhub.models.user import User, UserRole
from gymhub.repositories.user import user_repository
from gymhub.schemas.admin import AdminEmailType
from gymhub.services.auth0_mgmt import Auth0ManagementError, auth0_mgmt_service
from gymhub.services.email import EmailDeliveryError, email_service

logger = logging.getLogger(__name__)


class AdminEmailService:
    """
    Envío masivo de emails de bienvenida o restablecimiento de contraseña.

    Cada email lleva un enlace de contraseña generado con la API de Management
    de Auth0. Los envíos se espacian con una pausa fija para respetar el rate
    limit del proveedor.
    """

    def _password_ticket(self, db: Session, user: User) -> str:
        auth0_id = user.auth0_id
        if not auth0_id:
            auth0_id = auth0_mgmt_service.get_or_create_user_id(user.email, user.name)
            user_repository.update(db, db_obj=user, obj_in={"auth0_id": auth0_id})
        return auth0_mgmt_service.create_password_change_ticket(auth0_id)

    def send_bulk(self, db: Session, *, owner: User, gym: Gym, email_type: AdminEmailType,
                  user_ids: List[int]) -> Dict[str, Any]:
        if owner.role != UserRole.OWNER:
            raise PermissionDeniedError("Solo los owners pueden enviar emails masivos")

        delay = get_settings().EMAIL_BULK_DELAY_SECONDS
        members = {u.id: u for u in user_repository.get_gym_members_by_ids(db, gym_id=gym.id, user_ids=user_ids)}
        results = []
        for index, user_id in enumerate(dict.fromkeys(user_ids)):
            user = members.get(user_id)
            if user is None:
                results.append({"user_id": user_id, "success": False, "error": "Usuario no encontrado en el gimnasio"})
                continue

            if index > 0 and delay > 0:
                time.sleep(delay)
            try:
                ticket_url = self._password_ticket(db, user)
                if email_type == AdminEmailType.WELCOME:
                    email_service.send_welcome(user, gym, ticket_url)
                else:
                    email_service.send_password_reset(user, gym, ticket_url)
                results.append({"user_id": user.id, "email": user.email, "success": True})
            except (Auth0ManagementError, EmailDeliveryError) as e:
                logger.warning(f"Email {email_type.value} a {user.email} falló: {e}")
                results.append({"user_id": user.id, "email": user.email, "success": False, "error": str(e)})

        sent = sum(1 for r in results if r["success"])
        logger.info(f"Emails {email_type.value} en gym {gym.id}: {sent} enviados, {len(results) - sent} fallidos")
        return {"sent": sent, "failed": len(results) - sent, "results": results}

    def request_password_reset(self, db: Session, *, email: str) -> None:
        """
        Envía un enlace de restablecimiento si la cuenta existe. No informa al
        llamador del resultado para no revelar qué emails están registrados.
        """
        user = user_repository.get_by_any_email(db, email=email)
        if not user:
            logger.info("Solicitud de reset para un email sin cuenta")
            return
        try:
            ticket_url = self._password_ticket(db, user)
            email_service.send_password_reset(user, user.gym, ticket_url)
            logger.info(f"Enlace de reset enviado al usuario {user.id}")
        except (Auth0ManagementError, EmailDeliveryError) as e:
            logger.error(f"No se pudo enviar el reset al usuario {user.id}: {e}")


admin_email_service = AdminEmailService()
