import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from gymhub.core.exceptions import NotFoundError, PermissionDeniedError
from gymhub.core.retry import retry_on_db_error
from gymhub.models.gym import Gym
from gymhub.models.notice import Notice
from gymhub.models.user import User
from gymhub.repositories.notice import notice_repository
from gymhub.repositories.user import user_repository
from gymhub.schemas.notice import NoticeCreate, NoticeUpdate
from gymhub.services.email import EmailDeliveryError, email_service

logger = logging.getLogger(__name__)


class NoticeService:
    """Tablón de avisos: como mucho un aviso activo por gimnasio."""

    def _ensure_staff(self, user: User) -> None:
        if not user.is_staff:
            raise PermissionDeniedError("Solo el staff puede gestionar avisos")

    def create_notice(self, db: Session, *, author: User, gym: Gym, notice_in: NoticeCreate) -> Notice:
        self._ensure_staff(author)
        if notice_in.is_active:
            notice_repository.deactivate_all(db, gym_id=gym.id)
        notice = notice_repository.create(db, obj_in=notice_in, gym_id=gym.id, author_id=author.id)
        logger.info(f"Aviso {notice.id} creado en gym {gym.id} por {author.id}")

        if notice.send_email:
            self._email_members(db, gym, notice)
        return notice

    def _email_members(self, db: Session, gym: Gym, notice: Notice) -> int:
        if not gym.email_enabled or not gym.announcement_emails_enabled:
            logger.info(f"Emails de avisos deshabilitados en gym {gym.id}; aviso {notice.id} sin email")
            return 0
        sent = 0
        for member in user_repository.get_gym_members(db, gym_id=gym.id):
            try:
                email_service.send_notice(member, gym, notice.title, notice.content)
                sent += 1
            except EmailDeliveryError as e:
                logger.warning(f"No se pudo enviar el aviso {notice.id} a {member.email}: {e}")
        logger.info(f"Aviso {notice.id} enviado por email a {sent} miembros")
        return sent

    @retry_on_db_error(max_retries=3, delay=1)
    def get_active(self, db: Session, *, gym_id: int) -> Optional[Notice]:
        return notice_repository.get_active(db, gym_id=gym_id)

    @retry_on_db_error(max_retries=3, delay=1)
    def list_notices(self, db: Session, *, gym_id: int) -> List[Notice]:
        return notice_repository.get_gym_notices(db, gym_id=gym_id)

    def get_notice(self, db: Session, *, gym_id: int, notice_id: int) -> Notice:
        notice = notice_repository.get(db, id=notice_id, gym_id=gym_id)
        if not notice:
            raise NotFoundError(f"Aviso {notice_id} no encontrado")
        return notice

    def update_notice(self, db: Session, *, user: User, gym_id: int, notice_id: int,
                      notice_in: NoticeUpdate) -> Notice:
        """Editar o activar/desactivar. Activar un aviso desactiva los demás."""
        self._ensure_staff(user)
        notice = self.get_notice(db, gym_id=gym_id, notice_id=notice_id)
        if notice_in.is_active:
            notice_repository.deactivate_all(db, gym_id=gym_id, exclude_id=notice.id)
        return notice_repository.update(db, db_obj=notice, obj_in=notice_in)

    def delete_notice(self, db: Session, *, user: User, gym_id: int, notice_id: int) -> Notice:
        self._ensure_staff(user)
        return notice_repository.remove(db, id=notice_id, gym_id=gym_id)


notice_service = NoticeService()
