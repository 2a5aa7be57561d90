from typing import List, Optional

from sqlalchemy.orm import Session

from gymhub.models.notice import Notice
from gymhub.repositories.base import BaseRepository
from gymhub.schemas.notice import NoticeCreate, NoticeUpdate


class NoticeRepository(BaseRepository[Notice, NoticeCreate, NoticeUpdate]):

    def get_active(self, db: Session, *, gym_id: int) -> Optional[Notice]:
        return db.query(Notice).filter(
            Notice.gym_id == gym_id, Notice.is_active.is_(True)
        ).order_by(Notice.created_at.desc(), Notice.id.desc()).first()

    def deactivate_all(self, db: Session, *, gym_id: int, exclude_id: Optional[int] = None) -> int:
        """Desactiva los avisos activos del gimnasio (sin commit)."""
        query = db.query(Notice).filter(Notice.gym_id == gym_id, Notice.is_active.is_(True))
        if exclude_id is not None:
            query = query.filter(Notice.id != exclude_id)
        return query.update({Notice.is_active: False}, synchronize_session=False)

    def get_gym_notices(self, db: Session, *, gym_id: int) -> List[Notice]:
        return db.query(Notice).filter(Notice.gym_id == gym_id).order_by(
            Notice.created_at.desc(), Notice.id.desc()
        ).all()


notice_repository = NoticeRepository(Notice)
