import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from gymhub.core.exceptions import NotFoundError, PermissionDeniedError
from gymhub.core.retry import retry_on_db_error
from gymhub.models.blog import BlogPost, BlogPostType
from gymhub.models.user import User
from gymhub.repositories.blog import blog_post_repository
from gymhub.repositories.event import event_repository
from gymhub.schemas.blog import BlogPostCreate, BlogPostUpdate

logger = logging.getLogger(__name__)


class BlogService:

    def _ensure_staff(self, user: User) -> None:
        if not user.is_staff:
            raise PermissionDeniedError("Solo el staff puede gestionar el blog")

    def _check_event(self, db: Session, gym_id: int, event_id: Optional[int]) -> None:
        if event_id is not None and not event_repository.exists(db, id=event_id, gym_id=gym_id):
            raise NotFoundError(f"Evento {event_id} no encontrado")

    @retry_on_db_error(max_retries=3, delay=1)
    def list_posts(self, db: Session, *, gym_id: int, post_type: Optional[BlogPostType] = None,
                   skip: int = 0, limit: int = 50) -> List[BlogPost]:
        return blog_post_repository.get_gym_posts(db, gym_id=gym_id, post_type=post_type, skip=skip, limit=limit)

    @retry_on_db_error(max_retries=3, delay=1)
    def get_post(self, db: Session, *, gym_id: int, post_id: int) -> BlogPost:
        post = blog_post_repository.get(db, id=post_id, gym_id=gym_id)
        if not post:
            raise NotFoundError(f"Post {post_id} no encontrado")
        return post

    def create_post(self, db: Session, *, author: User, post_in: BlogPostCreate) -> BlogPost:
        self._ensure_staff(author)
        self._check_event(db, author.gym_id, post_in.event_id)
        post = blog_post_repository.create(db, obj_in=post_in, gym_id=author.gym_id, author_id=author.id)
        logger.info(f"Post {post.id} creado en gym {author.gym_id}")
        return post

    def update_post(self, db: Session, *, user: User, post_id: int, post_in: BlogPostUpdate) -> BlogPost:
        self._ensure_staff(user)
        post = self.get_post(db, gym_id=user.gym_id, post_id=post_id)
        self._check_event(db, user.gym_id, post_in.event_id)
        return blog_post_repository.update(db, db_obj=post, obj_in=post_in)

    def delete_post(self, db: Session, *, user: User, post_id: int) -> BlogPost:
        self._ensure_staff(user)
        return blog_post_repository.remove(db, id=post_id, gym_id=user.gym_id)


blog_service = BlogService()
