from typing import List, Optional

from sqlalchemy.orm import Session

from gymhub.models.blog import BlogPost, BlogPostType
from gymhub.repositories.base import BaseRepository
from gymhub.schemas.blog import BlogPostCreate, BlogPostUpdate


class BlogPostRepository(BaseRepository[BlogPost, BlogPostCreate, BlogPostUpdate]):

    def get_gym_posts(
        self, db: Session, *, gym_id: int, post_type: Optional[BlogPostType] = None,
        skip: int = 0, limit: int = 50
    ) -> List[BlogPost]:
        query = db.query(BlogPost).filter(BlogPost.gym_id == gym_id)
        if post_type is not None:
            query = query.filter(BlogPost.post_type == post_type)
        return query.order_by(BlogPost.created_at.desc(), BlogPost.id.desc()).offset(skip).limit(limit).all()


blog_post_repository = BlogPostRepository(BlogPost)
