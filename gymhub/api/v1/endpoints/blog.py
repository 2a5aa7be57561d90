from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from gymhub.core.tenant import get_current_member, verify_staff_access
from gymhub.db.session import get_db
from gymhub.models.blog import BlogPostType
from gymhub.models.user import User
from gymhub.schemas.blog import BlogPost as BlogPostSchema, BlogPostCreate, BlogPostUpdate
from gymhub.services.blog import blog_service

router = APIRouter()


@router.get("", response_model=List[BlogPostSchema])
async def list_posts(
    post_type: Optional[BlogPostType] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> List[BlogPostSchema]:
    return blog_service.list_posts(db, gym_id=current_user.gym_id, post_type=post_type, skip=skip, limit=limit)


@router.get("/{post_id}", response_model=BlogPostSchema)
async def read_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_member),
) -> BlogPostSchema:
    return blog_service.get_post(db, gym_id=current_user.gym_id, post_id=post_id)


@router.post("", response_model=BlogPostSchema, status_code=status.HTTP_201_CREATED)
async def create_post(
    *,
    post_in: BlogPostCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> BlogPostSchema:
    """
    Create a blog post, optionally linked to a gym event.
    """
    return blog_service.create_post(db, author=current_user, post_in=post_in)


@router.put("/{post_id}", response_model=BlogPostSchema)
async def update_post(
    *,
    post_id: int,
    post_in: BlogPostUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> BlogPostSchema:
    return blog_service.update_post(db, user=current_user, post_id=post_id, post_in=post_in)


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(verify_staff_access),
) -> None:
    blog_service.delete_post(db, user=current_user, post_id=post_id)
