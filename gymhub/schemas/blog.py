from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field

from gymhub.models.blog import BlogPostType


class BlogPostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    post_type: BlogPostType = BlogPostType.GENERAL
    event_id: Optional[int] = None
    image_url: Optional[str] = Field(None, max_length=500)


class BlogPostUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    post_type: Optional[BlogPostType] = None
    event_id: Optional[int] = None
    image_url: Optional[str] = Field(None, max_length=500)


class BlogPost(BaseModel):
    id: int
    gym_id: int
    author_id: Optional[int] = None
    title: str
    content: str
    post_type: BlogPostType
    event_id: Optional[int] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
