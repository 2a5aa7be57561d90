from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field


class NoticeCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    is_active: bool = True
    send_email: bool = False


class NoticeUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1)
    is_active: Optional[bool] = None


class Notice(BaseModel):
    id: int
    gym_id: int
    author_id: Optional[int] = None
    title: str
    content: str
    is_active: bool
    send_email: bool
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
