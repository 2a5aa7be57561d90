from typing import Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field

from gymhub.models.user import UserRole


class UserProfileUpdate(BaseModel):
    """Campos que el propio usuario puede editar."""
    name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    alt_email: Optional[EmailStr] = None
    avatar_url: Optional[str] = Field(None, max_length=500)
    push_token: Optional[str] = Field(None, max_length=255)


class RosterMemberUpdate(BaseModel):
    """Edición de un miembro del roster por parte del staff."""
    name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)
    alt_email: Optional[EmailStr] = None
    role: Optional[UserRole] = None


class User(BaseModel):
    id: int
    email: str
    alt_email: Optional[str] = None
    name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: UserRole
    gym_id: Optional[int] = None
    onboarded: bool = False
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UserSummary(BaseModel):
    id: int
    name: Optional[str] = None
    email: str
    role: UserRole

    model_config = {"from_attributes": True}
