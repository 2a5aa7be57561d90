from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, EmailStr, Field, field_validator

from gymhub.models.user import UserRole


class InvitationUserInfo(BaseModel):
    name: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=50)


class InvitationCreate(BaseModel):
    emails: List[EmailStr] = Field(..., min_length=1)
    role: UserRole
    user_info: Optional[InvitationUserInfo] = None

    @field_validator("role")
    @classmethod
    def role_must_not_be_owner(cls, v):
        if v == UserRole.OWNER:
            raise ValueError("Solo se puede invitar con rol coach o athlete")
        return v


class InvitationAccept(BaseModel):
    token: str = Field(..., min_length=64, max_length=64)


class Invitation(BaseModel):
    id: int
    email: str
    role: UserRole
    expires_at: datetime
    used: bool
    name: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class InvitationError(BaseModel):
    email: Optional[str] = None
    row: Optional[int] = None  # Fila del fichero importado, si aplica
    error: str


class InvitationBatchResult(BaseModel):
    invited: List[Invitation] = []
    errors: List[InvitationError] = []
