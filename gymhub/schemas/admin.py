from typing import List, Optional
from enum import Enum
from pydantic import BaseModel, EmailStr, Field


class AdminEmailType(str, Enum):
    WELCOME = "welcome"
    RESET = "reset"


class AdminEmailRequest(BaseModel):
    email_type: AdminEmailType
    user_ids: List[int] = Field(..., min_length=1)


class AdminEmailItem(BaseModel):
    user_id: int
    email: Optional[str] = None
    success: bool
    error: Optional[str] = None


class AdminEmailResult(BaseModel):
    sent: int
    failed: int
    results: List[AdminEmailItem]


class PasswordResetRequest(BaseModel):
    email: EmailStr
