from typing import Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator
import pytz


def _validate_timezone(v: Optional[str]) -> Optional[str]:
    if v is not None and v not in pytz.all_timezones_set:
        raise ValueError(f"Zona horaria inválida: {v}")
    return v


class GymBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=500)
    website: Optional[str] = Field(None, max_length=255)
    timezone: str = Field("UTC", description="Zona horaria IANA, p.ej. 'Europe/Madrid'")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        return _validate_timezone(v)


class GymCreate(GymBase):
    """Datos del onboarding: el usuario crea su gimnasio y pasa a ser owner."""


class GymUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    logo_url: Optional[str] = Field(None, max_length=500)
    website: Optional[str] = Field(None, max_length=255)
    timezone: Optional[str] = None
    email_enabled: Optional[bool] = None
    reminder_emails_enabled: Optional[bool] = None
    announcement_emails_enabled: Optional[bool] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        return _validate_timezone(v)


class GymSchema(GymBase):
    id: int
    email_enabled: bool = True
    reminder_emails_enabled: bool = True
    announcement_emails_enabled: bool = True
    created_by_id: Optional[int] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
