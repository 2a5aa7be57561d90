from typing import List, Optional
from pydantic import BaseModel, Field

from gymhub.schemas.event import Occurrence


class DeliveryError(BaseModel):
    occurrence_id: Optional[int] = None
    user_id: Optional[int] = None
    email: Optional[str] = None
    error: str


class ReminderRunResult(BaseModel):
    processed: int = 0
    sent: int = 0
    skipped: int = 0
    errors: List[DeliveryError] = []


class ManualReminderRequest(BaseModel):
    occurrence_id: int
    user_ids: Optional[List[int]] = Field(None, description="Limitar el envío a estos usuarios")


class CancelNotifyResult(BaseModel):
    occurrence: Occurrence
    notified: int
    failed: int
    errors: List[DeliveryError] = []
