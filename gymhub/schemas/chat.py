from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, model_validator

from gymhub.models.chat import ChannelType


class ChannelCreate(BaseModel):
    """
    Crear un canal. Para DM basta con ``user_id``; para grupos se requiere
    ``name`` y ``member_ids``.
    """
    channel_type: ChannelType
    user_id: Optional[int] = None
    name: Optional[str] = Field(None, max_length=200)
    member_ids: List[int] = []
    event_id: Optional[int] = None

    @model_validator(mode="after")
    def check_channel_fields(self):
        if self.channel_type == ChannelType.GLOBAL:
            raise ValueError("El canal global se crea automáticamente")
        if self.channel_type == ChannelType.DM and self.user_id is None:
            raise ValueError("user_id es obligatorio para mensajes directos")
        if self.channel_type == ChannelType.GROUP and not (self.name and self.name.strip()):
            raise ValueError("Los grupos necesitan un nombre")
        return self


class Channel(BaseModel):
    id: int
    gym_id: int
    name: Optional[str] = None
    channel_type: ChannelType
    event_id: Optional[int] = None
    member_ids: List[int] = []
    unread_count: int = 0
    created_at: Optional[datetime] = None


class MessageCreate(BaseModel):
    content: Optional[str] = Field(None, max_length=5000)
    attachment_url: Optional[str] = Field(None, max_length=500)
    attachment_type: Optional[str] = Field(None, max_length=50)

    @model_validator(mode="after")
    def check_not_empty(self):
        if not (self.content and self.content.strip()) and not self.attachment_url:
            raise ValueError("El mensaje debe tener contenido o un adjunto")
        return self


class Message(BaseModel):
    id: int
    channel_id: int
    sender_id: Optional[int] = None
    content: Optional[str] = None
    attachment_url: Optional[str] = None
    attachment_type: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class UnreadCounts(BaseModel):
    total: int
    channels: dict
