from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Index, Enum, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import enum

from gymhub.db.base_class import Base


class ChannelType(str, enum.Enum):
    """Tipo de canal de chat."""
    GLOBAL = "global"  # Canal general del gimnasio
    DM = "dm"          # Mensaje directo entre dos usuarios
    GROUP = "group"    # Grupo con nombre


class Channel(Base):
    __tablename__ = "chat_channels"

    id = Column(Integer, primary_key=True, index=True)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=True)
    channel_type = Column(Enum(ChannelType), nullable=False, default=ChannelType.GROUP)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="SET NULL"), nullable=True, index=True)
    created_by_id = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    members = relationship("ChannelMember", back_populates="channel", cascade="all, delete-orphan")

    __table_args__ = (
        Index('ix_chat_channels_gym_type', 'gym_id', 'channel_type'),
    )


class ChannelMember(Base):
    __tablename__ = "chat_channel_members"

    id = Column(Integer, primary_key=True, index=True)
    channel_id = Column(Integer, ForeignKey("chat_channels.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    channel = relationship("Channel", back_populates="members")
    user = relationship("User")

    __table_args__ = (
        UniqueConstraint('channel_id', 'user_id', name='uq_channel_member'),
        Index('ix_chat_channel_members_user', 'user_id', 'channel_id'),
    )


class Message(Base):
    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    channel_id = Column(Integer, ForeignKey("chat_channels.id", ondelete="CASCADE"), nullable=False, index=True)
    gym_id = Column(Integer, ForeignKey("gyms.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("user.id", ondelete="SET NULL"), nullable=True)
    content = Column(Text, nullable=True)
    attachment_url = Column(String(500), nullable=True)
    attachment_type = Column(String(50), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)

    sender = relationship("User")


class ChatNotification(Base):
    """Mensaje no leído por un usuario. read_at se rellena al marcar el canal como leído."""
    __tablename__ = "chat_notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("user.id", ondelete="CASCADE"), nullable=False)
    channel_id = Column(Integer, ForeignKey("chat_channels.id", ondelete="CASCADE"), nullable=False)
    message_id = Column(Integer, ForeignKey("chat_messages.id", ondelete="CASCADE"), nullable=False)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('ix_chat_notifications_user_unread', 'user_id', 'channel_id', 'read_at'),
    )
