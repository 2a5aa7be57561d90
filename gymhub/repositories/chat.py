from typing import Dict, List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from gymhub.models.chat import Channel, ChannelMember, ChannelType, ChatNotification, Message


class ChatRepository:
    """Acceso a canales, miembros, mensajes y notificaciones de chat."""

    def get_channel(self, db: Session, *, channel_id: int, gym_id: int) -> Optional[Channel]:
        return db.query(Channel).filter(Channel.id == channel_id, Channel.gym_id == gym_id).first()

    def get_global_channel(self, db: Session, *, gym_id: int) -> Optional[Channel]:
        return db.query(Channel).filter(
            Channel.gym_id == gym_id, Channel.channel_type == ChannelType.GLOBAL
        ).first()

    def get_dm_channel(self, db: Session, *, gym_id: int, user_a: int, user_b: int) -> Optional[Channel]:
        """DM existente entre dos usuarios (canal dm cuyos miembros son exactamente ambos)."""
        candidates = (
            db.query(Channel)
            .join(ChannelMember, ChannelMember.channel_id == Channel.id)
            .filter(
                Channel.gym_id == gym_id,
                Channel.channel_type == ChannelType.DM,
                ChannelMember.user_id == user_a,
            )
            .all()
        )
        wanted = {user_a, user_b}
        for channel in candidates:
            if {m.user_id for m in channel.members} == wanted:
                return channel
        return None

    def get_user_channels(self, db: Session, *, gym_id: int, user_id: int) -> List[Channel]:
        return (
            db.query(Channel)
            .join(ChannelMember, ChannelMember.channel_id == Channel.id)
            .filter(Channel.gym_id == gym_id, ChannelMember.user_id == user_id)
            .order_by(Channel.updated_at.desc(), Channel.id.desc())
            .all()
        )

    def get_member_ids(self, db: Session, *, channel_id: int) -> List[int]:
        rows = db.query(ChannelMember.user_id).filter(ChannelMember.channel_id == channel_id).all()
        return [r[0] for r in rows]

    def is_member(self, db: Session, *, channel_id: int, user_id: int) -> bool:
        query = db.query(ChannelMember.id).filter(
            ChannelMember.channel_id == channel_id, ChannelMember.user_id == user_id
        )
        return db.query(query.exists()).scalar()

    def get_messages(
        self, db: Session, *, channel_id: int, before_id: Optional[int] = None, limit: int = 50
    ) -> List[Message]:
        """Últimos mensajes del canal en orden cronológico."""
        query = db.query(Message).filter(Message.channel_id == channel_id)
        if before_id is not None:
            query = query.filter(Message.id < before_id)
        messages = query.order_by(Message.id.desc()).limit(limit).all()
        return list(reversed(messages))

    def unread_counts(self, db: Session, *, user_id: int, gym_id: int) -> Dict[int, int]:
        rows = (
            db.query(ChatNotification.channel_id, func.count(ChatNotification.id))
            .join(Channel, Channel.id == ChatNotification.channel_id)
            .filter(
                ChatNotification.user_id == user_id,
                ChatNotification.read_at.is_(None),
                Channel.gym_id == gym_id,
            )
            .group_by(ChatNotification.channel_id)
            .all()
        )
        return {channel_id: count for channel_id, count in rows}

    def mark_read(self, db: Session, *, user_id: int, channel_id: int, read_at) -> int:
        return db.query(ChatNotification).filter(
            ChatNotification.user_id == user_id,
            ChatNotification.channel_id == channel_id,
            ChatNotification.read_at.is_(None),
        ).update({ChatNotification.read_at: read_at}, synchronize_session=False)

    def remove_user_from_gym_channels(self, db: Session, *, user_id: int, gym_id: int) -> int:
        """Quita al usuario de todos los canales del gimnasio junto con sus avisos sin leer."""
        gym_channels = select(Channel.id).where(Channel.gym_id == gym_id)
        db.query(ChatNotification).filter(
            ChatNotification.user_id == user_id,
            ChatNotification.channel_id.in_(gym_channels),
            ChatNotification.read_at.is_(None),
        ).delete(synchronize_session=False)
        return db.query(ChannelMember).filter(
            ChannelMember.user_id == user_id,
            ChannelMember.channel_id.in_(gym_channels),
        ).delete(synchronize_session=False)


chat_repository = ChatRepository()
